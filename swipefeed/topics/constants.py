"""Constants for the topic classifier."""

# Sentinel label returned when no topic clears the threshold
OTHER_TOPIC: str = "other"

# A title keyword hit counts once; a domain hit is less ambiguous
KEYWORD_MATCH_WEIGHT: int = 1
DOMAIN_MATCH_WEIGHT: int = 3

# Minimum accumulated score for a topic to be reported
TOPIC_SCORE_THRESHOLD: int = 2

# (topic, title keywords, domains)
DEFAULT_TOPIC_RULES: list[tuple[str, list[str], list[str]]] = [
    (
        "ai-ml",
        [
            "ai",
            "machine",
            "learning",
            "neural",
            "gpt",
            "llm",
            "model",
            "transformer",
            "diffusion",
            "openai",
            "anthropic",
            "deepmind",
            "training",
            "inference",
            "embedding",
            "chatbot",
            "generative",
            "deep",
        ],
        ["openai.com", "anthropic.com", "deepmind.google", "huggingface.co"],
    ),
    (
        "programming",
        [
            "rust",
            "python",
            "javascript",
            "typescript",
            "golang",
            "compiler",
            "language",
            "syntax",
            "library",
            "framework",
            "programming",
            "developer",
            "code",
            "debug",
            "refactor",
        ],
        ["github.com", "gitlab.com", "dev.to"],
    ),
    (
        "security",
        [
            "security",
            "vulnerability",
            "exploit",
            "hack",
            "breach",
            "encryption",
            "malware",
            "ransomware",
            "phishing",
            "cybersecurity",
            "zero-day",
            "auth",
            "authentication",
        ],
        ["krebsonsecurity.com", "schneier.com", "thehackernews.com"],
    ),
    (
        "startups",
        [
            "startup",
            "founder",
            "funding",
            "venture",
            "seed",
            "series",
            "valuation",
            "acquisition",
            "ipo",
            "pitch",
            "accelerator",
            "yc",
            "ycombinator",
        ],
        ["techcrunch.com", "crunchbase.com", "ycombinator.com"],
    ),
    (
        "science",
        [
            "research",
            "study",
            "discovery",
            "physics",
            "biology",
            "chemistry",
            "space",
            "quantum",
            "genome",
            "climate",
            "nasa",
            "nature",
            "experiment",
        ],
        ["nature.com", "science.org", "arxiv.org", "nasa.gov"],
    ),
    (
        "hardware",
        [
            "chip",
            "processor",
            "cpu",
            "gpu",
            "silicon",
            "semiconductor",
            "fpga",
            "arduino",
            "raspberry",
            "hardware",
            "circuit",
            "manufacturing",
            "intel",
            "amd",
            "nvidia",
            "apple",
        ],
        ["anandtech.com", "tomshardware.com", "semianalysis.com"],
    ),
    (
        "web-dev",
        [
            "react",
            "nextjs",
            "css",
            "html",
            "browser",
            "frontend",
            "backend",
            "api",
            "rest",
            "graphql",
            "webpack",
            "vite",
            "tailwind",
            "dom",
            "http",
            "web",
        ],
        ["mdn.io", "web.dev", "css-tricks.com", "smashingmagazine.com"],
    ),
    (
        "systems",
        [
            "linux",
            "kernel",
            "os",
            "database",
            "postgres",
            "redis",
            "docker",
            "kubernetes",
            "distributed",
            "networking",
            "tcp",
            "dns",
            "storage",
            "filesystem",
            "cloud",
            "aws",
        ],
        ["lwn.net", "kernel.org", "aws.amazon.com"],
    ),
    (
        "culture",
        [
            "culture",
            "remote",
            "hiring",
            "interview",
            "management",
            "career",
            "salary",
            "burnout",
            "productivity",
            "work",
            "team",
            "leadership",
        ],
        [],
    ),
    (
        "finance",
        [
            "bitcoin",
            "crypto",
            "blockchain",
            "trading",
            "market",
            "stock",
            "fintech",
            "bank",
            "payment",
            "defi",
            "ethereum",
            "price",
        ],
        ["coindesk.com", "bloomberg.com", "ft.com"],
    ),
]
