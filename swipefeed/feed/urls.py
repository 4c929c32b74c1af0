"""URL helpers for candidate stories."""

import re
from urllib.parse import urlparse


HTTP_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
WWW_PREFIX = "www."


def is_http_url(url: str | None) -> bool:
    """Check whether a URL is an absolute http(s) URL.

    Args:
        url: URL to check.

    Returns:
        True for absolute http/https URLs.
    """
    return bool(url) and HTTP_URL_PATTERN.match(url) is not None


def strip_www(host: str) -> str:
    """Remove a leading "www." from a host name.

    Args:
        host: Host or domain string.

    Returns:
        Host without the www prefix.
    """
    return host[len(WWW_PREFIX) :] if host.startswith(WWW_PREFIX) else host


def extract_domain(url: str | None) -> str | None:
    """Extract the lowercase host of a URL without its "www." prefix.

    Args:
        url: Story URL, or None for text-only posts.

    Returns:
        Domain string, or None when the URL is missing or not absolute.
    """
    if not url:
        return None
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return strip_www(host.lower())
