"""Unit tests for ranking configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from swipefeed.config import (
    ConfigLoader,
    ConfigValidationError,
    RankingConfig,
    TopicRule,
    load_ranking_config,
)


def _write(tmp_path: Path, content: str) -> Path:
    """Write a ranking.yaml into tmp_path."""
    path = tmp_path / "ranking.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    """Tests for built-in defaults."""

    def test_no_path_returns_defaults(self) -> None:
        """Missing path falls back to defaults."""
        config = load_ranking_config(None)
        assert config == RankingConfig()

    def test_default_values(self) -> None:
        """Defaults match the calibrated constants."""
        config = RankingConfig()
        assert config.decay.half_life_ms == 600_000
        assert config.decay.session_multiplier == 2.0
        assert config.signals.short_dwell_ms == 2000
        assert config.signals.dwell_saturation_ms == 10_000
        assert config.scoring.author_affinity_threshold == 0.3
        assert config.scoring.skip_penalty == 0.30
        assert config.diversity.interval == 5
        assert config.feed.refill_threshold == 10
        assert config.store.read_timeout_s == 3.0
        assert config.store.write_timeout_s == 5.0

    def test_default_topics_loaded(self) -> None:
        """Default topic table is present."""
        names = [t.name for t in RankingConfig().topics]
        assert "ai-ml" in names
        assert "security" in names


class TestLoader:
    """Tests for ConfigLoader.load."""

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        """An empty YAML document is treated as an empty mapping."""
        config = ConfigLoader().load(_write(tmp_path, ""))
        assert config == RankingConfig()

    def test_partial_override(self, tmp_path: Path) -> None:
        """Only the given keys change."""
        path = _write(
            tmp_path,
            "decay:\n  half_life_ms: 60000\ndiversity:\n  interval: 3\n",
        )
        config = ConfigLoader().load(path)
        assert config.decay.half_life_ms == 60_000
        assert config.decay.session_multiplier == 2.0
        assert config.diversity.interval == 3

    def test_custom_topics_replace_defaults(self, tmp_path: Path) -> None:
        """A topics list replaces the built-in table."""
        path = _write(
            tmp_path,
            "topics:\n  - name: rust\n    keywords: [rust, cargo]\n",
        )
        config = ConfigLoader().load(path)
        assert config.topics == [TopicRule(name="rust", keywords=["rust", "cargo"])]

    def test_checksum_recorded(self, tmp_path: Path) -> None:
        """The loader keeps the SHA-256 of the file."""
        loader = ConfigLoader()
        loader.load(_write(tmp_path, "version: '1.0'\n"))
        assert loader.checksum is not None
        assert len(loader.checksum) == 64
        assert loader.validation_duration_ms >= 0

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        """Extra keys fail validation."""
        path = _write(tmp_path, "bogus: 1\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)
        assert exc_info.value.errors[0]["loc"] == "bogus"
        assert exc_info.value.file_path == str(path)

    def test_out_of_range_rejected(self, tmp_path: Path) -> None:
        """Constraint violations are reported with their location."""
        path = _write(tmp_path, "diversity:\n  interval: 1\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)
        assert exc_info.value.errors[0]["loc"] == "diversity.interval"

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        """YAML syntax errors become ConfigValidationError."""
        path = _write(tmp_path, "decay: [unclosed\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)
        assert exc_info.value.errors[0]["type"] == "yaml_error"

    def test_non_mapping_top_level(self, tmp_path: Path) -> None:
        """A list at the top level is rejected."""
        with pytest.raises(ConfigValidationError):
            ConfigLoader().load(_write(tmp_path, "- 1\n- 2\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load(tmp_path / "absent.yaml")


class TestTopicRule:
    """Tests for TopicRule validation."""

    def test_uppercase_keyword_rejected(self) -> None:
        """Keywords must be lowercase."""
        with pytest.raises(ValidationError):
            TopicRule(name="t", keywords=["Rust"])

    def test_blank_domain_rejected(self) -> None:
        """Domains must be non-empty."""
        with pytest.raises(ValidationError):
            TopicRule(name="t", domains=["  "])

    def test_frozen(self) -> None:
        """Rules are immutable."""
        rule = TopicRule(name="t")
        with pytest.raises(ValidationError):
            rule.name = "u"  # type: ignore[misc]
