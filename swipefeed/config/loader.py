"""Ranking configuration loader with validation."""

import hashlib
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from swipefeed.config.schemas.ranking import RankingConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates ranking.yaml.

    The loaded configuration is an immutable pydantic model; the loader
    keeps the file checksum and validation timing for diagnostics.
    """

    def __init__(self) -> None:
        """Initialize the loader."""
        self._checksum: str | None = None
        self._validation_duration_ms: float = 0.0
        self._log = logger.bind(component="config")

    @property
    def checksum(self) -> str | None:
        """Get SHA-256 checksum of the last loaded file."""
        return self._checksum

    @property
    def validation_duration_ms(self) -> float:
        """Get validation duration in milliseconds."""
        return self._validation_duration_ms

    def load(self, path: Path) -> RankingConfig:
        """Load and validate a ranking configuration file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated RankingConfig.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigValidationError: If the YAML is malformed or fails validation.
        """
        start_time = time.perf_counter()
        self._log.info("loading_config_file", file_path=str(path))

        content_bytes = path.read_bytes()
        self._checksum = hashlib.sha256(content_bytes).hexdigest()

        try:
            data = yaml.safe_load(content_bytes.decode("utf-8")) or {}
        except yaml.YAMLError as e:
            errors = [{"loc": "", "msg": str(e), "type": "yaml_error"}]
            self._log.error(
                "config_yaml_parse_failed", file_path=str(path), error=str(e)
            )
            raise ConfigValidationError(errors, str(path)) from e

        if not isinstance(data, dict):
            errors = [
                {"loc": "", "msg": "Top level must be a mapping", "type": "type_error"}
            ]
            raise ConfigValidationError(errors, str(path))

        try:
            config = RankingConfig.model_validate(data)
        except ValidationError as e:
            errors = [
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]),
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in e.errors()
            ]
            self._log.error(
                "config_validation_failed",
                file_path=str(path),
                validation_error_count=len(errors),
                errors=errors,
            )
            raise ConfigValidationError(errors, str(path)) from e

        self._validation_duration_ms = (time.perf_counter() - start_time) * 1000
        self._log.info(
            "config_file_loaded",
            file_path=str(path),
            file_sha256=self._checksum,
            topic_count=len(config.topics),
            config_validation_duration_ms=round(self._validation_duration_ms, 2),
        )
        return config


def load_ranking_config(path: Path | None = None) -> RankingConfig:
    """Load ranking configuration, falling back to defaults.

    Args:
        path: Optional path to ranking.yaml. None returns the defaults.

    Returns:
        Validated RankingConfig.
    """
    if path is None:
        return RankingConfig()
    return ConfigLoader().load(path)
