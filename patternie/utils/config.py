"""Configuration management using Pydantic for validation."""

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ExtractorType = Literal["general", "specific", "lda", "template"]


class ExtractorConfig(BaseSettings):
    """Toggles threaded through the extraction pipeline.

    Constructed once per run and read-only afterwards.
    """

    model_config = SettingsConfigDict(frozen=True)

    confidence_threshold: float = Field(default=0.0, ge=0.0)
    expand_extraction: bool = True
    restrict_arguments: bool = True
    simplify_postags: bool = True
    simplify_vb_postags: bool = False
    keep_duplicates: bool = False


class PatternSourceConfig(BaseSettings):
    """Where extractor patterns come from."""

    extractor_type: ExtractorType = "general"
    pattern_file: Optional[Path] = None
    distributions_dir: Optional[Path] = None


class RunnerConfig(BaseSettings):
    """Sentence record loop configuration."""

    max_workers: int = Field(default=1, ge=1)
    verbose: bool = False


class SpacyConfig(BaseSettings):
    """spaCy parser configuration for building graphs from raw text."""

    model: str = "en_core_web_sm"
    batch_size: int = 100


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    file: Optional[str] = "logs/patternie.log"
    rotation: str = "10 MB"
    retention: str = "1 week"


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    patterns: PatternSourceConfig = Field(default_factory=PatternSourceConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    spacy: SpacyConfig = Field(default_factory=SpacyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win)."""
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the YAML root is not a mapping
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def validate_config(self) -> None:
        """Check that the configured extractor type has the pattern source it needs.

        Raises:
            ValueError: If a required pattern source is missing
        """
        source = self.patterns
        kind = source.extractor_type

        if kind in ("lda", "specific") and source.distributions_dir is None:
            raise ValueError(f"Distributions directory required for the {kind} extractor")
        if kind == "template" and source.pattern_file is None:
            raise ValueError("Pattern template file required for the template extractor")
        if kind == "general" and source.pattern_file is None and source.distributions_dir is None:
            raise ValueError("Pattern file or distributions directory required for the general extractor")

        if source.pattern_file is not None and not source.pattern_file.exists():
            raise ValueError(f"Pattern file not found: {source.pattern_file}")
        if source.distributions_dir is not None and not source.distributions_dir.is_dir():
            raise ValueError(f"Distributions directory not found: {source.distributions_dir}")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path = "config/config.yaml") -> Config:
    """Load and validate configuration."""
    global _config
    _config = Config.from_yaml(yaml_path)
    _config.validate_config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
