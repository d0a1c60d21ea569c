"""Configuration settings for quotelink."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from quotelink.matching.normalize import NormalizationPolicy

# Env override for the settings file
CONFIG_ENV_VAR = "QUOTELINK_CONFIG"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """Raised when a settings file cannot be applied."""

    pass


@dataclass
class Settings:
    """Application settings."""

    # Quote parsing
    segment_delimiter: str = " & "
    min_quote_length: int = 2
    normalization: NormalizationPolicy = field(default_factory=NormalizationPolicy)

    # Highlighting
    palette_size: int = 10
    ellipsis: str = "..."

    # Broadcast coalescing window
    debounce_seconds: float = 0.5

    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

        values = dict(data)
        norm = values.pop("normalization", None)
        if norm is not None:
            if not isinstance(norm, dict):
                raise ConfigError("'normalization' must be a mapping")
            try:
                values["normalization"] = NormalizationPolicy(**norm)
            except TypeError as e:
                raise ConfigError(f"Invalid normalization settings: {e}")

        settings = cls(**values)
        settings.validate()
        return settings

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigError(f"Settings file not found: {path}")
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file must contain a mapping: {path}")
        return cls.from_dict(data)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from $QUOTELINK_CONFIG if set, else defaults."""
        path = os.environ.get(CONFIG_ENV_VAR)
        if path:
            return cls.from_yaml(Path(path))
        return cls()

    def validate(self) -> None:
        if not self.segment_delimiter.strip():
            raise ConfigError("segment_delimiter must contain a visible character")
        if self.min_quote_length < 1:
            raise ConfigError("min_quote_length must be >= 1")
        if self.palette_size < 1:
            raise ConfigError("palette_size must be >= 1")
        if self.debounce_seconds < 0:
            raise ConfigError("debounce_seconds cannot be negative")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )
