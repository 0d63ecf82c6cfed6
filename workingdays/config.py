"""
Configuration management using Pydantic models.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_HOLIDAY_API_URL = "https://content.capta.co/Recruitment/WorkingDays.json"

ENV_HOLIDAY_API_URL = "HOLIDAY_API_URL"
ENV_HOLIDAY_CACHE_TTL = "HOLIDAY_CACHE_TTL_SECONDS"
ENV_HOLIDAY_STORE_PATH = "HOLIDAY_STORE_PATH"


class HolidayConfig(BaseModel):
    """Where holidays come from and how long the local copy stays fresh."""
    api_url: str = DEFAULT_HOLIDAY_API_URL
    cache_ttl_seconds: int = 86400  # 24 hours
    store_path: Path = Path("holidays.json")
    request_timeout_seconds: float = 10.0

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, value: int) -> int:
        """TTL may be zero (always refresh) but not negative."""
        if value < 0:
            raise ValueError(f"cache_ttl_seconds must not be negative, got {value}")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    holidays: HolidayConfig = Field(default_factory=HolidayConfig)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names, case-insensitively."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Return a copy with holiday settings overridden from the environment."""
        env = os.environ if environ is None else environ

        overrides = {}
        if env.get(ENV_HOLIDAY_API_URL):
            overrides["api_url"] = env[ENV_HOLIDAY_API_URL]
        if env.get(ENV_HOLIDAY_CACHE_TTL):
            overrides["cache_ttl_seconds"] = env[ENV_HOLIDAY_CACHE_TTL]
        if env.get(ENV_HOLIDAY_STORE_PATH):
            overrides["store_path"] = env[ENV_HOLIDAY_STORE_PATH]

        if not overrides:
            return self

        holidays = HolidayConfig(**{**self.holidays.model_dump(), **overrides})
        return self.model_copy(update={"holidays": holidays})


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_file: Optional[Path] = None) -> AppConfig:
    """
    Resolve the effective configuration.

    An explicitly given file must exist. Without one, ``config.yaml`` is used
    if present and the built-in defaults otherwise. Environment overrides are
    applied last.
    """
    if config_file is not None:
        config = AppConfig.load_from_yaml(config_file)
    else:
        default_path = get_default_config_path()
        config = AppConfig.load_from_yaml(default_path) if default_path.exists() else AppConfig()

    return config.with_env_overrides()
