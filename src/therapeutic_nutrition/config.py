"""Configuration management - config-driven architecture."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


class Settings(BaseSettings):
    """Application settings from environment and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Config files
    config_dir: Path = Field(default=DEFAULT_CONFIG_DIR, description="Directory holding YAML config")
    protocols_file: str = Field(
        default="therapeutic_protocols.yaml",
        description="Protocol catalog (targets, supplements, rules, ADH references)",
    )

    # Coverage
    deficit_threshold: float = Field(
        default=0.8,
        gt=0,
        le=1,
        description="Fraction of an absolute target below which a day counts as a deficit",
    )
    max_suggestions: int = Field(default=3, ge=0, description="Cap on action suggestions per snapshot")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level for the CLI")


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML config file."""
    if not config_path.exists():
        return {}
    with config_path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


@lru_cache
def get_protocol_config(config_dir_str: str = "") -> dict[str, Any]:
    """Raw protocol catalog from config. Cleared by reload_protocol_catalog()."""
    settings = get_settings()
    config_dir = Path(config_dir_str) if config_dir_str else settings.config_dir
    path = config_dir / settings.protocols_file
    if not path.exists():
        logger.warning("Protocol catalog not found at %s; no protocols loaded", path)
    return load_yaml_config(path)
