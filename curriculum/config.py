"""Configuration loader for curriculum provisioning.

Loads configuration from:
1. Default values (hardcoded)
2. config.yaml file (if exists)
3. .env file and environment variables (highest priority)

Environment variables use the pattern: CURRICULUM_SECTION__KEY
Examples:
    CURRICULUM_API__BASE_URL=https://lms.example.com/api
    CURRICULUM_API__ACCESS_TOKEN=eyJhbGciOi...
    CURRICULUM_PROVISIONING__SETTLE_DELAY_SECONDS=2
    CURRICULUM_LOGGING__LEVEL=DEBUG
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .logging_config import get_logger

logger = get_logger('config')

ENV_PREFIX = "CURRICULUM_"


@dataclass
class ApiConfig:
    """Course-content API configuration."""
    base_url: str = "http://localhost:8080/api"
    access_token: Optional[str] = None
    timeout_seconds: float = 30.0


@dataclass
class ProvisioningConfig:
    """Unit/material provisioning configuration."""
    settle_delay_seconds: float = 1.0
    max_file_size_bytes: int = 5 * 1024 * 1024  # 5MiB
    allowed_extensions: list[str] = field(default_factory=lambda: [".pdf", ".mp3"])
    allowed_content_types: list[str] = field(default_factory=lambda: [
        "application/pdf",
        "audio/mpeg",
        "audio/mp3",
    ])
    require_material: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    json_format: bool = False


@dataclass
class Config:
    """Main configuration container."""
    api: ApiConfig = field(default_factory=ApiConfig)
    provisioning: ProvisioningConfig = field(default_factory=ProvisioningConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dictionary."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(original, value: str, key: str):
    """Convert an environment string to the type of the default value."""
    try:
        if isinstance(original, bool):
            return value.lower() in ('true', '1', 'yes')
        if isinstance(original, int):
            return int(value)
        if isinstance(original, float):
            return float(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}", config_key=key) from e
    if isinstance(original, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply environment variable overrides.

    Environment variables use the pattern: CURRICULUM_SECTION__KEY
    Double underscore separates nested keys.
    """
    defaults = asdict(Config())

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        path = key[len(ENV_PREFIX):].lower().split("__")
        if len(path) < 2:
            continue

        current = config_dict
        default = defaults
        for part in path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]
            default = default.get(part, {}) if isinstance(default, dict) else {}

        # Coerce by the default's type; a YAML file may have written 10 for a float
        final_key = path[-1]
        original = default.get(final_key) if isinstance(default, dict) else None
        if original is None:
            original = current.get(final_key)
        if original is not None:
            value = _coerce(original, value, key)

        current[final_key] = value
        logger.debug(f"Applied env override: {key}")

    return config_dict


def _section(cls, values: dict):
    """Build a section dataclass, ignoring unknown keys."""
    return cls(**{k: v for k, v in values.items() if k in cls.__dataclass_fields__})


def _dict_to_config(config_dict: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    return Config(
        api=_section(ApiConfig, config_dict.get('api', {})),
        provisioning=_section(ProvisioningConfig, config_dict.get('provisioning', {})),
        logging=_section(LoggingConfig, config_dict.get('logging', {})),
    )


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file. If None, searches for config.yaml
                    in the working directory and the project root.

    Returns:
        Config object with all settings loaded
    """
    load_dotenv()

    config_dict = asdict(Config())

    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent / "config.yaml",
            Path(__file__).parent.parent / "config.yml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break
    elif not Path(config_path).exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    if config_path and Path(config_path).exists():
        try:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        config_dict = _deep_update(config_dict, file_config)
        logger.debug(f"Loaded config from: {config_path}")

    config_dict = _apply_env_overrides(config_dict)

    config = _dict_to_config(config_dict)
    if config.provisioning.settle_delay_seconds < 0:
        raise ConfigurationError(
            "settle_delay_seconds cannot be negative",
            config_key='provisioning.settle_delay_seconds',
        )
    return config


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Loads config on first call, returns cached instance on subsequent calls.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """Reload configuration, clearing the cache."""
    global _config
    _config = load_config(config_path)
    return _config
