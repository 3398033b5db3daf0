"""
blockon Configuration

Configuration management for the runtime and the bundled tasks: defaults,
file and environment loading, validation and logging setup.
"""

import os
import sys
import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .core.errors import ConfigError
from .tasks.permute import DEFAULT_DELAY_SECONDS

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class RuntimeConfig:
    """Main configuration class for blockon"""

    # Logging
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    # Tasks
    permute_delay_seconds: float = DEFAULT_DELAY_SECONDS

    # Runtime
    enable_tracing: bool = False
    handle_sigint: bool = True


def get_default_config() -> RuntimeConfig:
    """Get default configuration"""
    return RuntimeConfig()


def load_config_from_file(config_path: Union[str, Path]) -> RuntimeConfig:
    """
    Load configuration from a JSON or YAML file

    Args:
        config_path: Path to configuration file

    Returns:
        RuntimeConfig instance

    Raises:
        ConfigError: the file is missing, unreadable or has unknown keys
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix.lower() in [".yaml", ".yml"]:
            data = yaml.safe_load(f)
        elif config_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            raise ConfigError(f"Unsupported config file format: {config_path.suffix}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

    return _config_from_dict(data)


def _parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise TypeError(f"expected a boolean, got {type(value).__name__}")
    return value.lower() in ["true", "1", "yes"]


def _parse_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _parse_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("expected a number, got bool")
    return float(value)


# Converter per RuntimeConfig field, shared by file and environment loading
FIELD_CONVERTERS = {
    "log_level": _parse_str,
    "log_format": _parse_str,
    "permute_delay_seconds": _parse_float,
    "enable_tracing": _parse_bool,
    "handle_sigint": _parse_bool,
}


def load_config_from_env(base_config: Optional[RuntimeConfig] = None) -> RuntimeConfig:
    """
    Load configuration from environment variables

    Environment variables are prefixed with BLOCKON_, for example
    BLOCKON_LOG_LEVEL=DEBUG or BLOCKON_PERMUTE_DELAY_SECONDS=0.5

    Args:
        base_config: Values not set in the environment come from here

    Returns:
        RuntimeConfig instance
    """
    config = replace(base_config) if base_config else RuntimeConfig()

    env_mappings = {
        "BLOCKON_LOG_LEVEL": ("log_level", str),
        "BLOCKON_LOG_FORMAT": ("log_format", str),
        "BLOCKON_PERMUTE_DELAY_SECONDS": ("permute_delay_seconds", float),
        "BLOCKON_ENABLE_TRACING": ("enable_tracing", _parse_bool),
        "BLOCKON_HANDLE_SIGINT": ("handle_sigint", _parse_bool),
    }

    for env_var, (attr_name, converter) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                converted_value = converter(value)
            except (ValueError, TypeError) as e:
                raise ConfigError(f"Invalid value for {env_var}: {value}. Error: {e}")
            setattr(config, attr_name, converted_value)

    return config


def merge_configs(
    base_config: RuntimeConfig, override_config: Dict[str, Any]
) -> RuntimeConfig:
    """
    Merge override values into a RuntimeConfig instance

    Args:
        base_config: Base configuration
        override_config: Override values; None values are ignored

    Returns:
        Merged RuntimeConfig instance
    """
    config_dict = _config_to_dict(base_config)
    config_dict.update(
        {key: value for key, value in override_config.items() if value is not None}
    )
    return _config_from_dict(config_dict)


def validate_config(config: RuntimeConfig) -> List[str]:
    """
    Validate configuration and return list of issues

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if not isinstance(config.permute_delay_seconds, (int, float)) or isinstance(
        config.permute_delay_seconds, bool
    ):
        issues.append(
            f"permute_delay_seconds must be a number: {config.permute_delay_seconds!r}"
        )
    elif config.permute_delay_seconds < 0:
        issues.append("permute_delay_seconds cannot be negative")

    if not isinstance(config.log_level, str):
        issues.append(f"log_level must be a string: {config.log_level!r}")
    elif config.log_level.upper() not in VALID_LOG_LEVELS:
        issues.append(
            f"Invalid log_level: {config.log_level}. Must be one of {VALID_LOG_LEVELS}"
        )

    return issues


def configure_logging(config: RuntimeConfig) -> None:
    """
    Configure standard library logging from the configuration

    Log records go to stderr so command output on stdout stays clean.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format=config.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _config_to_dict(config: RuntimeConfig) -> Dict[str, Any]:
    """Convert RuntimeConfig to dictionary"""
    return {f.name: getattr(config, f.name) for f in fields(config)}


def _config_from_dict(data: Dict[str, Any]) -> RuntimeConfig:
    """Create RuntimeConfig from dictionary"""
    known = {f.name for f in fields(RuntimeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {unknown}", {"keys": unknown})

    values = {}
    for key, value in data.items():
        try:
            values[key] = FIELD_CONVERTERS[key](value)
        except (ValueError, TypeError) as e:
            raise ConfigError(
                f"Invalid value for {key}: {value!r}. Error: {e}",
                {"key": key, "value": value},
            )

    return RuntimeConfig(**values)
