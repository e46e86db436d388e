"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated YAML
configuration file (``~/.leadintel/config.yaml``). ``load_service_config``
assembles the validated ``AIServiceConfig`` tree the orchestrator is built from.

Keys use dotted paths (``rate_limits.requests_per_minute``). The matching
environment variable is upper-cased with dots replaced by underscores and a
``LEADINTEL_`` prefix (``LEADINTEL_RATE_LIMITS_REQUESTS_PER_MINUTE``).
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from leadintel.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".leadintel"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "LEADINTEL_"
SUPPORTED_PROVIDERS = ("openai", "groq", "offline")

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


# --- Typed configuration tree ---

@dataclass
class RateLimitSettings:
    requests_per_minute: int = 60
    tokens_per_minute: int = 50000
    window_seconds: float = 60.0


@dataclass
class CacheSettings:
    enabled: bool = True
    ttl: float = 300.0
    max_items: int = 500


@dataclass
class MonitoringSettings:
    enabled: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class RetrySettings:
    initial_backoff: float = 1.0
    backoff_factor: float = 2.0
    max_backoff: float = 30.0
    jitter: float = 0.1


@dataclass
class HealthSettings:
    degraded_error_rate: float = 0.1
    unhealthy_consecutive_failures: int = 3


@dataclass
class ProviderSettings:
    name: str = "openai"
    model: Optional[str] = None


@dataclass
class AIServiceConfig:
    """Complete configuration for one orchestrator instance."""
    max_retries: int = 3
    timeout: float = 30.0
    queue_on_rate_limit: bool = False
    rate_limits: RateLimitSettings = field(default_factory=RateLimitSettings)
    caching: CacheSettings = field(default_factory=CacheSettings)
    monitoring: MonitoringSettings = field(default_factory=MonitoringSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    health: HealthSettings = field(default_factory=HealthSettings)
    provider: ProviderSettings = field(default_factory=ProviderSettings)

    def validate(self) -> "AIServiceConfig":
        """Checks value ranges.

        Raises:
            ConfigurationError: On the first invalid value found.
        """
        checks = [
            (self.max_retries >= 0, "max_retries must be >= 0"),
            (self.timeout > 0, "timeout must be > 0"),
            (self.rate_limits.requests_per_minute >= 1, "rate_limits.requests_per_minute must be >= 1"),
            (self.rate_limits.tokens_per_minute >= 1, "rate_limits.tokens_per_minute must be >= 1"),
            (self.rate_limits.window_seconds > 0, "rate_limits.window_seconds must be > 0"),
            (self.caching.ttl > 0, "caching.ttl must be > 0"),
            (self.caching.max_items >= 1, "caching.max_items must be >= 1"),
            (
                isinstance(logging.getLevelName(self.monitoring.log_level.upper()), int),
                f"monitoring.log_level is not a logging level: {self.monitoring.log_level!r}",
            ),
            (self.retry.initial_backoff >= 0, "retry.initial_backoff must be >= 0"),
            (self.retry.backoff_factor >= 1, "retry.backoff_factor must be >= 1"),
            (self.retry.max_backoff >= self.retry.initial_backoff, "retry.max_backoff must be >= retry.initial_backoff"),
            (self.retry.jitter >= 0, "retry.jitter must be >= 0"),
            (0 < self.health.degraded_error_rate <= 1, "health.degraded_error_rate must be in (0, 1]"),
            (self.health.unhealthy_consecutive_failures >= 1, "health.unhealthy_consecutive_failures must be >= 1"),
            (self.provider.name in SUPPORTED_PROVIDERS, f"provider.name must be one of {SUPPORTED_PROVIDERS}"),
        ]
        for ok, message in checks:
            if not ok:
                raise ConfigurationError(message)
        return self


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from the YAML file and the .env file.

    Priority order (highest to lowest):
    1. Test overrides (``set_config_for_testing``)
    2. Environment Variables
    3. .env file (does not override variables already set)
    4. YAML configuration file
    5. Dataclass defaults

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def env_var_name(key: str) -> str:
    """Environment variable consulted for a dotted configuration key."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def _parse_env_value(value: str) -> Any:
    """Converts common scalar spellings found in environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _lookup_nested(data: Dict[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """Gets a configuration value by dotted key.

    Args:
        key: The configuration key, e.g. ``caching.ttl``. Upper-case keys such
            as ``OPENAI_API_KEY`` are also looked up verbatim in the environment.
        default: Value returned if the key is not found anywhere.

    Returns:
        The configuration value.
    """
    if key in _test_config:
        return _test_config[key]

    if not _loaded:
        load_configuration()

    env_names = [env_var_name(key)]
    if key.isupper():
        env_names.append(key)
    for env_name in env_names:
        if env_name in os.environ:
            return _parse_env_value(os.environ[env_name])

    value = _lookup_nested(_config, key)
    if value is not None:
        return value

    return default


def _coerce(key: str, value: Any, target: Any) -> Any:
    """Converts a raw configuration value to the type of a dataclass field."""
    if value is None:
        return None
    try:
        if target is bool:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("1", "true", "yes", "on"):
                    return True
                if lowered in ("0", "false", "no", "off"):
                    return False
                raise ValueError(value)
            return bool(value)
        if target is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if target is float:
            return float(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e


def _build_section(cls: Any, prefix: str) -> Any:
    values = {}
    for f in dataclasses.fields(cls):
        key = f"{prefix}{f.name}"
        if f.default_factory is not dataclasses.MISSING and dataclasses.is_dataclass(f.default_factory):
            values[f.name] = _build_section(f.default_factory, f"{key}.")
            continue
        raw = get_config(key)
        if raw is not None:
            values[f.name] = _coerce(key, raw, f.type)
    return cls(**values)


def load_service_config() -> AIServiceConfig:
    """Builds and validates the service configuration from all sources.

    Raises:
        ConfigurationError: If a value cannot be converted or is out of range.
    """
    config = _build_section(AIServiceConfig, "")
    logger.debug(f"Service configuration loaded: {config}")
    return config.validate()


# --- Convenience Functions ---

def get_openai_api_key() -> Optional[str]:
    """Convenience function to get the OpenAI API key."""
    key = get_config("OPENAI_API_KEY") or get_config("openai.api_key")
    return str(key) if key else None


def get_groq_api_key() -> Optional[str]:
    """Convenience function to get the Groq API key."""
    key = get_config("GROQ_API_KEY") or get_config("groq.api_key")
    return str(key) if key else None


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Sets configuration values for testing purposes.

    These values override every other source until ``clear_test_config``.

    Args:
        config_dict: Mapping of dotted keys to values.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clears all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
