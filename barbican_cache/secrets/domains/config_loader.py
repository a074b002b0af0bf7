"""Configuration loader for barbican-cache."""
import copy
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "BARBICAN_CACHE_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "barbican-cache" / "config.yml"
DOTENV_PATH = Path(".env")
REDIS_SCHEMES = ("redis://", "rediss://", "unix://")

DEFAULTS: Dict[str, Any] = {
    "barbican": {"url": None, "timeout": 10.0},
    "keystone": {
        "auth_url": None,
        "application_credential_id": None,
        "application_credential_secret": None,
    },
    "redis": {"url": "redis://localhost:6379/0"},
    "cache": {"container_capacity": 1000},
    "server": {"host": "0.0.0.0", "port": 3000},
}

# Environment variable -> (section, key). Environment always wins over the file.
ENV_OVERRIDES = {
    "BARBICAN_URL": ("barbican", "url"),
    "OS_AUTH_URL": ("keystone", "auth_url"),
    "OS_APPLICATION_CREDENTIAL_CLIENT_ID": ("keystone", "application_credential_id"),
    "OS_APPLICATION_CREDENTIAL_CLIENT_SECRET": ("keystone", "application_credential_secret"),
    "KV_URL": ("redis", "url"),
}

REQUIRED = [
    ("barbican", "url"),
    ("keystone", "auth_url"),
    ("keystone", "application_credential_id"),
    ("keystone", "application_credential_secret"),
    ("redis", "url"),
]


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def get_config_path() -> Tuple[Path, str]:
    """
    Resolve the config file location.

    Priority order:
    1. BARBICAN_CACHE_CONFIG environment variable
    2. Default location: ~/.config/barbican-cache/config.yml

    Returns:
        (path, source) where source is "env" or "default". The path may not exist.
    """
    env_path = os.getenv(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path), "env"
    return DEFAULT_CONFIG_PATH, "default"


def _read_file(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")
    return data


def _merge(config: Dict[str, Any], data: Dict[str, Any], config_path: Path) -> None:
    for section, values in data.items():
        if not isinstance(values, dict):
            raise ConfigError(f"Section '{section}' in {config_path} must be a mapping")
        config.setdefault(section, {}).update(values)


def _redis_url(value: str) -> str:
    """Accept a bare host:port address as well as a redis:// URL."""
    if "://" not in value:
        return f"redis://{value}"
    if not value.startswith(REDIS_SCHEMES):
        raise ConfigError(
            f"Invalid 'redis.url': {value}\n"
            f"Use host:port or a URL starting with one of: {', '.join(REDIS_SCHEMES)}"
        )
    return value


def load_config(config_path: Optional[Path] = None, dotenv_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load and validate configuration.

    Values come from the defaults, then the YAML file (if present), then the
    environment overrides listed in ENV_OVERRIDES. A .env file is read into the
    environment first; variables already set in the process are not replaced.

    Args:
        config_path: Explicit file to read; resolved with get_config_path() if omitted
        dotenv_path: .env file to read; defaults to .env in the working directory

    Returns:
        Dict with sections barbican, keystone, redis, cache and server

    Raises:
        ConfigError: If the file is unreadable or a required value is missing
    """
    dotenv_file = dotenv_path or DOTENV_PATH
    if load_dotenv(dotenv_file, override=False):
        logger.info(f"Loaded environment from {dotenv_file}")

    if config_path is None:
        config_path, source = get_config_path()
        if source == "env" and not config_path.exists():
            raise ConfigError(
                f"Configuration file not found at: {config_path}\n"
                f"Unset {CONFIG_PATH_ENV} or point it to an existing file."
            )

    config = copy.deepcopy(DEFAULTS)

    if config_path.exists():
        _merge(config, _read_file(config_path), config_path)
        logger.info(f"Configuration loaded from {config_path}")
    else:
        logger.debug(f"No config file at {config_path}, using environment only")

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[section][key] = value
            logger.debug(f"Using {env_name} from environment for {section}.{key}")

    for section, key in REQUIRED:
        if not config[section].get(key):
            env_names = [name for name, target in ENV_OVERRIDES.items() if target == (section, key)]
            hint = f" or set {env_names[0]}" if env_names else ""
            raise ConfigError(f"Missing '{section}.{key}' in config{hint}")

    config["redis"]["url"] = _redis_url(str(config["redis"]["url"]))

    try:
        capacity = int(config["cache"]["container_capacity"])
        port = int(config["server"]["port"])
        timeout = float(config["barbican"]["timeout"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric value in config: {e}")
    if capacity < 1:
        raise ConfigError(f"'cache.container_capacity' must be >= 1, got {capacity}")
    config["cache"]["container_capacity"] = capacity
    config["server"]["port"] = port
    config["barbican"]["timeout"] = timeout

    return config


def masked(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``config`` safe for display."""
    shown = copy.deepcopy(config)
    if shown.get("keystone", {}).get("application_credential_secret"):
        shown["keystone"]["application_credential_secret"] = "****"
    return shown
