"""
Configuration loading for the flash arbitrage scanner.

Reads a YAML file, applies environment overrides (``.env`` supported via
python-dotenv) and validates the result into an immutable BotConfig.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from .config_schema import BotConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable -> (section, key); section None means top level
ENV_OVERRIDES = {
    "BSC_RPC_URL": ("rpc", "primary_url"),
    "BACKUP_RPC_URLS": ("rpc", "backup_urls"),
    "RPC_TIMEOUT": ("rpc", "timeout_seconds"),
    "RPC_RETRY_COUNT": ("rpc", "retry_count"),
    "FLASH_ARBITRAGE_ADDRESS": (None, "flash_arbitrage_address"),
    "MIN_PROFIT_PERCENTAGE": ("profit", "min_profit_percentage"),
    "MAX_GAS_PRICE_GWEI": ("profit", "max_gas_price_gwei"),
    "GAS_LIMIT": ("profit", "gas_limit"),
    "EXECUTION_ENABLED": (None, "execution_enabled"),
    "LOG_LEVEL": (None, "log_level"),
}


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Top level of {config_path} must be a mapping")
    return config_dict


def _parse_env_value(key: str, raw: str) -> Any:
    if key == "backup_urls":
        return [url.strip() for url in raw.split(",") if url.strip()]
    if key == "execution_enabled":
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return raw.strip()


def apply_env_overrides(
    config_dict: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Overlay environment variables on a raw config dict.

    Empty variables are ignored so a blank line in ``.env`` never wipes a
    value from the YAML file.
    """
    environ = os.environ if environ is None else environ
    merged = dict(config_dict)
    for env_name, (section, key) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or not raw.strip():
            continue
        value = _parse_env_value(key, raw)
        if section is None:
            merged[key] = value
        else:
            merged[section] = dict(merged.get(section) or {})
            merged[section][key] = value
        logger.debug(f"Config override from {env_name}")
    return merged


def build_config(config_dict: Dict[str, Any]) -> BotConfig:
    """Validate a raw config dict, wrapping schema errors."""
    try:
        return BotConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)\n{e}",
            details={"errors": e.errors(include_url=False)},
        ) from e


def load_config(
    config_path: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> BotConfig:
    """
    Load the scanner configuration.

    Args:
        config_path: Path to the YAML configuration file
        environ: Environment mapping (defaults to os.environ)
        use_dotenv: Load a ``.env`` file into the process environment first

    Returns:
        Validated BotConfig

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    if use_dotenv and environ is None:
        load_dotenv()
    config_dict = apply_env_overrides(load_yaml_config(config_path), environ)
    config = build_config(config_dict)
    logger.info(
        f"Loaded {len(config.triples)} token triples from {config_path} "
        f"({len(config.rpc.urls)} RPC endpoints)"
    )
    return config
