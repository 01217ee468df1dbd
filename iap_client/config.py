"""Configuration management - builds validated PurchaseSettings.

Settings are plain values threaded through the purchase flow. They come from
defaults merged with overrides (configure) or from a YAML file (load_settings).
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from iap_client.errors import ConfigurationError
from iap_client.logging_config import get_logger
from iap_client.models import PollConfig, PurchaseSettings

logger = get_logger(__name__)


def _field_name_for(key: str) -> Optional[str]:
    """Resolve a setting key or its camelCase alias to the field name."""
    if key in PurchaseSettings.model_fields:
        return key
    for name, field in PurchaseSettings.model_fields.items():
        if field.alias == key:
            return name
    return None


def configure(base: Optional[PurchaseSettings] = None, **overrides: Any) -> PurchaseSettings:
    """Merge overrides over base settings (or the defaults).

    The base is left untouched; a new validated PurchaseSettings is returned.

    Args:
        base: Settings to start from. Defaults to PurchaseSettings().
        **overrides: Setting values by field name or camelCase alias

    Returns:
        New PurchaseSettings

    Raises:
        ConfigurationError: If a key is unknown (code INCORRECT_USAGE) or a
            value fails validation
    """
    base = base if base is not None else PurchaseSettings()
    values = {name: getattr(base, name) for name in PurchaseSettings.model_fields}

    for key, value in overrides.items():
        name = _field_name_for(key)
        if name is None:
            logger.error("unknown_setting", key=key)
            raise ConfigurationError(
                f"configure() received an unknown setting: {key}", code="INCORRECT_USAGE"
            )
        values[name] = value

    try:
        return PurchaseSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Settings validation failed:\n{e}")


def resolve_poll_config(settings: PurchaseSettings, options: Any = None) -> PollConfig:
    """Build polling options from per-purchase options over settings defaults.

    Args:
        settings: Settings providing default max_tries and poll_interval_ms
        options: None, a PollConfig, or a mapping with max_tries/maxTries and
            poll_interval_ms/pollIntervalMs

    Returns:
        PollConfig

    Raises:
        ConfigurationError: On unknown option keys or invalid values
    """
    if options is None:
        return settings.default_poll_config
    if isinstance(options, PollConfig):
        return options
    if not isinstance(options, dict):
        raise ConfigurationError(
            f"purchase options must be a mapping, got {type(options).__name__}",
            code="INCORRECT_USAGE",
        )

    values = settings.default_poll_config.model_dump()
    for key, value in options.items():
        field = next(
            (name for name, f in PollConfig.model_fields.items() if key in (name, f.alias)),
            None,
        )
        if field is None:
            raise ConfigurationError(
                f"purchase() received an unknown option: {key}", code="INCORRECT_USAGE"
            )
        values[field] = value

    try:
        return PollConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Purchase options validation failed:\n{e}")


def resolve_settings_path(config_path: Optional[str] = None) -> Path:
    """Resolve settings file path from argument, env var, or default."""
    if config_path:
        return Path(config_path)

    env_path = os.getenv("IAP_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    return Path("config/settings.yaml")


def load_settings(
    config_path: Optional[str] = None, base: Optional[PurchaseSettings] = None, **overrides: Any
) -> PurchaseSettings:
    """Load settings from a YAML file.

    Collaborator objects (local_storage, app_self, pay_platform) cannot live in
    YAML; pass them as overrides.

    Args:
        config_path: Path to the YAML file. If not provided, uses the
            IAP_CONFIG_PATH env var or defaults to ./config/settings.yaml
        base: Settings to merge the file over
        **overrides: Values applied after the file

    Returns:
        PurchaseSettings

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = resolve_settings_path(config_path)
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}\n"
            f"Please create config/settings.yaml or set IAP_CONFIG_PATH environment variable"
        )

    try:
        with open(path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML configuration: {e}")

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Configuration file must hold a mapping: {path}")

    settings = configure(base, **{**raw_config, **overrides})
    logger.info("settings_loaded", path=str(path), fake_products=settings.fake_products)
    return settings
