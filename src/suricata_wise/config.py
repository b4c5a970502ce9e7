"""
Configuration for the Suricata correlation source.

Settings come from one of two places:
1. The host pipeline (wise.ini [suricata] section) via config_from_host()
2. A YAML file for standalone runs via ConfigLoader (config/suricata.yaml)

Example YAML:

    suricata:
      evBox: http://localhost:5636
      fields: severity;signature;category
      mustHaveTags: escalated
      mustNotHaveTags: [archived, deleted]
      window_seconds: 90
      timeout_seconds: 5
      debug: 1

Environment overrides (highest priority): EVBOX_URL, SURICATA_FIELDS, SURICATA_DEBUG.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import yaml

from .errors import ConfigError
from .fields import split_setting
from .host import HostApi
from .query_builder import DEFAULT_WINDOW_SECONDS

logger = logging.getLogger(__name__)

SECTION = "suricata"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_REGION = "us-west-2"

# Keys read from the host / YAML section: (wise.ini name, snake_case alias)
_KEYS = {
    "evbox_url": ("evBox", "evbox_url"),
    "fields": ("fields", "fields"),
    "must_have_tags": ("mustHaveTags", "must_have_tags"),
    "must_not_have_tags": ("mustNotHaveTags", "must_not_have_tags"),
    "window_seconds": ("windowSeconds", "window_seconds"),
    "timeout_seconds": ("timeoutSeconds", "timeout_seconds"),
    "debug": ("debug", "debug"),
    "cloudwatch_namespace": ("cloudwatchNamespace", "cloudwatch_namespace"),
    "region": ("region", "region"),
}

_ENV_OVERRIDES = {
    "EVBOX_URL": "evBox",
    "SURICATA_FIELDS": "fields",
    "SURICATA_DEBUG": "debug",
}


@dataclass(frozen=True)
class SourceConfig:
    evbox_url: str
    fields: tuple[str, ...]
    must_have_tags: tuple[str, ...] = ()
    must_not_have_tags: tuple[str, ...] = ()
    window_seconds: int = DEFAULT_WINDOW_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    debug: int = 0
    cloudwatch_namespace: Optional[str] = None
    region: str = DEFAULT_REGION

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "SourceConfig":
        """
        Validate raw settings and build a SourceConfig.

        Field names are only split here; validation against the allowed set
        happens in fields.resolve_fields() at registration time.

        Raises:
            ConfigError: If evBox or fields is missing, or a numeric setting is invalid
        """
        values = {name: _lookup(settings, keys) for name, keys in _KEYS.items()}

        evbox_url = (values["evbox_url"] or "").strip()
        if not evbox_url:
            raise ConfigError(
                "No evebox host defined; in section [suricata] set evBox=http://localhost:5636"
            )

        fields = split_setting(values["fields"])
        if not fields:
            raise ConfigError(
                "No fields defined; in section [suricata] set fields=severity;signature;category;"
            )

        window_seconds = _as_number(values["window_seconds"], int, DEFAULT_WINDOW_SECONDS, "window_seconds")
        timeout_seconds = _as_number(values["timeout_seconds"], float, DEFAULT_TIMEOUT_SECONDS, "timeout_seconds")
        if window_seconds < 0:
            raise ConfigError(f"window_seconds must be >= 0, got {window_seconds}")
        if timeout_seconds <= 0:
            raise ConfigError(f"timeout_seconds must be > 0, got {timeout_seconds}")

        return cls(
            evbox_url=evbox_url.rstrip("/"),
            fields=tuple(fields),
            must_have_tags=tuple(split_setting(values["must_have_tags"])),
            must_not_have_tags=tuple(split_setting(values["must_not_have_tags"])),
            window_seconds=window_seconds,
            timeout_seconds=timeout_seconds,
            debug=_as_number(values["debug"], int, 0, "debug"),
            cloudwatch_namespace=values["cloudwatch_namespace"] or None,
            region=values["region"] or DEFAULT_REGION,
        )


class ConfigLoader:
    """
    Loads SourceConfig from a YAML file plus environment overrides.

    Usage:
        config = ConfigLoader("config/suricata.yaml").load()
    """

    DEFAULT_CONFIG_PATH = "config/suricata.yaml"

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH) -> None:
        self._config_path = config_path

    def load_settings(self) -> dict[str, Any]:
        """
        Read the [suricata] section of the YAML file and apply env overrides.

        A file without a "suricata" key is treated as the section itself.
        """
        with open(self._config_path) as f:
            document = yaml.safe_load(f) or {}
        if not isinstance(document, dict):
            raise ConfigError(f"{self._config_path}: expected a mapping at top level")

        section = document.get(SECTION, document)
        if not isinstance(section, dict):
            raise ConfigError(f"{self._config_path}: [{SECTION}] must be a mapping")

        settings = dict(section)
        for env_name, key in _ENV_OVERRIDES.items():
            value = os.getenv(env_name, "").strip()
            if value:
                logger.info("Config override from environment | %s=%s", env_name, value)
                settings[key] = value
        return settings

    def load(self) -> SourceConfig:
        return SourceConfig.from_mapping(self.load_settings())


def config_from_host(api: HostApi) -> SourceConfig:
    """Read the [suricata] section through the host pipeline's get_config()."""
    settings = {}
    for keys in _KEYS.values():
        value = api.get_config(SECTION, keys[0])
        if value is not None:
            settings[keys[0]] = value
    return SourceConfig.from_mapping(settings)


def _lookup(settings: Mapping[str, Any], keys: tuple[str, str]) -> Any:
    for key in keys:
        if settings.get(key) is not None:
            return settings[key]
    return None


def _as_number(value: Any, kind: type, default: Any, name: str) -> Any:
    if value is None or value == "":
        return default
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
