"""Settings and schema description loading.

Files are read with ``dataknobs_config``, so a description or settings file
may ``extends`` a base file in the same directory. Settings are held in a
``dataknobs_config.Config`` under the ``forms`` type with the name
``default``, which lets the standard ``DATAKNOBS_`` environment overrides
apply. Environment variable format::

    DATAKNOBS_FORMS__DEFAULT__<ATTRIBUTE>
    DATAKNOBS_FORMS__DEFAULT__MESSAGES__<RULE_CODE>

Examples:
    - ``DATAKNOBS_FORMS__DEFAULT__LOG_LEVEL=DEBUG``
    - ``DATAKNOBS_FORMS__DEFAULT__DATE_FORMATS="%d.%m.%Y,%Y%m%d"``
    - ``DATAKNOBS_FORMS__DEFAULT__MESSAGES__REQUIRED="Please fill in this field."``

Settings take effect once installed with :func:`configure`.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

from dataknobs_common import DataknobsError
from dataknobs_config import Config, InheritanceError, load_config_with_inheritance

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_TYPE = "forms"
SETTINGS_NAME = "default"
ENV_PREFIX = f"DATAKNOBS_{SETTINGS_TYPE.upper()}__{SETTINGS_NAME.upper()}__"

# Keys a message override arrives under from the environment
_MESSAGE_PREFIX = "messages__"

_SETTINGS_KEYS = frozenset({"messages", "date_formats", "datetime_formats", "log_level"})

DEFAULT_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m/%d/%Y",
)

DEFAULT_DATETIME_FORMATS = (
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)


def load_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML or JSON mapping from a file.

    The file may name a base file with ``extends``; the two are deep merged
    with this file winning. ``${VAR}`` references are left as written, since
    regex patterns use the same characters.

    Args:
        path: Path to a ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        The parsed mapping

    Raises:
        ConfigError: If the file is missing, unsupported, unparsable or not
            a mapping
    """
    path = Path(path)
    if path.suffix.lower() not in (".yaml", ".yml", ".json"):
        raise ConfigError(f"Unsupported file format: {path.suffix}", context={"path": str(path)})
    try:
        return load_config_with_inheritance(path, substitute_vars=False)
    except InheritanceError as e:
        raise ConfigError(str(e), context={"path": str(path)}) from e


def load_description(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a schema description (``{"fields": {...}}`` or a bare field map)."""
    data = load_file(path)
    logger.debug(f"Loaded schema description from {path}")
    return data


def _env_code(name: str) -> str:
    """Map a lower-case env segment to a rule code (``min_length`` -> ``minLength``)."""
    head, *rest = name.lower().split("_")
    return head + "".join(part.capitalize() for part in rest)


def _format_list(value: Any) -> tuple[str, ...]:
    # Environment overrides arrive as one comma-separated string
    if isinstance(value, str):
        return tuple(f.strip() for f in value.split(",") if f.strip())
    return tuple(value)


@dataclass
class FormsSettings:
    """Process-wide defaults for validation.

    Attributes:
        messages: Overrides of the default message template per rule code
        date_formats: ``strptime`` formats tried when parsing ``date`` fields
        datetime_formats: ``strptime`` formats tried when parsing ``datetime``
            fields (after ISO 8601)
        log_level: Level applied to the ``dataknobs_forms`` logger when the
            settings are installed
    """

    messages: Dict[str, str] = field(default_factory=dict)
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    datetime_formats: tuple[str, ...] = DEFAULT_DATETIME_FORMATS
    log_level: str | None = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FormsSettings:
        """Build settings from a mapping.

        ``messages__<rule_code>`` keys, as produced by environment overrides,
        are folded into ``messages``.
        """
        data = dict(data)
        folded = {
            _env_code(key[len(_MESSAGE_PREFIX):]): data.pop(key)
            for key in list(data)
            if key.startswith(_MESSAGE_PREFIX)
        }
        unknown = set(data) - _SETTINGS_KEYS
        if unknown:
            raise ConfigError(
                f"Unknown settings: {', '.join(sorted(unknown))}",
                context={"unknown": sorted(unknown)},
            )
        settings = cls()
        messages = dict(data.get("messages") or {})
        messages.update(folded)
        settings.messages = {str(k): str(v) for k, v in messages.items()}
        if "date_formats" in data:
            settings.date_formats = _format_list(data["date_formats"])
        if "datetime_formats" in data:
            settings.datetime_formats = _format_list(data["datetime_formats"])
        if data.get("log_level") is not None:
            settings.log_level = str(data["log_level"]).upper()
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messages": dict(self.messages),
            "date_formats": list(self.date_formats),
            "datetime_formats": list(self.datetime_formats),
            "log_level": self.log_level,
        }

    @classmethod
    def load(cls, path: Union[str, Path, None] = None, use_env: bool = True) -> FormsSettings:
        """Load settings from an optional file, then apply environment overrides.

        A ``forms`` section is used when present, otherwise the whole file is
        treated as the settings mapping. The result is not installed; pass it
        to :func:`configure` (or call ``configure(path)``).
        """
        data: Dict[str, Any] = {}
        if path is not None:
            raw = load_file(path)
            section = raw.get(SETTINGS_TYPE, raw)
            if not isinstance(section, dict):
                raise ConfigError(
                    f"Expected a '{SETTINGS_TYPE}' mapping in {path}", context={"path": str(path)}
                )
            data = copy.deepcopy(section)

        try:
            config = Config({SETTINGS_TYPE: {**data, "name": SETTINGS_NAME}}, use_env=use_env)
            merged = config.get(SETTINGS_TYPE, SETTINGS_NAME)
        except DataknobsError as e:
            raise ConfigError(f"Invalid forms settings: {e}") from e
        merged.pop("type", None)
        merged.pop("name", None)

        for key in set(merged) - set(data) - _SETTINGS_KEYS:
            if not key.startswith(_MESSAGE_PREFIX):
                logger.warning(f"Ignoring unknown environment override {ENV_PREFIX}{key.upper()}")
                merged.pop(key)
        return cls.from_dict(merged)


_settings = FormsSettings()


def get_settings() -> FormsSettings:
    """Return the process-wide settings."""
    return _settings


def configure(
    settings: FormsSettings | Dict[str, Any] | str | Path | None = None,
    **overrides: Any,
) -> FormsSettings:
    """Install process-wide settings.

    Args:
        settings: A FormsSettings, a settings mapping, a settings file path
            (loaded with environment overrides), or None for defaults
        **overrides: Individual attributes applied on top

    Returns:
        The installed settings
    """
    global _settings

    if settings is None:
        new_settings = FormsSettings()
    elif isinstance(settings, FormsSettings):
        new_settings = copy.deepcopy(settings)
    elif isinstance(settings, (str, Path)):
        new_settings = FormsSettings.load(settings)
    else:
        new_settings = FormsSettings.from_dict(dict(settings))

    if overrides:
        merged = new_settings.to_dict()
        merged.update(overrides)
        new_settings = FormsSettings.from_dict(merged)

    if new_settings.log_level:
        logging.getLogger("dataknobs_forms").setLevel(new_settings.log_level)
        logger.debug(f"Set dataknobs_forms log level to {new_settings.log_level}")

    _settings = new_settings
    return _settings
