"""Regex pattern catalog and builder.

Named, parameterized generators for the regular expressions form fields
commonly need (phone numbers, postal codes, emails, colors, ...).

Every generated pattern is anchored for full-string matching unless a
fragment is explicitly requested, so it can be dropped straight into a
field's ``pattern`` attribute:

    ```python
    from dataknobs_forms import build_regex

    zip_pattern = build_regex({"type": "zip", "country": "IN"})
    zip_pattern.source          # '^(?:[1-9]\\d{5})$'
    zip_pattern.fullmatch("560001")   # True

    schema = {"zip": {"type": "string", "pattern": zip_pattern.source}}
    ```
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Any

from .exceptions import PatternError

logger = logging.getLogger(__name__)

_FLAG_BITS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


@dataclass(frozen=True)
class RegexPattern:
    """A regular expression with a serializable textual source.

    Attributes:
        source: Regex text (anchored unless built as a fragment)
        flags: Flag letters, any of ``i`` (ignore case), ``m``, ``s``
    """

    source: str
    flags: str = ""

    def __post_init__(self) -> None:
        unknown = set(self.flags) - set(_FLAG_BITS)
        if unknown:
            raise PatternError(f"Unsupported regex flags: {''.join(sorted(unknown))}")
        # Compile eagerly so a bad pattern fails where it is declared
        _ = self.compiled

    @cached_property
    def compiled(self) -> re.Pattern[str]:
        bits = 0
        for flag in self.flags:
            bits |= _FLAG_BITS[flag]
        try:
            return re.compile(self.source, bits)
        except re.error as e:
            raise PatternError(f"Invalid regex '{self.source}': {e}") from e

    def fullmatch(self, value: Any) -> bool:
        """Check that the whole of ``value`` matches this pattern."""
        if not isinstance(value, str):
            return False
        return self.compiled.fullmatch(value) is not None

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "flags": self.flags}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RegexPattern:
        return cls(source=data["source"], flags=data.get("flags", ""))

    @classmethod
    def coerce(cls, value: RegexPattern | re.Pattern[str] | str | Mapping[str, Any]) -> RegexPattern:
        """Build a RegexPattern from any of the accepted pattern spellings."""
        if isinstance(value, RegexPattern):
            return value
        if isinstance(value, re.Pattern):
            flags = "".join(
                letter for letter, bit in _FLAG_BITS.items() if value.flags & bit
            )
            return cls(value.pattern, flags)
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise PatternError(f"Cannot use {type(value).__name__} as a regex pattern")

    def __str__(self) -> str:
        return self.source


# Registry of generators: normalized name -> callable(**params) -> regex body
_GENERATORS: dict[str, Callable[..., str]] = {}

# Read-only view of the catalog, usable as field `format` names
FORMATS: Mapping[str, Callable[..., str]] = MappingProxyType(_GENERATORS)


def _normalize_name(name: str) -> str:
    return re.sub(r"[-_\s]", "", name).lower()


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def register_generator(*names: str) -> Callable[[Callable[..., str]], Callable[..., str]]:
    """Decorator registering a pattern generator under one or more names.

    The generator receives the builder parameters as keyword arguments and
    returns the unanchored regex body.
    """
    def decorator(fn: Callable[..., str]) -> Callable[..., str]:
        for name in names:
            _GENERATORS[_normalize_name(name)] = fn
        _build.cache_clear()
        return fn
    return decorator


def register_format(name: str, generator: Callable[..., str]) -> Callable[..., str]:
    """Add a named format without the decorator syntax."""
    return register_generator(name)(generator)


def available_generators() -> list[str]:
    """Names of all registered generators (normalized)."""
    return sorted(_GENERATORS)


def has_generator(name: str) -> bool:
    return _normalize_name(name) in _GENERATORS


def build_regex(config: Mapping[str, Any] | str | None = None, **params: Any) -> RegexPattern:
    """Build a pattern from a named generator.

    Args:
        config: Mapping with a ``type`` key naming the generator plus its
            parameters, or just the generator name
        **params: Extra generator parameters (merged over ``config``)

    Returns:
        RegexPattern anchored for full-string matching, or the bare body when
        ``fragment=True`` is given

    Raises:
        PatternError: If the generator is unknown or a parameter is invalid
    """
    if isinstance(config, str):
        merged: dict[str, Any] = {"type": config}
    else:
        merged = dict(config or {})
    merged.update(params)

    kind = merged.pop("type", None)
    if not kind or not isinstance(kind, str):
        raise PatternError("Pattern config requires a 'type'", attribute="type")
    fragment = bool(merged.pop("fragment", False))
    flags = merged.pop("flags", "")

    normalized = tuple(sorted(
        (_snake_case(key), tuple(value) if isinstance(value, list) else value)
        for key, value in merged.items()
    ))
    return _build(_normalize_name(kind), normalized, fragment, flags)


@functools.lru_cache(maxsize=256)
def _build(name: str, params: tuple[tuple[str, Any], ...], fragment: bool, flags: str) -> RegexPattern:
    generator = _GENERATORS.get(name)
    if generator is None:
        raise PatternError(f"Unknown pattern generator '{name}'", attribute="type")
    try:
        body = generator(**dict(params))
    except TypeError as e:
        raise PatternError(f"Invalid parameters for pattern '{name}': {e}") from e

    source = body if fragment else f"^(?:{body})$"
    logger.debug(f"Built pattern '{name}' {dict(params)}: {source}")
    return RegexPattern(source, flags)


def _choose(name: str, option: str, table: Mapping[str, str]) -> str:
    key = str(option).upper() if option is not None else ""
    if key not in table:
        raise PatternError(
            f"Unsupported {name} option '{option}', expected one of: {', '.join(table)}"
        )
    return table[key]


_PHONE = {
    "INTERNATIONAL": r"\+?\d{1,3}[-.\s]?\(?\d{1,4}\)?(?:[-.\s]?\d{2,4}){1,4}",
    "US": r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}",
    "IN": r"(?:\+?91[-\s]?)?[6-9]\d{9}",
    "GB": r"(?:\+44\s?7\d{3}|07\d{3})\s?\d{3}\s?\d{3}",
}

_POSTAL = {
    "US": r"\d{5}(?:-\d{4})?",
    "US+4": r"\d{5}-\d{4}",
    "IN": r"[1-9]\d{5}",
    "CA": r"[A-Za-z]\d[A-Za-z][ -]?\d[A-Za-z]\d",
    "GB": r"[A-Za-z]{1,2}\d[A-Za-z\d]?\s?\d[A-Za-z]{2}",
    "DE": r"\d{5}",
    "ANY": r"\d{5}|\d{6}",
}

_HEX = "[0-9a-fA-F]"

_CARDS = {
    "VISA": r"4\d{12}(?:\d{3})?",
    "MASTERCARD": r"(?:5[1-5]\d{2}|2[2-7]\d{2})\d{12}",
    "AMEX": r"3[47]\d{13}",
}

_HANDLES = {
    "TWITTER": r"@?[A-Za-z0-9_]{1,15}",
    "INSTAGRAM": r"@?[A-Za-z0-9._]{1,30}",
    "GITHUB": r"@?[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}",
}

_OCTET = r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)"


@register_generator("phone", "tel")
def _phone(country: str = "international") -> str:
    return _choose("phone country", country, _PHONE)


@register_generator("zip", "postal", "postalCode")
def _postal(country: str = "US") -> str:
    return _choose("postal country", country, _POSTAL)


@register_generator("email")
def _email() -> str:
    return r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)+"


@register_generator("url")
def _url(protocols: tuple[str, ...] = ("http", "https"), require_protocol: bool = True) -> str:
    if isinstance(protocols, str):
        protocols = (protocols,)
    if not protocols:
        raise PatternError("url pattern needs at least one protocol")
    scheme = "(?:" + "|".join(re.escape(p) for p in protocols) + ")://"
    if not require_protocol:
        scheme = f"(?:{scheme})?"
    return (
        scheme
        + r"(?:localhost|(?:[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,})"
        + r"(?::\d{1,5})?(?:[/?#]\S*)?"
    )


@register_generator("uuid")
def _uuid(version: int | None = None) -> str:
    if version is None:
        return f"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
    if version not in (1, 2, 3, 4, 5):
        raise PatternError(f"Unsupported uuid version: {version}")
    return f"{_HEX}{{8}}-{_HEX}{{4}}-{version}{_HEX}{{3}}-[89abAB]{_HEX}{{3}}-{_HEX}{{12}}"


@register_generator("color", "hexColor")
def _color(format: str = "hex", alpha: bool = False) -> str:
    fmt = str(format).lower()
    if fmt == "hex":
        lengths = "3|6|4|8" if alpha else "3|6"
        return "#(?:" + "|".join(f"{_HEX}{{{n}}}" for n in lengths.split("|")) + ")"
    if fmt == "rgb":
        channel = r"\s*(?:25[0-5]|2[0-4]\d|1?\d?\d)\s*"
        if alpha:
            return rf"rgba\({channel},{channel},{channel},\s*(?:0|1|0?\.\d+)\s*\)"
        return rf"rgb\({channel},{channel},{channel}\)"
    if fmt == "hsl":
        body = r"\s*\d{1,3}\s*,\s*\d{1,3}%\s*,\s*\d{1,3}%\s*"
        if alpha:
            return rf"hsla\({body},\s*(?:0|1|0?\.\d+)\s*\)"
        return rf"hsl\({body}\)"
    raise PatternError(f"Unsupported color format '{format}', expected hex, rgb or hsl")


@register_generator("countryCode")
def _country_code(format: str = "alpha2") -> str:
    return _choose("country code format", format, {"ALPHA2": "[A-Z]{2}", "ALPHA3": "[A-Z]{3}"})


@register_generator("semver", "semanticVersion")
def _semver() -> str:
    core = r"(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
    ident = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
    return rf"v?{core}(?:-{ident})?(?:\+{ident})?"


@register_generator("socialHandle", "handle")
def _social_handle(platform: str = "twitter") -> str:
    return _choose("social platform", platform, _HANDLES)


@register_generator("creditCard")
def _credit_card(brand: str = "any") -> str:
    if str(brand).upper() == "ANY":
        return "|".join(_CARDS.values())
    return _choose("card brand", brand, _CARDS)


@register_generator("alpha")
def _alpha() -> str:
    return "[A-Za-z]+"


@register_generator("alphaSpace")
def _alpha_space() -> str:
    return r"[A-Za-z\s]+"


@register_generator("alphanumeric")
def _alphanumeric() -> str:
    return "[A-Za-z0-9]+"


@register_generator("slug")
def _slug() -> str:
    return "[a-z0-9]+(?:-[a-z0-9]+)*"


@register_generator("ipv4")
def _ipv4() -> str:
    return rf"(?:{_OCTET}\.){{3}}{_OCTET}"


@register_generator("time")
def _time(seconds: bool | None = None) -> str:
    hm = r"(?:[01]\d|2[0-3]):[0-5]\d"
    if seconds is None:
        return rf"{hm}(?::[0-5]\d)?"
    return rf"{hm}:[0-5]\d" if seconds else hm


@register_generator("isoDate")
def _iso_date() -> str:
    return r"\d{4}-(?:0[1-9]|1[0-2])-(?:0[1-9]|[12]\d|3[01])"


@register_generator("strongPassword")
def _strong_password(min_length: int = 8) -> str:
    if not isinstance(min_length, int) or min_length < 1:
        raise PatternError(f"strongPassword min_length must be a positive int, got {min_length!r}")
    return rf"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{{{min_length},}}"
