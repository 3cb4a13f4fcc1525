"""Default error messages and per-rule message resolution."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import get_settings

logger = logging.getLogger(__name__)

# Rule codes reported in ErrorDescriptor.code
REQUIRED = "required"
TYPE = "type"
MIN_LENGTH = "minLength"
MAX_LENGTH = "maxLength"
MIN = "min"
MAX = "max"
MIN_DATE = "minDate"
MAX_DATE = "maxDate"
PATTERN = "pattern"
FORMAT = "format"
OPTIONS = "options"
LITERAL = "literal"
CUSTOM = "custom"
TUPLE_LENGTH = "tupleLength"
UNION = "union"
RECORD = "record"

DEFAULT_MESSAGES: dict[str, str] = {
    REQUIRED: "This field is required.",
    TYPE: "Expected a valid {kind} value.",
    MIN_LENGTH: "Must be at least {minLength} characters.",
    MAX_LENGTH: "Must be at most {maxLength} characters.",
    MIN: "Must be at least {min}.",
    MAX: "Must be at most {max}.",
    MIN_DATE: "Must be on or after {minDate}.",
    MAX_DATE: "Must be on or before {maxDate}.",
    PATTERN: "Invalid format.",
    FORMAT: "Invalid {kind} format.",
    OPTIONS: "Please select a valid option.",
    LITERAL: "Must be exactly {literal}.",
    CUSTOM: "Invalid value.",
    TUPLE_LENGTH: "Must contain exactly {length} items.",
    UNION: "Value does not match any allowed type.",
    RECORD: "One or more entries are invalid.",
}

# Sequence-valued fields report item counts rather than characters
SEQUENCE_MESSAGES: dict[str, str] = {
    MIN_LENGTH: "Must contain at least {minLength} items.",
    MAX_LENGTH: "Must contain at most {maxLength} items.",
}


class _SafeParams(dict):
    """Leaves unknown placeholders untouched instead of raising KeyError."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render(template: str, params: Mapping[str, Any]) -> str:
    """Fill a message template with constraint parameters."""
    try:
        return template.format_map(_SafeParams(params))
    except (ValueError, IndexError) as e:
        logger.warning(f"Could not render message template {template!r}: {e}")
        return template


def default_message(code: str, params: Mapping[str, Any], sequence: bool = False) -> str:
    """Resolve the default message for a rule code.

    Configured overrides (see :mod:`dataknobs_forms.config`) take precedence
    over the built-in templates.
    """
    configured = get_settings().messages
    if code in configured:
        template = configured[code]
    elif sequence and code in SEQUENCE_MESSAGES:
        template = SEQUENCE_MESSAGES[code]
    else:
        template = DEFAULT_MESSAGES.get(code, DEFAULT_MESSAGES[CUSTOM])
    return render(template, params)
