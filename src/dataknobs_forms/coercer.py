"""Type coercion with predictable, consistent behavior.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

from .config import get_settings
from .kinds import FieldKind

_INT_RE = re.compile(r"[+-]?\d+")
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_TRUE_STRINGS = ("true", "1", "yes", "y", "on")
_FALSE_STRINGS = ("false", "0", "no", "n", "off")


@dataclass
class CoercionResult:
    """Outcome of a coercion attempt.

    Attributes:
        valid: Whether the value could be converted
        value: The converted value, or the input when conversion failed
        reason: Why conversion failed (for logging, not for end users)
    """

    valid: bool
    value: Any
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.valid


class Coercer:
    """Converts sanitized input to a field kind's target type.

    Always returns a CoercionResult, never raises.
    """

    def coerce(self, value: Any, kind: FieldKind) -> CoercionResult:
        """Coerce a value to the target type of ``kind``.

        Args:
            value: Sanitized input value (never None; absence is handled
                by the required check)
            kind: Target field kind

        Returns:
            CoercionResult with the converted value or the failure reason
        """
        try:
            if kind.is_numeric:
                return CoercionResult(True, self._to_number(value, as_float=kind is FieldKind.FLOAT))
            if kind.is_boolean:
                return CoercionResult(True, self._to_bool(value))
            if kind is FieldKind.DATE:
                return CoercionResult(True, self.to_date(value))
            if kind is FieldKind.DATETIME:
                return CoercionResult(True, self.to_datetime(value))
            if kind.is_textual:
                if not isinstance(value, str):
                    raise TypeError(f"expected text, got {type(value).__name__}")
                return CoercionResult(True, value)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            return CoercionResult(False, value, f"Cannot coerce {type(value).__name__} to {kind.value}: {e!s}")

        # Choice, literal and custom kinds compare raw values
        return CoercionResult(True, value)

    def _to_number(self, value: Any, as_float: bool) -> int | float:
        if isinstance(value, bool):
            raise TypeError("booleans are not numbers")
        if isinstance(value, (int, float)):
            number: int | float = value
        elif isinstance(value, str):
            text = value.strip()
            if _INT_RE.fullmatch(text):
                number = int(text)
            elif _DECIMAL_RE.fullmatch(text):
                number = float(text)
            else:
                raise ValueError(f"'{value}' is not a number")
        else:
            raise TypeError(f"unsupported type {type(value).__name__}")

        if isinstance(number, float) and not math.isfinite(number):
            raise ValueError(f"{number} is not a finite number")
        return float(number) if as_float else number

    def _to_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(f"String '{value}' is not a valid boolean")
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise TypeError(f"unsupported type {type(value).__name__}")

    def to_date(self, value: Any) -> date:
        """Parse a calendar date."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise TypeError(f"unsupported type {type(value).__name__}")

        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        for fmt in get_settings().date_formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        # Full timestamps are accepted and truncated to their date
        return self.to_datetime(text).date()

    def to_datetime(self, value: Any) -> datetime:
        """Parse a date and time."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, bool):
            raise TypeError("booleans are not timestamps")
        if isinstance(value, (int, float)):
            # Unix timestamp
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if not isinstance(value, str):
            raise TypeError(f"unsupported type {type(value).__name__}")

        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            pass
        for fmt in get_settings().datetime_formats:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        raise ValueError(f"Could not parse datetime from '{value}'")


def comparable(left: date, right: date) -> tuple[date, date]:
    """Align two dates/datetimes so they can be ordered.

    Dates compare with dates; datetimes are compared as naive UTC when
    either side carries a timezone.
    """
    if isinstance(left, datetime) != isinstance(right, datetime):
        left = left.date() if isinstance(left, datetime) else left
        right = right.date() if isinstance(right, datetime) else right
        return left, right
    if isinstance(left, datetime) and isinstance(right, datetime):
        if (left.tzinfo is None) != (right.tzinfo is None):
            left = _naive_utc(left)
            right = _naive_utc(right)
    return left, right


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
