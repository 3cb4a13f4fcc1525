"""Constraint implementations with a consistent API.

Each constraint checks one declared rule against an already coerced value.
Constraints do not build messages themselves: they expose the rule ``code``
and the ``params`` used to render the message, so per-field overrides and
configured defaults are applied in one place.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date, datetime
from numbers import Number
from typing import Any, Callable

from . import messages
from .coercer import comparable
from .patterns import RegexPattern


class Constraint(ABC):
    """Base class for all constraints."""

    code: str = ""

    @abstractmethod
    def check(self, value: Any) -> bool:
        """Return True if ``value`` satisfies this constraint."""

    @property
    def params(self) -> dict[str, Any]:
        """Parameters available to this constraint's message template."""
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.params})"


class MinLength(Constraint):
    """String/collection must have at least ``limit`` items."""

    code = messages.MIN_LENGTH

    def __init__(self, limit: int):
        if limit < 0:
            raise ValueError(f"min length cannot be negative: {limit}")
        self.limit = limit

    def check(self, value: Any) -> bool:
        if not hasattr(value, "__len__"):
            return False
        return len(value) >= self.limit

    @property
    def params(self) -> dict[str, Any]:
        return {"minLength": self.limit}


class MaxLength(Constraint):
    """String/collection must have at most ``limit`` items."""

    code = messages.MAX_LENGTH

    def __init__(self, limit: int):
        if limit < 0:
            raise ValueError(f"max length cannot be negative: {limit}")
        self.limit = limit

    def check(self, value: Any) -> bool:
        if not hasattr(value, "__len__"):
            return False
        return len(value) <= self.limit

    @property
    def params(self) -> dict[str, Any]:
        return {"maxLength": self.limit}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Number):
        return False
    # NaN is not valid for range comparisons
    return not (isinstance(value, float) and math.isnan(value))


class Min(Constraint):
    """Numeric value must be >= ``limit``."""

    code = messages.MIN

    def __init__(self, limit: float):
        self.limit = limit

    def check(self, value: Any) -> bool:
        return _is_number(value) and float(value) >= float(self.limit)

    @property
    def params(self) -> dict[str, Any]:
        return {"min": self.limit}


class Max(Constraint):
    """Numeric value must be <= ``limit``."""

    code = messages.MAX

    def __init__(self, limit: float):
        self.limit = limit

    def check(self, value: Any) -> bool:
        return _is_number(value) and float(value) <= float(self.limit)

    @property
    def params(self) -> dict[str, Any]:
        return {"max": self.limit}


class _DateBound(Constraint):
    """Shared logic for minDate/maxDate.

    The bound is resolved on every check so dynamic bounds such as
    ``"today"`` follow the clock.
    """

    key = ""

    def __init__(self, bound: Any, resolve: Callable[[], date]):
        self.bound = bound
        self._resolve = resolve

    def check(self, value: Any) -> bool:
        if not isinstance(value, date):
            return False
        left, right = comparable(value, self._resolve())
        return self._compare(left, right)

    def _compare(self, value: date, bound: date) -> bool:
        raise NotImplementedError

    @property
    def params(self) -> dict[str, Any]:
        bound = self._resolve()
        text = bound.isoformat(sep=" ", timespec="minutes") if isinstance(bound, datetime) else bound.isoformat()
        return {self.key: text}


class MinDate(_DateBound):
    code = messages.MIN_DATE
    key = "minDate"

    def _compare(self, value: date, bound: date) -> bool:
        return value >= bound


class MaxDate(_DateBound):
    code = messages.MAX_DATE
    key = "maxDate"

    def _compare(self, value: date, bound: date) -> bool:
        return value <= bound


class Pattern(Constraint):
    """String value must fully match a regex pattern."""

    code = messages.PATTERN

    def __init__(self, pattern: RegexPattern, code: str | None = None, name: str | None = None):
        self.regex = pattern
        self.name = name
        if code:
            self.code = code

    def check(self, value: Any) -> bool:
        return self.regex.fullmatch(value)

    @property
    def params(self) -> dict[str, Any]:
        return {"pattern": self.regex.source, "format": self.name}


class Options(Constraint):
    """Value must be one of the allowed options."""

    code = messages.OPTIONS

    def __init__(self, values: Sequence[Any]):
        if not values:
            raise ValueError("Options constraint requires at least one allowed value")
        self.values = tuple(values)

    def check(self, value: Any) -> bool:
        return any(same_value(value, allowed) for allowed in self.values)

    @property
    def params(self) -> dict[str, Any]:
        return {"options": ", ".join(str(v) for v in self.values)}


class Literal(Constraint):
    """Value must equal exactly one literal."""

    code = messages.LITERAL

    def __init__(self, value: Any):
        self.value = value

    def check(self, value: Any) -> bool:
        return same_value(value, self.value)

    @property
    def params(self) -> dict[str, Any]:
        return {"literal": self.value}


def same_value(left: Any, right: Any) -> bool:
    """Equality without bool/int conflation (``True`` is not ``1``)."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return bool(left == right)
