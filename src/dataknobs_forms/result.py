"""Validation result types with consistent, predictable behavior.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


def join_path(parent: str, key: str | int) -> str:
    """Extend a field path with a nested key or index.

    The root level has an empty path, so its children are just their names.
    """
    if not parent:
        return str(key)
    return f"{parent}.{key}"


@dataclass(frozen=True)
class ErrorDescriptor:
    """A single field error.

    Attributes:
        code: The failing rule (``required``, ``minLength``, ``union``, ...)
        message: User-facing text
    """

    code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass
class FieldOutcome:
    """Result of resolving one field (or sub-field) value.

    Attributes:
        value: The sanitized (and, when valid, coerced) value
        errors: Path-keyed errors found at or below this field
    """

    value: Any
    errors: dict[str, ErrorDescriptor] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    @classmethod
    def ok(cls, value: Any) -> FieldOutcome:
        return cls(value=value)

    @classmethod
    def error(cls, value: Any, path: str, code: str, message: str) -> FieldOutcome:
        return cls(value=value, errors={path: ErrorDescriptor(code, message)})

    @classmethod
    def merged(cls, value: Any, outcomes: Iterable[FieldOutcome]) -> FieldOutcome:
        """Combine child outcomes under one value; errors keep the children's order."""
        combined = cls(value=value)
        for outcome in outcomes:
            combined.errors.update(outcome.errors)
        return combined


@dataclass
class ValidationResult:
    """Unified result of a ``validate()`` call.

    ``errors`` is empty if and only if every field passed. Its iteration order
    follows the schema's declaration order.
    """

    sanitized_value: dict[str, Any]
    errors: dict[str, ErrorDescriptor] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.valid

    def error_for(self, path: str) -> ErrorDescriptor | None:
        """Get the error reported at a path, if any."""
        return self.errors.get(path)

    def messages(self) -> dict[str, str]:
        """Map each failing path to its message."""
        return {path: error.message for path, error in self.errors.items()}

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation, using the description format's key names."""
        return {
            "sanitizedValue": self.sanitized_value,
            "errors": {path: error.to_dict() for path, error in self.errors.items()},
        }
