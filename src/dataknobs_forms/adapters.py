"""Adapter contracts for form-state managers.

These helpers reshape a :class:`ValidationResult` into what form libraries
typically expect. They bind to no particular library: a UI layer calls the
resolver on every submit or change and owns display, navigation and retries.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from .engine import SchemaLike, Validator
from .result import ValidationResult


def to_form_errors(result: ValidationResult) -> dict[str, dict[str, str]]:
    """Flat field errors: ``{path: {"type": code, "message": message}}``."""
    return {
        path: {"type": error.code, "message": error.message}
        for path, error in result.errors.items()
    }


def to_nested_errors(result: ValidationResult) -> dict[str, Any]:
    """Field errors nested by path segment.

    ``address.zip`` becomes ``{"address": {"zip": {"type": ..., "message": ...}}}``.
    When a path is both an error and the parent of other errors (not produced
    by the engine, whose composite errors are either on the parent or on its
    children), the deeper errors win.
    """
    nested: dict[str, Any] = {}
    for path, error in result.errors.items():
        *parents, leaf = path.split(".")
        node = nested
        for segment in parents:
            child = node.get(segment)
            if not isinstance(child, dict) or "message" in child:
                child = {}
                node[segment] = child
            node = child
        if leaf not in node:
            node[leaf] = {"type": error.code, "message": error.message}
    return nested


class FormResolver(Protocol):
    """Callable a form library invokes with the current raw values."""

    def __call__(self, values: Mapping[str, Any]) -> Awaitable[dict[str, Any]]:
        ...


def make_resolver(
    schema: SchemaLike,
    shape: Callable[[ValidationResult], dict[str, Any]] = to_nested_errors,
) -> FormResolver:
    """Create a resolver returning ``{"values": ..., "errors": ...}``.

    ``values`` holds the sanitized values when the record is valid and is
    empty otherwise; ``errors`` is shaped by ``shape``.
    """
    validator = Validator(schema)

    async def resolver(values: Mapping[str, Any]) -> dict[str, Any]:
        result = await validator.validate(values)
        if result.valid:
            return {"values": result.sanitized_value, "errors": {}}
        return {"values": {}, "errors": shape(result)}

    return resolver
