"""Field validators and composite resolvers.

There is one resolver class per field variant (primitive, object, array,
tuple, record, union). The compiler picks the class once per field; at
validation time every resolver exposes the same two operations:

- ``sanitize(raw)``: pure, idempotent normalization of user input, recursive
  for composites. Used to build the record handed to custom validators.
- ``resolve(raw, path, record)``: the full pipeline for one value, returning
  a :class:`~dataknobs_forms.result.FieldOutcome`.

Primitive pipeline, in fixed order:

1. required check (empty text on an optional field resolves to ``None``)
2. sanitization (trim, then lowercase/uppercase, then the custom transform)
3. coercion to the kind's type
4. constraints, in declaration order; the first failure is the field's error
5. custom validator, then async validator (only when 1-4 passed)

Custom and async validators always receive the read-only sanitized record of
the whole form, so a field nested in an object, array or tuple can still
compare itself with top-level fields.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from . import messages
from .coercer import Coercer
from .constraints import Constraint
from .exceptions import ValidatorFault
from .result import FieldOutcome, join_path
from .schema import MISSING, FieldSchema

logger = logging.getLogger(__name__)

_coercer = Coercer()


def is_absent(value: Any) -> bool:
    return value is MISSING or value is None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


async def gather_in_order(awaitables: Sequence[Awaitable[FieldOutcome]]) -> list[FieldOutcome]:
    """Run awaitables concurrently and return their results in input order.

    Every awaitable is allowed to finish. If any raised, the first failure in
    input order is re-raised, so faults surface deterministically.
    """
    if not awaitables:
        return []
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


class Resolver(ABC):
    """Base class for compiled field resolvers.

    Args:
        spec: The field schema this resolver enforces
        path: Declared path of the field (for diagnostics)
    """

    # Whether minLength/maxLength count items rather than characters
    sequence = False

    def __init__(self, spec: FieldSchema, path: str):
        self.spec = spec
        self.path = path

    @property
    def kind(self):
        return self.spec.kind

    @abstractmethod
    def sanitize(self, raw: Any) -> Any:
        """Normalize raw input without validating it."""

    @abstractmethod
    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        """Validate and sanitize one raw value found at ``path``."""

    def is_empty(self, raw: Any) -> bool:
        """Whether ``raw`` counts as "no value" for the required check."""
        if is_absent(raw):
            return True
        if isinstance(raw, str):
            return (raw.strip() if self.spec.trim else raw) == ""
        if isinstance(raw, (list, tuple, dict, set)) or isinstance(raw, Mapping):
            return len(raw) == 0
        if raw is False and self.kind.is_boolean:
            return True
        return False

    def check_required(self, raw: Any, path: str) -> FieldOutcome | None:
        """Required check; returns a final outcome when the value is empty."""
        if not self.is_empty(raw):
            return None
        if self.spec.required:
            echo = None if is_absent(raw) else self.sanitize(raw)
            return self.fail(echo, path, messages.REQUIRED)
        # Empty text on an optional field is absent; empty containers and False are kept
        if is_absent(raw) or isinstance(raw, str):
            return FieldOutcome.ok(None)
        return FieldOutcome.ok(self.sanitize(raw))

    def apply_custom_sanitize(self, value: Any) -> Any:
        if self.spec.sanitize is None or is_absent(value):
            return value
        try:
            return self.spec.sanitize(value)
        except Exception as e:
            raise ValidatorFault(self.path, e) from e

    def fail(
        self,
        value: Any,
        path: str,
        code: str,
        /,
        message: str | None = None,
        **params: Any,
    ) -> FieldOutcome:
        """Build a failed outcome, resolving the message for ``code``.

        ``params`` feed the message template; they may use any name, including
        ``value`` or ``path``.
        """
        if message is None:
            message = self.spec.message(code)
        if message is None:
            context = {
                "kind": self.kind.value,
                "label": self.spec.label or path.rsplit(".", 1)[-1],
                "path": path,
            }
            context.update(params)
            message = messages.default_message(code, context, sequence=self.sequence)
        return FieldOutcome.error(value, path, code, message)

    def check_constraints(
        self,
        constraints: Sequence[Constraint],
        value: Any,
        echo: Any,
        path: str,
    ) -> FieldOutcome | None:
        """Evaluate constraints in order; the first failure wins."""
        for constraint in constraints:
            if not constraint.check(value):
                return self.fail(echo, path, constraint.code, **constraint.params)
        return None

    async def run_validators(
        self,
        value: Any,
        echo: Any,
        path: str,
        record: Mapping[str, Any],
    ) -> FieldOutcome:
        """Run the custom then async validator on an otherwise valid value."""
        for validator in (self.spec.custom_validator, self.spec.async_validator):
            if validator is None:
                continue
            try:
                verdict = validator(value, record)
                if inspect.isawaitable(verdict):
                    verdict = await verdict
            except Exception as e:
                raise ValidatorFault(path, e) from e

            if verdict is None or verdict is True or verdict == "":
                continue
            if verdict is False:
                return self.fail(echo, path, messages.CUSTOM)
            if not isinstance(verdict, str):
                logger.warning(
                    f"Validator for '{path}' returned {type(verdict).__name__}, using str() as message"
                )
                verdict = str(verdict)
            return self.fail(echo, path, messages.CUSTOM, message=verdict)
        return FieldOutcome.ok(value)


class PrimitiveResolver(Resolver):
    """Resolver for scalar kinds (text, numbers, dates, booleans, choices)."""

    def __init__(self, spec: FieldSchema, path: str, constraints: Sequence[Constraint]):
        super().__init__(spec, path)
        self.constraints = tuple(constraints)

    def sanitize(self, raw: Any) -> Any:
        value = raw
        if isinstance(value, str):
            if self.spec.trim:
                value = value.strip()
            if self.spec.lowercase:
                value = value.lower()
            elif self.spec.uppercase:
                value = value.upper()
        return self.apply_custom_sanitize(value)

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        sanitized = self.sanitize(raw)
        coerced = _coercer.coerce(sanitized, self.kind)
        if not coerced:
            logger.debug(f"Field '{path}': {coerced.reason}")
            return self.fail(sanitized, path, messages.TYPE)
        value = coerced.value

        if value is False and self.spec.required and self.kind.is_boolean:
            return self.fail(sanitized, path, messages.REQUIRED)

        failure = self.check_constraints(self.constraints, value, sanitized, path)
        if failure is not None:
            return failure
        return await self.run_validators(value, sanitized, path, record)


class ObjectResolver(Resolver):
    """Resolver for nested field maps; children report ``parent.child`` paths."""

    def __init__(self, spec: FieldSchema, path: str, level: LevelResolver):
        super().__init__(spec, path)
        self.level = level

    def sanitize(self, raw: Any) -> Any:
        value = self.apply_custom_sanitize(raw)
        if isinstance(value, Mapping):
            return self.level.sanitize_record(value)
        return value

    def is_empty(self, raw: Any) -> bool:
        # An empty sub-record is present; its own fields decide what is missing
        return is_absent(raw)

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        value = self.apply_custom_sanitize(raw)
        if not isinstance(value, Mapping):
            return self.fail(value, path, messages.TYPE)

        nested = await self.level.run(value, path, record)
        if nested.failed:
            return nested
        return await self.run_validators(nested.value, nested.value, path, record)


class ArrayResolver(Resolver):
    """Resolver applying one element schema to every item."""

    sequence = True

    def __init__(
        self,
        spec: FieldSchema,
        path: str,
        element: Resolver,
        constraints: Sequence[Constraint],
    ):
        super().__init__(spec, path)
        self.element = element
        self.constraints = tuple(constraints)

    def sanitize(self, raw: Any) -> Any:
        value = self.apply_custom_sanitize(raw)
        if _is_sequence(value):
            return [self.element.sanitize(item) for item in value]
        return value

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        items = self.apply_custom_sanitize(raw)
        if not _is_sequence(items):
            return self.fail(items, path, messages.TYPE)
        if not items and self.spec.required:
            return self.fail([], path, messages.REQUIRED)

        echo = [self.element.sanitize(item) for item in items]
        failure = self.check_constraints(self.constraints, items, echo, path)
        if failure is not None:
            return failure

        outcomes = await gather_in_order([
            self.element.resolve(item, join_path(path, index), record)
            for index, item in enumerate(items)
        ])
        merged = FieldOutcome.merged([o.value for o in outcomes], outcomes)
        if merged.failed:
            return merged
        return await self.run_validators(merged.value, merged.value, path, record)


class TupleResolver(Resolver):
    """Resolver for fixed-length, positionally typed sequences."""

    sequence = True

    def __init__(self, spec: FieldSchema, path: str, positions: Sequence[Resolver]):
        super().__init__(spec, path)
        self.positions = tuple(positions)

    def sanitize(self, raw: Any) -> Any:
        value = self.apply_custom_sanitize(raw)
        if _is_sequence(value):
            if len(value) != len(self.positions):
                return list(value)
            return [node.sanitize(item) for node, item in zip(self.positions, value)]
        return value

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        items = self.apply_custom_sanitize(raw)
        if not _is_sequence(items):
            return self.fail(items, path, messages.TYPE)
        if len(items) != len(self.positions):
            return self.fail(list(items), path, messages.TUPLE_LENGTH, length=len(self.positions))

        outcomes = await gather_in_order([
            node.resolve(item, join_path(path, index), record)
            for index, (node, item) in enumerate(zip(self.positions, items))
        ])
        merged = FieldOutcome.merged([o.value for o in outcomes], outcomes)
        if merged.failed:
            return merged
        return await self.run_validators(merged.value, merged.value, path, record)


class RecordResolver(Resolver):
    """Resolver for string-keyed mappings with one value schema.

    Entry failures collapse into a single ``record`` error at the field's own
    path; the sanitized output still carries every entry.
    """

    def __init__(self, spec: FieldSchema, path: str, value_node: Resolver):
        super().__init__(spec, path)
        self.value_node = value_node

    def sanitize(self, raw: Any) -> Any:
        value = self.apply_custom_sanitize(raw)
        if isinstance(value, Mapping):
            return {key: self.value_node.sanitize(item) for key, item in value.items()}
        return value

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        entries = self.apply_custom_sanitize(raw)
        if not isinstance(entries, Mapping):
            return self.fail(entries, path, messages.TYPE)

        keys = list(entries)
        outcomes = await gather_in_order([
            self.value_node.resolve(entries[key], join_path(path, key), record)
            for key in keys
        ])
        value = {key: entry.value for key, entry in zip(keys, outcomes)}
        bad_keys = [key for key in keys if not isinstance(key, str)]
        failed = [key for key, entry in zip(keys, outcomes) if entry.failed]
        if bad_keys or failed:
            logger.debug(f"Record '{path}' has invalid entries: {bad_keys + failed}")
            return self.fail(value, path, messages.RECORD)
        return await self.run_validators(value, value, path, record)


class UnionResolver(Resolver):
    """Resolver trying alternatives in declared order; first match wins."""

    def __init__(self, spec: FieldSchema, path: str, alternatives: Sequence[Resolver]):
        super().__init__(spec, path)
        self.alternatives = tuple(alternatives)

    def sanitize(self, raw: Any) -> Any:
        # Which alternative's sanitization applies is only known once one matches
        return self.apply_custom_sanitize(raw)

    async def resolve(self, raw: Any, path: str, record: Mapping[str, Any]) -> FieldOutcome:
        outcome = self.check_required(raw, path)
        if outcome is not None:
            return outcome

        candidate = self.apply_custom_sanitize(raw)
        # One alternative at a time; later ones never run after a match
        for index, alternative in enumerate(self.alternatives):
            attempt = await alternative.resolve(candidate, path, record)
            if not attempt.failed:
                logger.debug(f"Union '{path}' matched alternative {index} ({alternative.kind.value})")
                return await self.run_validators(attempt.value, attempt.value, path, record)
        return self.fail(candidate, path, messages.UNION)


class LevelResolver:
    """Validates one nesting level: a field map against a sub-record.

    Fields at a level are resolved concurrently and merged back in
    declaration order.
    """

    def __init__(self, fields: Sequence[tuple[str, Resolver]]):
        self.fields = tuple(fields)

    def sanitize_record(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Sanitized view of ``data`` with exactly the schema's keys."""
        record = {}
        for name, node in self.fields:
            raw = data.get(name, MISSING)
            record[name] = None if is_absent(raw) else node.sanitize(raw)
        return record

    async def run(
        self,
        data: Any,
        prefix: str = "",
        record: Mapping[str, Any] | None = None,
    ) -> FieldOutcome:
        """Resolve every field of this level against ``data``.

        ``record`` is the sanitized root record handed to custom validators.
        The root level builds it; nested levels receive it from their parent.
        """
        if not isinstance(data, Mapping):
            data = {}
        if record is None:
            record = MappingProxyType(self.sanitize_record(data))
        outcomes = await gather_in_order([
            node.resolve(data.get(name, MISSING), join_path(prefix, name), record)
            for name, node in self.fields
        ])

        values = {name: outcome.value for (name, _), outcome in zip(self.fields, outcomes)}
        return FieldOutcome.merged(values, outcomes)
