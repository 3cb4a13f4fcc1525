"""Schema compiler.

Turns a declarative :class:`~dataknobs_forms.schema.Schema` into an
executable plan: one resolver per field, chosen once from the field's kind,
with its constraints pre-built in evaluation order.

Compilation is where misconfiguration is caught. Every problem is raised as a
:class:`~dataknobs_forms.exceptions.SchemaError` naming the offending field
path and attribute; none of them can surface later as a field error.

    ```python
    from dataknobs_forms import compile_schema

    compiled = compile_schema({
        "fields": {
            "gender": {"type": "radio", "required": True, "options": ["male", "female", "other"]},
        }
    })
    compiled.field_names   # ('gender',)
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime, time
from numbers import Number
from typing import Any

from . import messages
from .coercer import Coercer
from .constraints import (
    Constraint,
    Literal,
    Max,
    MaxDate,
    MaxLength,
    Min,
    MinDate,
    MinLength,
    Options,
    Pattern,
)
from .exceptions import PatternError, SchemaError
from .kinds import FieldKind
from .patterns import RegexPattern, build_regex
from .resolvers import (
    ArrayResolver,
    LevelResolver,
    ObjectResolver,
    PrimitiveResolver,
    RecordResolver,
    Resolver,
    TupleResolver,
    UnionResolver,
)
from .result import join_path
from .schema import MISSING, FieldSchema, Schema

logger = logging.getLogger(__name__)

# Formats implied by a kind when the field declares no pattern or format
KIND_FORMATS = {
    FieldKind.EMAIL: "email",
    FieldKind.URL: "url",
    FieldKind.TEL: "phone",
    FieldKind.COLOR: "color",
}

_LENGTH_KINDS = frozenset({
    FieldKind.STRING,
    FieldKind.EMAIL,
    FieldKind.URL,
    FieldKind.TEL,
    FieldKind.COLOR,
    FieldKind.PASSWORD,
    FieldKind.TEXTAREA,
    FieldKind.ARRAY,
    FieldKind.CUSTOM,
})

_PATTERN_KINDS = _LENGTH_KINDS - {FieldKind.ARRAY} | {
    FieldKind.SELECT,
    FieldKind.RADIO,
    FieldKind.ENUM,
}

_DYNAMIC_DATES = ("today", "now")


class CompiledSchema:
    """Immutable, executable validation plan for a schema.

    Attributes:
        source: The schema this plan was compiled from
        level: Resolver for the top-level field map
    """

    __slots__ = ("source", "level", "_names")

    def __init__(self, source: Schema, level: LevelResolver):
        self.source = source
        self.level = level
        self._names = tuple(name for name, _ in level.fields)

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._names

    def resolver(self, name: str) -> Resolver:
        for field_name, node in self.level.fields:
            if field_name == name:
                return node
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        """Description of the source schema (see ``Schema.to_dict``)."""
        return self.source.to_dict()

    def __repr__(self) -> str:
        return f"CompiledSchema(name={self.name!r}, fields={list(self._names)})"


class SchemaCompiler:
    """Compiles schemas into resolver trees."""

    def __init__(self) -> None:
        self._coercer = Coercer()

    def compile(self, schema: Schema) -> CompiledSchema:
        """Compile a schema.

        Args:
            schema: Schema to compile

        Returns:
            CompiledSchema

        Raises:
            SchemaError: If any field is misconfigured
        """
        level = self._compile_level(schema, "")
        logger.debug(f"Compiled schema '{schema.name}' with {len(level.fields)} fields")
        return CompiledSchema(schema, level)

    def _compile_level(self, schema: Schema, prefix: str) -> LevelResolver:
        level = LevelResolver([
            (name, self._compile_field(spec, join_path(prefix, name)))
            for name, spec in schema.fields.items()
        ])
        schema.freeze()
        return level

    def _compile_field(self, spec: FieldSchema, path: str) -> Resolver:
        self._check_common(spec, path)
        kind = spec.kind

        if kind is FieldKind.OBJECT:
            if spec.schema is None:
                raise SchemaError("object fields need a nested 'schema'", path, "schema")
            return ObjectResolver(spec, path, self._compile_level(spec.schema, path))

        if kind is FieldKind.ARRAY:
            if spec.element_type is None:
                raise SchemaError("array fields need an 'elementType'", path, "elementType")
            element = self._compile_field(spec.element_type, join_path(path, "elementType"))
            return ArrayResolver(spec, path, element, self._build_constraints(spec, path))

        if kind is FieldKind.TUPLE:
            if not spec.tuple_schemas:
                raise SchemaError("tuple fields need at least one entry in 'tupleSchemas'", path, "tupleSchemas")
            positions = [
                self._compile_field(item, join_path(path, index))
                for index, item in enumerate(spec.tuple_schemas)
            ]
            return TupleResolver(spec, path, positions)

        if kind is FieldKind.RECORD:
            if spec.value_schema is None:
                raise SchemaError("record fields need a 'valueSchema'", path, "valueSchema")
            value_node = self._compile_field(spec.value_schema, join_path(path, "valueSchema"))
            return RecordResolver(spec, path, value_node)

        if kind is FieldKind.UNION:
            if not spec.types:
                raise SchemaError("union fields need at least one entry in 'types'", path, "types")
            alternatives = [
                self._compile_field(item, join_path(join_path(path, "types"), index))
                for index, item in enumerate(spec.types)
            ]
            return UnionResolver(spec, path, alternatives)

        if kind.is_choice and not spec.option_values:
            raise SchemaError(f"{kind.value} fields need non-empty 'options'", path, "options")
        if kind is FieldKind.LITERAL and spec.value is MISSING:
            raise SchemaError("literal fields need a 'value'", path, "value")
        return PrimitiveResolver(spec, path, self._build_constraints(spec, path))

    def _check_common(self, spec: FieldSchema, path: str) -> None:
        """Attribute checks shared by every kind."""
        kind = spec.kind
        for flag in ("required", "trim", "lowercase", "uppercase"):
            if not isinstance(getattr(spec, flag), bool):
                raise SchemaError(f"'{flag}' must be a boolean", path, flag)
        if spec.lowercase and spec.uppercase:
            raise SchemaError("'lowercase' and 'uppercase' are mutually exclusive", path, "uppercase")

        for attr, key in (("sanitize", "sanitize"), ("custom_validator", "customValidator"),
                          ("async_validator", "asyncValidator")):
            value = getattr(spec, attr)
            if value is not None and not callable(value):
                raise SchemaError(f"'{key}' must be callable", path, key)

        for rule, text in spec.messages.items():
            if not isinstance(text, str):
                raise SchemaError("error messages must be strings", path, f"{rule}ErrorMessage")

        self._check_bounds(spec.min_length, spec.max_length, "minLength", "maxLength", path, integral=True)
        if (spec.min_length is not None or spec.max_length is not None) and kind not in _LENGTH_KINDS:
            raise SchemaError(f"length bounds do not apply to {kind.value} fields", path, "minLength")

        self._check_bounds(spec.min, spec.max, "min", "max", path, integral=False)
        if (spec.min is not None or spec.max is not None) and not kind.is_numeric:
            raise SchemaError(f"numeric bounds do not apply to {kind.value} fields", path, "min")

        if (spec.min_date is not None or spec.max_date is not None) and not kind.is_temporal:
            raise SchemaError(f"date bounds do not apply to {kind.value} fields", path, "minDate")

        if (spec.pattern is not None or spec.format is not None) and kind not in _PATTERN_KINDS:
            raise SchemaError(f"patterns do not apply to {kind.value} fields", path, "pattern")

        if spec.options is not None and not spec.option_values:
            raise SchemaError("'options' must not be empty", path, "options")

    def _check_bounds(
        self,
        low: Any,
        high: Any,
        low_key: str,
        high_key: str,
        path: str,
        integral: bool,
    ) -> None:
        for key, bound in ((low_key, low), (high_key, high)):
            if bound is None:
                continue
            if isinstance(bound, bool) or not isinstance(bound, Number):
                raise SchemaError(f"'{key}' must be a number", path, key)
            if integral and (not isinstance(bound, int) or bound < 0):
                raise SchemaError(f"'{key}' must be a non-negative integer", path, key)
        if low is not None and high is not None and float(low) > float(high):
            raise SchemaError(f"'{low_key}' ({low}) cannot be greater than '{high_key}' ({high})", path, low_key)

    def _build_constraints(self, spec: FieldSchema, path: str) -> list[Constraint]:
        """Build constraints in the field's declared rule order."""
        constraints: list[Constraint] = []
        for rule in spec.declared_rules:
            if rule == "minLength":
                constraints.append(MinLength(spec.min_length))
            elif rule == "maxLength":
                constraints.append(MaxLength(spec.max_length))
            elif rule == "min":
                constraints.append(Min(spec.min))
            elif rule == "max":
                constraints.append(Max(spec.max))
            elif rule == "minDate":
                constraints.append(MinDate(spec.min_date, self._date_bound(spec, spec.min_date, path, rule)))
            elif rule == "maxDate":
                constraints.append(MaxDate(spec.max_date, self._date_bound(spec, spec.max_date, path, rule)))
            elif rule == "pattern":
                constraints.append(Pattern(spec.pattern))
            elif rule == "format":
                constraints.append(self._format_constraint(spec.format, path))
            elif rule == "options":
                constraints.append(Options(spec.option_values))

        if spec.kind is FieldKind.LITERAL:
            constraints.append(Literal(spec.value))

        implied = KIND_FORMATS.get(spec.kind)
        if implied and spec.pattern is None and spec.format is None:
            constraints.append(Pattern(build_regex(implied), code=messages.FORMAT, name=implied))

        self._check_date_order(constraints, path)
        return constraints

    def _format_constraint(self, fmt: str | Mapping[str, Any], path: str) -> Pattern:
        try:
            pattern: RegexPattern = build_regex(fmt if isinstance(fmt, str) else dict(fmt))
        except PatternError as e:
            raise PatternError(str(e), path, "format") from e
        name = fmt if isinstance(fmt, str) else str(fmt.get("type"))
        return Pattern(pattern, code=messages.FORMAT, name=name)

    def _date_bound(self, spec: FieldSchema, bound: Any, path: str, rule: str) -> Callable[[], date]:
        """Resolve a date bound to a callable returning the current bound."""
        token = bound.strip().lower() if isinstance(bound, str) else None
        if token in _DYNAMIC_DATES:
            if spec.kind is FieldKind.DATE:
                return date.today
            if token == "now":
                return datetime.now
            return lambda: datetime.combine(date.today(), time())

        try:
            if spec.kind is FieldKind.DATE:
                parsed: date = self._coercer.to_date(bound)
            else:
                parsed = self._coercer.to_datetime(bound)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise SchemaError(f"cannot parse date bound {bound!r}: {e}", path, rule) from e
        return lambda: parsed

    def _check_date_order(self, constraints: list[Constraint], path: str) -> None:
        low = next((c for c in constraints if isinstance(c, MinDate)), None)
        high = next((c for c in constraints if isinstance(c, MaxDate)), None)
        if low is None or high is None:
            return
        if isinstance(low.bound, str) and low.bound.strip().lower() in _DYNAMIC_DATES:
            return
        if isinstance(high.bound, str) and high.bound.strip().lower() in _DYNAMIC_DATES:
            return
        if not low.check(high._resolve()):
            raise SchemaError("'minDate' cannot be after 'maxDate'", path, "minDate")


def compile_schema(raw: CompiledSchema | Schema | Mapping[str, Any]) -> CompiledSchema:
    """Compile a schema or schema description.

    Schemas are compiled once and the plan is cached on the schema instance;
    an already compiled schema is returned as is.

    Raises:
        SchemaError: If the description is malformed
    """
    if isinstance(raw, CompiledSchema):
        return raw
    if isinstance(raw, Schema):
        return raw.compile()
    if isinstance(raw, Mapping):
        return Schema.from_dict(raw).compile()
    raise SchemaError(f"Cannot compile {type(raw).__name__} as a schema")


def create_schema(description: Mapping[str, Any]) -> CompiledSchema:
    """Build and compile a schema from its description in one step."""
    return compile_schema(description)
