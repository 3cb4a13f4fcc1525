"""Schema definition with fluent API for form validation.

A schema is a declarative, ordered mapping of field names to
:class:`FieldSchema` objects. It can be written as plain data (the JSON
description format used by form front-ends) or built fluently:

    ```python
    from dataknobs_forms import Schema

    schema = (
        Schema("signup")
        .field("email", "email", required=True, trim=True, lowercase=True)
        .field("age", "number", required=True, min=18, max=120)
    )

    same = Schema.from_dict({
        "fields": {
            "email": {"type": "email", "required": True, "trim": True, "lowercase": True},
            "age": {"type": "number", "required": True, "min": 18, "max": 120},
        }
    })
    ```
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, fields as dataclass_fields, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .exceptions import PatternError, SchemaError
from .kinds import FieldKind
from .patterns import RegexPattern
from .result import join_path

if TYPE_CHECKING:
    from .compiler import CompiledSchema


class _Missing:
    """Marker for an attribute or input value that is absent."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

# Description key -> FieldSchema attribute
_ATTRIBUTE_KEYS = {
    "required": "required",
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "format": "format",
    "trim": "trim",
    "lowercase": "lowercase",
    "uppercase": "uppercase",
    "min": "min",
    "max": "max",
    "minDate": "min_date",
    "maxDate": "max_date",
    "options": "options",
    "enum": "options",
    "value": "value",
    "sanitize": "sanitize",
    "customValidator": "custom_validator",
    "asyncValidator": "async_validator",
    "schema": "schema",
    "elementType": "element_type",
    "tupleSchemas": "tuple_schemas",
    "valueSchema": "value_schema",
    "types": "types",
    "label": "label",
    "description": "description",
    "default": "default",
    "messages": "messages",
}

# Constraint rules in canonical order; description key order overrides this
CONSTRAINT_RULES = (
    "minLength",
    "maxLength",
    "min",
    "max",
    "minDate",
    "maxDate",
    "pattern",
    "format",
    "options",
)

_RULE_BY_ATTRIBUTE = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "min": "min",
    "max": "max",
    "min_date": "minDate",
    "max_date": "maxDate",
    "pattern": "pattern",
    "format": "format",
    "options": "options",
}

_MESSAGE_KEY = re.compile(r"^(?P<rule>[A-Za-z_]+?)_?[Ee]rror_?[Mm]essage$")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _attribute_for(key: str) -> str | None:
    if key in _ATTRIBUTE_KEYS:
        return _ATTRIBUTE_KEYS[key]
    if key in _FIELD_ATTRIBUTES:
        return key
    return None


@dataclass(frozen=True, eq=False)
class FieldSchema:
    """Declarative description of one field's validation and sanitization.

    Attributes:
        kind: Field kind
        required: Whether an empty value is an error
        min_length / max_length: Length bounds (characters, or items for arrays)
        pattern: Explicit regex the whole value must match
        format: Named catalog format (``"alphaSpace"``) or a pattern config
        trim / lowercase / uppercase: Sanitization transforms
        min / max: Numeric bounds
        min_date / max_date: Date bounds (ISO text, date objects, ``"today"``/``"now"``)
        options: Allowed values for select/radio/enum, plain or ``{value, label}``
        value: The allowed value of a ``literal`` field
        sanitize: Extra transform applied after trim and case changes
        custom_validator: ``(value, record) -> message | None``
        async_validator: ``async (value, record) -> message | None``
        messages: Per-rule error message overrides
        schema: Nested schema of an ``object`` field
        element_type: Schema of every element of an ``array`` field
        tuple_schemas: Positional schemas of a ``tuple`` field
        value_schema: Schema of every value of a ``record`` field
        types: Alternatives of a ``union`` field, in precedence order
        constraint_order: Order in which constraint rules are evaluated
    """

    kind: FieldKind
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: RegexPattern | None = None
    format: str | Mapping[str, Any] | None = None
    trim: bool = False
    lowercase: bool = False
    uppercase: bool = False
    min: float | None = None
    max: float | None = None
    min_date: Any = None
    max_date: Any = None
    options: tuple[Any, ...] | None = None
    value: Any = MISSING
    sanitize: Callable[[Any], Any] | None = None
    custom_validator: Callable[..., Any] | None = None
    async_validator: Callable[..., Any] | None = None
    messages: Mapping[str, str] = field(default_factory=dict)
    schema: Schema | None = None
    element_type: FieldSchema | None = None
    tuple_schemas: tuple[FieldSchema, ...] | None = None
    value_schema: FieldSchema | None = None
    types: tuple[FieldSchema, ...] | None = None
    label: str | None = None
    description: str | None = None
    default: Any = None
    constraint_order: tuple[str, ...] = CONSTRAINT_RULES

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", MappingProxyType(dict(self.messages)))

    @property
    def option_values(self) -> tuple[Any, ...]:
        """Allowed values, with ``{value, label}`` entries reduced to their value."""
        if not self.options:
            return ()
        return tuple(
            opt["value"] if isinstance(opt, Mapping) and "value" in opt else opt
            for opt in self.options
        )

    @property
    def declared_rules(self) -> tuple[str, ...]:
        """Constraint rules this field declares, in evaluation order."""
        declared = [
            rule for attr, rule in _RULE_BY_ATTRIBUTE.items()
            if getattr(self, attr) is not None
        ]
        ordered = [rule for rule in self.constraint_order if rule in declared]
        ordered.extend(rule for rule in CONSTRAINT_RULES if rule in declared and rule not in ordered)
        return tuple(ordered)

    def message(self, rule: str) -> str | None:
        """Per-rule message override, if declared."""
        return self.messages.get(rule)

    def replace(self, **changes: Any) -> FieldSchema:
        """Copy of this field schema with the given attributes changed.

        Takes dataclass attribute names (``min_length``, not ``minLength``).
        """
        return replace(self, **changes)

    @classmethod
    def coerce(cls, value: FieldSchema | Mapping[str, Any], path: str = "") -> FieldSchema:
        if isinstance(value, FieldSchema):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value, path)
        raise SchemaError(
            f"Field schema must be a mapping, got {type(value).__name__}", path or None
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> FieldSchema:
        """Parse a field description.

        Args:
            data: Description using camelCase (or snake_case) attribute keys
            path: Path of this field, used in error messages

        Returns:
            FieldSchema instance

        Raises:
            SchemaError: On an unknown kind or attribute
        """
        where = path or None
        if "type" in data and "kind" in data:
            raise SchemaError("Use either 'type' or 'kind', not both", where, "type")
        if "type" not in data and "kind" not in data:
            raise SchemaError("Missing field kind", where, "type")
        kind = FieldKind.parse(data.get("type", data.get("kind")), where)

        attrs: dict[str, Any] = {"kind": kind}
        messages: dict[str, str] = {}
        order: list[str] = []

        for key, raw in data.items():
            if key in ("type", "kind"):
                continue
            match = _MESSAGE_KEY.match(key)
            if match:
                messages[_camel(match.group("rule"))] = raw
                continue
            attribute = _attribute_for(key)
            if attribute is None or attribute in ("kind", "constraint_order"):
                raise SchemaError(f"Unknown attribute '{key}'", where, key)
            if attribute == "messages":
                if not isinstance(raw, Mapping):
                    raise SchemaError("'messages' must be a mapping", where, key)
                messages.update({_camel(str(k)): v for k, v in raw.items()})
                continue
            if attribute in _RULE_BY_ATTRIBUTE:
                order.append(_RULE_BY_ATTRIBUTE[attribute])
            attrs[attribute] = _parse_attribute(attribute, raw, path)

        attrs["messages"] = messages
        attrs["constraint_order"] = tuple(order) + tuple(
            rule for rule in CONSTRAINT_RULES if rule not in order
        )
        return cls(**attrs)

    def to_dict(self) -> dict[str, Any]:
        """Serializable description of this field.

        Callables (``sanitize``, validators) cannot be serialized and are
        omitted.
        """
        out: dict[str, Any] = {"type": self.kind.value, "required": self.required}
        rule_values = {
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "min": self.min,
            "max": self.max,
            "minDate": _date_text(self.min_date),
            "maxDate": _date_text(self.max_date),
            "pattern": _pattern_text(self.pattern),
            "format": dict(self.format) if isinstance(self.format, Mapping) else self.format,
            "options": [dict(o) if isinstance(o, Mapping) else o for o in self.options]
            if self.options is not None else None,
        }
        for rule in self.constraint_order:
            if rule_values.get(rule) is not None:
                out[rule] = rule_values[rule]
        for flag in ("trim", "lowercase", "uppercase"):
            if getattr(self, flag):
                out[flag] = True
        if self.value is not MISSING:
            out["value"] = self.value
        if self.schema is not None:
            out["schema"] = self.schema.to_dict()
        if self.element_type is not None:
            out["elementType"] = self.element_type.to_dict()
        if self.tuple_schemas is not None:
            out["tupleSchemas"] = [s.to_dict() for s in self.tuple_schemas]
        if self.value_schema is not None:
            out["valueSchema"] = self.value_schema.to_dict()
        if self.types is not None:
            out["types"] = [s.to_dict() for s in self.types]
        for meta in ("label", "description", "default"):
            if getattr(self, meta) is not None:
                out[meta] = getattr(self, meta)
        for rule, text in self.messages.items():
            out[f"{rule}ErrorMessage"] = text
        return out


_FIELD_ATTRIBUTES = frozenset(f.name for f in dataclass_fields(FieldSchema))


def _date_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _pattern_text(pattern: RegexPattern | None) -> Any:
    if pattern is None:
        return None
    return pattern.to_dict() if pattern.flags else pattern.source


def _parse_attribute(attribute: str, raw: Any, path: str) -> Any:
    """Convert one description value to its FieldSchema representation."""
    where = path or None
    if attribute == "pattern":
        if raw is None:
            return None
        try:
            return RegexPattern.coerce(raw)
        except PatternError as e:
            raise PatternError(str(e), where, "pattern") from e
    if attribute == "options":
        if raw is None:
            return None
        if isinstance(raw, (str, bytes)) or not hasattr(raw, "__iter__"):
            raise SchemaError("options must be a list", where, "options")
        return tuple(raw)
    if attribute == "schema":
        if isinstance(raw, Schema):
            return raw
        if not isinstance(raw, Mapping):
            raise SchemaError("Nested schema must be a mapping", where, "schema")
        return Schema.from_dict(raw, path=path)
    if attribute in ("element_type", "value_schema"):
        suffix = "elementType" if attribute == "element_type" else "valueSchema"
        return FieldSchema.coerce(raw, join_path(path, suffix))
    if attribute in ("tuple_schemas", "types"):
        suffix = "tupleSchemas" if attribute == "tuple_schemas" else "types"
        if isinstance(raw, (str, bytes, Mapping)) or not hasattr(raw, "__iter__"):
            raise SchemaError(f"{suffix} must be a list", where, suffix)
        return tuple(
            FieldSchema.coerce(item, join_path(join_path(path, suffix), index))
            for index, item in enumerate(raw)
        )
    return raw


class Schema:
    """Ordered mapping of field names to field schemas.

    Insertion order is the validation order and therefore the order of keys
    in a result's error map. A schema, and every schema nested in it, becomes
    read-only once compiled.
    """

    def __init__(
        self,
        name: str = "unnamed",
        fields: Mapping[str, FieldSchema | Mapping[str, Any]] | None = None,
        description: str | None = None,
    ):
        """Initialize schema.

        Args:
            name: Schema name for identification
            fields: Initial field map (descriptions or FieldSchema objects)
            description: Optional description
        """
        self.name = name
        self.description = description
        self._fields: dict[str, FieldSchema] = {}
        self._compiled: CompiledSchema | None = None
        self._frozen = False
        self._path = ""
        for field_name, field_schema in (fields or {}).items():
            self.add(field_name, field_schema)

    @property
    def fields(self) -> Mapping[str, FieldSchema]:
        return MappingProxyType(self._fields)

    @property
    def compiled(self) -> bool:
        return self._compiled is not None

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> Schema:
        """Make this schema read-only. Compilation freezes every nested schema."""
        self._frozen = True
        return self

    def _check_mutable(self, path: str | None) -> None:
        if self._frozen:
            raise SchemaError("Schema is immutable once compiled", path)

    def add(self, name: str, field_schema: FieldSchema | Mapping[str, Any]) -> Schema:
        """Add a field (fluent API)."""
        self._check_mutable(join_path(self._path, name))
        if not isinstance(name, str) or not name:
            raise SchemaError("Field names must be non-empty strings", self._path or None)
        self._fields[name] = FieldSchema.coerce(field_schema, join_path(self._path, name))
        return self

    def field(self, name: str, kind: FieldKind | str, **attributes: Any) -> Schema:
        """Add a field definition (fluent API).

        Args:
            name: Field name
            kind: Field kind (FieldKind or kind name)
            **attributes: Field attributes, in description (camelCase) or
                snake_case spelling

        Returns:
            Self for chaining
        """
        description = {"type": kind.value if isinstance(kind, FieldKind) else kind}
        description.update(attributes)
        return self.add(name, FieldSchema.from_dict(description, join_path(self._path, name)))

    def with_description(self, description: str) -> Schema:
        self._check_mutable(self._path or None)
        self.description = description
        return self

    def compile(self) -> CompiledSchema:
        """Compile (once) and return the executable validation plan."""
        if self._compiled is None:
            from .compiler import SchemaCompiler

            self._compiled = SchemaCompiler().compile(self)
        return self._compiled

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __getitem__(self, name: str) -> FieldSchema:
        return self._fields[name]

    def __repr__(self) -> str:
        return f"Schema(name={self.name!r}, fields={list(self._fields)})"

    def to_dict(self) -> dict[str, Any]:
        """Convert schema to its description format."""
        out: dict[str, Any] = {}
        if self.name != "unnamed":
            out["name"] = self.name
        if self.description:
            out["description"] = self.description
        out["fields"] = {name: fs.to_dict() for name, fs in self._fields.items()}
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> Schema:
        """Create a schema from its description.

        Accepts ``{"fields": {...}}`` (optionally with ``name`` and
        ``description``) or a bare field map.
        """
        if not isinstance(data, Mapping):
            raise SchemaError(f"Schema must be a mapping, got {type(data).__name__}", path or None)
        wrapped = data.get("fields")
        if isinstance(wrapped, Mapping) and "type" not in wrapped and "kind" not in wrapped:
            extra = set(data) - {"fields", "name", "description"}
            if extra:
                raise SchemaError(
                    f"Unknown schema attributes: {', '.join(sorted(extra))}", path or None
                )
            field_map = wrapped
            name = data.get("name", "unnamed")
            description = data.get("description")
        else:
            field_map = data
            name = "unnamed"
            description = None

        schema = cls(name=name, description=description)
        schema._path = path
        for field_name, field_data in field_map.items():
            schema.add(field_name, field_data)
        return schema
