"""Field kind definitions.

Defines the closed set of kinds a field schema may declare. Kinds are
resolved once, when a schema is compiled, so the validation pass never has
to inspect a field's kind again.
"""

from __future__ import annotations

from enum import Enum

from .exceptions import SchemaError


class FieldKind(Enum):
    """Enumeration of supported field kinds.

    Attributes:
        STRING: Plain text
        NUMBER: Integer or decimal number
        FLOAT: Decimal number, always coerced to ``float``
        BOOLEAN: True/False
        EMAIL: Text matching the email format
        URL: Text matching the url format
        TEL: Text matching the phone format
        DATE: Calendar date (``datetime.date``)
        DATETIME: Date and time (``datetime.datetime``)
        COLOR: Hex color text
        SELECT: Single choice from ``options``
        RADIO: Single choice from ``options``
        CHECKBOX: Boolean toggle
        PASSWORD: Text
        TEXTAREA: Long text
        OBJECT: Nested field map
        ARRAY: Sequence of one element type
        UNION: First matching alternative of ``types``
        TUPLE: Fixed-length sequence of positional schemas
        RECORD: String-keyed mapping of one value type
        LITERAL: Exactly one allowed value
        ENUM: One of a closed set of values
        CUSTOM: No type checks, only the custom validator
    """

    STRING = "string"
    NUMBER = "number"
    FLOAT = "float"
    BOOLEAN = "boolean"
    EMAIL = "email"
    URL = "url"
    TEL = "tel"
    DATE = "date"
    DATETIME = "datetime"
    COLOR = "color"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    OBJECT = "object"
    ARRAY = "array"
    UNION = "union"
    TUPLE = "tuple"
    RECORD = "record"
    LITERAL = "literal"
    ENUM = "enum"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, name: FieldKind | str, path: str | None = None) -> FieldKind:
        """Resolve a kind name (or alias) to a FieldKind.

        Args:
            name: Kind name such as ``"email"`` or ``"datetime-local"``
            path: Field path, used in the error message

        Returns:
            The matching FieldKind

        Raises:
            SchemaError: If the name is not a known kind
        """
        if isinstance(name, FieldKind):
            return name
        if not isinstance(name, str):
            raise SchemaError(f"Field kind must be a string, got {type(name).__name__}", path, "type")
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise SchemaError(f"Unknown field kind '{name}'", path, "type") from None

    @property
    def is_composite(self) -> bool:
        return self in _COMPOSITE

    @property
    def is_textual(self) -> bool:
        return self in _TEXTUAL

    @property
    def is_numeric(self) -> bool:
        return self in (FieldKind.NUMBER, FieldKind.FLOAT)

    @property
    def is_temporal(self) -> bool:
        return self in (FieldKind.DATE, FieldKind.DATETIME)

    @property
    def is_boolean(self) -> bool:
        return self in (FieldKind.BOOLEAN, FieldKind.CHECKBOX)

    @property
    def is_choice(self) -> bool:
        """Kinds whose value must be one of ``options``."""
        return self in (FieldKind.SELECT, FieldKind.RADIO, FieldKind.ENUM)


_ALIASES = {
    "datetime-local": "datetime",
    "datetime_local": "datetime",
    "text": "string",
    "str": "string",
    "int": "number",
    "integer": "number",
    "bool": "boolean",
}

_COMPOSITE = frozenset({
    FieldKind.OBJECT,
    FieldKind.ARRAY,
    FieldKind.UNION,
    FieldKind.TUPLE,
    FieldKind.RECORD,
})

_TEXTUAL = frozenset({
    FieldKind.STRING,
    FieldKind.EMAIL,
    FieldKind.URL,
    FieldKind.TEL,
    FieldKind.COLOR,
    FieldKind.PASSWORD,
    FieldKind.TEXTAREA,
})
