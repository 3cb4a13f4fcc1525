"""Tests for schema compilation and misconfiguration detection."""

import pytest

from dataknobs_forms import (
    CompiledSchema,
    PatternError,
    Schema,
    SchemaError,
    compile_schema,
    create_schema,
)
from dataknobs_forms.resolvers import (
    ArrayResolver,
    ObjectResolver,
    PrimitiveResolver,
    RecordResolver,
    TupleResolver,
    UnionResolver,
)


def schema_error(field: dict) -> SchemaError:
    with pytest.raises(SchemaError) as exc_info:
        create_schema({"fields": {"f": field}})
    return exc_info.value


class TestCompile:
    """Test compiling valid schemas."""

    def test_resolver_per_variant(self):
        """Test the compiler picks one resolver class per field variant."""
        compiled = create_schema({
            "name": {"type": "string"},
            "address": {"type": "object", "schema": {"zip": {"type": "string"}}},
            "tags": {"type": "array", "elementType": {"type": "string"}},
            "point": {"type": "tuple", "tupleSchemas": [{"type": "number"}, {"type": "number"}]},
            "scores": {"type": "record", "valueSchema": {"type": "number"}},
            "id": {"type": "union", "types": [{"type": "number"}, {"type": "string"}]},
        })
        assert isinstance(compiled, CompiledSchema)
        assert compiled.field_names == ("name", "address", "tags", "point", "scores", "id")
        assert isinstance(compiled.resolver("name"), PrimitiveResolver)
        assert isinstance(compiled.resolver("address"), ObjectResolver)
        assert isinstance(compiled.resolver("tags"), ArrayResolver)
        assert isinstance(compiled.resolver("point"), TupleResolver)
        assert isinstance(compiled.resolver("scores"), RecordResolver)
        assert isinstance(compiled.resolver("id"), UnionResolver)
        with pytest.raises(KeyError):
            compiled.resolver("missing")

    def test_constraints_in_declared_order(self):
        """Test constraints are pre-built in declaration order."""
        compiled = create_schema({"code": {"type": "string", "pattern": "^[A-Z]+$", "maxLength": 4}})
        codes = [c.code for c in compiled.resolver("code").constraints]
        assert codes == ["pattern", "maxLength"]

    def test_kind_implied_format(self):
        """Test email/url/tel/color imply a format check appended last."""
        compiled = create_schema({"email": {"type": "email", "maxLength": 50}})
        codes = [c.code for c in compiled.resolver("email").constraints]
        assert codes == ["maxLength", "format"]

        compiled = create_schema({"email": {"type": "email", "pattern": ".+@corp\\.com"}})
        codes = [c.code for c in compiled.resolver("email").constraints]
        assert codes == ["pattern"]

    def test_compiled_once(self):
        """Test schemas cache their compiled plan."""
        schema = Schema().field("name", "string")
        compiled = schema.compile()
        assert schema.compile() is compiled
        assert compile_schema(schema) is compiled
        assert compile_schema(compiled) is compiled

    def test_compile_rejects_other_types(self):
        with pytest.raises(SchemaError):
            compile_schema(42)

    def test_to_dict(self, signup_description):
        compiled = create_schema(signup_description)
        assert compiled.name == "signup"
        assert list(compiled.to_dict()["fields"]) == list(signup_description["fields"])


class TestMisconfiguration:
    """Test that misconfigured fields raise SchemaError at compile time."""

    @pytest.mark.parametrize("field,attribute", [
        ({"type": "select"}, "options"),
        ({"type": "radio", "options": []}, "options"),
        ({"type": "object"}, "schema"),
        ({"type": "array"}, "elementType"),
        ({"type": "tuple", "tupleSchemas": []}, "tupleSchemas"),
        ({"type": "record"}, "valueSchema"),
        ({"type": "union", "types": []}, "types"),
        ({"type": "literal"}, "value"),
        ({"type": "string", "required": "yes"}, "required"),
        ({"type": "string", "lowercase": True, "uppercase": True}, "uppercase"),
        ({"type": "string", "minLength": 5, "maxLength": 2}, "minLength"),
        ({"type": "string", "minLength": -1}, "minLength"),
        ({"type": "string", "minLength": 2.5}, "minLength"),
        ({"type": "number", "minLength": 2}, "minLength"),
        ({"type": "number", "min": 10, "max": 1}, "min"),
        ({"type": "number", "max": "ten"}, "max"),
        ({"type": "string", "min": 1}, "min"),
        ({"type": "string", "minDate": "2024-01-01"}, "minDate"),
        ({"type": "number", "pattern": "^\\d+$"}, "pattern"),
        ({"type": "string", "customValidator": "not callable"}, "customValidator"),
        ({"type": "string", "sanitize": 42}, "sanitize"),
        ({"type": "string", "requiredErrorMessage": 42}, "requiredErrorMessage"),
        ({"type": "date", "minDate": "not-a-date"}, "minDate"),
        ({"type": "date", "minDate": "2024-12-31", "maxDate": "2024-01-01"}, "minDate"),
    ])
    def test_schema_errors(self, field, attribute):
        error = schema_error(field)
        assert error.path == "f"
        assert error.attribute == attribute

    def test_unknown_format(self):
        """Test an unknown catalog format is a pattern error on the field."""
        error = schema_error({"type": "string", "format": "nope"})
        assert isinstance(error, PatternError)
        assert error.attribute == "format"

    def test_nested_misconfiguration_path(self):
        """Test errors inside composites name the nested path."""
        with pytest.raises(SchemaError) as exc_info:
            create_schema({"a": {"type": "object", "schema": {"b": {"type": "select"}}}})
        assert exc_info.value.path == "a.b"

        with pytest.raises(SchemaError) as exc_info:
            create_schema({"v": {"type": "union", "types": [{"type": "number"}, {"type": "radio"}]}})
        assert exc_info.value.path == "v.types.1"

        with pytest.raises(SchemaError) as exc_info:
            create_schema({"t": {"type": "tuple", "tupleSchemas": [{"type": "enum"}]}})
        assert exc_info.value.path == "t.0"

    def test_dynamic_date_bounds_compile(self):
        """Test 'today' and 'now' are accepted as date bounds."""
        compiled = create_schema({
            "start": {"type": "date", "minDate": "today"},
            "at": {"type": "datetime", "maxDate": "now"},
        })
        assert compiled.field_names == ("start", "at")
