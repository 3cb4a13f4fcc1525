"""Tests for schema descriptions and the fluent schema API."""

import pytest

from dataknobs_forms import FieldKind, FieldSchema, PatternError, Schema, SchemaError


class TestFieldSchemaFromDict:
    """Test parsing of field descriptions."""

    def test_basic_attributes(self):
        """Test camelCase attributes map to FieldSchema attributes."""
        spec = FieldSchema.from_dict({
            "type": "string",
            "required": True,
            "minLength": 2,
            "maxLength": 10,
            "trim": True,
        })
        assert spec.kind is FieldKind.STRING
        assert spec.required is True
        assert spec.min_length == 2
        assert spec.max_length == 10
        assert spec.trim is True

    def test_kind_key_and_snake_case(self):
        """Test 'kind' as an alternative to 'type' and snake_case keys."""
        spec = FieldSchema.from_dict({"kind": "number", "min": 1, "custom_validator": print})
        assert spec.kind is FieldKind.NUMBER
        assert spec.custom_validator is print

    def test_missing_kind(self):
        with pytest.raises(SchemaError) as exc_info:
            FieldSchema.from_dict({"required": True}, "name")
        assert exc_info.value.attribute == "type"
        assert exc_info.value.path == "name"

    def test_both_type_and_kind(self):
        with pytest.raises(SchemaError):
            FieldSchema.from_dict({"type": "string", "kind": "string"})

    def test_unknown_attribute(self):
        with pytest.raises(SchemaError) as exc_info:
            FieldSchema.from_dict({"type": "string", "minimumLength": 3}, "name")
        assert exc_info.value.attribute == "minimumLength"
        assert "Field 'name' attribute 'minimumLength'" in str(exc_info.value)

    def test_error_message_keys(self):
        """Test <rule>ErrorMessage keys and the messages mapping."""
        spec = FieldSchema.from_dict({
            "type": "string",
            "requiredErrorMessage": "Name is required.",
            "min_length_error_message": "Too short.",
            "messages": {"pattern": "Letters only."},
        })
        assert spec.message("required") == "Name is required."
        assert spec.message("minLength") == "Too short."
        assert spec.message("pattern") == "Letters only."
        assert spec.message("maxLength") is None

    def test_declared_constraint_order(self):
        """Test constraint order follows description key order."""
        spec = FieldSchema.from_dict({"type": "string", "pattern": "^[a-z]+$", "minLength": 5})
        assert spec.declared_rules == ("pattern", "minLength")

        spec = FieldSchema.from_dict({"type": "string", "minLength": 5, "pattern": "^[a-z]+$"})
        assert spec.declared_rules == ("minLength", "pattern")

    def test_options_with_labels(self):
        """Test {value, label} options and the enum alias."""
        spec = FieldSchema.from_dict({
            "type": "select",
            "options": [{"value": "in", "label": "India"}, {"value": "us", "label": "USA"}],
        })
        assert spec.option_values == ("in", "us")
        assert FieldSchema.from_dict({"type": "enum", "enum": [1, 2]}).option_values == (1, 2)

    def test_options_must_be_list(self):
        with pytest.raises(SchemaError):
            FieldSchema.from_dict({"type": "select", "options": "abc"})

    def test_invalid_pattern(self):
        with pytest.raises(PatternError) as exc_info:
            FieldSchema.from_dict({"type": "string", "pattern": "([a-z]"}, "code")
        assert exc_info.value.path == "code"
        assert exc_info.value.attribute == "pattern"

    def test_nested_paths_in_errors(self):
        """Test that nested description errors name the full path."""
        with pytest.raises(SchemaError) as exc_info:
            Schema.from_dict({"address": {"type": "object", "schema": {"zip": {"type": "strin"}}}})
        assert exc_info.value.path == "address.zip"

        with pytest.raises(SchemaError) as exc_info:
            Schema.from_dict({"tags": {"type": "array", "elementType": {"type": "bogus"}}})
        assert exc_info.value.path == "tags.elementType"

        with pytest.raises(SchemaError) as exc_info:
            Schema.from_dict({"v": {"type": "union", "types": [{"type": "number"}, {}]}})
        assert exc_info.value.path == "v.types.1"

    def test_messages_are_read_only(self):
        spec = FieldSchema.from_dict({"type": "string", "requiredErrorMessage": "x"})
        with pytest.raises(TypeError):
            spec.messages["required"] = "y"

    def test_replace(self):
        """Test replace copies the field with dataclass attributes changed."""
        spec = FieldSchema.from_dict({"type": "string"})
        changed = spec.replace(required=True, min_length=2)
        assert changed.required and changed.min_length == 2
        assert not spec.required and spec.min_length is None


class TestSchema:
    """Test Schema construction and serialization."""

    def test_wrapped_and_bare_descriptions(self, signup_description):
        """Test {"fields": ...} and bare field maps."""
        wrapped = Schema.from_dict(signup_description)
        bare = Schema.from_dict(signup_description["fields"])
        assert wrapped.name == "signup"
        assert bare.name == "unnamed"
        assert list(wrapped) == list(bare) == ["email", "password", "age", "gender", "terms"]

    def test_field_named_fields(self):
        """Test a bare map may declare a field called 'fields'."""
        schema = Schema.from_dict({"fields": {"type": "string"}})
        assert list(schema) == ["fields"]

    def test_unknown_schema_attributes(self):
        with pytest.raises(SchemaError):
            Schema.from_dict({"fields": {"a": {"type": "string"}}, "version": 2})

    def test_fluent_api(self):
        """Test fluent field definitions keep insertion order."""
        schema = (
            Schema("profile")
            .field("name", "string", required=True, min_length=2)
            .field("age", FieldKind.NUMBER, min=0)
            .with_description("Profile form")
        )
        assert list(schema) == ["name", "age"]
        assert schema["name"].min_length == 2
        assert schema["age"].kind is FieldKind.NUMBER
        assert schema.description == "Profile form"
        assert "name" in schema and len(schema) == 2

    def test_immutable_once_compiled(self):
        schema = Schema().field("name", "string")
        schema.compile()
        assert schema.compiled
        with pytest.raises(SchemaError):
            schema.field("other", "string")

    def test_nested_schemas_frozen_by_compile(self):
        """Test compiling the outer schema locks nested object schemas too."""
        schema = Schema().field("address", "object", schema={"zip": {"type": "string"}})
        nested = schema["address"].schema
        assert not nested.frozen
        schema.compile()
        assert nested.frozen
        with pytest.raises(SchemaError):
            nested.field("city", "string")
        with pytest.raises(SchemaError):
            schema.with_description("changed")
        assert schema.description is None

    def test_failed_compile_leaves_schema_editable(self):
        schema = Schema().field("choice", "select")
        with pytest.raises(SchemaError):
            schema.compile()
        assert not schema.frozen
        schema.with_description("Pick one")
        assert schema.description == "Pick one"

    def test_fields_view_is_read_only(self):
        schema = Schema().field("name", "string")
        with pytest.raises(TypeError):
            schema.fields["x"] = None

    def test_to_dict_is_stable(self, signup_description):
        """Test a serialized schema parses back to the same description."""
        description = Schema.from_dict(signup_description).to_dict()
        assert description["name"] == "signup"
        assert description["fields"]["email"] == {
            "type": "email",
            "required": True,
            "trim": True,
            "lowercase": True,
            "requiredErrorMessage": "Email is required.",
        }
        assert Schema.from_dict(description).to_dict() == description

    def test_to_dict_nested_and_callables(self):
        """Test nested schemas serialize and callables are omitted."""
        schema = Schema.from_dict({
            "address": {
                "type": "object",
                "schema": {"zip": {"type": "string", "pattern": "^\\d{5}$"}},
                "customValidator": lambda value, record: None,
            },
            "tags": {"type": "array", "elementType": {"type": "string"}},
        })
        description = schema.to_dict()["fields"]
        assert "customValidator" not in description["address"]
        assert description["address"]["schema"]["fields"]["zip"]["pattern"] == "^\\d{5}$"
        assert description["tags"]["elementType"] == {"type": "string", "required": False}
