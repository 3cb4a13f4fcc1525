"""DataKnobs Forms Package - Declarative form validation and sanitization.

The `dataknobs-forms` package validates and sanitizes form-style records
against a declarative schema. Schemas are plain data (the JSON description
format form front-ends already speak) or built fluently; they are compiled
once into a plan of per-field resolvers and then applied to any number of
records.

Modules:
    schema: Schema and FieldSchema definitions, description parsing
    kinds: The closed set of field kinds
    compiler: Schema compilation into resolver trees
    engine: The validate() entry point and reusable Validator
    resolvers: Field validators and composite resolvers
    constraints: Constraint rules (lengths, bounds, patterns, options)
    coercer: Conversion of sanitized input to each kind's type
    patterns: Regex pattern catalog and builder
    messages: Rule codes and default error messages
    result: ValidationResult and ErrorDescriptor
    config: Process-wide settings and description file loading
    factory: Factories building schemas from configuration
    adapters: Error shapes and resolvers for form-state managers
    exceptions: Custom exceptions for error handling

Quick Examples:

    Validate a record:

    ```python
    import asyncio
    from dataknobs_forms import create_schema, validate

    schema = create_schema({
        "fields": {
            "email": {
                "type": "email",
                "required": True,
                "trim": True,
                "lowercase": True,
                "requiredErrorMessage": "Email is required.",
            },
            "age": {"type": "number", "required": True, "min": 18, "max": 120},
        }
    })

    result = asyncio.run(validate(schema, {"email": "  USER@Example.COM ", "age": "30"}))
    result.valid              # True
    result.sanitized_value    # {'email': 'user@example.com', 'age': 30}
    ```

    Nested objects and arrays report dot paths:

    ```python
    from dataknobs_forms import Schema, validate_sync

    schema = Schema("order").field(
        "items", "array", required=True, minLength=1,
        elementType={"type": "object", "schema": {
            "sku": {"type": "string", "required": True},
            "qty": {"type": "number", "min": 1},
        }},
    )
    result = validate_sync(schema, {"items": [{"sku": "A1", "qty": 0}]})
    result.errors["items.0.qty"].code   # 'min'
    ```

    Cross-field and async checks:

    ```python
    async def email_is_free(value, record):
        if await users.exists(value):
            return "Email already registered."

    schema = create_schema({
        "password": {"type": "password", "required": True, "minLength": 8},
        "confirm": {
            "type": "password",
            "customValidator": lambda v, rec: None if v == rec["password"] else "Passwords do not match.",
        },
        "email": {"type": "email", "asyncValidator": email_is_free},
    })
    ```

Installation:

    ```bash
    pip install dataknobs-forms
    ```
"""

from . import adapters, exceptions
from .compiler import CompiledSchema, SchemaCompiler, compile_schema, create_schema
from .config import FormsSettings, configure, get_settings, load_description
from .engine import Validator, validate, validate_sync
from .exceptions import (
    ConfigError,
    FormsError,
    PatternError,
    SchemaError,
    ValidatorFault,
)
from .factory import SchemaFactory, ValidatorFactory, load_schema, schema_factory, validator_factory
from .kinds import FieldKind
from .patterns import (
    FORMATS,
    RegexPattern,
    available_generators,
    build_regex,
    register_format,
    register_generator,
)
from .result import ErrorDescriptor, ValidationResult
from .schema import MISSING, FieldSchema, Schema

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Schema",
    "FieldSchema",
    "FieldKind",
    "MISSING",
    "CompiledSchema",
    "SchemaCompiler",
    "compile_schema",
    "create_schema",
    # Validation
    "validate",
    "validate_sync",
    "Validator",
    "ValidationResult",
    "ErrorDescriptor",
    # Patterns
    "RegexPattern",
    "build_regex",
    "register_generator",
    "register_format",
    "FORMATS",
    "available_generators",
    # Configuration
    "FormsSettings",
    "configure",
    "get_settings",
    "load_description",
    # Factory
    "SchemaFactory",
    "ValidatorFactory",
    "schema_factory",
    "validator_factory",
    "load_schema",
    # Modules
    "adapters",
    "exceptions",
    # Exceptions
    "FormsError",
    "SchemaError",
    "PatternError",
    "ValidatorFault",
    "ConfigError",
]
