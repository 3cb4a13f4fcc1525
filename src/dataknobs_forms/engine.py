"""Validation orchestrator.

``validate(schema, data)`` is the entry point of the package. It compiles the
schema (once per schema instance), resolves every field of a level
concurrently, and assembles a :class:`ValidationResult` whose error map
follows declaration order no matter which validator finished first.

    ```python
    import asyncio
    from dataknobs_forms import create_schema, validate

    schema = create_schema({
        "fields": {
            "email": {"type": "email", "required": True, "trim": True, "lowercase": True},
            "age": {"type": "number", "required": True, "min": 18},
        }
    })

    result = asyncio.run(validate(schema, {"email": " Ann@Example.com ", "age": "17"}))
    result.sanitized_value   # {'email': 'ann@example.com', 'age': '17'}
    result.errors["age"].code   # 'min'
    ```

Invalid input never raises. A custom or async validator that raises is a
fault, reported as :class:`~dataknobs_forms.exceptions.ValidatorFault`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .compiler import CompiledSchema, compile_schema
from .result import ValidationResult
from .schema import Schema

logger = logging.getLogger(__name__)

SchemaLike = CompiledSchema | Schema | Mapping[str, Any]


async def validate(schema: SchemaLike, data: Any) -> ValidationResult:
    """Validate and sanitize a record against a schema.

    Args:
        schema: Compiled schema, schema, or schema description
        data: Record of raw input values; keys not in the schema are ignored

    Returns:
        ValidationResult with the sanitized record and path-keyed errors

    Raises:
        SchemaError: If ``schema`` is a malformed description
        ValidatorFault: If a custom or async validator raised
    """
    compiled = compile_schema(schema)
    if data is not None and not isinstance(data, Mapping):
        logger.warning(f"Expected a mapping to validate, got {type(data).__name__}; treating as empty")

    outcome = await compiled.level.run(data)
    result = ValidationResult(sanitized_value=outcome.value, errors=outcome.errors)
    logger.debug(
        f"Validated record against '{compiled.name}': "
        f"{len(compiled.field_names)} fields, {len(result.errors)} errors"
    )
    return result


def validate_sync(schema: SchemaLike, data: Any) -> ValidationResult:
    """Synchronous wrapper around :func:`validate`.

    Runs the validation on a fresh event loop, so it cannot be called from
    inside a running loop (await :func:`validate` there instead).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(validate(schema, data))
    raise RuntimeError("validate_sync() cannot be called from a running event loop; await validate()")


class Validator:
    """Reusable validator bound to one compiled schema.

    The validator holds no per-call state, so a single instance can serve
    concurrent ``validate()`` calls.
    """

    def __init__(self, schema: SchemaLike):
        self.schema = compile_schema(schema)

    async def validate(self, data: Any) -> ValidationResult:
        return await validate(self.schema, data)

    def validate_sync(self, data: Any) -> ValidationResult:
        return validate_sync(self.schema, data)

    async def validate_many(self, records: Sequence[Any]) -> list[ValidationResult]:
        """Validate several records concurrently; results keep input order."""
        return list(await asyncio.gather(*(self.validate(record) for record in records)))

    def __repr__(self) -> str:
        return f"Validator({self.schema!r})"
