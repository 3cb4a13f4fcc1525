"""Factory classes for building schemas from configuration."""

import logging
from pathlib import Path
from typing import Any, Union

from dataknobs_config import FactoryBase

from .compiler import CompiledSchema, compile_schema
from .config import load_description
from .engine import Validator
from .exceptions import SchemaError
from .schema import Schema

logger = logging.getLogger(__name__)


class SchemaFactory(FactoryBase):
    """Factory for creating compiled schemas from configuration.

    Configuration Options:
        name (str): Schema name
        description (str): Optional schema description
        fields (dict): Field descriptions keyed by field name, in
            validation order
        path (str): Alternatively, a YAML/JSON file holding the description

    Example Configuration:
        schemas:
          - name: signup
            factory: schema
            description: Signup form
            fields:
              email:
                type: email
                required: true
                trim: true
                lowercase: true
                requiredErrorMessage: Email is required.
              age:
                type: number
                required: true
                min: 18
                max: 120
    """

    def create(self, **config: Any) -> CompiledSchema:
        """Create a CompiledSchema from configuration.

        Args:
            **config: Schema configuration

        Returns:
            CompiledSchema instance
        """
        config.pop("factory", None)
        path = config.pop("path", None)
        if path is not None:
            description = load_description(path)
            description.update({k: v for k, v in config.items() if k in ("name", "description")})
        else:
            description = config

        if not isinstance(description.get("fields"), dict):
            raise SchemaError("Schema configuration needs a 'fields' mapping", attribute="fields")

        name = description.get("name", "unnamed")
        logger.info(f"Creating schema: {name}")
        return compile_schema(Schema.from_dict(description))


class ValidatorFactory(FactoryBase):
    """Factory for creating Validator instances bound to a configured schema."""

    def __init__(self, schemas: SchemaFactory | None = None):
        self.schemas = schemas or schema_factory

    def create(self, **config: Any) -> Validator:
        """Create a Validator from the same configuration SchemaFactory accepts."""
        logger.info("Creating Validator")
        return Validator(self.schemas.create(**config))


def load_schema(path: Union[str, Path]) -> CompiledSchema:
    """Load and compile a schema description from a YAML or JSON file."""
    return compile_schema(Schema.from_dict(load_description(path)))


# Create singleton instances for registration
schema_factory = SchemaFactory()
validator_factory = ValidatorFactory(schema_factory)
