"""Exception hierarchy for the dataknobs_forms package.

Two very different kinds of failure exist in this package:

- Schema errors are programmer mistakes (an unknown field kind, a ``select``
  without options, a pattern that does not compile). They are raised while a
  schema is being built or compiled and should abort startup.
- Field validation errors are ordinary, expected outcomes. They are never
  raised; they are reported in ``ValidationResult.errors``.

A third case sits in between: a custom or async validator that raises is a
fault in the validator itself, not a verdict about the data. It is wrapped in
:class:`ValidatorFault` and propagated to the caller.

Example:
    ```python
    from dataknobs_forms import SchemaError, create_schema

    try:
        create_schema({"fields": {"country": {"type": "select"}}})
    except SchemaError as e:
        print(e.path, e.attribute)   # country options
    ```
"""

from __future__ import annotations

from dataknobs_common import ConfigurationError as BaseConfigurationError, DataknobsError


class FormsError(DataknobsError):
    """Base exception for all dataknobs_forms errors.

    Carries the ``context`` dictionary of :class:`DataknobsError`, so callers
    catching any dataknobs error also catch these.
    """

    pass


class SchemaError(FormsError):
    """Raised when a schema description is malformed.

    Args:
        message: What is wrong with the field
        path: Dot/index path of the offending field (e.g. ``address.zip``)
        attribute: Schema attribute that is missing or invalid
    """

    def __init__(self, message: str, path: str | None = None, attribute: str | None = None):
        self.path = path
        self.attribute = attribute
        prefix = ""
        if path and attribute:
            prefix = f"Field '{path}' attribute '{attribute}': "
        elif path:
            prefix = f"Field '{path}': "
        elif attribute:
            prefix = f"Attribute '{attribute}': "
        super().__init__(
            f"{prefix}{message}",
            context={"path": path, "attribute": attribute},
        )


class PatternError(SchemaError):
    """Raised when a regex pattern or pattern generator is invalid."""

    pass


class ValidatorFault(FormsError):
    """Raised when a custom or async validator fails unexpectedly.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, path: str, error: BaseException):
        self.path = path
        self.error = error
        super().__init__(
            f"Validator for field '{path}' raised {type(error).__name__}: {error}",
            context={"path": path, "error_type": type(error).__name__},
        )


class ConfigError(FormsError, BaseConfigurationError):
    """Raised when a configuration or schema file cannot be loaded."""

    pass
