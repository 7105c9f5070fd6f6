"""
apiscout: API documentation discovery, validation and example generation
=========================================================================

The ``schema_engine`` subpackage holds the schema interpretation engine;
``exceptions`` holds the shared exception hierarchy.
"""

__version__ = "0.1.0"

from apiscout.exceptions import (
    ApiScoutException,
    SchemaException,
    SchemaCompileError,
    SchemaParseError,
    FieldNotFoundError,
    PayloadException,
    PayloadParseError,
)

__all__ = [
    "__version__",
    "ApiScoutException",
    "SchemaException",
    "SchemaCompileError",
    "SchemaParseError",
    "FieldNotFoundError",
    "PayloadException",
    "PayloadParseError",
]
