"""apiscout Exception Hierarchy.

Exceptions raised by the schema interpretation engine, with rich error
context for logging and caller feedback.

Exception Hierarchy:
    ApiScoutException (base)
    ├── SchemaException
    │   ├── SchemaCompileError
    │   │   └── SchemaParseError
    │   └── FieldNotFoundError
    └── PayloadException
        └── PayloadParseError

All exceptions include rich context:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from apiscout.exceptions import SchemaCompileError
    >>> raise SchemaCompileError(
    ...     message="Unsupported schema type: 'decimal'",
    ...     schema_path="/properties/amount",
    ... )
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class ApiScoutException(Exception):
    """Base exception for all apiscout errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "APISCOUT_SCHEMA_COMPILE_ERROR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "APISCOUT"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "APISCOUT_SCHEMA_SCHEMA_COMPILE_ERROR"
        """
        class_name = self.__class__.__name__
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', class_name).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Schema Exceptions
# ==============================================================================

class SchemaException(ApiScoutException):
    """Base exception for schema interpretation errors."""
    ERROR_PREFIX = "APISCOUT_SCHEMA"


class SchemaCompileError(SchemaException):
    """A schema node has no representable interpretation.

    Raised by the compiler for unsupported types, invalid regular
    expressions, empty enums or combinators and similar shapes.

    Example:
        >>> raise SchemaCompileError(
        ...     message="Invalid pattern '[a-z': unterminated character set",
        ...     schema_path="/properties/code",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        schema_path: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize compile error.

        Args:
            message: Error message (the human-readable cause)
            context: Error context
            schema_path: JSON-pointer-like location of the offending node
            cause: Original exception that caused this error
        """
        context = context or {}
        if schema_path is not None:
            context["schema_path"] = schema_path
        if cause is not None:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)
        self.schema_path = schema_path


class SchemaParseError(SchemaCompileError):
    """Raw schema data could not be turned into a SchemaNode."""


class FieldNotFoundError(SchemaException):
    """A dot-notation field path does not exist in a schema.

    Example:
        >>> raise FieldNotFoundError(field_path="data.attributes.ssn")
    """

    def __init__(
        self,
        field_path: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        context["field_path"] = field_path
        super().__init__(f"Field not found: {field_path}", context=context)
        self.field_path = field_path


# ==============================================================================
# Payload Exceptions
# ==============================================================================

class PayloadException(ApiScoutException):
    """Base exception for payload handling errors."""
    ERROR_PREFIX = "APISCOUT_PAYLOAD"


class PayloadParseError(PayloadException):
    """A string payload is not valid JSON.

    Kept distinct from schema validation errors: a parse failure means the
    payload never reached the validator.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        received_type: Optional[str] = None,
    ):
        context = context or {}
        if received_type is not None:
            context["received_type"] = received_type
        super().__init__(message, context=context)
        self.received_type = received_type


# ==============================================================================
# Utilities
# ==============================================================================

def format_exception_chain(exc: BaseException) -> str:
    """Render an exception and its explicit causes on one line each.

    apiscout exceptions show their code, message and context (minus the
    cause entries, which appear as their own link); foreign exceptions
    show their type name and message.

    Args:
        exc: Exception to format

    Returns:
        Newline-joined chain, outermost exception first
    """
    links = []
    seen = set()
    current: Optional[BaseException] = exc

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ApiScoutException):
            details = ", ".join(
                f"{key}={value}"
                for key, value in current.context.items()
                if key not in ("cause", "cause_type")
            )
            links.append(f"{current} ({details})" if details else str(current))
        else:
            links.append(f"caused by {type(current).__name__}: {current}")
        current = current.__cause__

    return "\n".join(links)


__all__ = [
    "ApiScoutException",
    "SchemaException",
    "SchemaCompileError",
    "SchemaParseError",
    "FieldNotFoundError",
    "PayloadException",
    "PayloadParseError",
    "format_exception_chain",
]
