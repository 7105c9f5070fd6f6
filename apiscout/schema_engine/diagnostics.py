# -*- coding: utf-8 -*-
"""
Diagnostic Mapper - apiscout schema interpretation engine

Validates a payload against a schema and translates the compiler's raw
issues into field-addressable ValidationErrors with remediation text.
Absent optional properties whose description carries a recommendation
cue are surfaced as ValidationWarnings on valid payloads.

``validate_payload`` never raises: schema compile failures become a
single ``custom`` error on the ``schema`` field.

Example:
    >>> from apiscout.schema_engine.diagnostics import validate_payload
    >>> report = validate_payload({"age": 12}, {
    ...     "type": "object",
    ...     "properties": {"age": {"type": "integer", "minimum": 18}},
    ... })
    >>> report.valid, report.errors[0].type.value
    (False, 'minimum')
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Union

from apiscout.exceptions import PayloadParseError, SchemaCompileError
from apiscout.schema_engine.compiler import (
    Issue,
    IssueCode,
    Validator,
    merge_all_of,
    try_compile,
)
from apiscout.schema_engine.config import SchemaEngineConfig, get_config
from apiscout.schema_engine.models import (
    ErrorType,
    NodeKind,
    SchemaNode,
    ValidationError,
    ValidationReport,
    ValidationWarning,
    json_type_name,
)

logger = logging.getLogger(__name__)

__all__ = [
    "validate_payload",
    "validate_raw_payload",
    "coerce_payload",
    "build_report",
    "compile_failure_report",
    "parse_failure_report",
    "map_issue",
    "collect_warnings",
    "field_name",
    "field_pointer",
]

_SSN_SHAPE = r"\d{3}-\d{2}-\d{4}"
_PHONE_SHAPE = r"\d{3}-\d{3}-\d{4}"

_FORMAT_FIXES: Dict[str, str] = {
    "email": 'Provide a valid email address (e.g., "user@example.com")',
    "date": 'Provide a valid date in ISO format (e.g., "2024-01-15")',
    "date-time": (
        'Provide a valid date-time in ISO format (e.g., "2024-01-15T10:30:00Z")'
    ),
    "time": 'Provide a valid time with offset (e.g., "10:30:00Z")',
    "uri": 'Provide a valid URI (e.g., "https://example.com")',
    "uuid": 'Provide a valid UUID (e.g., "123e4567-e89b-12d3-a456-426614174000")',
    "ipv4": 'Provide a valid IPv4 address (e.g., "192.168.1.1")',
    "ipv6": 'Provide a valid IPv6 address (e.g., "2001:db8::1")',
    "hostname": 'Provide a valid hostname (e.g., "example.com")',
    "ssn": 'Provide a valid SSN in format "XXX-XX-XXXX"',
    "phone": 'Provide a valid phone number in format "XXX-XXX-XXXX"',
}


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def field_name(path: Sequence[Union[str, int]]) -> str:
    """Dot-joined field path, ``root`` for the top-level value."""
    if not path:
        return "root"
    return ".".join(str(part) for part in path)


def field_pointer(path: Sequence[Union[str, int]]) -> str:
    """Slash-joined field path with a leading ``/``."""
    return "/" + "/".join(str(part) for part in path)


def _display(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


# ---------------------------------------------------------------------------
# Issue mapping
# ---------------------------------------------------------------------------


def map_issue(issue: Issue) -> ValidationError:
    """Translate one raw issue into a caller-facing ValidationError.

    Args:
        issue: Raw issue produced by a compiled Validator.

    Returns:
        ValidationError with taxonomy type and fix suggestion.
    """
    field = field_name(issue.path)
    path = field_pointer(issue.path)
    params = issue.params
    code = issue.code

    if code is IssueCode.MISSING or (
        code is IssueCode.INVALID_TYPE and params.get("received") == "undefined"
    ):
        return ValidationError(
            field=field,
            path=path,
            message=f"Missing required field: {field}",
            type=ErrorType.REQUIRED,
            fix_suggestion=f'Add the required field "{field}" to the payload',
        )

    if code is IssueCode.INVALID_TYPE:
        expected = params.get("expected")
        if expected == "integer":
            return ValidationError(
                field=field,
                path=path,
                message="Invalid type: expected integer",
                type=ErrorType.TYPE,
                expected="integer",
                fix_suggestion="Change the field type to integer",
            )
        return ValidationError(
            field=field,
            path=path,
            message=(
                f"Invalid type: expected {expected}, "
                f"received {params.get('received')}"
            ),
            type=ErrorType.TYPE,
            expected=expected,
            received=params.get("received"),
            fix_suggestion=f"Change the field type to {expected}",
        )

    if code is IssueCode.INVALID_STRING:
        return _map_string_issue(issue, field, path)

    if code in (IssueCode.TOO_SMALL, IssueCode.TOO_BIG):
        return _map_bound_issue(issue, field, path)

    if code is IssueCode.INVALID_ENUM:
        options = list(params.get("options", []))
        allowed = ", ".join(_display(option) for option in options)
        return ValidationError(
            field=field,
            path=path,
            message=f"Invalid enum value. Allowed values: {allowed}",
            type=ErrorType.ENUM,
            expected=options,
            received=params.get("received"),
            fix_suggestion=(
                f"Change the value to one of the allowed enum values: {allowed}"
            ),
        )

    if code is IssueCode.NOT_MULTIPLE_OF:
        step = params.get("multiple_of")
        return ValidationError(
            field=field,
            path=path,
            message=f"Value must be a multiple of {step}",
            type=ErrorType.CUSTOM,
            expected=step,
            received=params.get("actual"),
            fix_suggestion=f"Use a value that is a multiple of {step}",
        )

    if code is IssueCode.UNRECOGNIZED_KEYS:
        keys = list(params.get("keys", []))
        names = ", ".join(keys)
        return ValidationError(
            field=field,
            path=path,
            message=f"Unrecognized field(s): {names}",
            type=ErrorType.CUSTOM,
            received=keys,
            fix_suggestion=f"Remove the unrecognized field(s): {names}",
        )

    if code is IssueCode.INVALID_UNION:
        labels = list(params.get("expected", []))
        return ValidationError(
            field=field,
            path=path,
            message=(
                "Value does not match any of the allowed schemas: "
                + " or ".join(labels)
            ),
            type=ErrorType.CUSTOM,
            expected=labels,
            received=params.get("received"),
            fix_suggestion="Change the value to match one of the allowed schemas",
        )

    return ValidationError(
        field=field,
        path=path,
        message=issue.message or "Validation error",
        type=ErrorType.CUSTOM,
    )


def _map_string_issue(issue: Issue, field: str, path: str) -> ValidationError:
    params = issue.params
    validation = params.get("validation")
    if validation == "regex":
        pattern = params.get("pattern", "")
        if _SSN_SHAPE in pattern:
            fix = 'Use format "XXX-XX-XXXX" (e.g., "123-45-6789")'
        elif _PHONE_SHAPE in pattern:
            fix = 'Use format "XXX-XXX-XXXX" (e.g., "555-123-4567")'
        else:
            fix = f"Ensure the value matches the pattern: {pattern}"
        return ValidationError(
            field=field,
            path=path,
            message=f"Value does not match required pattern: {pattern}",
            type=ErrorType.PATTERN,
            expected=pattern,
            received=params.get("received"),
            fix_suggestion=fix,
        )

    fix = _FORMAT_FIXES.get(validation, f"Provide a value in {validation} format")
    return ValidationError(
        field=field,
        path=path,
        message=f"Invalid {validation} format",
        type=ErrorType.FORMAT,
        expected=validation,
        received=params.get("received"),
        fix_suggestion=fix,
    )


def _map_bound_issue(issue: Issue, field: str, path: str) -> ValidationError:
    params = issue.params
    origin = params.get("origin")
    limit = params.get("limit")
    actual = params.get("actual")
    lower = issue.code is IssueCode.TOO_SMALL

    if origin in ("string", "array"):
        unit = "characters" if origin == "string" else "items"
        if lower:
            message = (
                f"String must be at least {limit} characters long"
                if origin == "string"
                else f"Too few items: expected at least {limit}"
            )
            fix = f"Provide at least {limit} {unit}"
            error_type = ErrorType.MIN_LENGTH
        else:
            message = (
                f"String must be at most {limit} characters long"
                if origin == "string"
                else f"Too many items: expected at most {limit}"
            )
            fix = f"Provide at most {limit} {unit}"
            error_type = ErrorType.MAX_LENGTH
        return ValidationError(
            field=field,
            path=path,
            message=message,
            type=error_type,
            expected=limit,
            received=actual,
            fix_suggestion=fix,
        )

    inclusive = params.get("inclusive", True)
    if lower:
        relation = "greater than or equal to" if inclusive else "greater than"
        error_type = ErrorType.MINIMUM
    else:
        relation = "less than or equal to" if inclusive else "less than"
        error_type = ErrorType.MAXIMUM
    return ValidationError(
        field=field,
        path=path,
        message=f"Value must be {relation} {limit}",
        type=error_type,
        expected=limit,
        received=actual,
        fix_suggestion=f"Use a value {relation} {limit}",
    )


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


def _object_view(node: SchemaNode) -> Optional[SchemaNode]:
    if node.kind is NodeKind.ALL_OF:
        merged, _ = merge_all_of(node)
        return merged
    if node.is_object_like:
        return node
    return None


def collect_warnings(
    node: SchemaNode,
    payload: Any,
    cues: Sequence[str],
) -> List[ValidationWarning]:
    """Warnings for absent optional properties that are recommended.

    Args:
        node: Root schema node.
        payload: Validated payload.
        cues: Lower-cased words marking a description as a recommendation.

    Returns:
        One ValidationWarning per matching absent property.
    """
    view = _object_view(node)
    if view is None or not isinstance(payload, Mapping) or not cues:
        return []

    required = set(view.required_names)
    warnings: List[ValidationWarning] = []
    for name, child in (view.properties or {}).items():
        if name in required or payload.get(name) is not None:
            continue
        description = child.description or ""
        lowered = description.lower()
        if any(cue in lowered for cue in cues):
            warnings.append(ValidationWarning(
                field=name,
                message=f'Optional field "{name}" is not provided but may be useful',
                suggestion=description,
            ))
    return warnings


# ---------------------------------------------------------------------------
# Report builders
# ---------------------------------------------------------------------------


def _summary(error_count: int) -> str:
    noun = "error" if error_count == 1 else "errors"
    return f"Validation failed with {error_count} {noun}"


def build_report(
    validator: Validator,
    payload: Any,
    config: Optional[SchemaEngineConfig] = None,
) -> ValidationReport:
    """Run a compiled validator and map its issues into a report.

    Args:
        validator: Compiled validator.
        payload: Structured payload (``MISSING`` for an absent value).
        config: Optional engine configuration.

    Returns:
        ValidationReport with errors, or warnings when valid.
    """
    config = config or get_config()
    issues = validator.validate(payload)
    if not issues:
        warnings = collect_warnings(validator.node, payload, config.cue_list)
        return ValidationReport(
            valid=True,
            warnings=warnings,
            summary="Payload is valid",
        )

    if len(issues) > config.max_errors:
        logger.warning(
            "Truncating %d validation issues to the first %d",
            len(issues), config.max_errors,
        )
        issues = issues[:config.max_errors]
    errors = [map_issue(issue) for issue in issues]
    return ValidationReport(
        valid=False,
        errors=errors,
        summary=_summary(len(errors)),
    )


def compile_failure_report(error: SchemaCompileError) -> ValidationReport:
    """Report for a schema that could not be compiled."""
    return ValidationReport(
        valid=False,
        errors=[ValidationError(
            field="schema",
            path="$",
            message=f"Invalid schema: {error.message}",
            type=ErrorType.CUSTOM,
        )],
        summary="Schema validation failed - invalid schema provided",
    )


def parse_failure_report(error: PayloadParseError) -> ValidationReport:
    """Report for a string payload that is not valid JSON."""
    return ValidationReport(
        valid=False,
        errors=[ValidationError(
            field="payload",
            path="$",
            message="Payload must be valid JSON",
            type=ErrorType.CUSTOM,
            received=error.message,
            fix_suggestion="Send the payload as a JSON object or a valid JSON string",
        )],
        summary=_summary(1),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def validate_payload(
    payload: Any,
    schema: Union[SchemaNode, Mapping, Any],
    config: Optional[SchemaEngineConfig] = None,
) -> ValidationReport:
    """Validate a payload against a schema and build a report.

    Never raises: a schema that fails to compile yields an invalid report
    with a single ``custom`` error on the ``schema`` field.

    Args:
        payload: Structured payload (pass ``MISSING`` for an absent value).
        schema: SchemaNode or raw mapping in JSON-Schema spelling.
        config: Optional engine configuration.

    Returns:
        ValidationReport describing the outcome.
    """
    config = config or get_config()
    result = try_compile(schema, config)
    if result.error is not None:
        return compile_failure_report(result.error)

    report = build_report(result.validator, payload, config)
    logger.debug(
        "Validated %s payload: valid=%s errors=%d warnings=%d",
        json_type_name(payload), report.valid,
        len(report.errors), len(report.warnings),
    )
    return report


def coerce_payload(payload: Any) -> Any:
    """Parse a JSON string payload once; pass structured payloads through.

    Raises:
        PayloadParseError: If a string payload is not valid JSON.
    """
    if not isinstance(payload, str):
        return payload
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise PayloadParseError(
            f"Invalid JSON payload: {exc.msg}",
            context={"line": exc.lineno, "column": exc.colno},
            received_type="string",
        ) from exc
    except RecursionError as exc:
        raise PayloadParseError(
            "Invalid JSON payload: nesting too deep",
            received_type="string",
        ) from exc


def validate_raw_payload(
    payload: Any,
    schema: Union[SchemaNode, Mapping, Any],
    config: Optional[SchemaEngineConfig] = None,
) -> ValidationReport:
    """Coerce a possibly-stringified payload, then validate it.

    Parse failures are reported as a distinct ``custom`` error on the
    ``payload`` field instead of a schema mismatch.
    """
    try:
        value = coerce_payload(payload)
    except PayloadParseError as exc:
        logger.info("Rejected unparseable payload: %s", exc.message)
        return parse_failure_report(exc)
    return validate_payload(value, schema, config)
