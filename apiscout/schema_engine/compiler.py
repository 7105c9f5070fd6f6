# -*- coding: utf-8 -*-
"""
Schema Compiler - apiscout schema interpretation engine

Turns a SchemaNode into a reusable, side-effect-free Validator backed by
``jsonschema``. The SchemaNode is translated into a Draft 7 document
(OpenAPI relaxations applied) and validated with an extended
``Draft7Validator``. Each ``jsonschema`` error is converted into a raw
``Issue`` record; the diagnostic mapper turns those into caller-facing
ValidationErrors.

OpenAPI relaxations applied during translation:
    - ``oneOf`` and type lists behave like ``anyOf`` (any branch suffices)
    - ``nullable: true`` admits ``null`` in addition to the declared shape
    - Unresolved ``$ref`` markers accept anything
    - A schema-valued ``additionalProperties`` admits extra keys unchecked
    - Draft-04 boolean ``exclusiveMinimum``/``exclusiveMaximum`` flags are
      rewritten to their numeric form
    - ``multipleOf`` tolerates floating-point rounding
    - ``allOf`` object branches are merged into one object view

Formats are checked with the Draft 7 ``FormatChecker`` plus the ``ssn`` and
``phone`` formats common in API payloads. Unknown formats are advisory.

Compilation fails with SchemaCompileError only for shapes with no
representable interpretation: unsupported type names, invalid regular
expressions, non-positive multipleOf, empty enum or combinator lists.

Example:
    >>> from apiscout.schema_engine.compiler import compile_schema, MISSING
    >>> validator = compile_schema({"type": "string", "minLength": 3})
    >>> validator.is_valid("abc")
    True
    >>> [issue.code.value for issue in validator.validate("ab")]
    ['too_small']
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import jsonschema
from jsonschema import Draft7Validator, FormatChecker, validators

from apiscout.exceptions import SchemaCompileError, format_exception_chain
from apiscout.schema_engine.config import SchemaEngineConfig, get_config
from apiscout.schema_engine.models import (
    MISSING,
    TYPE_NAMES,
    NodeKind,
    SchemaNode,
    json_type_name,
    parse_schema,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MISSING",
    "IssueCode",
    "Issue",
    "Validator",
    "CompileResult",
    "compile_schema",
    "try_compile",
    "merge_all_of",
    "check_format",
    "CHECKED_FORMATS",
    "FORMAT_CHECKER",
]

PathPart = Union[str, int]
Path = Tuple[PathPart, ...]


# ---------------------------------------------------------------------------
# Raw issues
# ---------------------------------------------------------------------------


class IssueCode(str, Enum):
    """Native diagnostic codes produced by compiled validators."""

    MISSING = "missing"
    INVALID_TYPE = "invalid_type"
    INVALID_STRING = "invalid_string"
    TOO_SMALL = "too_small"
    TOO_BIG = "too_big"
    NOT_MULTIPLE_OF = "not_multiple_of"
    INVALID_ENUM = "invalid_enum"
    UNRECOGNIZED_KEYS = "unrecognized_keys"
    INVALID_UNION = "invalid_union"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Issue:
    """One raw validation failure.

    ``params`` carries code-specific detail: ``expected``/``received`` for
    type issues, ``origin``/``limit``/``inclusive``/``actual`` for bounds,
    ``validation`` (``regex`` or a format name) and ``pattern`` for string
    issues, ``options`` for enums, ``keys`` for unrecognized keys and
    ``expected`` labels for unions.
    """

    code: IssueCode
    path: Path
    message: str
    params: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Format checks
# ---------------------------------------------------------------------------

_SSN_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{4}$")
_PHONE_PATTERN = re.compile(r"^\d{3}-\d{3}-\d{4}$")


def _build_format_checker() -> FormatChecker:
    checker = FormatChecker(formats=())
    checker.checkers.update(Draft7Validator.FORMAT_CHECKER.checkers)

    @checker.checks("ssn")
    def _is_ssn(instance: object) -> bool:
        if not isinstance(instance, str):
            return True
        return _SSN_PATTERN.match(instance) is not None

    @checker.checks("phone")
    def _is_phone(instance: object) -> bool:
        if not isinstance(instance, str):
            return True
        return _PHONE_PATTERN.match(instance) is not None

    return checker


FORMAT_CHECKER = _build_format_checker()

CHECKED_FORMATS = frozenset(FORMAT_CHECKER.checkers)


def check_format(fmt: str, value: Any) -> bool:
    """Check a value against a named format.

    Unknown formats are advisory and always pass.
    """
    return FORMAT_CHECKER.conforms(value, fmt)


# ---------------------------------------------------------------------------
# Validator class
# ---------------------------------------------------------------------------


def _is_multiple(value: float, divisor: float) -> bool:
    quotient = value / divisor
    return abs(quotient - round(quotient)) <= 1e-9 * max(1.0, abs(quotient))


def _multiple_of(validator, step, instance, schema):
    if not validator.is_type(instance, "number"):
        return
    if not _is_multiple(instance, step):
        yield jsonschema.ValidationError(f"{instance!r} is not a multiple of {step}")


def _allow_null(keyword):
    """Let ``nullable`` documents accept ``None`` for a shape keyword."""
    def _validate(validator, value, instance, schema):
        if instance is None and schema.get("nullable") is True:
            return
        yield from keyword(validator, value, instance, schema)
    return _validate


_SchemaValidator = validators.extend(
    Draft7Validator,
    validators={
        "multipleOf": _multiple_of,
        "type": _allow_null(Draft7Validator.VALIDATORS["type"]),
        "enum": _allow_null(Draft7Validator.VALIDATORS["enum"]),
        "anyOf": _allow_null(Draft7Validator.VALIDATORS["anyOf"]),
        "allOf": _allow_null(Draft7Validator.VALIDATORS["allOf"]),
    },
)


# ---------------------------------------------------------------------------
# allOf merging
# ---------------------------------------------------------------------------


def merge_all_of(node: SchemaNode) -> Tuple[Optional[SchemaNode], List[SchemaNode]]:
    """Split an allOf node into one merged object view and the rest.

    Object-like branches (and the node's own object keywords) are merged:
    properties are combined with later branches overriding earlier ones on
    name collision, and ``required`` lists are unioned. Nested allOf
    branches are flattened. Branches that are not object-like are
    returned unchanged and must hold on their own.

    Args:
        node: A node carrying ``allOf``.

    Returns:
        Tuple of (merged object node or None, remaining branches).
    """
    properties: Dict[str, SchemaNode] = {}
    required: List[str] = []
    closed = False
    found_object = False
    others: List[SchemaNode] = []

    def _absorb(part: SchemaNode) -> None:
        nonlocal closed, found_object
        found_object = True
        properties.update(part.properties or {})
        for name in part.required_names:
            if name not in required:
                required.append(name)
        if part.additional_properties is False:
            closed = True

    if node.is_object_like:
        _absorb(node)

    pending = list(node.all_of or [])
    while pending:
        branch = pending.pop(0)
        if branch.all_of is not None and branch.kind is NodeKind.ALL_OF:
            pending = list(branch.all_of) + pending
            if branch.is_object_like:
                _absorb(branch)
            continue
        if branch.is_object_like and branch.kind in (NodeKind.OBJECT, NodeKind.UNTYPED):
            _absorb(branch)
        else:
            others.append(branch)

    if not found_object:
        return None, others
    merged = SchemaNode(
        type_="object",
        properties=properties,
        required=required,
        additional_properties=False if closed else None,
    )
    return merged, others


# ---------------------------------------------------------------------------
# Error conversion
# ---------------------------------------------------------------------------

_BOUND_KEYWORDS: Dict[str, Tuple[IssueCode, str, bool]] = {
    "minimum": (IssueCode.TOO_SMALL, "number", True),
    "exclusiveMinimum": (IssueCode.TOO_SMALL, "number", False),
    "maximum": (IssueCode.TOO_BIG, "number", True),
    "exclusiveMaximum": (IssueCode.TOO_BIG, "number", False),
    "minLength": (IssueCode.TOO_SMALL, "string", True),
    "maxLength": (IssueCode.TOO_BIG, "string", True),
    "minItems": (IssueCode.TOO_SMALL, "array", True),
    "maxItems": (IssueCode.TOO_BIG, "array", True),
}

# Issues at a union's own path that rule a branch out entirely.
_SHAPE_CODES = frozenset({
    IssueCode.INVALID_TYPE,
    IssueCode.MISSING,
    IssueCode.INVALID_UNION,
})


def _label(document: Mapping) -> str:
    """Short human label of the shape a translated document expects."""
    if "type" in document:
        label = document["type"]
    elif "anyOf" in document:
        label = " | ".join(_label(branch) for branch in document["anyOf"])
    elif "allOf" in document:
        label = " & ".join(_label(part) for part in document["allOf"])
    else:
        label = "any"
    if document.get("nullable") is True:
        label = f"{label} | null"
    return label


def _accepts_missing(document: Mapping) -> bool:
    if any(key in document for key in ("type", "enum", "anyOf")):
        return False
    return all(_accepts_missing(part) for part in document.get("allOf", ()))


def _missing_issues(error: jsonschema.ValidationError, path: Path) -> List[Issue]:
    properties = error.schema.get("properties", {})
    return [
        Issue(
            IssueCode.MISSING,
            path + (name,),
            "Required",
            {
                "expected": _label(properties[name]) if name in properties else "any",
                "received": "undefined",
            },
        )
        for name in error.validator_value
        if name not in error.instance
    ]


def _union_issues(error: jsonschema.ValidationError, path: Path) -> List[Issue]:
    """Report the closest failing branch, or a single union mismatch."""
    by_branch: Dict[Any, List[jsonschema.ValidationError]] = {}
    for suberror in error.context or ():
        by_branch.setdefault(suberror.relative_schema_path[0], []).append(suberror)
    for suberrors in by_branch.values():
        issues = _collect(suberrors)
        if not any(
            issue.path == path and issue.code in _SHAPE_CODES for issue in issues
        ):
            return issues
    return [Issue(
        IssueCode.INVALID_UNION,
        path,
        "Invalid input",
        {
            "expected": [_label(branch) for branch in error.validator_value],
            "received": json_type_name(error.instance),
        },
    )]


def _convert(error: jsonschema.ValidationError, path: Path) -> List[Issue]:
    keyword = error.validator
    value = error.validator_value
    instance = error.instance

    if keyword == "type":
        return [Issue(
            IssueCode.INVALID_TYPE,
            path,
            error.message,
            {"expected": value, "received": json_type_name(instance)},
        )]
    if keyword in _BOUND_KEYWORDS:
        code, origin, inclusive = _BOUND_KEYWORDS[keyword]
        actual = instance if origin == "number" else len(instance)
        return [Issue(
            code,
            path,
            error.message,
            {"origin": origin, "limit": value, "inclusive": inclusive, "actual": actual},
        )]
    if keyword == "multipleOf":
        return [Issue(
            IssueCode.NOT_MULTIPLE_OF,
            path,
            error.message,
            {"multiple_of": value, "actual": instance},
        )]
    if keyword == "pattern":
        return [Issue(
            IssueCode.INVALID_STRING,
            path,
            error.message,
            {"validation": "regex", "pattern": value, "received": instance},
        )]
    if keyword == "format":
        return [Issue(
            IssueCode.INVALID_STRING,
            path,
            error.message,
            {"validation": value, "received": instance},
        )]
    if keyword == "enum":
        return [Issue(
            IssueCode.INVALID_ENUM,
            path,
            error.message,
            {"options": list(value), "received": instance},
        )]
    if keyword == "additionalProperties":
        declared = error.schema.get("properties", {})
        return [Issue(
            IssueCode.UNRECOGNIZED_KEYS,
            path,
            error.message,
            {"keys": [key for key in instance if key not in declared]},
        )]
    if keyword == "anyOf":
        return _union_issues(error, path)
    return [Issue(IssueCode.CUSTOM, path, error.message, {"keyword": keyword})]


def _collect(errors: Iterable[jsonschema.ValidationError]) -> List[Issue]:
    """Convert jsonschema errors into issues in document order."""
    issues: List[Issue] = []
    reported_required = set()
    for error in errors:
        path = tuple(error.absolute_path)
        if error.validator == "required":
            # One error per missing name; the first reports them all.
            key = (path, id(error.schema))
            if key not in reported_required:
                reported_required.add(key)
                issues.extend(_missing_issues(error, path))
            continue
        issues.extend(_convert(error, path))

    unique: List[Issue] = []
    seen = set()
    for issue in issues:
        key = (issue.code, issue.path, issue.message)
        if key not in seen:
            seen.add(key)
            unique.append(issue)

    # Enum membership is only reported when the value has the right shape.
    shaped = {issue.path for issue in unique if issue.code is not IssueCode.INVALID_ENUM}
    return [
        issue for issue in unique
        if issue.code is not IssueCode.INVALID_ENUM or issue.path not in shaped
    ]


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class Validator:
    """Compiled, reusable validator for one SchemaNode.

    Holds no mutable state; safe to cache and share across threads.
    """

    __slots__ = ("_node", "_document", "_validator")

    def __init__(
        self,
        node: SchemaNode,
        document: Dict[str, Any],
        format_checker: Optional[FormatChecker],
    ) -> None:
        self._node = node
        self._document = document
        self._validator = _SchemaValidator(document, format_checker=format_checker)

    @property
    def node(self) -> SchemaNode:
        return self._node

    @property
    def document(self) -> Dict[str, Any]:
        """The Draft 7 document the payload is validated against."""
        return self._document

    def validate(self, value: Any) -> List[Issue]:
        """Return every raw issue found in ``value`` (empty when valid).

        Pass ``MISSING`` to validate an absent value.
        """
        if value is MISSING:
            if _accepts_missing(self._document):
                return []
            return [Issue(
                IssueCode.MISSING,
                (),
                "Required",
                {"expected": _label(self._document), "received": "undefined"},
            )]
        return _collect(self._validator.iter_errors(value))

    def is_valid(self, value: Any) -> bool:
        if value is MISSING:
            return _accepts_missing(self._document)
        return self._validator.is_valid(value)


@dataclass(frozen=True)
class CompileResult:
    """Result-typed outcome of compilation: a validator or an error."""

    validator: Optional[Validator] = None
    error: Optional[SchemaCompileError] = None

    @property
    def ok(self) -> bool:
        return self.validator is not None


class _Translator:
    """Recursive SchemaNode -> Draft 7 document translation."""

    def translate(self, node: SchemaNode, pointer: str) -> Dict[str, Any]:
        document = self._translate_kind(node, pointer)
        if node.enum is not None:
            if not node.enum:
                raise SchemaCompileError(
                    "enum must list at least one value",
                    schema_path=f"{pointer}/enum",
                )
            document["enum"] = list(node.enum)
        if node.nullable:
            document["nullable"] = True
        return document

    def _translate_kind(self, node: SchemaNode, pointer: str) -> Dict[str, Any]:
        for name in node.type_names:
            if name not in TYPE_NAMES:
                raise SchemaCompileError(
                    f"Unsupported schema type: '{name}'",
                    schema_path=f"{pointer}/type",
                )

        kind = node.kind
        if kind is NodeKind.REF:
            logger.debug(
                "Unresolved reference %s at %s accepted without validation",
                node.ref, pointer or "/",
            )
            return {}
        if kind is NodeKind.ALL_OF:
            return self._all_of(node, pointer)
        if kind in (NodeKind.ANY_OF, NodeKind.ONE_OF):
            return self._union(node, pointer)
        if kind in (NodeKind.NULL, NodeKind.BOOLEAN):
            return {"type": kind.value}
        if kind in (NodeKind.INTEGER, NodeKind.NUMBER):
            return self._number(node, pointer, kind.value)
        if kind is NodeKind.STRING:
            return self._string(node, pointer)
        if kind is NodeKind.ARRAY:
            return self._array(node, pointer, {"type": "array"})
        if kind is NodeKind.OBJECT:
            return self._object(node, pointer, {"type": "object"})

        document: Dict[str, Any] = {}
        if node.is_object_like or node.additional_properties is False:
            self._object(node, pointer, document)
        if node.items is not None or node.min_items is not None or node.max_items is not None:
            self._array(node, pointer, document)
        return document

    def _number(self, node: SchemaNode, pointer: str, type_name: str) -> Dict[str, Any]:
        document: Dict[str, Any] = {"type": type_name}
        minimum = node.minimum
        maximum = node.maximum
        exclusive_minimum = None
        exclusive_maximum = None

        # Draft-04 boolean form turns the inclusive bound strict.
        if isinstance(node.exclusive_minimum, bool):
            if node.exclusive_minimum and minimum is not None:
                exclusive_minimum, minimum = minimum, None
        else:
            exclusive_minimum = node.exclusive_minimum
        if isinstance(node.exclusive_maximum, bool):
            if node.exclusive_maximum and maximum is not None:
                exclusive_maximum, maximum = maximum, None
        else:
            exclusive_maximum = node.exclusive_maximum

        if node.multiple_of is not None and not node.multiple_of > 0:
            raise SchemaCompileError(
                f"multipleOf must be greater than 0, got {node.multiple_of}",
                schema_path=f"{pointer}/multipleOf",
            )
        for keyword, value in (
            ("minimum", minimum),
            ("exclusiveMinimum", exclusive_minimum),
            ("maximum", maximum),
            ("exclusiveMaximum", exclusive_maximum),
            ("multipleOf", node.multiple_of),
        ):
            if value is not None:
                document[keyword] = value
        return document

    def _string(self, node: SchemaNode, pointer: str) -> Dict[str, Any]:
        document: Dict[str, Any] = {"type": "string"}
        if node.min_length is not None:
            document["minLength"] = node.min_length
        if node.max_length is not None:
            document["maxLength"] = node.max_length
        if node.pattern is not None:
            try:
                re.compile(node.pattern)
            except re.error as exc:
                raise SchemaCompileError(
                    f"Invalid pattern '{node.pattern}': {exc}",
                    schema_path=f"{pointer}/pattern",
                    cause=exc,
                ) from exc
            document["pattern"] = node.pattern
        if node.format is not None:
            if node.format not in CHECKED_FORMATS:
                logger.debug(
                    "Advisory format '%s' at %s is not checked",
                    node.format, pointer or "/",
                )
            document["format"] = node.format
        return document

    def _array(
        self, node: SchemaNode, pointer: str, document: Dict[str, Any],
    ) -> Dict[str, Any]:
        if node.min_items is not None:
            document["minItems"] = node.min_items
        if node.max_items is not None:
            document["maxItems"] = node.max_items
        if node.items is not None:
            document["items"] = self.translate(node.items, f"{pointer}/items")
        return document

    def _object(
        self, node: SchemaNode, pointer: str, document: Dict[str, Any],
    ) -> Dict[str, Any]:
        required = list(dict.fromkeys(node.required_names))
        if required:
            document["required"] = required
        if node.properties:
            document["properties"] = {
                name: self.translate(child, f"{pointer}/properties/{name}")
                for name, child in node.properties.items()
            }
        # An additionalProperties schema admits extras without deep checks.
        if node.additional_properties is False:
            document["additionalProperties"] = False
        return document

    def _union(self, node: SchemaNode, pointer: str) -> Dict[str, Any]:
        branches = node.branches
        keyword = "anyOf" if node.any_of is not None else "oneOf"
        if not branches:
            raise SchemaCompileError(
                f"{keyword} must list at least one schema",
                schema_path=f"{pointer}/{keyword}",
            )
        return {"anyOf": [
            self.translate(branch, f"{pointer}/{keyword}/{index}")
            for index, branch in enumerate(branches)
        ]}

    def _all_of(self, node: SchemaNode, pointer: str) -> Dict[str, Any]:
        if not node.all_of:
            raise SchemaCompileError(
                "allOf must list at least one schema",
                schema_path=f"{pointer}/allOf",
            )
        merged, others = merge_all_of(node)
        parts: List[Dict[str, Any]] = []
        if merged is not None:
            parts.append(self._object(merged, pointer, {"type": "object"}))
        for index, branch in enumerate(others):
            parts.append(self.translate(branch, f"{pointer}/allOf/{index}"))
        if len(parts) == 1:
            return parts[0]
        return {"allOf": parts}


def compile_schema(
    schema: Union[SchemaNode, Mapping],
    config: Optional[SchemaEngineConfig] = None,
) -> Validator:
    """Compile a schema into a reusable Validator.

    Args:
        schema: SchemaNode or raw mapping in JSON-Schema spelling.
        config: Optional engine configuration (defaults to the singleton).

    Returns:
        Compiled Validator.

    Raises:
        SchemaCompileError: If the schema has no representable
            interpretation (SchemaParseError for unusable raw data).
    """
    config = config or get_config()
    node = parse_schema(schema, max_nesting=config.max_schema_nesting)
    document = _Translator().translate(node, "")
    try:
        _SchemaValidator.check_schema(document)
    except jsonschema.SchemaError as exc:
        location = "/".join(str(part) for part in exc.path)
        raise SchemaCompileError(
            exc.message,
            schema_path=f"/{location}" if location else "",
            cause=exc,
        ) from exc
    format_checker = FORMAT_CHECKER if config.enable_format_checks else None
    return Validator(node, document, format_checker)


def try_compile(
    schema: Union[SchemaNode, Mapping, Any],
    config: Optional[SchemaEngineConfig] = None,
) -> CompileResult:
    """Compile a schema, returning failures as a value instead of raising.

    Args:
        schema: SchemaNode or raw mapping in JSON-Schema spelling.
        config: Optional engine configuration.

    Returns:
        CompileResult holding either the validator or the compile error.
    """
    try:
        return CompileResult(validator=compile_schema(schema, config))
    except SchemaCompileError as exc:
        logger.warning("Schema compilation failed: %s", format_exception_chain(exc))
        return CompileResult(error=exc)
