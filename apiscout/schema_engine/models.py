# -*- coding: utf-8 -*-
"""
Schema Engine Data Models - apiscout schema interpretation engine

Pydantic v2 data models shared by the compiler, example generator,
diagnostic mapper and report formatter.

Enumerations:
    - NodeKind: Tag of a schema node (scalar types, combinators, $ref)
    - ErrorType: Validation error taxonomy

Schema Models:
    - SchemaNode: Immutable, recursively nested schema description
    - parse_schema: Raw mapping -> SchemaNode (cycle-safe, depth-bounded)

Report Models:
    - ValidationError, ValidationWarning, ValidationReport

Option Models:
    - GenerationOptions

Helpers:
    - MISSING sentinel for absent values
    - json_type_name
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from apiscout.exceptions import SchemaParseError
from apiscout.schema_engine.config import get_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _MissingType:
    """Marker for a value that is absent, as opposed to present-but-null."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _MissingType()


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a Python value.

    Integers and floats are both reported as ``number``; absent values
    are reported as ``undefined``.
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


# =============================================================================
# Enumerations
# =============================================================================


TYPE_NAMES = frozenset(
    {"null", "boolean", "integer", "number", "string", "array", "object"}
)


class NodeKind(str, Enum):
    """Tag of a schema node."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    ALL_OF = "allOf"
    ANY_OF = "anyOf"
    ONE_OF = "oneOf"
    REF = "$ref"
    UNTYPED = "untyped"


class ErrorType(str, Enum):
    """Taxonomy of validation errors reported to callers."""

    REQUIRED = "required"
    TYPE = "type"
    FORMAT = "format"
    PATTERN = "pattern"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    ENUM = "enum"
    CUSTOM = "custom"


# =============================================================================
# Schema node
# =============================================================================


Number = Union[int, float]


class SchemaNode(BaseModel):
    """Immutable description of an expected value shape.

    Field names follow Python conventions; the JSON-Schema spelling is
    accepted through aliases (``minLength``, ``additionalProperties``,
    ``$ref`` ...). Unknown keys are kept in ``model_extra`` and never
    interpreted.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="allow",
    )

    type_: Optional[Union[str, List[str]]] = Field(default=None, alias="type")
    title: Optional[str] = None
    description: Optional[str] = None
    example: Any = None
    default: Any = None
    enum: Optional[List[Any]] = None
    ref: Optional[str] = Field(default=None, alias="$ref")
    nullable: bool = False

    # -- string --------------------------------------------------------------
    pattern: Optional[str] = None
    format: Optional[str] = None
    min_length: Optional[int] = Field(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(default=None, alias="maxLength", ge=0)

    # -- number / integer ----------------------------------------------------
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None
    exclusive_minimum: Optional[Union[bool, Number]] = Field(
        default=None, alias="exclusiveMinimum",
    )
    exclusive_maximum: Optional[Union[bool, Number]] = Field(
        default=None, alias="exclusiveMaximum",
    )
    multiple_of: Optional[Number] = Field(default=None, alias="multipleOf")

    # -- array ---------------------------------------------------------------
    items: Optional[SchemaNode] = None
    min_items: Optional[int] = Field(default=None, alias="minItems", ge=0)
    max_items: Optional[int] = Field(default=None, alias="maxItems", ge=0)

    # -- object --------------------------------------------------------------
    properties: Optional[Dict[str, SchemaNode]] = None
    required: Optional[List[str]] = None
    additional_properties: Optional[Union[bool, SchemaNode]] = Field(
        default=None, alias="additionalProperties",
    )

    # -- combinators ---------------------------------------------------------
    all_of: Optional[List[SchemaNode]] = Field(default=None, alias="allOf")
    any_of: Optional[List[SchemaNode]] = Field(default=None, alias="anyOf")
    one_of: Optional[List[SchemaNode]] = Field(default=None, alias="oneOf")

    @field_validator("required", mode="before")
    @classmethod
    def _drop_boolean_required(cls, v: Any) -> Any:
        # Swagger 2 property-level ``required: true`` carries no key list.
        if isinstance(v, bool):
            return None
        return v

    @field_validator(
        "minimum", "maximum", "exclusive_minimum", "exclusive_maximum",
        "multiple_of",
    )
    @classmethod
    def _require_finite(cls, v: Any) -> Any:
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"numeric keyword must be finite, got {v}")
        return v

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def has(self, field_name: str) -> bool:
        """Whether a field was explicitly present, even if set to null."""
        return field_name in self.model_fields_set

    @property
    def type_names(self) -> List[str]:
        """Declared type names as a list (empty when untyped)."""
        if self.type_ is None:
            return []
        if isinstance(self.type_, str):
            return [self.type_]
        return list(self.type_)

    @property
    def kind(self) -> NodeKind:
        """Tag used to dispatch compilation."""
        if self.ref is not None:
            return NodeKind.REF
        if self.all_of is not None:
            return NodeKind.ALL_OF
        if self.any_of is not None:
            return NodeKind.ANY_OF
        if self.one_of is not None:
            return NodeKind.ONE_OF
        names = self.type_names
        if len(names) > 1:
            return NodeKind.ANY_OF
        if len(names) == 1 and names[0] in TYPE_NAMES:
            return NodeKind(names[0])
        return NodeKind.UNTYPED

    @property
    def branches(self) -> List[SchemaNode]:
        """Branches of a union node.

        Explicit ``anyOf``/``oneOf`` lists are returned as-is; a type list
        expands to one single-typed copy of this node per listed type.
        """
        if self.any_of is not None:
            return list(self.any_of)
        if self.one_of is not None:
            return list(self.one_of)
        names = self.type_names
        if len(names) > 1:
            return [self.model_copy(update={"type_": name}) for name in names]
        return []

    @property
    def required_names(self) -> List[str]:
        return list(self.required or [])

    @property
    def is_object_like(self) -> bool:
        """Object-typed, or untyped but carrying object keywords."""
        if "object" in self.type_names:
            return True
        return not self.type_names and (
            self.properties is not None or self.required is not None
        )


SchemaNode.model_rebuild()


def _store(target: Any, key: Any, value: Any) -> None:
    if isinstance(target, list):
        target.append(value)
    else:
        target[key] = value


def _copy_acyclic(
    raw: Mapping, max_nesting: int, truncate: bool,
) -> Dict[str, Any]:
    """Copy raw schema data, replacing back-edges with ``$ref`` markers.

    The walk keeps its own stack so deeply nested input never exhausts
    the interpreter's recursion limit. Containers nested deeper than
    ``max_nesting`` either abort the copy or, with ``truncate``, are
    replaced by empty ones.
    """
    root: Dict[str, Any] = {}
    ancestors: Dict[int, str] = {id(raw): "#"}
    stack = [(id(raw), iter(raw.items()), root, "#")]
    while stack:
        marker, entries, target, pointer = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            del ancestors[marker]
            continue

        key, value = entry
        if not isinstance(value, (Mapping, list)):
            _store(target, key, value)
            continue

        is_mapping = isinstance(value, Mapping)
        if id(value) in ancestors:
            _store(target, key, {"$ref": ancestors[id(value)]} if is_mapping else [])
            continue

        child_pointer = f"{pointer}/{key}"
        if len(stack) >= max_nesting:
            if not truncate:
                raise SchemaParseError(
                    f"Schema nesting exceeds {max_nesting} levels",
                    schema_path=child_pointer[1:],
                )
            _store(target, key, {} if is_mapping else [])
            continue

        copy: Any = {} if is_mapping else []
        _store(target, key, copy)
        ancestors[id(value)] = child_pointer
        children = value.items() if is_mapping else enumerate(value)
        stack.append((id(value), iter(children), copy, child_pointer))
    return root


def parse_schema(
    raw: Any,
    max_nesting: Optional[int] = None,
    truncate: bool = False,
) -> SchemaNode:
    """Build a SchemaNode from raw schema data.

    Cyclic mappings (self-referential schemas that were dereferenced in
    place) are cut at the back-edge and replaced by an unresolved
    reference marker pointing at the ancestor.

    Args:
        raw: A mapping in JSON-Schema spelling, or an existing SchemaNode.
        max_nesting: Deepest allowed container nesting. Defaults to
            ``max_schema_nesting`` from the engine configuration.
        truncate: Replace containers beyond ``max_nesting`` with empty
            ones instead of rejecting the schema.

    Returns:
        Parsed SchemaNode.

    Raises:
        SchemaParseError: If ``raw`` is not a mapping, nests deeper than
            ``max_nesting`` (without ``truncate``) or has unusable
            attribute shapes.
    """
    if isinstance(raw, SchemaNode):
        return raw
    if not isinstance(raw, Mapping):
        raise SchemaParseError(
            f"Schema must be an object, got {json_type_name(raw)}",
            schema_path="",
        )
    if max_nesting is None:
        max_nesting = get_config().max_schema_nesting
    acyclic = _copy_acyclic(raw, max(max_nesting, 1), truncate)
    try:
        return SchemaNode.model_validate(acyclic)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = "/".join(str(part) for part in first.get("loc", ()))
        raise SchemaParseError(
            f"Malformed schema at '/{location}': {first.get('msg', 'invalid value')}",
            schema_path=f"/{location}",
            cause=exc,
        ) from exc


# =============================================================================
# Report models
# =============================================================================


class ValidationError(BaseModel):
    """A single field-addressable validation failure.

    Attributes:
        field: Dot-joined path of the failing value (``root`` for the top).
        path: Slash-joined path with a leading ``/``.
        message: Human-readable description.
        type: Taxonomy kind.
        expected: Expected type, bound, pattern or allowed values.
        received: Offending value or its type name.
        fix_suggestion: Best-effort remediation text.
    """

    field: str = Field(..., description="Dot-joined field path")
    path: str = Field(..., description="Slash-joined field path")
    message: str = Field(..., description="Human-readable message")
    type: ErrorType = Field(..., description="Error taxonomy kind")
    expected: Any = Field(default=None, description="Expected value or type")
    received: Any = Field(default=None, description="Received value or type")
    fix_suggestion: Optional[str] = Field(
        default=None, description="Remediation text",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting optional attributes that were never set."""
        data = self.model_dump(mode="json", exclude_unset=True)
        data["type"] = self.type.value
        return data


class ValidationWarning(BaseModel):
    """An advisory note about a valid payload."""

    field: str = Field(..., description="Property the warning refers to")
    message: str = Field(..., description="Human-readable message")
    type: Literal["optional"] = Field(default="optional")
    suggestion: Optional[str] = Field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ValidationReport(BaseModel):
    """Outcome of validating one payload against one schema."""

    valid: bool = Field(..., description="Whether the payload passed")
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    summary: str = Field(default="")

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_of(self, error_type: ErrorType) -> List[ValidationError]:
        """Errors of one taxonomy kind."""
        return [e for e in self.errors if e.type == error_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "summary": self.summary,
        }


# =============================================================================
# Options
# =============================================================================


class GenerationOptions(BaseModel):
    """Example generation options. Passed by value, never mutated."""

    model_config = ConfigDict(frozen=True)

    required_only: bool = Field(
        default=False, description="Emit only required object properties",
    )
    max_depth: int = Field(
        default_factory=lambda: get_config().default_max_depth,
        ge=0,
        description="Nesting level at which generation stops descending",
    )


__all__ = [
    "MISSING",
    "TYPE_NAMES",
    "NodeKind",
    "ErrorType",
    "SchemaNode",
    "parse_schema",
    "ValidationError",
    "ValidationWarning",
    "ValidationReport",
    "GenerationOptions",
    "json_type_name",
]
