# -*- coding: utf-8 -*-
"""
Field Rules - apiscout schema interpretation engine

Navigates a schema by dot-notation field path and summarises the
validation rules that apply at the target node. Without a field path the
summary is a schema overview (type, required fields, property list);
with one it details the field (format, pattern, allowed values, bounds,
example).

Example:
    >>> from apiscout.schema_engine.field_rules import describe_rules
    >>> rules = describe_rules(schema, "data.attributes.ssn")
    >>> print(format_field_rules(rules))
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field

from apiscout.exceptions import FieldNotFoundError
from apiscout.schema_engine.compiler import merge_all_of
from apiscout.schema_engine.models import NodeKind, SchemaNode, parse_schema

logger = logging.getLogger(__name__)

__all__ = [
    "FieldRules",
    "resolve_field",
    "describe_rules",
    "format_field_rules",
]


class FieldRules(BaseModel):
    """Validation rules in effect at one schema location.

    Attributes:
        field_path: Dot path that was resolved (None for the overview).
        type: Declared type, or the combinator name.
        description: Node description.
        format: String format.
        pattern: String pattern.
        allowed_values: Enum literals.
        min_length: Minimum string length.
        max_length: Maximum string length.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.
        required_fields: Required property names.
        properties: Declared property names in order.
        example: Example value, when one is declared.
        has_example: Whether the node declares an example (even null).
    """

    field_path: Optional[str] = Field(default=None)
    type: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    format: Optional[str] = Field(default=None)
    pattern: Optional[str] = Field(default=None)
    allowed_values: Optional[List[Any]] = Field(default=None)
    min_length: Optional[int] = Field(default=None)
    max_length: Optional[int] = Field(default=None)
    minimum: Optional[Union[int, float]] = Field(default=None)
    maximum: Optional[Union[int, float]] = Field(default=None)
    required_fields: List[str] = Field(default_factory=list)
    properties: List[str] = Field(default_factory=list)
    example: Any = Field(default=None)
    has_example: bool = Field(default=False)

    @property
    def is_overview(self) -> bool:
        return self.field_path is None


def _container(node: SchemaNode) -> SchemaNode:
    """The node whose ``properties`` a path segment is looked up in."""
    if node.kind is NodeKind.ALL_OF:
        merged, _ = merge_all_of(node)
        if merged is not None:
            return merged
    if node.kind is NodeKind.ARRAY and node.items is not None:
        return _container(node.items)
    return node


def resolve_field(
    schema: Union[SchemaNode, Mapping],
    field_path: str,
) -> SchemaNode:
    """Walk a dot-notation path through nested ``properties``.

    Array nodes are traversed through their ``items`` and ``allOf``
    nodes through their merged object view.

    Args:
        schema: Root schema.
        field_path: Dot-notation path such as ``data.attributes.type``.

    Returns:
        The SchemaNode at the path.

    Raises:
        FieldNotFoundError: If any segment does not exist.
    """
    node = parse_schema(schema)
    for segment in field_path.split("."):
        container = _container(node)
        properties = container.properties or {}
        if segment not in properties:
            logger.debug("Segment '%s' of '%s' not found", segment, field_path)
            raise FieldNotFoundError(field_path)
        node = properties[segment]
    return node


def _type_label(node: SchemaNode) -> Optional[str]:
    if node.type_ is not None:
        return ", ".join(node.type_names)
    if node.kind in (NodeKind.ALL_OF, NodeKind.ANY_OF, NodeKind.ONE_OF, NodeKind.REF):
        return node.kind.value
    return None


def describe_rules(
    schema: Union[SchemaNode, Mapping],
    field_path: Optional[str] = None,
) -> FieldRules:
    """Summarise the rules at ``field_path`` (or at the root).

    Raises:
        FieldNotFoundError: If ``field_path`` does not resolve.
    """
    node = resolve_field(schema, field_path) if field_path else parse_schema(schema)
    view = _container(node) if node.kind is NodeKind.ALL_OF else node
    return FieldRules(
        field_path=field_path or None,
        type=_type_label(node),
        description=node.description,
        format=node.format,
        pattern=node.pattern,
        allowed_values=list(node.enum) if node.enum is not None else None,
        min_length=node.min_length,
        max_length=node.max_length,
        minimum=node.minimum,
        maximum=node.maximum,
        required_fields=view.required_names,
        properties=list((view.properties or {}).keys()),
        example=node.example,
        has_example=node.has("example"),
    )


def format_field_rules(rules: FieldRules, title: Optional[str] = None) -> str:
    """Render rules as operator-readable lines.

    Args:
        rules: Rules produced by ``describe_rules``.
        title: Optional heading for the overview form.

    Returns:
        Multi-line text block.
    """
    if rules.is_overview:
        lines = [
            title or "Schema overview",
            "",
            "Tip: pass a field path to get detailed rules for a specific field",
            '   Example: field_path = "data.attributes.type"',
            "",
        ]
    else:
        lines = [f"Validation rules for field: {rules.field_path}", ""]

    if rules.type:
        lines.append(f"Type: {rules.type}")
    if rules.description:
        lines.append(f"Description: {rules.description}")
    if rules.format:
        lines.append(f"Format: {rules.format}")
    if rules.pattern:
        lines.append(f"Pattern: {rules.pattern}")
    if rules.allowed_values is not None:
        values = ", ".join(str(value) for value in rules.allowed_values)
        lines.append(f"Allowed values: {values}")
    if rules.min_length is not None:
        lines.append(f"Minimum length: {rules.min_length}")
    if rules.max_length is not None:
        lines.append(f"Maximum length: {rules.max_length}")
    if rules.minimum is not None:
        lines.append(f"Minimum value: {rules.minimum}")
    if rules.maximum is not None:
        lines.append(f"Maximum value: {rules.maximum}")
    if rules.required_fields:
        lines.append(f"Required fields: {', '.join(rules.required_fields)}")
    if rules.properties:
        lines.append(
            f"Properties ({len(rules.properties)}): {', '.join(rules.properties)}"
        )
    if rules.has_example:
        lines.append(f"Example: {json.dumps(rules.example, default=str)}")
    return "\n".join(lines)
