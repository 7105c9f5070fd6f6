# -*- coding: utf-8 -*-
"""
Example Generator - apiscout schema interpretation engine

Synthesizes a deterministic, structurally valid example value from a
schema node. Generation is total: unusable schemas produce ``None`` and
are logged, never raised.

Precedence (first applicable rule wins):
    1. Unresolved ``$ref`` -> stub string naming the reference
    2. ``example`` present -> verbatim
    3. ``default`` present -> verbatim
    4. Non-empty ``enum`` -> first value
    5. ``oneOf`` / ``anyOf`` -> first branch
    6. ``allOf`` -> merged effective object
    7. Dispatch on type (first non-null type of a type list)

Recursion is bounded by ``GenerationOptions.max_depth``; objects and
arrays at the bound collapse to ``{}`` and ``[]``.

Example:
    >>> from apiscout.schema_engine.example_generator import generate_example
    >>> generate_example({"type": "integer", "minimum": 18})
    18
"""

from __future__ import annotations

import copy
import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from apiscout.exceptions import SchemaCompileError, format_exception_chain
from apiscout.schema_engine.compiler import merge_all_of
from apiscout.schema_engine.config import SchemaEngineConfig, get_config
from apiscout.schema_engine.models import (
    GenerationOptions,
    NodeKind,
    SchemaNode,
    parse_schema,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ExampleGenerator",
    "generate_example",
    "sanitize_property_name",
]


# ---------------------------------------------------------------------------
# Literal tables
# ---------------------------------------------------------------------------

_PATTERN_EXAMPLES = (
    "555-123-4567",
    "123-45-6789",
    "AB123456",
)

_FORMAT_EXAMPLES: Dict[str, str] = {
    "email": "user@example.com",
    "date": "2024-01-15",
    "date-time": "2024-01-15T10:30:00Z",
    "time": "10:30:00Z",
    "uri": "https://example.com",
    "url": "https://example.com",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
    "ssn": "123-45-6789",
    "phone": "555-123-4567",
    "ipv4": "192.168.1.1",
    "ipv6": "2001:0db8:85a3:0000:0000:8a2e:0370:7334",
    "hostname": "example.com",
    "byte": "ZXhhbXBsZQ==",
    "password": "********",
}

_DISALLOWED_NAME_CHARS = re.compile(r"[^A-Za-z0-9_$\-]")


def sanitize_property_name(name: str, filler: str = "_") -> str:
    """Replace characters outside ``[A-Za-z0-9_$-]`` with ``filler``."""
    return _DISALLOWED_NAME_CHARS.sub(filler, name)


# ---------------------------------------------------------------------------
# ExampleGenerator
# ---------------------------------------------------------------------------


class ExampleGenerator:
    """Deterministic example builder for one set of options.

    Attributes:
        options: Generation options (required_only, max_depth).
        config: Engine configuration supplying placeholder text and the
            property-name filler.
    """

    def __init__(
        self,
        options: Optional[GenerationOptions] = None,
        config: Optional[SchemaEngineConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.options = options or GenerationOptions(
            max_depth=self.config.default_max_depth,
        )

    def generate(self, node: SchemaNode, depth: int = 0) -> Any:
        """Generate an example for ``node`` at nesting level ``depth``."""
        if node.kind is NodeKind.REF:
            return f"<reference: {node.ref}>"
        if node.has("example"):
            return node.example
        if node.has("default"):
            return node.default
        if node.enum:
            return node.enum[0]

        if node.one_of:
            return self.generate(node.one_of[0], depth)
        if node.any_of:
            return self.generate(node.any_of[0], depth)
        if node.all_of:
            merged, others = merge_all_of(node)
            if merged is not None:
                return self._object(merged, depth)
            if others:
                return self.generate(others[0], depth)
            return None

        return self._by_type(node, depth)

    # ------------------------------------------------------------------
    # Type dispatch
    # ------------------------------------------------------------------

    def _by_type(self, node: SchemaNode, depth: int) -> Any:
        names = node.type_names
        concrete = [name for name in names if name != "null"]
        type_name = concrete[0] if concrete else (names[0] if names else None)

        if type_name == "object":
            return self._object(node, depth)
        if type_name == "array":
            return self._array(node, depth)
        if type_name == "string":
            return self._string(node)
        if type_name in ("integer", "number"):
            return self._number(node, integer=type_name == "integer")
        if type_name == "boolean":
            return True
        return None

    def _object(self, node: SchemaNode, depth: int) -> Dict[str, Any]:
        if depth >= self.options.max_depth:
            logger.debug("Depth limit %d reached, emitting empty object", depth)
            return {}

        required = set(node.required_names)
        result: Dict[str, Any] = {}
        for name, child in (node.properties or {}).items():
            if self.options.required_only and name not in required:
                continue
            key = sanitize_property_name(name, self.config.name_filler)
            if not key:
                continue
            result[key] = self.generate(child, depth + 1)
        return result

    def _array(self, node: SchemaNode, depth: int) -> List[Any]:
        if depth >= self.options.max_depth or node.items is None:
            return []
        count = max(1, node.min_items or 0)
        if node.max_items is not None:
            count = min(count, node.max_items)
        element = self.generate(node.items, depth + 1)
        return [copy.deepcopy(element) for _ in range(count)]

    def _string(self, node: SchemaNode) -> str:
        if node.pattern is not None:
            for literal in _PATTERN_EXAMPLES:
                if self._fits_length(node, literal) and _matches(node.pattern, literal):
                    return literal
            logger.debug("No example literal for pattern %s", node.pattern)
            return self._placeholder(node)
        if node.format is not None and node.format in _FORMAT_EXAMPLES:
            literal = _pad_format(
                node.format, _FORMAT_EXAMPLES[node.format], node.min_length,
            )
            if self._fits_length(node, literal):
                return literal
            logger.debug(
                "Format literal for %s does not fit length bounds", node.format,
            )
        return self._placeholder(node)

    @staticmethod
    def _fits_length(node: SchemaNode, text: str) -> bool:
        if node.min_length is not None and len(text) < node.min_length:
            return False
        return node.max_length is None or len(text) <= node.max_length

    def _placeholder(self, node: SchemaNode) -> str:
        text = self.config.string_placeholder
        if node.min_length is not None and len(text) < node.min_length:
            filler = text or "x"
            text = (filler * (node.min_length // len(filler) + 1))[:node.min_length]
        if node.max_length is not None and len(text) > node.max_length:
            text = text[:node.max_length]
        return text

    def _number(self, node: SchemaNode, integer: bool) -> Union[int, float]:
        lower, lower_strict = _lower_bound(node)
        upper, upper_strict = _upper_bound(node)

        # (start, round_up) pairs tried in order until one lands in range.
        candidates: List[Tuple[float, bool]] = []
        if lower is not None:
            candidates.append((lower + 1 if lower_strict else lower, True))
        if upper is not None:
            candidates.append((upper - 1 if upper_strict else upper, False))
        if lower is not None and upper is not None:
            candidates.append(((lower + upper) / 2, True))
        if not candidates:
            candidates.append((0 if integer else 0.0, True))

        values = [
            _snap(start, node.multiple_of, integer, round_up)
            for start, round_up in candidates
        ]
        for value in values:
            if _within(value, lower, lower_strict, upper, upper_strict):
                return value
        logger.debug("No example value within bounds (%s, %s)", lower, upper)
        return values[0]


def _is_bound(value: Any) -> bool:
    return value is not None and not isinstance(value, bool)


def _lower_bound(node: SchemaNode) -> Tuple[Optional[float], bool]:
    bound, strict = node.minimum, node.exclusive_minimum is True
    if bound is None:
        strict = False
    if _is_bound(node.exclusive_minimum) and (
        bound is None or node.exclusive_minimum >= bound
    ):
        bound, strict = node.exclusive_minimum, True
    return bound, strict


def _upper_bound(node: SchemaNode) -> Tuple[Optional[float], bool]:
    bound, strict = node.maximum, node.exclusive_maximum is True
    if bound is None:
        strict = False
    if _is_bound(node.exclusive_maximum) and (
        bound is None or node.exclusive_maximum <= bound
    ):
        bound, strict = node.exclusive_maximum, True
    return bound, strict


def _snap(
    value: float, multiple_of: Optional[float], integer: bool, round_up: bool,
) -> Union[int, float]:
    """Move ``value`` onto the multipleOf grid and, for integers, to a whole number."""
    if multiple_of:
        quotient = value / multiple_of
        steps = round(quotient)
        if abs(quotient - steps) > 1e-9 * max(1.0, abs(quotient)):
            steps = math.ceil(quotient) if round_up else math.floor(quotient)
        value = steps * multiple_of
    if integer:
        if abs(value - round(value)) <= 1e-9:
            return int(round(value))
        return int(math.ceil(value) if round_up else math.floor(value))
    return value


def _within(
    value: float,
    lower: Optional[float],
    lower_strict: bool,
    upper: Optional[float],
    upper_strict: bool,
) -> bool:
    if lower is not None and (value < lower or (lower_strict and value == lower)):
        return False
    if upper is not None and (value > upper or (upper_strict and value == upper)):
        return False
    return True


def _matches(pattern: str, text: str) -> bool:
    try:
        return re.search(pattern, text) is not None
    except re.error:
        return False


def _pad_format(fmt: str, literal: str, min_length: Optional[int]) -> str:
    """Lengthen a format literal to ``min_length`` without breaking the format."""
    if min_length is None or len(literal) >= min_length:
        return literal
    missing = min_length - len(literal)
    if fmt == "email":
        local, _, domain = literal.partition("@")
        return f"{local}{'x' * missing}@{domain}"
    if fmt in ("uri", "url"):
        return f"{literal}/{'x' * (missing - 1)}"
    return literal


# ---------------------------------------------------------------------------
# Module-level entry point
# ---------------------------------------------------------------------------


def generate_example(
    schema: Union[SchemaNode, Mapping, Any],
    options: Optional[GenerationOptions] = None,
    config: Optional[SchemaEngineConfig] = None,
) -> Any:
    """Generate a representative example value for a schema.

    Schemas nested deeper than ``max_schema_nesting`` are truncated rather
    than rejected; the depth bound stops generation well before that.

    Args:
        schema: SchemaNode or raw mapping in JSON-Schema spelling.
        options: Generation options; defaults to the configured max depth
            with all properties included.
        config: Optional engine configuration.

    Returns:
        Example value, or ``None`` when the schema cannot be parsed.
    """
    config = config or get_config()
    try:
        node = parse_schema(
            schema, max_nesting=config.max_schema_nesting, truncate=True,
        )
    except SchemaCompileError as exc:
        logger.warning("Example generation skipped: %s", format_exception_chain(exc))
        return None
    return ExampleGenerator(options, config).generate(node)
