# -*- coding: utf-8 -*-
"""
Report Formatter - apiscout schema interpretation engine

Pure, deterministic rendering of validation reports and generated
examples into operator-readable text.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from apiscout.schema_engine.models import (
    ValidationError,
    ValidationReport,
    ValidationWarning,
)

__all__ = [
    "format_errors",
    "format_warnings",
    "format_validation_result",
    "format_example",
    "render_value",
]


def render_value(value: Any) -> str:
    """Render an expected/received value as compact JSON."""
    return json.dumps(value, ensure_ascii=False, default=str)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def format_errors(errors: Sequence[ValidationError]) -> str:
    """Render a numbered error block, ``No errors`` when empty."""
    if not errors:
        return "No errors"

    lines: List[str] = [f"Found {_plural(len(errors), 'validation error')}:", ""]
    for index, error in enumerate(errors, start=1):
        present = error.model_fields_set
        lines.append(f"{index}. Field: {error.field}")
        lines.append(f"   Error: {error.message}")
        if "expected" in present:
            lines.append(f"   Expected: {render_value(error.expected)}")
        if "received" in present:
            lines.append(f"   Received: {render_value(error.received)}")
        if error.fix_suggestion:
            lines.append(f"   Fix: {error.fix_suggestion}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_warnings(warnings: Sequence[ValidationWarning]) -> str:
    """Render a numbered warning block, empty string when there are none."""
    if not warnings:
        return ""

    lines: List[str] = [f"{_plural(len(warnings), 'warning')}:", ""]
    for index, warning in enumerate(warnings, start=1):
        lines.append(f"{index}. Field: {warning.field}")
        lines.append(f"   {warning.message}")
        if warning.suggestion:
            lines.append(f"   Suggestion: {warning.suggestion}")
        lines.append("")
    return "\n".join(lines).rstrip()


def format_validation_result(report: ValidationReport) -> str:
    """Render a whole report with a leading status mark."""
    if report.valid:
        output = "✓ Payload is valid"
        if report.warnings:
            output += "\n\n" + format_warnings(report.warnings)
        return output
    return "✗ Payload validation failed\n\n" + format_errors(report.errors)


def format_example(
    example: Any,
    required_only: bool = False,
    title: Optional[str] = None,
) -> str:
    """Render a generated example as pretty JSON with a coverage note.

    Args:
        example: Generated example value.
        required_only: Whether the example was generated with only
            required properties.
        title: Optional heading line (e.g. ``"Example request payload
            for POST /forms:"``).

    Returns:
        Multi-line text block.
    """
    lines: List[str] = []
    if title:
        lines.extend([title, ""])
    lines.append(json.dumps(example, indent=2, ensure_ascii=False, default=str))
    lines.append("")
    if required_only:
        lines.append("Note: This example includes only required fields.")
    else:
        lines.append(
            "Note: This example includes both required and optional fields."
        )
    return "\n".join(lines)
