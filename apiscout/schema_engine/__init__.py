# -*- coding: utf-8 -*-
"""
apiscout Schema Interpretation Engine SDK
=========================================

Compiles untrusted, dynamically-shaped JSON-Schema / OpenAPI fragments
into executable validators, synthesizes deterministic example payloads,
and turns low-level validation failures into field-addressable,
actionable reports. It supports:

- null / boolean / integer / number / string / array / object schemas
- allOf merging, anyOf / oneOf unions, OpenAPI nullable and type lists
- String patterns and checked formats (email, uri, date, uuid, ssn, ...)
- Inclusive and exclusive numeric bounds, multipleOf
- Depth-bounded, deterministic example generation
- Recommendation warnings for absent optional fields
- Dot-path field rule lookup
- Prometheus metrics for observability
- Thread-safe configuration with APISCOUT_SCHEMA_ env prefix

Key Components:
    - config: SchemaEngineConfig with APISCOUT_SCHEMA_ env prefix
    - models: Pydantic v2 schema node and report models
    - compiler: Schema Compiler (compile_schema, try_compile)
    - example_generator: Example Generator (generate_example)
    - diagnostics: Diagnostic Mapper (validate_payload)
    - report_formatter: Report Formatter
    - field_rules: Field-path navigation and rule summaries
    - metrics: Prometheus metrics
    - setup: SchemaEngineService facade

Example:
    >>> from apiscout.schema_engine import generate_example, validate_payload
    >>> schema = {"type": "object", "required": ["age"],
    ...           "properties": {"age": {"type": "integer", "minimum": 18}}}
    >>> validate_payload(generate_example(schema), schema).valid
    True
"""

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from apiscout.schema_engine.config import (
    SchemaEngineConfig,
    get_config,
    set_config,
    reset_config,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from apiscout.schema_engine.models import (
    MISSING,
    NodeKind,
    ErrorType,
    SchemaNode,
    parse_schema,
    ValidationError,
    ValidationWarning,
    ValidationReport,
    GenerationOptions,
)

# ---------------------------------------------------------------------------
# Core engines
# ---------------------------------------------------------------------------
from apiscout.schema_engine.compiler import (
    Issue,
    IssueCode,
    Validator,
    CompileResult,
    compile_schema,
    try_compile,
)
from apiscout.schema_engine.example_generator import (
    ExampleGenerator,
    generate_example,
)
from apiscout.schema_engine.diagnostics import (
    validate_payload,
    validate_raw_payload,
    coerce_payload,
)
from apiscout.schema_engine.report_formatter import (
    format_errors,
    format_warnings,
    format_validation_result,
    format_example,
)
from apiscout.schema_engine.field_rules import (
    FieldRules,
    resolve_field,
    describe_rules,
    format_field_rules,
)

# ---------------------------------------------------------------------------
# Service facade
# ---------------------------------------------------------------------------
from apiscout.schema_engine.setup import (
    SchemaEngineService,
    SchemaEngineStatistics,
    get_service,
)

__all__ = [
    # Configuration
    "SchemaEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Models
    "MISSING",
    "NodeKind",
    "ErrorType",
    "SchemaNode",
    "parse_schema",
    "ValidationError",
    "ValidationWarning",
    "ValidationReport",
    "GenerationOptions",
    # Compiler
    "Issue",
    "IssueCode",
    "Validator",
    "CompileResult",
    "compile_schema",
    "try_compile",
    # Generator
    "ExampleGenerator",
    "generate_example",
    # Diagnostics
    "validate_payload",
    "validate_raw_payload",
    "coerce_payload",
    # Formatting
    "format_errors",
    "format_warnings",
    "format_validation_result",
    "format_example",
    # Field rules
    "FieldRules",
    "resolve_field",
    "describe_rules",
    "format_field_rules",
    # Service
    "SchemaEngineService",
    "SchemaEngineStatistics",
    "get_service",
]
