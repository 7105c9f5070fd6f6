# -*- coding: utf-8 -*-
"""
Schema Engine Service Setup - apiscout schema interpretation engine

Exposes the ``SchemaEngineService`` facade, which bundles compilation,
payload validation, example generation, field-rule lookup and report
rendering behind one entry point, records Prometheus metrics and keeps
thread-safe usage statistics. ``get_service()`` returns a lazily
created shared instance.

Usage:
    >>> from apiscout.schema_engine.setup import get_service
    >>> service = get_service()
    >>> report = service.validate('{"name": "Ada"}', schema)
    >>> print(service.format_report(report))
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from apiscout.exceptions import PayloadParseError, SchemaCompileError
from apiscout.schema_engine.compiler import Validator, compile_schema, try_compile
from apiscout.schema_engine.config import SchemaEngineConfig, get_config
from apiscout.schema_engine.diagnostics import (
    build_report,
    coerce_payload,
    compile_failure_report,
    parse_failure_report,
)
from apiscout.schema_engine.example_generator import generate_example
from apiscout.schema_engine.field_rules import (
    FieldRules,
    describe_rules,
    format_field_rules,
)
from apiscout.schema_engine.metrics import (
    record_compilation,
    record_example_generated,
    record_payload_parse_failure,
    record_validation,
    record_validation_error,
    record_validation_warnings,
)
from apiscout.schema_engine.models import (
    GenerationOptions,
    SchemaNode,
    ValidationReport,
)
from apiscout.schema_engine.report_formatter import (
    format_example,
    format_validation_result,
)

logger = logging.getLogger(__name__)

SchemaInput = Union[SchemaNode, Mapping]


# ===================================================================
# Statistics model
# ===================================================================


class SchemaEngineStatistics(BaseModel):
    """Aggregate statistics for the schema engine service.

    Attributes:
        total_compilations: Schemas compiled.
        total_compile_errors: Schemas rejected by the compiler.
        total_validations: Payloads validated.
        total_valid: Payloads that passed.
        total_invalid: Payloads that failed (including schema errors).
        total_parse_failures: String payloads that were not valid JSON.
        total_errors_reported: Validation errors across all reports.
        total_warnings_reported: Warnings across all reports.
        total_examples: Examples generated.
        avg_validation_time_ms: Running average validation time.
        errors_by_type: Breakdown of reported errors by taxonomy kind.
    """
    total_compilations: int = Field(default=0)
    total_compile_errors: int = Field(default=0)
    total_validations: int = Field(default=0)
    total_valid: int = Field(default=0)
    total_invalid: int = Field(default=0)
    total_parse_failures: int = Field(default=0)
    total_errors_reported: int = Field(default=0)
    total_warnings_reported: int = Field(default=0)
    total_examples: int = Field(default=0)
    avg_validation_time_ms: float = Field(default=0.0)
    errors_by_type: Dict[str, int] = Field(default_factory=dict)


# ===================================================================
# Service facade
# ===================================================================


class SchemaEngineService:
    """Unified facade over the schema interpretation engine.

    Attributes:
        config: SchemaEngineConfig instance.

    Example:
        >>> service = SchemaEngineService()
        >>> example = service.generate_example(schema, required_only=True)
        >>> report = service.validate(example, schema)
        >>> assert report.valid
    """

    def __init__(self, config: Optional[SchemaEngineConfig] = None) -> None:
        """Initialize the service facade.

        Args:
            config: Optional configuration. Uses global config if None.
        """
        self.config = config or get_config()
        self._stats = SchemaEngineStatistics()
        self._lock = threading.Lock()
        logging.getLogger("apiscout").setLevel(
            getattr(logging, self.config.log_level.upper(), logging.INFO)
        )
        logger.info("SchemaEngineService facade created")

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def compile(self, schema: SchemaInput) -> Validator:
        """Compile a schema into a reusable validator.

        Raises:
            SchemaCompileError: If the schema cannot be compiled.
        """
        try:
            validator = compile_schema(schema, self.config)
        except SchemaCompileError:
            self._record_compile(ok=False)
            raise
        self._record_compile(ok=True)
        return validator

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, payload: Any, schema: SchemaInput) -> ValidationReport:
        """Validate a structured or JSON-string payload against a schema.

        Never raises; compile and parse failures are reported in the
        returned ValidationReport.

        Args:
            payload: Payload value, or a JSON string parsed once.
            schema: SchemaNode or raw mapping.

        Returns:
            ValidationReport describing the outcome.
        """
        start = time.monotonic()

        try:
            value = coerce_payload(payload)
        except PayloadParseError as exc:
            logger.info("Rejected unparseable payload: %s", exc.message)
            record_payload_parse_failure()
            with self._lock:
                self._stats.total_parse_failures += 1
            report = parse_failure_report(exc)
            self._record_report(report, "invalid", time.monotonic() - start)
            return report

        result = try_compile(schema, self.config)
        self._record_compile(ok=result.ok)
        if result.error is not None:
            report = compile_failure_report(result.error)
            self._record_report(report, "schema_error", time.monotonic() - start)
            return report

        report = build_report(result.validator, value, self.config)
        outcome = "valid" if report.valid else "invalid"
        self._record_report(report, outcome, time.monotonic() - start)

        logger.info(
            "Validated payload: valid=%s errors=%d warnings=%d",
            report.valid, len(report.errors), len(report.warnings),
        )
        return report

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_example(
        self,
        schema: SchemaInput,
        required_only: bool = False,
        max_depth: Optional[int] = None,
    ) -> Any:
        """Generate a deterministic example payload for a schema.

        Args:
            schema: SchemaNode or raw mapping.
            required_only: Emit only required object properties.
            max_depth: Override of the configured recursion bound.

        Returns:
            Generated example value.
        """
        options = GenerationOptions(
            required_only=required_only,
            max_depth=self.config.default_max_depth if max_depth is None else max_depth,
        )
        example = generate_example(schema, options, self.config)
        record_example_generated(required_only)
        with self._lock:
            self._stats.total_examples += 1
        return example

    # ------------------------------------------------------------------
    # Field rules
    # ------------------------------------------------------------------

    def describe(
        self,
        schema: SchemaInput,
        field_path: Optional[str] = None,
    ) -> FieldRules:
        """Rules at ``field_path`` or the schema overview.

        Raises:
            FieldNotFoundError: If ``field_path`` does not resolve.
        """
        return describe_rules(schema, field_path)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def format_report(self, report: ValidationReport) -> str:
        return format_validation_result(report)

    def format_example(
        self,
        example: Any,
        required_only: bool = False,
        title: Optional[str] = None,
    ) -> str:
        return format_example(example, required_only, title)

    def format_rules(self, rules: FieldRules, title: Optional[str] = None) -> str:
        return format_field_rules(rules, title)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> SchemaEngineStatistics:
        """Get a snapshot of aggregated service statistics.

        Returns:
            SchemaEngineStatistics copy.
        """
        with self._lock:
            return self._stats.model_copy(deep=True)

    def get_metrics(self) -> Dict[str, Any]:
        """Get a flat service metrics summary."""
        stats = self.get_statistics()
        return {
            "total_compilations": stats.total_compilations,
            "total_compile_errors": stats.total_compile_errors,
            "total_validations": stats.total_validations,
            "total_valid": stats.total_valid,
            "total_invalid": stats.total_invalid,
            "total_parse_failures": stats.total_parse_failures,
            "total_errors_reported": stats.total_errors_reported,
            "total_warnings_reported": stats.total_warnings_reported,
            "total_examples": stats.total_examples,
            "avg_validation_time_ms": stats.avg_validation_time_ms,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_compile(self, ok: bool) -> None:
        record_compilation("ok" if ok else "error")
        with self._lock:
            self._stats.total_compilations += 1
            if not ok:
                self._stats.total_compile_errors += 1

    def _record_report(
        self,
        report: ValidationReport,
        outcome: str,
        duration_seconds: float,
    ) -> None:
        record_validation(outcome, duration_seconds)
        for error in report.errors:
            record_validation_error(error.type.value)
        record_validation_warnings(len(report.warnings))

        with self._lock:
            stats = self._stats
            stats.total_validations += 1
            if report.valid:
                stats.total_valid += 1
            else:
                stats.total_invalid += 1
            stats.total_errors_reported += len(report.errors)
            stats.total_warnings_reported += len(report.warnings)
            for error in report.errors:
                key = error.type.value
                stats.errors_by_type[key] = stats.errors_by_type.get(key, 0) + 1

            total = stats.total_validations
            stats.avg_validation_time_ms = (
                (stats.avg_validation_time_ms * (total - 1)
                 + duration_seconds * 1000) / total
            )


# ===================================================================
# Thread-safe singleton access
# ===================================================================

_singleton_lock = threading.Lock()
_singleton_instance: Optional[SchemaEngineService] = None


def get_service() -> SchemaEngineService:
    """Get or create the shared SchemaEngineService instance.

    Returns:
        The singleton SchemaEngineService.
    """
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = SchemaEngineService()
    return _singleton_instance


def reset_service() -> None:
    """Drop the shared instance (primarily for test teardown)."""
    global _singleton_instance
    with _singleton_lock:
        _singleton_instance = None


__all__ = [
    "SchemaEngineService",
    "SchemaEngineStatistics",
    "get_service",
    "reset_service",
]
