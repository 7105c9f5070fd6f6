# -*- coding: utf-8 -*-
"""
Prometheus Metrics - apiscout schema interpretation engine

Metrics:
    1. apiscout_schema_compilations_total (Counter, labels: outcome)
    2. apiscout_schema_validations_total (Counter, labels: result)
    3. apiscout_schema_validation_errors_total (Counter, labels: error_type)
    4. apiscout_schema_validation_warnings_total (Counter)
    5. apiscout_schema_validation_duration_seconds (Histogram)
    6. apiscout_schema_examples_generated_total (Counter, labels: mode)
    7. apiscout_schema_payload_parse_failures_total (Counter)
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Schema compilations by outcome (ok, error)
schema_compilations_total = Counter(
    "apiscout_schema_compilations_total",
    "Total schema compilations",
    labelnames=["outcome"],
)

# 2. Payload validations by result (valid, invalid, schema_error)
schema_validations_total = Counter(
    "apiscout_schema_validations_total",
    "Total payload validations",
    labelnames=["result"],
)

# 3. Reported validation errors by taxonomy type
schema_validation_errors_total = Counter(
    "apiscout_schema_validation_errors_total",
    "Total validation errors reported",
    labelnames=["error_type"],
)

# 4. Recommendation warnings reported on valid payloads
schema_validation_warnings_total = Counter(
    "apiscout_schema_validation_warnings_total",
    "Total recommendation warnings reported",
)

# 5. Validation duration (compile + validate + map)
schema_validation_duration_seconds = Histogram(
    "apiscout_schema_validation_duration_seconds",
    "Payload validation duration in seconds",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

# 6. Examples generated by mode (full, required_only)
schema_examples_generated_total = Counter(
    "apiscout_schema_examples_generated_total",
    "Total examples generated",
    labelnames=["mode"],
)

# 7. String payloads rejected as invalid JSON
schema_payload_parse_failures_total = Counter(
    "apiscout_schema_payload_parse_failures_total",
    "Total payloads rejected as invalid JSON",
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_compilation(outcome: str) -> None:
    """Record a schema compilation.

    Args:
        outcome: ``ok`` or ``error``.
    """
    schema_compilations_total.labels(outcome=outcome).inc()


def record_validation(result: str, duration_seconds: float) -> None:
    """Record a payload validation with duration.

    Args:
        result: ``valid``, ``invalid`` or ``schema_error``.
        duration_seconds: Wall-clock duration in seconds.
    """
    schema_validations_total.labels(result=result).inc()
    schema_validation_duration_seconds.observe(duration_seconds)


def record_validation_error(error_type: str) -> None:
    """Record one reported validation error.

    Args:
        error_type: Taxonomy kind (required, type, format, ...).
    """
    schema_validation_errors_total.labels(error_type=error_type).inc()


def record_validation_warnings(count: int) -> None:
    """Record recommendation warnings.

    Args:
        count: Number of warnings in one report.
    """
    if count > 0:
        schema_validation_warnings_total.inc(count)


def record_example_generated(required_only: bool) -> None:
    """Record a generated example.

    Args:
        required_only: Whether only required properties were emitted.
    """
    mode = "required_only" if required_only else "full"
    schema_examples_generated_total.labels(mode=mode).inc()


def record_payload_parse_failure() -> None:
    """Record a string payload rejected as invalid JSON."""
    schema_payload_parse_failures_total.inc()


__all__ = [
    # Metric objects
    "schema_compilations_total",
    "schema_validations_total",
    "schema_validation_errors_total",
    "schema_validation_warnings_total",
    "schema_validation_duration_seconds",
    "schema_examples_generated_total",
    "schema_payload_parse_failures_total",
    # Helper functions
    "record_compilation",
    "record_validation",
    "record_validation_error",
    "record_validation_warnings",
    "record_example_generated",
    "record_payload_parse_failure",
]
