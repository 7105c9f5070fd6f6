# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

from typing import Any, Dict

import pytest

from apiscout.schema_engine.config import SchemaEngineConfig, reset_config, set_config
from apiscout.schema_engine.models import ErrorType, ValidationError, ValidationWarning
from apiscout.schema_engine.setup import reset_service


@pytest.fixture(autouse=True)
def engine_config():
    """Install a default engine config for every test and reset afterwards."""
    config = SchemaEngineConfig()
    set_config(config)
    yield config
    reset_config()
    reset_service()


# =============================================================================
# Schemas
# =============================================================================


@pytest.fixture
def person_schema() -> Dict[str, Any]:
    """Object schema with required, formatted, bounded and optional fields."""
    return {
        "type": "object",
        "required": ["firstName", "lastName", "email"],
        "properties": {
            "firstName": {"type": "string", "minLength": 1},
            "lastName": {"type": "string", "minLength": 1},
            "email": {"type": "string", "format": "email"},
            "age": {"type": "integer", "minimum": 18, "maximum": 120},
            "phone": {
                "type": "string",
                "description": "Phone number for contact purposes, recommended",
            },
            "nickname": {"type": "string", "description": "Informal name"},
        },
    }


@pytest.fixture
def ssn_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "required": ["ssn"],
        "properties": {
            "ssn": {"type": "string", "pattern": r"^\d{3}-\d{2}-\d{4}$"},
        },
    }


@pytest.fixture
def claim_schema() -> Dict[str, Any]:
    """Nested JSON:API style request body."""
    return {
        "type": "object",
        "required": ["data"],
        "properties": {
            "data": {
                "type": "object",
                "required": ["type", "attributes"],
                "properties": {
                    "type": {"type": "string", "enum": ["form/21-526EZ"]},
                    "attributes": {
                        "type": "object",
                        "required": ["veteranIdentification"],
                        "properties": {
                            "veteranIdentification": {
                                "type": "object",
                                "required": ["ssn"],
                                "properties": {
                                    "ssn": {
                                        "type": "string",
                                        "pattern": r"^\d{3}-\d{2}-\d{4}$",
                                        "description": "Social Security Number",
                                    },
                                    "phone": {
                                        "type": "string",
                                        "pattern": r"^\d{3}-\d{3}-\d{4}$",
                                    },
                                },
                            },
                            "claimDate": {"type": "string", "format": "date"},
                            "disabilities": {
                                "type": "array",
                                "minItems": 1,
                                "items": {
                                    "type": "object",
                                    "required": ["name"],
                                    "properties": {
                                        "name": {"type": "string"},
                                        "ratingPercentage": {
                                            "type": "integer",
                                            "minimum": 0,
                                            "maximum": 100,
                                            "multipleOf": 10,
                                        },
                                    },
                                },
                            },
                        },
                    },
                },
            },
        },
    }


# =============================================================================
# Report models
# =============================================================================


@pytest.fixture
def required_error() -> ValidationError:
    return ValidationError(
        field="email",
        path="/",
        message="Missing required field: email",
        type=ErrorType.REQUIRED,
        fix_suggestion='Add the required field "email" to the payload',
    )


@pytest.fixture
def type_error() -> ValidationError:
    return ValidationError(
        field="age",
        path="/age",
        message="Invalid type: expected integer",
        type=ErrorType.TYPE,
        expected="integer",
        fix_suggestion="Change the field type to integer",
    )


@pytest.fixture
def optional_warning() -> ValidationWarning:
    return ValidationWarning(
        field="phone",
        message='Optional field "phone" is not provided but may be useful',
        suggestion="Phone number for contact purposes",
    )
