"""Tests for the apiscout Schema Compiler.

Covers:
- Scalar type checks and the null vs missing distinction
- Conjunctive string and numeric constraints
- Array and object rules, additionalProperties
- allOf merging, anyOf / oneOf unions, type lists, nullable
- enum JSON equality
- Graceful $ref and untyped handling
- Compile failures and the result-typed try_compile
"""

import logging

import pytest

from apiscout.exceptions import SchemaCompileError, SchemaParseError
from apiscout.schema_engine.compiler import (
    MISSING,
    CompileResult,
    IssueCode,
    check_format,
    compile_schema,
    try_compile,
)
from apiscout.schema_engine.config import SchemaEngineConfig
from apiscout.schema_engine.models import parse_schema


def codes(validator, value):
    return [issue.code for issue in validator.validate(value)]


# =============================================================================
# Scalars
# =============================================================================


class TestScalarTypes:
    """Tests for null, boolean, integer and number nodes."""

    def test_null_accepts_none_only(self):
        """null accepts None and rejects present non-null values."""
        validator = compile_schema({"type": "null"})

        assert validator.is_valid(None)
        assert not validator.is_valid(0)
        assert not validator.is_valid("")

    def test_null_rejects_missing(self):
        """An absent value is not null."""
        validator = compile_schema({"type": "null"})

        assert codes(validator, MISSING) == [IssueCode.MISSING]

    def test_boolean_rejects_numbers(self):
        validator = compile_schema({"type": "boolean"})

        assert validator.is_valid(False)
        assert not validator.is_valid(1)

    def test_booleans_are_never_numbers(self):
        """True is not accepted where a number or integer is declared."""
        assert not compile_schema({"type": "number"}).is_valid(True)
        assert not compile_schema({"type": "integer"}).is_valid(False)

    def test_integer_requires_whole_number(self):
        """integer rejects fractional values but accepts whole floats."""
        validator = compile_schema({"type": "integer"})

        assert validator.is_valid(4)
        assert validator.is_valid(4.0)
        issues = validator.validate(3.5)
        assert len(issues) == 1
        assert issues[0].code == IssueCode.INVALID_TYPE
        assert issues[0].params["expected"] == "integer"

    def test_number_accepts_ints_and_floats(self):
        validator = compile_schema({"type": "number"})

        assert validator.is_valid(1)
        assert validator.is_valid(1.5)
        assert not validator.is_valid("1.5")

    def test_type_issue_reports_received_type(self):
        issues = compile_schema({"type": "string"}).validate(42)

        assert issues[0].params == {"expected": "string", "received": "number"}

    def test_nullable_accepts_none(self):
        """OpenAPI nullable adds None to any node."""
        validator = compile_schema({"type": "string", "nullable": True})

        assert validator.is_valid(None)
        assert validator.is_valid("x")
        assert not validator.is_valid(1)


# =============================================================================
# Strings
# =============================================================================


class TestStringConstraints:
    """Tests for pattern, length and format checks."""

    def test_pattern_is_unanchored_search(self):
        validator = compile_schema({"type": "string", "pattern": "abc"})

        assert validator.is_valid("xxabcxx")
        assert not validator.is_valid("ab")

    def test_constraints_compose(self):
        """Every failing string constraint is reported."""
        validator = compile_schema(
            {"type": "string", "minLength": 5, "pattern": "^a"}
        )

        assert codes(validator, "b") == [IssueCode.TOO_SMALL, IssueCode.INVALID_STRING]

    def test_max_length(self):
        validator = compile_schema({"type": "string", "maxLength": 3})

        issues = validator.validate("abcd")
        assert issues[0].code == IssueCode.TOO_BIG
        assert issues[0].params["origin"] == "string"
        assert issues[0].params["limit"] == 3

    @pytest.mark.parametrize("fmt,value,expected", [
        ("email", "user@example.com", True),
        ("email", "not-an-email", False),
        ("date", "2024-01-15", True),
        ("date", "2024-13-45", False),
        ("date-time", "2024-01-15T10:30:00Z", True),
        ("date-time", "2024-01-15T10:30:00+02:00", True),
        ("date-time", "2024-01-15", False),
        ("uri", "https://example.com", True),
        ("uri", "not-a-url", False),
        ("uuid", "123e4567-e89b-12d3-a456-426614174000", True),
        ("uuid", "123", False),
        ("ipv4", "192.168.1.1", True),
        ("ipv4", "999.1.1.1", False),
        ("ipv6", "::1", True),
        ("ipv6", "192.168.1.1", False),
        ("ssn", "123-45-6789", True),
        ("ssn", "123456789", False),
        ("phone", "555-123-4567", True),
        ("phone", "5551234567", False),
    ])
    def test_checked_formats(self, fmt, value, expected):
        validator = compile_schema({"type": "string", "format": fmt})

        assert validator.is_valid(value) is expected

    def test_format_issue_names_format(self):
        issues = compile_schema({"type": "string", "format": "email"}).validate("x")

        assert issues[0].code == IssueCode.INVALID_STRING
        assert issues[0].params["validation"] == "email"

    def test_unknown_format_is_advisory(self):
        validator = compile_schema({"type": "string", "format": "credit-card"})

        assert validator.is_valid("anything")
        assert check_format("credit-card", "anything")

    def test_format_checks_can_be_disabled(self):
        config = SchemaEngineConfig(enable_format_checks=False)
        validator = compile_schema({"type": "string", "format": "email"}, config)

        assert validator.is_valid("not-an-email")


# =============================================================================
# Numbers
# =============================================================================


class TestNumericConstraints:
    """Tests for inclusive, exclusive and multipleOf constraints."""

    def test_minimum_with_exclusive_maximum(self):
        validator = compile_schema(
            {"type": "number", "minimum": 0, "exclusiveMaximum": 100}
        )

        assert validator.is_valid(0)
        assert validator.is_valid(99.99)
        assert not validator.is_valid(100)
        assert not validator.is_valid(-0.01)

    def test_inclusive_and_exclusive_bounds_both_hold(self):
        validator = compile_schema(
            {"type": "number", "minimum": 5, "exclusiveMinimum": 10}
        )

        assert not validator.is_valid(7)
        assert not validator.is_valid(10)
        assert validator.is_valid(11)

    def test_boolean_exclusive_flag_makes_bound_strict(self):
        validator = compile_schema(
            {"type": "number", "minimum": 0, "exclusiveMinimum": True}
        )

        assert not validator.is_valid(0)
        assert validator.is_valid(0.1)

    def test_bound_issue_params(self):
        issues = compile_schema({"type": "integer", "minimum": 18}).validate(12)

        assert issues[0].code == IssueCode.TOO_SMALL
        assert issues[0].params["origin"] == "number"
        assert issues[0].params["limit"] == 18
        assert issues[0].params["actual"] == 12
        assert issues[0].params["inclusive"] is True

    def test_multiple_of_float_tolerance(self):
        validator = compile_schema({"type": "number", "multipleOf": 0.1})

        assert validator.is_valid(0.3)
        assert validator.is_valid(1.2)
        assert not validator.is_valid(0.35)

    def test_multiple_of_integer(self):
        validator = compile_schema({"type": "integer", "multipleOf": 10})

        assert validator.is_valid(30)
        assert codes(validator, 35) == [IssueCode.NOT_MULTIPLE_OF]


# =============================================================================
# Arrays and objects
# =============================================================================


class TestArraysAndObjects:
    """Tests for items, length bounds, required and extra keys."""

    def test_array_bounds(self):
        validator = compile_schema({
            "type": "array",
            "items": {"type": "integer"},
            "minItems": 1,
            "maxItems": 2,
        })

        assert validator.is_valid([1])
        assert codes(validator, []) == [IssueCode.TOO_SMALL]
        assert codes(validator, [1, 2, 3]) == [IssueCode.TOO_BIG]

    def test_array_element_paths(self):
        validator = compile_schema({"type": "array", "items": {"type": "integer"}})

        issues = validator.validate([1, "x", 3])
        assert len(issues) == 1
        assert issues[0].path == (1,)

    def test_missing_required_property(self, person_schema):
        validator = compile_schema(person_schema)

        issues = validator.validate({"firstName": "Ada", "lastName": "Lovelace"})
        assert [(i.code, i.path) for i in issues] == [(IssueCode.MISSING, ("email",))]

    def test_present_null_is_not_missing(self, person_schema):
        """A required property set to null is a type error, not a missing one."""
        validator = compile_schema(person_schema)

        issues = validator.validate({
            "firstName": "Ada", "lastName": "Lovelace", "email": None,
        })
        assert issues[0].code == IssueCode.INVALID_TYPE
        assert issues[0].params["received"] == "null"

    def test_optional_properties_may_be_absent(self, person_schema):
        validator = compile_schema(person_schema)

        assert validator.is_valid({
            "firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com",
        })

    def test_nested_paths(self, claim_schema):
        validator = compile_schema(claim_schema)

        issues = validator.validate({
            "data": {
                "type": "form/21-526EZ",
                "attributes": {"veteranIdentification": {"ssn": "123456789"}},
            },
        })
        assert issues[0].path == ("data", "attributes", "veteranIdentification", "ssn")

    def test_additional_properties_false_rejects_extras(self):
        validator = compile_schema({
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": False,
        })

        issues = validator.validate({"a": "x", "extra": 1})
        assert issues[0].code == IssueCode.UNRECOGNIZED_KEYS
        assert issues[0].params["keys"] == ["extra"]

    @pytest.mark.parametrize("additional", [None, True, {"type": "integer"}])
    def test_extras_accepted_otherwise(self, additional):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        if additional is not None:
            schema["additionalProperties"] = additional

        assert compile_schema(schema).is_valid({"a": "x", "extra": "not checked"})

    def test_required_name_without_property(self):
        """required may name undeclared keys; absence is still reported."""
        validator = compile_schema({"type": "object", "required": ["ghost"]})

        assert codes(validator, {}) == [IssueCode.MISSING]


# =============================================================================
# Combinators
# =============================================================================


class TestCombinators:
    """Tests for allOf, anyOf, oneOf, type lists and enum."""

    def test_all_of_merges_objects(self):
        validator = compile_schema({"allOf": [
            {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]},
            {"type": "object", "properties": {"b": {"type": "integer"}}, "required": ["b"]},
        ]})

        assert validator.is_valid({"a": "x", "b": 1})
        issues = validator.validate({"a": "x"})
        assert [(i.code, i.path) for i in issues] == [(IssueCode.MISSING, ("b",))]

    def test_all_of_later_branch_overrides(self):
        validator = compile_schema({"allOf": [
            {"type": "object", "properties": {"a": {"type": "string"}}},
            {"type": "object", "properties": {"a": {"type": "integer"}}},
        ]})

        assert validator.is_valid({"a": 1})
        assert not validator.is_valid({"a": "x"})

    def test_all_of_non_object_branches_each_hold(self):
        validator = compile_schema({"allOf": [
            {"type": "string"},
            {"type": "string", "maxLength": 3},
        ]})

        assert validator.is_valid("abc")
        assert codes(validator, "abcd") == [IssueCode.TOO_BIG]

    def test_any_of_accepts_any_branch(self):
        validator = compile_schema({"anyOf": [{"type": "string"}, {"type": "integer"}]})

        assert validator.is_valid("x")
        assert validator.is_valid(1)
        assert codes(validator, 1.5) == [IssueCode.INVALID_UNION]

    def test_one_of_is_not_exclusive(self):
        validator = compile_schema({"oneOf": [{"type": "number"}, {"type": "integer"}]})

        assert validator.is_valid(1)

    def test_one_of_with_null_branch(self):
        validator = compile_schema({"oneOf": [{"type": "string"}, {"type": "null"}]})

        assert validator.is_valid("x")
        assert validator.is_valid(None)
        assert not validator.is_valid(1)

    def test_union_reports_matching_branch_issues(self):
        """When a branch matches the value's shape, its own issues are reported."""
        validator = compile_schema({"anyOf": [
            {"type": "string", "minLength": 5},
            {"type": "integer"},
        ]})

        assert codes(validator, "abc") == [IssueCode.TOO_SMALL]

    def test_type_list_behaves_as_union(self):
        validator = compile_schema({"type": ["string", "null"]})

        assert validator.is_valid("a")
        assert validator.is_valid(None)
        assert not validator.is_valid(1)

    def test_enum_uses_json_equality(self):
        validator = compile_schema({"enum": [1, 2]})

        assert validator.is_valid(1.0)
        assert not validator.is_valid(True)
        assert codes(validator, 3) == [IssueCode.INVALID_ENUM]

    def test_integer_enum_compares_values_not_strings(self):
        validator = compile_schema({"type": "integer", "enum": [1, 2, 3]})

        assert validator.is_valid(2)
        assert codes(validator, "2") == [IssueCode.INVALID_TYPE]
        assert codes(validator, 4) == [IssueCode.INVALID_ENUM]

    def test_enum_compares_containers_deeply(self):
        validator = compile_schema({"enum": [{"a": [1, 2]}]})

        assert validator.is_valid({"a": [1, 2]})
        assert not validator.is_valid({"a": [2, 1]})


# =============================================================================
# Graceful degradation
# =============================================================================


class TestGracefulDegradation:
    """Tests for $ref markers, untyped nodes and cyclic input."""

    def test_unresolved_ref_accepts_anything(self):
        validator = compile_schema({"$ref": "#/definitions/User"})

        assert validator.is_valid(123)
        assert validator.is_valid({"any": "thing"})

    def test_untyped_node_applies_matching_shape(self):
        validator = compile_schema({"properties": {"a": {"type": "string"}}})

        assert validator.is_valid(5)
        assert not validator.is_valid({"a": 1})

    def test_cyclic_schema_compiles(self):
        node = {"type": "object", "properties": {}}
        node["properties"]["child"] = node

        validator = compile_schema(node)
        assert validator.is_valid({"child": {"child": 1}})
        assert not validator.is_valid("not an object")

    def test_unknown_keys_are_ignored(self):
        validator = compile_schema({"type": "string", "x-internal": True, "readOnly": True})

        assert validator.is_valid("x")

    def test_validator_is_reusable(self, person_schema):
        validator = compile_schema(person_schema)

        first = validator.validate({})
        second = validator.validate({})
        assert first == second
        assert len(first) == 3


# =============================================================================
# Draft 7 translation
# =============================================================================


class TestDraft7Translation:
    """Tests for the jsonschema document a validator runs against."""

    def test_one_of_becomes_any_of(self):
        validator = compile_schema({"oneOf": [{"type": "string"}, {"type": "integer"}]})

        assert validator.document == {"anyOf": [{"type": "string"}, {"type": "integer"}]}

    def test_type_list_becomes_any_of(self):
        validator = compile_schema({"type": ["string", "null"], "maxLength": 2})

        assert validator.document == {"anyOf": [
            {"type": "string", "maxLength": 2},
            {"type": "null"},
        ]}

    def test_boolean_exclusive_flag_becomes_numeric(self):
        validator = compile_schema({
            "type": "number", "minimum": 0, "exclusiveMinimum": True,
            "maximum": 10, "exclusiveMaximum": False,
        })

        assert validator.document == {
            "type": "number", "exclusiveMinimum": 0, "maximum": 10,
        }

    def test_relaxed_keywords_are_dropped(self):
        validator = compile_schema({
            "type": "object",
            "properties": {"owner": {"$ref": "#/definitions/User"}},
            "additionalProperties": {"type": "integer"},
        })

        assert validator.document == {"type": "object", "properties": {"owner": {}}}

    def test_nullable_is_marked(self):
        validator = compile_schema({"type": "string", "enum": ["a"], "nullable": True})

        assert validator.document == {"type": "string", "enum": ["a"], "nullable": True}
        assert validator.is_valid(None)
        assert not validator.is_valid("b")

    def test_nullable_union_accepts_none(self):
        validator = compile_schema({
            "anyOf": [{"type": "string"}, {"type": "integer"}],
            "nullable": True,
        })

        assert validator.is_valid(None)
        assert codes(validator, 1.5) == [IssueCode.INVALID_UNION]

    def test_nullable_label(self):
        validator = compile_schema({
            "type": "object",
            "required": ["a"],
            "properties": {"a": {"type": "integer", "nullable": True}},
        })

        issues = validator.validate({})

        assert issues[0].params["expected"] == "integer | null"

    def test_required_names_are_deduplicated(self):
        validator = compile_schema({"type": "object", "required": ["a", "a"]})

        assert validator.document["required"] == ["a"]
        assert codes(validator, {}) == [IssueCode.MISSING]

    @pytest.mark.parametrize("fmt,value,expected", [
        ("time", "10:30:00Z", True),
        ("time", "10:30:00", False),
        ("hostname", "example.com", True),
        ("ssn", 123, True),
    ])
    def test_check_format(self, fmt, value, expected):
        assert check_format(fmt, value) is expected


# =============================================================================
# Compile failures
# =============================================================================


class TestCompileFailures:
    """Tests for schemas with no representable interpretation."""

    @pytest.mark.parametrize("schema", [
        {"type": "decimal"},
        {"type": ["string", "decimal"]},
        {"type": "string", "pattern": "[a-z"},
        {"type": "number", "multipleOf": 0},
        {"type": "number", "multipleOf": -2},
        {"enum": []},
        {"anyOf": []},
        {"oneOf": []},
        {"allOf": []},
    ])
    def test_compile_raises(self, schema):
        with pytest.raises(SchemaCompileError):
            compile_schema(schema)

    @pytest.mark.parametrize("schema", [
        "not a schema",
        ["type", "string"],
        {"type": "string", "minLength": "abc"},
        {"type": "string", "minLength": -1},
        {"type": "number", "minimum": float("inf")},
        {"type": "integer", "exclusiveMaximum": float("-inf")},
        {"type": "number", "multipleOf": float("nan")},
    ])
    def test_unparseable_schema(self, schema):
        with pytest.raises(SchemaParseError):
            compile_schema(schema)

    def test_compile_error_carries_schema_path(self):
        with pytest.raises(SchemaCompileError) as exc_info:
            compile_schema({
                "type": "object",
                "properties": {"code": {"type": "string", "pattern": "(unclosed"}},
            })

        assert exc_info.value.schema_path == "/properties/code/pattern"
        assert "cause" in exc_info.value.context

    def test_always_false_schema_compiles(self):
        validator = compile_schema({"type": "string", "minLength": 5, "maxLength": 2})

        assert not validator.is_valid("abc")

    def test_try_compile_returns_error_value(self):
        result = try_compile({"type": "decimal"})

        assert isinstance(result, CompileResult)
        assert not result.ok
        assert result.validator is None
        assert "decimal" in result.error.message

    def test_try_compile_returns_validator(self):
        result = try_compile({"type": "string"})

        assert result.ok
        assert result.error is None
        assert result.validator.is_valid("x")

    def test_try_compile_logs_exception_chain(self, caplog):
        with caplog.at_level(logging.WARNING, logger="apiscout.schema_engine.compiler"):
            try_compile({"type": "string", "pattern": "("})

        assert "Invalid pattern '('" in caplog.text
        assert "schema_path=/pattern" in caplog.text
        assert "caused by " in caplog.text


# =============================================================================
# Schema nesting
# =============================================================================


def nested_schema(levels):
    schema = {"type": "string"}
    for _ in range(levels):
        schema = {"type": "object", "properties": {"child": schema}}
    return schema


class TestSchemaNesting:
    """Tests for schemas nested past the configured limit."""

    def test_deep_schema_is_rejected(self):
        with pytest.raises(SchemaParseError) as exc_info:
            compile_schema(nested_schema(600))

        assert "nesting exceeds 64 levels" in exc_info.value.message
        assert exc_info.value.schema_path.startswith("/properties/child/properties")

    def test_limit_comes_from_config(self):
        config = SchemaEngineConfig(max_schema_nesting=8)

        compile_schema(nested_schema(3), config)
        with pytest.raises(SchemaParseError):
            compile_schema(nested_schema(4), config)

    def test_schema_at_limit_validates(self):
        validator = compile_schema(nested_schema(31))

        payload = "leaf"
        for _ in range(31):
            payload = {"child": payload}
        assert validator.is_valid(payload)

    def test_truncated_parse(self):
        node = parse_schema(nested_schema(600), max_nesting=4, truncate=True)

        truncated = node.properties["child"].properties["child"]
        assert truncated.type_ is None
        assert truncated.properties is None

    def test_shared_subschemas_are_not_cycles(self):
        leaf = {"type": "integer"}
        validator = compile_schema({
            "type": "object",
            "properties": {"a": leaf, "b": leaf},
        })

        assert not validator.is_valid({"a": 1, "b": "x"})
