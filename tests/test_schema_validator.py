import pytest

from agentic_engine.llm_core.exceptions import ToolValidationError
from agentic_engine.llm_core.tools.schema import SchemaValidator


def test_assert_no_recursive_refs_no_recursion():
    schema = {
        "type": "object",
        "properties": {
            "prop1": {"type": "string"},
            "prop2": {"type": "object", "properties": {"subprop": {"type": "integer"}}},
        },
    }
    # Should not raise
    SchemaValidator.assert_no_recursive_refs(schema)


def test_assert_no_recursive_refs_with_recursion():
    schema = {
        "$defs": {"Node": {"type": "object", "properties": {"child": {"$ref": "#/$defs/Node"}}}},
        "properties": {"root": {"$ref": "#/$defs/Node"}},
    }
    with pytest.raises(ToolValidationError, match="Recursive structure detected"):
        SchemaValidator.assert_no_recursive_refs(schema)


def test_sanitize_schema_removes_metadata():
    schema = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "$id": "http://example.com/schema",
        "title": "MySchema",
        "type": "object",
        "properties": {"field": {"type": "string", "title": "FieldTitle"}},
        "definitions": {"SomeDef": {}},
    }
    sanitized = SchemaValidator.sanitize_schema(schema)

    assert "$schema" not in sanitized
    assert "$id" not in sanitized
    assert "title" not in sanitized
    assert "definitions" not in sanitized
    assert "title" not in sanitized["properties"]["field"]


def test_sanitize_schema_keeps_property_named_title():
    schema = {"type": "object", "properties": {"title": {"type": "string", "title": "Title"}}}

    assert SchemaValidator.sanitize_schema(schema) == {"type": "object", "properties": {"title": {"type": "string"}}}


def test_sanitize_schema_simplifies_optional():
    # Simulating Optional[int] -> anyOf: [type: integer, type: null]
    schema = {
        "type": "object",
        "properties": {
            "optional_field": {
                "anyOf": [{"type": "integer", "description": "An integer"}, {"type": "null"}],
                "description": "Parent description",
                "default": None,
            }
        },
    }
    sanitized = SchemaValidator.sanitize_schema(schema)

    assert sanitized["properties"]["optional_field"] == {
        "type": "integer",
        "description": "Parent description",
        "default": None,
    }


def test_check_required_args():
    schema = {"type": "object", "properties": {"url": {"type": "string"}}, "required": ["url"]}

    SchemaValidator.check_required_args("web_fetch", schema, {"url": "https://example.com"})
    SchemaValidator.check_required_args("ping", {"type": "object", "properties": {}}, None)

    with pytest.raises(ToolValidationError, match="Missing required parameters for tool 'web_fetch': url"):
        SchemaValidator.check_required_args("web_fetch", schema, {})
    with pytest.raises(ToolValidationError, match="must be a JSON object"):
        SchemaValidator.check_required_args("web_fetch", schema, ["https://example.com"])


def test_format_parameters():
    schema = {
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "HTTPS URL to fetch"},
            "extract": {"type": "boolean", "description": "Extract main content"},
        },
        "required": ["url"],
    }

    assert SchemaValidator.format_parameters(schema) == (
        "{\n"
        "    url: string (required) - HTTPS URL to fetch\n"
        "    extract: boolean (optional) - Extract main content\n"
        "  }"
    )
    assert SchemaValidator.format_parameters({"type": "object"}) == "{}"
    assert SchemaValidator.format_parameters({"properties": {"x": {}}}) == "{\n    x: any (optional) - \n  }"
