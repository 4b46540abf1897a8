from typing import Any, Dict, List, Set

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class SchemaValidator:
    """
    Helper class for validating, sanitizing and rendering JSON schemas for tools.
    """

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.
        Raises ToolValidationError if a cycle is detected.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        msg = (
                            f"Recursive structure detected: {ref}. "
                            "Recursive structures are not allowed in tool inputs. "
                            "Use parent_id, lists, or a workflow loop instead."
                        )
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/MyModel
                    if ref.startswith("#"):
                        parts = ref.split("/")
                        if len(parts) >= 3:
                            def_name = parts[-1]
                            if def_name in defs:
                                check(defs[def_name], path | {ref})
                    return

                for v in node.values():
                    check(v, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema before it is rendered into the tool catalog.
        Removes $defs, $schema, $id, title.
        Simplifies Optional fields (anyOf with null).

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = schema.copy()

        for key in ["$defs", "$schema", "$id", "title", "definitions"]:
            new_schema.pop(key, None)

        # Optional[X] arrives as anyOf: [X, null]
        if "anyOf" in new_schema:
            any_of = new_schema["anyOf"]
            non_null = [x for x in any_of if isinstance(x, dict) and x.get("type") != "null"]

            if len(non_null) == 1:
                merged = non_null[0].copy()
                for inherited in ("description", "default"):
                    if inherited in new_schema:
                        merged[inherited] = new_schema[inherited]
                return SchemaValidator.sanitize_schema(merged)

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [
                    SchemaValidator.sanitize_schema(item) if isinstance(item, dict) else item for item in value
                ]

        return new_schema

    @staticmethod
    def check_required_args(tool_name: str, schema: Dict[str, Any], args: Any) -> None:
        """Ensure every key listed under ``required`` is present in ``args``.

        Args:
            tool_name: Tool name used in the error message.
            schema: The tool's parameter schema.
            args: The decoded arguments.

        Raises:
            ToolValidationError: If arguments are not an object or required keys are missing.
        """
        required: List[str] = list(schema.get("required") or [])
        if not required:
            return
        if not isinstance(args, dict):
            raise ToolValidationError(f"Arguments for tool '{tool_name}' must be a JSON object.")

        missing = [key for key in required if key not in args]
        if missing:
            raise ToolValidationError(f"Missing required parameters for tool '{tool_name}': {', '.join(missing)}")

    @staticmethod
    def format_parameters(schema: Dict[str, Any]) -> str:
        """Render a parameter schema as the human-readable catalog block.

        Args:
            schema: The tool's parameter schema.

        Returns:
            ``{}`` for parameterless tools, otherwise one indented line per property.
        """
        props: Dict[str, Any] = schema.get("properties") or {}
        required = schema.get("required") or []

        lines = []
        for key, value in props.items():
            value = value if isinstance(value, dict) else {}
            type_info = value.get("type") or "any"
            if isinstance(type_info, list):
                type_info = "|".join(str(t) for t in type_info)
            desc = value.get("description") or ""
            req_marker = "(required)" if key in required else "(optional)"
            lines.append(f"    {key}: {type_info} {req_marker} - {desc}")

        if not lines:
            return "{}"
        return "{\n" + "\n".join(lines) + "\n  }"
