"""
Schema Validator - Validates tool parameters before dispatch

Responsibility:
- Run the tool's structured schema when it has one
- Otherwise check the declared input schema (required names, primitive types)
- Provide clear, per-field error messages
- NOT execute anything
- NOT transform parameters (extra parameters pass through untouched)
"""

from typing import Any, Callable

from jsonschema import Draft7Validator
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from toolgate.core.tool_registry import StructuredSchema, ToolDefinition
from toolgate.exceptions import ToolValidationException


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "number": _is_number,
    "boolean": lambda value: isinstance(value, bool),
    "object": lambda value: isinstance(value, dict),
}


class SchemaValidator:
    """
    Parameter validator.

    Structured schemas are either pydantic models or JSON Schema dicts
    (checked with jsonschema Draft 7). Tools without one get the declared
    checks, in a fixed order: required names first, then primitive types.
    """

    @staticmethod
    def validate_parameters(tool: ToolDefinition, parameters: dict[str, Any]) -> None:
        """
        Raises:
            ToolValidationException: If the parameters do not match
        """
        if tool.structured_schema is not None:
            errors = SchemaValidator.structured_errors(tool.structured_schema, parameters)
        else:
            errors = SchemaValidator.declared_errors(tool.input_schema, parameters)

        if errors:
            raise ToolValidationException(tool.name, errors)

    @staticmethod
    def structured_errors(schema: StructuredSchema, parameters: dict[str, Any]) -> list[str]:
        """Run a structured schema and return ``"field.path: message"`` entries."""
        if isinstance(schema, dict):
            validator = Draft7Validator(schema)
            found = sorted(validator.iter_errors(parameters), key=lambda e: [str(p) for p in e.path])
            return [
                f"{'.'.join(str(p) for p in error.path) or 'parameters'}: {error.message}"
                for error in found
            ]

        if isinstance(schema, type) and issubclass(schema, BaseModel):
            try:
                schema.model_validate(parameters)
            except PydanticValidationError as exc:
                return [
                    f"{'.'.join(str(p) for p in error['loc']) or 'parameters'}: {error['msg']}"
                    for error in exc.errors()
                ]
            return []

        raise TypeError(f"Unsupported structured schema: {schema!r}")

    @staticmethod
    def declared_errors(input_schema: dict[str, Any], parameters: dict[str, Any]) -> list[str]:
        """Required names, then declared primitive types. Stops at the first failure."""
        for name in input_schema.get("required") or []:
            if name not in parameters:
                return [f"Required parameter '{name}' is missing"]

        properties = input_schema.get("properties") or {}
        for key, value in parameters.items():
            declared = (properties.get(key) or {}).get("type")
            check = _TYPE_CHECKS.get(declared)
            if check is not None and not check(value):
                article = "an" if declared == "object" else "a"
                return [f"Parameter '{key}' must be {article} {declared}"]

        return []


__all__ = ["SchemaValidator"]
