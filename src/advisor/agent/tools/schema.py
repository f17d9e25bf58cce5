"""
Parameter validation against a JSON Schema subset.

Supported keywords: ``type`` (object, string, number, integer, boolean,
array), ``properties``, ``required``, ``enum``, ``minimum``, ``maximum``,
``minLength``, ``maxLength``, ``items`` and ``additionalProperties: false``.
That covers every built-in tool; anything else in a schema is ignored.
"""

from __future__ import annotations

from typing import Any

from ...core.exceptions import ValidationError

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
}


def _check_value(name: str, value: Any, schema: dict[str, Any], errors: dict[str, str]) -> None:
    expected = schema.get("type")
    if expected and expected in _TYPE_CHECKS and not _TYPE_CHECKS[expected](value):
        errors[name] = f"expected {expected}, got {type(value).__name__}"
        return

    if "enum" in schema and value not in schema["enum"]:
        errors[name] = f"must be one of {schema['enum']}"
        return

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if "minimum" in schema and value < schema["minimum"]:
            errors[name] = f"must be >= {schema['minimum']}"
        elif "maximum" in schema and value > schema["maximum"]:
            errors[name] = f"must be <= {schema['maximum']}"

    if isinstance(value, str):
        if "minLength" in schema and len(value) < schema["minLength"]:
            errors[name] = f"must be at least {schema['minLength']} characters"
        elif "maxLength" in schema and len(value) > schema["maxLength"]:
            errors[name] = f"must be at most {schema['maxLength']} characters"

    if isinstance(value, list) and isinstance(schema.get("items"), dict):
        for index, item in enumerate(value):
            _check_value(f"{name}[{index}]", item, schema["items"], errors)


def collect_errors(params: Any, schema: dict[str, Any]) -> dict[str, str]:
    """Return field-level validation messages; empty when ``params`` is valid."""
    if not isinstance(params, dict):
        return {"$": "parameters must be an object"}

    errors: dict[str, str] = {}
    properties = schema.get("properties", {})

    for name in schema.get("required", []):
        if name not in params or params[name] is None:
            errors[name] = "is required"

    for name, value in params.items():
        if name in errors:
            continue
        if name in properties:
            _check_value(name, value, properties[name], errors)
        elif schema.get("additionalProperties") is False:
            errors[name] = "is not an allowed parameter"

    return errors


def validate_params(tool_id: str, params: Any, schema: dict[str, Any]) -> None:
    """Validate ``params`` against ``schema``.

    Raises:
        ValidationError: With one entry per offending field
    """
    errors = collect_errors(params, schema)
    if errors:
        first = next(iter(errors))
        summary = "; ".join(f"{k} {v}" for k, v in errors.items())
        raise ValidationError(
            f"Invalid parameters for {tool_id}: {summary}",
            field=first,
            errors=errors,
        )
