"""Shared utilities for provider implementations."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from codexflow.errors import ConfigurationError

MCP_TOOL_PREFIX = "mcp--"


def to_strict_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Normalize a JSON schema for strict function-calling requirements.

    Ensures that for all 'object' types:
    1. additionalProperties is False
    2. All defined properties are listed in 'required'
    3. Properties that were optional accept null instead
    """
    normalized = deepcopy(schema)

    def walk(node: Any) -> Any:
        if isinstance(node, list):
            return [walk(item) for item in node]
        if not isinstance(node, dict):
            return node

        updated: dict[str, Any] = {}
        for key, value in node.items():
            updated[key] = walk(value)

        if updated.get("type") == "object" or "properties" in updated:
            properties = updated.get("properties", {})
            if isinstance(properties, dict):
                originally_required = set(updated.get("required") or ())
                for name, prop in properties.items():
                    if name in originally_required or not isinstance(prop, dict):
                        continue
                    prop_type = prop.get("type")
                    if isinstance(prop_type, str) and prop_type != "null":
                        prop["type"] = [prop_type, "null"]
                updated["additionalProperties"] = False
                updated["required"] = list(properties.keys())

        return updated

    result = walk(normalized)
    if not isinstance(result, dict):
        raise ConfigurationError("Invalid tool parameters: expected object schema")
    return result


def convert_tools_for_openai(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Put function tools in strict mode; MCP-provided tools pass through as-is."""
    converted: list[dict[str, Any]] = []
    for tool in tools:
        function = tool.get("function")
        if tool.get("type") != "function" or not isinstance(function, dict):
            converted.append(tool)
            continue
        name = function.get("name", "")
        if isinstance(name, str) and name.startswith(MCP_TOOL_PREFIX):
            converted.append(tool)
            continue

        strict_function = dict(function)
        parameters = function.get("parameters")
        if isinstance(parameters, dict):
            strict_function["parameters"] = to_strict_schema(parameters)
        strict_function["strict"] = True
        converted.append({**tool, "function": strict_function})
    return converted
