from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError

OPERATIONS = ("parse", "stringify", "extract", "validate")
_PATH_TOKEN_RE = re.compile(r"[^.\[\]]+")


def split_path(path: str) -> List[str]:
    """``"users[0].name"`` and ``"users.0.name"`` both become ``["users", "0", "name"]``."""
    return _PATH_TOKEN_RE.findall(path)


def extract_path(data: Any, path: str) -> Any:
    current = data
    for token in split_path(path):
        if isinstance(current, dict):
            current = current.get(token)
        elif isinstance(current, list) and token.lstrip("-").isdigit():
            index = int(token)
            current = current[index] if -len(current) <= index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _json_type(value: Any) -> str:
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return "string"


class JsonProcessorTool(ToolBase):
    name = "json_processor"
    description = "Parse, validate, and manipulate JSON data"

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        if "data" not in parameters:
            raise ToolConfigurationError("Missing required parameter(s): data", tool_id=self.id)
        operation = parameters.get("operation", "parse")
        if operation not in OPERATIONS:
            raise ToolConfigurationError(f"Unsupported operation: {operation}", tool_id=self.id)
        if operation == "extract" and not parameters.get("path"):
            raise ToolConfigurationError("Path parameter required for extract operation", tool_id=self.id)

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        data = parameters["data"]
        operation = parameters.get("operation", "parse")

        if operation == "validate":
            return {"operation": operation, "result": self._validate_data(data), "success": True}

        try:
            if operation == "parse":
                result = json.loads(data) if isinstance(data, str) else data
            elif operation == "stringify":
                result = json.dumps(data, indent=2, ensure_ascii=False)
            else:
                source = json.loads(data) if isinstance(data, str) else data
                result = extract_path(source, parameters["path"])
        except (TypeError, ValueError) as exc:
            raise ToolExecutionError(f"JSON processing error: {exc}", tool_id=self.id) from exc

        return {"operation": operation, "result": result, "success": True}

    @staticmethod
    def _validate_data(data: Any) -> Dict[str, Any]:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                return {"valid": False, "error": str(exc), "type": "string", "keys": None}
        return {
            "valid": True,
            "type": _json_type(data),
            "keys": list(data) if isinstance(data, dict) else None,
        }
