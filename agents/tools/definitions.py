"""Persisted tool definitions: parameter schemas, config defaults and usage statistics.

The executor consults a ``ToolDefinitionStore`` on a best-effort basis only. A missing or
unreachable store must never make a registered tool unusable, so the null store is a
first-class implementation rather than a special case.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "ToolDefinition",
    "ToolDefinitionStore",
    "NullToolDefinitionStore",
    "InMemoryToolDefinitionStore",
    "SYSTEM_TOOL_DEFINITIONS",
]


def _usage_stats() -> Dict[str, float]:
    return {"total_calls": 0, "success_calls": 0, "failed_calls": 0, "avg_execution_time_ms": 0.0}


@dataclass
class ToolDefinition:
    name: str
    description: str = ""
    parameters_schema: Dict[str, Any] = field(default_factory=dict)
    config_defaults: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    usage_stats: Dict[str, float] = field(default_factory=_usage_stats)

    def validate(self, parameters: Dict[str, Any]) -> None:
        """Check required keys and basic JSON types. Raises ``ValueError`` on the first problem."""
        required = self.parameters_schema.get("required", [])
        properties = self.parameters_schema.get("properties", {})

        for key in required:
            if key not in parameters:
                raise ValueError(f"Missing required parameter: {key}")

        for key, value in parameters.items():
            expected = properties.get(key, {}).get("type")
            if expected == "string" and not isinstance(value, str):
                raise ValueError(f"Parameter {key} must be a string")
            if expected == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ValueError(f"Parameter {key} must be a number")
            if expected == "boolean" and not isinstance(value, bool):
                raise ValueError(f"Parameter {key} must be a boolean")

    def record_usage(self, success: bool, execution_time_ms: int) -> None:
        stats = self.usage_stats
        stats["total_calls"] += 1
        if success:
            stats["success_calls"] += 1
        else:
            stats["failed_calls"] += 1

        total = stats["total_calls"]
        stats["avg_execution_time_ms"] = (
            stats["avg_execution_time_ms"] * (total - 1) + execution_time_ms
        ) / total


@runtime_checkable
class ToolDefinitionStore(Protocol):
    def find_active_tool(self, name: str) -> Optional[ToolDefinition]: ...


class NullToolDefinitionStore:
    """Store used when no persistence is wired in; every lookup misses."""

    def find_active_tool(self, name: str) -> Optional[ToolDefinition]:
        return None


class InMemoryToolDefinitionStore:
    """Dictionary-backed store, seeded with the built-in definitions by default."""

    def __init__(self, definitions: List[ToolDefinition] | None = None):
        seed = SYSTEM_TOOL_DEFINITIONS if definitions is None else definitions
        self._definitions: Dict[str, ToolDefinition] = {d.name: copy.deepcopy(d) for d in seed}

    def add(self, definition: ToolDefinition) -> None:
        self._definitions[definition.name] = definition

    def find_active_tool(self, name: str) -> Optional[ToolDefinition]:
        definition = self._definitions.get(name)
        if definition is None or not definition.is_active:
            return None
        return definition


def _schema(properties: Dict[str, Any], required: List[str] | None = None) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required or []}


SYSTEM_TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name="calculator",
        description="Perform mathematical calculations and evaluate expressions",
        parameters_schema=_schema({"expression": {"type": "string"}}, ["expression"]),
    ),
    ToolDefinition(
        name="current_time",
        description="Get the current date and time in various formats",
        parameters_schema=_schema({"timezone": {"type": "string"}, "format": {"type": "string"}}),
    ),
    ToolDefinition(
        name="json_processor",
        description="Parse, validate, and manipulate JSON data",
        parameters_schema=_schema(
            {"data": {}, "operation": {"type": "string"}, "path": {"type": "string"}}, ["data"]
        ),
    ),
    ToolDefinition(
        name="api_caller",
        description="Make HTTP requests to pre-configured API endpoints with authentication",
        parameters_schema=_schema(
            {
                "endpoint_name": {"type": "string"},
                "method": {"type": "string"},
                "path_params": {"type": "object"},
                "query_params": {"type": "object"},
                "body_data": {"type": "object"},
                "headers": {"type": "object"},
                "timeout": {"type": "number"},
            },
        ),
        config_defaults={"timeout": 30, "summarization": {"enabled": False}},
    ),
    ToolDefinition(
        name="faq",
        description="Answer frequently asked questions from a configured FAQ list",
        parameters_schema=_schema({"question": {"type": "string"}, "language": {"type": "string"}}, ["question"]),
        config_defaults={"threshold": 0.3},
    ),
    ToolDefinition(
        name="rag_search",
        description="Search the organization's knowledge base",
        parameters_schema=_schema(
            {
                "query": {"type": "string"},
                "limit": {"type": "number"},
                "threshold": {"type": "number"},
                "search_type": {"type": "string"},
                "include_metadata": {"type": "boolean"},
            },
            ["query"],
        ),
        config_defaults={"semantic_weight": 0.7, "keyword_weight": 0.3},
    ),
    ToolDefinition(
        name="request_human_handoff",
        description="Request that a human operator takes over the conversation",
        parameters_schema=_schema(
            {"reason": {"type": "string"}, "urgency": {"type": "string"}, "context_summary": {"type": "string"}},
            ["reason"],
        ),
    ),
    ToolDefinition(
        name="google_calendar",
        description="Create, list, update and delete Google Calendar events and find free slots",
        parameters_schema=_schema({"action": {"type": "string"}}, ["action"]),
        config_defaults={"calendar_id": "primary"},
    ),
]
