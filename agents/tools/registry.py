"""Name-keyed tool registry. Built once at process start and injected; read-only afterwards."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Union

from agents.tools.base import FunctionTool, ToolBase
from utils.logger import get_logger

logger = get_logger(__name__)

Handler = Union[ToolBase, Callable[[Dict[str, Any], Dict[str, Any]], Any]]


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolBase] = {}

    def register(self, name: str, handler: Handler) -> ToolBase:
        """Register a tool instance, or wrap a plain ``(parameters, config)`` callable."""
        if not name:
            raise ValueError("Tool name must be a non-empty string")
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")

        if isinstance(handler, ToolBase):
            tool = handler
        elif callable(handler):
            tool = FunctionTool(handler, name=name)
        else:
            raise TypeError(f"Handler for '{name}' is neither a ToolBase nor callable")
        tool.id = name
        self._tools[name] = tool
        logger.debug("tool_registered", tool=name, handler=type(tool).__name__)
        return tool

    def get(self, name: str) -> ToolBase | None:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolBase]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
