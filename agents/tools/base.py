"""Tool interface shared by built-in tools and ad-hoc function tools."""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable

from agents.tools.exceptions import ToolConfigurationError


class ToolBase(ABC):
    """A named capability: ``validate`` the parameters, then ``execute`` them against a merged config.

    ``execute`` returns plain JSON-serialisable data or raises a ``ToolError``.
    """

    name: str = ""
    description: str = ""
    required_parameters: tuple[str, ...] = ()

    def __init__(self, id: str | None = None):
        self.id = id or self.name

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.id})"

    def validate(self, parameters: Dict[str, Any]) -> None:
        """Reject parameter sets missing any of ``required_parameters``."""
        if not isinstance(parameters, dict):
            raise ToolConfigurationError("Parameters must be a JSON object", tool_id=self.id)
        missing = [p for p in self.required_parameters if parameters.get(p) in (None, "")]
        if missing:
            raise ToolConfigurationError(
                f"Missing required parameter(s): {', '.join(missing)}", tool_id=self.id
            )

    @abstractmethod
    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Any: ...


class FunctionTool(ToolBase):
    """Adapts a plain ``(parameters, config) -> result`` callable to the tool interface."""

    def __init__(
        self,
        func: Callable[[Dict[str, Any], Dict[str, Any]], Any],
        *,
        name: str | None = None,
        required_parameters: Iterable[str] = (),
    ):
        self.func = func
        self.name = name or func.__name__
        self.required_parameters = tuple(required_parameters)
        doc = inspect.getdoc(func) or ""
        self.description = doc.splitlines()[0] if doc else ""
        super().__init__(id=self.name)

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Any:
        return self.func(parameters, config)

    def __call__(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Any:
        return self.func(parameters, config)
