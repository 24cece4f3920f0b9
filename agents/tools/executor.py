"""Tool executor: the failure boundary between the reasoning loop and tool handlers."""
from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from agents.tools.definitions import NullToolDefinitionStore, ToolDefinition, ToolDefinitionStore
from agents.tools.exceptions import ToolError, ToolNotFoundError
from agents.tools.registry import ToolRegistry
from agents.tools.summarizer import ApiResultSummarizer
from utils.logger import get_logger

logger = get_logger(__name__)

API_CALLER = "api_caller"


@dataclass
class ToolResult:
    tool_name: str
    success: bool
    result: Any = None
    error: str | None = None
    execution_time_ms: int = 0


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ToolError):
        return exc.message
    return str(exc) or type(exc).__name__


class ToolExecutor:
    """Looks up, validates, times and runs one tool call. ``execute`` never raises."""

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        definition_store: ToolDefinitionStore | None = None,
        summarizer: ApiResultSummarizer | None = None,
    ):
        self.registry = registry
        self.definition_store = definition_store or NullToolDefinitionStore()
        self.summarizer = summarizer

    def execute(
        self,
        name: str,
        parameters: Dict[str, Any] | None,
        agent_tool_config: Dict[str, Any] | None = None,
    ) -> ToolResult:
        start = time.perf_counter()
        parameters = parameters if parameters is not None else {}

        tool = self.registry.get(name)
        if tool is None:
            message = ToolNotFoundError(name).message
            logger.warning("tool_not_found", tool=name)
            return ToolResult(tool_name=name, success=False, error=message, execution_time_ms=_elapsed_ms(start))

        definition = self._find_definition(name)

        try:
            if definition is not None:
                definition.validate(parameters)
            merged = self._merge_config(definition, agent_tool_config)
            tool.validate(parameters)
            result = tool.execute(parameters, merged)
        except Exception as exc:
            elapsed = _elapsed_ms(start)
            logger.warning(
                "tool_execution_failed",
                tool=name,
                error=_error_message(exc),
                error_type=type(exc).__name__,
                execution_time_ms=elapsed,
            )
            self._record_usage(definition, False, elapsed)
            return ToolResult(tool_name=name, success=False, error=_error_message(exc), execution_time_ms=elapsed)

        elapsed = _elapsed_ms(start)

        if name == API_CALLER and self._summarization_enabled(merged):
            result = self._summarize(result, merged)

        self._record_usage(definition, True, elapsed)
        logger.info("tool_executed", tool=name, execution_time_ms=elapsed)
        return ToolResult(tool_name=name, success=True, result=result, execution_time_ms=elapsed)

    def _find_definition(self, name: str) -> Optional[ToolDefinition]:
        try:
            return self.definition_store.find_active_tool(name)
        except Exception as exc:
            logger.info("tool_definition_lookup_skipped", tool=name, error=str(exc))
            return None

    @staticmethod
    def _merge_config(definition: Optional[ToolDefinition], agent_tool_config: Dict[str, Any] | None) -> Dict[str, Any]:
        defaults = copy.deepcopy(definition.config_defaults) if definition is not None else {}
        return {**defaults, **(agent_tool_config or {})}

    @staticmethod
    def _summarization_enabled(config: Dict[str, Any]) -> bool:
        summarization = config.get("summarization")
        return isinstance(summarization, dict) and bool(summarization.get("enabled"))

    def _summarize(self, result: Any, config: Dict[str, Any]) -> Any:
        if self.summarizer is None:
            logger.debug("summarizer_not_configured")
            return result
        try:
            return self.summarizer.summarize(result, config)
        except Exception as exc:
            logger.warning("api_result_summarization_failed", error=str(exc), exc_info=True)
            return result

    @staticmethod
    def _record_usage(definition: Optional[ToolDefinition], success: bool, execution_time_ms: int) -> None:
        if definition is None:
            return
        try:
            definition.record_usage(success, execution_time_ms)
        except Exception as exc:
            logger.warning("tool_usage_record_failed", tool=definition.name, error=str(exc))
