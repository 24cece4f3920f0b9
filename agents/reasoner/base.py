from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict

from agents.llm.base_llm import BaseLLM
from agents.models import ReasoningContext
from agents.reasoner.models import ReasoningResult
from agents.tools.executor import ToolExecutor

__all__ = ["BaseReasoner", "CancellationToken", "ReasoningResult"]


class CancellationToken:
    """Thread-safe flag a caller can set to stop a run at its next iteration boundary or tool dispatch."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "Run cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BaseReasoner(ABC):
    def __init__(self, *, llm: BaseLLM, executor: ToolExecutor) -> None:
        self.llm = llm
        self.executor = executor

    @abstractmethod
    def run(
        self,
        context: ReasoningContext,
        *,
        dynamic_context: Dict[str, Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ReasoningResult: ...
