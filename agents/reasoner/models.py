from __future__ import annotations

from typing import Any, List, Optional
from pydantic import BaseModel, Field


__all__ = [
    "ThinkingStep",
    "ToolInvocationRecord",
    "UsageTotals",
    "ReasoningResult",
]


class ThinkingStep(BaseModel):
    """One append-only entry of the explainability trace."""

    step: str
    reasoning: str


class ToolInvocationRecord(BaseModel):
    """Outcome of one tool call; success and failure are both terminal states."""

    tool_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    success: bool
    result: Optional[Any] = None
    error: Optional[str] = None
    execution_time_ms: int = 0


class UsageTotals(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0


class ReasoningResult(BaseModel):
    """Everything one reasoning run hands back to its caller."""

    final_answer: str
    thinking_process: List[ThinkingStep] = Field(default_factory=list)
    tools_used: List[ToolInvocationRecord] = Field(default_factory=list)
    token_usage: UsageTotals = Field(default_factory=UsageTotals)
    iterations: int = 0
    success: bool = False
    error_message: str | None = None
