from __future__ import annotations

from agents.llm.base_llm import BaseLLM
from agents.reasoner.models import UsageTotals


class UsageAccumulator:
    """Element-wise running sum of token usage and cost over every model call of one run."""

    def __init__(self) -> None:
        self._totals = UsageTotals()
        self.calls = 0

    def add(self, response: BaseLLM.LLMResponse) -> None:
        prompt = response.prompt_tokens or 0
        completion = response.completion_tokens or 0
        total = response.total_tokens if response.total_tokens is not None else prompt + completion

        self._totals.prompt_tokens += prompt
        self._totals.completion_tokens += completion
        self._totals.total_tokens += total
        self._totals.cost += response.cost or 0.0
        self.calls += 1

    @property
    def cost(self) -> float:
        return self._totals.cost

    @property
    def totals(self) -> UsageTotals:
        return self._totals.model_copy()
