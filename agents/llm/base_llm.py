"""Lightweight LLM wrapper interfaces used by the reasoner, the FAQ matcher and the summarizers."""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List

from utils.logger import get_logger
logger = get_logger(__name__)


class BaseLLM(ABC):
    """Minimal synchronous chat‑LLM interface.

    • Accepts a list[dict] *messages* like the OpenAI Chat format.
    • Returns an ``LLMResponse`` carrying the assistant text plus token usage and cost.
    • Implementations SHOULD be stateless; auth + model name given at init.
    """

    @dataclass
    class LLMResponse:
        text: str
        finish_reason: str | None = None
        prompt_tokens: int | None = None
        completion_tokens: int | None = None
        total_tokens: int | None = None
        cost: float | None = None

    def __init__(self, model: str | None = None, temperature: float | None = None) -> None:
        self.model = model or os.getenv("LLM_MODEL")
        if not self.model:
            raise ValueError("No LLM model configured. Pass model= or set LLM_MODEL.")
        self.temperature = temperature

    @abstractmethod
    def completion(self, messages: List[Dict[str, str]], **kwargs) -> "BaseLLM.LLMResponse": ...

    def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        parameters: Dict[str, Any] | None = None,
        system_prompt: str | None = None,
    ) -> "BaseLLM.LLMResponse":
        """Single-prompt call with an optional system prompt and per-agent model parameters."""
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = dict(parameters or {})
        if model:
            kwargs["model"] = model
        return self.completion(messages, **kwargs)

    def embed(self, text: str, model: str | None = None, **kwargs) -> List[float]:
        """Return an embedding vector for *text*. Providers without embeddings raise."""
        raise NotImplementedError(f"{type(self).__name__} does not support embeddings")
