from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import litellm

from agents.llm.base_llm import BaseLLM
from utils.logger import get_logger
logger = get_logger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

_USAGE_KEYS = {
    "prompt": ("prompt_tokens", "input_tokens"),
    "completion": ("completion_tokens", "output_tokens"),
    "total": ("total_tokens",),
}


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _first_int(obj: Any, keys: Tuple[str, ...]) -> Optional[int]:
    for key in keys:
        value = _field(obj, key)
        if isinstance(value, int):
            return value
    return None


class LiteLLM(BaseLLM):
    """Provider-agnostic chat, cost and embedding calls through litellm.

    Constructor values are defaults; ``model``, ``temperature``, ``max_tokens`` and
    ``timeout`` passed to :meth:`completion` win for that call. Any other keyword
    (``api_key``, ``top_p``, ``response_format``...) is forwarded unchanged.
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(model=model, temperature=temperature)
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _request(self, messages: List[Dict[str, str]], overrides: Dict[str, Any]) -> Dict[str, Any]:
        request: Dict[str, Any] = {"model": overrides.pop("model", None) or self.model, "messages": messages}
        defaults = {"temperature": self.temperature, "max_tokens": self.max_tokens, "timeout": self.timeout}
        for key, default in defaults.items():
            value = overrides.pop(key, default)
            if value is not None:
                request[key] = value
        request.update(overrides)
        return request

    def completion(self, messages: List[Dict[str, str]], **kwargs) -> BaseLLM.LLMResponse:
        request = self._request(messages, dict(kwargs))
        resp = litellm.completion(**request)

        choice = None
        try:
            choice = resp.choices[0]
        except (IndexError, AttributeError, TypeError):
            logger.warning("completion_without_choices", model=request["model"])

        content = _field(_field(choice, "message"), "content") if choice is not None else None
        finish_reason = _field(choice, "finish_reason") if choice is not None else None
        prompt_tokens, completion_tokens, total_tokens = self._extract_token_usage(resp)

        return BaseLLM.LLMResponse(
            text=content.strip() if isinstance(content, str) else "",
            finish_reason=finish_reason if isinstance(finish_reason, str) else None,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            cost=self._extract_cost(resp),
        )

    def embed(self, text: str, model: str | None = None, **kwargs) -> List[float]:
        resp = litellm.embedding(model=model or DEFAULT_EMBEDDING_MODEL, input=[text], **kwargs)
        first = _field(resp, "data")[0]
        return [float(v) for v in _field(first, "embedding")]

    def _extract_cost(self, resp: Any) -> float | None:
        """Provider-reported cost in USD, or None when litellm has no pricing for the model."""
        try:
            cost = litellm.completion_cost(completion_response=resp)
        except Exception as exc:
            logger.debug("completion_cost_unavailable", model=self.model, error=str(exc))
            return None
        return float(cost) if isinstance(cost, (int, float)) else None

    def _extract_token_usage(self, resp: Any) -> Tuple[int | None, int | None, int | None]:
        """(prompt, completion, total) tokens; OpenAI and Anthropic key names both accepted."""
        usage = _field(resp, "usage")
        if usage is None:
            return None, None, None

        prompt_tokens = _first_int(usage, _USAGE_KEYS["prompt"])
        completion_tokens = _first_int(usage, _USAGE_KEYS["completion"])
        total_tokens = _first_int(usage, _USAGE_KEYS["total"])
        if total_tokens is None and prompt_tokens is not None and completion_tokens is not None:
            total_tokens = prompt_tokens + completion_tokens
        return prompt_tokens, completion_tokens, total_tokens
