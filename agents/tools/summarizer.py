"""Condenses large API-caller results before they are fed back into the reasoning prompt."""
from __future__ import annotations

import json
from textwrap import dedent
from typing import Any, Dict

from agents.llm.base_llm import BaseLLM
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_SIZE = 2000
DEFAULT_MAX_TOKENS = 150
DEFAULT_SUMMARY_MODEL = "gpt-4o-mini"
FALLBACK_PREVIEW_CHARS = 200

SUMMARIZE_API_RESULT_PROMPT = dedent("""
    <role>
    You condense raw HTTP API responses into a short factual digest that another AI agent will use to answer a user.
    </role>

    <input>
    endpoint: {endpoint}
    status_code: {status_code}
    focus: {focus}
    response: {response}
    </input>

    <rules>
    1. Keep every concrete value the focus asks for (names, numbers, dates, identifiers, error messages).
    2. Drop boilerplate, pagination links and repeated structure.
    3. Stay within roughly {max_tokens} tokens. Plain text only, no markdown.
    4. Never invent data that is not present in the response.
    </rules>
""").strip()


def _serialize(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


class ApiResultSummarizer:
    """LLM-backed summarizer with a deterministic fallback.

    Config (``merged_config["summarization"]``)::

        {enabled, model, max_tokens, min_size, focus,
         endpoint_rules: {<endpoint_name>: {max_tokens, focus}}}
    """

    def __init__(self, llm: BaseLLM, *, default_model: str = DEFAULT_SUMMARY_MODEL, min_size: int = DEFAULT_MIN_SIZE):
        self.llm = llm
        self.default_model = default_model
        self.min_size = min_size

    def summarize(self, result: Any, config: Dict[str, Any]) -> Any:
        settings: Dict[str, Any] = config.get("summarization") or {}
        serialized = _serialize(result)
        min_size = settings.get("min_size", self.min_size)

        if len(serialized) < min_size:
            return result

        endpoint = result.get("endpoint_name") if isinstance(result, dict) else None
        rule = (settings.get("endpoint_rules") or {}).get(endpoint or "", {})
        max_tokens = rule.get("max_tokens") or settings.get("max_tokens") or DEFAULT_MAX_TOKENS
        focus = rule.get("focus") or settings.get("focus") or "the information most relevant to the user's request"

        try:
            summary = self._ask_llm(result, config, endpoint=endpoint, focus=focus, max_tokens=max_tokens)
            fallback = False
        except Exception as exc:
            logger.warning("api_result_summary_fallback", endpoint=endpoint, error=str(exc))
            summary = self.fallback_summary(result)
            fallback = True

        logger.info(
            "api_result_summarized",
            endpoint=endpoint,
            original_length=len(serialized),
            summary_length=len(summary),
            fallback=fallback,
        )
        base = result if isinstance(result, dict) else {"data": result}
        return {**base, "body": summary, "_summarized": True, "_original_length": len(serialized)}

    def _ask_llm(self, result: Any, config: Dict[str, Any], *, endpoint: str | None, focus: str, max_tokens: int) -> str:
        settings = config.get("summarization") or {}
        agent_key = config.get("_agent_api_key") or {}
        model = settings.get("model") or agent_key.get("model") or self.default_model

        parameters: Dict[str, Any] = {"max_tokens": max_tokens, "temperature": 0.2}
        if agent_key.get("key"):
            parameters["api_key"] = agent_key["key"]

        status_code = result.get("status_code") if isinstance(result, dict) else None
        body = result.get("body", result) if isinstance(result, dict) else result
        prompt = SUMMARIZE_API_RESULT_PROMPT.format(
            endpoint=endpoint or "unknown",
            status_code=status_code,
            focus=focus,
            response=_serialize(body),
            max_tokens=max_tokens,
        )
        response = self.llm.complete(prompt, model=model, parameters=parameters)
        text = (response.text or "").strip()
        if not text:
            raise ValueError("Empty summary returned by the model")
        return text

    @staticmethod
    def fallback_summary(result: Any) -> str:
        if isinstance(result, dict):
            status = result.get("status_code")
            ok = result.get("success", isinstance(status, int) and 200 <= status < 300)
            data = result.get("body", result)
        else:
            status, ok, data = None, True, result
        preview = _serialize(data)[:FALLBACK_PREVIEW_CHARS]
        return f"Status {status} ({'OK' if ok else 'ERROR'}). Data: {preview}..."
