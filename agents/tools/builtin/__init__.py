"""Built-in tools and the factory that wires them into a registry at process start."""
from __future__ import annotations

import httpx

from agents.llm.base_llm import BaseLLM
from agents.matching.faq_matcher import FAQMatcher
from agents.security import SecretDecryptor
from agents.tools.builtin.api_caller import ApiCallerTool
from agents.tools.builtin.calculator import CalculatorTool
from agents.tools.builtin.current_time import CurrentTimeTool
from agents.tools.builtin.faq import FAQTool
from agents.tools.builtin.google_calendar import GoogleCalendarTool
from agents.tools.builtin.human_handoff import HandoffService, HumanHandoffTool
from agents.tools.builtin.json_processor import JsonProcessorTool
from agents.tools.builtin.knowledge_base import KnowledgeBaseSearch, RagSearchTool
from agents.tools.registry import ToolRegistry

__all__ = [
    "ApiCallerTool",
    "CalculatorTool",
    "CurrentTimeTool",
    "FAQTool",
    "GoogleCalendarTool",
    "HumanHandoffTool",
    "JsonProcessorTool",
    "RagSearchTool",
    "build_default_registry",
]


def build_default_registry(
    *,
    llm: BaseLLM | None = None,
    http_client: httpx.Client | None = None,
    decryptor: SecretDecryptor | None = None,
    knowledge_base: KnowledgeBaseSearch | None = None,
    handoff_service: HandoffService | None = None,
    http_timeout: float = 30.0,
    faq_threshold: float = 0.3,
) -> ToolRegistry:
    """Registry holding every built-in tool. ``llm`` doubles as the FAQ embedder."""
    client = http_client or httpx.Client(follow_redirects=True)
    registry = ToolRegistry()
    for tool in (
        ApiCallerTool(client, decryptor=decryptor, default_timeout=http_timeout),
        CalculatorTool(),
        CurrentTimeTool(),
        JsonProcessorTool(),
        FAQTool(FAQMatcher(llm, default_threshold=faq_threshold)),
        RagSearchTool(knowledge_base),
        HumanHandoffTool(handoff_service),
        GoogleCalendarTool(client, decryptor=decryptor, timeout=http_timeout),
    ):
        registry.register(tool.name, tool)
    return registry
