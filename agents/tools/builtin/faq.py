from __future__ import annotations

from typing import Any, Dict

from agents.matching.faq_matcher import FAQMatcher
from agents.tools.base import ToolBase


class FAQTool(ToolBase):
    """Answers questions from the FAQ list carried in the agent's tool configuration."""

    name = "faq"
    description = "Answer frequently asked questions from a configured FAQ list"
    required_parameters = ("question",)

    def __init__(self, matcher: FAQMatcher | None = None):
        super().__init__()
        self.matcher = matcher or FAQMatcher()

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        question = str(parameters["question"])
        faqs = config.get("faqs") or []
        if not faqs:
            return {
                "question": question,
                "matched_faq": None,
                "success": False,
                "error": "No FAQ data configured",
            }
        return self.matcher.match(question, faqs, config, parameters.get("language") or "auto").to_dict()
