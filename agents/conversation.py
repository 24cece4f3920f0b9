"""Conversation state for chat agents and the rolling summarizer that keeps it compact."""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from textwrap import dedent
from typing import Any, Dict, List, Optional

from agents.llm.base_llm import BaseLLM
from agents.models import Message
from utils.json_parser import parse_json
from utils.logger import get_logger

logger = get_logger(__name__)

CHARS_PER_TOKEN = 4


def estimate_tokens(messages: List[Message]) -> int:
    total = 0
    for msg in messages:
        total += math.ceil(len(msg.content) / CHARS_PER_TOKEN)
        thinking = msg.metadata.get("thinking_process")
        if thinking:
            total += math.ceil(len(json.dumps(thinking, default=str)) / CHARS_PER_TOKEN)
    return total


@dataclass
class ConversationSummary:
    key_topics: List[str] = field(default_factory=list)
    important_decisions: List[str] = field(default_factory=list)
    unresolved_issues: List[str] = field(default_factory=list)
    user_preferences: Dict[str, Any] = field(default_factory=dict)
    context_data: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    message_count: int = 0

    def to_context(self) -> str:
        lines = ["=== CONVERSATION SUMMARY ==="]
        if self.key_topics:
            lines.append(f"Key Topics Discussed: {', '.join(self.key_topics)}")
        if self.important_decisions:
            lines.append(f"Important Decisions Made: {'; '.join(self.important_decisions)}")
        if self.unresolved_issues:
            lines.append(f"Unresolved Issues: {'; '.join(self.unresolved_issues)}")
        if self.user_preferences:
            lines.append(f"User Preferences: {json.dumps(self.user_preferences, default=str)}")
        if self.context_data:
            lines.append(f"Important Context: {json.dumps(self.context_data, default=str)}")
        lines.append(f"(Summary covers {self.message_count} messages up to {self.created_at.isoformat()})")
        lines.append("=== END SUMMARY ===")
        return "\n".join(lines) + "\n"


@dataclass
class Conversation:
    """One chat thread. Holds the full message list; the engine only ever reads a bounded window of it."""

    id: str
    agent_id: str = ""
    messages: List[Message] = field(default_factory=list)
    summary: Optional[ConversationSummary] = None
    last_summary_index: int = -1
    summary_version: int = 0
    requires_summarization: bool = False
    title: Optional[str] = None
    total_tokens_used: int = 0
    total_cost: float = 0.0

    def add_message(self, message: Message) -> None:
        self.messages.append(message)
        usage = message.metadata.get("token_usage") or {}
        self.total_tokens_used += usage.get("total_tokens", 0) or 0
        self.total_cost += usage.get("cost", 0.0) or 0.0
        if len(self.messages) - (self.last_summary_index + 1) >= ConversationSummarizer.MESSAGES_PER_SUMMARY:
            self.requires_summarization = True

    def context_for_agent(self, max_tokens: int = 4000) -> List[Message]:
        """System messages, then the summary and everything after it, or the newest messages that fit *max_tokens*."""
        system = [m for m in self.messages if m.role == "system"]
        if self.summary is not None and self.last_summary_index >= 0:
            summary_msg = Message(role="system", content=self.summary.to_context(), metadata={"is_summarized": True})
            return [*system, summary_msg, *self.messages[self.last_summary_index + 1 :]]

        available = max_tokens - estimate_tokens(system)
        selected: List[Message] = []
        used = 0
        for msg in reversed([m for m in self.messages if m.role != "system"]):
            cost = estimate_tokens([msg])
            if used + cost > available:
                break
            selected.insert(0, msg)
            used += cost
        return [*system, *selected]

    def update_summary(self, summary: ConversationSummary) -> None:
        summary.message_count = len(self.messages)
        self.summary = summary
        self.last_summary_index = len(self.messages) - 1
        self.summary_version += 1
        self.requires_summarization = False


SUMMARY_SYSTEM_PROMPT = dedent(
    """
    You are a conversation summarization expert. Your task is to analyze conversations and extract the most important information for future context.

    Focus on:
    1. KEY TOPICS: Main subjects discussed (max 5 topics)
    2. IMPORTANT DECISIONS: Concrete decisions made or agreed upon
    3. UNRESOLVED ISSUES: Questions or problems that need follow-up
    4. USER PREFERENCES: User's stated preferences, constraints, or requirements
    5. CONTEXT DATA: Important facts, numbers, names, or references that should be remembered

    Guidelines:
    - Be concise but comprehensive
    - Merge with existing summary information when provided
    - Return ONLY valid JSON in the exact format requested
    """
).strip()

SUMMARY_SCHEMA = dedent(
    """
    Provide your analysis in this exact JSON format:
    {
      "key_topics": ["topic1", "topic2", "topic3"],
      "important_decisions": ["decision1", "decision2"],
      "unresolved_issues": ["issue1", "issue2"],
      "user_preferences": {"preference_type": "value"},
      "context_data": {"important_key": "important_value"}
    }
    """
).strip()

SUMMARY_MODELS = {
    "gpt-4o": "gpt-4o-mini",
    "gpt-4-turbo": "gpt-4o-mini",
    "gpt-5": "gpt-5-mini",
    "gpt-5-chat-latest": "gpt-5-mini",
    "o1": "o1-mini",
    "o3": "o3-mini",
    "o3-pro": "o3-mini",
    "deepseek-chat": "deepseek-chat",
    "deepseek-reasoner": "deepseek-chat",
}


class ConversationSummarizer:
    MESSAGES_PER_SUMMARY = 15
    MIN_MESSAGES_WITHOUT_SUMMARY = 20
    KEEP_RECENT = 5
    MAX_MESSAGE_CHARS = 500

    def __init__(self, llm: BaseLLM, *, default_model: str = "gpt-4o-mini"):
        self.llm = llm
        self.default_model = default_model

    def select_model(self, agent_model: str) -> str:
        return SUMMARY_MODELS.get(agent_model, self.default_model)

    def should_summarize(self, conversation: Conversation) -> bool:
        if conversation.requires_summarization:
            return True
        count = len(conversation.messages)
        if count - (conversation.last_summary_index + 1) >= self.MESSAGES_PER_SUMMARY:
            return True
        return count >= self.MIN_MESSAGES_WITHOUT_SUMMARY and conversation.summary is None

    def messages_to_summarize(self, conversation: Conversation) -> List[Message]:
        if conversation.last_summary_index >= 0:
            return conversation.messages[conversation.last_summary_index + 1 :]
        if len(conversation.messages) <= 10:
            return []
        return conversation.messages[: -self.KEEP_RECENT]

    def build_prompt(self, messages: List[Message], existing: ConversationSummary | None = None) -> str:
        parts = ["Please analyze the following conversation and provide a structured summary:\n"]
        if existing is not None:
            parts.append("EXISTING SUMMARY TO UPDATE:")
            parts.append(f"Key Topics: {', '.join(existing.key_topics) or 'None'}")
            parts.append(f"Important Decisions: {'; '.join(existing.important_decisions) or 'None'}")
            parts.append(f"Unresolved Issues: {'; '.join(existing.unresolved_issues) or 'None'}")
            parts.append(f"User Preferences: {json.dumps(existing.user_preferences, default=str)}\n")
            parts.append("NEW CONVERSATION TO ADD TO SUMMARY:\n")

        for msg in messages:
            if msg.role not in ("user", "assistant"):
                continue
            content = msg.content
            if len(content) > self.MAX_MESSAGE_CHARS:
                content = content[: self.MAX_MESSAGE_CHARS - 3] + "..."
            parts.append(f"{msg.role.upper()}: {content}\n")
            tool_names = [_tool_name(t) for t in msg.metadata.get("tools_used") or []]
            if tool_names:
                parts.append(f"[Tools used: {', '.join(tool_names)}]\n")

        parts.append(SUMMARY_SCHEMA)
        return "\n".join(parts)

    def summarize(
        self,
        messages: List[Message],
        *,
        model: str,
        existing: ConversationSummary | None = None,
    ) -> ConversationSummary:
        summary_model = self.select_model(model)
        response = self.llm.complete(
            self.build_prompt(messages, existing),
            model=summary_model,
            parameters={"temperature": 0.3, "max_tokens": 800, "top_p": 0.9},
            system_prompt=SUMMARY_SYSTEM_PROMPT,
        )
        logger.info("conversation_summarized", model=summary_model, messages=len(messages), total_tokens=response.total_tokens)
        return self.parse_summary(response.text)

    @staticmethod
    def parse_summary(text: str) -> ConversationSummary:
        try:
            data = parse_json(text)
        except json.JSONDecodeError:
            return ConversationSummary()
        if not isinstance(data, dict):
            return ConversationSummary()

        def as_list(key: str) -> List[str]:
            value = data.get(key)
            return list(value) if isinstance(value, list) else []

        def as_dict(key: str) -> Dict[str, Any]:
            value = data.get(key)
            return dict(value) if isinstance(value, dict) else {}

        return ConversationSummary(
            key_topics=as_list("key_topics"),
            important_decisions=as_list("important_decisions"),
            unresolved_issues=as_list("unresolved_issues"),
            user_preferences=as_dict("user_preferences"),
            context_data=as_dict("context_data"),
        )

    def maybe_summarize(self, conversation: Conversation, *, model: str) -> bool:
        """Summarize *conversation* in place when due. Returns whether a new summary was stored."""
        if not self.should_summarize(conversation):
            return False
        pending = self.messages_to_summarize(conversation)
        if not pending:
            return False
        summary = self.summarize(pending, model=model, existing=conversation.summary)
        conversation.update_summary(summary)
        logger.info(
            "conversation_summary_updated",
            conversation_id=conversation.id,
            summary_version=conversation.summary_version,
            estimated_token_savings=self.estimate_token_savings(pending),
        )
        return True

    @staticmethod
    def estimate_token_savings(messages: List[Message], summary_length: int = 200) -> int:
        original = sum(math.ceil(len(m.content) / CHARS_PER_TOKEN) for m in messages)
        return max(0, original - math.ceil(summary_length / CHARS_PER_TOKEN))


def _tool_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("tool_name", ""))
    return str(getattr(entry, "tool_name", entry))
