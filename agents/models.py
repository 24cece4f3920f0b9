"""Data models for the agent layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

__all__ = [
    "AgentType",
    "Message",
    "LLMSettings",
    "AgentConfig",
    "AgentToolConfig",
    "AgentDefinition",
    "ReasoningMode",
    "ReasoningContext",
]


class AgentType(str, Enum):
    CHATBOT = "chatbot"
    TASK = "task"


@dataclass
class Message:
    """A single role-tagged entry of a conversation history."""

    role: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMSettings:
    model: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentConfig:
    """Per-agent loop limits. ``max_cost`` and ``max_duration_seconds`` are opt-in."""

    max_tool_calls: int = 5
    max_cost: Optional[float] = None
    max_duration_seconds: Optional[float] = None


@dataclass
class AgentToolConfig:
    """A tool declared on an agent, with the agent's static configuration for it."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentDefinition:
    """Everything the engine needs to know about an agent for one run."""

    id: str
    name: str
    type: AgentType = AgentType.CHATBOT
    system_prompt: str = ""
    llm_settings: LLMSettings = field(default_factory=lambda: LLMSettings(model="gpt-4o-mini"))
    tools: List[AgentToolConfig] = field(default_factory=list)
    config: AgentConfig = field(default_factory=AgentConfig)
    is_active: bool = True
    api_key: Optional[str] = None
    organization_id: Optional[str] = None
    project_id: Optional[str] = None

    def get_tool(self, name: str) -> Optional[AgentToolConfig]:
        return next((t for t in self.tools if t.name == name), None)


class ReasoningMode(str, Enum):
    CHAT = "chat"
    TASK = "task"


@dataclass(frozen=True)
class ReasoningContext:
    """Immutable input to one reasoning run."""

    history: tuple[Message, ...] = ()
    tools: tuple[AgentToolConfig, ...] = ()
    max_tool_calls: int = 5
    system_prompt: str = ""
    mode: ReasoningMode = ReasoningMode.CHAT
    task_input: Any = None
    runtime_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_agent(
        cls,
        agent: AgentDefinition,
        *,
        history: List[Message] | None = None,
        system_prompt: str | None = None,
        mode: ReasoningMode = ReasoningMode.CHAT,
        task_input: Any = None,
        runtime_config: Dict[str, Any] | None = None,
    ) -> "ReasoningContext":
        return cls(
            history=tuple(history or ()),
            tools=tuple(agent.tools),
            max_tool_calls=agent.config.max_tool_calls or 5,
            system_prompt=agent.system_prompt if system_prompt is None else system_prompt,
            mode=mode,
            task_input=task_input,
            runtime_config=dict(runtime_config or {}),
        )
