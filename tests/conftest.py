import pytest
from typing import Any, Dict, List

from agents.llm.base_llm import BaseLLM
from agents.models import AgentConfig, AgentDefinition, AgentToolConfig, AgentType, LLMSettings
from agents.tools.base import ToolBase
from agents.tools.executor import ToolExecutor
from agents.tools.registry import ToolRegistry


class DummyLLM(BaseLLM):
    """Replays queued completions and records every call it receives."""

    def __init__(
        self,
        *,
        text_queue: List[str] | None = None,
        usage: Dict[str, Any] | None = None,
        embeddings: Dict[str, List[float]] | None = None,
        failures: List[Exception] | None = None,
    ):
        # Intentionally do not call super().__init__ to avoid model env requirement
        self.model = "dummy-model"
        self.temperature = None
        self.text_queue = list(text_queue or [])
        self.usage = usage or {}
        self.embeddings = embeddings or {}
        self.failures = list(failures or [])
        self.calls: List[Dict[str, Any]] = []
        self.embed_calls: List[Dict[str, Any]] = []

    def completion(self, messages: List[Dict[str, str]], **kwargs) -> BaseLLM.LLMResponse:  # type: ignore[override]
        self.calls.append({"messages": messages, **kwargs})
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        text = self.text_queue.pop(0) if self.text_queue else ""
        return BaseLLM.LLMResponse(text=text, finish_reason="stop", **self.usage)

    def embed(self, text: str, model: str | None = None, **kwargs) -> List[float]:  # type: ignore[override]
        self.embed_calls.append({"text": text, "model": model, **kwargs})
        if text not in self.embeddings:
            raise KeyError(f"no embedding for {text!r}")
        return self.embeddings[text]

    @property
    def last_prompt(self) -> str:
        return self.calls[-1]["messages"][-1]["content"]


class RecordingTool(ToolBase):
    """Returns a canned result (or raises) and keeps every (parameters, config) pair it was given."""

    def __init__(self, name: str, result: Any = None, *, error: Exception | None = None, required=()):
        self.name = name
        self.description = f"{name} test tool"
        self.required_parameters = tuple(required)
        super().__init__(id=name)
        self.result = {"ok": True} if result is None else result
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Any:
        self.calls.append({"parameters": parameters, "config": config})
        if self.error is not None:
            raise self.error
        return self.result


class FailingDefinitionStore:
    def find_active_tool(self, name: str):
        raise ConnectionError("definition store unreachable")


def make_agent(
    *,
    id: str = "agent-1",
    type: AgentType = AgentType.CHATBOT,
    tools: List[AgentToolConfig] | None = None,
    max_tool_calls: int = 5,
    **kwargs: Any,
) -> AgentDefinition:
    config = kwargs.pop("config", None) or AgentConfig(max_tool_calls=max_tool_calls)
    return AgentDefinition(
        id=id,
        name="Test Agent",
        type=type,
        system_prompt=kwargs.pop("system_prompt", "You are a helpful assistant."),
        llm_settings=kwargs.pop("llm_settings", LLMSettings(model="gpt-4o", parameters={"temperature": 0.1})),
        tools=tools or [],
        config=config,
        **kwargs,
    )


def make_executor(*tools: ToolBase, **kwargs: Any) -> ToolExecutor:
    registry = ToolRegistry()
    for tool in tools:
        registry.register(tool.name, tool)
    return ToolExecutor(registry, **kwargs)


@pytest.fixture
def dummy_llm() -> DummyLLM:
    return DummyLLM()


@pytest.fixture
def agent() -> AgentDefinition:
    return make_agent()
