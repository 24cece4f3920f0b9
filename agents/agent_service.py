"""Entry points for chat turns and task runs.

``AgentService`` is the thin façade callers talk to: it resolves and checks the
agent, shapes the reasoning context, runs a fresh ``ToolLoopReasoner`` and keeps
the caller's ``Conversation`` up to date.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field

from agents.conversation import Conversation, ConversationSummarizer
from agents.exceptions import AgentError, AgentInactiveError, AgentNotFoundError, AgentTypeError
from agents.llm.base_llm import BaseLLM
from agents.models import AgentDefinition, AgentType, Message, ReasoningContext, ReasoningMode
from agents.reasoner.base import CancellationToken
from agents.reasoner.models import ReasoningResult, ThinkingStep, ToolInvocationRecord, UsageTotals
from agents.reasoner.tool_loop import ToolLoopReasoner
from agents.tools.executor import ToolExecutor
from utils.logger import get_logger

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 50


class AgentStore(Protocol):
    def get_agent(self, agent_id: str) -> Optional[AgentDefinition]: ...


class InMemoryAgentStore:
    def __init__(self, agents: List[AgentDefinition] | None = None):
        self._agents: Dict[str, AgentDefinition] = {a.id: a for a in agents or []}

    def add(self, agent: AgentDefinition) -> None:
        self._agents[agent.id] = agent

    def get_agent(self, agent_id: str) -> Optional[AgentDefinition]:
        return self._agents.get(agent_id)


class ChatTurnResult(BaseModel):
    conversation_id: str
    response_text: str
    thinking_process: List[ThinkingStep] = Field(default_factory=list)
    tools_used: List[ToolInvocationRecord] = Field(default_factory=list)
    token_usage: UsageTotals = Field(default_factory=UsageTotals)


class TaskResult(BaseModel):
    output: str
    status: str
    thinking_process: List[ThinkingStep] = Field(default_factory=list)
    tools_used: List[ToolInvocationRecord] = Field(default_factory=list)
    token_usage: UsageTotals = Field(default_factory=UsageTotals)


def generate_conversation_title(message: str) -> str:
    if len(message) > TITLE_MAX_LENGTH:
        return message[: TITLE_MAX_LENGTH - 3] + "..."
    return message


class AgentService:
    def __init__(
        self,
        llm: BaseLLM,
        executor: ToolExecutor,
        *,
        agent_store: AgentStore | None = None,
        summarizer: ConversationSummarizer | None = None,
        history_max_tokens: int = 4000,
    ):
        self.llm = llm
        self.executor = executor
        self.agent_store = agent_store
        self.summarizer = summarizer
        self.history_max_tokens = history_max_tokens

    def get_agent(self, agent_id: str) -> AgentDefinition:
        agent = self.agent_store.get_agent(agent_id) if self.agent_store is not None else None
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def run_chat_turn(
        self,
        agent: Union[AgentDefinition, str, None],
        conversation: Conversation,
        user_message: str,
        dynamic_context: Dict[str, Any] | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> ChatTurnResult:
        agent = self._preflight(agent, AgentType.CHATBOT)
        if conversation.agent_id and conversation.agent_id != agent.id:
            raise AgentError("Conversation does not belong to this agent", agent_id=agent.id)
        conversation.agent_id = agent.id
        if conversation.title is None:
            conversation.title = generate_conversation_title(user_message)

        conversation.add_message(Message(role="user", content=user_message))
        context = ReasoningContext.for_agent(
            agent,
            history=conversation.context_for_agent(max_tokens=self.history_max_tokens),
            mode=ReasoningMode.CHAT,
            runtime_config={"conversation_id": conversation.id},
        )
        result = self._reason(agent, context, dynamic_context, cancellation)

        conversation.add_message(
            Message(
                role="assistant",
                content=result.final_answer,
                metadata={
                    "thinking_process": [s.model_dump() for s in result.thinking_process],
                    "tools_used": [r.model_dump() for r in result.tools_used],
                    "token_usage": result.token_usage.model_dump(),
                },
            )
        )
        self._summarize_conversation(agent, conversation)

        return ChatTurnResult(
            conversation_id=conversation.id,
            response_text=result.final_answer,
            thinking_process=result.thinking_process,
            tools_used=result.tools_used,
            token_usage=result.token_usage,
        )

    def run_task(
        self,
        agent: Union[AgentDefinition, str, None],
        task_input: Any,
        dynamic_context: Dict[str, Any] | None = None,
        *,
        cancellation: CancellationToken | None = None,
    ) -> TaskResult:
        agent = self._preflight(agent, AgentType.TASK)
        context = ReasoningContext.for_agent(agent, mode=ReasoningMode.TASK, task_input=task_input)
        result = self._reason(agent, context, dynamic_context, cancellation)
        status = "completed" if result.success else "incomplete"
        logger.info("task_finished", agent_id=agent.id, status=status, iterations=result.iterations)
        return TaskResult(
            output=result.final_answer,
            status=status,
            thinking_process=result.thinking_process,
            tools_used=result.tools_used,
            token_usage=result.token_usage,
        )

    def _reason(
        self,
        agent: AgentDefinition,
        context: ReasoningContext,
        dynamic_context: Dict[str, Any] | None,
        cancellation: CancellationToken | None,
    ) -> ReasoningResult:
        reasoner = ToolLoopReasoner(llm=self.llm, executor=self.executor, agent=agent)
        return reasoner.run(context, dynamic_context=dynamic_context, cancellation=cancellation)

    def _preflight(self, agent: Union[AgentDefinition, str, None], expected: AgentType) -> AgentDefinition:
        if agent is None:
            raise AgentNotFoundError()
        if isinstance(agent, str):
            agent = self.get_agent(agent)
        if not agent.is_active:
            raise AgentInactiveError(agent.id)
        if agent.type != expected:
            raise AgentTypeError(expected.value, agent_id=agent.id)
        return agent

    def _summarize_conversation(self, agent: AgentDefinition, conversation: Conversation) -> None:
        if self.summarizer is None:
            return
        try:
            self.summarizer.maybe_summarize(conversation, model=agent.llm_settings.model)
        except Exception as exc:
            logger.warning(
                "conversation_summarization_failed",
                conversation_id=conversation.id,
                error=str(exc),
                exc_info=True,
            )
