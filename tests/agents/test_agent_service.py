import json

import pytest

from agents.agent_service import AgentService, InMemoryAgentStore, generate_conversation_title
from agents.conversation import Conversation, ConversationSummarizer
from agents.exceptions import AgentError, AgentInactiveError, AgentNotFoundError, AgentTypeError
from agents.models import AgentToolConfig, AgentType, Message
from agents.reasoner.tool_loop import FALLBACK_MESSAGE
from tests.conftest import DummyLLM, RecordingTool, make_agent, make_executor

RESPOND = "ACTION: respond\nRESPONSE: {text}\nREASONING: ok"


def _service(llm, *tools, **kwargs):
    return AgentService(llm, make_executor(*tools), **kwargs)


def test_chat_turn_appends_messages_and_returns_trace():
    llm = DummyLLM(text_queue=[RESPOND.format(text="Hello there!")], usage={"total_tokens": 9, "cost": 0.01})
    conversation = Conversation(id="conv-1")

    result = _service(llm).run_chat_turn(make_agent(), conversation, "Hi, who are you?")

    assert result.conversation_id == "conv-1"
    assert result.response_text == "Hello there!"
    assert result.token_usage.total_tokens == 9
    assert [m.role for m in conversation.messages] == ["user", "assistant"]
    assert conversation.messages[1].metadata["thinking_process"][0]["step"] == "analyze_input"
    assert conversation.title == "Hi, who are you?"
    assert conversation.agent_id == "agent-1"
    assert conversation.total_cost == pytest.approx(0.01)


def test_chat_turn_passes_conversation_id_to_tools():
    tool = RecordingTool("request_human_handoff")
    agent = make_agent(tools=[AgentToolConfig(name="request_human_handoff")])
    llm = DummyLLM(
        text_queue=[
            'ACTION: use_tool\nTOOL: request_human_handoff\nPARAMETERS: {"reason": "complex"}',
            RESPOND.format(text="A human will join shortly."),
        ]
    )

    _service(llm, tool).run_chat_turn(agent, Conversation(id="conv-7"), "I need a person")

    assert tool.calls[0]["config"]["conversation_id"] == "conv-7"
    assert tool.calls[0]["config"]["agent_id"] == "agent-1"


def test_chat_turn_history_includes_previous_messages():
    llm = DummyLLM(text_queue=[RESPOND.format(text="Your name is Ana.")])
    conversation = Conversation(id="c", messages=[Message(role="user", content="My name is Ana"), Message(role="assistant", content="Hi Ana")])

    _service(llm).run_chat_turn(make_agent(), conversation, "What is my name?")

    assert "user: My name is Ana\nassistant: Hi Ana\nuser: What is my name?" in llm.last_prompt


def test_preflight_errors_are_raised_before_any_model_call():
    llm = DummyLLM()
    service = _service(llm, agent_store=InMemoryAgentStore())

    with pytest.raises(AgentNotFoundError):
        service.run_chat_turn("missing", Conversation(id="c"), "hi")
    with pytest.raises(AgentNotFoundError):
        service.run_task(None, {})
    with pytest.raises(AgentInactiveError):
        service.run_chat_turn(make_agent(is_active=False), Conversation(id="c"), "hi")
    with pytest.raises(AgentTypeError, match="Agent is not a chatbot type"):
        service.run_chat_turn(make_agent(type=AgentType.TASK), Conversation(id="c"), "hi")
    with pytest.raises(AgentTypeError, match="Agent is not a task type"):
        service.run_task(make_agent(), {"x": 1})
    with pytest.raises(AgentError, match="does not belong"):
        service.run_chat_turn(make_agent(), Conversation(id="c", agent_id="other"), "hi")

    assert llm.calls == []


def test_agent_resolved_from_store_by_id():
    agent = make_agent(id="task-1", type=AgentType.TASK)
    llm = DummyLLM(text_queue=[RESPOND.format(text="42")])

    result = _service(llm, agent_store=InMemoryAgentStore([agent])).run_task("task-1", {"question": "6*7"})

    assert result.status == "completed"
    assert result.output == "42"
    assert 'Task Input: {"question": "6*7"}' in llm.last_prompt


def test_task_without_final_response_is_incomplete():
    agent = make_agent(type=AgentType.TASK, max_tool_calls=2)
    llm = DummyLLM(text_queue=["ACTION: think\nREASONING: hmm"] * 2)

    result = _service(llm).run_task(agent, "summarize the report")

    assert result.status == "incomplete"
    assert result.output == FALLBACK_MESSAGE
    assert result.thinking_process[-1].step == "max_iterations_reached"


def test_dynamic_context_reaches_system_prompt():
    llm = DummyLLM(text_queue=[RESPOND.format(text="ok")])
    _service(llm).run_chat_turn(make_agent(system_prompt="Base"), Conversation(id="c"), "hi", {"tier": "gold"})

    assert llm.calls[0]["messages"][0]["content"] == 'Base\n\nAdditional Context:\ntier: "gold"'


def test_summarization_runs_after_turn_and_failures_are_swallowed():
    summary = json.dumps({"key_topics": ["greetings"]})
    llm = DummyLLM(text_queue=[RESPOND.format(text="hey"), summary])
    conversation = Conversation(id="c", messages=[Message(role="user", content=f"m{i}") for i in range(19)])

    _service(llm, summarizer=ConversationSummarizer(llm)).run_chat_turn(make_agent(), conversation, "hi")

    assert conversation.summary.key_topics == ["greetings"]
    assert llm.calls[1]["model"] == "gpt-4o-mini"

    failing = DummyLLM(text_queue=[RESPOND.format(text="still fine")], failures=[None, RuntimeError("summary down")])
    other = Conversation(id="d", messages=[Message(role="user", content=f"m{i}") for i in range(19)])
    result = _service(failing, summarizer=ConversationSummarizer(failing)).run_chat_turn(make_agent(), other, "hi")

    assert result.response_text == "still fine"
    assert other.summary is None


def test_generate_conversation_title():
    assert generate_conversation_title("short") == "short"
    long_title = generate_conversation_title("x" * 60)
    assert len(long_title) == 50 and long_title.endswith("...")


def test_get_agent_without_store_raises_not_found():
    with pytest.raises(AgentNotFoundError):
        _service(DummyLLM()).get_agent("a")
