#!/usr/bin/env python3

##############################################
#                                            #
#         HELLO WORLD CHATBOT                #
#                                            #
##############################################

import uuid

from dotenv import load_dotenv

from agents.agent_service import AgentService, InMemoryAgentStore
from agents.conversation import Conversation, ConversationSummarizer
from agents.llm.litellm import LiteLLM
from agents.models import AgentConfig, AgentDefinition, AgentToolConfig, AgentType, LLMSettings
from agents.tools.builtin import build_default_registry
from agents.tools.definitions import InMemoryToolDefinitionStore
from agents.tools.executor import ToolExecutor
from agents.tools.summarizer import ApiResultSummarizer
from utils.cli import read_user_message, print_turn
from utils.load_config import load_config

from utils.logger import get_logger, init_logger
logger = get_logger(__name__)


def build_demo_agent(model: str, max_tool_calls: int) -> AgentDefinition:
    return AgentDefinition(
        id="demo-chatbot",
        name="Demo Assistant",
        type=AgentType.CHATBOT,
        system_prompt="You are a concise, friendly assistant. Use tools when they help answer precisely.",
        llm_settings=LLMSettings(model=model, parameters={"temperature": 0.2}),
        tools=[
            AgentToolConfig(name="calculator"),
            AgentToolConfig(name="current_time", parameters={"timezone": "UTC"}),
            AgentToolConfig(name="json_processor"),
            AgentToolConfig(name="request_human_handoff"),
        ],
        config=AgentConfig(max_tool_calls=max_tool_calls),
    )


def main() -> None:
    load_dotenv()
    init_logger("config.toml")
    config = load_config()

    llm = LiteLLM(model=config.llm.model, timeout=config.llm.timeout_seconds)
    executor = ToolExecutor(
        build_default_registry(
            llm=llm,
            http_timeout=config.tools.http_timeout_seconds,
            faq_threshold=config.tools.faq_threshold,
        ),
        definition_store=InMemoryToolDefinitionStore(),
        summarizer=ApiResultSummarizer(
            llm, default_model=config.llm.summary_model, min_size=config.tools.summarization_min_size
        ),
    )
    agent = build_demo_agent(config.llm.model, config.agent.max_tool_calls)
    service = AgentService(
        llm,
        executor,
        agent_store=InMemoryAgentStore([agent]),
        summarizer=ConversationSummarizer(llm, default_model=config.llm.summary_model),
        history_max_tokens=config.agent.history_max_tokens,
    )

    conversation = Conversation(id=str(uuid.uuid4()))
    logger.info("🤖 Agent started. Say something to get started…", agent_id=agent.id, conversation_id=conversation.id)

    while True:
        message = None
        try:
            message = read_user_message()
            if not message:  # Skip empty inputs
                continue

            result = service.run_chat_turn(agent.id, conversation, message)
            print_turn(result)

        except KeyboardInterrupt:
            logger.info("🤖 Bye!")
            break

        except Exception as exc:
            logger.exception("chat_turn_failed", message=message, error=str(exc))


if __name__ == "__main__":
    main()
