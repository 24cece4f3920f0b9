from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from agents.tools.base import ToolBase
from agents.tools.exceptions import ToolConfigurationError, ToolExecutionError
from utils.logger import get_logger

logger = get_logger(__name__)

URGENCY_LEVELS = ("low", "medium", "high", "urgent")
TRANSITION_MESSAGE = (
    "I understand this requires specialized assistance. Let me connect you with one of our "
    "team members who can better help you with this. Please wait a moment."
)


@runtime_checkable
class HandoffService(Protocol):
    def request_handoff(
        self,
        conversation_id: str,
        agent_id: Optional[str],
        reason: str,
        urgency: str,
        context_summary: Optional[str],
    ) -> None: ...


class InMemoryHandoffService:
    """Keeps handoff requests in a list; stands in for a conversation store."""

    def __init__(self) -> None:
        self.requests: List[Dict[str, Any]] = []

    def request_handoff(
        self,
        conversation_id: str,
        agent_id: Optional[str],
        reason: str,
        urgency: str,
        context_summary: Optional[str],
    ) -> None:
        self.requests.append(
            {
                "conversation_id": conversation_id,
                "agent_id": agent_id,
                "reason": reason,
                "urgency": urgency,
                "context_summary": context_summary,
                "transition_message": TRANSITION_MESSAGE,
            }
        )


class HumanHandoffTool(ToolBase):
    name = "request_human_handoff"
    description = "Request that a human operator takes over the conversation"
    required_parameters = ("reason",)

    def __init__(self, service: HandoffService | None = None):
        super().__init__()
        self.service = service or InMemoryHandoffService()

    def validate(self, parameters: Dict[str, Any]) -> None:
        super().validate(parameters)
        urgency = parameters.get("urgency", "medium")
        if urgency not in URGENCY_LEVELS:
            raise ToolConfigurationError(
                f"Invalid urgency '{urgency}'. Allowed: {', '.join(URGENCY_LEVELS)}", tool_id=self.id
            )

    def execute(self, parameters: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        reason = str(parameters["reason"])
        urgency = parameters.get("urgency", "medium")
        context_summary = parameters.get("context_summary")
        conversation_id = config.get("conversation_id")
        agent_id = config.get("agent_id")

        if not conversation_id:
            logger.warning("handoff_without_conversation", reason=reason, urgency=urgency)
            return {
                "success": True,
                "result": "Human handoff request logged (conversation ID not available)",
                "handoff_requested": True,
                "conversation_status": "handoff_requested",
                "note": "This handoff request was logged but could not be linked to a specific conversation",
            }

        try:
            self.service.request_handoff(conversation_id, agent_id, reason, urgency, context_summary)
        except Exception as exc:
            raise ToolExecutionError(f"Failed to request human handoff: {exc}", tool_id=self.id) from exc

        logger.info("handoff_requested", conversation_id=conversation_id, agent_id=agent_id, urgency=urgency)
        return {
            "success": True,
            "result": "Human handoff requested successfully",
            "handoff_requested": True,
            "conversation_status": "handoff_requested",
        }
