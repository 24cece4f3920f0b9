"""
Pre-flight errors raised to the caller before a reasoning run starts.
"""


class AgentError(Exception):
    """Base class for agent lookup and eligibility failures."""

    def __init__(self, message: str, *, agent_id: str | None = None):
        self.agent_id = agent_id
        super().__init__(message)


class AgentNotFoundError(AgentError):
    """Raised when the requested agent does not exist."""

    def __init__(self, agent_id: str | None = None):
        super().__init__("Agent not found", agent_id=agent_id)


class AgentInactiveError(AgentError):
    """Raised when the agent exists but is switched off."""

    def __init__(self, agent_id: str | None = None):
        super().__init__("Agent is not active", agent_id=agent_id)


class AgentTypeError(AgentError):
    """Raised when a chat turn targets a task agent or vice versa."""

    def __init__(self, expected: str, *, agent_id: str | None = None):
        self.expected = expected
        super().__init__(f"Agent is not a {expected} type", agent_id=agent_id)
