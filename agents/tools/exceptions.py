"""
Tool-related exceptions. Every one of them fails a single tool invocation; none aborts a reasoning run.
"""


class ToolError(Exception):
    """Base class for tool failures."""

    def __init__(self, message: str, *, tool_id: str):
        self.tool_id = tool_id
        self.message = message
        super().__init__(f"Tool '{tool_id}': {message}")


class ToolNotFoundError(ToolError):
    """Raised when no handler is registered under the requested name."""

    def __init__(self, tool_id: str):
        super().__init__(f"No handler registered for tool '{tool_id}'", tool_id=tool_id)


class ToolConfigurationError(ToolError):
    """Unknown endpoint, disallowed method, unresolved path parameter, missing or invalid parameter."""


class ToolExecutionError(ToolError):
    """Raised when a tool fails to execute for any reason (network, timeout, upstream service)."""


class MissingAPIKeyError(ToolError):
    """Raised when a required environment variable for tool execution is not set."""

    def __init__(
        self,
        env_var: str,
        *,
        tool_id: str,
        api_name: str | None = None,
        message: str | None = None,
    ) -> None:
        self.env_var = env_var
        self.api_name = api_name
        base_msg = message or f"Environment variable '{env_var}' is not set with the required API KEY."
        if api_name:
            base_msg += f" (required for API '{api_name}')"
        super().__init__(base_msg, tool_id=tool_id)
