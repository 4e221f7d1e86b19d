"""
Exception hierarchy for the trip planner.

Only gateway-level failures (``ModelGatewayError`` and the timeout errors)
end a chat turn abnormally. Tool-level errors are raised by the registry and
converted by the orchestrator into tool-result messages for the model.
"""

from typing import Any, Optional


class TripPlannerError(Exception):
    """Base exception for all trip planner errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for JSON responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TripPlannerError):
    """Invalid settings or a duplicate / mismatched tool registration."""


class InvalidMessageError(TripPlannerError, ValueError):
    """The user message is empty or whitespace only."""


class UnknownToolError(TripPlannerError):
    """The model requested a tool name that is not registered."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ToolExecutionError(TripPlannerError):
    """A registered tool handler raised an error.

    `retryable` is False when the handler rejected its arguments; running it
    again with the same arguments would fail the same way.
    """

    def __init__(self, tool_name: str, message: str, *, retryable: bool = True):
        self.tool_name = tool_name
        self.retryable = retryable
        super().__init__(message, details=f"tool={tool_name}")

    def __str__(self) -> str:
        return self.message


class ModelGatewayError(TripPlannerError):
    """The language model backend failed or returned an unusable reply."""


class GatewayTimeoutError(ModelGatewayError, TimeoutError):
    """A single model call exceeded its deadline."""


class OrchestrationTimeoutError(TripPlannerError, TimeoutError):
    """A whole chat turn exceeded its overall deadline."""
