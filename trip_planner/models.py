import json
from typing import Any, Dict, List, Optional

from langchain_core.messages import ToolMessage
from pydantic import BaseModel, ConfigDict, Field


class ToolDeclaration(BaseModel):
    """Machine-readable description of a tool, advertised verbatim to the model."""
    name: str = Field(..., description="Unique tool name.")
    description: str = Field(..., description="Tells the model when to call the tool.")
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []},
        description="JSON schema object describing the tool arguments.",
    )


class ToolCallRequest(BaseModel):
    """One tool invocation requested by the model."""
    id: str
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """
    Outcome of executing a ToolCallRequest.

    Both successes and failures are fed back to the model as a ToolMessage.
    """
    call_id: str
    name: str
    ok: bool
    payload: Any = None
    error: Optional[str] = None
    cached: bool = False

    def to_message(self) -> ToolMessage:
        body = {"result": self.payload} if self.ok else {"error": self.error}
        return ToolMessage(
            content=json.dumps(body, default=str, ensure_ascii=False),
            tool_call_id=self.call_id,
            name=self.name,
            status="success" if self.ok else "error",
        )


class ModelReply(BaseModel):
    """A single model completion: text, or a non-empty list of tool calls."""
    text: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class ChatResult(BaseModel):
    """What one chat() call hands back to the caller."""
    model_config = ConfigDict(populate_by_name=True)

    text: str
    conversation_id: str = Field(..., alias="conversationId")
    tool_calls_made: int = Field(0, alias="toolCallsMade")
    data: Dict[str, Any] = Field(default_factory=dict)
