import logging
import uuid
from typing import Any, Dict, List

from langchain.chat_models import init_chat_model
from langchain_core.messages import AIMessage, BaseMessage

from trip_planner.errors import ModelGatewayError
from trip_planner.gateway.base import ModelGateway, extract_text
from trip_planner.models import ModelReply, ToolCallRequest, ToolDeclaration

logger = logging.getLogger(__name__)


class LangChainGateway(ModelGateway):
    """Gateway over any LangChain chat model (Gemini by default).

    The tool catalogue is bound per session with `bind_tools`, passing the
    declarations through unchanged.
    """

    name = "langchain"

    def __init__(
        self,
        model_name: str = "google_genai:gemini-2.5-flash",
        *,
        model=None,
        temperature: float = 0.7,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.model_name = model_name
        self.temperature = temperature
        self._model = model
        self._bound: Dict[str, Any] = {}

    @property
    def model(self):
        if self._model is None:
            logger.info("Initialising chat model %s", self.model_name)
            self._model = init_chat_model(self.model_name, temperature=self.temperature)
        return self._model

    def _bind(self, session_id: str, declarations: List[ToolDeclaration]) -> None:
        tools = [d.model_dump() for d in declarations]
        self._bound[session_id] = self.model.bind_tools(tools) if tools else self.model

    def forget(self, session_id: str) -> None:
        super().forget(session_id)
        self._bound.pop(session_id, None)

    async def _complete(self, history: List[BaseMessage], session_id: str) -> ModelReply:
        runnable = self._bound.get(session_id) or self.model
        message = await runnable.ainvoke(history)
        if not isinstance(message, AIMessage):
            raise ModelGatewayError(f"Unexpected model output type: {type(message).__name__}")
        return _to_reply(message)


def _to_reply(message: AIMessage) -> ModelReply:
    tool_calls: List[ToolCallRequest] = []
    for tc in message.tool_calls or []:
        tool_calls.append(ToolCallRequest(
            id=tc.get("id") or f"call_{uuid.uuid4().hex[:12]}",
            name=tc["name"],
            args=tc.get("args") or {},
        ))
    if message.invalid_tool_calls:
        names = [itc.get("name") for itc in message.invalid_tool_calls]
        logger.warning("Model produced unparseable tool calls: %s", names)
    return ModelReply(text=extract_text(message.content), tool_calls=tool_calls)

