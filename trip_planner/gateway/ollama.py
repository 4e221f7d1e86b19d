"""
Ollama gateway.

Talks to a local Ollama server's /api/chat endpoint with native tool calling.

Setup:
    1. Install Ollama: https://ollama.com
    2. Pull a tool-capable model: ollama pull gpt-oss:20b
    3. Start: ollama serve
    4. Set env: MODEL_PROVIDER=ollama OLLAMA_URL=http://localhost:11434
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import httpx
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from trip_planner.errors import GatewayTimeoutError, ModelGatewayError
from trip_planner.gateway.base import ModelGateway, extract_text
from trip_planner.models import ModelReply, ToolCallRequest

logger = logging.getLogger(__name__)

USER_AGENT = "TripPlanner/1.0"


def to_ollama_message(message: BaseMessage) -> Dict[str, Any]:
    """Convert a LangChain message into Ollama's chat message format."""
    content = extract_text(message.content)
    if isinstance(message, SystemMessage):
        return {"role": "system", "content": content}
    if isinstance(message, HumanMessage):
        return {"role": "user", "content": content}
    if isinstance(message, ToolMessage):
        return {"role": "tool", "content": content, "tool_name": message.name}
    if isinstance(message, AIMessage):
        entry: Dict[str, Any] = {"role": "assistant", "content": content}
        if message.tool_calls:
            entry["tool_calls"] = [
                {"function": {"name": tc["name"], "arguments": tc.get("args") or {}}}
                for tc in message.tool_calls
            ]
        return entry
    raise ModelGatewayError(f"Unsupported message type for Ollama: {type(message).__name__}")


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Could not parse Ollama tool arguments: %.200s", raw)
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


class OllamaGateway(ModelGateway):
    """Gateway over a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "gpt-oss:20b",
        *,
        temperature: float = 0.7,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.model = model
        self.temperature = temperature
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(self.timeout or 120.0),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )
        logger.info("Ollama gateway initialised with model %s at %s", model, base_url)

    async def _complete(self, history: List[BaseMessage], session_id: str) -> ModelReply:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [to_ollama_message(m) for m in history],
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        tools = [{"type": "function", "function": d.model_dump()} for d in self.catalog(session_id)]
        if tools:
            payload["tools"] = tools

        try:
            r = await self._client.post("/api/chat", json=payload)
            r.raise_for_status()
            body = r.json()
        except httpx.TimeoutException as e:
            raise GatewayTimeoutError("Timeout while waiting for Ollama") from e
        except httpx.HTTPError as e:
            raise ModelGatewayError("Ollama request failed", details=str(e)) from e

        message = body.get("message")
        if not isinstance(message, dict):
            raise ModelGatewayError("No message in Ollama response")

        tool_calls = []
        for tc in message.get("tool_calls") or []:
            function = tc.get("function") or {}
            if not function.get("name"):
                continue
            tool_calls.append(ToolCallRequest(
                id=tc.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                name=function["name"],
                args=_parse_arguments(function.get("arguments")),
            ))
        return ModelReply(text=(message.get("content") or "").strip(), tool_calls=tool_calls)

    async def health(self) -> Dict[str, Any]:
        """Report whether the Ollama server is reachable and which models it has."""
        try:
            r = await self._client.get("/api/tags", timeout=5.0)
            r.raise_for_status()
        except httpx.HTTPError as e:
            return {"provider": self.name, "connected": False, "error": str(e)}
        models = [m.get("name") for m in r.json().get("models", [])]
        return {"provider": self.name, "connected": True, "models": models}

    async def aclose(self) -> None:
        await self._client.aclose()
