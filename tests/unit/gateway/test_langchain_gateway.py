"""
Tests for the LangChain gateway and the shared gateway behaviour.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from trip_planner.config import Settings
from trip_planner.errors import ConfigurationError, GatewayTimeoutError, ModelGatewayError
from trip_planner.gateway import LangChainGateway, OllamaGateway, build_gateway, extract_text
from trip_planner.models import ToolDeclaration

HISTORY = [SystemMessage(content="policy"), HumanMessage(content="Plan Jaipur")]
HOTELS = ToolDeclaration(name="getHotels", description="Find hotels")


def _model(*responses):
    """A chat model double whose bound runnable returns `responses` in order."""
    bound = MagicMock()
    bound.ainvoke = AsyncMock(side_effect=list(responses))
    model = MagicMock()
    model.bind_tools.return_value = bound
    model.ainvoke = AsyncMock(side_effect=list(responses))
    return model, bound


class TestExtractText:
    """Content normalisation."""

    def test_string(self):
        assert extract_text("hi") == "hi"

    def test_blocks(self):
        content = [{"type": "text", "text": "a"}, {"type": "image_url"}, "b"]
        assert extract_text(content) == "a\nb"


class TestLangChainGateway:
    """Binding tools and mapping replies."""

    @pytest.mark.asyncio
    async def test_text_reply(self):
        model, bound = _model(AIMessage(content="Jaipur is lovely in December."))
        gateway = LangChainGateway(model=model, max_attempts=1)
        gateway.advertise("c1", [HOTELS])

        reply = await gateway.send(HISTORY, "c1")

        assert reply.text == "Jaipur is lovely in December."
        assert not reply.wants_tools
        model.bind_tools.assert_called_once_with([HOTELS.model_dump()])
        bound.ainvoke.assert_awaited_once_with(HISTORY)

    @pytest.mark.asyncio
    async def test_tool_calls_take_priority_over_text(self):
        message = AIMessage(
            content="Let me look that up.",
            tool_calls=[{"name": "getHotels", "args": {"city": "Jaipur"}, "id": "abc", "type": "tool_call"}],
        )
        model, _ = _model(message)
        gateway = LangChainGateway(model=model, max_attempts=1)
        gateway.advertise("c1", [HOTELS])

        reply = await gateway.send(HISTORY, "c1")

        assert reply.wants_tools
        assert reply.tool_calls[0].id == "abc"
        assert reply.tool_calls[0].name == "getHotels"
        assert reply.tool_calls[0].args == {"city": "Jaipur"}
        assert reply.text == "Let me look that up."

    @pytest.mark.asyncio
    async def test_missing_tool_call_id_is_generated(self):
        message = AIMessage(content="", tool_calls=[{"name": "getHotels", "args": {}, "id": None, "type": "tool_call"}])
        model, _ = _model(message)
        gateway = LangChainGateway(model=model, max_attempts=1)
        gateway.advertise("c1", [HOTELS])

        reply = await gateway.send(HISTORY, "c1")

        assert reply.tool_calls[0].id.startswith("call_")

    @pytest.mark.asyncio
    async def test_forget_drops_bound_model(self):
        model, bound = _model(AIMessage(content="unbound"))
        gateway = LangChainGateway(model=model, max_attempts=1)
        gateway.advertise("c1", [HOTELS])

        gateway.forget("c1")
        gateway.forget("c1")
        await gateway.send(HISTORY, "c1")

        assert gateway.catalog("c1") == []
        bound.ainvoke.assert_not_awaited()
        model.ainvoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_backend_error_is_wrapped_and_retried(self):
        model, bound = _model(RuntimeError("503 overloaded"), AIMessage(content="ok"))
        gateway = LangChainGateway(model=model, max_attempts=2, initial_delay=0)
        gateway.advertise("c1", [HOTELS])

        reply = await gateway.send(HISTORY, "c1")

        assert reply.text == "ok"
        assert bound.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_backend_error_after_retries(self):
        model, _ = _model(RuntimeError("down"), RuntimeError("still down"))
        gateway = LangChainGateway(model=model, max_attempts=2, initial_delay=0)
        gateway.advertise("c1", [HOTELS])

        with pytest.raises(ModelGatewayError) as exc_info:
            await gateway.send(HISTORY, "c1")
        assert "still down" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_is_not_retried(self):
        async def slow(_history):
            await asyncio.sleep(1)

        model, bound = _model()
        bound.ainvoke = AsyncMock(side_effect=slow)
        gateway = LangChainGateway(model=model, max_attempts=3, initial_delay=0)
        gateway.advertise("c1", [HOTELS])

        with pytest.raises(GatewayTimeoutError):
            await gateway.send(HISTORY, "c1", timeout=0.05)
        assert bound.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_non_ai_output_rejected(self):
        model, _ = _model("plain string")
        gateway = LangChainGateway(model=model, max_attempts=1)
        gateway.advertise("c1", [HOTELS])

        with pytest.raises(ModelGatewayError):
            await gateway.send(HISTORY, "c1")

    def test_model_setup_failure_is_wrapped(self, mocker):
        init = mocker.patch(
            "trip_planner.gateway.langchain_gateway.init_chat_model",
            side_effect=ValueError("API key required"),
        )
        gateway = LangChainGateway("google_genai:gemini-2.5-flash", max_attempts=1)

        with pytest.raises(ModelGatewayError) as exc_info:
            gateway.advertise("c1", [HOTELS])

        assert "langchain model setup failed" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert gateway.catalog("c1") == []
        init.assert_called_once()

    def test_bind_failure_is_wrapped(self):
        model = MagicMock()
        model.bind_tools.side_effect = NotImplementedError("tools unsupported")
        gateway = LangChainGateway(model=model, max_attempts=1)

        with pytest.raises(ModelGatewayError):
            gateway.advertise("c1", [HOTELS])


class TestBuildGateway:
    """Provider selection."""

    def test_langchain_provider(self):
        gateway = build_gateway(Settings(model_provider="langchain", model_name="google_genai:gemini-2.5-flash"))

        assert isinstance(gateway, LangChainGateway)
        assert gateway.model_name == "google_genai:gemini-2.5-flash"
        assert gateway.timeout == 60

    @pytest.mark.asyncio
    async def test_ollama_provider(self):
        gateway = build_gateway(Settings(model_provider="ollama", ollama_model="llama3.1"))

        assert isinstance(gateway, OllamaGateway)
        assert gateway.model == "llama3.1"
        await gateway.aclose()

    def test_unknown_provider(self):
        settings = Settings().model_copy(update={"model_provider": "openai"})
        with pytest.raises(ConfigurationError):
            build_gateway(settings)
