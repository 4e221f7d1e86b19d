"""
Shared fixtures for the trip planner unit tests.

FakeGateway replays scripted model replies so the orchestration loop can be
tested without a real language model.
"""

import asyncio
from typing import Any, Dict, List, Optional, Union

import pytest
from langchain_core.messages import BaseMessage

from trip_planner.config import Settings
from trip_planner.conversation import ConversationStore
from trip_planner.gateway.base import ModelGateway
from trip_planner.models import ModelReply, ToolCallRequest, ToolDeclaration
from trip_planner.orchestrator import Orchestrator
from trip_planner.tools import ToolCache, ToolRegistry, attractions, hotels, transport


class FakeGateway(ModelGateway):
    """Gateway that returns queued replies (or raises queued exceptions)."""

    name = "fake"

    def __init__(
        self,
        replies: Optional[List[Union[ModelReply, Exception]]] = None,
        *,
        default: Optional[ModelReply] = None,
        delay: float = 0.0,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("max_attempts", 1)
        kwargs.setdefault("initial_delay", 0.0)
        super().__init__(**kwargs)
        self.replies = list(replies or [])
        self.default = default
        self.delay = delay
        self.histories: List[List[BaseMessage]] = []
        self.advertised: Dict[str, List[ToolDeclaration]] = {}
        self.forgotten: List[str] = []
        self.active = 0
        self.max_active = 0

    def advertise(self, session_id, declarations):
        super().advertise(session_id, declarations)
        self.advertised[session_id] = list(declarations)

    def forget(self, session_id):
        super().forget(session_id)
        self.forgotten.append(session_id)

    async def _complete(self, history, session_id):
        self.histories.append(list(history))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1

        if self.replies:
            reply = self.replies.pop(0)
        elif self.default is not None:
            reply = self.default
        else:
            raise AssertionError("FakeGateway ran out of scripted replies")
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def calls(self) -> int:
        return len(self.histories)


class CountingHandler:
    """Wraps an async tool handler and records every invocation."""

    def __init__(self, handler=None, *, result: Any = None, error: Optional[Exception] = None):
        self.handler = handler
        self.result = result
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, args: Dict[str, Any]) -> Any:
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        if self.handler is not None:
            return await self.handler(args)
        return self.result

    @property
    def count(self) -> int:
        return len(self.calls)


def text_reply(text: str) -> ModelReply:
    return ModelReply(text=text)


def tool_reply(*calls, text: str = "") -> ModelReply:
    """Build a tool-call reply from (name, args) pairs."""
    return ModelReply(
        text=text,
        tool_calls=[ToolCallRequest(id=f"call_{i}", name=name, args=args) for i, (name, args) in enumerate(calls)],
    )


JAIPUR_HOTELS = {"city": "Jaipur", "checkin": "2025-12-01", "checkout": "2025-12-03", "adults": 2}
JAIPUR_ATTRACTIONS = {"city": "Jaipur", "minRating": 4.0}


@pytest.fixture
def settings():
    """Settings with no retry delays and short deadlines."""
    return Settings(
        model_initial_delay=0,
        tool_initial_delay=0,
        tool_max_attempts=2,
        chat_timeout_seconds=5,
        model_timeout_seconds=5,
        max_tool_iterations=5,
    )


@pytest.fixture
def handlers():
    """Counting wrappers around the real trip tools."""
    return {
        "getHotels": CountingHandler(hotels.get_hotels),
        "searchAttractions": CountingHandler(attractions.search_attractions),
        "estimateLocalTransport": CountingHandler(transport.estimate_local_transport),
    }


@pytest.fixture
def registry(handlers):
    registry = ToolRegistry()
    registry.register("getHotels", handlers["getHotels"], hotels.DECLARATION, data_key="hotels")
    registry.register(
        "searchAttractions", handlers["searchAttractions"], attractions.DECLARATION, data_key="attractions"
    )
    registry.register(
        "estimateLocalTransport",
        handlers["estimateLocalTransport"],
        transport.LOCAL_TRANSPORT_DECLARATION,
        data_key="localTransport",
    )
    return registry


@pytest.fixture
def cache():
    return ToolCache(ttl_seconds=3600)


@pytest.fixture
def store():
    return ConversationStore(max_conversations=100, max_idle_seconds=3600)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def orchestrator(gateway, registry, cache, store, settings):
    return Orchestrator(gateway=gateway, registry=registry, cache=cache, store=store, settings=settings)
