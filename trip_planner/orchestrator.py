"""
Conversation orchestrator.

Drives one chat turn: send the history to the model, execute any tool calls
it requests (concurrently, through the cache), feed the results back and
repeat until the model answers in text or the iteration cap is reached.

Usage:
    orchestrator = build_orchestrator(get_settings())
    result = await orchestrator.chat("Plan 3 days in Jaipur", context={"adults": 2})
    result.text, result.data["hotels"]
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from trip_planner.config import Settings
from trip_planner.conversation import Conversation, ConversationStore
from trip_planner.errors import (
    GatewayTimeoutError,
    InvalidMessageError,
    OrchestrationTimeoutError,
    ToolExecutionError,
    UnknownToolError,
)
from trip_planner.gateway import ModelGateway, build_gateway
from trip_planner.middleware import emit_event, retry_tool
from trip_planner.models import ChatResult, ModelReply, ToolCallRequest, ToolResult
from trip_planner.prompts import SYSTEM_PROMPT
from trip_planner.tools import MISS, ToolCache, ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    MODEL_RESPONDING = "model_responding"
    TOOLS_REQUESTED = "tools_requested"
    TOOLS_EXECUTING = "tools_executing"
    TURN_COMPLETE = "turn_complete"


def annotate_message(message: str, context: Optional[Dict[str, Any]]) -> str:
    """Prefix the user message with the trip context, when there is any."""
    if not context:
        return message
    return f"[User Context: {json.dumps(context, default=str, ensure_ascii=False)}]\n\n{message}"


def _tool_call_message(reply: ModelReply) -> AIMessage:
    # Text next to tool calls is the model's reasoning; it stays on the message.
    return AIMessage(
        content=reply.text,
        tool_calls=[
            {"name": tc.name, "args": tc.args, "id": tc.id, "type": "tool_call"}
            for tc in reply.tool_calls
        ],
    )


class Orchestrator:
    """Runs tool-augmented chat turns over a model gateway."""

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ToolRegistry,
        cache: ToolCache,
        store: ConversationStore,
        settings: Optional[Settings] = None,
    ) -> None:
        self.gateway = gateway
        self.registry = registry
        self.cache = cache
        self.store = store
        self.settings = settings or Settings()

    async def chat(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> ChatResult:
        """Run one user turn to completion.

        Args:
            message: The user's message; must not be blank.
            conversation_id: Continue this conversation, or start a new one when None/unknown.
            context: Trip form fields, prepended to the message as a context block.
            timeout: Overall deadline in seconds (defaults to settings.chat_timeout_seconds).

        Raises:
            InvalidMessageError: the message is blank.
            ModelGatewayError: the model backend failed.
            TimeoutError: the model call or the whole turn exceeded its deadline.

        On failure the user message stays in the history and nothing else from
        the turn is kept, so the call can be retried.
        """
        if not message or not message.strip():
            raise InvalidMessageError("message must not be empty")

        deadline = timeout if timeout is not None else self.settings.chat_timeout_seconds
        while True:
            conversation, created = self.store.get_or_create(
                conversation_id, lambda: SystemMessage(content=SYSTEM_PROMPT)
            )
            cid = conversation.conversation_id
            if created:
                emit_event(source="conversation", status="created", message=f"Started conversation {cid}")

            async with conversation.lock:
                # cleared or evicted while this turn waited for the lock
                if self.store.get(cid) is not conversation:
                    logger.info("Conversation %s was removed while waiting; resolving it again", cid)
                    conversation_id = cid
                    continue
                return await self._start_turn(conversation, message, context, deadline)

    async def _start_turn(
        self,
        conversation: Conversation,
        message: str,
        context: Optional[Dict[str, Any]],
        deadline: Optional[float],
    ) -> ChatResult:
        """Record the user message and run the turn. The caller holds conversation.lock."""
        cid = conversation.conversation_id
        self.gateway.advertise(cid, self.registry.get_declarations())
        conversation.append(HumanMessage(content=annotate_message(message, context)))
        self.store.touch(conversation)
        self._transition(cid, TurnState.AWAITING_USER_INPUT)

        try:
            return await asyncio.wait_for(self._run_turn(conversation), timeout=deadline)
        except GatewayTimeoutError:
            raise
        except asyncio.TimeoutError as e:
            logger.error("Chat turn for %s exceeded %ss", cid, deadline)
            emit_event(
                source="orchestrator",
                status="failed",
                message=f"Turn exceeded {deadline}s and was abandoned",
            )
            raise OrchestrationTimeoutError(f"Chat turn exceeded {deadline}s") from e

    async def _run_turn(self, conversation: Conversation) -> ChatResult:
        cid = conversation.conversation_id
        cap = self.settings.max_tool_iterations
        pending: List[BaseMessage] = []
        data: Dict[str, Any] = {}
        iterations = 0

        while True:
            self._transition(cid, TurnState.MODEL_RESPONDING)
            reply = await self.gateway.send(conversation.messages + pending, cid)
            if not reply.wants_tools:
                break
            if iterations >= cap:
                logger.warning("Conversation %s hit the tool iteration cap (%d)", cid, cap)
                emit_event(
                    source="orchestrator",
                    status="capped",
                    message=f"Stopped after {cap} tool rounds",
                    details={"pending_tools": [tc.name for tc in reply.tool_calls]},
                )
                break

            iterations += 1
            self._transition(cid, TurnState.TOOLS_REQUESTED)
            logger.info(
                "Tool iteration %d for %s: %s", iterations, cid, [tc.name for tc in reply.tool_calls]
            )
            pending.append(_tool_call_message(reply))

            self._transition(cid, TurnState.TOOLS_EXECUTING)
            in_flight: Dict[str, "asyncio.Future[Any]"] = {}
            results = await asyncio.gather(*(self._run_tool(call, in_flight) for call in reply.tool_calls))
            for result in results:
                pending.append(result.to_message())
                key = self.registry.data_key(result.name)
                if result.ok and key:
                    data[key] = result.payload

        pending.append(AIMessage(content=reply.text))
        conversation.append(*pending)
        self.store.touch(conversation)
        self._transition(cid, TurnState.TURN_COMPLETE)
        return ChatResult(text=reply.text, conversation_id=cid, tool_calls_made=iterations, data=data)

    async def _run_tool(self, call: ToolCallRequest, in_flight: Dict[str, "asyncio.Future[Any]"]) -> ToolResult:
        """Resolve one tool call through the cache, then the registry.

        Calls in the same round whose cache keys match share one execution.
        """
        key = ToolCache.make_key(call.name, call.args)
        cached = self.cache.get(key)
        if cached is not MISS:
            logger.info("Cache hit for %s", call.name)
            emit_event(source="tool_cache", status="hit", message=f"Cache hit for '{call.name}'")
            return ToolResult(call_id=call.id, name=call.name, ok=True, payload=cached, cached=True)

        execution = in_flight.get(key)
        if execution is None:
            execution = in_flight[key] = asyncio.ensure_future(self._execute(call))
        try:
            payload = await execution
        except (UnknownToolError, ToolExecutionError) as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            emit_event(
                source="tool",
                status="failed",
                message=f"Tool '{call.name}' failed",
                details={"tool": call.name, "error": str(e)},
            )
            return ToolResult(call_id=call.id, name=call.name, ok=False, error=str(e))

        self.cache.set(key, payload)
        return ToolResult(call_id=call.id, name=call.name, ok=True, payload=payload)

    async def _execute(self, call: ToolCallRequest) -> Any:
        return await retry_tool(
            call.name,
            lambda: self.registry.execute(call.name, call.args),
            max_attempts=self.settings.tool_max_attempts,
            initial_delay=self.settings.tool_initial_delay,
        )

    async def clear_conversation(self, conversation_id: str) -> None:
        """Drop a conversation and its gateway session. Unknown ids are ignored.

        A turn already running on the conversation finishes first.
        """
        conversation = self.store.get(conversation_id)
        if conversation is None:
            self.gateway.forget(conversation_id)
            return
        async with conversation.lock:
            if self.store.get(conversation_id) is conversation:
                self.store.delete(conversation_id)
            self.gateway.forget(conversation_id)

    def get_history(self, conversation_id: str) -> List[BaseMessage]:
        conversation = self.store.get(conversation_id)
        return list(conversation.messages) if conversation else []

    def _transition(self, conversation_id: str, state: TurnState) -> None:
        logger.debug("Conversation %s -> %s", conversation_id, state.value)


def build_orchestrator(settings: Settings) -> Orchestrator:
    """Wire the default gateway, tools, cache and store from settings."""
    gateway = build_gateway(settings)
    return Orchestrator(
        gateway=gateway,
        registry=build_default_registry(settings),
        cache=ToolCache(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries),
        store=ConversationStore(
            max_conversations=settings.max_conversations,
            max_idle_seconds=settings.conversation_idle_seconds,
            on_evict=gateway.forget,
        ),
        settings=settings,
    )
