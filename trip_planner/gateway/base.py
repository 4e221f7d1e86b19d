"""
Model gateway interface.

The orchestrator only needs a backend that takes the full ordered history and
returns either text or a list of tool-call requests. Each implementation
provides `_complete`; deadlines, error normalisation and retries live here so
every backend gets them the same way.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import BaseMessage

from trip_planner.errors import GatewayTimeoutError, ModelGatewayError
from trip_planner.middleware.retry import retry_model
from trip_planner.models import ModelReply, ToolDeclaration

logger = logging.getLogger(__name__)


def extract_text(content) -> str:
    """Extract plain text from a content field that may be a string or a list of blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "\n".join(parts)
    return str(content)


class ModelGateway(ABC):
    """Base class for language model backends."""

    name = "base"

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
    ) -> None:
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self._catalogs: Dict[str, List[ToolDeclaration]] = {}

    def advertise(self, session_id: str, declarations: Sequence[ToolDeclaration]) -> None:
        """Associate the current tool catalogue with a session.

        Raises:
            ModelGatewayError: the backend or model could not be set up.
        """
        declarations = list(declarations)
        try:
            self._bind(session_id, declarations)
        except ModelGatewayError:
            raise
        except Exception as e:
            logger.error("[%s] Model setup failed for session %s: %s", self.name, session_id, e)
            raise ModelGatewayError(f"{self.name} model setup failed", details=f"{type(e).__name__}: {e}") from e
        self._catalogs[session_id] = declarations

    def _bind(self, session_id: str, declarations: List[ToolDeclaration]) -> None:
        """Prepare backend state for a session's tool catalogue."""

    def forget(self, session_id: str) -> None:
        """Drop per-session resources. Unknown sessions are ignored."""
        self._catalogs.pop(session_id, None)

    def catalog(self, session_id: str) -> List[ToolDeclaration]:
        return self._catalogs.get(session_id, [])

    async def send(
        self, history: Sequence[BaseMessage], session_id: str, *, timeout: Optional[float] = None
    ) -> ModelReply:
        """Send the full history and return the model's reply.

        Raises:
            GatewayTimeoutError: one attempt exceeded `timeout`.
            ModelGatewayError: the backend failed on every attempt.
        """
        deadline = timeout if timeout is not None else self.timeout
        return await retry_model(
            lambda: self._send_once(history, session_id, deadline),
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
        )

    async def _send_once(
        self, history: Sequence[BaseMessage], session_id: str, timeout: Optional[float]
    ) -> ModelReply:
        logger.info("[%s] Sending %d messages for session %s", self.name, len(history), session_id)
        try:
            reply = await asyncio.wait_for(self._complete(list(history), session_id), timeout=timeout)
        except ModelGatewayError:
            raise
        except asyncio.TimeoutError as e:
            raise GatewayTimeoutError(f"Model call exceeded {timeout}s") from e
        except Exception as e:
            raise ModelGatewayError(f"{self.name} model call failed", details=f"{type(e).__name__}: {e}") from e

        if reply.tool_calls:
            logger.info(
                "[%s] Model requested tools: %s", self.name, [tc.name for tc in reply.tool_calls]
            )
        else:
            logger.info("[%s] Model replied with %d chars", self.name, len(reply.text))
        return reply

    @abstractmethod
    async def _complete(self, history: List[BaseMessage], session_id: str) -> ModelReply:
        """Run one completion against the backend."""

    async def health(self) -> Dict[str, Any]:
        return {"provider": self.name}

    async def aclose(self) -> None:
        """Release network resources."""
