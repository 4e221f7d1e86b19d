import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from langchain_core.messages import BaseMessage, SystemMessage


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Conversation:
    """Ordered message history for one planning session.

    messages[0] is always the single SystemMessage. The lock is the
    per-conversation mutual-exclusion scope held by the orchestrator for the
    duration of a chat turn.
    """

    conversation_id: str
    messages: List[BaseMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    last_activity: datetime = field(default_factory=_utcnow)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        system_count = sum(isinstance(m, SystemMessage) for m in self.messages)
        if self.messages and (system_count != 1 or not isinstance(self.messages[0], SystemMessage)):
            raise ValueError("conversation must start with exactly one system message")

    @property
    def busy(self) -> bool:
        return self.lock.locked()

    def append(self, *messages: BaseMessage) -> None:
        if any(isinstance(m, SystemMessage) for m in messages):
            raise ValueError("system message already present")
        self.messages.extend(messages)
