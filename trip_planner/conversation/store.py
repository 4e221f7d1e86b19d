"""In-memory conversation store with a bounded retention policy."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from langchain_core.messages import SystemMessage

from trip_planner.conversation.models import Conversation

logger = logging.getLogger(__name__)


class ConversationStore:
    """Holds conversations keyed by id.

    Retention: conversations idle longer than `max_idle_seconds` are evicted,
    and once `max_conversations` is reached the least recently active ones are
    evicted to make room. A conversation with an in-flight turn (its lock is
    held) is never evicted. `on_evict` is called with the id of every evicted
    conversation so per-session resources elsewhere can be released.

    All methods are synchronous and never await while touching the map, so
    asyncio tasks cannot interleave inside them and no store-wide lock is
    needed; per-conversation ordering is the job of Conversation.lock.
    """

    def __init__(
        self,
        max_conversations: Optional[int] = None,
        max_idle_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        on_evict: Optional[Callable[[str], None]] = None,
    ) -> None:
        if max_conversations is not None and max_conversations < 1:
            raise ValueError("max_conversations must be at least 1")
        self.max_conversations = max_conversations
        self.max_idle = timedelta(seconds=max_idle_seconds) if max_idle_seconds else None
        self._clock = clock
        self.on_evict = on_evict
        self._conversations: Dict[str, Conversation] = {}

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def get_or_create(
        self, conversation_id: Optional[str], seed: Callable[[], SystemMessage]
    ) -> Tuple[Conversation, bool]:
        """Return the conversation for `conversation_id`, creating it if needed.

        Args:
            conversation_id: Caller-supplied id; None means "start a new one".
            seed: Builds the system message for a new conversation.

        Returns:
            (conversation, created)
        """
        if conversation_id:
            existing = self._conversations.get(conversation_id)
            if existing is not None:
                return existing, False

        self._evict()
        conversation_id = conversation_id or str(uuid.uuid4())
        now = self._clock()
        conversation = Conversation(
            conversation_id=conversation_id,
            messages=[seed()],
            created_at=now,
            last_activity=now,
        )
        self._conversations[conversation_id] = conversation
        logger.info("Created conversation %s (%d active)", conversation_id, len(self._conversations))
        return conversation, True

    def delete(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns False when it did not exist."""
        if self._conversations.pop(conversation_id, None) is None:
            logger.debug("Attempted to delete non-existent conversation: %s", conversation_id)
            return False
        logger.info("Deleted conversation %s", conversation_id)
        return True

    def touch(self, conversation: Conversation) -> None:
        conversation.last_activity = self._clock()

    def conversation_ids(self) -> List[str]:
        return list(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def _evict(self) -> None:
        """Apply the retention policy before a new conversation is added."""
        now = self._clock()
        if self.max_idle is not None:
            for cid, conv in list(self._conversations.items()):
                if not conv.busy and now - conv.last_activity > self.max_idle:
                    self._drop(cid)
                    logger.info("Evicted idle conversation %s", cid)

        if self.max_conversations is None:
            return
        idle_first = sorted(
            (c for c in self._conversations.values() if not c.busy),
            key=lambda c: c.last_activity,
        )
        while len(self._conversations) >= self.max_conversations and idle_first:
            victim = idle_first.pop(0)
            self._drop(victim.conversation_id)
            logger.info("Evicted least recently used conversation %s", victim.conversation_id)

    def _drop(self, conversation_id: str) -> None:
        del self._conversations[conversation_id]
        if self.on_evict is not None:
            self.on_evict(conversation_id)
