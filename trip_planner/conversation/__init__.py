from trip_planner.conversation.models import Conversation
from trip_planner.conversation.store import ConversationStore

__all__ = ["Conversation", "ConversationStore"]
