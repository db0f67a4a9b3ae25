from __future__ import annotations

import threading
import time

from .config import DEFAULT_CHAT_CONFIG
from .models import Conversation, ConversationMessage, ConversationState, ConversationTurn


class InMemoryConversationStore:
    """Chat transcripts keyed by chat session id.

    Only the newest ``max_messages`` messages of a session are retained.
    Readers get copies, so callers never see a transcript change underneath
    them.
    """

    def __init__(self, max_messages: int = DEFAULT_CHAT_CONFIG.max_stored_messages) -> None:
        self.max_messages = max_messages
        self._conversations: dict[str, Conversation] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Conversation | None:
        with self._lock:
            conversation = self._conversations.get(session_id)
            return conversation.model_copy(deep=True) if conversation else None

    def recent_state(self, session_id: str, max_turns: int) -> ConversationState:
        """The last ``max_turns`` messages of a session, as LLM context."""
        with self._lock:
            conversation = self._conversations.get(session_id)
            messages = conversation.messages[-max_turns:] if conversation else []
            return ConversationState(
                turns=[ConversationTurn(role=m.role, content=m.content) for m in messages],
            )

    def append_exchange(self, session_id: str, user_message: str, assistant_message: str) -> None:
        now = time.time()
        with self._lock:
            conversation = self._conversations.get(session_id)
            if conversation is None:
                conversation = Conversation(session_id=session_id, created_at=now)
                self._conversations[session_id] = conversation
            conversation.messages.append(ConversationMessage(role="user", content=user_message, timestamp=now))
            conversation.messages.append(
                ConversationMessage(role="assistant", content=assistant_message, timestamp=now),
            )
            if len(conversation.messages) > self.max_messages:
                conversation.messages = conversation.messages[-self.max_messages:]
            conversation.updated_at = now

    def delete(self, session_id: str) -> bool:
        """Drop a transcript. Returns ``False`` when there was nothing to drop."""
        with self._lock:
            return self._conversations.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._conversations.clear()


_store = InMemoryConversationStore()


def get_conversation_store() -> InMemoryConversationStore:
    return _store


def clear_conversations() -> None:
    _store.clear()
