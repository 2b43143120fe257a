"""Session store and conversation registry for follow-up questions."""

import logging
import secrets
import string
from threading import Lock
from typing import Protocol

from neural_search.core.errors import InvalidInputError, SessionNotFoundError
from neural_search.core.grounding import ModelReply
from neural_search.core.llm import ChatClient, Conversation

logger = logging.getLogger(__name__)

SESSION_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id(length: int = 8) -> str:
    """Generate a short random session token. Collisions are not checked."""
    return "".join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(length))


class SessionStore(Protocol):
    """Maps session identifiers to conversation contexts."""

    def insert(self, session_id: str, conversation: Conversation) -> None: ...

    def get(self, session_id: str) -> Conversation | None: ...


class InMemorySessionStore:
    """Process-local session store. Entries live until the process exits."""

    def __init__(self):
        self._sessions: dict[str, Conversation] = {}
        self._lock = Lock()

    def insert(self, session_id: str, conversation: Conversation) -> None:
        """Store a fully constructed conversation under ``session_id``."""
        with self._lock:
            self._sessions[session_id] = conversation

    def get(self, session_id: str) -> Conversation | None:
        """Look up a conversation, or None if the id is unknown."""
        with self._lock:
            return self._sessions.get(session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class ConversationRegistry:
    """Opens model conversations and routes follow-ups to them."""

    def __init__(
        self,
        chat: ChatClient,
        store: SessionStore | None = None,
        session_id_length: int = 8,
    ):
        """Initialize the registry.

        Args:
            chat: The language model capability.
            store: Session store (defaults to an in-memory store).
            session_id_length: Length of generated session identifiers.
        """
        self.chat = chat
        self.store = store if store is not None else InMemorySessionStore()
        self.session_id_length = session_id_length

    async def open(self, query: str | None) -> tuple[str, ModelReply]:
        """Start a conversation with ``query`` as its first turn.

        The conversation is stored only after the model has answered, so a
        follow-up never sees a half-built session.

        Args:
            query: The user's first question.

        Returns:
            Tuple of (new session id, model reply).

        Raises:
            InvalidInputError: If the query is empty.
            UpstreamError: If the model call fails.
        """
        if not query or not query.strip():
            raise InvalidInputError("A query is required")

        conversation = self.chat.start_conversation()
        reply = await self.chat.send_turn(conversation, query)

        session_id = generate_session_id(self.session_id_length)
        self.store.insert(session_id, conversation)
        logger.info("Opened session %s", session_id)
        return session_id, reply

    async def continue_(self, session_id: str | None, query: str | None) -> ModelReply:
        """Send ``query`` as the next turn of an existing conversation.

        Raises:
            InvalidInputError: If the session id or query is empty.
            SessionNotFoundError: If the session id is unknown.
            UpstreamError: If the model call fails.
        """
        if not session_id or not query or not query.strip():
            raise InvalidInputError("Both sessionId and query are required")

        conversation = self.store.get(session_id)
        if conversation is None:
            logger.warning("Unknown session %s", session_id)
            raise SessionNotFoundError()

        return await self.chat.send_turn(conversation, query)
