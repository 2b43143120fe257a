"""Search service shared by the search and follow-up endpoints."""

import logging
from dataclasses import dataclass

from neural_search.config import Settings
from neural_search.core.formatter import format_response
from neural_search.core.grounding import ModelReply, SourceRecord, dedupe_sources
from neural_search.core.llm import ChatClient, WebSearchChat
from neural_search.core.session import ConversationRegistry, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """A rendered answer with its sources."""

    summary: str
    sources: list[SourceRecord]
    session_id: str | None = None


def post_process(reply: ModelReply) -> tuple[str, list[SourceRecord]]:
    """Render a model reply and collect its deduplicated sources.

    Args:
        reply: The raw model reply.

    Returns:
        Tuple of (summary HTML, sources).
    """
    return format_response(reply.text), dedupe_sources(reply.grounding)


class SearchService:
    """Answers queries and follow-ups through a conversation registry."""

    def __init__(self, registry: ConversationRegistry):
        self.registry = registry

    async def search(self, query: str | None) -> SearchResult:
        """Answer a new query, opening a session for follow-ups."""
        session_id, reply = await self.registry.open(query)
        summary, sources = post_process(reply)
        logger.info(
            "Search answered: session=%s query_len=%d sources=%d",
            session_id,
            len(query or ""),
            len(sources),
        )
        return SearchResult(summary=summary, sources=sources, session_id=session_id)

    async def follow_up(self, session_id: str | None, query: str | None) -> SearchResult:
        """Answer a follow-up question in an existing session."""
        reply = await self.registry.continue_(session_id, query)
        summary, sources = post_process(reply)
        logger.info(
            "Follow-up answered: session=%s query_len=%d sources=%d",
            session_id,
            len(query or ""),
            len(sources),
        )
        return SearchResult(summary=summary, sources=sources)


def build_search_service(
    settings: Settings,
    chat: ChatClient | None = None,
    store: SessionStore | None = None,
) -> SearchService:
    """Wire a search service from settings."""
    registry = ConversationRegistry(
        chat=chat or WebSearchChat(settings),
        store=store,
        session_id_length=settings.session_id_length,
    )
    return SearchService(registry)
