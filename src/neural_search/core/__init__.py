"""Core search components."""

from neural_search.core.grounding import (
    GroundingChunk,
    GroundingMetadata,
    GroundingSupport,
    ModelReply,
    SourceRecord,
)
from neural_search.core.llm import Conversation, WebSearchChat
from neural_search.core.search import SearchResult, SearchService
from neural_search.core.session import ConversationRegistry, InMemorySessionStore

__all__ = [
    "Conversation",
    "ConversationRegistry",
    "GroundingChunk",
    "GroundingMetadata",
    "GroundingSupport",
    "InMemorySessionStore",
    "ModelReply",
    "SearchResult",
    "SearchService",
    "SourceRecord",
    "WebSearchChat",
]
