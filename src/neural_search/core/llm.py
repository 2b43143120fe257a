"""Web-search chat client built on the Anthropic Messages API."""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Protocol

import anthropic
import httpx

from neural_search.config import Settings
from neural_search.core.errors import UpstreamError
from neural_search.core.grounding import (
    GroundingChunk,
    GroundingMetadata,
    GroundingSupport,
    ModelReply,
)

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL_TYPE = "web_search_20250305"

SYSTEM_PROMPT = """You are a web search assistant.

Answer the user's question using the web search tool to find current,
authoritative information.

Guidelines:
- Search before answering anything time-sensitive or factual
- Start with a short overview, then organize details under labelled sections
  (for example "Summary:", "Key Points:")
- Use bullet points for lists
- Cite the pages you relied on
- Keep follow-up answers consistent with the earlier conversation
"""


@dataclass
class Conversation:
    """An ongoing exchange with the model.

    Holds user turns and full assistant content blocks, so the model sees its
    earlier search results on follow-up turns.
    """

    id: str = field(default_factory=lambda: secrets.token_hex(8))
    messages: list[dict[str, Any]] = field(default_factory=list)


class ChatClient(Protocol):
    """The language model capability used by the conversation registry."""

    def start_conversation(self) -> Conversation: ...

    async def send_turn(self, conversation: Conversation, text: str) -> ModelReply: ...


def _citation_urls(block: Any) -> list[tuple[str, str | None]]:
    """Return (url, title) pairs for the web citations on a text block."""
    pairs = []
    for citation in getattr(block, "citations", None) or []:
        if getattr(citation, "type", None) != "web_search_result_location":
            continue
        url = getattr(citation, "url", None)
        if url:
            pairs.append((url, getattr(citation, "title", None)))
    return pairs


def extract_reply(blocks: list[Any]) -> ModelReply:
    """Build a ModelReply from Messages API content blocks.

    Each web search result becomes a grounding chunk, in block order. Each
    cited text block becomes a grounding support pointing at every chunk with
    a cited URL. Cited URLs missing from the search results are appended as
    chunks.

    Args:
        blocks: Content blocks from one or more responses of a single turn.

    Returns:
        The answer text and grounding (None when nothing was searched or cited).
    """
    text_parts: list[str] = []
    chunks: list[GroundingChunk] = []
    cited_blocks: list[tuple[str, list[tuple[str, str | None]]]] = []

    for block in blocks:
        block_type = getattr(block, "type", None)

        if block_type == "web_search_tool_result":
            content = getattr(block, "content", None)
            if isinstance(content, list):
                for result in content:
                    chunks.append(
                        GroundingChunk(
                            uri=getattr(result, "url", None),
                            title=getattr(result, "title", None),
                        )
                    )
            else:
                logger.warning(
                    "Web search failed: %s", getattr(content, "error_code", "unknown")
                )

        elif block_type == "text":
            text = block.text or ""
            text_parts.append(text)
            citations = _citation_urls(block)
            if citations:
                cited_blocks.append((text.strip(), citations))

    supports: list[GroundingSupport] = []
    for text, citations in cited_blocks:
        indices: list[int] = []
        for url, title in citations:
            matches = [i for i, chunk in enumerate(chunks) if chunk.uri == url]
            if not matches:
                chunks.append(GroundingChunk(uri=url, title=title))
                matches = [len(chunks) - 1]
            indices.extend(i for i in matches if i not in indices)
        supports.append(GroundingSupport(chunk_indices=indices, text=text))

    grounding = None
    if chunks or supports:
        grounding = GroundingMetadata(chunks=chunks, supports=supports)

    return ModelReply(text="".join(text_parts), grounding=grounding)


class WebSearchChat:
    """Chat client that answers with the server-side web search tool enabled."""

    def __init__(self, settings: Settings, client: anthropic.AsyncAnthropic | None = None):
        """Initialize the chat client.

        Args:
            settings: Application settings.
            client: Optional preconfigured Anthropic client.
        """
        self.settings = settings
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=httpx.Timeout(settings.llm_timeout, connect=10.0),
        )
        self.tools = [
            {
                "type": WEB_SEARCH_TOOL_TYPE,
                "name": "web_search",
                "max_uses": settings.web_search_max_uses,
            }
        ]

    def start_conversation(self) -> Conversation:
        """Open a fresh conversation context."""
        return Conversation()

    async def _create(self, messages: list[dict[str, Any]]):
        try:
            return await self.client.messages.create(
                model=self.settings.llm_model,
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
                system=SYSTEM_PROMPT,
                messages=messages,
                tools=self.tools,
            )
        except anthropic.APIError as e:
            logger.error("Model request failed: %s", e)
            raise UpstreamError(e.message or None) from e

    async def send_turn(self, conversation: Conversation, text: str) -> ModelReply:
        """Send a user turn and wait for the grounded answer.

        A ``pause_turn`` stop means the server paused a long search turn; the
        partial assistant content is sent back so the model can finish it.
        The conversation history is only extended once the turn completes; a
        turn still paused after the last continuation is returned but not kept,
        so later turns never follow an unfinished tool call.

        Args:
            conversation: The conversation to continue.
            text: The user's message.

        Returns:
            The model's reply with grounding metadata.

        Raises:
            UpstreamError: If the API call fails.
        """
        messages = [*conversation.messages, {"role": "user", "content": text}]
        blocks: list[Any] = []

        response = await self._create(messages)
        blocks.extend(response.content)

        continuations = 0
        while (
            response.stop_reason == "pause_turn"
            and continuations < self.settings.llm_max_continuations
        ):
            continuations += 1
            logger.info(
                "Turn paused in conversation %s, continuing (%d/%d)",
                conversation.id,
                continuations,
                self.settings.llm_max_continuations,
            )
            response = await self._create(
                [*messages, {"role": "assistant", "content": list(blocks)}]
            )
            blocks.extend(response.content)

        if response.stop_reason == "pause_turn":
            logger.warning(
                "Turn in conversation %s still paused after %d continuations, not kept in history",
                conversation.id,
                continuations,
            )
        else:
            conversation.messages = [*messages, {"role": "assistant", "content": blocks}]
        return extract_reply(blocks)
