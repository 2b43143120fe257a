"""Shared fixtures: a fake chat client and services wired around it."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from neural_search.api.main import create_app
from neural_search.core.grounding import (
    GroundingChunk,
    GroundingMetadata,
    GroundingSupport,
    ModelReply,
)
from neural_search.core.llm import Conversation
from neural_search.core.search import SearchService
from neural_search.core.session import ConversationRegistry, InMemorySessionStore


class FakeChat:
    """Chat client double that replays queued replies or errors."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.turns: list[tuple[Conversation, str]] = []

    def start_conversation(self) -> Conversation:
        return Conversation()

    async def send_turn(self, conversation: Conversation, text: str) -> ModelReply:
        self.turns.append((conversation, text))
        await asyncio.sleep(0)
        reply = self.replies.pop(0) if self.replies else ModelReply(text=f"Answer to {text}")
        if isinstance(reply, Exception):
            raise reply
        conversation.messages.append({"role": "user", "content": text})
        conversation.messages.append({"role": "assistant", "content": reply.text})
        return reply


@pytest.fixture
def grounded_reply() -> ModelReply:
    """A reply citing two pages, one of them twice."""
    return ModelReply(
        text="Summary: Rust is a systems language.\n\n• Fast\n• Safe",
        grounding=GroundingMetadata(
            chunks=[
                GroundingChunk(uri="https://a.example", title="A"),
                GroundingChunk(uri="https://b.example", title="B"),
                GroundingChunk(uri="https://a.example", title="A again"),
            ],
            supports=[
                GroundingSupport(chunk_indices=[0], text="Rust is a systems language."),
                GroundingSupport(chunk_indices=[1, 2], text="It is fast."),
            ],
        ),
    )


@pytest.fixture
def fake_chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def registry(fake_chat: FakeChat, store: InMemorySessionStore) -> ConversationRegistry:
    return ConversationRegistry(chat=fake_chat, store=store)


@pytest.fixture
def service(registry: ConversationRegistry) -> SearchService:
    return SearchService(registry)


@pytest.fixture
def client(service: SearchService) -> TestClient:
    """TestClient for an app serving a search service backed by FakeChat."""
    app = create_app(service=service)
    return TestClient(app, raise_server_exceptions=False)
