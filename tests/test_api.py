"""Tests for the search and follow-up HTTP endpoints."""

import asyncio

import httpx
import pytest

from neural_search.api import main
from neural_search.core.errors import (
    FOLLOW_UP_ERROR_MESSAGE,
    SEARCH_ERROR_MESSAGE,
    UpstreamError,
)
from neural_search.core.grounding import ModelReply
from neural_search.core.search import SearchService
from neural_search.core.session import ConversationRegistry


class TestSearchEndpoint:
    """Tests for GET /api/search."""

    def test_missing_query_returns_400(self, client):
        """Test that a request without q is rejected with a message."""
        response = client.get("/api/search")

        assert response.status_code == 400
        assert response.json() == {"message": "Query parameter 'q' is required"}

    @pytest.mark.parametrize("q", ["", "   "])
    def test_blank_query_returns_400(self, client, q):
        """Test that empty and whitespace-only queries are rejected."""
        response = client.get("/api/search", params={"q": q})

        assert response.status_code == 400
        assert response.json() == {"message": "Query parameter 'q' is required"}

    def test_search_returns_summary_sources_and_session(self, client, fake_chat, grounded_reply):
        """Test that a grounded reply is rendered with deduplicated sources."""
        fake_chat.replies.append(grounded_reply)

        response = client.get("/api/search", params={"q": "what is rust?"})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"sessionId", "summary", "sources"}
        assert body["sessionId"]
        assert "<h2>Summary Rust is a systems language.</h2>" in body["summary"]
        assert "<li>Fast</li>" in body["summary"]
        assert body["sources"] == [
            {"title": "A", "url": "https://a.example", "snippet": "Rust is a systems language."},
            {"title": "B", "url": "https://b.example", "snippet": "It is fast."},
        ]

    def test_reply_without_grounding_has_no_sources(self, client):
        """Test that an uncited reply returns an empty source list."""
        response = client.get("/api/search", params={"q": "hello"})

        assert response.status_code == 200
        assert response.json()["sources"] == []

    def test_plain_reply_is_rendered(self, client, fake_chat):
        """Test that glyph bullets with CRLF endings render as a list."""
        fake_chat.replies.append(ModelReply(text="• one\r\n• two"))

        response = client.get("/api/search", params={"q": "list"})

        assert "<ul>" in response.json()["summary"]

    def test_upstream_failure_returns_500_with_message(self, client, fake_chat):
        """Test that the upstream error message is passed through verbatim."""
        fake_chat.replies.append(UpstreamError("quota exceeded"))

        response = client.get("/api/search", params={"q": "what is rust?"})

        assert response.status_code == 500
        assert response.json() == {"message": "quota exceeded"}

    def test_upstream_failure_without_message_uses_search_default(self, client, fake_chat):
        """Test that a bare upstream error reports the search default message."""
        fake_chat.replies.append(UpstreamError())

        response = client.get("/api/search", params={"q": "what is rust?"})

        assert response.status_code == 500
        assert response.json() == {"message": SEARCH_ERROR_MESSAGE}

    def test_unexpected_failure_returns_500_with_message(self, client, fake_chat):
        """Test that unexpected errors become a 500 carrying their text."""
        fake_chat.replies.append(RuntimeError("boom"))

        response = client.get("/api/search", params={"q": "what is rust?"})

        assert response.status_code == 500
        assert response.json() == {"message": "boom"}


class TestFollowUpEndpoint:
    """Tests for POST /api/follow-up."""

    def open_session(self, client) -> str:
        return client.get("/api/search", params={"q": "what is rust?"}).json()["sessionId"]

    def test_follow_up_continues_session(self, client, fake_chat, grounded_reply):
        """Test that a follow-up is sent on the conversation the search opened."""
        session_id = self.open_session(client)
        fake_chat.replies.append(grounded_reply)

        response = client.post(
            "/api/follow-up", json={"sessionId": session_id, "query": "and go?"}
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"summary", "sources"}
        assert len(body["sources"]) == 2
        first, second = fake_chat.turns
        assert first[0] is second[0]
        assert second[1] == "and go?"

    def test_unknown_session_returns_404(self, client):
        """Test that a mistyped session id is not found."""
        session_id = self.open_session(client)

        response = client.post(
            "/api/follow-up", json={"sessionId": session_id + "x", "query": "and go?"}
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Chat session not found"}

    def test_missing_fields_return_400(self, client):
        """Test that absent or empty fields are rejected with a message."""
        for body in ({}, {"sessionId": "abc"}, {"query": "and go?"}, {"sessionId": "", "query": "q"}):
            response = client.post("/api/follow-up", json=body)

            assert response.status_code == 400
            assert response.json() == {"message": "Both sessionId and query are required"}

    def test_whitespace_query_returns_400(self, client, fake_chat):
        """Test that a whitespace-only follow-up on a live session is rejected."""
        session_id = self.open_session(client)

        response = client.post("/api/follow-up", json={"sessionId": session_id, "query": "  "})

        assert response.status_code == 400
        assert response.json() == {"message": "Both sessionId and query are required"}
        assert len(fake_chat.turns) == 1

    def test_malformed_body_returns_400(self, client):
        """Test that a body that is not JSON is rejected with a message."""
        response = client.post(
            "/api/follow-up",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "message" in response.json()

    def test_upstream_failure_without_message_uses_follow_up_default(self, client, fake_chat):
        """Test that a bare upstream error reports the follow-up default message."""
        session_id = self.open_session(client)
        fake_chat.replies.append(UpstreamError())

        response = client.post(
            "/api/follow-up", json={"sessionId": session_id, "query": "and go?"}
        )

        assert response.status_code == 500
        assert response.json() == {"message": FOLLOW_UP_ERROR_MESSAGE}

    def test_unexpected_failure_without_message_uses_follow_up_default(self, client, fake_chat):
        """Test that an unexpected error with no text reports the follow-up default."""
        session_id = self.open_session(client)
        fake_chat.replies.append(RuntimeError())

        response = client.post(
            "/api/follow-up", json={"sessionId": session_id, "query": "and go?"}
        )

        assert response.status_code == 500
        assert response.json() == {"message": FOLLOW_UP_ERROR_MESSAGE}


class TestSearchServiceLifecycle:
    """Tests for how the app builds and shares its search service."""

    @pytest.mark.asyncio
    async def test_concurrent_first_requests_share_one_service(self, monkeypatch, fake_chat):
        """Test that sessions opened by simultaneous first requests accept follow-ups."""
        builds = []

        def build_search_service(settings):
            builds.append(settings)
            return SearchService(ConversationRegistry(chat=fake_chat))

        monkeypatch.setattr(main, "build_search_service", build_search_service)
        app = main.create_app()

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            searches = await asyncio.gather(
                *(http.get("/api/search", params={"q": f"query {i}"}) for i in range(4))
            )
            follow_ups = await asyncio.gather(
                *(
                    http.post(
                        "/api/follow-up",
                        json={"sessionId": r.json()["sessionId"], "query": "and go?"},
                    )
                    for r in searches
                )
            )

        assert len(builds) == 1
        assert [r.status_code for r in searches] == [200] * 4
        assert [r.status_code for r in follow_ups] == [200] * 4


def test_health(client):
    """Test the health check endpoint."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
