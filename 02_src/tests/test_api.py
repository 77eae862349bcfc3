"""Tests for the HTTP API."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from chat_session.api import create_fastapi_app
from chat_session.app import Application
from chat_session.chat import ChatServiceError


@pytest.fixture
def client(mock_chat):
    """API client over an application using the mock chat service."""
    application = Application(
        db_path=":memory:", chat_service_factory=Mock(return_value=mock_chat)
    )
    with TestClient(create_fastapi_app(application)) as test_client:
        yield test_client


def open_session(client, **body) -> str:
    response = client.post("/api/sessions", json=body)
    assert response.status_code == 200
    return response.json()["session_id"]


class TestSessionRoutes:
    """Tests for /api/sessions."""

    def test_open_session(self, client):
        response = client.post("/api/sessions", json={})

        data = response.json()
        assert response.status_code == 200
        assert data["title"] == "New Conversation"
        assert data["state"] == "anonymous"
        assert data["messages"] == []

    def test_submit_message(self, client):
        """Test first message: reply shown, conversation created and named."""
        session_id = open_session(client)

        response = client.post(f"/api/sessions/{session_id}/messages", json={"text": "hello"})

        data = response.json()
        assert data["status"] == "ok"
        session = data["session"]
        assert [m["content"] for m in session["messages"]] == ["hello", "Test response"]
        assert session["conversation_id"] == "c1"
        assert session["title"] == "Greeting Chat"
        assert session["busy"] is False

    def test_submit_blank(self, client, mock_chat):
        session_id = open_session(client)

        response = client.post(f"/api/sessions/{session_id}/messages", json={"text": "  "})

        assert response.json()["status"] == "skipped"
        mock_chat.send_message.assert_not_called()

    def test_submit_failure(self, client, mock_chat):
        mock_chat.send_message.side_effect = ChatServiceError("HTTP 502")
        session_id = open_session(client)

        response = client.post(f"/api/sessions/{session_id}/messages", json={"text": "hello"})

        data = response.json()
        assert data["status"] == "failed"
        assert data["message"] == "Send message failed: HTTP 502"
        assert data["session"]["error"] == "Send message failed: HTTP 502"

    def test_get_unknown_session(self, client):
        assert client.get("/api/sessions/nope").status_code == 404

    def test_rename(self, client):
        session_id = open_session(client, conversation_id="c1", title="Old")

        response = client.patch(f"/api/sessions/{session_id}", json={"title": "New"})

        assert response.json()["status"] == "ok"
        assert client.get(f"/api/sessions/{session_id}").json()["title"] == "New"

    def test_rename_anonymous_conflict(self, client):
        session_id = open_session(client)

        response = client.patch(f"/api/sessions/{session_id}", json={"title": "New"})

        assert response.status_code == 409

    def test_history_anonymous_conflict(self, client):
        session_id = open_session(client)

        assert client.post(f"/api/sessions/{session_id}/history").status_code == 409

    def test_delete_closes_session(self, client):
        session_id = open_session(client, conversation_id="c1")

        response = client.delete(f"/api/sessions/{session_id}/conversation")

        data = response.json()
        assert data["status"] == "ok"
        assert data["close"] is True
        assert data["session"] is None
        assert client.get(f"/api/sessions/{session_id}").status_code == 404

    def test_delete_failure_keeps_session(self, client, mock_chat):
        mock_chat.delete_conversation.side_effect = ChatServiceError("timeout")
        session_id = open_session(client, conversation_id="c1")

        response = client.delete(f"/api/sessions/{session_id}/conversation")

        data = response.json()
        assert data["status"] == "failed"
        assert data["message"] == "Delete failed: timeout"
        assert data["session"]["state"] == "identified"

    def test_dismiss_error(self, client, mock_chat):
        mock_chat.send_message.side_effect = ChatServiceError("HTTP 502")
        session_id = open_session(client)
        client.post(f"/api/sessions/{session_id}/messages", json={"text": "hello"})

        response = client.post(f"/api/sessions/{session_id}/error/dismiss")

        assert response.json()["error"] is None

    def test_close_session(self, client):
        session_id = open_session(client)

        assert client.delete(f"/api/sessions/{session_id}").json() == {"status": "ok"}
        assert client.get(f"/api/sessions/{session_id}").status_code == 404


class TestSettingsRoutes:
    """Tests for /api/settings."""

    def test_save_and_get(self, client):
        body = {"base_url": "http://chat.test/v1", "api_key": "k", "user_id": "alice"}

        assert client.put("/api/settings", json=body).json() == body
        assert client.get("/api/settings").json() == body
