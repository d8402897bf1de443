from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from batoo.controllers.messaging_controller import router as messaging_router
from batoo.repository.data_repository import DataRepository
from batoo.services.messaging_service import MessageValidationError, MessagingService
from batoo.utils.config import get_settings


def _build_service(tmp_path) -> MessagingService:
    get_settings.cache_clear()
    settings = replace(get_settings(), database_path=tmp_path / "messages.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    return MessagingService(repository=repository, settings=settings)


def _build_test_app(tmp_path) -> FastAPI:
    app = FastAPI()
    app.include_router(messaging_router)
    app.state.messaging_service = _build_service(tmp_path)
    return app


def test_conversations_union_sent_and_received(tmp_path):
    service = _build_service(tmp_path)
    service.send_message("alice", "bob", "Is the yacht free in August?")
    service.send_message("carol", "alice", "Thanks for the booking!")
    service.send_message("alice", "bob", "Following up.")

    peers = [item.peer_id for item in service.list_conversations("alice")]
    assert peers == ["bob", "carol"]
    assert [item.peer_id for item in service.list_conversations("bob")] == ["alice"]
    assert service.list_conversations("nobody") == []


def test_thread_contains_both_directions_in_order(tmp_path):
    service = _build_service(tmp_path)
    service.send_message("alice", "bob", "first")
    service.send_message("bob", "alice", "second")
    service.send_message("alice", "carol", "elsewhere")
    service.send_message("alice", "bob", "third")

    thread = service.get_thread("alice", "bob")
    assert [item.content for item in thread] == ["first", "second", "third"]
    assert [item.content for item in service.get_thread("bob", "alice")] == ["first", "second", "third"]


def test_send_message_strips_content(tmp_path):
    service = _build_service(tmp_path)
    message = service.send_message("alice", "bob", "  hello  ")
    assert message.content == "hello"


@pytest.mark.parametrize(
    "sender, receiver, content",
    [("alice", "alice", "hi me"), ("alice", "bob", "   ")],
)
def test_invalid_messages_raise(tmp_path, sender, receiver, content):
    service = _build_service(tmp_path)
    with pytest.raises(MessageValidationError):
        service.send_message(sender, receiver, content)


def test_messaging_endpoints(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    sent = client.post(
        "/messages",
        json={"sender_id": "guest-1", "receiver_id": "owner-1", "content": "Hello!"},
    )
    assert sent.status_code == 201
    assert sent.json()["content"] == "Hello!"

    client.post(
        "/messages",
        json={"sender_id": "owner-1", "receiver_id": "guest-1", "content": "Welcome aboard."},
    )

    conversations = client.get("/users/owner-1/conversations")
    assert conversations.json() == [{"peer_id": "guest-1"}]

    thread = client.get("/users/guest-1/messages/owner-1")
    assert [item["content"] for item in thread.json()] == ["Hello!", "Welcome aboard."]


def test_message_to_self_is_rejected(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    response = client.post(
        "/messages",
        json={"sender_id": "guest-1", "receiver_id": "guest-1", "content": "Hello"},
    )
    assert response.status_code == 400
