"""Direct messages between guests and listing owners."""

from __future__ import annotations

from typing import Optional

from batoo.domain.constraints import validate_message_fields
from batoo.domain.models import Conversation, Message
from batoo.repository.data_repository import DataRepository
from batoo.utils.config import Settings, get_settings


class MessagingError(Exception):
    """Base exception for messaging failures."""


class MessageValidationError(MessagingError):
    """Raised when a message cannot be sent."""


class MessagingService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def send_message(self, sender_id: str, receiver_id: str, content: str) -> Message:
        try:
            validate_message_fields(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
            )
        except ValueError as exc:
            raise MessageValidationError(str(exc)) from exc
        return self._repository.create_message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content.strip(),
        )

    def get_thread(self, user_id: str, peer_id: str) -> list[Message]:
        return self._repository.list_messages_between(user_id, peer_id)

    def list_conversations(self, user_id: str) -> list[Conversation]:
        """Every peer the user has sent to or received from, once each."""
        peer_ids = set(self._repository.list_receiver_ids_for_sender(user_id))
        peer_ids.update(self._repository.list_sender_ids_for_receiver(user_id))
        peer_ids.discard(user_id)
        return [Conversation(peer_id=peer_id) for peer_id in sorted(peer_ids)]
