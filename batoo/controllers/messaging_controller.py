"""HTTP controller layer for user-to-user messages."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from batoo.controllers.dependencies import get_messaging_service
from batoo.domain.models import Message
from batoo.services.messaging_service import MessageValidationError, MessagingService
from batoo.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["messages"])


class SendMessageRequest(BaseModel):
    sender_id: str = Field(min_length=1)
    receiver_id: str = Field(min_length=1)
    content: str = Field(min_length=1)


class MessageResponse(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    content: str
    created_at: str


class ConversationResponse(BaseModel):
    peer_id: str


def _message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.message_id,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        content=message.content,
        created_at=message.created_at,
    )


@router.post(
    "/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    payload: SendMessageRequest,
    service: MessagingService = Depends(get_messaging_service),
) -> MessageResponse:
    try:
        message = service.send_message(
            sender_id=payload.sender_id,
            receiver_id=payload.receiver_id,
            content=payload.content,
        )
        return _message_response(message)
    except MessageValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected message send failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message",
        ) from exc


@router.get("/users/{user_id}/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    user_id: str,
    service: MessagingService = Depends(get_messaging_service),
) -> list[ConversationResponse]:
    return [
        ConversationResponse(peer_id=item.peer_id)
        for item in service.list_conversations(user_id)
    ]


@router.get("/users/{user_id}/messages/{peer_id}", response_model=list[MessageResponse])
async def get_thread(
    user_id: str,
    peer_id: str,
    service: MessagingService = Depends(get_messaging_service),
) -> list[MessageResponse]:
    return [_message_response(item) for item in service.get_thread(user_id, peer_id)]
