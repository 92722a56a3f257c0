"""Endpoints for the conversation list and message exchange."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from matrisync.application.session import RealtimeSession
from matrisync.interfaces.api.dependencies import get_realtime_session
from matrisync.interfaces.api.schemas import (
    ConversationRead,
    ConversationSummaryRead,
    MessageCreate,
    MessageRead,
)

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("/", response_model=list[ConversationSummaryRead])
async def list_conversations(
    session: RealtimeSession = Depends(get_realtime_session),
) -> list[ConversationSummaryRead]:
    summaries = await session.conversations.fetch_conversations()
    return [ConversationSummaryRead.from_entity(summary) for summary in summaries]


@router.get("/{conversation_id}/messages", response_model=ConversationRead)
async def open_conversation(
    conversation_id: str,
    session: RealtimeSession = Depends(get_realtime_session),
) -> ConversationRead:
    """Open the conversation with ``conversation_id`` and return its history."""

    messages = await session.conversations.select_conversation(conversation_id)
    return ConversationRead(
        conversation_id=conversation_id,
        messages=[MessageRead.from_entity(message) for message in messages],
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    session: RealtimeSession = Depends(get_realtime_session),
) -> MessageRead:
    store = session.conversations
    if not payload.content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message content is empty",
        )
    if store.sending:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A message is already being sent",
        )

    message = await store.send_message(conversation_id, payload.content)
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=store.alert or "Message could not be sent",
        )
    return MessageRead.from_entity(message)


@router.post("/{conversation_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_conversation_read(
    conversation_id: str,
    session: RealtimeSession = Depends(get_realtime_session),
) -> None:
    await session.conversations.mark_conversation_as_read(conversation_id)
