"""Schemas for chat messages and real-time channel events."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ChatMessage(BaseModel):
    """One stored message. Immutable once created; stored as JSON under chat:<sessionId>."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: str = Field(default_factory=utc_now_iso, description="ISO-8601 UTC timestamp.")


class InboundMessage(BaseModel):
    """Payload of an inbound `message` event."""

    message: str = Field(..., min_length=1, description="User question.")
    sessionId: str | None = Field(None, description="Session to answer in; defaults to the connection's session.")


class OutboundMessage(ChatMessage):
    """Payload of an outbound `message` event. Assistant answers carry isComplete=True."""

    isComplete: bool | None = None


class StatusEvent(BaseModel):
    type: Literal["typing", "processing", "idle"]
    message: str | None = None


class ChatPostRequest(BaseModel):
    """Request body for POST /api/chat/{session_id}."""

    message: str = ""


class ChatHistoryResponse(BaseModel):
    sessionId: str
    messages: list[ChatMessage]
