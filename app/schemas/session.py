"""Schemas for the session endpoints."""

from pydantic import BaseModel, Field


class SessionCreated(BaseModel):
    sessionId: str


class SessionSummary(BaseModel):
    """One entry of GET /api/session: the newest message of a session."""

    sessionId: str
    lastMessage: str = Field(..., description="Content of the most recent message.")
    timestamp: str


class SessionList(BaseModel):
    sessions: list[SessionSummary] = Field(default_factory=list)


class SessionExists(BaseModel):
    sessionId: str
    exists: bool
