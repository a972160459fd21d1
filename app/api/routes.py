"""
API route aggregator: register REST endpoints for sessions, chat history and news search.
"""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.core.session_store import SessionStore
from app.schemas.chat import ChatHistoryResponse, ChatPostRequest
from app.schemas.session import SessionCreated, SessionExists, SessionList
from app.services.news_service import NewsDataService

logger = logging.getLogger(__name__)
router = APIRouter()


def _store(request: Request) -> SessionStore:
    return request.app.state.session_store


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "ok", "message": "NewsChat AI API is running"}


@router.get("/health", tags=["system"])
def health():
    return {"status": "ok"}


# --- Sessions ---

@router.post("/api/session", status_code=201, response_model=SessionCreated, tags=["session"], summary="Create a new session")
def create_session() -> SessionCreated:
    return SessionCreated(sessionId=str(uuid.uuid4()))


@router.get("/api/session", response_model=SessionList, tags=["session"], summary="List sessions, most recent first")
async def list_sessions(request: Request) -> SessionList:
    try:
        sessions = await _store(request).list_sessions()
    except Exception as e:
        logger.exception("Error fetching sessions")
        raise HTTPException(status_code=500, detail="Failed to fetch sessions") from e
    return SessionList(sessions=sessions)


@router.get(
    "/api/session/{session_id}",
    response_model=SessionExists,
    responses={404: {"model": SessionExists}},
    tags=["session"],
    summary="Check if a session exists",
)
async def get_session(session_id: str, request: Request):
    try:
        exists = await _store(request).exists(session_id)
    except Exception as e:
        logger.exception("Error checking session")
        raise HTTPException(status_code=500, detail="Failed to check session") from e
    if not exists:
        return JSONResponse(status_code=404, content={"sessionId": session_id, "exists": False})
    return SessionExists(sessionId=session_id, exists=True)


# --- Chat history ---

@router.get("/api/chat/{session_id}", response_model=ChatHistoryResponse, tags=["chat"], summary="Chat history in chronological order")
async def get_chat_history(session_id: str, request: Request) -> ChatHistoryResponse:
    try:
        messages = await _store(request).get_history(session_id)
    except Exception as e:
        logger.exception("Error fetching chat history")
        raise HTTPException(status_code=500, detail="Failed to fetch chat history") from e
    return ChatHistoryResponse(sessionId=session_id, messages=messages)


@router.delete("/api/chat/{session_id}", tags=["chat"], summary="Clear chat history for a session")
async def clear_chat_history(session_id: str, request: Request) -> dict:
    try:
        await _store(request).clear_history(session_id)
    except Exception as e:
        logger.exception("Error clearing chat history")
        raise HTTPException(status_code=500, detail="Failed to clear chat history") from e
    return {"message": "Chat history cleared successfully"}


@router.post(
    "/api/chat/{session_id}",
    status_code=202,
    tags=["chat"],
    summary="Acknowledge a chat message",
    description="REST alternative to the WebSocket. Messages are only answered over /ws.",
)
def post_chat_message(session_id: str, body: ChatPostRequest) -> dict:
    if not body.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    return {
        "message": "Message received. Use WebSocket for real-time responses.",
        "sessionId": session_id,
    }


# --- News ---

@router.get("/api/news/search", tags=["news"], summary="Search live news")
async def search_news(query: str = "", language: str = "en"):
    if not query.strip():
        raise HTTPException(status_code=400, detail="Query parameter is required")
    try:
        articles = await run_in_threadpool(NewsDataService().search_news, query.strip(), language)
    except Exception as e:
        logger.exception("Error searching news")
        return JSONResponse(status_code=500, content={"error": "Failed to search news", "details": str(e)})
    return {"articles": articles}
