"""
Redis chat session store. Keyed by session_id under chat:<session_id>.

Each write LPUSHes one JSON message (newest first on disk) and resets the key's
TTL; reads reverse the list to chronological order.
"""

import logging
from typing import Any

import redis.asyncio as redis

from app.core.config import CHAT_KEY_PREFIX, REDIS_TTL, REDIS_URL
from app.schemas.chat import ChatMessage
from app.schemas.session import SessionSummary

logger = logging.getLogger(__name__)


def chat_key(session_id: str) -> str:
    return f"{CHAT_KEY_PREFIX}{session_id}"


def create_redis(url: str = REDIS_URL) -> Any:
    client = redis.from_url(url, decode_responses=True)
    logger.info("Redis client created url=%s", url.split("@")[-1])
    return client


class SessionStore:
    def __init__(self, client: Any, ttl: int = REDIS_TTL) -> None:
        self.client = client
        self.ttl = ttl

    async def append_message(self, session_id: str, message: ChatMessage) -> None:
        """Prepend one message and refresh the TTL in a single transaction."""
        key = chat_key(session_id)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.lpush(key, message.model_dump_json())
            pipe.expire(key, self.ttl)
            await pipe.execute()
        logger.info("[session_store:append_message] session_id=%s role=%s content_len=%d",
                    session_id[:16], message.role, len(message.content))

    async def get_history(self, session_id: str) -> list[ChatMessage]:
        """Return chat history in chronological order."""
        raw = await self.client.lrange(chat_key(session_id), 0, -1)
        messages = [ChatMessage.model_validate_json(m) for m in raw]
        messages.reverse()
        logger.info("[session_store:get_history] IN  session_id=%s OUT messages=%d", session_id[:16], len(messages))
        return messages

    async def clear_history(self, session_id: str) -> None:
        await self.client.delete(chat_key(session_id))
        logger.info("[session_store:clear_history] session_id=%s", session_id[:16])

    async def exists(self, session_id: str) -> bool:
        return bool(await self.client.exists(chat_key(session_id)))

    async def list_sessions(self) -> list[SessionSummary]:
        """Newest message of every stored session, most recent session first."""
        sessions: list[SessionSummary] = []
        async for key in self.client.scan_iter(match=f"{CHAT_KEY_PREFIX}*"):
            newest = await self.client.lrange(key, 0, 0)
            if not newest:
                continue
            last = ChatMessage.model_validate_json(newest[0])
            sessions.append(SessionSummary(
                sessionId=key[len(CHAT_KEY_PREFIX):],
                lastMessage=last.content,
                timestamp=last.timestamp,
            ))
        sessions.sort(key=lambda s: s.timestamp, reverse=True)
        return sessions
