"""
Real-time chat channel (WebSocket).

Frames are JSON envelopes {"event": <name>, "data": <payload>}. On connect the
server emits `session`; each inbound `message` is answered with `status`
(typing / processing / idle), broadcast `message` events to the session group,
and background persistence that is joined only after the answer is delivered.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.core.config import PROCESSING_NOTICE_DELAY, SHUTDOWN_DRAIN_TIMEOUT
from app.core.session_store import SessionStore
from app.schemas.chat import ChatMessage, InboundMessage, OutboundMessage, StatusEvent
from app.services.query_service import Processor

logger = logging.getLogger(__name__)
router = APIRouter()

TYPING_TEXT = "Searching for information..."
PROCESSING_TEXT = "This might take a moment..."
ERROR_TEXT = "Error processing your message"

# Message handlers outlive their connection; keep references until they finish
_inflight: set[asyncio.Task] = set()


class ConnectionManager:
    """Broadcast groups keyed by session id."""

    def __init__(self) -> None:
        self.active: dict[str, list[WebSocket]] = {}

    async def connect(self, session_id: str, websocket: WebSocket) -> None:
        self.active.setdefault(session_id, []).append(websocket)
        logger.info("WS connect: session=%s members=%d", session_id, len(self.active[session_id]))

    def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        if session_id in self.active:
            self.active[session_id] = [ws for ws in self.active[session_id] if ws is not websocket]
            if not self.active[session_id]:
                del self.active[session_id]
        logger.info("WS disconnect: session=%s", session_id)

    async def send_personal(self, websocket: WebSocket, event: str, data: dict[str, Any]) -> None:
        try:
            await websocket.send_json({"event": event, "data": data})
        except Exception as e:
            # Closed sockets are expected after disconnect; the handler keeps running
            logger.debug("WS send failed event=%s: %s", event, e)

    async def broadcast(self, session_id: str, event: str, data: dict[str, Any]) -> None:
        for ws in self.active.get(session_id, [])[:]:
            await self.send_personal(ws, event, data)


manager = ConnectionManager()


class ProcessingNotice:
    """
    Deferred "still working" status bound to a cancellation token.

    cancel() marks the token, cancels the timer and waits for it to settle, so once
    it returns no `processing` status can be emitted any more.
    """

    def __init__(self, emit: Callable[[], Awaitable[None]], delay: float = PROCESSING_NOTICE_DELAY) -> None:
        self.emit = emit
        self.delay = delay
        self.cancelled = False
        self.fired = False
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        if self.cancelled:
            return
        self.fired = True
        await self.emit()

    async def cancel(self) -> None:
        self.cancelled = True
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        await asyncio.wait([self._task])


class ChatSessionHandler:
    """Per-connection orchestration of one user message through the pipeline."""

    def __init__(
        self,
        websocket: WebSocket,
        session_id: str,
        processor: Processor,
        store: SessionStore,
        connections: ConnectionManager = manager,
        notice_delay: float = PROCESSING_NOTICE_DELAY,
    ) -> None:
        self.websocket = websocket
        self.session_id = session_id
        self.processor = processor
        self.store = store
        self.connections = connections
        self.notice_delay = notice_delay

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        await self.connections.send_personal(self.websocket, event, data)

    async def emit_status(self, status_type: str, message: str | None = None) -> None:
        await self.emit("status", StatusEvent(type=status_type, message=message).model_dump(exclude_none=True))

    async def _persist(self, session_id: str, message: ChatMessage) -> None:
        try:
            await self.store.append_message(session_id, message)
        except Exception:
            logger.exception("[ws:persist] failed to store %s message session=%s", message.role, session_id)

    def _spawn_persist(self, session_id: str, message: ChatMessage) -> asyncio.Task:
        return asyncio.create_task(self._persist(session_id, message))

    async def handle_message(self, data: Any) -> None:
        pending: list[asyncio.Task] = []
        try:
            await self.emit_status("typing", TYPING_TEXT)
            payload = InboundMessage.model_validate(data)
            session_id = payload.sessionId or self.session_id
            logger.info("[ws:handle_message] IN  session=%s message=%r", session_id, payload.message)

            user_message = ChatMessage(role="user", content=payload.message)
            pending.append(self._spawn_persist(session_id, user_message))
            await self.connections.broadcast(session_id, "message", user_message.model_dump())

            notice = ProcessingNotice(lambda: self.emit_status("processing", PROCESSING_TEXT), self.notice_delay)
            notice.start()
            try:
                answer = await run_in_threadpool(self.processor.process_query, payload.message)
            finally:
                await notice.cancel()

            bot_message = ChatMessage(role="assistant", content=answer)
            pending.append(self._spawn_persist(session_id, bot_message))
            outbound = OutboundMessage(**bot_message.model_dump(), isComplete=True)
            await self.connections.broadcast(session_id, "message", outbound.model_dump(exclude_none=True))
            await self.emit_status("idle")
            logger.info("[ws:handle_message] OUT session=%s answer_len=%d slow=%s", session_id, len(answer), notice.fired)
        except ValidationError as e:
            logger.warning("[ws:handle_message] invalid payload: %s", e)
            await self.emit("error", {"message": ERROR_TEXT})
            await self.emit_status("idle")
        except Exception:
            logger.exception("[ws:handle_message] error processing message")
            await self.emit("error", {"message": ERROR_TEXT})
            await self.emit_status("idle")
        finally:
            if pending:
                await asyncio.gather(*pending)


def _spawn(coro: Awaitable[None]) -> asyncio.Task:
    task = asyncio.ensure_future(coro)
    _inflight.add(task)
    task.add_done_callback(_inflight.discard)
    return task


async def drain_inflight(timeout: float = SHUTDOWN_DRAIN_TIMEOUT) -> int:
    """Wait up to `timeout` seconds for running message tasks. Returns how many were still pending."""
    tasks = list(_inflight)
    if not tasks:
        return 0
    logger.info("[ws:drain] IN  inflight=%d timeout=%.1f", len(tasks), timeout)
    _, pending = await asyncio.wait(tasks, timeout=timeout)
    if pending:
        logger.warning("[ws:drain] %d message task(s) still running at shutdown", len(pending))
    return len(pending)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, session_id: str | None = Query(None, alias="sessionId")):
    await websocket.accept()
    session_id = session_id or str(uuid.uuid4())
    await manager.connect(session_id, websocket)
    await manager.send_personal(websocket, "session", {"sessionId": session_id})

    handler = ChatSessionHandler(
        websocket,
        session_id,
        processor=websocket.app.state.processor,
        store=websocket.app.state.session_store,
        notice_delay=getattr(websocket.app.state, "notice_delay", PROCESSING_NOTICE_DELAY),
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = message.get("text")
            try:
                if raw is None:
                    raise ValueError("binary frame")
                frame = json.loads(raw)
                event = frame.get("event")
                data = frame.get("data")
            except (ValueError, AttributeError):
                logger.warning("WS malformed frame session=%s: %r", session_id, (raw or message.get("bytes") or b"")[:200])
                await handler.emit("error", {"message": ERROR_TEXT})
                await handler.emit_status("idle")
                continue
            if event == "message":
                _spawn(handler.handle_message(data))
            else:
                logger.warning("WS unknown event=%r session=%s", event, session_id)
                await handler.emit("error", {"message": f"Unknown event: {event}"})
    except WebSocketDisconnect:
        logger.info("Client disconnected session=%s", session_id)
    finally:
        manager.disconnect(session_id, websocket)
