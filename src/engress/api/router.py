"""WebSocket router for real-time topic tracking."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

from ..core.events import UtteranceEvent
from ..core.runtime import RuntimeContext
from ..core.session import Session, SessionState
from .schemas import READY_SIGNAL, decode_text_audio, encode_event, parse_topics

logger = logging.getLogger("ApiRouter")

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    runtime: RuntimeContext = request.app.state.runtime
    return {"status": "ok", "sessions": len(runtime.sessions)}


@router.websocket("/")
@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    runtime: RuntimeContext = websocket.app.state.runtime
    await websocket.accept()

    async def send_event(event: UtteranceEvent) -> None:
        await websocket.send_text(encode_event(event))

    session = runtime.sessions.create_session(send_event)
    logger.info(f"WebSocket connected: {session.id}")

    try:
        while True:
            # Text (topics or base64 audio) or bytes (raw audio)
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected: {session.id}")
                break
            await _handle_message(websocket, runtime, session, message)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {session.id}")
    except Exception as e:
        logger.error(f"WebSocket error in {session.id}: {e}", exc_info=True)
    finally:
        runtime.sessions.close_session(session.id)


async def _handle_message(
    websocket: WebSocket,
    runtime: RuntimeContext,
    session: Session,
    message: Dict[str, Any],
) -> None:
    text = message.get("text")
    data = message.get("bytes")

    if session.state is SessionState.AWAITING_TOPICS:
        if text is None:
            logger.debug(f"Session {session.id}: binary frame before topics, dropped")
            return
        topics = parse_topics(text)
        if topics is None:
            logger.warning(f"Session {session.id}: malformed topic list ignored")
            return
        if session.set_topics(topics):
            await websocket.send_text(READY_SIGNAL)
        return

    if data is None:
        data = decode_text_audio(text or "")
        if data is None:
            logger.debug(f"Session {session.id}: non-audio text message ignored")
            return

    utterance = session.handle_audio(data)
    if utterance is not None:
        runtime.dispatch.submit(utterance)
