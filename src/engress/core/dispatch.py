"""Dispatch pipeline: utterance file -> transcript -> topic verdict -> client."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Set, Tuple

from ..audio.input.asr import Transcriber
from ..llm.topics import NO_TOPICS, Judge, validate_verdict
from .events import EventKind, FinalizedUtterance, UtteranceEvent
from .session import Session

logger = logging.getLogger("Dispatch")

# Character the speech engine emits for non-speech noise, e.g. "*music*".
HALLUCINATION_MARKER = "*"

_LETTER_RE = re.compile(r"[a-zA-Z]")

SessionLookup = Callable[[str], Optional[Session]]


@dataclass(frozen=True)
class DispatchConfig:
    """Bounds on external calls. None disables the bound."""
    transcription_timeout_s: Optional[float] = None
    inference_timeout_s: Optional[float] = None
    max_concurrent_transcriptions: Optional[int] = None


def accept_transcript(text: Optional[str]) -> bool:
    """A transcript is kept only if it has a letter and no hallucination marker."""
    if not text:
        return False
    if not _LETTER_RE.search(text):
        return False
    return HALLUCINATION_MARKER not in text


class DispatchPipeline:
    """
    Runs each finalized utterance through transcription and topic judging.

    Every utterance gets its own task, so frame handling never waits on the
    external engines and several utterances of one session may be in flight
    at once. Tasks carry only the session id; results for a session that has
    closed in the meantime are dropped.
    """

    def __init__(
        self,
        sessions: SessionLookup,
        transcriber: Transcriber,
        judge: Judge,
        cfg: DispatchConfig = DispatchConfig(),
    ):
        self._sessions = sessions
        self._transcriber = transcriber
        self._judge = judge
        self._cfg = cfg
        self._tasks: Set[asyncio.Task] = set()
        self._transcription_slots: Optional[asyncio.Semaphore] = None
        if cfg.max_concurrent_transcriptions:
            self._transcription_slots = asyncio.Semaphore(cfg.max_concurrent_transcriptions)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, utterance: FinalizedUtterance) -> asyncio.Task:
        """Start dispatching an utterance without waiting for it."""
        task = asyncio.create_task(
            self.process(utterance),
            name=f"dispatch-{utterance.session_id}-{utterance.began_at}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def process(self, utterance: FinalizedUtterance) -> None:
        transcript = await self._transcribe(utterance)
        if not accept_transcript(transcript):
            logger.info(f"Rejected transcript {transcript!r} for {utterance.path.name}")
            return

        logger.info(f"TRANSCRIBED [{utterance.session_id}@{utterance.began_at}]: {transcript}")
        await asyncio.gather(
            self._emit(utterance, UtteranceEvent(EventKind.TRANSCRIPT, transcript, utterance.began_at)),
            self._judge_and_emit(utterance, transcript),
        )

    async def _transcribe(self, utterance: FinalizedUtterance) -> Optional[str]:
        try:
            async with self._transcription_slots or contextlib.nullcontext():
                return await asyncio.wait_for(
                    asyncio.to_thread(self._transcriber, utterance.path),
                    timeout=self._cfg.transcription_timeout_s,
                )
        except asyncio.TimeoutError:
            logger.warning(
                f"Transcription of {utterance.path.name} timed out after {self._cfg.transcription_timeout_s}s"
            )
            return None
        except Exception as e:
            logger.error(f"Transcription of {utterance.path.name} failed: {e}")
            return None
        finally:
            utterance.path.unlink(missing_ok=True)

    async def _judge_and_emit(self, utterance: FinalizedUtterance, transcript: str) -> None:
        verdict = await self._verdict(transcript, utterance.topics)
        logger.info(f"RESPONSE [{utterance.session_id}@{utterance.began_at}]: {verdict}")
        await self._emit(utterance, UtteranceEvent(EventKind.VERDICT, verdict, utterance.began_at))

    async def _verdict(self, transcript: str, topics: Tuple[str, ...]) -> str:
        try:
            raw = await asyncio.wait_for(
                self._judge(transcript, topics),
                timeout=self._cfg.inference_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Topic judging timed out after {self._cfg.inference_timeout_s}s")
            return NO_TOPICS
        except Exception as e:
            logger.error(f"Topic judging failed: {e}")
            return NO_TOPICS

        verdict = validate_verdict(raw)
        if verdict == NO_TOPICS and (raw or "").strip() != NO_TOPICS:
            logger.warning(f"Malformed verdict {raw!r} coerced to {NO_TOPICS!r}")
        return verdict

    async def _emit(self, utterance: FinalizedUtterance, event: UtteranceEvent) -> None:
        session = self._sessions(utterance.session_id)
        if session is None:
            logger.debug(f"Session {utterance.session_id} closed, dropping {event.kind.name.lower()}")
            return
        try:
            await session.send(event)
        except Exception as e:
            logger.warning(f"Failed to send {event.kind.name.lower()} to {utterance.session_id}: {e}")

    async def shutdown(self) -> None:
        """Cancel outstanding dispatches."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Dispatch pipeline stopped ({len(tasks)} cancelled)")
