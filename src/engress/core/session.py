"""Per-connection session state: topics, segmentation and the open utterance."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from ..audio.input.buffer import UtteranceBuffer
from ..audio.input.segmenter import SegmentAction, UtteranceSegmenter
from ..audio.input.types import AudioFormat, AudioFrame, SegmenterConfig
from .events import FinalizedUtterance, UtteranceEvent

logger = logging.getLogger("Session")

EventSender = Callable[[UtteranceEvent], Awaitable[None]]


class SessionState(Enum):
    AWAITING_TOPICS = auto()
    READY = auto()
    CLOSED = auto()


@dataclass
class ActiveUtterance:
    """The single open utterance of a session."""
    buffer: UtteranceBuffer
    began_at: int  # epoch milliseconds

    @property
    def path(self) -> Path:
        return self.buffer.path


class Session:
    """
    State of one live connection.

    Frames are handled strictly in arrival order by the connection's own task,
    so no locking is needed. At most one utterance is open at a time: a new
    buffer is only created when the `active` slot is empty.
    """

    def __init__(
        self,
        session_id: str,
        sender: EventSender,
        temp_dir: Path,
        segmenter_cfg: SegmenterConfig = SegmenterConfig(),
        audio_format: AudioFormat = AudioFormat(),
        clock: Callable[[], float] = time.time,
    ):
        self._id = session_id
        self._sender = sender
        self._temp_dir = temp_dir
        self._audio_format = audio_format
        self._clock = clock
        self._segmenter = UtteranceSegmenter(segmenter_cfg)
        self._topics: Tuple[str, ...] = ()
        self._state = SessionState.AWAITING_TOPICS
        self._active: Optional[ActiveUtterance] = None
        self.started_at = clock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def topics(self) -> Tuple[str, ...]:
        return self._topics

    @property
    def active(self) -> Optional[ActiveUtterance]:
        return self._active

    @property
    def speech_frames(self) -> int:
        return self._segmenter.speech_frames

    @property
    def silence_frames(self) -> int:
        return self._segmenter.silence_frames

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def set_topics(self, topics: Sequence[str]) -> bool:
        """Store the topic list once. Returns False if ignored."""
        if self._state is not SessionState.AWAITING_TOPICS:
            logger.info(f"Session {self._id}: topics already set, ignoring")
            return False
        if not topics:
            logger.warning(f"Session {self._id}: empty topic list, ignoring")
            return False
        self._topics = tuple(topics)
        self._state = SessionState.READY
        logger.info(f"Session {self._id}: {len(self._topics)} topics set, ready")
        return True

    def handle_audio(self, data: bytes) -> Optional[FinalizedUtterance]:
        """
        Feed one client frame through segmentation.

        Returns:
            The finished utterance when this frame closed one for dispatch,
            otherwise None.
        """
        if self._state is not SessionState.READY:
            logger.debug(f"Session {self._id}: dropping audio in state {self._state.name}")
            return None

        frame = AudioFrame.from_bytes(data)
        action = self._segmenter.process_frame(frame.pcm)

        if action is SegmentAction.EXTEND:
            if self._active is None:
                self._open_utterance()
            self._active.buffer.write(frame.data)
            return None

        if action is SegmentAction.FINALIZE:
            active = self._take_active()
            # Trailing silence gives the speech engine some context
            active.buffer.write(frame.data)
            path = active.buffer.close()
            logger.info(f"Session {self._id}: utterance {path.name} finalized")
            return FinalizedUtterance(
                session_id=self._id,
                path=path,
                began_at=active.began_at,
                topics=self._topics,
            )

        if action is SegmentAction.DISCARD:
            active = self._take_active()
            active.buffer.discard()
            logger.info(f"Session {self._id}: silence-dominated utterance discarded")

        return None

    def _open_utterance(self) -> None:
        began_at = self._now_ms()
        buffer = UtteranceBuffer.create(
            self._temp_dir, self._id, began_at, self._audio_format
        )
        self._active = ActiveUtterance(buffer=buffer, began_at=began_at)
        logger.info(f"Session {self._id}: utterance opened at {began_at}")

    def _take_active(self) -> ActiveUtterance:
        active = self._active
        if active is None:
            raise RuntimeError(f"Session {self._id}: segmenter closed an utterance that was never opened")
        self._active = None
        return active

    async def send(self, event: UtteranceEvent) -> None:
        await self._sender(event)

    def close(self) -> float:
        """
        Tear down the session and delete every file it created.

        Returns:
            Connection duration in milliseconds.
        """
        if self._active is not None:
            self._active.buffer.discard()
            self._active = None
        self._segmenter.reset()
        for path in self._temp_dir.glob(f"{self._id}-*"):
            path.unlink(missing_ok=True)
        self._state = SessionState.CLOSED
        return (self._clock() - self.started_at) * 1000.0
