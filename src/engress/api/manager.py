"""Session registry for live connections."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Dict, Optional

from ..audio.input.types import AudioFormat, SegmenterConfig
from ..core.session import EventSender, Session

logger = logging.getLogger("SessionManager")


class SessionManager:
    """
    Manages active sessions.
    Maps session_id to Session; owned by the running application.
    """

    def __init__(
        self,
        temp_dir: Path,
        segmenter_cfg: SegmenterConfig = SegmenterConfig(),
        audio_format: AudioFormat = AudioFormat(),
    ):
        self._sessions: Dict[str, Session] = {}
        self._temp_dir = temp_dir
        self._segmenter_cfg = segmenter_cfg
        self._audio_format = audio_format

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def __len__(self) -> int:
        return len(self._sessions)

    def prepare_temp_dir(self) -> None:
        """Create the temp directory and remove utterance files left by a previous run."""
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        stale = [p for p in self._temp_dir.glob("*-*.wav") if p.is_file()]
        for path in stale:
            path.unlink(missing_ok=True)
        if stale:
            logger.info(f"Removed {len(stale)} stale files from {self._temp_dir}")

    def get_session(self, session_id: str) -> Optional[Session]:
        """Retrieve a live session, or None once it has closed."""
        return self._sessions.get(session_id)

    def create_session(self, sender: EventSender) -> Session:
        """Create and register a session with a fresh id."""
        session_id = uuid.uuid4().hex
        session = Session(
            session_id=session_id,
            sender=sender,
            temp_dir=self._temp_dir,
            segmenter_cfg=self._segmenter_cfg,
            audio_format=self._audio_format,
        )
        self._sessions[session_id] = session
        logger.info(f"Created session: {session_id}")
        return session

    def close_session(self, session_id: str) -> None:
        """Unregister a session and delete its files."""
        session = self._sessions.pop(session_id, None)
        if session:
            duration_ms = session.close()
            logger.info(f"Closed session {session_id} after {duration_ms:.0f}ms")

    def close_all(self) -> None:
        """Close all active sessions."""
        ids = list(self._sessions.keys())
        for sid in ids:
            self.close_session(sid)
