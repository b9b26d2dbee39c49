"""On-disk WAV buffer for a single utterance."""

from __future__ import annotations

import logging
import wave
from pathlib import Path

from .types import AudioFormat

logger = logging.getLogger("UtteranceBuffer")


class UtteranceBuffer:
    """
    Streams PCM frames of one utterance into a WAV file.

    The buffer is closed exactly once: either `close()` (the file is kept and
    handed to transcription) or `discard()` (the file is deleted).
    """

    def __init__(self, path: Path, audio_format: AudioFormat = AudioFormat()):
        self._path = path
        self._wave = wave.open(str(path), "wb")
        self._wave.setnchannels(audio_format.channels)
        self._wave.setsampwidth(audio_format.sample_width)
        self._wave.setframerate(audio_format.sample_rate)
        self._frames_written = 0
        self._closed = False

    @classmethod
    def create(
        cls,
        temp_dir: Path,
        session_id: str,
        created_at_ms: int,
        audio_format: AudioFormat = AudioFormat(),
    ) -> "UtteranceBuffer":
        """Open a buffer named `<session_id>-<created_at_ms>.wav` inside temp_dir."""
        stamp = created_at_ms
        path = temp_dir / f"{session_id}-{stamp}.wav"
        while path.exists():
            stamp += 1
            path = temp_dir / f"{session_id}-{stamp}.wav"
        logger.debug(f"Opening utterance buffer {path}")
        return cls(path, audio_format)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def frames_written(self) -> int:
        return self._frames_written

    def write(self, data: bytes) -> None:
        """Append one frame of int16 PCM."""
        if self._closed:
            raise RuntimeError(f"Utterance buffer {self._path} is already closed")
        self._wave.writeframes(data[: len(data) - len(data) % 2])
        self._frames_written += 1

    def close(self) -> Path:
        """Flush the WAV header and return the finished file."""
        if not self._closed:
            self._wave.close()
            self._closed = True
        return self._path

    def discard(self) -> None:
        """Close the file if still open and delete it."""
        if not self._closed:
            self._wave.close()
            self._closed = True
        self._path.unlink(missing_ok=True)
        logger.debug(f"Discarded utterance buffer {self._path}")
