"""ASR (Automatic Speech Recognition) using faster-whisper."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from faster_whisper import WhisperModel

logger = logging.getLogger("ASR")

# Reduce noise from faster-whisper
logging.getLogger("faster_whisper").setLevel(logging.WARNING)

# Blocking transcription seam: utterance WAV file -> text.
Transcriber = Callable[[Path], str]


class ASR:
    """
    Automatic Speech Recognition using faster-whisper.

    Transcribes finished utterance files. The model is loaded once and cached
    by Hugging Face. Segmentation happens upstream, so the built-in VAD filter
    is off.
    """

    def __init__(
        self,
        model_size: str = "base",
        device: str = "cpu",
        compute_type: str = "default",
        language: Optional[str] = "en",
    ):
        logger.info("Loading ASR model: %s (device=%s)", model_size, device)
        self._model = WhisperModel(
            model_size,
            device=device,
            compute_type=compute_type,
        )
        self._model_size = model_size
        self._language = language

    def transcribe(self, path: Path) -> str:
        """
        Transcribe one utterance file.

        Args:
            path: Mono 16-bit WAV file.

        Returns:
            Transcript with segments joined by spaces, possibly empty.
        """
        started_at = time.time()
        logger.info("ASR started at %.3f for %s", started_at, path.name)

        segments, _info = self._model.transcribe(
            str(path),
            language=self._language,
            vad_filter=False,
            condition_on_previous_text=False,
            log_progress=False,
        )
        text = " ".join(s.text.strip() for s in segments).strip()

        ended_at = time.time()
        logger.info("ASR ended at %.3f, duration_s=%.3f", ended_at, ended_at - started_at)
        return text
