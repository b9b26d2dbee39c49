"""Utterance segmentation using a peak-amplitude gate and frame-count endpointing."""

from __future__ import annotations

import logging
from enum import Enum, auto

import numpy as np

from .types import SegmenterConfig

logger = logging.getLogger("Segmenter")


class SegmentAction(Enum):
    """What the caller must do with the frame it just handed to the segmenter."""
    NOOP = auto()        # Silence, nothing open
    EXTEND = auto()      # Speech: open the buffer if needed and write the frame
    ACCUMULATE = auto()  # Silence inside an utterance, keep the buffer open
    FINALIZE = auto()    # Write the frame, close the buffer and dispatch it
    DISCARD = auto()     # Silence-dominated segment, delete the buffer


def peak_amplitude(pcm: np.ndarray) -> float:
    """Peak absolute amplitude of normalized samples (0.0 for an empty frame)."""
    if pcm.size == 0:
        return 0.0
    return float(np.max(np.abs(pcm)))


def is_speech(pcm: np.ndarray, threshold: float) -> bool:
    """A frame is speech iff its peak is strictly above the threshold."""
    return peak_amplitude(pcm) > threshold


class UtteranceSegmenter:
    """
    Per-session speech/silence run-length tracker.

    Classifies each frame with a peak gate and decides utterance boundaries
    from the number of speech frames seen since the utterance opened and the
    number of consecutive silent frames since the last speech frame. Short
    utterances need more trailing silence before they close than established
    ones, and a long enough silence run always closes the utterance.

    Holds no audio and does no I/O; the session applies the returned actions
    to its utterance buffer.
    """

    def __init__(self, cfg: SegmenterConfig = SegmenterConfig()):
        self._cfg = cfg
        self._in_utterance = False
        self._speech_frames = 0
        self._silence_frames = 0

    @property
    def in_utterance(self) -> bool:
        return self._in_utterance

    @property
    def speech_frames(self) -> int:
        return self._speech_frames

    @property
    def silence_frames(self) -> int:
        return self._silence_frames

    def process_frame(self, pcm: np.ndarray) -> SegmentAction:
        """
        Classify one frame and advance the run-length state.

        Args:
            pcm: Normalized float32 mono samples of one frame.

        Returns:
            The action the caller must apply to the utterance buffer.
        """
        peak = peak_amplitude(pcm)

        if peak > self._cfg.speech_threshold:
            logger.debug("Speech frame, peak=%.3f", peak)
            if not self._in_utterance:
                self._in_utterance = True
                self._speech_frames = 0
            self._speech_frames += 1
            self._silence_frames = 0
            return SegmentAction.EXTEND

        logger.debug("Silence frame, peak=%.3f", peak)
        if not self._in_utterance:
            return SegmentAction.NOOP

        self._silence_frames += 1
        if not self._utterance_ended():
            return SegmentAction.ACCUMULATE

        if self._silence_frames >= self._speech_frames * self._cfg.discard_ratio:
            action = SegmentAction.DISCARD
        else:
            action = SegmentAction.FINALIZE

        logger.info(
            "Utterance ended (%s): speech_frames=%d, silence_frames=%d",
            action.name,
            self._speech_frames,
            self._silence_frames,
        )
        self.reset()
        return action

    def _utterance_ended(self) -> bool:
        if self._silence_frames >= self._cfg.max_silence_frames:
            return True
        if self._speech_frames < self._cfg.min_speech_frames:
            return self._silence_frames >= self._cfg.short_silence_frames
        return self._silence_frames >= self._cfg.long_silence_frames

    def reset(self) -> None:
        """Forget the current utterance, if any."""
        self._in_utterance = False
        self._speech_frames = 0
        self._silence_frames = 0
