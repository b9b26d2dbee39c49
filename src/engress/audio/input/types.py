"""Audio input subsystem data types and configuration."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class AudioFormat:
    """Audio format of client frames and utterance files."""
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2  # bytes per sample, signed 16-bit little-endian


@dataclass(frozen=True)
class SegmenterConfig:
    """
    Utterance segmentation (peak gate + endpointing) configuration.

    Frame counts are in client frames (roughly one second each).
    """
    speech_threshold: float = 0.1
    min_speech_frames: int = 2
    short_silence_frames: int = 5
    long_silence_frames: int = 1
    max_silence_frames: int = 10
    # Discard needs short_silence_frames and max_silence_frames >= discard_ratio
    discard_ratio: int = 10


@dataclass(frozen=True)
class AudioFrame:
    """One decoded client audio chunk."""
    data: bytes  # whole int16 samples only
    pcm: np.ndarray  # float32 normalized to [-1, 1]

    @classmethod
    def from_bytes(cls, data: bytes) -> "AudioFrame":
        """Decode little-endian int16 PCM, dropping a trailing odd byte."""
        data = data[: len(data) - len(data) % 2]
        pcm = np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0
        return cls(data=data, pcm=pcm)
