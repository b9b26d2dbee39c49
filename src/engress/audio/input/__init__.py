"""Audio input subsystem - decodes client frames, segments and buffers utterances."""

from .types import AudioFormat, AudioFrame, SegmenterConfig
from .segmenter import SegmentAction, UtteranceSegmenter, is_speech, peak_amplitude
from .buffer import UtteranceBuffer

__all__ = [
    "AudioFormat",
    "AudioFrame",
    "SegmenterConfig",
    "SegmentAction",
    "UtteranceSegmenter",
    "UtteranceBuffer",
    "is_speech",
    "peak_amplitude",
]
