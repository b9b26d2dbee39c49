"""Audio subsystem - frame decoding, segmentation and utterance capture."""

from .input import (
    AudioFormat,
    AudioFrame,
    SegmenterConfig,
    SegmentAction,
    UtteranceBuffer,
    UtteranceSegmenter,
)

__all__ = [
    "AudioFormat",
    "AudioFrame",
    "SegmenterConfig",
    "SegmentAction",
    "UtteranceBuffer",
    "UtteranceSegmenter",
]
