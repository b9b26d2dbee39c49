"""Tests for ASR (Automatic Speech Recognition)."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from engress.audio.input.asr import ASR


def mock_model(segments):
    info = MagicMock(language="en", language_probability=0.95)
    return MagicMock(transcribe=MagicMock(return_value=(iter(segments), info)))


class TestASR:
    """Unit tests for ASR with mocked faster-whisper."""

    @pytest.fixture
    def mock_whisper_model(self):
        """Mock WhisperModel: transcribe returns (segments_iter, info)."""
        segments = [MagicMock(text=" hello ", start=0.0, end=0.5)]
        with patch(
            "engress.audio.input.asr.WhisperModel",
            return_value=mock_model(segments),
        ) as mock_cls:
            yield mock_cls

    def test_model_loaded_with_config(self, mock_whisper_model):
        ASR(model_size="small", device="cuda", compute_type="float16")
        mock_whisper_model.assert_called_once_with("small", device="cuda", compute_type="float16")

    def test_transcribe_returns_text(self, mock_whisper_model):
        asr = ASR(model_size="base", device="cpu")
        assert asr.transcribe(Path("temp/s-1.wav")) == "hello"

    def test_transcribe_passes_file_and_language(self, mock_whisper_model):
        asr = ASR(language="en")
        asr.transcribe(Path("temp/s-1.wav"))

        model = mock_whisper_model.return_value
        args, kwargs = model.transcribe.call_args
        assert args[0] == str(Path("temp/s-1.wav"))
        assert kwargs == {
            "language": "en",
            "vad_filter": False,
            "condition_on_previous_text": False,
            "log_progress": False,
        }

    def test_declared_engine_version_supports_transcribe_kwargs(self):
        """log_progress was added to WhisperModel.transcribe in faster-whisper 1.1."""
        pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
        assert '"faster-whisper>=1.1"' in pyproject.read_text()

    def test_transcribe_strips_and_joins_segments(self):
        """Multiple segments are joined with space and stripped."""
        seg1 = MagicMock(text=" foo ", start=0.0, end=0.2)
        seg2 = MagicMock(text=" bar ", start=0.2, end=0.5)
        with patch("engress.audio.input.asr.WhisperModel", return_value=mock_model([seg1, seg2])):
            asr = ASR(model_size="base", device="cpu")
            text = asr.transcribe(Path("temp/s-1.wav"))
        assert text == "foo bar"

    def test_transcribe_no_segments_returns_empty(self):
        with patch("engress.audio.input.asr.WhisperModel", return_value=mock_model([])):
            asr = ASR()
            assert asr.transcribe(Path("temp/s-1.wav")) == ""

    def test_noise_markers_are_not_removed(self):
        """Filtering noise markers belongs to dispatch, not the engine wrapper."""
        segments = [MagicMock(text=" *music* ", start=0.0, end=0.5)]
        with patch("engress.audio.input.asr.WhisperModel", return_value=mock_model(segments)):
            asr = ASR()
            assert asr.transcribe(Path("temp/s-1.wav")) == "*music*"
