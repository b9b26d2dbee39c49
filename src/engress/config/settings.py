import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import logging

from ..audio.input.types import AudioFormat, SegmenterConfig
from ..core.dispatch import DispatchConfig

logger = logging.getLogger(__name__)

class EngressConfig(BaseModel):
    llm_api_key: str = Field(..., min_length=1, description="API key for the topic-judging language model")
    llm_model: str = Field(default="gpt-3.5-turbo", description="LLM model to use")
    llm_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible API base URL")
    whisper_model_size: str = Field(default="base", description="Whisper model size (tiny, base, small, medium, large-v3)")
    whisper_device: str = Field(default="cpu", description="Device for faster-whisper (cpu, cuda, auto)")
    whisper_compute_type: str = Field(default="default", description="faster-whisper compute type")
    whisper_language: Optional[str] = Field(default="en", description="Transcription language, None to auto-detect")
    sample_rate: int = Field(default=16000, gt=0, description="Sample rate of client PCM frames")
    temp_dir: str = Field(default="temp", description="Directory for in-progress utterance files")
    speech_threshold: float = Field(default=0.1, ge=0.0, le=1.0, description="Peak amplitude above which a frame is speech")
    min_speech_frames: int = Field(default=2, ge=1, description="Speech frames before an utterance counts as established")
    short_silence_frames: int = Field(default=5, ge=1, description="Silent frames that end a short utterance")
    long_silence_frames: int = Field(default=1, ge=1, description="Silent frames that end an established utterance")
    max_silence_frames: int = Field(default=10, ge=1, description="Silent frames that end any utterance")
    discard_ratio: int = Field(default=10, ge=1, description="Silence/speech frame ratio at which an utterance is discarded")
    transcription_timeout_s: Optional[float] = Field(default=None, gt=0, description="Timeout per transcription call")
    inference_timeout_s: Optional[float] = Field(default=None, gt=0, description="Timeout per topic-judging call")
    max_concurrent_transcriptions: Optional[int] = Field(default=None, ge=1, description="Cap on parallel transcriptions")
    log_level: str = Field(default="INFO", description="Logging level")

    def audio_format(self) -> AudioFormat:
        return AudioFormat(sample_rate=self.sample_rate)

    def segmenter_config(self) -> SegmenterConfig:
        return SegmenterConfig(
            speech_threshold=self.speech_threshold,
            min_speech_frames=self.min_speech_frames,
            short_silence_frames=self.short_silence_frames,
            long_silence_frames=self.long_silence_frames,
            max_silence_frames=self.max_silence_frames,
            discard_ratio=self.discard_ratio,
        )

    def dispatch_config(self) -> DispatchConfig:
        return DispatchConfig(
            transcription_timeout_s=self.transcription_timeout_s,
            inference_timeout_s=self.inference_timeout_s,
            max_concurrent_transcriptions=self.max_concurrent_transcriptions,
        )

def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None

def load_config(config_path: Optional[Path] = None) -> EngressConfig:
    if config_path is None:
        config_path = Path(".env")

    if config_path.exists():
        load_dotenv(config_path)
        logger.info(f"Loaded environment variables from {config_path}")
    else:
        logger.warning(f"Config file {config_path} not found, using environment variables only")

    try:
        transcription_timeout = _optional_env("TRANSCRIPTION_TIMEOUT_S")
        inference_timeout = _optional_env("INFERENCE_TIMEOUT_S")
        max_transcriptions = _optional_env("MAX_CONCURRENT_TRANSCRIPTIONS")

        config = EngressConfig(
            llm_api_key=os.getenv("LLM_API_KEY", ""),
            llm_model=os.getenv("LLM_MODEL", "gpt-3.5-turbo"),
            llm_base_url=os.getenv("LLM_BASE_URL", "https://api.openai.com/v1"),
            whisper_model_size=os.getenv("WHISPER_MODEL_SIZE", "base"),
            whisper_device=os.getenv("WHISPER_DEVICE", "cpu"),
            whisper_compute_type=os.getenv("WHISPER_COMPUTE_TYPE", "default"),
            whisper_language=os.getenv("WHISPER_LANGUAGE", "en") or None,
            sample_rate=int(os.getenv("SAMPLE_RATE", "16000")),
            temp_dir=os.getenv("TEMP_DIR", "temp"),
            speech_threshold=float(os.getenv("SPEECH_THRESHOLD", "0.1")),
            min_speech_frames=int(os.getenv("MIN_SPEECH_FRAMES", "2")),
            short_silence_frames=int(os.getenv("SHORT_SILENCE_FRAMES", "5")),
            long_silence_frames=int(os.getenv("LONG_SILENCE_FRAMES", "1")),
            max_silence_frames=int(os.getenv("MAX_SILENCE_FRAMES", "10")),
            discard_ratio=int(os.getenv("DISCARD_RATIO", "10")),
            transcription_timeout_s=float(transcription_timeout) if transcription_timeout else None,
            inference_timeout_s=float(inference_timeout) if inference_timeout else None,
            max_concurrent_transcriptions=int(max_transcriptions) if max_transcriptions else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

        if not config.llm_api_key:
            raise ValueError("LLM_API_KEY is required but not set")

        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def create_example_env_file(path: Path = Path(".env.example")):
    example_content = """# LLM API Key - Get from your LLM provider (OpenAI or any OpenAI-compatible API)
LLM_API_KEY=your_api_key_here

# LLM Configuration
LLM_MODEL=gpt-3.5-turbo
LLM_BASE_URL=https://api.openai.com/v1

# Whisper model size: tiny, base, small, medium, large-v3
WHISPER_MODEL_SIZE=base
WHISPER_DEVICE=cpu
WHISPER_COMPUTE_TYPE=default
# Leave empty to auto-detect the language
WHISPER_LANGUAGE=en

# Client audio format and utterance file directory
SAMPLE_RATE=16000
TEMP_DIR=temp

# Segmentation (frame counts are in client frames, ~1s each)
SPEECH_THRESHOLD=0.1
MIN_SPEECH_FRAMES=2
SHORT_SILENCE_FRAMES=5
LONG_SILENCE_FRAMES=1
MAX_SILENCE_FRAMES=10
DISCARD_RATIO=10

# Bounds on external calls (leave empty for none)
TRANSCRIPTION_TIMEOUT_S=
INFERENCE_TIMEOUT_S=
MAX_CONCURRENT_TRANSCRIPTIONS=

# Logging level
LOG_LEVEL=INFO
"""

    with open(path, "w") as f:
        f.write(example_content)

    logger.info(f"Created example environment file at {path}")

def setup_logging(log_level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
