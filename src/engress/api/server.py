"""Main API Server application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..audio.input.asr import ASR, Transcriber
from ..config.settings import EngressConfig
from ..core.dispatch import DispatchPipeline
from ..core.runtime import RuntimeContext
from ..llm.llm import LLM
from ..llm.topics import Judge, TopicJudge
from .manager import SessionManager
from .router import router

logger = logging.getLogger("ApiServer")


def _build_transcriber(config: EngressConfig) -> Transcriber:
    asr = ASR(
        model_size=config.whisper_model_size,
        device=config.whisper_device,
        compute_type=config.whisper_compute_type,
        language=config.whisper_language,
    )
    return asr.transcribe


async def _build_judge(config: EngressConfig) -> Judge:
    llm = LLM(api_key=config.llm_api_key, model=config.llm_model, base_url=config.llm_base_url)
    if not await llm.check_connection():
        logger.warning(f"LLM at {config.llm_base_url} is unreachable, verdicts will be \"!\" until it recovers")
    return TopicJudge(llm)


def create_app(
    config: EngressConfig,
    transcriber: Optional[Transcriber] = None,
    judge: Optional[Judge] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    The speech engine and topic judge are created from config at startup
    unless injected (tests pass fakes).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("API Server starting up")
        sessions = SessionManager(
            temp_dir=Path(config.temp_dir),
            segmenter_cfg=config.segmenter_config(),
            audio_format=config.audio_format(),
        )
        sessions.prepare_temp_dir()
        dispatch = DispatchPipeline(
            sessions=sessions.get_session,
            transcriber=transcriber or _build_transcriber(config),
            judge=judge or await _build_judge(config),
            cfg=config.dispatch_config(),
        )
        app.state.runtime = RuntimeContext(sessions=sessions, dispatch=dispatch)
        yield
        # Shutdown
        logger.info("API Server shutting down")
        await dispatch.shutdown()
        sessions.close_all()

    app = FastAPI(
        title="Engress Topic Tracking API",
        version=__version__,
        lifespan=lifespan
    )

    app.include_router(router)
    return app
