"""Runtime context holding the session registry and dispatch pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .dispatch import DispatchPipeline

if TYPE_CHECKING:
    from ..api.manager import SessionManager


@dataclass
class RuntimeContext:
    """
    Shared runtime objects owned by the application.

    Created in the server lifespan and stored on `app.state.runtime`; connection
    handlers reach it through their WebSocket's app.
    """

    sessions: "SessionManager"
    dispatch: DispatchPipeline
