from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Tuple


class EventKind(IntEnum):
    """Kinds of per-utterance events sent to the client."""
    TRANSCRIPT = 0
    VERDICT = 1


@dataclass(frozen=True)
class UtteranceEvent:
    """Transcript or verdict for one utterance, tagged with when it began."""
    kind: EventKind
    content: str
    began_at: int  # epoch milliseconds


@dataclass(frozen=True)
class FinalizedUtterance:
    """
    A closed utterance file waiting for dispatch.

    Refers to its session by id only, so a closed session can be dropped
    while its utterances are still being transcribed.
    """
    session_id: str
    path: Path
    began_at: int
    topics: Tuple[str, ...]
