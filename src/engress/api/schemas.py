"""WebSocket wire format for Client/Server communication."""

from __future__ import annotations

import base64
import binascii
import json
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from ..core.events import UtteranceEvent

# Server -> client: topics accepted, audio may start streaming.
READY_SIGNAL = "READY"

_TOPICS_ADAPTER = TypeAdapter(List[str])


def parse_topics(text: str) -> Optional[Tuple[str, ...]]:
    """Parse the first control message: a non-empty JSON array of strings."""
    try:
        topics = _TOPICS_ADAPTER.validate_json(text)
    except ValidationError:
        return None
    if not topics:
        return None
    return tuple(topics)


def decode_text_audio(text: str) -> Optional[bytes]:
    """Decode a base64 audio frame sent as a text message."""
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None
    return data or None


def encode_event(event: UtteranceEvent) -> str:
    """Serialize an event as the `[kind, content, began_at]` tuple."""
    return json.dumps([int(event.kind), event.content, event.began_at])
