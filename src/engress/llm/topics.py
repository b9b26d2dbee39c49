"""Topic-completion judging: prompt, model call and verdict validation."""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Optional, Sequence

from .llm import LLM

logger = logging.getLogger("TopicJudge")

# Verdict meaning "no topic was fully discussed".
NO_TOPICS = "!"

_VERDICT_RE = re.compile(r"^[\d\s!]+$")

# Async judging seam: (transcript, topics) -> raw verdict text.
Judge = Callable[[str, Sequence[str]], Awaitable[str]]


def validate_verdict(raw: Optional[str]) -> str:
    """
    Coerce raw model output to a verdict the client can trust.

    Output made only of digits, whitespace and "!" is kept, with whitespace
    collapsed to single spaces. Anything else, or nothing, becomes "!".
    """
    if not raw:
        return NO_TOPICS
    text = raw.strip()
    if not text or not _VERDICT_RE.match(text):
        return NO_TOPICS
    return " ".join(text.split())


def build_prompt(topics: Sequence[str]) -> str:
    numbered = "\n".join(f"{index}. {topic}" for index, topic in enumerate(topics, start=1))
    return f"""Evaluate a transcript from a presentation, provided in sequential chunks, to determine which topics are fully discussed according to given criteria.

- Identify any topic that meets all the criteria listed below as fully discussed:
  1. **Explicit Reference**: The topic is somewhat identified using relevant key terms, events, or ideas.
  2. **Coherent Discussion**: The topic is discussed in a clear, coherent sentence or phrase, without ambiguity.
  3. **Contextual Confirmation**: Consider minor transcription errors (e.g., homophones, slight misinterpretations) and use surrounding context to verify if the topic is referenced.
  4. **User Generation**: Keep in mind that topics are user generated, so their meanings may deviate slightly from their actual definition.

# Steps

1. Review each chunk in sequence to identify references to numbered topics.
2. For each reference, check if it meets the criteria for Explicit Reference, Coherent Discussion, and Contextual Confirmation.
3. Compile a list of numbers corresponding to topics that are fully discussed.
4. If no topic is fully covered, indicate with "{NO_TOPICS}".
5. Ensure no false positives; references and discussions must be clear and unmistakable.

# Output Format

- Return the numbers of all fully discussed topics separated by spaces.
- If no topic is fully covered, return only "{NO_TOPICS}" with no additional characters.
- Do not return anything other than numbers, spaces, or an exclamation mark.

# The Topics Numbered

{numbered}

# Notes

- Accuracy is crucial; avoid marking points unless all criteria are unequivocally met.
- Pay attention to the context to correct any minor transcription errors."""


class TopicJudge:
    """Asks the language model which topics a transcript fully covers."""

    def __init__(self, llm: LLM, tokens_per_topic: int = 2):
        self._llm = llm
        self._tokens_per_topic = tokens_per_topic

    async def __call__(self, transcript: str, topics: Sequence[str]) -> str:
        """Return the raw model output; callers validate it with validate_verdict."""
        messages = [
            {"role": "system", "content": build_prompt(topics)},
            {"role": "user", "content": transcript},
        ]
        raw = await self._llm.chat_completion_async(
            messages,
            max_tokens=max(1, len(topics) * self._tokens_per_topic),
        )
        logger.debug(f"Raw verdict: {raw!r}")
        return raw
