"""Adapter: ASR transcript response to segmentation engine input.

WHY: ASR providers return loosely typed JSON — utterances, words, or just
a text blob — with millisecond timestamps. The engine wants one of three
typed inputs with float seconds. This adapter is the only place that
knows the provider's shape and the only place that converts units.

HOW: AsrEntry.from_dict parses each utterance or word entry; malformed
entries are skipped rather than failing the whole transcript.
AsrResponse.from_dict gathers the arrays, and to_transcript_input()
picks the richest shape present:
  1. non-empty "utterances" → UtteranceTokens
  2. non-empty "words"      → WordTokens
  3. otherwise "text"       → FlatText (possibly empty)

RULES:
- Timestamps: ms → seconds (start / 1000.0, end / 1000.0)
- Missing confidence defaults to 0.9; confidence is clamped into [0, 1]
- Entries that are not objects, or lack text/start/end, are dropped
- Non-finite numbers ("nan", "inf") count as missing
- Keys other than text/start/end/confidence (speaker, channel, ...) are ignored
- An empty array counts as absent, so the next shape is tried
- Never raises for malformed payloads; the worst case is FlatText("")
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from subtitle_segmenter.core.ir import (
    FlatText,
    Token,
    TranscriptInput,
    UtteranceTokens,
    WordTokens,
)
from subtitle_segmenter.core.thresholds import DEFAULT_TOKEN_CONFIDENCE

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    # "nan" and "inf" parse as floats but defeat every ordering check
    return number if math.isfinite(number) else None


@dataclass
class AsrEntry:
    """One word or utterance entry from the ASR response.

    RULES:
    - text: raw entry text (trimming happens in the engine)
    - start_ms / end_ms: milliseconds from the start of the media
    - confidence: 0.0–1.0
    """

    text: str
    start_ms: float
    end_ms: float
    confidence: float = DEFAULT_TOKEN_CONFIDENCE

    @classmethod
    def from_dict(cls, data: Any) -> Optional[AsrEntry]:
        """Parse an entry, or return None if it is unusable."""
        if not isinstance(data, Mapping):
            return None

        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            return None

        start = _to_number(data.get("start"))
        end = _to_number(data.get("end"))
        if start is None or end is None:
            return None

        confidence = _to_number(data.get("confidence"))
        if confidence is None:
            confidence = DEFAULT_TOKEN_CONFIDENCE

        return cls(
            text=text,
            start_ms=start,
            end_ms=end,
            confidence=min(1.0, max(0.0, confidence)),
        )

    def to_token(self) -> Token:
        return Token(
            text=self.text,
            start_seconds=self.start_ms / 1000.0,
            end_seconds=self.end_ms / 1000.0,
            confidence=self.confidence,
        )


def _parse_entries(raw: Any) -> List[AsrEntry]:
    if not isinstance(raw, list):
        return []
    entries = [AsrEntry.from_dict(item) for item in raw]
    parsed = [e for e in entries if e is not None]
    if len(parsed) < len(raw):
        logger.debug("Dropped %d malformed ASR entries", len(raw) - len(parsed))
    return parsed


@dataclass
class AsrResponse:
    """The parts of an ASR transcript response the engine can use."""

    utterances: List[AsrEntry] = field(default_factory=list)
    words: List[AsrEntry] = field(default_factory=list)
    text: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> AsrResponse:
        """Parse a response payload; anything that is not an object is empty."""
        if not isinstance(data, Mapping):
            return cls()
        text = data.get("text")
        return cls(
            utterances=_parse_entries(data.get("utterances")),
            words=_parse_entries(data.get("words")),
            text=text if isinstance(text, str) else "",
        )

    def to_transcript_input(self) -> TranscriptInput:
        if self.utterances:
            return UtteranceTokens(tokens=[e.to_token() for e in self.utterances])
        if self.words:
            return WordTokens(tokens=[e.to_token() for e in self.words])
        return FlatText(text=self.text)


def response_to_input(data: Any) -> TranscriptInput:
    """Convert a raw ASR response payload into a tagged engine input.

    Args:
        data: Parsed JSON of the provider's transcript response.

    Returns:
        UtteranceTokens, WordTokens or FlatText, in that order of preference.
    """
    return AsrResponse.from_dict(data).to_transcript_input()
