"""Intermediate representation dataclasses for tokens and subtitle segments.

WHY: Speech-recognition output arrives as an ordered list of timestamped
tokens (words or pre-grouped utterances). Every stage of the engine —
segmentation, timing repair, merging, splitting, confidence smoothing —
needs the same well-typed values to pass between them, so the stages can
be tested and reordered independently.

HOW: Frozen dataclasses form the contract:
  Token               — one ASR unit of text with timing and confidence
  Segment             — one subtitle entry with identity and metadata
  OptimizationOptions — switches and thresholds for the post-processing passes
The three input shapes the ASR collaborator can produce are modelled as a
tagged union (WordTokens, UtteranceTokens, FlatText) so callers dispatch on
type instead of probing for keys.

RULES:
- All times are in float seconds (the adapter converts from milliseconds)
- Confidence is in [0, 1]
- Tokens and segments are immutable; stages build new values with replace()
- Granularity selects the break heuristics, never the output type
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, List, Mapping, Union


class Granularity(str, Enum):
    """Shape of the tokens fed to the segmentation engine."""

    WORD = "word"
    UTTERANCE = "utterance"


@dataclass(frozen=True)
class Token:
    """A timestamped unit of text from the ASR collaborator.

    RULES:
    - end_seconds >= start_seconds (violations are rejected by the engine)
    - text may carry trailing punctuation; it is trimmed, not rewritten
    """

    text: str
    start_seconds: float
    end_seconds: float
    confidence: float


@dataclass(frozen=True)
class Segment:
    """One subtitle entry.

    WHY: This is the only output type of the engine. Storage, display and
    file exporters all consume it.

    RULES:
    - id is unique within a list; the pipeline driver reassigns it
    - confidence is pessimistic: the minimum of its constituent tokens
    - language and video_id are carried through every stage untouched
    """

    id: str
    text: str
    start_seconds: float
    end_seconds: float
    confidence: float
    language: str = ""
    video_id: str = ""

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "start_seconds": self.start_seconds,
            "end_seconds": self.end_seconds,
            "confidence": self.confidence,
            "language": self.language,
            "video_id": self.video_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Segment:
        """Parse a Segment from a serialized dict.

        RULES:
        - text, start_seconds and end_seconds are required
        - id defaults to "", confidence to 1.0, language/video_id to ""
        - Times and confidence must be finite JSON numbers (not booleans)

        Raises:
            ValueError: If data is not a mapping, a required field is
                missing, or a field has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Segment must be an object, got {}".format(type(data).__name__))

        return cls(
            id=_string_field(data, "id", ""),
            text=_string_field(data, "text"),
            start_seconds=_number_field(data, "start_seconds"),
            end_seconds=_number_field(data, "end_seconds"),
            confidence=_number_field(data, "confidence", 1.0),
            language=_string_field(data, "language", ""),
            video_id=_string_field(data, "video_id", ""),
        )


_MISSING = object()


def _string_field(data: Mapping[str, Any], key: str, default: Any = _MISSING) -> str:
    value = data.get(key, default)
    if value is _MISSING:
        raise ValueError("Segment is missing {!r}".format(key))
    if not isinstance(value, str):
        raise ValueError("Segment {!r} must be a string, got {!r}".format(key, value))
    return value


def _number_field(data: Mapping[str, Any], key: str, default: Any = _MISSING) -> float:
    value = data.get(key, default)
    if value is _MISSING:
        raise ValueError("Segment is missing {!r}".format(key))
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError("Segment {!r} must be a finite number, got {!r}".format(key, value))
    return float(value)


@dataclass(frozen=True)
class OptimizationOptions:
    """Switches and thresholds for the post-processing pipeline.

    RULES:
    - Every field is independent; min/max consistency is NOT validated
    - Character limits count characters of Segment.text
    - Durations are in seconds
    """

    merge_short_segments: bool = True
    split_long_segments: bool = True
    fix_timing: bool = True
    improve_confidence: bool = True
    max_segment_length_chars: int = 120
    min_segment_length_chars: int = 10
    max_segment_duration_secs: float = 8.0
    min_segment_duration_secs: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OptimizationOptions:
        """Build options from a partial mapping; absent keys keep defaults.

        Raises:
            ValueError: If the mapping contains an unrecognized key.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                "Unknown optimization option(s): {}. Available: {}".format(
                    ", ".join(unknown), ", ".join(sorted(known))
                )
            )
        return cls(**dict(data))


# ---------------------------------------------------------------------------
# Transcript input shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordTokens:
    """One token per spoken word."""

    tokens: List[Token] = field(default_factory=list)


@dataclass(frozen=True)
class UtteranceTokens:
    """Pre-grouped phrases, typically one per speaker turn."""

    tokens: List[Token] = field(default_factory=list)


@dataclass(frozen=True)
class FlatText:
    """A bare transcript string with no timing at all."""

    text: str = ""


TranscriptInput = Union[WordTokens, UtteranceTokens, FlatText]
