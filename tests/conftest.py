"""Shared test fixtures for the subtitle_segmenter test suite.

WHY: Several test modules need the same small, hand-checked transcripts:
the two-sentence word stream, its millisecond ASR response, and an
utterance response. Centralizing them keeps every module testing against
the same numbers.

HOW: Pytest fixtures provide engine tokens, raw ASR payloads, a segment
factory, and an autouse fixture that clears SUBTITLE_* overrides so a
developer's .env never changes test outcomes.

RULES:
- Token timing in WORD_TOKENS matches the ms payload in WORD_RESPONSE / 1000
- Expected segment boundaries are written out in the tests, not derived
"""

from pathlib import Path
from typing import Any, Dict, List

import pytest

from subtitle_segmenter.config import OPTION_ENV_VARS
from subtitle_segmenter.core.ir import Segment, Token

SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent / "subtitle_segmenter" / "schemas" / "segments.schema.json"
)


# ---------------------------------------------------------------------------
# Two sentences separated by a 2.1s pause
# ---------------------------------------------------------------------------

WORD_TOKENS: List[Token] = [
    Token("Hello",     0.0, 0.4, 0.95),
    Token("world.",    0.4, 0.9, 0.92),
    Token("Next",      3.0, 3.3, 0.90),
    Token("sentence.", 3.3, 3.8, 0.88),
]

WORD_RESPONSE: Dict[str, Any] = {
    "text": "Hello world. Next sentence.",
    "words": [
        {"text": "Hello",     "start": 0,    "end": 400,  "confidence": 0.95},
        {"text": "world.",    "start": 400,  "end": 900,  "confidence": 0.92},
        {"text": "Next",      "start": 3000, "end": 3300, "confidence": 0.90},
        {"text": "sentence.", "start": 3300, "end": 3800, "confidence": 0.88},
    ],
}

UTTERANCE_RESPONSE: Dict[str, Any] = {
    "text": "Good morning everyone. Today we look at tides and why they matter.",
    "utterances": [
        {"text": "Good morning everyone.", "start": 500, "end": 2100,
         "confidence": 0.93, "speaker": "A"},
        {"text": "Today we look at tides", "start": 2300, "end": 4000,
         "confidence": 0.81, "speaker": "A"},
        {"text": "and why they matter.", "start": 4100, "end": 5600,
         "confidence": 0.88, "speaker": "A"},
    ],
    "words": [
        {"text": "ignored", "start": 0, "end": 100, "confidence": 0.5},
    ],
}


@pytest.fixture(autouse=True)
def _clear_option_env(monkeypatch):
    """Remove SUBTITLE_* overrides so defaults are the dataclass defaults."""
    for name in OPTION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def word_tokens():
    return list(WORD_TOKENS)


@pytest.fixture
def word_response():
    return dict(WORD_RESPONSE)


@pytest.fixture
def utterance_response():
    return dict(UTTERANCE_RESPONSE)


@pytest.fixture
def segments_schema():
    import json

    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def make_segment(
    text: str,
    start: float,
    end: float,
    confidence: float = 0.9,
    id: str = "seg",
) -> Segment:
    """Build a Segment with test defaults for language and video id."""
    return Segment(
        id=id,
        text=text,
        start_seconds=start,
        end_seconds=end,
        confidence=confidence,
        language="en",
        video_id="vid",
    )
