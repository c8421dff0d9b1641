"""Numeric thresholds and punctuation classes for the segmentation heuristics.

WHY: Every boundary decision the engine makes is driven by a small, fixed
set of numbers — pause lengths, word counts, character caps. Keeping them
as named constants in one place makes the heuristics auditable and lets
tests exercise each rule at its exact edge.

HOW: Plain module-level constants, grouped by the stage that reads them.
The user-tunable limits live on OptimizationOptions instead; these are the
engine's fixed rules.

RULES:
- All durations are in seconds
- Gap comparisons are strict (">" / "<"), never inclusive
- Never mutate these at runtime; pass different OptimizationOptions instead
"""

from typing import FrozenSet

# ---------------------------------------------------------------------------
# Punctuation classes
# ---------------------------------------------------------------------------

TERMINAL_PUNCTUATION: FrozenSet[str] = frozenset({".", "!", "?"})
"""Sentence-ending marks."""

CLAUSE_PUNCTUATION: FrozenSet[str] = frozenset({":", ";"})

COMMA = ","

# ---------------------------------------------------------------------------
# Word-level break rules
# ---------------------------------------------------------------------------

WORD_CLAUSE_MIN_INDEX = 5
"""A clause mark only ends a segment past this word index."""

WORD_COMMA_PAUSE_SECS = 1.5
"""Pause after a comma that ends a segment."""

WORD_CAPITAL_PAUSE_SECS = 1.0
"""Pause before a capitalized word that starts a new segment."""

WORD_LOOKBACK_TOKENS = 15
"""Hard cap: segment words without terminal punctuation before forcing a break."""

# ---------------------------------------------------------------------------
# Utterance-level break rules
# ---------------------------------------------------------------------------

UTTERANCE_PAUSE_SECS = 2.0
UTTERANCE_CAPITAL_PAUSE_SECS = 0.5
UTTERANCE_MAX_CHARS = 100

# ---------------------------------------------------------------------------
# Flat-text fallback
# ---------------------------------------------------------------------------

FALLBACK_SENTENCE_SECS = 5.0
FALLBACK_CONFIDENCE = 0.9

# ---------------------------------------------------------------------------
# Optimizer passes
# ---------------------------------------------------------------------------

MIN_SEGMENT_DURATION_SECS = 0.1
"""Timing repair floor for every segment's duration."""

MERGE_MAX_GAP_SECS = 1.0
MERGE_MAX_COMBINED_CHARS = 150

SPLIT_MAX_WORDS = 8
"""A split sub-segment closes once it holds more than this many words."""

CONFIDENCE_SMOOTHING_BELOW = 0.7
CONFIDENCE_SMOOTHING_CAP = 0.95
CONFIDENCE_TEXT_REFERENCE_CHARS = 50
CONFIDENCE_DURATION_REFERENCE_SECS = 3.0

DEFAULT_TOKEN_CONFIDENCE = 0.9
"""Confidence assigned by the adapter when the ASR omits one."""
