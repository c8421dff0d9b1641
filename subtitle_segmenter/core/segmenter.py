"""Segmentation engine: ASR tokens to draft subtitle segments.

WHY: ASR providers return either one token per word or pre-grouped
utterances, neither of which is a readable subtitle. This module decides,
token by token, where one subtitle ends and the next begins, using a fixed
and auditable set of punctuation, pause, capitalization and length rules.

HOW: Tokens are first validated and cleaned (trimmed, punctuation-only
tokens dropped, optional confidence floor applied). Then a fold walks the
tokens with an immutable accumulator. Each granularity has two rule sets:
  start rules — evaluated before a token joins; True flushes the
                accumulator so the token opens a new segment
  end rules   — evaluated after a token joins; True flushes the
                accumulator including that token
A flat transcript string with no timing falls back to one segment per
sentence with synthetic timing.

RULES:
- Input must be sorted by start time; violations raise SegmentationError
- Text is joined with single spaces; confidence is the minimum of tokens
- A draft's end is the end of its last token
- Draft ids are "{video_id}_segment_{n}" ("segment_{n}" without a video id)
- Empty input yields an empty list, never an exception
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional, Sequence

from subtitle_segmenter.core.ir import (
    FlatText,
    Granularity,
    Segment,
    Token,
    TranscriptInput,
    UtteranceTokens,
    WordTokens,
)
from subtitle_segmenter.core.thresholds import (
    CLAUSE_PUNCTUATION,
    COMMA,
    FALLBACK_CONFIDENCE,
    FALLBACK_SENTENCE_SECS,
    TERMINAL_PUNCTUATION,
    UTTERANCE_CAPITAL_PAUSE_SECS,
    UTTERANCE_MAX_CHARS,
    UTTERANCE_PAUSE_SECS,
    WORD_CAPITAL_PAUSE_SECS,
    WORD_CLAUSE_MIN_INDEX,
    WORD_COMMA_PAUSE_SECS,
    WORD_LOOKBACK_TOKENS,
)

logger = logging.getLogger(__name__)

# Text with no letters or digits once trimmed: skipped entirely.
_NO_CONTENT_RE = re.compile(r"^[\W_]*$")

# Sentence boundary for the flat-text fallback.
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


class SegmentationError(ValueError):
    """Raised when tokens cannot be segmented safely.

    Attributes:
        index: Position of the offending token in the caller's sequence.
    """

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index


class _Draft(NamedTuple):
    """Accumulator for the segment under construction."""

    text: str
    start: float
    end: float
    confidence: float
    count: int


def _extend(draft: Optional[_Draft], token: Token) -> _Draft:
    """Return a new accumulator with token appended."""
    if draft is None:
        return _Draft(
            text=token.text,
            start=token.start_seconds,
            end=token.end_seconds,
            confidence=token.confidence,
            count=1,
        )
    return _Draft(
        text=draft.text + " " + token.text,
        start=draft.start,
        end=max(draft.end, token.end_seconds),
        confidence=min(draft.confidence, token.confidence),
        count=draft.count + 1,
    )


def _draft_id(video_id: str, index: int) -> str:
    if video_id:
        return "{}_segment_{}".format(video_id, index)
    return "segment_{}".format(index)


def _ends_with(text: str, marks: frozenset) -> bool:
    return bool(text) and text[-1] in marks


def _starts_upper(text: str) -> bool:
    return bool(text) and text[0].isupper()


# =============================================================================
# Token validation
# =============================================================================


def _accept_tokens(tokens: Sequence[Token], min_confidence: float) -> List[Token]:
    """Validate ordering and drop tokens that carry no text.

    Raises:
        SegmentationError: If a token has a non-finite time, ends before it
            starts, or starts earlier than the previous content token.
    """
    accepted: List[Token] = []
    previous_start: Optional[float] = None
    skipped = 0

    for index, token in enumerate(tokens):
        text = token.text.strip()
        if _NO_CONTENT_RE.match(text):
            skipped += 1
            continue

        if not (math.isfinite(token.start_seconds) and math.isfinite(token.end_seconds)):
            raise SegmentationError(
                "Token {} ({!r}) has a non-finite time".format(index, text), index
            )
        if token.end_seconds < token.start_seconds:
            raise SegmentationError(
                "Token {} ({!r}) ends at {:.3f}s before it starts at {:.3f}s".format(
                    index, text, token.end_seconds, token.start_seconds
                ),
                index,
            )
        if previous_start is not None and token.start_seconds < previous_start:
            raise SegmentationError(
                "Token {} ({!r}) starts at {:.3f}s, before the previous token at {:.3f}s; "
                "tokens must be sorted by start time".format(
                    index, text, token.start_seconds, previous_start
                ),
                index,
            )
        previous_start = token.start_seconds

        if token.confidence < min_confidence:
            skipped += 1
            continue

        accepted.append(token if text == token.text else replace(token, text=text))

    if skipped:
        logger.debug("Skipped %d of %d tokens", skipped, len(tokens))
    return accepted


# =============================================================================
# Word-level rules
# =============================================================================


def starts_segment_at_word(index: int, words: Sequence[Token]) -> bool:
    """True if words[index] opens a new segment: capitalized after a pause."""
    if index == 0:
        return False
    word = words[index]
    gap = word.start_seconds - words[index - 1].end_seconds
    return _starts_upper(word.text) and gap > WORD_CAPITAL_PAUSE_SECS


def ends_segment_after_word(index: int, words: Sequence[Token], position: int) -> bool:
    """True if the segment closes after words[index].

    Args:
        index: Position of the word in the full word list.
        words: The full (cleaned) word list.
        position: Position of the word inside the current segment.
    """
    text = words[index].text

    if _ends_with(text, TERMINAL_PUNCTUATION):
        return True

    if _ends_with(text, CLAUSE_PUNCTUATION) and position > WORD_CLAUSE_MIN_INDEX:
        return True

    if text.endswith(COMMA) and index + 1 < len(words):
        gap = words[index + 1].start_seconds - words[index].end_seconds
        if gap > WORD_COMMA_PAUSE_SECS:
            return True

    if position > WORD_LOOKBACK_TOKENS:
        window = words[max(0, index - WORD_LOOKBACK_TOKENS + 1):index + 1]
        if not any(_ends_with(w.text, TERMINAL_PUNCTUATION) for w in window):
            return True

    return False


def _segment_words(words: List[Token], language: str, video_id: str) -> List[Segment]:
    drafts: List[_Draft] = []
    current: Optional[_Draft] = None

    for index, word in enumerate(words):
        if current is not None and starts_segment_at_word(index, words):
            drafts.append(current)
            current = None

        current = _extend(current, word)

        if ends_segment_after_word(index, words, current.count - 1):
            drafts.append(current)
            current = None

    if current is not None:
        drafts.append(current)

    return _finalize(drafts, language, video_id)


# =============================================================================
# Utterance-level rules
# =============================================================================


def starts_segment_at_utterance(
    text: str,
    current_text: str,
    start: float,
    running_end: float,
) -> bool:
    """True if an utterance must not be appended to the current segment."""
    gap = start - running_end

    if gap > UTTERANCE_PAUSE_SECS:
        return True
    if _starts_upper(text) and gap > UTTERANCE_CAPITAL_PAUSE_SECS:
        return True
    if len(current_text + " " + text) > UTTERANCE_MAX_CHARS:
        return True
    if _ends_with(current_text, TERMINAL_PUNCTUATION):
        return True
    return False


def ends_segment_after_utterance(text: str) -> bool:
    """True if an utterance closes the segment it joined."""
    return _ends_with(text, TERMINAL_PUNCTUATION) or _ends_with(text, CLAUSE_PUNCTUATION)


def _segment_utterances(
    utterances: List[Token],
    language: str,
    video_id: str,
) -> List[Segment]:
    drafts: List[_Draft] = []
    current: Optional[_Draft] = None

    for utterance in utterances:
        if current is not None and starts_segment_at_utterance(
            utterance.text, current.text, utterance.start_seconds, current.end
        ):
            drafts.append(current)
            current = None

        current = _extend(current, utterance)

        if ends_segment_after_utterance(utterance.text):
            drafts.append(current)
            current = None

    if current is not None:
        drafts.append(current)

    return _finalize(drafts, language, video_id)


def _finalize(drafts: List[_Draft], language: str, video_id: str) -> List[Segment]:
    return [
        Segment(
            id=_draft_id(video_id, i),
            text=d.text,
            start_seconds=d.start,
            end_seconds=d.end,
            confidence=d.confidence,
            language=language,
            video_id=video_id,
        )
        for i, d in enumerate(drafts)
    ]


# =============================================================================
# Public API
# =============================================================================


def segment(
    tokens: Sequence[Token],
    granularity: Granularity,
    language: str = "",
    video_id: str = "",
    min_confidence: float = 0.0,
) -> List[Segment]:
    """Group ordered ASR tokens into draft subtitle segments.

    Args:
        tokens: Tokens sorted ascending by start_seconds.
        granularity: WORD or UTTERANCE; selects the break rules.
        language: Copied onto every segment.
        video_id: Copied onto every segment and used in draft ids.
        min_confidence: Tokens below this confidence are dropped first.

    Returns:
        Draft segments in chronological order.

    Raises:
        SegmentationError: If tokens are out of order or have negative duration.
    """
    accepted = _accept_tokens(tokens, min_confidence)
    if not accepted:
        return []

    if granularity == Granularity.WORD:
        segments = _segment_words(accepted, language, video_id)
    elif granularity == Granularity.UTTERANCE:
        segments = _segment_utterances(accepted, language, video_id)
    else:
        raise ValueError("Unknown granularity: {!r}".format(granularity))

    logger.debug(
        "Segmented %d %s tokens into %d segments",
        len(accepted), Granularity(granularity).value, len(segments),
    )
    return segments


def segment_flat_text(text: str, language: str = "", video_id: str = "") -> List[Segment]:
    """Fallback: one segment per sentence with uniform synthetic timing.

    RULES:
    - Sentences are split on . ! ? followed by whitespace
    - Sentence n spans [n * 5s, (n + 1) * 5s] with confidence 0.9
    - Blank text yields an empty list
    """
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text.strip())]
    sentences = [s for s in sentences if s]

    return [
        Segment(
            id=_draft_id(video_id, i),
            text=sentence,
            start_seconds=i * FALLBACK_SENTENCE_SECS,
            end_seconds=(i + 1) * FALLBACK_SENTENCE_SECS,
            confidence=FALLBACK_CONFIDENCE,
            language=language,
            video_id=video_id,
        )
        for i, sentence in enumerate(sentences)
    ]


def segment_input(
    transcript: TranscriptInput,
    language: str = "",
    video_id: str = "",
    min_confidence: float = 0.0,
) -> List[Segment]:
    """Dispatch a tagged transcript input to the matching segmentation path."""
    if isinstance(transcript, WordTokens):
        return segment(transcript.tokens, Granularity.WORD, language, video_id, min_confidence)
    if isinstance(transcript, UtteranceTokens):
        return segment(transcript.tokens, Granularity.UTTERANCE, language, video_id, min_confidence)
    if isinstance(transcript, FlatText):
        return segment_flat_text(transcript.text, language, video_id)
    raise TypeError("Unsupported transcript input: {}".format(type(transcript).__name__))


# =============================================================================
# Statistics
# =============================================================================


@dataclass(frozen=True)
class GenerationStats:
    """Summary of a segmentation run."""

    total_words: int
    total_segments: int
    average_segment_length: float
    average_confidence: float
    total_duration: float


def generation_stats(segments: Sequence[Segment]) -> GenerationStats:
    """Summarize draft segments: word count, averages and total duration.

    RULES:
    - average_segment_length is in words per segment
    - total_duration is the latest segment end
    - Empty input reports all zeros
    """
    if not segments:
        return GenerationStats(0, 0, 0.0, 0.0, 0.0)

    total_words = sum(len(s.text.split()) for s in segments)
    return GenerationStats(
        total_words=total_words,
        total_segments=len(segments),
        average_segment_length=total_words / len(segments),
        average_confidence=sum(s.confidence for s in segments) / len(segments),
        total_duration=max(s.end_seconds for s in segments),
    )
