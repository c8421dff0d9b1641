"""Post-processing passes over draft segments and the pipeline driver.

WHY: Draft segments straight from the segmentation engine can overlap,
flash by too quickly, run far too long, or carry implausibly low
confidence for perfectly readable text. These passes repair that so the
output can be displayed as-is.

HOW: Four pure passes, each taking a segment list and returning a new one:
  fix_timing         — clamp overlaps, enforce a 0.1s duration floor
  merge_short        — fold short segments into their neighbour
  split_long         — cut long segments at punctuation or the length limit
  improve_confidence — raise low confidence toward a text/duration proxy
optimize() runs the enabled passes in that fixed order and then renumbers
the result. optimization_stats() summarizes what changed.

RULES:
- No pass mutates its input; segments are rebuilt with replace()
- fix_timing is a single forward pass: a floored segment may overlap the
  next one again, and that is left as-is
- Split time is allocated linearly by word count
- Final ids are "optimized_segment_{n}" in output order
- optimize() rejects unsorted input with SegmentationError before any pass
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from subtitle_segmenter.core.ir import OptimizationOptions, Segment
from subtitle_segmenter.core.segmenter import SegmentationError
from subtitle_segmenter.core.thresholds import (
    CLAUSE_PUNCTUATION,
    COMMA,
    CONFIDENCE_DURATION_REFERENCE_SECS,
    CONFIDENCE_SMOOTHING_BELOW,
    CONFIDENCE_SMOOTHING_CAP,
    CONFIDENCE_TEXT_REFERENCE_CHARS,
    MERGE_MAX_COMBINED_CHARS,
    MERGE_MAX_GAP_SECS,
    MIN_SEGMENT_DURATION_SECS,
    SPLIT_MAX_WORDS,
    TERMINAL_PUNCTUATION,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\S+")


# =============================================================================
# Timing repair
# =============================================================================


def _floored_end(start: float) -> float:
    """Smallest end time at least MIN_SEGMENT_DURATION_SECS after start."""
    end = start + MIN_SEGMENT_DURATION_SECS
    # start + 0.1 can round to just under 0.1s of duration
    while end - start < MIN_SEGMENT_DURATION_SECS:
        end = math.nextafter(end, math.inf)
    return end


def fix_timing(segments: Sequence[Segment]) -> List[Segment]:
    """Remove overlaps and enforce a minimum duration.

    RULES:
    - If a segment ends after the next one starts, its end is clamped
      to the next start
    - Any segment shorter than 0.1s is then extended to start + 0.1s,
      the last segment included
    - Order and count are preserved
    """
    fixed = list(segments)

    for i, current in enumerate(fixed):
        end = current.end_seconds
        if i + 1 < len(fixed) and end > fixed[i + 1].start_seconds:
            end = fixed[i + 1].start_seconds
        if end - current.start_seconds < MIN_SEGMENT_DURATION_SECS:
            end = _floored_end(current.start_seconds)
        if end != current.end_seconds:
            fixed[i] = replace(current, end_seconds=end)

    return fixed


# =============================================================================
# Merge pass
# =============================================================================


def is_short(segment: Segment, options: OptimizationOptions) -> bool:
    return (
        len(segment.text) < options.min_segment_length_chars
        or segment.duration < options.min_segment_duration_secs
    )


def should_merge(first: Segment, second: Segment) -> bool:
    """Merge predicate: close in time and short enough together."""
    gap = second.start_seconds - first.end_seconds
    combined = len(first.text) + len(second.text)
    return gap < MERGE_MAX_GAP_SECS and combined < MERGE_MAX_COMBINED_CHARS


def merge_short(
    segments: Sequence[Segment],
    options: Optional[OptimizationOptions] = None,
) -> List[Segment]:
    """Fold short segments into the running accumulator.

    WHY: One- or two-word flashes are unreadable. Joining them with a
    neighbour gives the viewer time to read.

    HOW: Walk in order with an accumulator. When either the accumulator or
    the next segment is short and should_merge() holds, the next segment is
    appended to the accumulator. Otherwise the accumulator is emitted and
    the next segment takes its place, short or not.

    RULES:
    - Merged text is joined with a single space
    - Merged end is the absorbed segment's end
    - Merged confidence is the minimum of both
    - Output count never exceeds input count
    """
    options = options or OptimizationOptions()
    merged: List[Segment] = []
    current: Optional[Segment] = None

    for candidate in segments:
        if current is None:
            current = candidate
            continue

        wants_merge = is_short(candidate, options) or is_short(current, options)
        if wants_merge and should_merge(current, candidate):
            current = replace(
                current,
                text=current.text + " " + candidate.text,
                end_seconds=candidate.end_seconds,
                confidence=min(current.confidence, candidate.confidence),
            )
        else:
            merged.append(current)
            current = candidate

    if current is not None:
        merged.append(current)

    logger.debug("Merge pass: %d -> %d segments", len(segments), len(merged))
    return merged


# =============================================================================
# Split pass
# =============================================================================


def is_long(segment: Segment, options: OptimizationOptions) -> bool:
    return (
        len(segment.text) > options.max_segment_length_chars
        or segment.duration > options.max_segment_duration_secs
    )


def should_split_after(index: int, words: Sequence[str], count: int) -> bool:
    """True if a sub-segment closes after words[index].

    Args:
        index: Position of the word in the segment's word list.
        words: All words of the segment being split.
        count: Words accumulated in the current sub-segment, this one included.
    """
    word = words[index]
    last_char = word[-1:]

    if last_char in TERMINAL_PUNCTUATION or last_char in CLAUSE_PUNCTUATION:
        return True
    if word.endswith(COMMA) and index + 1 < len(words) and words[index + 1][:1].isupper():
        return True
    return count > SPLIT_MAX_WORDS


def split_segment(
    segment: Segment,
    options: Optional[OptimizationOptions] = None,
) -> List[Segment]:
    """Cut one segment into sub-segments with linearly allocated time.

    RULES:
    - A sub-segment also closes when the next word would take its text past
      max_segment_length_chars; a single word longer than the limit stands alone
    - Sub-segment n ends at start + (last_word_index + 1) * duration / words;
      the final one ends exactly at the original end
    - Each sub-segment starts where the previous one ended
    - Sub-segment text is the original text between its first and last
      word, so inner spacing is preserved
    - Ids are "{original_id}_split_{n}"
    """
    options = options or OptimizationOptions()
    matches = list(_WORD_RE.finditer(segment.text))
    if not matches:
        return [segment]

    words = [m.group() for m in matches]
    per_word = segment.duration / len(words)

    pieces: List[Segment] = []
    first = 0
    start = segment.start_seconds

    for i in range(len(words)):
        is_last = i == len(words) - 1
        overflows = (
            not is_last
            and matches[i + 1].end() - matches[first].start() > options.max_segment_length_chars
        )
        if not (is_last or overflows or should_split_after(i, words, i - first + 1)):
            continue

        end = segment.end_seconds if is_last else segment.start_seconds + (i + 1) * per_word
        pieces.append(replace(
            segment,
            id="{}_split_{}".format(segment.id, len(pieces)),
            text=segment.text[matches[first].start():matches[i].end()],
            start_seconds=start,
            end_seconds=end,
        ))
        start = end
        first = i + 1

    return pieces


def split_long(
    segments: Sequence[Segment],
    options: Optional[OptimizationOptions] = None,
) -> List[Segment]:
    """Split every segment that is too long in characters or seconds."""
    options = options or OptimizationOptions()
    result: List[Segment] = []

    for seg in segments:
        if is_long(seg, options):
            result.extend(split_segment(seg, options))
        else:
            result.append(seg)

    logger.debug("Split pass: %d -> %d segments", len(segments), len(result))
    return result


# =============================================================================
# Confidence smoothing
# =============================================================================


def improve_confidence(segments: Sequence[Segment]) -> List[Segment]:
    """Raise low confidence toward a text-length and duration estimate.

    RULES:
    - Only segments below 0.7 are touched
    - text_quality = min(1, len(text) / 50)
    - duration_quality = min(1, duration / 3)
    - new = min(0.95, max(old, (text_quality + duration_quality) / 2))
    - Confidence never decreases; applying twice equals applying once
    """
    result: List[Segment] = []

    for seg in segments:
        if seg.confidence >= CONFIDENCE_SMOOTHING_BELOW:
            result.append(seg)
            continue

        text_quality = min(1.0, len(seg.text) / CONFIDENCE_TEXT_REFERENCE_CHARS)
        duration_quality = min(1.0, seg.duration / CONFIDENCE_DURATION_REFERENCE_SECS)
        adjusted = max(seg.confidence, (text_quality + duration_quality) / 2)
        result.append(replace(seg, confidence=min(CONFIDENCE_SMOOTHING_CAP, adjusted)))

    return result


# =============================================================================
# Pipeline driver
# =============================================================================


def validate_order(segments: Sequence[Segment]) -> None:
    """Reject segment lists the passes cannot repair safely.

    Raises:
        SegmentationError: If a segment has a non-finite time, ends before
            it starts, or starts earlier than the segment before it.
    """
    previous_start: Optional[float] = None

    for index, seg in enumerate(segments):
        if not (math.isfinite(seg.start_seconds) and math.isfinite(seg.end_seconds)):
            raise SegmentationError(
                "Segment {} ({!r}) has a non-finite time".format(index, seg.id), index
            )
        if seg.end_seconds < seg.start_seconds:
            raise SegmentationError(
                "Segment {} ({!r}) ends at {:.3f}s before it starts at {:.3f}s".format(
                    index, seg.id, seg.end_seconds, seg.start_seconds
                ),
                index,
            )
        if previous_start is not None and seg.start_seconds < previous_start:
            raise SegmentationError(
                "Segment {} ({!r}) starts at {:.3f}s, before the previous segment at {:.3f}s; "
                "segments must be sorted by start time".format(
                    index, seg.id, seg.start_seconds, previous_start
                ),
                index,
            )
        previous_start = seg.start_seconds


def reassign_ids(segments: Sequence[Segment]) -> List[Segment]:
    return [
        replace(seg, id="optimized_segment_{}".format(i))
        for i, seg in enumerate(segments)
    ]


def optimize(
    segments: Sequence[Segment],
    options: Optional[OptimizationOptions] = None,
) -> List[Segment]:
    """Run the enabled passes in fixed order and renumber the result.

    Order: fix_timing -> merge_short -> split_long -> improve_confidence.
    Disabled passes are not run at all.

    Args:
        segments: Draft segments, sorted by start time.
        options: Pass switches and thresholds; defaults when omitted.

    Returns:
        A new list of segments with ids "optimized_segment_{n}".

    Raises:
        SegmentationError: If the input is unsorted or has invalid times.
    """
    options = options or OptimizationOptions()
    optimized = list(segments)
    if not optimized:
        return optimized

    validate_order(optimized)

    if options.fix_timing:
        optimized = fix_timing(optimized)
    if options.merge_short_segments:
        optimized = merge_short(optimized, options)
    if options.split_long_segments:
        optimized = split_long(optimized, options)
    if options.improve_confidence:
        optimized = improve_confidence(optimized)

    optimized = reassign_ids(optimized)
    logger.debug("Optimized %d segments into %d", len(segments), len(optimized))
    return optimized


@dataclass(frozen=True)
class OptimizationStats:
    """Comparison of a segment list before and after optimize()."""

    original_count: int
    optimized_count: int
    average_length: int
    average_duration: float
    average_confidence: float
    improvements: List[str] = field(default_factory=list)


def optimization_stats(
    original: Sequence[Segment],
    optimized: Sequence[Segment],
) -> OptimizationStats:
    """Summarize the optimized list and describe the count change.

    RULES:
    - Averages are over the optimized list: length rounded to an int,
      duration and confidence to two decimals
    - improvements is derived from the count delta only
    - An empty optimized list reports zero averages
    """
    improvements: List[str] = []
    delta = len(optimized) - len(original)
    if delta < 0:
        improvements.append("merged {} short segments".format(-delta))
    elif delta > 0:
        improvements.append("split {} long segments".format(delta))

    if not optimized:
        return OptimizationStats(len(original), 0, 0, 0.0, 0.0, improvements)

    count = len(optimized)
    return OptimizationStats(
        original_count=len(original),
        optimized_count=count,
        average_length=round(sum(len(s.text) for s in optimized) / count),
        average_duration=round(sum(s.duration for s in optimized) / count, 2),
        average_confidence=round(sum(s.confidence for s in optimized) / count, 2),
        improvements=improvements,
    )
