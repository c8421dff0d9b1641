"""Core token model, segmentation engine and optimization passes.

WHY: The core is the only part of the package with algorithmic content —
the boundary heuristics and the repair passes. It is a set of pure
functions from tokens to segments, independent of any ASR provider,
transport or file format.

HOW: ir.py defines the data structures, thresholds.py the fixed rule
constants, segmenter.py builds draft segments from tokens, and
optimizer.py repairs, merges, splits and smooths them.

RULES:
- No I/O and no environment access anywhere in this package
- Every stage returns new values; nothing is mutated in place
"""

from subtitle_segmenter.core.ir import (
    FlatText,
    Granularity,
    OptimizationOptions,
    Segment,
    Token,
    TranscriptInput,
    UtteranceTokens,
    WordTokens,
)
from subtitle_segmenter.core.optimizer import (
    OptimizationStats,
    fix_timing,
    improve_confidence,
    merge_short,
    optimization_stats,
    optimize,
    split_long,
)
from subtitle_segmenter.core.segmenter import (
    GenerationStats,
    SegmentationError,
    generation_stats,
    segment,
    segment_flat_text,
    segment_input,
)

__all__ = [
    "FlatText",
    "GenerationStats",
    "Granularity",
    "OptimizationOptions",
    "OptimizationStats",
    "Segment",
    "SegmentationError",
    "Token",
    "TranscriptInput",
    "UtteranceTokens",
    "WordTokens",
    "fix_timing",
    "generation_stats",
    "improve_confidence",
    "merge_short",
    "optimization_stats",
    "optimize",
    "segment",
    "segment_flat_text",
    "segment_input",
    "split_long",
]
