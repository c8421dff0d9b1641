"""Subtitle Segmenter — ASR transcript to displayable subtitle segments.

WHY: Speech-recognition output is a stream of timestamped words or
utterances with confidence scores. Subtitles need sentence-shaped,
non-overlapping, readable segments. This package turns the former into
the latter with a fixed, auditable set of heuristics.

HOW: Three stages — ingest (ASR response adapter), segment (break
heuristics per token granularity), optimize (timing repair, merge, split,
confidence smoothing). The CLI and HTTP API wrap the same pure functions.

RULES:
- The core never does I/O; adapters and surfaces do
- All times inside the package are float seconds
- Output is an in-memory list of Segment; serialization belongs to callers
"""

__version__ = "0.1.0"
