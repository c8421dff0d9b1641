"""Command-line interface for the subtitle segmenter.

WHY: Users need a simple way to turn a saved ASR transcript response into
subtitle segments from the terminal or a shell pipeline, and to re-run the
optimizer over an existing segment list with different thresholds.

HOW: Uses argparse to accept an input JSON path (or "-" for stdin),
segment metadata, and per-pass switches and thresholds. Defaults for the
passes come from the environment via config.load_optimization_options();
explicit flags override them. The input is either an ASR response
(utterances / words / text) or a previously written {"segments": [...]}
document. Segments are written as JSON to stdout or --output; status
messages and statistics go to stderr.

RULES:
- Exit codes: 0 = success, 1 = error (bad input, bad config, unsorted tokens)
- Status output goes to stderr (not stdout) so the CLI can be piped
- --no-optimize emits the draft segments untouched
- Flags left unset fall back to SUBTITLE_* environment values, then defaults
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from subtitle_segmenter.adapters.asr_adapter import response_to_input
from subtitle_segmenter.config import DEFAULT_LANGUAGE, LOG_LEVEL, load_optimization_options
from subtitle_segmenter.core.ir import OptimizationOptions, Segment
from subtitle_segmenter.core.optimizer import optimization_stats, optimize
from subtitle_segmenter.core.segmenter import generation_stats, segment_input

logger = logging.getLogger(__name__)

# CLI flag destination → OptimizationOptions field
_OPTION_FLAGS: Dict[str, str] = {
    "merge": "merge_short_segments",
    "split": "split_long_segments",
    "fix_timing": "fix_timing",
    "improve_confidence": "improve_confidence",
    "max_length": "max_segment_length_chars",
    "min_length": "min_segment_length_chars",
    "max_duration": "max_segment_duration_secs",
    "min_duration": "min_segment_duration_secs",
}


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _read_input(source: str) -> Any:
    """Read and parse the input JSON from a path or stdin.

    Raises:
        ValueError: If the file is missing or the content is not JSON.
    """
    if source == "-":
        raw = sys.stdin.read()
    else:
        path = Path(source)
        if not path.is_file():
            raise ValueError("File not found: {}".format(path))
        raw = path.read_text(encoding="utf-8")

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("Input is not valid JSON: {}".format(e)) from None


def _resolve_options(args: argparse.Namespace) -> OptimizationOptions:
    """Apply explicit CLI flags over the environment defaults."""
    options = load_optimization_options()
    overrides = {
        field_name: getattr(args, dest)
        for dest, field_name in _OPTION_FLAGS.items()
        if getattr(args, dest) is not None
    }
    return replace(options, **overrides)


def _load_drafts(data: Any, args: argparse.Namespace) -> List[Segment]:
    """Build draft segments from either an ASR response or a segment document."""
    if isinstance(data, dict) and isinstance(data.get("segments"), list):
        drafts = []
        for index, item in enumerate(data["segments"]):
            try:
                drafts.append(Segment.from_dict(item))
            except ValueError as e:
                raise ValueError("Segment {}: {}".format(index, e)) from None
        _status("Loaded {} existing segments".format(len(drafts)))
        return drafts

    transcript = response_to_input(data)
    drafts = segment_input(
        transcript,
        language=args.language,
        video_id=args.video_id,
        min_confidence=args.min_confidence,
    )
    _status("Segmented {} input into {} draft segments".format(
        type(transcript).__name__, len(drafts)
    ))
    return drafts


def run(args: argparse.Namespace) -> int:
    """Execute one CLI invocation and return the exit code."""
    try:
        data = _read_input(args.input_file)
        options = _resolve_options(args)
        drafts = _load_drafts(data, args)
        logger.debug("Optimization options: %s", options)
        segments = optimize(drafts, options) if args.optimize else drafts
    except ValueError as e:
        # SegmentationError is a ValueError
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    if args.optimize:
        _status("Optimized into {} segments".format(len(segments)))

    if args.stats:
        _status("Generation: {}".format(json.dumps(asdict(generation_stats(drafts)))))
        if args.optimize:
            _status("Optimization: {}".format(
                json.dumps(asdict(optimization_stats(drafts, segments)))
            ))

    document = json.dumps(
        {"segments": [s.to_dict() for s in segments]},
        ensure_ascii=False,
        indent=2,
    )

    if args.output:
        output_path = Path(args.output)
        if not output_path.parent.is_dir():
            print("Error: Output directory does not exist: {}".format(output_path.parent),
                  file=sys.stderr)
            return 1
        output_path.write_text(document + "\n", encoding="utf-8")
        _status("Saved: {}".format(output_path))
    else:
        print(document)

    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Positional: input_file ("-" reads stdin)
    - Pass switches are tri-state: unset means "use the environment default"
    """
    parser = argparse.ArgumentParser(
        prog="subtitle_segmenter",
        description="Turn an ASR transcript response (utterances, words or text) "
                    "into optimized subtitle segments.",
    )

    parser.add_argument(
        "input_file",
        help="ASR response JSON or {\"segments\": [...]} document; '-' reads stdin.",
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help="Language code stored on every segment (default: %(default)s).",
    )
    parser.add_argument(
        "--video-id",
        default="",
        help="Video identifier stored on every segment.",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=0.0,
        help="Drop tokens below this confidence before segmenting (default: %(default)s).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the segment JSON to this file instead of stdout.",
    )
    parser.add_argument(
        "--optimize",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the optimization passes (default: %(default)s).",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print generation and optimization statistics to stderr.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    passes = parser.add_argument_group("optimization passes")
    passes.add_argument("--merge", action=argparse.BooleanOptionalAction, default=None,
                        help="Merge short segments into neighbours.")
    passes.add_argument("--split", action=argparse.BooleanOptionalAction, default=None,
                        help="Split long segments.")
    passes.add_argument("--fix-timing", action=argparse.BooleanOptionalAction, default=None,
                        help="Clamp overlaps and enforce a minimum duration.")
    passes.add_argument("--improve-confidence", action=argparse.BooleanOptionalAction,
                        default=None, help="Smooth low confidence scores.")
    passes.add_argument("--max-length", type=int, default=None,
                        help="Maximum segment length in characters.")
    passes.add_argument("--min-length", type=int, default=None,
                        help="Minimum segment length in characters.")
    passes.add_argument("--max-duration", type=float, default=None,
                        help="Maximum segment duration in seconds.")
    passes.add_argument("--min-duration", type=float, default=None,
                        help="Minimum segment duration in seconds.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
