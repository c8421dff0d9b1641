"""Configuration defaults and .env loading for the outer surfaces.

WHY: The CLI and HTTP API need sensible, overridable defaults for the
optimization passes without each caller repeating flags. Keeping the
environment lookups here means the core stays free of global state and
reads nothing from the environment.

HOW: python-dotenv loads the .env file on import. Module-level constants
hold simple defaults; load_optimization_options() builds an
OptimizationOptions from SUBTITLE_* environment variables, falling back
to the dataclass defaults for anything unset.

RULES:
- Only cli.py and server/ import this module; core/ never does
- Booleans accept true/false, 1/0, yes/no (case-insensitive)
- A malformed value raises ValueError naming the variable
- No min/max consistency check is applied to the thresholds
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from subtitle_segmenter.core.ir import OptimizationOptions

# Load .env from the project root (where the tool is run from)
load_dotenv()

DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError("expected true or false")


# Environment variable → (OptimizationOptions field, parser)
OPTION_ENV_VARS: Dict[str, tuple] = {
    "SUBTITLE_MERGE_SHORT_SEGMENTS": ("merge_short_segments", _parse_bool),
    "SUBTITLE_SPLIT_LONG_SEGMENTS": ("split_long_segments", _parse_bool),
    "SUBTITLE_FIX_TIMING": ("fix_timing", _parse_bool),
    "SUBTITLE_IMPROVE_CONFIDENCE": ("improve_confidence", _parse_bool),
    "SUBTITLE_MAX_SEGMENT_LENGTH": ("max_segment_length_chars", int),
    "SUBTITLE_MIN_SEGMENT_LENGTH": ("min_segment_length_chars", int),
    "SUBTITLE_MAX_SEGMENT_DURATION": ("max_segment_duration_secs", float),
    "SUBTITLE_MIN_SEGMENT_DURATION": ("min_segment_duration_secs", float),
}


def load_optimization_options(
    environ: Optional[Dict[str, str]] = None,
) -> OptimizationOptions:
    """Build OptimizationOptions from SUBTITLE_* environment variables.

    Args:
        environ: Mapping to read instead of os.environ (for tests).

    Returns:
        Options with every set variable applied over the defaults.

    Raises:
        ValueError: If a variable is set but cannot be parsed.
    """
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    for name, (field_name, parse) in OPTION_ENV_VARS.items():
        raw = env.get(name, "").strip()
        if not raw:
            continue
        parser: Callable[[str], Any] = parse
        try:
            overrides[field_name] = parser(raw)
        except ValueError:
            raise ValueError(
                "Invalid value for {}: {!r}. Fix or remove it in the .env file.".format(name, raw)
            ) from None

    return OptimizationOptions.from_dict(overrides)
