"""Adapter modules for converting external payloads into engine inputs.

WHY: The engine's tokens (float seconds, typed dataclasses) differ from
what ASR providers return (loose JSON, millisecond timestamps). Adapters
bridge these representations so each side can evolve independently.

HOW: Each adapter module provides a conversion function from a provider
payload to one of the engine's TranscriptInput variants.

RULES:
- Adapters are pure data transformations — no I/O, no side effects.
- Unit conversion (ms → s) happens here and nowhere else.
"""

from subtitle_segmenter.adapters.asr_adapter import AsrEntry, AsrResponse, response_to_input

__all__ = ["AsrEntry", "AsrResponse", "response_to_input"]
