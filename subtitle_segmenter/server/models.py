"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Each endpoint has a request model and shares one response model.
Segment and statistics models mirror the core dataclasses field for field
so conversion is a plain dict round trip.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Option fields left unset fall back to the server's environment defaults
- Only per-field bounds are validated; min/max consistency is not
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OptionsModel(BaseModel):
    """Per-request overrides for the optimization passes.

    RULES:
    - Every field is optional; None means "use the server default"
    """

    merge_short_segments: Optional[bool] = Field(
        default=None, description="Merge short segments into neighbours.",
    )
    split_long_segments: Optional[bool] = Field(
        default=None, description="Split segments that are too long.",
    )
    fix_timing: Optional[bool] = Field(
        default=None, description="Clamp overlaps and enforce a 0.1s minimum duration.",
    )
    improve_confidence: Optional[bool] = Field(
        default=None, description="Raise low confidence scores toward a plausibility estimate.",
    )
    max_segment_length_chars: Optional[int] = Field(
        default=None, ge=1, description="Maximum segment length in characters.",
    )
    min_segment_length_chars: Optional[int] = Field(
        default=None, ge=0, description="Minimum segment length in characters.",
    )
    max_segment_duration_secs: Optional[float] = Field(
        default=None, gt=0, description="Maximum segment duration in seconds.",
    )
    min_segment_duration_secs: Optional[float] = Field(
        default=None, ge=0, description="Minimum segment duration in seconds.",
    )


class SegmentModel(BaseModel):
    """One subtitle segment."""

    id: str = Field(default="", description="Segment identifier, unique within the list.")
    text: str = Field(description="Subtitle text.")
    start_seconds: float = Field(description="Start time in seconds.")
    end_seconds: float = Field(description="End time in seconds.")
    confidence: float = Field(default=1.0, ge=0, le=1, description="Confidence 0.0–1.0.")
    language: str = Field(default="", description="Language code.")
    video_id: str = Field(default="", description="Video the segment belongs to.")


class SegmentRequest(BaseModel):
    """Request body for POST /segments.

    RULES:
    - transcript is the provider's response JSON: utterances, words or text
    - language defaults to the server's DEFAULT_LANGUAGE
    """

    transcript: Dict[str, Any] = Field(
        description="ASR transcript response with 'utterances', 'words' or 'text'.",
    )
    language: Optional[str] = Field(default=None, description="Language code for every segment.")
    video_id: str = Field(default="", description="Video identifier for every segment.")
    min_confidence: float = Field(
        default=0.0, ge=0, le=1,
        description="Tokens below this confidence are dropped before segmentation.",
    )
    optimize: bool = Field(default=True, description="Run the optimization passes.")
    options: Optional[OptionsModel] = Field(
        default=None, description="Overrides for the optimization passes.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "transcript": {
                    "words": [
                        {"text": "Hello", "start": 0, "end": 400, "confidence": 0.95},
                        {"text": "world.", "start": 400, "end": 900, "confidence": 0.92},
                    ]
                },
                "language": "en",
                "video_id": "intro",
            }
        ]
    }}


class OptimizeRequest(BaseModel):
    """Request body for POST /optimize."""

    segments: List[SegmentModel] = Field(description="Segments sorted by start time.")
    options: Optional[OptionsModel] = Field(
        default=None, description="Overrides for the optimization passes.",
    )


class GenerationStatsModel(BaseModel):
    total_words: int = Field(description="Words across all draft segments.")
    total_segments: int = Field(description="Number of draft segments.")
    average_segment_length: float = Field(description="Average words per draft segment.")
    average_confidence: float = Field(description="Average draft confidence.")
    total_duration: float = Field(description="Latest draft end time in seconds.")


class OptimizationStatsModel(BaseModel):
    original_count: int = Field(description="Segments before optimization.")
    optimized_count: int = Field(description="Segments after optimization.")
    average_length: int = Field(description="Average text length in characters.")
    average_duration: float = Field(description="Average duration in seconds.")
    average_confidence: float = Field(description="Average confidence.")
    improvements: List[str] = Field(description="Human-readable summary of count changes.")


class SegmentsResponse(BaseModel):
    """Segments plus whatever statistics the endpoint computed."""

    segments: List[SegmentModel] = Field(description="Resulting segments in order.")
    generation_stats: Optional[GenerationStatsModel] = Field(
        default=None, description="Statistics of the draft segmentation (POST /segments only).",
    )
    optimization_stats: Optional[OptimizationStatsModel] = Field(
        default=None, description="Before/after comparison, when optimization ran.",
    )


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
