"""FastAPI application exposing segmentation and optimization over HTTP.

WHY: External callers (upload workers, editors, batch jobs) need to turn
ASR output into subtitle segments without embedding Python. FastAPI
provides request validation and automatic OpenAPI documentation around
the same pure functions the CLI uses.

HOW: Three endpoints:
  POST /segments — ASR response → draft segments → optional optimization
  POST /optimize — existing segment list → optimization passes
  GET  /health   — liveness check
The engine is synchronous and CPU-bound, so the handlers are plain
``def`` functions and FastAPI runs them in its worker threadpool.

RULES:
- Unsorted or negative-duration tokens or segments return 422 with {"detail": ...}
- Option fields left unset use SUBTITLE_* environment defaults
- A malformed environment default returns 500 and is logged
- Responses never expose internal exception types
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from typing import List, Optional

from fastapi import FastAPI, HTTPException

from subtitle_segmenter import __version__
from subtitle_segmenter.adapters.asr_adapter import response_to_input
from subtitle_segmenter.config import DEFAULT_LANGUAGE, load_optimization_options
from subtitle_segmenter.core.ir import OptimizationOptions, Segment
from subtitle_segmenter.core.optimizer import optimization_stats, optimize
from subtitle_segmenter.core.segmenter import SegmentationError, generation_stats, segment_input
from subtitle_segmenter.server.models import (
    ErrorResponse,
    GenerationStatsModel,
    HealthResponse,
    OptimizationStatsModel,
    OptimizeRequest,
    OptionsModel,
    SegmentModel,
    SegmentRequest,
    SegmentsResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Subtitle Segmenter API",
    description=(
        "Turn speech-recognition output (utterances, words or plain text) "
        "into clean, non-overlapping subtitle segments, and re-optimize "
        "existing segment lists."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_options(overrides: Optional[OptionsModel]) -> OptimizationOptions:
    """Apply request overrides over the environment defaults."""
    try:
        options = load_optimization_options()
    except ValueError:
        logger.exception("Invalid optimization defaults in environment")
        raise HTTPException(status_code=500, detail="Server optimization defaults are misconfigured")

    if overrides is None:
        return options
    return replace(options, **overrides.model_dump(exclude_none=True))


def _to_models(segments: List[Segment]) -> List[SegmentModel]:
    return [SegmentModel(**s.to_dict()) for s in segments]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post(
    "/segments",
    response_model=SegmentsResponse,
    tags=["segments"],
    summary="Segment an ASR transcript",
    description=(
        "Converts an ASR transcript response into subtitle segments. Utterances "
        "are preferred over words; plain text falls back to one segment per "
        "sentence with synthetic 5-second timing."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Tokens are unsorted or malformed"},
    },
)
def create_segments(request: SegmentRequest) -> SegmentsResponse:
    options = _resolve_options(request.options)
    transcript = response_to_input(request.transcript)

    try:
        drafts = segment_input(
            transcript,
            language=request.language if request.language is not None else DEFAULT_LANGUAGE,
            video_id=request.video_id,
            min_confidence=request.min_confidence,
        )
    except SegmentationError as e:
        logger.warning("Rejected transcript for video %r: %s", request.video_id, e)
        raise HTTPException(status_code=422, detail=str(e))

    segments = drafts
    stats = None
    if request.optimize:
        segments = optimize(drafts, options)
        stats = OptimizationStatsModel(**asdict(optimization_stats(drafts, segments)))

    return SegmentsResponse(
        segments=_to_models(segments),
        generation_stats=GenerationStatsModel(**asdict(generation_stats(drafts))),
        optimization_stats=stats,
    )


@app.post(
    "/optimize",
    response_model=SegmentsResponse,
    tags=["segments"],
    summary="Optimize an existing segment list",
    description=(
        "Runs timing repair, merge, split and confidence smoothing (each "
        "individually switchable) and renumbers the result."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Segments are unsorted or malformed"},
    },
)
def optimize_segments(request: OptimizeRequest) -> SegmentsResponse:
    options = _resolve_options(request.options)
    original = [Segment(**s.model_dump()) for s in request.segments]
    try:
        optimized = optimize(original, options)
    except SegmentationError as e:
        logger.warning("Rejected segment list: %s", e)
        raise HTTPException(status_code=422, detail=str(e))

    return SegmentsResponse(
        segments=_to_models(optimized),
        optimization_stats=OptimizationStatsModel(**asdict(optimization_stats(original, optimized))),
    )


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the subtitle-segmenter-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
