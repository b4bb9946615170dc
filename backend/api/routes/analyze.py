"""
Analyze Route

Splits pasted transcript text into attributed turns.

The analyzer is synchronous and fast, so results are returned inline
rather than through a background run.
"""

import time

import structlog
from fastapi import APIRouter, HTTPException

from backend.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    BlockTrace,
    SeparatorTrace,
    SignalResponse,
    TraceResponse,
)
from chatsplit.config.markers import MarkerTableError
from chatsplit.pipeline import AnalysisInvariantError, AnalyzerConfig, analyze_with_trace

logger = structlog.get_logger(__name__)

router = APIRouter()


def _config_from_request(request: AnalyzeRequest) -> AnalyzerConfig:
    return AnalyzerConfig(
        extra_markers=request.extra_markers,
        weight_overrides=request.weight_overrides,
    )


def _run(request: AnalyzeRequest):
    started = time.perf_counter()
    try:
        result, trace = analyze_with_trace(request.text, _config_from_request(request))
    except MarkerTableError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AnalysisInvariantError as e:
        logger.error("analysis_failed", error=str(e), length=len(request.text))
        raise HTTPException(status_code=500, detail=f"Analysis invariant violated: {e}")
    duration_ms = (time.perf_counter() - started) * 1000
    return result, trace, duration_ms


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze_text(request: AnalyzeRequest) -> AnalyzeResponse:
    """
    Split a pasted transcript into turns.

    Args:
        request: Transcript text plus optional marker and weight additions

    Returns:
        AnalyzeResponse with turns, groups and summary counts
    """
    result, _, duration_ms = _run(request)
    return AnalyzeResponse.from_result(result, duration_ms)


@router.post("/analyze/trace", response_model=TraceResponse)
def analyze_text_with_trace(request: AnalyzeRequest) -> TraceResponse:
    """
    Split a pasted transcript and return every stage's intermediate output.

    Each block carries the rules that fired for it, so the UI can show
    why a turn was attributed to its role.
    """
    result, trace, duration_ms = _run(request)

    dropped = set(trace.dropped_blocks)
    decisions = iter(trace.decisions)

    blocks = []
    for index, block in enumerate(trace.blocks):
        entry = BlockTrace(
            index=index,
            start=block.start,
            end=block.end,
            boundary=block.boundary.value,
            marker_text=block.marker_text,
            dropped=index in dropped,
        )
        if index not in dropped:
            decision = next(decisions)
            entry.role = decision.role.value
            entry.basis = decision.basis.value
            entry.confidence = decision.confidence
            entry.assistant_score = decision.assistant_score
            entry.user_score = decision.user_score
            entry.signals = [
                SignalResponse(name=s.name, target=s.target.value, weight=s.weight)
                for s in decision.signals
            ]
        blocks.append(entry)

    return TraceResponse(
        mode=result.mode.value,
        markers=[
            {
                "position": m.position,
                "role": m.role.value,
                "text": m.matched_text,
                "providers": list(m.providers),
            }
            for m in trace.markers
        ],
        fences=[
            {"start": f.start, "end": f.end, "closed": f.closed}
            for f in trace.fences
        ],
        blocks=blocks,
        separators=[
            SeparatorTrace(start=s.start, end=s.end, kind=s.kind.value)
            for s in trace.separators
        ],
        result=AnalyzeResponse.from_result(result, duration_ms),
    )
