"""
Response schemas for the API.

These define the output structure for API endpoints.
All schemas are designed to be self-describing for frontend consumption.

Key Design Decisions:
- Turns and groups reuse the chatsplit models unchanged
- Every list includes count for the paste-box summary line
- Traces expose each block's fired rules so the UI can explain a role
"""

from typing import Optional

from pydantic import BaseModel, Field

from chatsplit.models import AnalysisResult, Turn, TurnGroup


# =============================================================================
# Analysis Response
# =============================================================================

class AnalyzeResponse(BaseModel):
    """Turns and groups for one pasted transcript."""
    turns: list[Turn] = Field(default_factory=list)
    groups: list[TurnGroup] = Field(default_factory=list)
    turn_count: int = 0
    group_count: int = 0
    mode: str = Field(..., description="Segmentation algorithm used")
    marker_count: int = 0
    fence_count: int = 0
    provider: Optional[str] = Field(None, description="Detected chat UI, if any")
    provider_confidence: float = 0.0
    duration_ms: float = Field(0.0, description="Server-side analysis time")

    @classmethod
    def from_result(cls, result: AnalysisResult, duration_ms: float = 0.0) -> "AnalyzeResponse":
        return cls(
            turns=result.turns,
            groups=result.groups,
            turn_count=len(result.turns),
            group_count=len(result.groups),
            mode=result.mode.value,
            marker_count=result.marker_count,
            fence_count=result.fence_count,
            provider=result.provider,
            provider_confidence=result.provider_confidence,
            duration_ms=round(duration_ms, 2),
        )


# =============================================================================
# Trace Response
# =============================================================================

class SignalResponse(BaseModel):
    """A role rule that fired for a block."""
    name: str
    target: str
    weight: float


class BlockTrace(BaseModel):
    """Segmentation and role decision for one block."""
    index: int
    start: int
    end: int
    boundary: str = Field(..., description="Why the block starts where it does")
    marker_text: str = ""
    dropped: bool = Field(False, description="Block cleaned to empty text and yielded no turn")
    role: Optional[str] = None
    basis: Optional[str] = None
    confidence: Optional[float] = None
    assistant_score: float = 0.0
    user_score: float = 0.0
    signals: list[SignalResponse] = Field(default_factory=list)


class SeparatorTrace(BaseModel):
    """Discarded span between blocks."""
    start: int
    end: int
    kind: str


class TraceResponse(BaseModel):
    """Full stage trace for one pasted transcript."""
    mode: str
    markers: list[dict] = Field(default_factory=list)
    fences: list[dict] = Field(default_factory=list)
    blocks: list[BlockTrace] = Field(default_factory=list)
    separators: list[SeparatorTrace] = Field(default_factory=list)
    result: AnalyzeResponse


# =============================================================================
# Marker Table Response
# =============================================================================

class MarkerPairResponse(BaseModel):
    """Marker phrases for one provider and locale."""
    provider: str
    locale: str
    user: list[str]
    assistant: list[str]


class MarkerListResponse(BaseModel):
    """Built-in marker table."""
    markers: list[MarkerPairResponse]
    count: int
