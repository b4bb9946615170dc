"""Intermediate data structures for the analysis pipeline.

These structures define the contracts between pipeline stages.
Philosophy: "Structure first, interpretation later."

Stage Flow:
1. Marker Detection      → List[MarkerHit]
2. Fence Guard           → List[FenceSpan]
3. Boundary Segmentation → SegmentationResult (blocks + separators)
4. Role Classification   → List[RoleDecision]
5. Confidence Scoring    → float per block
6. Annotation            → intent / topic / artifact tags per turn
7. Turn Grouping         → List[TurnGroup], then group smoothing
8. Provider Detection    → ProviderGuess

Everything here is created and consumed within one analyze call.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from chatsplit.config.lexicon import Lexicon
from chatsplit.config.markers import MarkerPair
from chatsplit.models import (
    BoundaryKind,
    DecisionBasis,
    Role,
    SegmentationMode,
    SeparatorKind,
)


# =============================================================================
# Stage 1-2: Markers and Fences
# =============================================================================

@dataclass(frozen=True)
class MarkerHit:
    """A whole line announcing the next speaker."""
    position: int       # Offset of the marker line start
    line_end: int       # Offset just past the marker line, newline included
    role: Role
    matched_text: str
    providers: tuple[str, ...] = ()    # Chat UIs that use this phrase


@dataclass(frozen=True)
class FenceSpan:
    """A fenced code region; no boundary may fall strictly inside it."""
    start: int
    end: int
    closed: bool = True


# =============================================================================
# Stage 3: Segmentation
# =============================================================================

@dataclass
class Block:
    """Contiguous span of the input that becomes at most one turn."""
    start: int
    end: int
    raw_text: str
    boundary: BoundaryKind
    marker_role: Optional[Role] = None
    marker_text: str = ""


@dataclass(frozen=True)
class Separator:
    """Discarded span between blocks."""
    start: int
    end: int
    kind: SeparatorKind


@dataclass
class SegmentationResult:
    """Blocks and separators that together tile the input."""
    mode: SegmentationMode
    blocks: list[Block] = field(default_factory=list)
    separators: list[Separator] = field(default_factory=list)


# =============================================================================
# Stage 4-5: Roles and Confidence
# =============================================================================

@dataclass(frozen=True)
class RoleSignal:
    """A rule that fired for a block."""
    name: str
    target: Role
    weight: float


@dataclass
class RoleDecision:
    """Inspectable outcome of role classification for one block."""
    role: Role
    basis: DecisionBasis
    signals: list[RoleSignal] = field(default_factory=list)
    assistant_score: float = 0.0
    user_score: float = 0.0
    confidence: float = 0.0

    @property
    def margin(self) -> float:
        """Absolute weight difference between the two roles."""
        return abs(self.assistant_score - self.user_score)

    @property
    def agreeing_signals(self) -> int:
        """Number of fired rules pointing at the chosen role."""
        return sum(1 for signal in self.signals if signal.target == self.role)


# =============================================================================
# Provider Detection
# =============================================================================

@dataclass
class ProviderGuess:
    """Which chat UI the transcript was most likely copied from."""
    provider: Optional[str] = None      # None when nothing matched
    confidence: float = 0.0
    scores: dict[str, float] = field(default_factory=dict)


# =============================================================================
# Full Trace
# =============================================================================

@dataclass
class AnalysisTrace:
    """Inspectable trace of one analyze call."""
    markers: list[MarkerHit] = field(default_factory=list)
    fences: list[FenceSpan] = field(default_factory=list)
    segmentation: Optional[SegmentationResult] = None
    decisions: list[RoleDecision] = field(default_factory=list)
    dropped_blocks: list[int] = field(default_factory=list)
    provider: Optional[ProviderGuess] = None

    @property
    def blocks(self) -> list[Block]:
        return self.segmentation.blocks if self.segmentation else []

    @property
    def separators(self) -> list[Separator]:
        return self.segmentation.separators if self.segmentation else []


# =============================================================================
# Per-call Configuration
# =============================================================================

class AnalyzerConfig(BaseModel):
    """Optional, additive configuration for one analyze call.

    Unset fields fall back to environment settings and built-in tables.
    """

    extra_markers: list[MarkerPair] = Field(
        default_factory=list, description="Marker pairs added to the built-in table"
    )
    lexicon: Optional[Lexicon] = Field(
        None, description="Replacement intent/topic/artifact tables"
    )
    weight_overrides: dict[str, float] = Field(
        default_factory=dict, description="Role rule name → replacement weight"
    )
    strict_invariants: Optional[bool] = Field(
        None, description="Raise on coverage violations instead of logging"
    )
