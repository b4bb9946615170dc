"""Pydantic data models for the analysis pipeline."""

from .enums import (
    ArtifactTag,
    BoundaryKind,
    DecisionBasis,
    IntentTag,
    Role,
    SegmentationMode,
    SeparatorKind,
)
from .turns import AnalysisResult, Turn, TurnGroup

__all__ = [
    # Enums
    "Role",
    "SegmentationMode",
    "BoundaryKind",
    "SeparatorKind",
    "DecisionBasis",
    "IntentTag",
    "ArtifactTag",
    # Turns
    "Turn",
    "TurnGroup",
    "AnalysisResult",
]
