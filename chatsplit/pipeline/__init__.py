"""Conversation analysis pipeline.

Philosophy: "Structure first, interpretation later."

- Provider markers drive segmentation whenever a transcript has them
- Otherwise ordered structural and lexical rules decide boundaries and roles
- No cut ever lands inside fenced code
- Every stage output is inspectable through AnalysisTrace

Usage:
    from chatsplit.pipeline import analyze

    result = analyze(pasted_text)
    for turn in result.turns:
        print(turn.role.value, turn.confidence, turn.text[:40])
"""

from chatsplit.pipeline.orchestrator import AnalysisInvariantError, analyze, analyze_with_trace, check_coverage
from chatsplit.pipeline.models import (
    # Stages 1-2
    MarkerHit,
    FenceSpan,
    # Stage 3
    Block,
    Separator,
    SegmentationResult,
    # Stages 4-5
    RoleSignal,
    RoleDecision,
    # Trace and configuration
    AnalysisTrace,
    AnalyzerConfig,
)

__all__ = [
    "analyze",
    "analyze_with_trace",
    "check_coverage",
    "AnalysisInvariantError",
    "MarkerHit",
    "FenceSpan",
    "Block",
    "Separator",
    "SegmentationResult",
    "RoleSignal",
    "RoleDecision",
    "AnalysisTrace",
    "AnalyzerConfig",
]
