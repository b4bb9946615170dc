"""Evaluation harness - Measure segmentation and attribution accuracy.

Metrics per labelled transcript:
- Role accuracy: share of expected turns whose text is found in a detected
  turn with the same role (matched on a leading snippet of the expected text)
- Boundary score: 1 - |detected - expected| / max(detected, expected)
- Overall score: 60% role accuracy + 40% boundary score

A case passes at an overall score of PASS_THRESHOLD or above.
"""

import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field, TypeAdapter

from chatsplit.models import Role, Turn
from chatsplit.pipeline import AnalyzerConfig, analyze

logger = structlog.get_logger(__name__)


ROLE_WEIGHT = 0.6
BOUNDARY_WEIGHT = 0.4
PASS_THRESHOLD = 0.7

SNIPPET_CHARS = 50
SHORT_SNIPPET_CHARS = 20


# =============================================================================
# Models
# =============================================================================

class LabeledTurn(BaseModel):
    """Ground-truth speaker for a piece of transcript text."""

    role: Role = Field(..., description="Expected speaker")
    text: str = Field(..., description="Leading text of the expected turn")


class EvaluationCase(BaseModel):
    """One labelled transcript."""

    id: str = Field(..., description="Stable case identifier")
    name: str = Field(..., description="Short human-readable name")
    description: str = Field(default="", description="What the case exercises")
    raw_text: str = Field(..., description="Transcript as it would be pasted")
    expected_turns: list[LabeledTurn] = Field(default_factory=list)
    expected_turn_count: int = Field(..., ge=0, description="Expected number of turns")


class CaseResult(BaseModel):
    """Scores for one case."""

    id: str
    name: str
    detected_count: int
    expected_count: int
    role_accuracy: float
    boundary_score: float
    overall_score: float
    passed: bool
    details: list[str] = Field(default_factory=list)


class EvaluationReport(BaseModel):
    """Scores for a suite of cases."""

    results: list[CaseResult] = Field(default_factory=list)
    average_role_accuracy: float = 0.0
    average_boundary_score: float = 0.0
    average_overall_score: float = 0.0
    passed: int = 0


# =============================================================================
# Metrics
# =============================================================================

def _find_turn(turns: list[Turn], expected_text: str) -> Optional[Turn]:
    snippet = expected_text[:SNIPPET_CHARS].lower()
    for turn in turns:
        if snippet in turn.text.lower():
            return turn
    short = expected_text[:SHORT_SNIPPET_CHARS].lower()
    for turn in turns:
        if short in turn.text.lower():
            return turn
    return None


def role_accuracy(turns: list[Turn], expected: list[LabeledTurn]) -> tuple[float, list[str]]:
    """Share of expected turns found with the right role, plus mismatch notes."""
    if not expected:
        return 1.0, []
    if not turns:
        return 0.0, ["no turns detected"]

    correct = 0
    details = []
    for label in expected:
        turn = _find_turn(turns, label.text)
        if turn is None:
            details.append(f"'{label.text[:40]}' not found in any turn")
        elif turn.role != label.role:
            details.append(
                f"'{label.text[:40]}' expected={label.role.value} got={turn.role.value}"
            )
        else:
            correct += 1

    return correct / len(expected), details


def boundary_score(detected: int, expected: int) -> float:
    """How close the detected turn count is to the expected one."""
    if expected == 0:
        return 1.0 if detected == 0 else 0.0
    return max(0.0, 1.0 - abs(detected - expected) / max(detected, expected))


# =============================================================================
# Runner
# =============================================================================

def evaluate_case(case: EvaluationCase, config: Optional[AnalyzerConfig] = None) -> CaseResult:
    """Analyze one labelled transcript and score it."""
    result = analyze(case.raw_text, config)
    accuracy, details = role_accuracy(result.turns, case.expected_turns)
    boundary = boundary_score(len(result.turns), case.expected_turn_count)
    overall = ROLE_WEIGHT * accuracy + BOUNDARY_WEIGHT * boundary

    return CaseResult(
        id=case.id,
        name=case.name,
        detected_count=len(result.turns),
        expected_count=case.expected_turn_count,
        role_accuracy=round(accuracy, 4),
        boundary_score=round(boundary, 4),
        overall_score=round(overall, 4),
        passed=overall >= PASS_THRESHOLD,
        details=details,
    )


def evaluate(
    cases: list[EvaluationCase],
    config: Optional[AnalyzerConfig] = None,
) -> EvaluationReport:
    """Score every case and average the metrics.

    Args:
        cases: Labelled transcripts to run.
        config: Optional analyzer configuration shared by all cases.

    Returns:
        EvaluationReport with per-case results and averages.
    """
    results = [evaluate_case(case, config) for case in cases]
    report = EvaluationReport(results=results)

    if results:
        count = len(results)
        report.average_role_accuracy = round(sum(r.role_accuracy for r in results) / count, 4)
        report.average_boundary_score = round(sum(r.boundary_score for r in results) / count, 4)
        report.average_overall_score = round(sum(r.overall_score for r in results) / count, 4)
        report.passed = sum(1 for r in results if r.passed)

    logger.info(
        "evaluation_complete",
        cases=len(results),
        passed=report.passed,
        overall=report.average_overall_score,
    )
    return report


def load_cases(path: Path) -> list[EvaluationCase]:
    """Load labelled cases from a JSON list file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return TypeAdapter(list[EvaluationCase]).validate_python(data)
