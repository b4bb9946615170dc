"""Stage 5: Confidence Scoring - Calibrated certainty of each role.

Bands:
- explicit marker:                                  1.0
- corroborated (>= 2 agreeing signals, strong margin): 0.7 - 0.95
- single or weak signal:                            0.4 - 0.6
- positional tie-break:                             0.45
- no usable signal:                                 0.3

Within the corroborated band the score grows with both the margin and the
number of agreeing signals and saturates below 0.95. Confidence never
feeds back into the role.
"""

import math

from chatsplit.config.settings import Settings
from chatsplit.models import DecisionBasis
from chatsplit.pipeline.models import RoleDecision


MARKER_CONFIDENCE = 1.0
POSITIONAL_CONFIDENCE = 0.45
FALLBACK_CONFIDENCE = 0.3

CORROBORATED_FLOOR = 0.7
CORROBORATED_SPAN = 0.25
WEAK_FLOOR = 0.4
WEAK_SPAN = 0.2


def score_confidence(decision: RoleDecision, settings: Settings) -> float:
    """Map a role decision to a confidence in [0, 1]."""
    if decision.basis == DecisionBasis.MARKER:
        return MARKER_CONFIDENCE
    if decision.basis == DecisionBasis.POSITIONAL:
        return POSITIONAL_CONFIDENCE
    if decision.basis == DecisionBasis.FALLBACK:
        return FALLBACK_CONFIDENCE

    margin = decision.margin
    agreeing = decision.agreeing_signals
    threshold = settings.corroboration_margin

    if agreeing >= 2 and margin >= threshold:
        excess = (margin - threshold) + 0.5 * (agreeing - 2)
        score = CORROBORATED_FLOOR + CORROBORATED_SPAN * (1.0 - math.exp(-excess / 4.0))
    else:
        strength = min(margin / threshold, 1.0) if threshold > 0 else 1.0
        score = WEAK_FLOOR + WEAK_SPAN * strength

    return round(min(max(score, 0.0), 1.0), 3)


def score_all(decisions: list[RoleDecision], settings: Settings) -> list[float]:
    """Score every decision in place and return the confidences."""
    for decision in decisions:
        decision.confidence = score_confidence(decision, settings)
    return [decision.confidence for decision in decisions]
