"""Stage 10: Provider Detection - Guess which chat UI produced the paste.

Two kinds of evidence, scored the same way:
- weighted patterns over the raw text (assistant names, model names,
  UI chrome such as "Thought for 12 seconds" or "他の回答案")
- marker lines whose phrase belongs to exactly one provider

A pattern or marker provider seen n times adds weight * (1 + log2(min(n, 5))),
so repetition helps with diminishing returns. Confidence mixes absolute
strength (saturating at FULL_SCORE) and the lead over the runner-up.

Purely additive: detection never touches blocks, roles or tags.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass

import structlog

from chatsplit.pipeline.models import MarkerHit, ProviderGuess

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProviderRule:
    """One weighted provider pattern."""
    provider: str
    pattern: re.Pattern
    weight: float


def _rule(provider: str, pattern: str, weight: float, flags: int = re.IGNORECASE) -> ProviderRule:
    return ProviderRule(provider, re.compile(pattern, flags), weight)


PROVIDER_RULES: list[ProviderRule] = [
    # ChatGPT
    _rule("chatgpt", r"ChatGPT said:?", 10),
    _rule("chatgpt", r"\bChatGPT\b", 8),
    _rule("chatgpt", r"\bGPT-?4\b", 8),
    _rule("chatgpt", r"\bGPT-?3\.5\b", 8),
    _rule("chatgpt", r"\bo[13]-?mini\b", 7),
    _rule("chatgpt", r"\bOpenAI\b", 6),
    _rule("chatgpt", r"^You said:?\s*$", 9, re.IGNORECASE | re.MULTILINE),
    _rule("chatgpt", r"^Thought for \d+ seconds?$", 9, re.IGNORECASE | re.MULTILINE),
    _rule("chatgpt", r"^Searched \d+ sites?$", 9, re.IGNORECASE | re.MULTILINE),
    _rule("chatgpt", r"^Analyzing", 5, re.IGNORECASE | re.MULTILINE),
    _rule("chatgpt", r"Memory updated", 7),
    # Claude
    _rule("claude", r"Claude said:?", 10),
    _rule("claude", r"\bClaude\b", 8),
    _rule("claude", r"\bClaude\s+\d+(?:\.\d+)?\b", 9),
    _rule("claude", r"\bAnthropic\b", 7),
    _rule("claude", r"\bHuman:\s*$", 8, re.IGNORECASE | re.MULTILINE),
    _rule("claude", r"\bAssistant:\s*$", 5, re.IGNORECASE | re.MULTILINE),
    # Gemini
    _rule("gemini", r"Gemini\s*の回答", 10, 0),
    _rule("gemini", r"Gemini\s*の返答", 10, 0),
    _rule("gemini", r"Gemini said:?", 10),
    _rule("gemini", r"\bGemini\b", 8),
    _rule("gemini", r"\bGemini\s+\d+(?:\.\d+)?\b", 9),
    _rule("gemini", r"あなたのプロンプト", 10, 0),
    _rule("gemini", r"ジェミニ", 8, 0),
    _rule("gemini", r"回答案を表示", 8, 0),
    _rule("gemini", r"他の回答案", 8, 0),
]

# Marker phrases shared by every UI say nothing about the provider
GENERIC_PROVIDER = "generic"
MARKER_WEIGHT = 10.0

MAX_COUNTED_MATCHES = 5
FULL_SCORE = 20.0
STRENGTH_WEIGHT = 0.6
LEAD_WEIGHT = 0.4


def repeated_weight(weight: float, count: int) -> float:
    """Weight of evidence seen `count` times (count >= 1)."""
    return weight * (1 + math.log2(min(count, MAX_COUNTED_MATCHES)))


def score_providers(text: str, markers: list[MarkerHit]) -> dict[str, float]:
    """Raw evidence score per provider; providers without evidence are absent."""
    scores: Counter = Counter()

    for rule in PROVIDER_RULES:
        count = len(rule.pattern.findall(text))
        if count:
            scores[rule.provider] += repeated_weight(rule.weight, count)

    marker_counts = Counter(
        hit.providers[0]
        for hit in markers
        if len(hit.providers) == 1 and hit.providers[0] != GENERIC_PROVIDER
    )
    for provider, count in marker_counts.items():
        scores[provider] += repeated_weight(MARKER_WEIGHT, count)

    return dict(scores)


def detect_provider(text: str, markers: list[MarkerHit]) -> ProviderGuess:
    """Guess the source chat UI.

    Args:
        text: Raw transcript text
        markers: Marker hits, each carrying the providers of its phrase

    Returns:
        ProviderGuess; provider is None and confidence 0 without evidence
    """
    scores = score_providers(text, markers)
    if not scores:
        return ProviderGuess(scores=scores)

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    provider, top = ranked[0]
    second = ranked[1][1] if len(ranked) > 1 else 0.0
    total = sum(scores.values())

    strength = min(top / FULL_SCORE, 1.0)
    lead = (top - second) / total
    confidence = round(min(strength * STRENGTH_WEIGHT + lead * LEAD_WEIGHT, 1.0), 2)

    logger.debug("provider_detected", provider=provider, confidence=confidence, scores=scores)
    return ProviderGuess(provider=provider, confidence=confidence, scores=scores)
