"""Stage 6: Annotation - Intent, topic and artifact tags per turn.

Purely additive: tags are read off the turn text and its features and
never influence roles, boundaries or confidence. The rule tables live in
chatsplit.config.lexicon and can be replaced per call.
"""

import re
from collections import Counter
from functools import lru_cache
from typing import Optional

import structlog

from chatsplit.config.lexicon import DEFAULT_LEXICON, Lexicon
from chatsplit.models import ArtifactTag, IntentTag
from chatsplit.pipeline.stages.features import BlockFeatures

logger = structlog.get_logger(__name__)


PATTERN_FLAGS = re.IGNORECASE | re.MULTILINE

# Identifier-like terms for the "other:<term>" topic fallback:
# camelCase, PascalCase with an inner capital, ALLCAPS acronyms
IDENTIFIER_PATTERN = re.compile(
    r"(?<![\w.])(?:[a-z]+[A-Z][A-Za-z0-9]*|[A-Z][a-z0-9]+[A-Z][A-Za-z0-9]*|[A-Z]{3,}[0-9]*)(?![\w])"
)
INLINE_CODE_PATTERN = re.compile(r"`([A-Za-z_][\w.]{2,40})`")
FALLBACK_STOPWORDS = {"todo", "note", "fixme", "http", "https", "json", "yes", "okay"}

OTHER_TOPIC_PREFIX = "other:"


def _keyword_pattern(keyword: str) -> str:
    """Whole-word match for ASCII keywords, substring match otherwise."""
    escaped = re.escape(keyword)
    if keyword.isascii():
        return rf"(?<![A-Za-z0-9_]){escaped}(?![A-Za-z0-9_])"
    return escaped


class LexiconMatcher:
    """Compiled form of a Lexicon."""

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon
        self.intent_rules = [
            (rule, [re.compile(p, PATTERN_FLAGS) for p in rule.patterns])
            for rule in lexicon.intent_rules
        ]
        self.topic_patterns = [
            (tag, re.compile("|".join(_keyword_pattern(k) for k in keywords), re.IGNORECASE))
            for tag, keywords in lexicon.topics.items()
            if keywords
        ]
        self.artifact_rules = [
            (rule, [re.compile(p, PATTERN_FLAGS) for p in rule.patterns])
            for rule in lexicon.artifact_rules
        ]

    # =========================================================================
    # Intent
    # =========================================================================

    def intents(self, features: BlockFeatures) -> list[IntentTag]:
        """Intent tags in rule-table order, duplicate-free."""
        tags: list[IntentTag] = []
        length = features.prose_chars

        for rule, patterns in self.intent_rules:
            if rule.tag in tags:
                continue
            if length < rule.min_chars:
                continue
            if rule.max_chars is not None and length > rule.max_chars:
                continue
            fired = bool(rule.feature and getattr(features, rule.feature, False))
            if not fired:
                fired = any(pattern.search(features.prose) for pattern in patterns)
            if fired:
                tags.append(rule.tag)

        return tags

    # =========================================================================
    # Topic
    # =========================================================================

    def topics(self, text: str) -> list[str]:
        """Dictionary topics by descending hit count, else one fallback term."""
        counts = []
        for tag, pattern in self.topic_patterns:
            hits = len(pattern.findall(text))
            if hits:
                counts.append((tag, hits))

        if counts:
            counts.sort(key=lambda item: item[1], reverse=True)
            return [tag for tag, _ in counts]

        term = fallback_term(text)
        return [f"{OTHER_TOPIC_PREFIX}{term}"] if term else []

    # =========================================================================
    # Artifact
    # =========================================================================

    def artifacts(self, text: str, features: BlockFeatures) -> list[ArtifactTag]:
        """Content-type tags in rule-table order, duplicate-free."""
        tags: list[ArtifactTag] = []
        for rule, patterns in self.artifact_rules:
            if rule.tag in tags:
                continue
            fired = bool(rule.feature and getattr(features, rule.feature, False))
            if not fired:
                fired = any(pattern.search(text) for pattern in patterns)
            if fired:
                tags.append(rule.tag)
        return tags


def fallback_term(text: str) -> str:
    """Most frequent identifier-like term, ties broken by first occurrence."""
    found = {m.start(): m.group(0) for m in IDENTIFIER_PATTERN.finditer(text)}
    found.update((m.start(1), m.group(1)) for m in INLINE_CODE_PATTERN.finditer(text))
    terms = [found[pos].lower() for pos in sorted(found)]
    terms = [t for t in terms if t not in FALLBACK_STOPWORDS]
    if not terms:
        return ""
    return Counter(terms).most_common(1)[0][0]


@lru_cache(maxsize=1)
def default_matcher() -> LexiconMatcher:
    """Matcher for the built-in lexicon, compiled once."""
    return LexiconMatcher(DEFAULT_LEXICON)


def get_matcher(lexicon: Optional[Lexicon] = None) -> LexiconMatcher:
    if lexicon is None:
        return default_matcher()
    return LexiconMatcher(lexicon)
