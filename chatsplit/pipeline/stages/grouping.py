"""Stage 9: Turn Grouping - Cluster adjacent turns by subject.

Adjacent turns stay in one group while they look alike. Similarity mixes
two measures:
- keyword overlap: share of the smaller keyword set with a fuzzy match
  (rapidfuzz ratio) in the other set, so "decorator" meets "decorators"
- topic Jaccard over dictionary topics ("other:" fallbacks excluded)

Forced breaks: a turn with the `meta` intent ("start over", "shorter")
or two disjoint non-empty topic sets. Turns too small to judge (fewer than
MIN_KEYWORDS keywords and no topic) join the running group.

Grouping never touches roles or boundaries. Smoothing afterwards only adds
tags: topics for members that have none, and the explanation intent for
answers to questions.
"""

import re
from collections import Counter
from typing import Optional

import structlog
from rapidfuzz import fuzz

from chatsplit.models import IntentTag, Role, Turn, TurnGroup
from chatsplit.pipeline.stages.annotations import OTHER_TOPIC_PREFIX

logger = structlog.get_logger(__name__)


KEYWORD_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_]{2,}|[゠-ヿ一-鿿]{2,}")
KEYWORD_STOPWORDS = {
    "the", "and", "for", "that", "this", "with", "you", "your", "are", "was", "but",
    "not", "have", "has", "can", "will", "would", "could", "should", "what", "how",
    "why", "when", "where", "which", "then", "than", "there", "here", "its", "it's",
    "from", "into", "about", "just", "also", "like", "get", "use", "using", "one",
    "all", "any", "some", "more", "now", "out", "don't", "does", "did", "let", "make",
    "thanks", "thank", "please", "yes", "okay", "sure", "want", "need",
}
MAX_KEYWORDS = 30
MIN_KEYWORDS = 3
FUZZY_MATCH_SCORE = 85


def extract_keywords(text: str) -> list[str]:
    """Most frequent content words, capped at MAX_KEYWORDS."""
    words = [w.lower() for w in KEYWORD_PATTERN.findall(text)]
    counts = Counter(w for w in words if w not in KEYWORD_STOPWORDS)
    return [word for word, _ in counts.most_common(MAX_KEYWORDS)]


def keyword_overlap(left: list[str], right: list[str]) -> float:
    """Share of the smaller keyword set fuzzily present in the larger."""
    if not left or not right:
        return 0.0
    small, large = (left, right) if len(left) <= len(right) else (right, left)
    large_set = set(large)
    matched = 0
    for word in small:
        if word in large_set or any(
            fuzz.ratio(word, other) >= FUZZY_MATCH_SCORE for other in large
        ):
            matched += 1
    return matched / len(small)


def dictionary_topics(turn: Turn) -> set[str]:
    return {t for t in turn.topic if not t.startswith(OTHER_TOPIC_PREFIX)}


def topic_jaccard(left: set[str], right: set[str]) -> float:
    if not left and not right:
        return 0.0
    return len(left & right) / len(left | right)


def similarity(
    left_keywords: list[str],
    right_keywords: list[str],
    left_topics: set[str],
    right_topics: set[str],
) -> float:
    """Blend of keyword overlap and topic Jaccard in [0, 1].

    With no dictionary topic on either side, keyword overlap alone decides.
    """
    lexical = keyword_overlap(left_keywords, right_keywords)
    if not left_topics and not right_topics:
        return lexical
    return 0.5 * lexical + 0.5 * topic_jaccard(left_topics, right_topics)


def group_turns(turns: list[Turn], threshold: float) -> list[TurnGroup]:
    """Assign group_id to every turn and summarize the groups.

    Args:
        turns: Annotated turns in transcript order (group_id is set in place)
        threshold: Minimum similarity for a turn to join the previous one

    Returns:
        TurnGroups in order, covering every turn exactly once
    """
    if not turns:
        return []

    group_id = 0
    starts = [0]
    previous_keywords: Optional[list[str]] = None
    previous_topics: set[str] = set()

    for index, turn in enumerate(turns):
        keywords = extract_keywords(turn.text)
        topics = dictionary_topics(turn)

        if previous_keywords is not None:
            if IntentTag.META in turn.intent:
                new_group = True
            elif topics and previous_topics and not topics & previous_topics:
                new_group = True
            elif len(keywords) < MIN_KEYWORDS and not topics:
                new_group = False
            else:
                score = similarity(previous_keywords, keywords, previous_topics, topics)
                new_group = score < threshold

            if new_group:
                group_id += 1
                starts.append(index)

        turn.group_id = group_id
        # Tiny turns do not replace the group's reference vocabulary
        if previous_keywords is None or len(keywords) >= MIN_KEYWORDS or topics:
            previous_keywords = keywords
            previous_topics = topics

    groups = []
    for gid, start in enumerate(starts):
        end = starts[gid + 1] - 1 if gid + 1 < len(starts) else len(turns) - 1
        groups.append(summarize_group(gid, start, end, turns[start:end + 1]))

    logger.debug("turns_grouped", turns=len(turns), groups=len(groups))
    return groups


# =============================================================================
# Group Smoothing
# =============================================================================

REPRESENTATIVE_SHARE = 0.3
ANSWER_MIN_CHARS = 100


def representative_topics(members: list[Turn]) -> list[str]:
    """Dictionary topics carried by at least REPRESENTATIVE_SHARE of members.

    Most frequent first, ties by name.
    """
    counts = Counter(t for turn in members for t in dictionary_topics(turn))
    shared = [
        topic for topic, count in counts.items()
        if count / len(members) >= REPRESENTATIVE_SHARE
    ]
    return sorted(shared, key=lambda topic: (-counts[topic], topic))


def summarize_group(group_id: int, start: int, end: int, members: list[Turn]) -> TurnGroup:
    return TurnGroup(
        group_id=group_id,
        start_turn=start,
        end_turn=end,
        topics=dict(Counter(t for turn in members for t in turn.topic)),
        intents=dict(Counter(i.value for turn in members for i in turn.intent)),
    )


def smooth_groups(turns: list[Turn], groups: list[TurnGroup]) -> list[TurnGroup]:
    """Share each group's labels with members that have none.

    - A member without topics takes the group's representative topics
    - An assistant answer of ANSWER_MIN_CHARS or more right after a user
      question gains the `explanation` intent unless it already explains
      or plans

    Turns are updated in place; returns the groups with recounted tags.
    """
    smoothed = []
    filled = 0

    for group in groups:
        members = turns[group.start_turn:group.end_turn + 1]
        shared = representative_topics(members)

        for turn in members:
            if not turn.topic and shared:
                turn.topic = list(shared)
                filled += 1

        for question, answer in zip(members, members[1:]):
            if (
                question.role == Role.USER
                and IntentTag.QUESTION in question.intent
                and answer.role == Role.ASSISTANT
                and len(answer.text) >= ANSWER_MIN_CHARS
                and IntentTag.EXPLANATION not in answer.intent
                and IntentTag.PLAN not in answer.intent
            ):
                answer.intent.append(IntentTag.EXPLANATION)

        smoothed.append(summarize_group(group.group_id, group.start_turn, group.end_turn, members))

    logger.debug("groups_smoothed", groups=len(smoothed), topics_filled=filled)
    return smoothed
