"""Pipeline stages, in data-flow order."""

from chatsplit.pipeline.stages.markers import detect_markers
from chatsplit.pipeline.stages.fences import FenceIndex, scan_fences, strip_citations
from chatsplit.pipeline.stages.boundary import segment
from chatsplit.pipeline.stages.features import BlockFeatures, extract_features
from chatsplit.pipeline.stages.roles import classify_roles, decide_role
from chatsplit.pipeline.stages.confidence import score_all, score_confidence
from chatsplit.pipeline.stages.annotations import LexiconMatcher, get_matcher
from chatsplit.pipeline.stages.text_cleaner import clean_turn_text
from chatsplit.pipeline.stages.grouping import group_turns, smooth_groups
from chatsplit.pipeline.stages.provider import detect_provider

__all__ = [
    "detect_markers",
    "FenceIndex",
    "scan_fences",
    "strip_citations",
    "segment",
    "BlockFeatures",
    "extract_features",
    "classify_roles",
    "decide_role",
    "score_all",
    "score_confidence",
    "LexiconMatcher",
    "get_matcher",
    "clean_turn_text",
    "group_turns",
    "smooth_groups",
    "detect_provider",
]
