"""Analysis Orchestrator - Coordinates all pipeline stages.

Philosophy: "Structure first, interpretation later."

DETERMINISTIC PIPELINE:
- Each stage is a forward-only transformation of the previous output
- Every stage result is kept in an inspectable AnalysisTrace
- Malformed input never raises; the only reportable failure is a
  coverage violation, raised in strict mode and logged otherwise

This orchestrator runs the stages in sequence for one transcript string.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog

from chatsplit.config.lexicon import Lexicon, load_lexicon
from chatsplit.config.markers import MarkerPair, MarkerTable, build_marker_table, load_marker_pairs
from chatsplit.config.settings import Settings, get_settings
from chatsplit.models import AnalysisResult, SegmentationMode, Turn
from chatsplit.pipeline.models import AnalysisTrace, AnalyzerConfig, SegmentationResult
from chatsplit.pipeline.stages import (
    LexiconMatcher,
    classify_roles,
    clean_turn_text,
    detect_markers,
    detect_provider,
    extract_features,
    get_matcher,
    group_turns,
    scan_fences,
    score_all,
    segment,
    smooth_groups,
)

logger = structlog.get_logger(__name__)


class AnalysisInvariantError(Exception):
    """Blocks and separators do not reconstruct the input."""
    pass


# =============================================================================
# Table Resolution
# =============================================================================

@lru_cache(maxsize=8)
def _markers_from_file(path: Path) -> tuple[MarkerPair, ...]:
    return tuple(load_marker_pairs(path))


@lru_cache(maxsize=8)
def _lexicon_from_file(path: Path) -> Lexicon:
    return load_lexicon(path)


@lru_cache(maxsize=1)
def _builtin_marker_table() -> MarkerTable:
    return build_marker_table()


def resolve_marker_table(config: AnalyzerConfig, settings: Settings) -> MarkerTable:
    """Built-in markers plus settings-file and per-call extras."""
    extra: list[MarkerPair] = []
    if settings.extra_markers_path is not None:
        extra.extend(_markers_from_file(settings.extra_markers_path))
    extra.extend(config.extra_markers)
    if not extra:
        return _builtin_marker_table()
    return build_marker_table(extra)


def resolve_matcher(config: AnalyzerConfig, settings: Settings) -> LexiconMatcher:
    """Per-call lexicon, else the settings file, else the built-in tables."""
    if config.lexicon is not None:
        return get_matcher(config.lexicon)
    if settings.lexicon_path is not None:
        return get_matcher(_lexicon_from_file(settings.lexicon_path))
    return get_matcher()


# =============================================================================
# Coverage Validation
# =============================================================================

def check_coverage(text: str, segmentation: SegmentationResult) -> list[str]:
    """List every way blocks and separators fail to tile the input."""
    problems = []
    spans = sorted(
        [(b.start, b.end, "block") for b in segmentation.blocks]
        + [(s.start, s.end, s.kind.value) for s in segmentation.separators]
    )

    cursor = 0
    for start, end, kind in spans:
        if start != cursor:
            problems.append(f"{kind} span starts at {start}, expected {cursor}")
        if end < start:
            problems.append(f"{kind} span [{start}, {end}) is inverted")
        cursor = max(cursor, end)
    if cursor != len(text):
        problems.append(f"coverage ends at {cursor}, input length is {len(text)}")

    for block in segmentation.blocks:
        if block.raw_text != text[block.start:block.end]:
            problems.append(f"block [{block.start}, {block.end}) text does not match input")

    return problems


def _enforce_coverage(text: str, segmentation: SegmentationResult, strict: bool) -> None:
    problems = check_coverage(text, segmentation)
    if not problems:
        return
    if strict:
        raise AnalysisInvariantError("; ".join(problems))
    logger.error("coverage_invariant_violated", problems=problems, length=len(text))


# =============================================================================
# Main Entry Points
# =============================================================================

def analyze_with_trace(
    raw_text: str,
    config: Optional[AnalyzerConfig] = None,
) -> tuple[AnalysisResult, AnalysisTrace]:
    """Analyze a transcript and keep every intermediate stage output.

    Args:
        raw_text: Copy-pasted conversation text.
        config: Optional per-call additions to markers, lexicon and weights.

    Returns:
        (AnalysisResult, AnalysisTrace)

    Raises:
        AnalysisInvariantError: If coverage fails and strict checking is on.
    """
    config = config or AnalyzerConfig()
    settings = get_settings()
    strict = settings.strict_invariants if config.strict_invariants is None else config.strict_invariants

    marker_table = resolve_marker_table(config, settings)
    matcher = resolve_matcher(config, settings)
    trace = AnalysisTrace()

    # Stages 1-2: markers and fences
    trace.markers = detect_markers(raw_text, marker_table)
    trace.fences = scan_fences(raw_text)

    # Stage 3: segmentation
    segmentation = segment(raw_text, trace.markers, trace.fences, settings)
    trace.segmentation = segmentation
    _enforce_coverage(raw_text, segmentation, strict)

    # Stage 7 runs first on each block: empty cleaned text yields no turn
    kept = []
    for index, block in enumerate(segmentation.blocks):
        cleaned = clean_turn_text(block.raw_text)
        if cleaned.text:
            kept.append((block, cleaned.text))
        else:
            trace.dropped_blocks.append(index)

    blocks = [block for block, _ in kept]
    features = [extract_features(text) for _, text in kept]

    # Stages 4-5: roles and confidence
    trace.decisions = classify_roles(blocks, features, settings, config.weight_overrides)
    score_all(trace.decisions, settings)

    # Stages 6 and 8: intent, topic and artifact tags
    turns = []
    for (block, text), block_features, decision in zip(kept, features, trace.decisions):
        turns.append(
            Turn(
                role=decision.role,
                text=text,
                confidence=decision.confidence,
                intent=matcher.intents(block_features),
                topic=matcher.topics(text),
                artifact=matcher.artifacts(text, block_features),
                start=block.start,
                end=block.end,
            )
        )

    # Stage 9: grouping, then label smoothing within each group
    groups = group_turns(turns, settings.group_similarity_threshold)
    groups = smooth_groups(turns, groups)

    # Stage 10: provider
    trace.provider = detect_provider(raw_text, trace.markers)

    result = AnalysisResult(
        turns=turns,
        groups=groups,
        mode=segmentation.mode,
        marker_count=len(trace.markers),
        fence_count=len(trace.fences),
        provider=trace.provider.provider,
        provider_confidence=trace.provider.confidence,
    )

    if result.mode != SegmentationMode.EMPTY:
        logger.info(
            "analysis_complete",
            mode=result.mode.value,
            turns=len(turns),
            groups=len(groups),
            markers=result.marker_count,
            fences=result.fence_count,
            provider=result.provider,
            dropped_blocks=len(trace.dropped_blocks),
        )

    return result, trace


def analyze(raw_text: str, config: Optional[AnalyzerConfig] = None) -> AnalysisResult:
    """Split a copy-pasted transcript into attributed, annotated turns.

    Deterministic and side-effect free: the same text and config always
    yield an identical result.
    """
    result, _ = analyze_with_trace(raw_text, config)
    return result
