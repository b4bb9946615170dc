"""Stage 3: Boundary Segmentation - Partition the transcript into blocks.

Approach:
1. Classify every line once (content / blank / UI noise), fence-aware
2. Marker-driven cuts when the transcript carries markers for both roles
3. Otherwise an ordered table of paragraph boundary rules
4. Blocks and separators tile the input exactly

Guarantees:
- No cut ever lands strictly inside a fenced region
- Cutting is linear in the number of lines; the running block keeps
  aggregate statistics instead of re-reading its own text
- Blocks are never forced to alternate between speakers
"""

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

from chatsplit.config.settings import Settings
from chatsplit.models import BoundaryKind, Role, SegmentationMode, SeparatorKind
from chatsplit.pipeline.models import Block, FenceSpan, MarkerHit, SegmentationResult, Separator
from chatsplit.pipeline.stages.features import (
    BlockFeatures,
    FENCE_LINE_PATTERN,
    extract_features,
    is_error_log,
)
from chatsplit.pipeline.stages.fences import FenceIndex, is_citation_only, iter_lines
from chatsplit.pipeline.stages.text_cleaner import is_noise_line

logger = structlog.get_logger(__name__)


CONTENT = "content"
BLANK = "blank"
NOISE = "noise"

# Short follow-up lines ending like a finished sentence are not user turns
SENTENCE_END = (".", "。", ":", "：")
SHORT_FOLLOW_UP_CHARS = 60


# =============================================================================
# Inspectable Intermediate Structures
# =============================================================================

@dataclass
class Line:
    """One physical line with its fence-aware classification."""
    start: int
    end: int
    text: str
    kind: str
    in_fence: bool = False


@dataclass
class Piece:
    """A paragraph, or part of one, offered to the boundary rules."""
    first: int                # Index of the first line
    last: int                 # Index of the last line (inclusive)
    features: BlockFeatures
    forced: Optional[BoundaryKind] = None


@dataclass
class RunningBlock:
    """Aggregate state of the block being accumulated."""
    first: int
    last: int
    boundary: BoundaryKind
    chars: int = 0
    structural: bool = False
    error_log: bool = True
    pieces: int = 0
    first_features: Optional[BlockFeatures] = None
    last_features: Optional[BlockFeatures] = None

    def add(self, piece: Piece) -> None:
        features = piece.features
        self.last = piece.last
        self.chars += features.char_count
        self.structural = self.structural or features.structural
        self.error_log = self.error_log and features.error_log
        self.pieces += 1
        if self.first_features is None:
            self.first_features = features
        self.last_features = features


BoundaryRule = Callable[[RunningBlock, BlockFeatures, Settings], Optional[bool]]


# =============================================================================
# Line Classification
# =============================================================================

def classify_lines(text: str, fences: list[FenceSpan]) -> list[Line]:
    """Split text into lines tagged content / blank / noise.

    Every line inside a fence (blank ones included) is content.
    """
    lines: list[Line] = []
    fence_index = 0

    for start, end, line in iter_lines(text):
        while fence_index < len(fences) and fences[fence_index].end <= start:
            fence_index += 1
        in_fence = fence_index < len(fences) and fences[fence_index].start <= start

        if in_fence:
            kind = CONTENT
        elif not line.strip():
            kind = BLANK
        elif is_noise_line(line):
            kind = NOISE
        else:
            kind = CONTENT
        lines.append(Line(start=start, end=end, text=line, kind=kind, in_fence=in_fence))

    return lines


def _emit_separators(result: SegmentationResult, lines: list[Line], first: int, stop: int) -> None:
    """Cover lines[first:stop] with separators, merging runs of one kind."""
    for i in range(first, stop):
        line = lines[i]
        kind = SeparatorKind.NOISE if line.kind == NOISE else SeparatorKind.WHITESPACE
        previous = result.separators[-1] if result.separators else None
        if previous is not None and previous.kind == kind and previous.end == line.start:
            result.separators[-1] = Separator(start=previous.start, end=line.end, kind=kind)
        else:
            result.separators.append(Separator(start=line.start, end=line.end, kind=kind))


def _emit_region(
    result: SegmentationResult,
    text: str,
    lines: list[Line],
    first: int,
    stop: int,
    boundary: BoundaryKind,
    role: Optional[Role] = None,
    marker_text: str = "",
) -> None:
    """Emit lines[first:stop] as separators around at most one block.

    Leading and trailing blank/noise lines become separators; a region
    without content yields no block.
    """
    lo, hi = first, stop
    while lo < hi and lines[lo].kind != CONTENT:
        lo += 1
    while hi > lo and lines[hi - 1].kind != CONTENT:
        hi -= 1

    _emit_separators(result, lines, first, lo)
    if lo < hi:
        start, end = lines[lo].start, lines[hi - 1].end
        result.blocks.append(
            Block(
                start=start,
                end=end,
                raw_text=text[start:end],
                boundary=boundary,
                marker_role=role,
                marker_text=marker_text,
            )
        )
    _emit_separators(result, lines, hi, stop)


# =============================================================================
# Marker-Driven Segmentation
# =============================================================================

def segment_by_markers(
    text: str,
    lines: list[Line],
    markers: list[MarkerHit],
    fence_index: FenceIndex,
) -> SegmentationResult:
    """Cut at every marker line; markers inside fences cut at the fence end."""
    result = SegmentationResult(mode=SegmentationMode.MARKER)
    starts = [line.start for line in lines]

    # (cut line, content line, boundary kind, role, marker text)
    cuts: list[tuple[int, int, BoundaryKind, Role, str]] = []
    for hit in markers:
        span = fence_index.containing(hit.position)
        if span is not None:
            cut = bisect_left(starts, span.end)
            entry = (cut, cut, BoundaryKind.DEFERRED_MARKER, hit.role, hit.matched_text)
            logger.debug("marker_deferred", position=hit.position, fence_end=span.end)
        else:
            cut = bisect_left(starts, hit.position)
            entry = (cut, cut + 1, BoundaryKind.MARKER, hit.role, hit.matched_text)

        if cuts and cuts[-1][0] == cut:
            cuts[-1] = entry
        else:
            cuts.append(entry)

    _emit_region(result, text, lines, 0, cuts[0][0], BoundaryKind.INITIAL)

    for i, (cut, content, boundary, role, marker_text) in enumerate(cuts):
        stop = cuts[i + 1][0] if i + 1 < len(cuts) else len(lines)
        if content > cut:
            marker_line = lines[cut]
            result.separators.append(
                Separator(start=marker_line.start, end=marker_line.end, kind=SeparatorKind.MARKER)
            )
        _emit_region(result, text, lines, content, stop, boundary, role, marker_text)

    return result


# =============================================================================
# Heuristic Boundary Rules
# Each rule returns True (boundary), False (continue) or None (no opinion).
# The first decisive rule wins; no decision means continue.
# =============================================================================

def _rule_colon_intro(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if block.last_features.ends_with_colon and not nxt.error_log:
        return False
    return None


def _rule_opener_lead(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    """A lone opener paragraph ("Sure!", "はい、できます。") leads into the answer."""
    first = block.first_features
    if block.pieces != 1 or not first.assistant_opener or first.ends_with_question:
        return None
    if nxt.question_paragraph or nxt.starts_with_gratitude or nxt.error_log:
        return None
    return False


def _rule_leaving_error_log(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if block.error_log and not nxt.error_log:
        return True
    return None


def _rule_entering_error_log(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if nxt.error_log and not block.error_log:
        return True
    return None


def _rule_statement_run(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    """A short impersonal statement continues into more of the same answer.

    The next paragraph must be structure, an intro ending in a colon, or
    another plain statement. Questions, thanks, openers and first-person
    sentences are left to the other rules.
    """
    last = block.last_features
    if block.chars >= settings.short_block_chars or block.structural:
        return None
    if not last.ends_with_period or not last.declarative:
        return None
    if last.first_person or last.user_gratitude:
        return None
    if nxt.question_paragraph or nxt.starts_with_gratitude or nxt.user_gratitude or nxt.assistant_opener:
        return None
    if nxt.structural or nxt.ends_with_colon or (nxt.ends_with_period and not nxt.imperative):
        return False
    return None


def _rule_short_block(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if block.chars < settings.short_block_chars and not block.structural:
        return True
    return None


def _rule_gratitude(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if nxt.starts_with_gratitude:
        return True
    return None


def _rule_follow_up(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if block.chars <= settings.long_block_chars / 2:
        return None
    short_line = (
        nxt.char_count < SHORT_FOLLOW_UP_CHARS
        and not nxt.structural
        and not nxt.last_line.endswith(SENTENCE_END)
    )
    question = nxt.question_paragraph and nxt.char_count <= settings.long_block_chars
    if short_line or question:
        return True
    return None


def _rule_standalone_command(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> Optional[bool]:
    if nxt.standalone_command:
        return True
    return None


BOUNDARY_RULES: list[tuple[str, BoundaryRule]] = [
    ("colon_intro", _rule_colon_intro),
    ("opener_lead", _rule_opener_lead),
    ("leaving_error_log", _rule_leaving_error_log),
    ("entering_error_log", _rule_entering_error_log),
    ("statement_run", _rule_statement_run),
    ("short_block", _rule_short_block),
    ("gratitude", _rule_gratitude),
    ("follow_up", _rule_follow_up),
    ("standalone_command", _rule_standalone_command),
]


def decide_boundary(block: RunningBlock, nxt: BlockFeatures, settings: Settings) -> tuple[bool, str]:
    """Evaluate the rule table; returns (is_boundary, deciding rule name)."""
    for name, rule in BOUNDARY_RULES:
        verdict = rule(block, nxt, settings)
        if verdict is not None:
            return verdict, name
    return False, "default_continue"


# =============================================================================
# Heuristic Segmentation
# =============================================================================

def _paragraphs(lines: list[Line]) -> list[tuple[int, int]]:
    """Runs of non-blank lines as (first, last) inclusive index pairs."""
    runs: list[tuple[int, int]] = []
    first: Optional[int] = None
    for i, line in enumerate(lines):
        if line.kind == BLANK:
            if first is not None:
                runs.append((first, i - 1))
                first = None
        elif first is None:
            first = i
    if first is not None:
        runs.append((first, len(lines) - 1))
    return runs


def _span_text(text: str, lines: list[Line], first: int, last: int) -> str:
    return text[lines[first].start:lines[last].end]


def split_paragraph(
    text: str,
    lines: list[Line],
    first: int,
    last: int,
    fence_index: FenceIndex,
    settings: Settings,
) -> list[Piece]:
    """Split a leading prompt or report line off a paragraph when warranted.

    The first line is cut off when the remaining lines are an error log and
    it is not, or when it is a short prompt followed by a much longer
    structured chunk. Never cuts inside a fence.
    """
    whole = Piece(first=first, last=last, features=extract_features(_span_text(text, lines, first, last)))
    if last == first:
        return [whole]

    head_line = lines[first]
    if head_line.in_fence or FENCE_LINE_PATTERN.match(head_line.text):
        return [whole]
    if fence_index.is_inside(lines[first + 1].start):
        return [whole]

    head_text = head_line.text.strip()
    rest_text = _span_text(text, lines, first + 1, last)
    rest_lines = [line.text for line in lines[first + 1:last + 1]]

    if is_error_log(rest_lines) and not is_error_log([head_line.text]):
        head = Piece(first=first, last=first, features=extract_features(head_line.text))
        rest = Piece(
            first=first + 1,
            last=last,
            features=extract_features(rest_text),
            forced=BoundaryKind.ERROR_SPLIT,
        )
        return [head, rest]

    if len(head_text) <= settings.prompt_line_chars:
        head_features = extract_features(head_line.text)
        if head_features.ends_with_question or head_features.imperative:
            rest_features = extract_features(rest_text)
            if rest_features.structural and len(rest_text.strip()) >= 2 * len(head_text):
                head = Piece(first=first, last=first, features=head_features)
                rest = Piece(
                    first=first + 1,
                    last=last,
                    features=rest_features,
                    forced=BoundaryKind.PROMPT_SPLIT,
                )
                return [head, rest]

    return [whole]


def segment_heuristically(
    text: str,
    lines: list[Line],
    fence_index: FenceIndex,
    settings: Settings,
) -> SegmentationResult:
    """Group paragraphs into blocks with the ordered boundary rules."""
    result = SegmentationResult(mode=SegmentationMode.HEURISTIC)
    spans: list[tuple[int, int, BoundaryKind]] = []
    current: Optional[RunningBlock] = None
    decisions: dict[str, int] = {}

    def flush() -> None:
        if current is not None:
            spans.append((current.first, current.last, current.boundary))

    for first, last in _paragraphs(lines):
        paragraph = lines[first:last + 1]
        if all(line.kind == NOISE for line in paragraph):
            continue
        if current is not None and all(is_citation_only(line.text) for line in paragraph):
            current.last = last
            continue

        for piece in split_paragraph(text, lines, first, last, fence_index, settings):
            if current is None:
                boundary = BoundaryKind.INITIAL if not spans else BoundaryKind.PARAGRAPH
                current = RunningBlock(first=piece.first, last=piece.last, boundary=boundary)
                current.add(piece)
                continue

            if piece.forced is not None:
                is_boundary, rule = True, piece.forced.value
            else:
                is_boundary, rule = decide_boundary(current, piece.features, settings)
            decisions[rule] = decisions.get(rule, 0) + 1

            if is_boundary:
                flush()
                current = RunningBlock(
                    first=piece.first,
                    last=piece.last,
                    boundary=piece.forced or BoundaryKind.PARAGRAPH,
                )
            current.add(piece)

    flush()

    cursor = 0
    for first, last, boundary in spans:
        _emit_separators(result, lines, cursor, first)
        _emit_region(result, text, lines, first, last + 1, boundary)
        cursor = last + 1
    _emit_separators(result, lines, cursor, len(lines))

    logger.debug("boundary_rules_applied", decisions=decisions)
    return result


# =============================================================================
# Main Segmentation Function
# =============================================================================

def has_both_roles(markers: list[MarkerHit]) -> bool:
    """Marker mode needs at least one user and one assistant marker.

    A lone "You" or "Model" line is more likely prose than a speaker label.
    """
    roles = {hit.role for hit in markers}
    return Role.USER in roles and Role.ASSISTANT in roles


def segment(
    text: str,
    markers: list[MarkerHit],
    fences: list[FenceSpan],
    settings: Settings,
) -> SegmentationResult:
    """Partition text into blocks and separators.

    Args:
        text: Raw transcript text
        markers: Marker hits from marker detection
        fences: Fence spans from the fence guard
        settings: Segmentation thresholds

    Returns:
        SegmentationResult whose blocks and separators tile the input
    """
    lines = classify_lines(text, fences)

    if not text.strip():
        result = SegmentationResult(mode=SegmentationMode.EMPTY)
        _emit_separators(result, lines, 0, len(lines))
        return result

    fence_index = FenceIndex(fences)
    if has_both_roles(markers):
        result = segment_by_markers(text, lines, markers, fence_index)
    else:
        if markers:
            logger.info("markers_ignored", hits=len(markers), role=markers[0].role.value)
        result = segment_heuristically(text, lines, fence_index, settings)

    logger.info(
        "segmentation_complete",
        mode=result.mode.value,
        blocks=len(result.blocks),
        separators=len(result.separators),
    )
    return result
