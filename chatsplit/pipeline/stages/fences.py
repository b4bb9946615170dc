"""Stage 2: Fence Guard - Locate fenced code regions and citation tokens.

Fenced regions are spans the segmenter must never cut through. Pasted
transcripts are frequently malformed, so the scan is lenient:
- A fence opened but never closed extends to end-of-input (closed=False)
- A closing line may carry stray trailing backticks or text; once the
  close is matched, the rest of that line is ordinary text
- Citation tokens ([3], [cite:3], [cite: 3]) are stripped before any
  heuristic signal is computed, inside or outside fences
"""

import re
from bisect import bisect_right
from typing import Iterator, Optional

import structlog

from chatsplit.pipeline.models import FenceSpan

logger = structlog.get_logger(__name__)


# Opening/closing fence: optional indentation, then a run of 3+ ` or ~
FENCE_LINE_PATTERN = re.compile(r"^[ \t]*(?P<run>`{3,}|~{3,})")

# [3], [3, 4], [cite:3], [cite: 3], [cite: 3, 4]
CITATION_PATTERN = re.compile(
    r"\[(?:cite:\s*)?\d+(?:\s*,\s*\d+)*\]",
    re.IGNORECASE,
)


def iter_lines(text: str) -> Iterator[tuple[int, int, str]]:
    """Yield (start, end, line) for every line, end including the line break."""
    offset = 0
    for line in text.splitlines(keepends=True):
        end = offset + len(line)
        yield offset, end, line
        offset = end


def strip_citations(text: str) -> str:
    """Remove citation tokens so they never act as a signal."""
    return CITATION_PATTERN.sub("", text)


def is_citation_only(line: str) -> bool:
    """True for a non-blank line made only of citation tokens."""
    return bool(line.strip()) and not strip_citations(line).strip()


def scan_fences(text: str) -> list[FenceSpan]:
    """Find fenced code regions in text order.

    Args:
        text: Raw transcript text.

    Returns:
        Ordered, non-overlapping FenceSpans.
    """
    spans: list[FenceSpan] = []
    open_start: Optional[int] = None
    open_char = ""
    open_len = 0

    for start, end, line in iter_lines(text):
        match = FENCE_LINE_PATTERN.match(line)
        if not match:
            continue

        run = match.group("run")
        if open_start is None:
            open_start = start
            open_char = run[0]
            open_len = len(run)
        elif run[0] == open_char and len(run) >= open_len:
            spans.append(FenceSpan(start=open_start, end=end, closed=True))
            open_start = None

    if open_start is not None:
        spans.append(FenceSpan(start=open_start, end=len(text), closed=False))
        logger.debug("unclosed_fence", start=open_start)

    return spans


class FenceIndex:
    """Logarithmic lookup of fence spans by offset."""

    def __init__(self, spans: list[FenceSpan]):
        self.spans = spans
        self._starts = [span.start for span in spans]

    def containing(self, position: int) -> Optional[FenceSpan]:
        """Return the span strictly containing position, if any."""
        i = bisect_right(self._starts, position) - 1
        if i < 0:
            return None
        span = self.spans[i]
        if span.start < position < span.end:
            return span
        return None

    def is_inside(self, position: int) -> bool:
        return self.containing(position) is not None
