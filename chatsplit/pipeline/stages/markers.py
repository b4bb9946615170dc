"""Stage 1: Marker Detection - Find provider role-announcement lines.

A marker is accepted only when the whole line is a known phrase; "You said
this would work" is prose, "You said:" is a marker. Detection is a single
pass over the lines and never looks at fences: deferring cuts for markers
inside code is the segmenter's job.
"""

import structlog

from chatsplit.config.markers import MarkerTable
from chatsplit.pipeline.models import MarkerHit
from chatsplit.pipeline.stages.fences import iter_lines

logger = structlog.get_logger(__name__)


def detect_markers(text: str, table: MarkerTable) -> list[MarkerHit]:
    """Find every whole-line role marker.

    Args:
        text: Raw transcript text.
        table: Marker table to match against.

    Returns:
        MarkerHits ordered by position, one per line at most.
    """
    hits: list[MarkerHit] = []

    for start, end, line in iter_lines(text):
        role = table.lookup(line)
        if role is None:
            continue
        hits.append(
            MarkerHit(
                position=start,
                line_end=end,
                role=role,
                matched_text=line.strip(),
                providers=table.providers(line),
            )
        )

    logger.debug(
        "markers_detected",
        count=len(hits),
        user=sum(1 for hit in hits if hit.role.value == "user"),
        assistant=sum(1 for hit in hits if hit.role.value == "assistant"),
    )

    return hits
