"""Enumeration types for the analysis models."""

from enum import Enum


class Role(str, Enum):
    """Speaker attributed to a turn."""

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def opposite(self) -> "Role":
        return Role.ASSISTANT if self is Role.USER else Role.USER


class SegmentationMode(str, Enum):
    """Algorithm used to partition the transcript."""

    MARKER = "marker"
    HEURISTIC = "heuristic"
    EMPTY = "empty"


class BoundaryKind(str, Enum):
    """What opened a block."""

    INITIAL = "initial"                  # First block of the transcript
    MARKER = "marker"                    # Provider role marker line
    DEFERRED_MARKER = "deferred_marker"  # Marker inside a fence, cut at fence end
    PARAGRAPH = "paragraph"              # Blank-line paragraph boundary
    PROMPT_SPLIT = "prompt_split"        # Short prompt line before structured content
    ERROR_SPLIT = "error_split"          # Line before a pasted error log


class SeparatorKind(str, Enum):
    """Discarded text between blocks."""

    WHITESPACE = "whitespace"
    MARKER = "marker"
    NOISE = "noise"


class DecisionBasis(str, Enum):
    """How a block's role was decided."""

    MARKER = "marker"            # Explicit provider marker
    HEURISTIC = "heuristic"      # Weighted rule signals
    POSITIONAL = "positional"    # Weak signals, continued previous role
    FALLBACK = "fallback"        # No usable signal


class IntentTag(str, Enum):
    """Purpose of an utterance."""

    QUESTION = "question"
    REQUEST = "request"
    REQUEST_EXAMPLE = "request-example"
    ERROR_REPORT = "error-report"
    GRATITUDE = "gratitude"
    CONFIRMATION = "confirmation"
    PLAN = "plan"
    EXPLANATION = "explanation"
    META = "meta"


class ArtifactTag(str, Enum):
    """Content type carried by a turn."""

    CODE = "code"
    LOG = "log"
    PATH = "path"
    LINK = "link"
    TABLE = "table"
    DOC = "doc"
    IMAGE_REF = "image-ref"
