"""Stage 7: Text Cleaner - Regex-based UI noise removal.

Copying a conversation out of a chat page drags the page chrome along:
button captions ("Copy", "Regenerate"), rating widgets, "Thought for 12
seconds" banners. These lines carry no conversational content.

PATTERNS REMOVED:
1. Exact-match UI captions (English and Japanese)
2. Status banners (thinking time, web search counts, draft switchers)
3. Emoji-only toolbar lines
4. Zero-width characters and excessive blank lines

Fenced code is never touched: a line reading "Copy" inside a fence is code.
Cleaning only produces turn text; block spans are never altered.
"""

import re
from dataclasses import dataclass, field

import structlog

from chatsplit.pipeline.stages.fences import iter_lines, scan_fences

logger = structlog.get_logger(__name__)


@dataclass
class TextCleaningTrace:
    """Trace of what was cleaned."""
    noise_lines_removed: list[str] = field(default_factory=list)
    chars_removed: int = 0


@dataclass
class CleanedText:
    """Result of text cleaning."""
    text: str
    trace: TextCleaningTrace


# =============================================================================
# Noise Patterns
# =============================================================================

NOISE_EXACT = {
    # Gemini
    "回答案を表示する", "回答案を表示", "他の回答案を表示", "他の回答案", "他の回答",
    "コピー", "いいね", "よくない", "もう一度生成", "音声で聞く", "編集",
    "回答を評価", "回答を共有",
    # Shared captions
    "copy", "copy code", "good response", "bad response", "share", "report", "retry",
    "edit message", "regenerate", "show more", "show less", "show drafts",
    # ChatGPT
    "like", "dislike", "memory updated", "memory updated.", "read aloud",
    "search the web", "create image",
    # Claude
    "copy to clipboard", "retry response", "edit",
}

NOISE_PATTERNS = [
    re.compile(r"^thought for \d+ seconds?$", re.IGNORECASE),
    re.compile(r"^searched \d+ sites?$", re.IGNORECASE),
    re.compile(r"^draft \d+$", re.IGNORECASE),
    re.compile(r"^[👍👎🔊📋✏️🔄⋮…\s]{1,8}$"),
]

ZERO_WIDTH_PATTERN = re.compile(r"[\u200b\u200c\u200d\ufeff\u00ad]")

EXCESS_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def is_noise_line(line: str) -> bool:
    """True when a whole line is provider UI chrome."""
    stripped = ZERO_WIDTH_PATTERN.sub("", line).strip()
    if not stripped:
        return False
    if stripped.casefold() in NOISE_EXACT:
        return True
    return any(pattern.match(stripped) for pattern in NOISE_PATTERNS)


# =============================================================================
# Main Cleaning Function
# =============================================================================

def clean_turn_text(raw_text: str) -> CleanedText:
    """Produce turn text from a block's raw text.

    RULES:
    - Normalize CRLF / CR line endings to LF
    - Remove zero-width characters
    - Drop noise lines outside fenced code
    - Collapse runs of blank lines to a single blank line
    - Trim surrounding whitespace

    Args:
        raw_text: Raw text of one block

    Returns:
        CleanedText with the turn text and trace
    """
    trace = TextCleaningTrace()

    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    text = ZERO_WIDTH_PATTERN.sub("", text)

    fences = scan_fences(text)
    fence_index = 0
    kept: list[str] = []

    for start, _end, line in iter_lines(text):
        while fence_index < len(fences) and fences[fence_index].end <= start:
            fence_index += 1
        in_fence = fence_index < len(fences) and fences[fence_index].start <= start

        if not in_fence and is_noise_line(line):
            trace.noise_lines_removed.append(line.strip())
            continue
        kept.append(line)

    text = "".join(kept)
    text = EXCESS_BLANK_LINES.sub("\n\n", text)
    text = text.strip()

    trace.chars_removed = len(raw_text) - len(text)

    if trace.noise_lines_removed:
        logger.debug(
            "noise_lines_removed",
            count=len(trace.noise_lines_removed),
            chars_removed=trace.chars_removed,
        )

    return CleanedText(text=text, trace=trace)
