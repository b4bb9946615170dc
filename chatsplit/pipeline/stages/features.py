"""Stage 3A: Feature Extraction - Structural and lexical signals per span.

Features are computed once per block (and once per paragraph during
heuristic segmentation) from citation-stripped text. Lines inside fenced
code count toward length but never toward prose cues: a "?" at the end of
a code comment is not a question.

All patterns are English plus Japanese, the two languages the built-in
marker table covers.
"""

import re
from dataclasses import dataclass

from chatsplit.pipeline.stages.fences import FENCE_LINE_PATTERN, iter_lines, scan_fences, strip_citations


# =============================================================================
# Structural Patterns
# =============================================================================

HEADING_PATTERN = re.compile(r"^\s{0,3}(?:#{1,6}\s+\S|\*\*[^*\n]+\*\*[:：]?\s*$)")
LIST_ITEM_PATTERN = re.compile(r"^\s*(?:[-*+•◦]|\d+[.)．])\s+\S")
PIPE_ROW_PATTERN = re.compile(r"^\s*\|.*\|\s*$")
PIPE_SEPARATOR_PATTERN = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")

CODE_LINE_PATTERN = re.compile(
    r"^\s*(?:def |class |import |from \S+ import |const |let |var |function |return\b"
    r"|public |private |#include|if\s*\(|for\s*\(|while\s*\(|\}|\{\s*$)"
    r"|;\s*$|\)\s*\{\s*$"
)

# =============================================================================
# Error Log Patterns
# =============================================================================

STACK_FRAME_PATTERNS = [
    re.compile(r"^\s*at\s+.*?:\d+:\d+\)?\s*$"),                 # JS: at f (file.js:12:3)
    re.compile(r"^\s*at\s+[\w$.<>]+\([^()\n]*:\d+\)\s*$"),      # Java: at a.b(B.java:12)
    re.compile(r'^\s*File\s+"[^"\n]+",\s+line\s+\d+'),          # Python traceback frame
]
TRACEBACK_PATTERN = re.compile(r"^\s*Traceback \(most recent call last\):")
ERROR_HEADER_PATTERN = re.compile(
    r"^\s*(?:Uncaught\s+|Unhandled\s+)?"
    r"(?:[A-Z][\w.]*(?:Error|Exception)|Error|Exception|FATAL|ERROR|panic)\b[^\n:]*:\s*\S"
    r"|^\s*error(?:\[\w+\]|\s+[A-Z]+\d+)?:\s*\S"
    r"|^\s*npm ERR!"
)

# =============================================================================
# Lexical Patterns
# =============================================================================

QUESTION_END_PATTERN = re.compile(r"(?:[?？]|(?:ですか|ますか|でしょうか)[。]?)\s*$")
INTERROGATIVE_PATTERN = re.compile(
    r"^\s*(?:how|why|what|where|when|which|who|whose|is|are|can|could|would|should"
    r"|do|does|did|will|any idea)\b",
    re.IGNORECASE,
)
INTERROGATIVE_JA_PATTERN = re.compile(r"(なぜ|どうして|どうやって|どうすれば|どうしたら|何[がをにで]|教えて)")
IMPERATIVE_PATTERN = re.compile(
    r"^\s*(?:please|can you|could you|would you|help me|i need you to|i want you to"
    r"|i'd like you to|give me|tell me|fix|write|create|make|add|show|explain|convert"
    r"|refactor|generate|implement|update|remove|rewrite|translate|summarize|list)\b",
    re.IGNORECASE,
)
IMPERATIVE_JA_PATTERN = re.compile(r"(ください|してほしい|お願い|[しやつ作直教見出消変送書]て[。！!]?\s*$)")
PROBLEM_PATTERN = re.compile(
    r"\b(?:error|errors|crash|crashes|crashed|fails|failed|failing|broke|broken|stuck"
    r"|doesn't work|does not work|not working|won't|can't|cannot|throws|issue|problem)\b"
    r"|動かない|落ちる|エラー|失敗|壊れ",
    re.IGNORECASE,
)
FIRST_PERSON_PATTERN = re.compile(r"\b(?:i|i'm|i've|my|we|our|me)\b|私|僕|自分", re.IGNORECASE)
# Verbs of running into something: "I get", "crashes with", "エラーが出た"
REPORT_PATTERN = re.compile(
    r"\b(?:i get|i'm getting|i am getting|i got|i keep getting|getting this|got this"
    r"|gives me|crash(?:es|ed)? with|fails? with|failed with|throws this|shows this)\b"
    r"|(?:が|も)出[たるてま]|出ちゃ|になった|落ち[たるま]",
    re.IGNORECASE,
)
EXPLANATORY_PATTERN = re.compile(
    r"\b(?:this means|because|for example|for instance|in other words|however|therefore"
    r"|note that|in short|the reason|which means|so that|that is why)\b"
    r"|とは[、。]|つまり|例えば|すなわち|具体的には|言い換えると|以下[のにはで]|まとめると|ポイント[はを]|なぜなら",
    re.IGNORECASE,
)
ASSISTANT_OPENER_PATTERN = re.compile(
    r"^\s*(?:sure|certainly|of course|absolutely|great question|good question"
    r"|happy to help|no problem|here's|here is|here are|good choice|great choice)\b"
    r"|^\s*(?:はい[、。!！]|もちろん|承知しました|了解です|いい質問|良い選択|いい選択)",
    re.IGNORECASE,
)
ASSISTANT_ACK_PATTERN = re.compile(
    r"glad (?:it|that|this|i could) help|you're welcome|you are welcome"
    r"|hope (?:this|that) helps|よかったです|どういたしまして",
    re.IGNORECASE,
)
OFFER_PATTERN = re.compile(
    r"let me know if|would you like me to|feel free to|if you(?:'d| would) like,? i can"
    r"|want me to|お気軽に|いつでも",
    re.IGNORECASE,
)
GRATITUDE_PATTERN = re.compile(
    r"\b(?:thanks|thank you|thx|that worked|it works|works now|fixed it|that fixed it)\b"
    r"|ありがとう|直った|直りました|動いた|できました",
    re.IGNORECASE,
)
GRATITUDE_START_PATTERN = re.compile(
    r"^\s*(?:thanks|thank you|thx|ty|perfect|awesome|it works|that worked|works now)\b"
    r"|^\s*(?:ありがとう|助かりました|直りました|できました)",
    re.IGNORECASE,
)
COMMAND_LINE_PATTERN = re.compile(
    r"^\s*\$?\s*(?:npm|npx|git|cd|brew|pip|pip3|yarn|pnpm|sudo|curl|wget|docker|kubectl"
    r"|make|python|python3|node|cargo|go)\s+\S.{0,120}$"
)
URL_LINE_PATTERN = re.compile(r"^\s*<?https?://\S+>?\s*$")
PATH_LINE_PATTERN = re.compile(r"^\s*(?:[A-Za-z]:\\|~/|\.{1,2}/|/)\S+\s*$")

DOCUMENT_MIN_CHARS = 300
BARE_CODE_MAX_PROSE = 40

PERIOD_END = (".", "。")
DECLARATIVE_END = PERIOD_END + ("!", "！")


def ends_with_colon(line: str) -> bool:
    return line.rstrip().endswith((":", "："))


def count_error_lines(lines: list[str]) -> tuple[int, bool, int]:
    """Count (stack frames, traceback header present, error header lines)."""
    frames = 0
    traceback = False
    headers = 0
    for line in lines:
        if any(pattern.match(line) for pattern in STACK_FRAME_PATTERNS):
            frames += 1
        elif TRACEBACK_PATTERN.match(line):
            traceback = True
        elif ERROR_HEADER_PATTERN.match(line):
            headers += 1
    return frames, traceback, headers


def is_error_log(lines: list[str]) -> bool:
    """True when non-blank lines have the shape of a pasted error.

    Two or more stack frames, a Python traceback header, or an error
    header line backed by a frame (or standing in a short paste).
    """
    lines = [line for line in lines if line.strip()]
    if not lines:
        return False
    frames, traceback, headers = count_error_lines(lines)
    if frames >= 2 or traceback:
        return True
    return headers >= 1 and (frames >= 1 or len(lines) <= 4)


def is_standalone_line(line: str) -> bool:
    """A command, URL or path standing alone on its line."""
    return bool(
        COMMAND_LINE_PATTERN.match(line)
        or URL_LINE_PATTERN.match(line)
        or PATH_LINE_PATTERN.match(line)
    )


@dataclass
class BlockFeatures:
    """Signals extracted from one span of text."""
    text: str
    prose: str
    char_count: int = 0
    prose_chars: int = 0
    line_count: int = 0
    first_line: str = ""
    last_line: str = ""
    fence_count: int = 0
    heading_lines: int = 0
    list_items: int = 0
    has_table: bool = False
    code_like_lines: int = 0
    error_log: bool = False
    ends_with_question: bool = False
    interrogative: bool = False
    imperative: bool = False
    first_person: bool = False
    first_person_problem: bool = False
    explanatory: bool = False
    assistant_opener: bool = False
    assistant_ack: bool = False
    follow_up_offer: bool = False
    user_gratitude: bool = False
    starts_with_gratitude: bool = False
    standalone_command: bool = False

    @property
    def has_fence(self) -> bool:
        return self.fence_count > 0

    @property
    def structural(self) -> bool:
        """Headings, lists, tables or fenced code."""
        return (
            self.heading_lines > 0
            or self.list_items >= 2
            or self.has_table
            or self.has_fence
        )

    @property
    def has_code(self) -> bool:
        return self.has_fence or self.code_like_lines >= 2

    @property
    def bare_code_paste(self) -> bool:
        """Code with little or no accompanying prose.

        A fence announced by an opener or a trailing colon ("Here is the
        basic usage:") is presented code, unless the prose is first person.
        """
        if self.has_fence:
            introduced = self.assistant_opener or ends_with_colon(self.prose)
            return self.prose_chars < BARE_CODE_MAX_PROSE and (self.first_person or not introduced)
        return self.code_like_lines >= 2 and self.code_like_lines * 2 >= self.line_count

    @property
    def fence_with_prose(self) -> bool:
        return self.has_fence and self.prose_chars >= BARE_CODE_MAX_PROSE

    @property
    def is_document(self) -> bool:
        return self.heading_lines > 0 and self.prose_chars >= DOCUMENT_MIN_CHARS

    @property
    def ends_with_colon(self) -> bool:
        return ends_with_colon(self.last_line)

    @property
    def ends_with_period(self) -> bool:
        return self.last_line.endswith(PERIOD_END)

    @property
    def declarative(self) -> bool:
        """A finished statement: not a question and not a command."""
        return (
            self.last_line.endswith(DECLARATIVE_END)
            and not self.ends_with_question
            and not self.imperative
        )

    @property
    def question_paragraph(self) -> bool:
        return self.ends_with_question and not self.structural

    @property
    def user_cue(self) -> bool:
        """Asks, orders, pastes a log or says thanks."""
        return (
            self.ends_with_question
            or self.imperative
            or self.error_log
            or self.user_gratitude
            or self.bare_code_paste
        )


def extract_features(raw_text: str) -> BlockFeatures:
    """Compute BlockFeatures for a span of text.

    Args:
        raw_text: Block or paragraph text, citations included.

    Returns:
        BlockFeatures over the citation-stripped text.
    """
    text = strip_citations(raw_text)
    fences = scan_fences(text)
    fence_index = 0

    prose_lines: list[str] = []
    all_lines: list[str] = []

    for start, _end, line in iter_lines(text):
        while fence_index < len(fences) and fences[fence_index].end <= start:
            fence_index += 1
        if not line.strip():
            continue
        all_lines.append(line.rstrip("\r\n"))
        in_fence = fence_index < len(fences) and fences[fence_index].start <= start
        if not in_fence and not FENCE_LINE_PATTERN.match(line):
            prose_lines.append(line.rstrip("\r\n"))

    prose = "\n".join(prose_lines)
    first_line = prose_lines[0].strip() if prose_lines else ""
    last_line = prose_lines[-1].strip() if prose_lines else ""
    if not last_line and all_lines:
        last_line = all_lines[-1].strip()

    pipe_rows = [line for line in prose_lines if PIPE_ROW_PATTERN.match(line)]
    has_separator = any(PIPE_SEPARATOR_PATTERN.match(line) for line in pipe_rows)

    features = BlockFeatures(
        text=text,
        prose=prose,
        char_count=len(text.strip()),
        prose_chars=len(prose.strip()),
        line_count=len(all_lines),
        first_line=first_line,
        last_line=last_line,
        fence_count=len(fences),
        heading_lines=sum(1 for line in prose_lines if HEADING_PATTERN.match(line)),
        list_items=sum(1 for line in prose_lines if LIST_ITEM_PATTERN.match(line)),
        has_table=len(pipe_rows) >= 2 and has_separator,
        code_like_lines=sum(1 for line in prose_lines if CODE_LINE_PATTERN.search(line)),
        error_log=is_error_log(all_lines),
    )

    features.ends_with_question = bool(last_line and QUESTION_END_PATTERN.search(last_line))
    features.interrogative = bool(
        INTERROGATIVE_PATTERN.match(first_line) or INTERROGATIVE_JA_PATTERN.search(first_line)
    )
    features.imperative = bool(
        (IMPERATIVE_PATTERN.match(first_line) or IMPERATIVE_JA_PATTERN.search(first_line))
        and not ends_with_colon(first_line)
    )
    features.first_person = bool(FIRST_PERSON_PATTERN.search(prose))
    features.first_person_problem = bool(
        PROBLEM_PATTERN.search(prose)
        and (features.first_person or REPORT_PATTERN.search(prose))
    )
    features.explanatory = bool(EXPLANATORY_PATTERN.search(prose))
    features.assistant_opener = bool(ASSISTANT_OPENER_PATTERN.match(first_line))
    features.assistant_ack = bool(ASSISTANT_ACK_PATTERN.search(prose))
    features.follow_up_offer = bool(OFFER_PATTERN.search(prose))
    features.user_gratitude = bool(GRATITUDE_PATTERN.search(prose)) and not features.assistant_ack
    features.starts_with_gratitude = bool(GRATITUDE_START_PATTERN.match(first_line))
    features.standalone_command = (
        0 < len(all_lines) <= 2
        and not fences
        and all(is_standalone_line(line) for line in all_lines)
    )

    return features
