"""Annotation lexicon: intent rules, topic dictionary and artifact rules.

The tables are plain data so a caller can swap them without touching the
annotation code. Patterns are regular expressions compiled with
IGNORECASE | MULTILINE; `feature` names a BlockFeatures flag that fires the
rule on its own (e.g. a stack-trace shaped block is an error report even
without the word "error").
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from chatsplit.models import ArtifactTag, IntentTag


class IntentRule(BaseModel):
    """Patterns that tag an utterance with one intent."""

    tag: IntentTag = Field(..., description="Intent emitted when the rule fires")
    patterns: list[str] = Field(default_factory=list, description="Regexes over prose text")
    feature: Optional[str] = Field(None, description="BlockFeatures flag that also fires")
    min_chars: int = Field(default=0, ge=0, description="Minimum prose length")
    max_chars: Optional[int] = Field(None, description="Maximum prose length")


class ArtifactRule(BaseModel):
    """Patterns that tag a turn with one content type."""

    tag: ArtifactTag = Field(..., description="Artifact emitted when the rule fires")
    patterns: list[str] = Field(default_factory=list, description="Regexes over full text")
    feature: Optional[str] = Field(None, description="BlockFeatures flag that also fires")


class Lexicon(BaseModel):
    """Swappable annotation tables."""

    intent_rules: list[IntentRule] = Field(default_factory=list)
    topics: dict[str, list[str]] = Field(
        default_factory=dict, description="Topic tag → keywords, in priority order"
    )
    artifact_rules: list[ArtifactRule] = Field(default_factory=list)


# =============================================================================
# Intent Rules
# =============================================================================

DEFAULT_INTENT_RULES = [
    IntentRule(
        tag=IntentTag.QUESTION,
        feature="ends_with_question",
        patterns=[
            r"[?？]\s*$",
            r"^\s*(how|why|what|where|when|which|who|is there|are there|can i|should i|do i|does|is it)\b",
            r"(ですか|ますか|でしょうか|のか)[？?]?\s*$",
            r"(なぜ|どうして|どうやって|どうすれば|どうしたら)",
        ],
    ),
    IntentRule(
        tag=IntentTag.REQUEST_EXAMPLE,
        max_chars=400,
        patterns=[
            r"\b(show|give)\s+me\s+(an?\s+|some\s+)?(example|sample)",
            r"\b(an?\s+)?examples?\s+(of|for)\b.*[?？]",
            r"\bsample\s+code\b",
            r"例を(見せて|教えて|ください)",
            r"サンプル(コード)?を",
        ],
    ),
    IntentRule(
        tag=IntentTag.REQUEST,
        max_chars=400,
        patterns=[
            r"^\s*(please|can you|could you|would you|help me|i need|i want|i'd like)\b",
            r"^\s*(fix|write|create|make|add|show|explain|convert|refactor|generate|implement|update|remove|rewrite|translate|summarize|list)\b",
            r"(ください|してほしい|お願い|して下さい)",
        ],
    ),
    IntentRule(
        tag=IntentTag.ERROR_REPORT,
        feature="error_log",
        max_chars=400,
        patterns=[
            r"\b(i|we)('m| am)?\s+(get|got|getting|keep getting|see|seeing)\b.*\b(error|exception|warning)",
            r"\b(doesn't|does not|won't|isn't|is not|not)\s+work(ing)?\b",
            r"\b(crash(es|ed|ing)?|broke|broken)\b",
            r"(エラーが出|動かない|落ちる|失敗し)",
        ],
    ),
    IntentRule(
        tag=IntentTag.GRATITUDE,
        max_chars=300,
        patterns=[
            r"\b(thanks|thank you|thx|ty)\b",
            r"\b(fixed it|that fixed|it works|works now|that worked|it worked)\b",
            r"(ありがとう|直った|直りました|助かり)",
        ],
    ),
    IntentRule(
        tag=IntentTag.CONFIRMATION,
        max_chars=300,
        patterns=[
            r"\bare you sure\b",
            r"\bis (that|this|it) (right|correct)\b",
            r"\b(right|correct|ok|okay)\s*[?？]\s*$",
            r"(合ってる|これでいい|大丈夫)[？?]",
        ],
    ),
    IntentRule(
        tag=IntentTag.PLAN,
        patterns=[
            r"\b(plan|roadmap|architecture|design doc|strategy|step[- ]by[- ]step|milestones?)\b",
            r"(方針|設計|計画|手順|ロードマップ)",
        ],
    ),
    IntentRule(
        tag=IntentTag.EXPLANATION,
        feature="explanatory",
        min_chars=200,
    ),
    IntentRule(
        tag=IntentTag.META,
        max_chars=200,
        patterns=[
            r"\b(shorter|more concise|go on|keep going|never ?mind|start over|try again|tl;?dr)\b",
            r"^\s*continue\b",
            r"(続き|短く|やり直し|まとめて)",
        ],
    ),
]


# =============================================================================
# Topic Dictionary
# Keywords are matched as whole ASCII words; non-ASCII keywords as substrings
# =============================================================================

DEFAULT_TOPICS: dict[str, list[str]] = {
    "python": ["python", "pip", "virtualenv", "venv", "conda", "django", "flask",
               "fastapi", "pandas", "numpy", "pytest", "asyncio", "pydantic"],
    "javascript": ["javascript", "js", "node.js", "nodejs", "ecmascript", "es6",
                   "console.log"],
    "typescript": ["typescript", "tsconfig", "tsc", "type annotation"],
    "react": ["react", "usestate", "useeffect", "jsx", "tsx", "next.js", "nextjs",
              "react-dom"],
    "npm": ["npm", "npx", "yarn", "pnpm", "package.json", "node_modules"],
    "git": ["git", "rebase", "merge conflict", "github", "gitlab", ".gitignore",
            "cherry-pick", "git stash", "pull request"],
    "docker": ["docker", "dockerfile", "docker-compose", "docker compose", "container"],
    "kubernetes": ["kubernetes", "k8s", "kubectl", "helm"],
    "sql": ["sql", "postgres", "postgresql", "mysql", "sqlite"],
    "database": ["database", "mongodb", "redis", "orm", "migration", "データベース"],
    "css": ["css", "scss", "sass", "tailwind", "flexbox", "media query"],
    "html": ["html", "dom"],
    "api": ["api", "endpoint", "rest api", "graphql", "webhook", "cors"],
    "auth": ["oauth", "jwt", "authentication", "login", "2fa", "認証", "ログイン"],
    "testing": ["unit test", "jest", "vitest", "mocha", "cypress", "playwright",
                "test case", "テスト"],
    "deploy": ["deploy", "deployment", "vercel", "netlify", "heroku", "ci/cd",
               "github actions", "aws", "gcp", "azure", "terraform", "デプロイ"],
    "supabase": ["supabase", "row level security"],
    "firebase": ["firebase", "firestore"],
    "ai-ml": ["machine learning", "llm", "gpt", "neural network", "embedding",
              "fine-tune", "pytorch", "tensorflow", "機械学習"],
    "shell": ["bash", "zsh", "powershell", "shell script", "environment variable",
              "環境変数"],
    "rust": ["rust", "cargo"],
    "go": ["golang", "go mod"],
    "java": ["java", "spring boot", "maven", "gradle"],
}


# =============================================================================
# Artifact Rules
# =============================================================================

DEFAULT_ARTIFACT_RULES = [
    ArtifactRule(
        tag=ArtifactTag.CODE,
        feature="has_code",
        patterns=[
            r"^\s*\$?\s*(npm|npx|git|pip3?|yarn|pnpm|docker|kubectl|brew|cargo|curl|wget|python3?|node)\s+\S",
        ],
    ),
    ArtifactRule(
        tag=ArtifactTag.LOG,
        feature="error_log",
        patterns=[
            r"^\s*at\s+\S+.*:\d+:\d+\)?\s*$",
            r"\b(ERROR|WARN|WARNING|FATAL)[:\]]",
            r"^\s*\[?\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}",
        ],
    ),
    ArtifactRule(
        tag=ArtifactTag.PATH,
        patterns=[
            r"\b[A-Za-z]:\\[^\s\\]+\\\S+",
            r"(?:^|[\s(`'\"])(?:~|\.{1,2})?/(?:[\w.-]+/)+[\w.-]+",
            r"\b[\w.-]+/[\w./-]*\.(py|js|jsx|ts|tsx|json|md|yml|yaml|toml|go|rs|java|rb|css|html|sh)\b",
        ],
    ),
    ArtifactRule(
        tag=ArtifactTag.LINK,
        patterns=[r"https?://\S+"],
    ),
    ArtifactRule(
        tag=ArtifactTag.TABLE,
        feature="has_table",
        patterns=[r"^[^\t\n]+\t[^\t\n]+\n[^\t\n]+\t[^\t\n]+"],
    ),
    ArtifactRule(
        tag=ArtifactTag.DOC,
        feature="is_document",
    ),
    ArtifactRule(
        tag=ArtifactTag.IMAGE_REF,
        patterns=[
            r"!\[[^\]]*\]\([^)]*\)",
            r"\[(image|画像)[^\]]*\]",
            r"<<image\w*>>",
        ],
    ),
]


DEFAULT_LEXICON = Lexicon(
    intent_rules=DEFAULT_INTENT_RULES,
    topics=DEFAULT_TOPICS,
    artifact_rules=DEFAULT_ARTIFACT_RULES,
)


def load_lexicon(path: Path) -> Lexicon:
    """Load a replacement lexicon from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return Lexicon.model_validate_json(f.read())
