"""Provider role-marker table.

Chat UIs announce each speaker with a literal line when a conversation is
copied out of the page ("You said:" / "ChatGPT said:" on ChatGPT,
"あなた" / "Gemini の回答" on Japanese Gemini, ...). The table below is the
only place those phrases live; adding a provider never touches the segmenter.
"""

import json
import re
import unicodedata
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, TypeAdapter

from chatsplit.models import Role


class MarkerTableError(Exception):
    """Marker configuration is inconsistent."""
    pass


class MarkerPair(BaseModel):
    """User/assistant announcement phrases for one provider and locale."""

    provider: str = Field(..., description="Chat UI the phrases come from")
    locale: str = Field(default="en", description="Language of the phrases")
    user: list[str] = Field(default_factory=list, description="Lines announcing the user")
    assistant: list[str] = Field(
        default_factory=list, description="Lines announcing the assistant"
    )


BUILTIN_MARKERS: list[MarkerPair] = [
    MarkerPair(
        provider="chatgpt",
        locale="en",
        user=["You said"],
        assistant=["ChatGPT said"],
    ),
    MarkerPair(
        provider="claude",
        locale="en",
        user=["You said"],
        assistant=["Claude said"],
    ),
    MarkerPair(
        provider="gemini",
        locale="en",
        user=["You said"],
        assistant=["Gemini said"],
    ),
    MarkerPair(
        provider="gemini",
        locale="ja",
        user=["あなた", "あなたのプロンプト"],
        assistant=["Gemini の回答", "Gemini の返答"],
    ),
    MarkerPair(
        provider="copilot",
        locale="en",
        user=["Sent by you", "You"],
        assistant=["Copilot said", "Copilot"],
    ),
    MarkerPair(
        provider="generic",
        locale="en",
        user=["User", "Human"],
        assistant=["Assistant", "AI said", "Model"],
    ),
]

# Trailing ":" or full-width "：" after a marker phrase
_TRAILING_COLON = re.compile(r"[:：]\s*$")
_WHITESPACE = re.compile(r"\s+")

# Marker lines are short; anything longer is prose
MAX_MARKER_LINE_CHARS = 64


def marker_key(line: str) -> str:
    """Normalize a line for marker lookup.

    Case-insensitive, trimmed, optional trailing colon, and whitespace-free
    so "Gemini の回答" and "Geminiの回答" share a key.
    """
    normalized = unicodedata.normalize("NFKC", line).strip()
    normalized = _TRAILING_COLON.sub("", normalized)
    return _WHITESPACE.sub("", normalized).casefold()


class MarkerTable:
    """Lookup from normalized marker line to announced role and providers."""

    def __init__(self, pairs: list[MarkerPair]):
        self.pairs = list(pairs)
        self._roles: dict[str, Role] = {}
        self._providers: dict[str, set[str]] = {}

        for pair in self.pairs:
            for role, phrases in ((Role.USER, pair.user), (Role.ASSISTANT, pair.assistant)):
                for phrase in phrases:
                    key = marker_key(phrase)
                    if not key:
                        raise MarkerTableError(
                            f"Empty marker phrase for provider '{pair.provider}'"
                        )
                    existing = self._roles.get(key)
                    if existing is not None and existing != role:
                        raise MarkerTableError(
                            f"Marker '{phrase}' maps to both {existing.value} and {role.value}"
                        )
                    self._roles[key] = role
                    self._providers.setdefault(key, set()).add(pair.provider)

    def __len__(self) -> int:
        return len(self._roles)

    def lookup(self, line: str) -> Optional[Role]:
        """Return the role a whole line announces, or None."""
        stripped = line.strip()
        if not stripped or len(stripped) > MAX_MARKER_LINE_CHARS:
            return None
        return self._roles.get(marker_key(stripped))

    def providers(self, line: str) -> tuple[str, ...]:
        """Providers whose table announces a speaker with this line, sorted."""
        return tuple(sorted(self._providers.get(marker_key(line), ())))


def load_marker_pairs(path: Path) -> list[MarkerPair]:
    """Load extra marker pairs from a JSON list file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return TypeAdapter(list[MarkerPair]).validate_python(data)


def build_marker_table(extra: Optional[list[MarkerPair]] = None) -> MarkerTable:
    """Built-in marker table extended with additive extra pairs."""
    return MarkerTable(BUILTIN_MARKERS + list(extra or []))
