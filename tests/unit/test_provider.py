"""Unit tests for provider detection."""

import math

import pytest

from chatsplit.config.markers import MarkerPair, build_marker_table
from chatsplit.pipeline.stages.markers import detect_markers
from chatsplit.pipeline.stages.provider import detect_provider, repeated_weight, score_providers


def guess(text, extra_pairs=None):
    markers = detect_markers(text, build_marker_table(extra_pairs))
    return detect_provider(text, markers)


class TestRepeatedWeight:
    """Tests for diminishing returns on repeated evidence."""

    def test_single_match(self):
        assert repeated_weight(8, 1) == 8

    def test_doubling(self):
        assert repeated_weight(8, 2) == 16

    def test_capped_at_five(self):
        assert repeated_weight(8, 9) == repeated_weight(8, 5) == pytest.approx(8 * (1 + math.log2(5)))


class TestDetectProvider:
    """Tests for detect_provider."""

    def test_gemini_japanese_markers(self, gemini_ja_text):
        result = guess(gemini_ja_text)

        assert result.provider == "gemini"
        assert result.confidence == 1.0

    def test_claude_beats_shared_user_marker(self):
        result = guess("You said:\nExplain async/await\nClaude said:\nSure.\n")

        assert result.provider == "claude"
        assert result.scores["chatgpt"] == 9
        assert result.confidence == pytest.approx(0.81)

    def test_no_evidence(self, qa_pairs_text):
        result = guess(qa_pairs_text)

        assert result.provider is None
        assert result.confidence == 0.0
        assert result.scores == {}

    def test_generic_markers_say_nothing(self):
        assert guess("User\nhi\nModel\nhello\n").provider is None

    def test_extra_pair_provider(self):
        extra = MarkerPair(provider="perplexity", user=["Question"], assistant=["Answer"])
        result = guess("Question\nWhat is Rust?\nAnswer\nRust is fast.\n", [extra])

        assert result.provider == "perplexity"
        assert result.scores == {"perplexity": 20.0}

    def test_ui_chrome_without_markers(self):
        scores = score_providers("Thought for 12 seconds\nHere is the fix.", [])
        assert scores == {"chatgpt": 9}
