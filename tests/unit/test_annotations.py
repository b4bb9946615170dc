"""Unit tests for intent, topic and artifact annotation."""

import json

import pytest
from pydantic import ValidationError

from chatsplit.config.lexicon import Lexicon, load_lexicon
from chatsplit.models import ArtifactTag, IntentTag
from chatsplit.pipeline.stages.annotations import LexiconMatcher, fallback_term, get_matcher
from chatsplit.pipeline.stages.features import extract_features


@pytest.fixture
def matcher() -> LexiconMatcher:
    return get_matcher()


def intents_of(matcher, text):
    return matcher.intents(extract_features(text))


class TestIntents:
    """Tests for intent tagging."""

    def test_question(self, matcher):
        assert intents_of(matcher, "How do I undo my last git commit?") == [IntentTag.QUESTION]

    def test_request_and_meta(self, matcher):
        tags = intents_of(matcher, "Can you make it shorter?")

        assert tags[0] == IntentTag.QUESTION
        assert IntentTag.REQUEST in tags
        assert IntentTag.META in tags
        assert len(tags) == len(set(tags))

    def test_error_report_from_log_shape(self, matcher):
        text = "Traceback (most recent call last):\n  File \"app.py\", line 3\nKeyError: 'id'"
        assert IntentTag.ERROR_REPORT in intents_of(matcher, text)

    def test_gratitude(self, matcher):
        assert IntentTag.GRATITUDE in intents_of(matcher, "Thanks, that worked!")

    def test_request_example(self, matcher):
        assert IntentTag.REQUEST_EXAMPLE in intents_of(matcher, "Show me an example of a Python generator")

    def test_japanese_request(self, matcher):
        assert IntentTag.REQUEST in intents_of(matcher, "このコードを直してください")

    def test_short_explanatory_text_is_not_explanation(self, matcher):
        assert IntentTag.EXPLANATION not in intents_of(matcher, "It fails because the path is wrong.")


class TestTopics:
    """Tests for topic tagging."""

    def test_dictionary_topic(self, matcher):
        assert matcher.topics("How do I undo my last git commit?") == ["git"]

    def test_whole_word_match(self, matcher):
        assert "git" not in matcher.topics("The digital edition ships next week.")

    def test_ordered_by_hits(self, matcher):
        assert matcher.topics("Use npm to install react, then run npm start.") == ["npm", "react"]

    def test_japanese_substring(self, matcher):
        assert "database" in matcher.topics("データベースの設計を見直したい")

    def test_fallback_term(self, matcher):
        assert matcher.topics("The `useFetchUser` hook returns stale values") == ["other:usefetchuser"]

    def test_no_topic(self, matcher):
        assert matcher.topics("ok") == []

    def test_fallback_prefers_most_frequent(self):
        assert fallback_term("AbcWidget calls XyzStore; XyzStore caches AbcWidget and XyzStore") == "xyzstore"


class TestArtifacts:
    """Tests for artifact tagging."""

    def artifacts_of(self, matcher, text):
        return matcher.artifacts(text, extract_features(text))

    def test_code_block(self, matcher):
        text = "Try this:\n```python\nprint('hi')\n```"
        assert ArtifactTag.CODE in self.artifacts_of(matcher, text)

    def test_link_and_path(self, matcher):
        text = "Edit src/app/main.py as described at https://example.com/docs"
        tags = self.artifacts_of(matcher, text)

        assert ArtifactTag.PATH in tags
        assert ArtifactTag.LINK in tags
        assert tags.index(ArtifactTag.PATH) < tags.index(ArtifactTag.LINK)

    def test_table(self, matcher):
        text = "| a | b |\n|---|---|\n| 1 | 2 |"
        assert ArtifactTag.TABLE in self.artifacts_of(matcher, text)

    def test_image_reference(self, matcher):
        assert ArtifactTag.IMAGE_REF in self.artifacts_of(matcher, "Here: ![diagram](flow.png)")

    def test_plain_prose(self, matcher):
        assert self.artifacts_of(matcher, "That makes sense now.") == []


class TestCustomLexicon:
    """Tests for replacing the built-in tables."""

    def test_custom_topics(self):
        matcher = get_matcher(Lexicon(topics={"chess": ["rook", "castling"]}))

        assert matcher.topics("Move the rook before castling") == ["chess"]
        assert matcher.intents(extract_features("What now?")) == []

    def test_load_lexicon(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps({"topics": {"chess": ["rook"]}}), encoding="utf-8")

        lexicon = load_lexicon(path)

        assert lexicon.topics == {"chess": ["rook"]}
        assert lexicon.intent_rules == []

    def test_load_invalid_lexicon(self, tmp_path):
        path = tmp_path / "lexicon.json"
        path.write_text(json.dumps({"intent_rules": [{"tag": "nonsense"}]}), encoding="utf-8")

        with pytest.raises(ValidationError):
            load_lexicon(path)
