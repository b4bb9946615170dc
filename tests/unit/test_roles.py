"""Unit tests for role classification and confidence scoring."""

import pytest

from chatsplit.models import BoundaryKind, DecisionBasis, Role
from chatsplit.pipeline.models import Block, RoleDecision, RoleSignal
from chatsplit.pipeline.stages.confidence import score_all, score_confidence
from chatsplit.pipeline.stages.features import extract_features
from chatsplit.pipeline.stages.roles import RoleContext, classify_roles, decide_role, fire_rules


NEUTRAL = "The build on main is green again after the revert landed yesterday afternoon."
TRACEBACK = "Traceback (most recent call last):\n  File \"app.py\", line 1\nKeyError: 'id'"


def decision(role, basis, weights):
    signals = [RoleSignal(name=f"rule_{i}", target=role, weight=w) for i, w in enumerate(weights)]
    score = sum(weights)
    return RoleDecision(
        role=role,
        basis=basis,
        signals=signals,
        assistant_score=score if role == Role.ASSISTANT else 0.0,
        user_score=score if role == Role.USER else 0.0,
    )


class TestFireRules:
    """Tests for the weighted rule table."""

    def test_short_question_fires_user_rules(self, settings):
        names = {s.name for s in fire_rules(extract_features("What is a Python decorator?"), settings)}
        assert {"question_mark", "interrogative", "brevity"} <= names

    def test_error_log_fires(self, settings):
        signals = fire_rules(extract_features(TRACEBACK), settings)
        assert any(s.name == "error_log" and s.target == Role.USER for s in signals)

    def test_override_replaces_weight(self, settings):
        features = extract_features("What is a Python decorator?")
        signals = fire_rules(features, settings, {"question_mark": 0.5})
        assert next(s for s in signals if s.name == "question_mark").weight == 0.5

    def test_non_positive_override_disables_rule(self, settings):
        features = extract_features("What is a Python decorator?")
        signals = fire_rules(features, settings, {"brevity": 0})
        assert "brevity" not in {s.name for s in signals}


class TestDecideRole:
    """Tests for decide_role."""

    def test_no_signal_first_block_is_user(self, settings):
        result = decide_role(extract_features(NEUTRAL), None, settings)

        assert result.role == Role.USER
        assert result.basis == DecisionBasis.FALLBACK
        assert result.signals == []

    def test_no_signal_alternates(self, settings):
        result = decide_role(extract_features(NEUTRAL), Role.USER, settings)

        assert result.role == Role.ASSISTANT
        assert result.basis == DecisionBasis.FALLBACK

    def test_weak_short_block_continues_previous(self, settings):
        result = decide_role(extract_features("Sure, here you go"), Role.ASSISTANT, settings)

        assert result.role == Role.ASSISTANT
        assert result.basis == DecisionBasis.POSITIONAL

    def test_tie_without_previous_falls_back(self, settings):
        result = decide_role(extract_features("Sure, here you go"), None, settings)

        assert result.role == Role.USER
        assert result.basis == DecisionBasis.FALLBACK

    def test_override_breaks_tie(self, settings):
        result = decide_role(extract_features("Sure, here you go"), Role.USER, settings, {"brevity": 0})

        assert result.role == Role.ASSISTANT
        assert result.basis == DecisionBasis.HEURISTIC

    def test_explanation_is_assistant(self, settings):
        text = (
            "A decorator is a function that takes another function and returns a new "
            "function that usually extends its behaviour. This means you can add logging, "
            "caching or access checks without touching the original code."
        )
        result = decide_role(extract_features(text), Role.USER, settings)

        assert result.role == Role.ASSISTANT
        assert result.basis == DecisionBasis.HEURISTIC
        assert result.margin > 0


class TestRoleContext:
    """Tests for signals drawn from the preceding block."""

    def test_statement_after_question_is_assistant(self, settings):
        question = extract_features("What is a list?")
        result = decide_role(
            extract_features("An ordered collection."), Role.USER, settings, previous_features=question
        )

        assert result.role == Role.ASSISTANT
        assert result.basis == DecisionBasis.HEURISTIC
        assert "follows_question" in {s.name for s in result.signals}

    def test_question_after_question_stays_user(self, settings):
        question = extract_features("What is a list?")
        result = decide_role(extract_features("What is a tuple?"), Role.USER, settings, previous_features=question)

        assert result.role == Role.USER
        assert "follows_question" not in {s.name for s in result.signals}

    def test_no_context_without_previous_features(self, settings):
        signals = fire_rules(extract_features("An ordered collection."), settings)
        assert "follows_question" not in {s.name for s in signals}

    def test_presented_code_after_request(self, settings):
        context = RoleContext(
            previous_role=Role.USER, previous_features=extract_features("Show me a Zustand example")
        )
        features = extract_features("Here is the basic usage:\n\n```js\nconst store = create(() => ({}));\n```")
        names = {s.name for s in fire_rules(features, settings, context=context)}

        assert {"follows_request", "assistant_opener"} <= names
        assert "bare_code_paste" not in names

    def test_previous_assistant_gives_no_reply_signal(self, settings):
        context = RoleContext(previous_role=Role.ASSISTANT, previous_features=extract_features("What is a list?"))
        names = {s.name for s in fire_rules(extract_features("An ordered collection."), settings, context=context)}

        assert not names & {"follows_question", "follows_request"}

    def test_problem_report_skipped_after_error_log(self, settings):
        features = extract_features("I think the error comes from the config loader.")
        context = RoleContext(previous_role=Role.USER, previous_features=extract_features(TRACEBACK))

        assert "problem_report" in {s.name for s in fire_rules(features, settings)}
        assert "problem_report" not in {s.name for s in fire_rules(features, settings, context=context)}

    def test_brevity_skipped_for_statements(self, settings):
        assert "brevity" not in {s.name for s in fire_rules(extract_features("An immutable list."), settings)}
        assert "brevity" in {s.name for s in fire_rules(extract_features("pnpmは？"), settings)}


class TestClassifyRoles:
    """Tests for classify_roles over a block sequence."""

    def test_marker_role_is_kept(self, settings):
        blocks = [
            Block(start=0, end=5, raw_text="Sure!", boundary=BoundaryKind.MARKER, marker_role=Role.USER),
            Block(start=6, end=11, raw_text="Hi", boundary=BoundaryKind.PARAGRAPH),
        ]
        features = [extract_features("Sure!"), extract_features(NEUTRAL)]

        decisions = classify_roles(blocks, features, settings)

        assert decisions[0].role == Role.USER
        assert decisions[0].basis == DecisionBasis.MARKER
        assert decisions[1].role == Role.ASSISTANT

    def test_unknown_override_is_ignored(self, settings):
        blocks = [Block(start=0, end=10, raw_text=NEUTRAL, boundary=BoundaryKind.INITIAL)]
        decisions = classify_roles(blocks, [extract_features(NEUTRAL)], settings, {"no_such_rule": 3.0})

        assert decisions[0].role == Role.USER


class TestConfidence:
    """Tests for calibrated confidence."""

    def test_fixed_bands(self, settings):
        assert score_confidence(RoleDecision(role=Role.USER, basis=DecisionBasis.MARKER), settings) == 1.0
        assert score_confidence(RoleDecision(role=Role.USER, basis=DecisionBasis.POSITIONAL), settings) == 0.45
        assert score_confidence(RoleDecision(role=Role.USER, basis=DecisionBasis.FALLBACK), settings) == 0.3

    def test_corroborated_band(self, settings):
        score = score_confidence(decision(Role.USER, DecisionBasis.HEURISTIC, [2.0, 1.0, 1.5]), settings)
        assert score == pytest.approx(0.832, abs=0.001)

    def test_weak_band(self, settings):
        score = score_confidence(decision(Role.ASSISTANT, DecisionBasis.HEURISTIC, [1.5]), settings)
        assert score == pytest.approx(0.55)

    def test_corroborated_grows_and_saturates(self, settings):
        low = score_confidence(decision(Role.ASSISTANT, DecisionBasis.HEURISTIC, [1.5, 1.5]), settings)
        high = score_confidence(decision(Role.ASSISTANT, DecisionBasis.HEURISTIC, [2.5, 2.0, 3.0, 2.0]), settings)
        huge = score_confidence(decision(Role.ASSISTANT, DecisionBasis.HEURISTIC, [4.0] * 5), settings)

        assert 0.7 <= low < high < huge < 0.95

    def test_score_all_sets_confidence(self, settings):
        decisions = [
            RoleDecision(role=Role.USER, basis=DecisionBasis.MARKER),
            RoleDecision(role=Role.ASSISTANT, basis=DecisionBasis.FALLBACK),
        ]
        assert score_all(decisions, settings) == [1.0, 0.3]
        assert decisions[1].confidence == 0.3
