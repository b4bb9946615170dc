"""Stage 4: Role Classification - Attribute each block to user or assistant.

Blocks carrying a marker role keep it. Every other block is scored with
an ordered rule table; each rule that fires adds its weight to the role it
points at. Rules see the block's own features and a RoleContext describing
the block before it, so an answer right after a question leans assistant
without the speakers being forced to alternate.

The decision is the sign of (assistant weight - user weight), with two
escape hatches:
- weak margin on a short trailing fragment: continue the previous speaker
- no rule fired at all: structural fallback (first block is the user,
  afterwards the speaker alternates)
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from chatsplit.config.settings import Settings
from chatsplit.models import DecisionBasis, Role
from chatsplit.pipeline.models import Block, RoleDecision, RoleSignal
from chatsplit.pipeline.stages.features import BlockFeatures

logger = structlog.get_logger(__name__)


# Blocks shorter than this may inherit the previous role on a weak margin
POSITIONAL_MAX_CHARS = 80


@dataclass(frozen=True)
class RoleContext:
    """The block before the one being scored."""
    previous_role: Optional[Role] = None
    previous_features: Optional[BlockFeatures] = None

    @property
    def after_user(self) -> bool:
        return self.previous_role == Role.USER and self.previous_features is not None

    @property
    def after_question(self) -> bool:
        """The user just asked something."""
        if not self.after_user:
            return False
        return self.previous_features.ends_with_question or self.previous_features.interrogative

    @property
    def after_request(self) -> bool:
        """The user just gave an order or reported a failure."""
        if not self.after_user:
            return False
        previous = self.previous_features
        return previous.imperative or previous.error_log or previous.first_person_problem

    @property
    def after_error_log(self) -> bool:
        return self.previous_features is not None and self.previous_features.error_log


NO_CONTEXT = RoleContext()


@dataclass(frozen=True)
class RoleRule:
    """One weighted signal in the role table."""
    name: str
    predicate: Callable[[BlockFeatures, RoleContext, Settings], bool]
    weight: float
    target: Role


# =============================================================================
# Rule Table
# =============================================================================

ROLE_RULES: list[RoleRule] = [
    # Assistant-leaning structure and phrasing
    RoleRule("heading", lambda f, c, s: f.heading_lines > 0, 2.5, Role.ASSISTANT),
    RoleRule("list", lambda f, c, s: f.list_items >= 2, 2.0, Role.ASSISTANT),
    RoleRule("pipe_table", lambda f, c, s: f.has_table, 2.5, Role.ASSISTANT),
    RoleRule("fenced_code_with_prose", lambda f, c, s: f.fence_with_prose, 2.0, Role.ASSISTANT),
    RoleRule("long_text", lambda f, c, s: f.char_count >= s.long_block_chars, 1.5, Role.ASSISTANT),
    RoleRule("very_long_text", lambda f, c, s: f.char_count >= s.very_long_block_chars, 1.0, Role.ASSISTANT),
    RoleRule("explanatory", lambda f, c, s: f.explanatory, 1.5, Role.ASSISTANT),
    RoleRule("assistant_opener", lambda f, c, s: f.assistant_opener, 1.5, Role.ASSISTANT),
    RoleRule("assistant_ack", lambda f, c, s: f.assistant_ack, 3.0, Role.ASSISTANT),
    RoleRule("follow_up_offer", lambda f, c, s: f.follow_up_offer, 2.0, Role.ASSISTANT),
    # Assistant-leaning position: a reply to what the user just sent
    RoleRule("follows_question", lambda f, c, s: c.after_question and not f.user_cue, 2.0, Role.ASSISTANT),
    RoleRule(
        "follows_request",
        lambda f, c, s: c.after_request and not c.after_question and not f.user_cue,
        1.5,
        Role.ASSISTANT,
    ),
    # User-leaning phrasing and pasted material
    RoleRule("question_mark", lambda f, c, s: f.ends_with_question, 2.0, Role.USER),
    RoleRule("interrogative", lambda f, c, s: f.interrogative and f.char_count < 300, 1.0, Role.USER),
    RoleRule("imperative", lambda f, c, s: f.imperative and f.char_count <= 200, 2.0, Role.USER),
    RoleRule(
        "problem_report",
        lambda f, c, s: f.first_person_problem and f.char_count <= 300 and not c.after_error_log,
        1.5,
        Role.USER,
    ),
    RoleRule("brevity", lambda f, c, s: f.char_count < s.brevity_chars and not f.declarative, 1.5, Role.USER),
    RoleRule("error_log", lambda f, c, s: f.error_log, 4.0, Role.USER),
    RoleRule("gratitude", lambda f, c, s: f.user_gratitude and f.char_count <= 120, 3.0, Role.USER),
    RoleRule("bare_code_paste", lambda f, c, s: f.bare_code_paste, 1.5, Role.USER),
    RoleRule("standalone_command", lambda f, c, s: f.standalone_command, 1.0, Role.USER),
]

RULE_NAMES = {rule.name for rule in ROLE_RULES}


def fire_rules(
    features: BlockFeatures,
    settings: Settings,
    weight_overrides: Optional[dict[str, float]] = None,
    context: RoleContext = NO_CONTEXT,
) -> list[RoleSignal]:
    """Evaluate the rule table against one block's features."""
    overrides = weight_overrides or {}
    signals = []
    for rule in ROLE_RULES:
        if not rule.predicate(features, context, settings):
            continue
        weight = overrides.get(rule.name, rule.weight)
        if weight <= 0:
            continue
        signals.append(RoleSignal(name=rule.name, target=rule.target, weight=weight))
    return signals


def decide_role(
    features: BlockFeatures,
    previous: Optional[Role],
    settings: Settings,
    weight_overrides: Optional[dict[str, float]] = None,
    previous_features: Optional[BlockFeatures] = None,
) -> RoleDecision:
    """Decide the role of a block without a marker.

    Args:
        features: Features of the block
        previous: Role of the preceding block, if any
        settings: Decision thresholds
        weight_overrides: Rule name → replacement weight
        previous_features: Features of the preceding block, if any

    Returns:
        RoleDecision with the fired signals and scores
    """
    context = RoleContext(previous_role=previous, previous_features=previous_features)
    signals = fire_rules(features, settings, weight_overrides, context)
    assistant = sum(s.weight for s in signals if s.target == Role.ASSISTANT)
    user = sum(s.weight for s in signals if s.target == Role.USER)
    margin = assistant - user

    fallback = Role.USER if previous is None else previous.opposite

    if not signals:
        role, basis = fallback, DecisionBasis.FALLBACK
    elif (
        abs(margin) < settings.weak_margin
        and features.char_count < POSITIONAL_MAX_CHARS
        and previous is not None
    ):
        role, basis = previous, DecisionBasis.POSITIONAL
    elif margin > 0:
        role, basis = Role.ASSISTANT, DecisionBasis.HEURISTIC
    elif margin < 0:
        role, basis = Role.USER, DecisionBasis.HEURISTIC
    else:
        role, basis = fallback, DecisionBasis.FALLBACK

    return RoleDecision(
        role=role,
        basis=basis,
        signals=signals,
        assistant_score=assistant,
        user_score=user,
    )


def classify_roles(
    blocks: list[Block],
    features: list[BlockFeatures],
    settings: Settings,
    weight_overrides: Optional[dict[str, float]] = None,
) -> list[RoleDecision]:
    """Attribute every block, in order.

    Marker roles are taken as given; each decision sees the role chosen
    for the block before it and that block's features.
    """
    unknown = sorted(set(weight_overrides or {}) - RULE_NAMES)
    if unknown:
        logger.warning("unknown_weight_overrides", rules=unknown)

    decisions: list[RoleDecision] = []
    previous: Optional[Role] = None
    previous_features: Optional[BlockFeatures] = None

    for block, block_features in zip(blocks, features):
        if block.marker_role is not None:
            decision = RoleDecision(role=block.marker_role, basis=DecisionBasis.MARKER)
        else:
            decision = decide_role(
                block_features, previous, settings, weight_overrides, previous_features
            )
        decisions.append(decision)
        previous = decision.role
        previous_features = block_features

    logger.debug(
        "roles_classified",
        blocks=len(decisions),
        user=sum(1 for d in decisions if d.role == Role.USER),
        assistant=sum(1 for d in decisions if d.role == Role.ASSISTANT),
        fallback=sum(1 for d in decisions if d.basis == DecisionBasis.FALLBACK),
    )

    return decisions
