"""
Response Selector - picks the outbound message for one turn.

The selector is a prioritized list of ResponseRule objects. Each rule has a
predicate over the turn and a factory that builds the message; the first
rule whose predicate holds wins. Every factory ends in a constant line, so
select() always returns something, whatever the catalog contains.

Order:
    invalid_input -> off_topic -> completion -> agreement -> disagreement
    -> reference -> vague -> new_category -> new_feature -> new_design_term
    -> competitor_mention -> technical_term -> stage_fallback

Usage:
    selector = ResponseSelector(catalog, rng=random.Random(7))
    decision = selector.select(turn)
    decision.message, decision.rule, decision.asked
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from briefbot.context_accumulator import ContextAccumulator, ConversationContext
from briefbot.feature_flags import FeatureFlags, flags as default_flags
from briefbot.logger import logger
from briefbot.nlp.extractor import MessageExtractor
from briefbot.nlp.models import ParsedMessage, ReferenceStrength
from briefbot.nlp.validation import ValidationResult
from briefbot.nlp.vocabulary import humanize
from briefbot.question_catalog import QuestionCatalog
from briefbot.stage_machine import (
    BLOCKER_APP_TYPE,
    BLOCKER_FEATURES,
    ConversationState,
    Stage,
    StageMachine,
)


# Terminal lines used when the catalog has nothing for a rule
FALLBACK_INVALID = "I didn't quite catch that. Could you describe your app idea in a full sentence?"
FALLBACK_REDIRECT = "Let's stay focused on your app."
FALLBACK_COMPLETION = "Your {app_type} app description is complete. You're ready to build!"
FALLBACK_AGREEMENT = "Great, {subject} it is. {follow_up}"
FALLBACK_DISAGREEMENT = "No problem, we'll leave out {subject}. {follow_up}"
FALLBACK_REFERENCE = "Right, you mentioned {reference}. {follow_up}"
FALLBACK_VAGUE = "Could you be a bit more specific? For example, {example}"
FALLBACK_CATEGORY = "Got it, a {category} app! {follow_up}"
FALLBACK_FEATURE = "Can you tell me more about {feature}?"
FALLBACK_DESIGN = "Can you tell me more about the {term} look you have in mind?"
FALLBACK_TECHNICAL = "How should your app use {term}?"
FALLBACK_COMPETITOR = "What do you like about {competitor}, and what would you do differently?"

REFERENCE_PLACEHOLDER = "what you mentioned"
DEFAULT_APP_TYPE = "custom"


@dataclass
class TurnSnapshot:
    """Everything the selector may look at for one turn."""
    text: str
    parsed: ParsedMessage
    context_before: ConversationContext
    context: ConversationContext
    state: ConversationState
    validation: ValidationResult = field(default_factory=lambda: ValidationResult(True))
    off_topic: bool = False
    history: List[Dict] = field(default_factory=list)
    last_bot_message: str = ""

    @property
    def percentage(self) -> int:
        return self.state.completion_percentage

    @property
    def stage(self) -> Stage:
        return Stage(self.state.stage)

    @property
    def is_new_category(self) -> bool:
        return not self.context_before.app_category and bool(self.context.app_category)

    @property
    def new_features(self) -> List[str]:
        return [f for f in self.parsed.entities.features if f not in self.context_before.features]

    @property
    def new_design_terms(self) -> List[str]:
        known = self.context_before.design_preferences
        return [t for t in self.parsed.entities.design_terms if t not in known]

    @property
    def new_technologies(self) -> List[str]:
        known = self.context_before.technologies
        return [t for t in self.parsed.entities.technologies if t not in known]


@dataclass
class ResponseDecision:
    message: str
    rule: str
    asked: List[str] = field(default_factory=list)


class _Draw:
    """
    Random picks for one turn.

    Bank questions already in state.questions_asked, or used earlier in the
    same turn, are never picked again.
    """

    def __init__(self, rng: random.Random, asked: Iterable[str]):
        self.rng = rng
        self._seen: Set[str] = set(asked)
        self.used: List[str] = []

    def question(self, bank: List[str]) -> Optional[str]:
        fresh = [q for q in bank if q not in self._seen]
        if not fresh:
            return None
        picked = self.rng.choice(fresh)
        self._seen.add(picked)
        self.used.append(picked)
        return picked

    def template(self, options: List[str]) -> Optional[str]:
        return self.rng.choice(options) if options else None


class _SafeValues(dict):
    """Leaves unknown placeholders in place instead of raising KeyError."""

    def __missing__(self, key):
        return "{" + key + "}"


def fill(template: str, **values: str) -> str:
    """
    Format a catalog template.

    A "{follow_up}" value is appended when the template has no slot for it.
    """
    follow_up = values.get("follow_up", "")
    try:
        text = template.format_map(_SafeValues(values))
    except (ValueError, IndexError) as e:
        logger.debug("Malformed template, using it verbatim", template=template, error=str(e))
        text = template
    if follow_up and "{follow_up}" not in template:
        text = f"{text} {follow_up}"
    return " ".join(text.split())


@dataclass
class ResponseRule:
    name: str
    predicate: Callable[[TurnSnapshot], bool]
    factory: Callable[[TurnSnapshot, _Draw], str]


class ResponseSelector:
    """
    Data-driven rule cascade over a QuestionCatalog.

    Args:
        catalog: Question banks, templates and lexicons
        rng: Random source for uniform picks (inject a seeded one in tests)
        flags: Feature flags (competitor_questions, technical_questions)
        stage_machine: Stage requirements and guidance
        accumulator: Used to skip focus topics the context already covers
        extractor: Used to find the subject of the last outbound question
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        rng: Optional[random.Random] = None,
        flags: Optional[FeatureFlags] = None,
        stage_machine: Optional[StageMachine] = None,
        accumulator: Optional[ContextAccumulator] = None,
        extractor: Optional[MessageExtractor] = None,
    ):
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.flags = flags or default_flags
        self.accumulator = accumulator or ContextAccumulator()
        self.stage_machine = stage_machine or StageMachine(
            guidance=catalog.stage_guidance,
            off_topic_terms=catalog.lexicons.off_topic,
            app_relevant_terms=catalog.lexicons.app_relevant,
            accumulator=self.accumulator,
        )
        self.extractor = extractor or MessageExtractor()
        self.rules: List[ResponseRule] = self._build_rules()

    def _build_rules(self) -> List[ResponseRule]:
        return [
            ResponseRule("invalid_input", lambda t: not t.validation.valid, self._invalid_input),
            ResponseRule("off_topic", lambda t: t.off_topic, self._off_topic),
            ResponseRule("completion", lambda t: t.percentage >= 100, self._completion),
            ResponseRule("agreement", self._is_subject_agreement, self._agreement),
            ResponseRule("disagreement", self._is_subject_disagreement, self._disagreement),
            ResponseRule("reference", lambda t: t.parsed.is_reference, self._reference),
            ResponseRule("vague", lambda t: t.parsed.is_vague, self._vague),
            ResponseRule("new_category", lambda t: t.is_new_category, self._new_category),
            ResponseRule("new_feature", lambda t: bool(t.new_features), self._new_feature),
            ResponseRule("new_design_term", lambda t: bool(t.new_design_terms), self._new_design_term),
            ResponseRule("competitor_mention", self._is_competitor_mention, self._competitor_mention),
            ResponseRule("technical_term", self._is_technical_term, self._technical_term),
            ResponseRule("stage_fallback", lambda t: True, self.follow_up),
        ]

    # =========================================================================
    # Public API
    # =========================================================================

    def select(self, turn: TurnSnapshot) -> ResponseDecision:
        """Run the cascade; the first applicable rule builds the message."""
        draw = _Draw(self.rng, turn.state.questions_asked)
        for rule in self.rules:
            if rule.predicate(turn):
                message = rule.factory(turn, draw)
                logger.debug("Response rule selected", rule=rule.name, asked=len(draw.used))
                return ResponseDecision(message=message, rule=rule.name, asked=list(draw.used))

        # Unreachable with the default rule list
        return ResponseDecision(message=self.catalog.generic_question, rule="generic")

    def identify_subject(self, last_bot_message: str) -> Optional[Tuple[str, str]]:
        """
        Feature or design term named in the last outbound question.

        Returns:
            ("feature", name), ("design", term) or None
        """
        if not last_bot_message:
            return None
        entities = self.extractor.extract_entities(self.extractor.clean(last_bot_message))
        if entities.features:
            return "feature", entities.features[0]
        if entities.design_terms:
            return "design", entities.design_terms[0]
        return None

    def completion_message(self, context: ConversationContext) -> str:
        app_type = humanize(context.app_category) if context.app_category else DEFAULT_APP_TYPE
        template = self.rng.choice(self.catalog.template("completion") or [FALLBACK_COMPLETION])
        return fill(template, app_type=app_type)

    def welcome_messages(self) -> List[str]:
        return self.catalog.template("welcome") or [self.catalog.generic_question]

    # =========================================================================
    # Follow-up question (stage fallback)
    # =========================================================================

    def follow_up(self, turn: TurnSnapshot, draw: _Draw) -> str:
        """
        Next question driven by blockers, then stage focus.

        Blocker banks first, then the primary focus bank, then secondary
        banks, then encouragement, then the generic question.
        """
        context = turn.context

        focus_keys: List[str] = []
        if BLOCKER_APP_TYPE in turn.state.blockers:
            focus_keys.append("app_type")
        if BLOCKER_FEATURES in turn.state.blockers:
            focus_keys.append("core_features")

        requirement = self.stage_machine.requirement_for(turn.stage)
        if requirement:
            for key in (requirement.primary_focus,) + tuple(requirement.secondary_focus):
                if key and not self.accumulator.is_covered(context, key):
                    focus_keys.append(key)

        for key in focus_keys:
            question = self._focus_question(key, context, draw)
            if question:
                return question

        question = draw.question(self.catalog.template("encouragement"))
        if question:
            return question

        logger.debug("Question banks exhausted, using generic question", stage=turn.stage.value)
        return self.catalog.generic_question

    def _focus_question(self, key: str, context: ConversationContext, draw: _Draw) -> Optional[str]:
        if key == "core_features" and context.app_category:
            question = draw.question(self.catalog.bank("category_questions", context.app_category))
            if question:
                return question
        return draw.question(self.catalog.bank("focus_questions", key))

    # =========================================================================
    # Predicates
    # =========================================================================

    def _is_subject_agreement(self, turn: TurnSnapshot) -> bool:
        return turn.parsed.is_agreement and self.identify_subject(turn.last_bot_message) is not None

    def _is_subject_disagreement(self, turn: TurnSnapshot) -> bool:
        return turn.parsed.is_disagreement and self.identify_subject(turn.last_bot_message) is not None

    def _is_competitor_mention(self, turn: TurnSnapshot) -> bool:
        return self.flags.competitor_questions and bool(turn.parsed.entities.competitors)

    def _is_technical_term(self, turn: TurnSnapshot) -> bool:
        return self.flags.technical_questions and bool(turn.new_technologies)

    # =========================================================================
    # Factories
    # =========================================================================

    def _invalid_input(self, turn: TurnSnapshot, draw: _Draw) -> str:
        template = draw.template(self.catalog.template("invalid_input"))
        if not template:
            return FALLBACK_INVALID
        return fill(template, reason=turn.validation.reason or "message unclear")

    def _off_topic(self, turn: TurnSnapshot, draw: _Draw) -> str:
        prefix = draw.template(self.catalog.template("redirection_prefixes")) or FALLBACK_REDIRECT
        return f"{prefix} {self.stage_machine.stage_guidance(turn.stage)}"

    def _completion(self, turn: TurnSnapshot, draw: _Draw) -> str:
        return self.completion_message(turn.context)

    def _acknowledge(self, turn: TurnSnapshot, draw: _Draw, name: str, fallback: str) -> str:
        kind, term = self.identify_subject(turn.last_bot_message)
        variant = "to_feature" if kind == "feature" else "to_design"
        template = (
            draw.template(self.catalog.template(name, variant))
            or draw.template(self.catalog.template(name, "general"))
            or fallback
        )
        return fill(template, subject=humanize(term), follow_up=self.follow_up(turn, draw))

    def _agreement(self, turn: TurnSnapshot, draw: _Draw) -> str:
        return self._acknowledge(turn, draw, "agreement", FALLBACK_AGREEMENT)

    def _disagreement(self, turn: TurnSnapshot, draw: _Draw) -> str:
        return self._acknowledge(turn, draw, "disagreement", FALLBACK_DISAGREEMENT)

    def _reference(self, turn: TurnSnapshot, draw: _Draw) -> str:
        context = turn.context
        if context.app_category:
            reference = f"the {humanize(context.app_category)} app"
        elif context.latest_feature:
            reference = f"the {humanize(context.latest_feature)} feature"
        else:
            reference = REFERENCE_PLACEHOLDER

        name = (
            "reference_apologetic"
            if turn.parsed.reference_strength is ReferenceStrength.STRONG
            else "reference_acknowledging"
        )
        template = draw.template(self.catalog.template(name)) or FALLBACK_REFERENCE
        return fill(template, reference=reference, follow_up=self.follow_up(turn, draw))

    def _vague(self, turn: TurnSnapshot, draw: _Draw) -> str:
        missing = self.accumulator.missing_information(turn.context)
        key = missing[0] if missing else "additional_details"
        example = self.catalog.missing_examples.get(key)
        if not example:
            return f"Could you be a bit more specific? {self.follow_up(turn, draw)}"
        template = draw.template(self.catalog.template("vague")) or FALLBACK_VAGUE
        return fill(template, example=example)

    def _new_category(self, turn: TurnSnapshot, draw: _Draw) -> str:
        category = turn.context.app_category
        question = draw.question(self.catalog.bank("category_questions", category))
        if question:
            return question
        template = draw.template(self.catalog.template("category_confirmation")) or FALLBACK_CATEGORY
        return fill(template, category=humanize(category), follow_up=self.follow_up(turn, draw))

    def _new_feature(self, turn: TurnSnapshot, draw: _Draw) -> str:
        feature = turn.new_features[0]
        question = draw.question(self.catalog.bank("feature_questions", feature))
        if question:
            return question
        template = draw.template(self.catalog.template("feature_fallback")) or FALLBACK_FEATURE
        return fill(template, feature=humanize(feature))

    def _new_design_term(self, turn: TurnSnapshot, draw: _Draw) -> str:
        term = turn.new_design_terms[0]
        question = draw.question(self.catalog.bank("design_questions", term))
        if question:
            return question
        template = draw.template(self.catalog.template("design_fallback")) or FALLBACK_DESIGN
        return fill(template, term=humanize(term))

    def _competitor_mention(self, turn: TurnSnapshot, draw: _Draw) -> str:
        competitor = turn.parsed.entities.competitors[0]
        template = draw.template(self.catalog.template("competitor")) or FALLBACK_COMPETITOR
        return fill(template, competitor=competitor.title())

    def _technical_term(self, turn: TurnSnapshot, draw: _Draw) -> str:
        term = turn.new_technologies[0]
        question = draw.question(self.catalog.bank("technical_questions", term))
        if question:
            return question
        template = draw.template(self.catalog.template("technical_fallback")) or FALLBACK_TECHNICAL
        return fill(template, term=humanize(term))
