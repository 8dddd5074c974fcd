"""
ConversationEngine - one request/response cycle per inbound message.

The engine holds no per-conversation state. Context and state come in,
new context and state go out, so any caller (web handler, CLI, test) can
persist them however it likes.

Turn pipeline:
    parse -> validate -> off-topic check -> merge -> score
    -> percentage -> stage / blockers -> select response -> log

Usage:
    engine = ConversationEngine()
    start = engine.start_conversation()

    result = engine.process_message(
        "I want a fitness app with workout tracking",
        start.context,
        start.state,
        history=[{"content": start.messages[-1], "sender_role": "bot"}],
    )
    print(result.message, result.state.completion_percentage)
"""

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from briefbot.context_accumulator import ContextAccumulator, ConversationContext
from briefbot.feature_flags import FeatureFlags, flags as default_flags
from briefbot.history import last_bot_message
from briefbot.logger import logger
from briefbot.message_scoring import MessageScore, MessageScorer
from briefbot.nlp.extractor import MessageExtractor
from briefbot.nlp.models import ParsedMessage
from briefbot.nlp.validation import validate_message
from briefbot.question_catalog import QuestionCatalog, get_catalog
from briefbot.response_selector import ResponseSelector, TurnSnapshot
from briefbot.settings import settings
from briefbot.stage_machine import ConversationState, StageMachine


@dataclass
class TurnResult:
    """Output of one process_message() call."""
    context: ConversationContext
    state: ConversationState
    message: str
    parsed: ParsedMessage
    score: MessageScore
    rule: str
    # Actual change of completion_percentage this turn
    progress_delta: int
    valid: bool
    off_topic: bool = False
    validation_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context.to_dict(),
            "state": self.state.to_dict(),
            "message": self.message,
            "parsed": self.parsed.to_dict(),
            "score": self.score.to_dict(),
            "rule": self.rule,
            "progress_delta": self.progress_delta,
            "valid": self.valid,
            "off_topic": self.off_topic,
            "validation_reason": self.validation_reason,
        }


@dataclass
class ConversationStart:
    context: ConversationContext
    state: ConversationState
    messages: List[str] = field(default_factory=list)


class ConversationEngine:
    """
    Orchestrates extractor, accumulator, scorer, stage machine and selector.

    Args:
        catalog: Question catalog (default: get_catalog())
        rng: Random source for question picks
        flags: Feature flags (default: global flags)
    """

    def __init__(
        self,
        catalog: Optional[QuestionCatalog] = None,
        rng: Optional[random.Random] = None,
        flags: Optional[FeatureFlags] = None,
    ):
        self.catalog = catalog if catalog is not None else get_catalog()
        self.flags = flags or default_flags
        self.extractor = MessageExtractor()
        self.accumulator = ContextAccumulator()
        self.scorer = MessageScorer()
        self.stage_machine = StageMachine(
            guidance=self.catalog.stage_guidance,
            off_topic_terms=self.catalog.lexicons.off_topic,
            app_relevant_terms=self.catalog.lexicons.app_relevant,
            accumulator=self.accumulator,
        )
        self.selector = ResponseSelector(
            self.catalog,
            rng=rng,
            flags=self.flags,
            stage_machine=self.stage_machine,
            accumulator=self.accumulator,
            extractor=self.extractor,
        )
        self.log_turns = bool(settings.get_nested("logging.log_turns", True))

    # =========================================================================
    # Public API
    # =========================================================================

    def start_conversation(self) -> ConversationStart:
        """Empty context and state plus the welcome messages."""
        return ConversationStart(
            context=ConversationContext(),
            state=ConversationState.initial(),
            messages=self.selector.welcome_messages(),
        )

    def completion_message(self, context: ConversationContext) -> str:
        return self.selector.completion_message(context)

    def process_message(
        self,
        text: Optional[str],
        context: Optional[ConversationContext] = None,
        state: Optional[ConversationState] = None,
        history: Optional[List[Dict]] = None,
        conversation_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Process one inbound message.

        Args:
            text: Raw user message (any string, including garbage)
            context: Accumulated context (not modified)
            state: Conversation state (not modified)
            history: Prior messages as {"content", "sender_role"} dicts,
                     oldest first, without the current message
            conversation_id: Attached to every log line of this turn

        Returns:
            TurnResult with the new context, new state and outbound message
        """
        if conversation_id:
            logger.set_conversation(conversation_id)
        try:
            return self._process(
                text or "",
                context or ConversationContext(),
                state or ConversationState.initial(),
                history or [],
            )
        finally:
            if conversation_id:
                logger.clear_conversation()

    # =========================================================================
    # Turn pipeline
    # =========================================================================

    def _process(
        self,
        text: str,
        context: ConversationContext,
        state: ConversationState,
        history: List[Dict],
    ) -> TurnResult:
        parsed = self.extractor.parse(text)
        validation = validate_message(text, parsed)
        off_topic = (
            validation.valid
            and self.flags.off_topic_redirect
            and self.stage_machine.is_off_topic(text)
        )
        accepted = validation.valid and not off_topic
        last_bot = last_bot_message(history)

        if accepted:
            new_context = self.accumulator.merge(
                context, parsed.entities, parsed.intent, parsed.facts, text
            )
            if parsed.is_agreement and self.flags.agreement_adoption:
                subject = self.selector.identify_subject(last_bot)
                if subject:
                    new_context = self.accumulator.adopt_subject(new_context, *subject)
                    logger.debug("Agreement subject adopted", kind=subject[0], term=subject[1])
        else:
            new_context = self.accumulator.set_focus(context, parsed.intent)

        score = self.scorer.score(text, parsed, new_context, history, known_context=context)
        percentage = self._next_percentage(state, new_context, score, accepted)

        new_state = self.stage_machine.advance(
            state,
            new_context,
            percentage,
            score.quality,
            score.needs_clarification or not validation.valid,
            topic=parsed.intent.value if accepted else None,
        )

        decision = self.selector.select(
            TurnSnapshot(
                text=text,
                parsed=parsed,
                context_before=context,
                context=new_context,
                state=new_state,
                validation=validation,
                off_topic=off_topic,
                history=history,
                last_bot_message=last_bot,
            )
        )
        new_state = self.stage_machine.record_questions(new_state, decision.asked)
        delta = new_state.completion_percentage - state.completion_percentage

        if self.log_turns:
            logger.event(
                "turn_processed",
                rule=decision.rule,
                stage=new_state.stage,
                percentage=new_state.completion_percentage,
                score=score.total,
                quality=score.quality.value,
                valid=validation.valid,
                off_topic=off_topic,
            )
            logger.metric("progress_delta", delta, rule=decision.rule)

        return TurnResult(
            context=new_context,
            state=new_state,
            message=decision.message,
            parsed=parsed,
            score=score,
            rule=decision.rule,
            progress_delta=delta,
            valid=validation.valid,
            off_topic=off_topic,
            validation_reason=validation.reason,
        )

    def _next_percentage(
        self,
        state: ConversationState,
        context: ConversationContext,
        score: MessageScore,
        accepted: bool,
    ) -> int:
        """
        old + delta, raised to the structural completeness when that flag is
        on. Invalid and off-topic turns add nothing. Never below old, never
        above 100.
        """
        old = state.completion_percentage
        if not accepted:
            return old

        percentage = old + score.progress_delta
        if self.flags.structural_completeness:
            percentage = max(percentage, self.accumulator.completeness(context))
        return min(100, max(old, percentage))
