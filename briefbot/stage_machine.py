"""
Stage Machine - conversation phase derived from (percentage, context).

The stage is never stored as the result of an event; derive_stage() is a
pure function, so a reconnecting client gets the same stage without
replaying history.

Stages in order:
    initial -> app_type_discovery -> feature_gathering -> design_exploration
    -> technical_details -> refinement -> complete
"""

import re
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern

from briefbot.context_accumulator import ContextAccumulator, ConversationContext
from briefbot.logger import logger
from briefbot.message_scoring import MessageScore, QualityTier


class Stage(Enum):
    INITIAL = "initial"
    APP_TYPE_DISCOVERY = "app_type_discovery"
    FEATURE_GATHERING = "feature_gathering"
    DESIGN_EXPLORATION = "design_exploration"
    TECHNICAL_DETAILS = "technical_details"
    REFINEMENT = "refinement"
    COMPLETE = "complete"


STAGE_ORDER: List[Stage] = list(Stage)


@dataclass(frozen=True)
class StageRequirement:
    """Static description of one stage (inclusive percentage band)."""
    stage: Stage
    min_percentage: int
    max_percentage: int
    required_info: tuple = ()
    primary_focus: str = ""
    secondary_focus: tuple = ()

    def contains(self, percentage: int) -> bool:
        return self.min_percentage <= percentage <= self.max_percentage


DEFAULT_STAGE_REQUIREMENTS: Dict[Stage, StageRequirement] = {
    Stage.INITIAL: StageRequirement(
        Stage.INITIAL, 0, 15, (), "app_type", (),
    ),
    Stage.APP_TYPE_DISCOVERY: StageRequirement(
        Stage.APP_TYPE_DISCOVERY, 10, 30, ("app_type",), "app_type", ("core_features",),
    ),
    Stage.FEATURE_GATHERING: StageRequirement(
        Stage.FEATURE_GATHERING, 25, 55, ("app_type", "core_features"), "core_features",
        ("problem_statement", "target_audience"),
    ),
    Stage.DESIGN_EXPLORATION: StageRequirement(
        Stage.DESIGN_EXPLORATION, 50, 75, ("app_type", "core_features"), "design_preferences",
        ("user_flow",),
    ),
    Stage.TECHNICAL_DETAILS: StageRequirement(
        Stage.TECHNICAL_DETAILS, 70, 90, ("app_type", "core_features", "design_preferences"),
        "technical_requirements", ("integrations", "platform"),
    ),
    Stage.REFINEMENT: StageRequirement(
        Stage.REFINEMENT, 85, 99, ("app_type", "core_features", "design_preferences"),
        "additional_details", ("unique_value", "monetization"),
    ),
    Stage.COMPLETE: StageRequirement(
        Stage.COMPLETE, 100, 100, ("app_type", "core_features"), "ready_to_build", (),
    ),
}

BLOCKER_APP_TYPE = "App type missing"
BLOCKER_FEATURES = "Need at least 3 core features"
BLOCKER_QUALITY = "Messages need more detail"

# (threshold, message) - first threshold the percentage is below wins
PROGRESS_FEEDBACK = [
    (20, "Just getting started! Tell me about your app idea."),
    (40, "Good progress! Let's explore the features."),
    (60, "Great! We're getting a clear picture of your app."),
    (80, "Excellent! Just a few more details to go."),
    (100, "Almost there! Let's finalize the details."),
]
PROGRESS_DONE = "Perfect! Your app description is complete!"

DEFAULT_GUIDANCE = "Tell me more about your app."


@dataclass
class ConversationState:
    """Per-conversation bookkeeping owned by the engine caller."""
    stage: str = Stage.INITIAL.value
    completion_percentage: int = 0
    message_count: int = 0
    questions_asked: List[str] = field(default_factory=list)
    topics_discussed: List[str] = field(default_factory=list)
    needs_clarification: bool = False
    blockers: List[str] = field(default_factory=list)
    current_focus: str = "app_type"
    last_quality: Optional[str] = None

    @classmethod
    def initial(cls) -> "ConversationState":
        return cls()

    def copy(self) -> "ConversationState":
        return deepcopy(self)

    def has_asked(self, question: str) -> bool:
        return question in self.questions_asked

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "completion_percentage": self.completion_percentage,
            "message_count": self.message_count,
            "questions_asked": list(self.questions_asked),
            "topics_discussed": list(self.topics_discussed),
            "needs_clarification": self.needs_clarification,
            "blockers": list(self.blockers),
            "current_focus": self.current_focus,
            "last_quality": self.last_quality,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConversationState":
        data = data or {}
        return cls(
            stage=data.get("stage", Stage.INITIAL.value),
            completion_percentage=int(data.get("completion_percentage", 0)),
            message_count=int(data.get("message_count", 0)),
            questions_asked=list(data.get("questions_asked", [])),
            topics_discussed=list(data.get("topics_discussed", [])),
            needs_clarification=bool(data.get("needs_clarification", False)),
            blockers=list(data.get("blockers", [])),
            current_focus=data.get("current_focus", "app_type"),
            last_quality=data.get("last_quality"),
        )


def _phrase_patterns(phrases: Iterable[str]) -> List[Pattern]:
    return [re.compile(r"\b" + re.escape(p.lower()) + r"\b") for p in phrases if p]


class StageMachine:
    """
    Derives stage and blockers, detects off-topic messages.

    Args:
        requirements: Stage table; stages without an entry have no requirements
                      and are never selected by band
        guidance: Stage value -> guidance text
        off_topic_terms / app_relevant_terms: Lexicons for is_off_topic()
        accumulator: Used to check required information
    """

    def __init__(
        self,
        requirements: Optional[Dict[Stage, StageRequirement]] = None,
        guidance: Optional[Dict[str, str]] = None,
        off_topic_terms: Optional[Iterable[str]] = None,
        app_relevant_terms: Optional[Iterable[str]] = None,
        accumulator: Optional[ContextAccumulator] = None,
    ):
        self.requirements = dict(DEFAULT_STAGE_REQUIREMENTS if requirements is None else requirements)
        self.guidance = dict(guidance or {})
        self._off_topic = _phrase_patterns(off_topic_terms or [])
        self._app_relevant = _phrase_patterns(app_relevant_terms or [])
        self.accumulator = accumulator or ContextAccumulator()

    # =========================================================================
    # Stage derivation
    # =========================================================================

    def requirement_for(self, stage: Stage) -> Optional[StageRequirement]:
        return self.requirements.get(stage)

    def requirements_met(self, stage: Stage, context: ConversationContext) -> bool:
        requirement = self.requirements.get(stage)
        if requirement is None:
            return True
        return all(self.accumulator.is_satisfied(context, key) for key in requirement.required_info)

    def band_stage(self, percentage: int) -> Stage:
        """First stage (in order) whose band contains the percentage."""
        for stage in STAGE_ORDER:
            requirement = self.requirements.get(stage)
            if requirement and requirement.contains(percentage):
                return stage

        # Gap in a custom table: highest stage whose band starts below us
        candidate = Stage.INITIAL
        for stage in STAGE_ORDER:
            requirement = self.requirements.get(stage)
            if requirement and requirement.min_percentage <= percentage:
                candidate = stage
        return candidate

    def derive_stage(self, percentage: int, context: ConversationContext) -> Stage:
        """
        Stage for (percentage, context).

        Steps back one stage when the band stage's required information is
        missing. Pure: same inputs, same stage.
        """
        stage = self.band_stage(percentage)
        if stage is Stage.INITIAL or self.requirements_met(stage, context):
            return stage
        return STAGE_ORDER[STAGE_ORDER.index(stage) - 1]

    def next_stage(self, stage: Stage) -> Optional[Stage]:
        index = STAGE_ORDER.index(stage)
        if index + 1 < len(STAGE_ORDER):
            return STAGE_ORDER[index + 1]
        return None

    def can_progress(self, state: ConversationState, context: ConversationContext) -> bool:
        """Whether the next stage's band and requirements are both reached."""
        following = self.next_stage(Stage(state.stage))
        if following is None:
            return False
        requirement = self.requirements.get(following)
        if requirement is None:
            return True
        return (
            state.completion_percentage >= requirement.min_percentage
            and self.requirements_met(following, context)
        )

    # =========================================================================
    # Blockers
    # =========================================================================

    def _band_max(self, stage: Stage, default: int) -> int:
        requirement = self.requirements.get(stage)
        return requirement.max_percentage if requirement else default

    def compute_blockers(
        self,
        percentage: int,
        context: ConversationContext,
        quality: Optional[QualityTier] = None,
    ) -> List[str]:
        """Advisory blockers; they steer questions but never cap progress."""
        blockers = []
        if percentage > self._band_max(Stage.APP_TYPE_DISCOVERY, 30) and not context.app_category:
            blockers.append(BLOCKER_APP_TYPE)
        if (
            percentage > self._band_max(Stage.FEATURE_GATHERING, 55)
            and not self.accumulator.is_satisfied(context, "core_features")
        ):
            blockers.append(BLOCKER_FEATURES)
        if quality is QualityTier.POOR:
            blockers.append(BLOCKER_QUALITY)
        return blockers

    # =========================================================================
    # Off-topic detection and guidance
    # =========================================================================

    def is_off_topic(self, text: str) -> bool:
        """Off-topic lexicon hit and no app-relevant lexicon hit."""
        lower = (text or "").lower()
        if not any(p.search(lower) for p in self._off_topic):
            return False
        return not any(p.search(lower) for p in self._app_relevant)

    def stage_guidance(self, stage: Stage) -> str:
        return self.guidance.get(stage.value) or DEFAULT_GUIDANCE

    @staticmethod
    def progress_feedback(percentage: int) -> str:
        for threshold, message in PROGRESS_FEEDBACK:
            if percentage < threshold:
                return message
        return PROGRESS_DONE

    # =========================================================================
    # State update
    # =========================================================================

    def advance(
        self,
        state: ConversationState,
        context: ConversationContext,
        percentage: int,
        quality: Optional[QualityTier],
        needs_clarification: bool,
        topic: Optional[str] = None,
    ) -> ConversationState:
        """
        New state after one turn (questions_asked is appended by the caller).

        Percentage never decreases and never exceeds 100.
        """
        updated = state.copy()
        percentage = max(state.completion_percentage, min(100, percentage))
        stage = self.derive_stage(percentage, context)

        updated.completion_percentage = percentage
        updated.stage = stage.value
        updated.message_count += 1
        updated.needs_clarification = needs_clarification
        updated.blockers = self.compute_blockers(percentage, context, quality)
        updated.last_quality = quality.value if quality else None

        requirement = self.requirements.get(stage)
        if requirement and requirement.primary_focus:
            updated.current_focus = requirement.primary_focus
        if topic and topic not in updated.topics_discussed:
            updated.topics_discussed.append(topic)

        if stage.value != state.stage:
            logger.event(
                "stage_changed",
                from_stage=state.stage,
                to_stage=stage.value,
                percentage=percentage,
            )
        return updated

    @staticmethod
    def record_questions(state: ConversationState, questions: Iterable[str]) -> ConversationState:
        """New state with questions appended to questions_asked (no duplicates)."""
        updated = state.copy()
        for question in questions:
            if question and question not in updated.questions_asked:
                updated.questions_asked.append(question)
        return updated

    def update_state(
        self,
        state: ConversationState,
        score: Optional[MessageScore],
        context: ConversationContext,
        percentage: int,
        questions: Iterable[str] = (),
        topic: Optional[str] = None,
    ) -> ConversationState:
        """advance() driven by a MessageScore, then record the asked questions."""
        updated = self.advance(
            state,
            context,
            percentage,
            score.quality if score else None,
            score.needs_clarification if score else False,
            topic=topic,
        )
        return self.record_questions(updated, questions)
