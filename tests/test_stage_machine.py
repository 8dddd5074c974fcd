"""
Tests for the stage machine (stage_machine.py).
"""

import pytest

from briefbot.context_accumulator import ConversationContext
from briefbot.message_scoring import MessageScore, QualityTier, ScoreBreakdown
from briefbot.stage_machine import (
    BLOCKER_APP_TYPE,
    BLOCKER_FEATURES,
    BLOCKER_QUALITY,
    PROGRESS_DONE,
    ConversationState,
    Stage,
    StageMachine,
    StageRequirement,
)


EMPTY = ConversationContext()
WITH_CATEGORY = ConversationContext(app_category="fitness")
TWO_FEATURES = ConversationContext(app_category="fitness", features=["chat", "tracking"])
THREE_FEATURES = ConversationContext(app_category="fitness", features=["chat", "tracking", "calendar"])
WITH_DESIGN = ConversationContext(
    app_category="fitness", features=["chat", "tracking", "calendar"], design_preferences=["green"],
)


def make_score(quality=QualityTier.GOOD, needs_clarification=False) -> MessageScore:
    return MessageScore(
        breakdown=ScoreBreakdown(),
        total=0,
        quality=quality,
        should_increase_progress=False,
        progress_delta=0,
        feedback="",
        needs_clarification=needs_clarification,
    )


class TestDeriveStage:

    def setup_method(self):
        self.machine = StageMachine()

    @pytest.mark.parametrize("percentage,context,stage", [
        (0, EMPTY, Stage.INITIAL),
        (12, WITH_CATEGORY, Stage.INITIAL),
        (20, EMPTY, Stage.INITIAL),
        (20, WITH_CATEGORY, Stage.APP_TYPE_DISCOVERY),
        (45, TWO_FEATURES, Stage.APP_TYPE_DISCOVERY),
        (45, THREE_FEATURES, Stage.FEATURE_GATHERING),
        (60, THREE_FEATURES, Stage.DESIGN_EXPLORATION),
        (72, WITH_DESIGN, Stage.DESIGN_EXPLORATION),
        (80, THREE_FEATURES, Stage.DESIGN_EXPLORATION),
        (80, WITH_DESIGN, Stage.TECHNICAL_DETAILS),
        (95, WITH_DESIGN, Stage.REFINEMENT),
        (100, THREE_FEATURES, Stage.COMPLETE),
        (100, WITH_CATEGORY, Stage.REFINEMENT),
    ])
    def test_stage_for_percentage_and_context(self, percentage, context, stage):
        assert self.machine.derive_stage(percentage, context) is stage

    def test_pure_function(self):
        first = self.machine.derive_stage(45, THREE_FEATURES)
        second = self.machine.derive_stage(45, THREE_FEATURES)
        assert first is second

    def test_steps_back_only_one_stage(self):
        # Band says complete, context has nothing: one step back, no further
        assert self.machine.derive_stage(100, EMPTY) is Stage.REFINEMENT

    def test_custom_table_with_gap(self):
        machine = StageMachine(requirements={
            Stage.INITIAL: StageRequirement(Stage.INITIAL, 0, 10),
            Stage.FEATURE_GATHERING: StageRequirement(Stage.FEATURE_GATHERING, 40, 60),
        })

        assert machine.derive_stage(5, EMPTY) is Stage.INITIAL
        assert machine.derive_stage(25, EMPTY) is Stage.INITIAL
        assert machine.derive_stage(50, EMPTY) is Stage.FEATURE_GATHERING
        assert machine.derive_stage(70, EMPTY) is Stage.FEATURE_GATHERING

    def test_stage_without_requirement_is_met(self):
        machine = StageMachine(requirements={})
        assert machine.requirements_met(Stage.COMPLETE, EMPTY) is True

    def test_next_stage(self):
        assert self.machine.next_stage(Stage.INITIAL) is Stage.APP_TYPE_DISCOVERY
        assert self.machine.next_stage(Stage.COMPLETE) is None


class TestCanProgress:

    def setup_method(self):
        self.machine = StageMachine()

    def test_needs_percentage_and_requirements(self):
        state = ConversationState(stage="initial", completion_percentage=12)

        assert self.machine.can_progress(state, WITH_CATEGORY) is True
        assert self.machine.can_progress(state, EMPTY) is False

    def test_below_band(self):
        state = ConversationState(stage="app_type_discovery", completion_percentage=20)
        assert self.machine.can_progress(state, THREE_FEATURES) is False

    def test_complete_cannot_progress(self):
        state = ConversationState(stage="complete", completion_percentage=100)
        assert self.machine.can_progress(state, THREE_FEATURES) is False


class TestBlockers:

    def setup_method(self):
        self.machine = StageMachine()

    def test_no_blockers_early(self):
        assert self.machine.compute_blockers(30, EMPTY) == []

    def test_app_type_missing(self):
        assert self.machine.compute_blockers(31, EMPTY) == [BLOCKER_APP_TYPE]

    def test_features_missing(self):
        assert self.machine.compute_blockers(56, TWO_FEATURES) == [BLOCKER_FEATURES]
        assert self.machine.compute_blockers(56, THREE_FEATURES) == []

    def test_poor_quality(self):
        blockers = self.machine.compute_blockers(60, EMPTY, QualityTier.POOR)
        assert blockers == [BLOCKER_APP_TYPE, BLOCKER_FEATURES, BLOCKER_QUALITY]


class TestOffTopic:

    def setup_method(self):
        self.machine = StageMachine(off_topic_terms=["weather", "how are you"], app_relevant_terms=["app"])

    @pytest.mark.parametrize("text,expected", [
        ("Nice weather today", True),
        ("How are you?", True),
        ("A weather app for sailors", False),
        ("A recipe planner", False),
        ("", False),
        (None, False),
    ])
    def test_lexicons(self, text, expected):
        assert self.machine.is_off_topic(text) is expected

    def test_word_boundaries(self):
        assert StageMachine(off_topic_terms=["hi"]).is_off_topic("this is a thing") is False

    def test_empty_lexicon_never_off_topic(self):
        assert StageMachine().is_off_topic("nice weather") is False


class TestGuidanceAndFeedback:

    def test_guidance_lookup(self):
        machine = StageMachine(guidance={"initial": "What app?"})
        assert machine.stage_guidance(Stage.INITIAL) == "What app?"
        assert machine.stage_guidance(Stage.REFINEMENT) == "Tell me more about your app."

    @pytest.mark.parametrize("percentage,prefix", [
        (0, "Just getting started!"),
        (19, "Just getting started!"),
        (20, "Good progress!"),
        (45, "Great!"),
        (70, "Excellent!"),
        (99, "Almost there!"),
    ])
    def test_progress_feedback(self, percentage, prefix):
        assert StageMachine.progress_feedback(percentage).startswith(prefix)

    def test_progress_done(self):
        assert StageMachine.progress_feedback(100) == PROGRESS_DONE


class TestAdvance:

    def setup_method(self):
        self.machine = StageMachine()

    def test_percentage_never_decreases(self):
        state = ConversationState(completion_percentage=50)
        updated = self.machine.advance(state, THREE_FEATURES, 40, QualityTier.BASIC, False)
        assert updated.completion_percentage == 50

    def test_percentage_capped(self):
        updated = self.machine.advance(ConversationState(), THREE_FEATURES, 150, QualityTier.GOOD, False)
        assert updated.completion_percentage == 100
        assert updated.stage == "complete"

    def test_fields_updated(self):
        state = ConversationState()
        updated = self.machine.advance(state, THREE_FEATURES, 45, QualityTier.GOOD, True, topic="describing_features")

        assert updated.stage == "feature_gathering"
        assert updated.message_count == 1
        assert updated.needs_clarification is True
        assert updated.current_focus == "core_features"
        assert updated.last_quality == "good"
        assert updated.topics_discussed == ["describing_features"]
        assert state.message_count == 0

    def test_topic_recorded_once(self):
        state = ConversationState(topics_discussed=["describing_design"])
        updated = self.machine.advance(state, EMPTY, 0, None, False, topic="describing_design")
        assert updated.topics_discussed == ["describing_design"]
        assert updated.last_quality is None

    def test_monotonic_over_turns(self):
        state = ConversationState()
        seen = []
        for percentage in [10, 5, 30, 20, 60, 55, 100]:
            state = self.machine.advance(state, WITH_DESIGN, percentage, QualityTier.GOOD, False)
            seen.append(state.completion_percentage)
        assert seen == sorted(seen)


class TestUpdateState:

    def setup_method(self):
        self.machine = StageMachine()

    def test_score_drives_advance(self):
        score = make_score(QualityTier.POOR, needs_clarification=True)
        updated = self.machine.update_state(ConversationState(), score, EMPTY, 0, questions=["What app?"])

        assert updated.last_quality == "poor"
        assert updated.needs_clarification is True
        assert updated.blockers == [BLOCKER_QUALITY]
        assert updated.questions_asked == ["What app?"]

    def test_without_score(self):
        updated = self.machine.update_state(ConversationState(), None, EMPTY, 0)
        assert updated.last_quality is None
        assert updated.needs_clarification is False

    def test_record_questions_skips_duplicates(self):
        state = ConversationState(questions_asked=["A?"])
        updated = StageMachine.record_questions(state, ["A?", "B?", "", "B?"])

        assert updated.questions_asked == ["A?", "B?"]
        assert state.questions_asked == ["A?"]


class TestConversationState:

    def test_round_trip(self):
        state = ConversationState(
            stage="design_exploration",
            completion_percentage=62,
            message_count=7,
            questions_asked=["Which colors?"],
            topics_discussed=["describing_design"],
            blockers=[BLOCKER_FEATURES],
            current_focus="design_preferences",
            last_quality="good",
        )
        assert ConversationState.from_dict(state.to_dict()) == state

    def test_from_none(self):
        assert ConversationState.from_dict(None) == ConversationState.initial()

    def test_has_asked(self):
        assert ConversationState(questions_asked=["Q"]).has_asked("Q") is True
