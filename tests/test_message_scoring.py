"""
Tests for message scoring (message_scoring.py).
"""

import pytest

from briefbot.context_accumulator import ContextAccumulator, ConversationContext
from briefbot.message_scoring import MessageScorer, QualityTier, ScoreBreakdown
from briefbot.nlp import MessageExtractor


class ScoringTestBase:

    def setup_method(self):
        self.scorer = MessageScorer()
        self.extractor = MessageExtractor()
        self.accumulator = ContextAccumulator()

    def score(self, text, context=None, history=None):
        """Score the way the engine does: merged context plus the pre-merge one."""
        context = context or ConversationContext()
        parsed = self.extractor.parse(text)
        merged = self.accumulator.merge(context, parsed.entities, parsed.intent, parsed.facts, text)
        return self.scorer.score(text, parsed, merged, history, known_context=context)


class TestScenarios(ScoringTestBase):

    def test_shopping_message(self):
        result = self.score(
            "I want a shopping app where users can browse products, add to cart, and checkout"
        )
        b = result.breakdown

        assert b.word_count == 5
        assert b.specificity == 6
        assert b.feature_density == 7
        assert b.clarity == 10
        assert result.total == 28
        assert result.quality is QualityTier.GOOD
        assert result.should_increase_progress is True
        assert result.progress_delta == 15

    @pytest.mark.parametrize("text", ["asdkjhqwe zxcvbnm", "asdkjh qweiou", "!!!111"])
    def test_gibberish(self, text):
        result = self.score(text)

        assert result.breakdown.clarity == 0
        assert result.quality is QualityTier.POOR
        assert result.progress_delta == 0

    def test_vague_reply(self):
        result = self.score("idk maybe something")

        assert result.needs_clarification is True
        assert result.should_increase_progress is False
        assert result.progress_delta == 0
        assert result.breakdown.clarity == 6

    def test_short_message_needs_clarification(self):
        assert self.score("blue please").needs_clarification is True

    def test_delta_capped(self):
        result = self.score(
            "Specifically, I want a fitness app where 500 users track workouts daily, "
            "log calories, share progress, upload photos, invite friends and export reports. "
            "It needs Google login, a REST API, Stripe payments and a PostgreSQL database."
        )
        assert result.total > 15
        assert result.progress_delta == 15

    def test_to_dict(self):
        data = self.score("a blue app for runners").to_dict()
        assert set(data["breakdown"]) == {
            "word_count", "detail", "specificity", "feature_density",
            "technical_depth", "clarity", "relevance",
        }
        assert data["quality"] in {"poor", "basic", "good", "excellent"}


class TestSubScores(ScoringTestBase):

    @pytest.mark.parametrize("count,points", [
        (0, 0), (2, 0), (3, 1), (4, 1), (5, 3), (9, 3),
        (10, 5), (19, 5), (20, 7), (39, 7), (40, 9), (59, 9), (60, 10), (300, 10),
    ])
    def test_word_count_steps(self, count, points):
        assert self.scorer.word_count_score(count) == points

    def test_detail_markers(self):
        assert self.scorer.detail_score("Specifically, for example, around 20 screens, updated daily") == 10
        assert self.scorer.detail_score("a plain sentence") == 0

    def test_specificity_explicit_color(self):
        text = "Use #1a2b3c as the main color with a minimal style"
        parsed = self.extractor.parse(text)
        assert self.scorer.specificity_score(text, parsed) == 5

    def test_specificity_named_color_and_platform(self):
        text = "blue on iphone"
        parsed = self.extractor.parse(text)
        assert self.scorer.specificity_score(text, parsed) == 3

    def test_feature_density_needs_category(self):
        text = "recipes with ingredients and a grocery list"
        no_category = self.scorer.feature_density_score(text, ConversationContext())
        with_category = self.scorer.feature_density_score(text, ConversationContext(app_category="food_recipe"))

        assert no_category == 0
        assert with_category == 6

    def test_action_verbs_capped(self):
        text = "create edit delete upload download share comment"
        assert self.scorer.feature_density_score(text, ConversationContext()) == 5

    def test_technical_depth(self):
        text = "We need a REST API, Stripe payments and a PostgreSQL database with Google login"
        assert self.scorer.technical_depth_score(text) == 12

    def test_clarity_punctuation_runs(self):
        assert self.scorer.clarity_score("What??? Really!!!") == 8

    def test_clarity_repeated_token(self):
        assert self.scorer.clarity_score("app app app") == 0

    def test_clarity_no_letters(self):
        assert self.scorer.clarity_score("12345") == 0

    def test_clarity_sentence_form_capped(self):
        assert self.scorer.clarity_score("A recipe app for families.") == 10


class TestRelevance(ScoringTestBase):

    def test_answers_last_question_topic(self, make_history):
        history = make_history(("bot", "What features should your app have?"))
        parsed = self.extractor.parse("It needs login and chat features")

        score = self.scorer.relevance_score(parsed.original_text, parsed, ConversationContext(), history)

        assert score == 5

    def test_entity_answers_design_question(self, make_history):
        history = make_history(("bot", "Which colors do you like?"))
        parsed = self.extractor.parse("teal and white")

        score = self.scorer.relevance_score(parsed.original_text, parsed, ConversationContext(), history)

        assert score == 5

    def test_echo_bonuses(self):
        known = ConversationContext(app_category="fitness", features=["tracking"])
        parsed = self.extractor.parse("A fitness app with workout tracking")

        assert self.scorer.relevance_score(parsed.original_text, parsed, known, []) == 5

    def test_repeat_lowers_relevance(self, make_history):
        text = "A fitness app with workout tracking"
        known = ConversationContext(app_category="fitness", features=["tracking"])
        parsed = self.extractor.parse(text)
        history = make_history(("user", "a fitness  app with workout tracking"), ("bot", "Nice!"))

        fresh = self.scorer.relevance_score(text, parsed, known, [])
        repeated = self.scorer.relevance_score(text, parsed, known, history)

        assert repeated < fresh
        assert repeated == 0

    def test_sender_type_alias(self):
        history = [{"sender_type": "assistant", "content": "What problem does it solve?"}]
        parsed = self.extractor.parse("It would help people split bills")
        assert self.scorer.relevance_score(parsed.original_text, parsed, ConversationContext(), history) == 5


class TestQualityAndFeedback(ScoringTestBase):

    @pytest.mark.parametrize("total,tier", [
        (0, QualityTier.POOR),
        (9, QualityTier.POOR),
        (10, QualityTier.BASIC),
        (24, QualityTier.BASIC),
        (25, QualityTier.GOOD),
        (39, QualityTier.GOOD),
        (40, QualityTier.EXCELLENT),
    ])
    def test_tiers(self, total, tier):
        assert self.scorer.quality_for(total) is tier

    def test_poor_feedback_lists_issues(self):
        feedback = self.score("asdkjhqwe zxcvbnm").feedback
        assert feedback.startswith("Please provide more details:")
        assert "message is too short" in feedback

    def test_basic_feedback_depends_on_category(self):
        breakdown = ScoreBreakdown(word_count=5, clarity=10)

        without = self.scorer.feedback(breakdown, QualityTier.BASIC, ConversationContext())
        with_category = self.scorer.feedback(breakdown, QualityTier.BASIC, ConversationContext(app_category="game"))

        assert without == "Good start! Consider adding more information about what type of app you want."
        assert with_category.endswith("about features and design.")

    def test_good_feedback_lists_strengths(self):
        breakdown = ScoreBreakdown(specificity=10, relevance=5)
        feedback = self.scorer.feedback(breakdown, QualityTier.GOOD, ConversationContext())
        assert feedback == "Great! Your description is very specific and relevant to the conversation."
