"""
Tests for the message extractor (nlp/extractor.py).
"""

import pytest

from briefbot.nlp import Intent, MessageExtractor, ReferenceStrength, Sentiment


class TestParseBasics:

    def setup_method(self):
        self.extractor = MessageExtractor()

    def test_app_description(self):
        parsed = self.extractor.parse("I want a fitness app with workout tracking")

        assert parsed.entities.app_category == "fitness"
        assert "tracking" in parsed.entities.features
        assert parsed.intent is Intent.DESCRIBING_APP_TYPE
        assert parsed.confidence == 70
        assert parsed.is_vague is False

    @pytest.mark.parametrize("text", ["", None, "   ", "!!!???", "🙂🙂"])
    def test_empty_or_symbols_never_raise(self, text):
        parsed = self.extractor.parse(text)

        assert parsed.is_vague is True
        assert parsed.confidence == 10
        assert parsed.entities.has_any() is False

    def test_cleaned_text_and_tokens(self):
        parsed = self.extractor.parse("  A   Recipe\tApp ")
        assert parsed.cleaned_text == "a recipe app"
        assert parsed.tokens == ["a", "recipe", "app"]
        assert parsed.word_count == 3

    def test_long_entity_rich_message_confidence_capped(self):
        text = (
            "I want a fitness app where users can log workouts, track calories, "
            "set goals, share progress with friends and get reminders every single morning"
        )
        assert self.extractor.parse(text).confidence == 100

    def test_question_detection(self):
        assert self.extractor.parse("What features do you suggest?").is_question is True
        assert self.extractor.parse("I need a login screen").is_question is False

    def test_to_dict_is_plain(self):
        data = self.extractor.parse("a blue shopping app").to_dict()
        assert data["intent"] == "describing_app_type"
        assert data["entities"]["colors"] == ["blue"]
        assert data["reference_strength"] == "none"


class TestAgreement:

    def setup_method(self):
        self.extractor = MessageExtractor()

    @pytest.mark.parametrize("text", ["yes", "Yes!", "yeah, let's do it", "sounds good", "sure"])
    def test_agreement(self, text):
        parsed = self.extractor.parse(text)
        assert parsed.is_agreement is True
        assert parsed.is_disagreement is False
        assert parsed.intent is Intent.AGREEING

    @pytest.mark.parametrize("text", ["no", "no thanks", "nope, skip it", "I don't need that"])
    def test_disagreement(self, text):
        parsed = self.extractor.parse(text)
        assert parsed.is_disagreement is True
        assert parsed.is_agreement is False
        assert parsed.intent is Intent.DECLINING

    def test_strong_tier_beats_mild(self):
        parsed = self.extractor.parse("no, why not something else")
        assert parsed.is_disagreement is True

    def test_equal_tiers_prefer_agreement(self):
        parsed = self.extractor.parse("not really, i agree")
        assert parsed.is_agreement is True

    def test_long_message_is_not_an_answer(self):
        parsed = self.extractor.parse(
            "yes and the app should also let people upload photos and comment on each post"
        )
        assert parsed.is_agreement is False

    def test_agreement_is_not_vague(self):
        assert self.extractor.parse("ok").is_vague is False


class TestReference:

    def setup_method(self):
        self.extractor = MessageExtractor()

    def test_strong_reference(self):
        parsed = self.extractor.parse("I already told you, it's a fitness app")
        assert parsed.is_reference is True
        assert parsed.reference_strength is ReferenceStrength.STRONG
        assert parsed.intent is Intent.CLARIFYING
        assert parsed.sentiment is Sentiment.FRUSTRATED

    def test_mild_reference(self):
        parsed = self.extractor.parse("As I said, users need a login")
        assert parsed.reference_strength is ReferenceStrength.MILD

    def test_no_reference(self):
        parsed = self.extractor.parse("Users need a login")
        assert parsed.is_reference is False
        assert parsed.reference_strength is ReferenceStrength.NONE


class TestVagueness:

    def setup_method(self):
        self.extractor = MessageExtractor()

    @pytest.mark.parametrize("text", [
        "idk",
        "Maybe.",
        "up to you",
        "whatever you think works",
        "idk maybe something",
        "ok then",
    ])
    def test_vague(self, text):
        parsed = self.extractor.parse(text)
        assert parsed.is_vague is True
        assert parsed.confidence == 10

    def test_single_entity_word_is_not_vague(self):
        assert self.extractor.parse("blue").is_vague is False

    def test_phrase_in_long_message_is_not_vague(self):
        parsed = self.extractor.parse(
            "I guess the main thing is a calendar where teams plan their weekly shifts"
        )
        assert parsed.is_vague is False


class TestIntent:

    def setup_method(self):
        self.extractor = MessageExtractor()

    @pytest.mark.parametrize("text,intent", [
        ("I want to build a recipe app", Intent.DESCRIBING_APP_TYPE),
        ("The app should have login and a dark theme", Intent.DESCRIBING_FEATURES),
        ("I like a clean look with blue colors", Intent.DESCRIBING_DESIGN),
        ("It connects to our backend server through a REST api", Intent.DESCRIBING_TECHNICAL),
        ("The problem is people forget to water plants", Intent.DESCRIBING_PROBLEM),
        ("Mostly students around twenty years old", Intent.GENERAL_DESCRIPTION),
    ])
    def test_first_matching_intent(self, text, intent):
        assert self.extractor.parse(text).intent is intent


class TestEntities:

    def setup_method(self):
        self.extractor = MessageExtractor()

    def test_category_app_phrase_bonus(self):
        parsed = self.extractor.parse("a recipe app with a shopping list")
        assert parsed.entities.app_category == "food_recipe"

    def test_no_category(self):
        assert self.extractor.detect_category("hello there") is None

    def test_specific_feature_supersedes_generic(self):
        features = self.extractor.parse("send push notifications to users").entities.features
        assert "push_notifications" in features
        assert "notifications" not in features

    def test_design_terms_colors_first(self):
        entities = self.extractor.parse("a modern dark design with blue and white").entities
        assert entities.colors == ["blue", "white"]
        assert entities.design_styles == ["modern", "dark"]
        assert entities.design_terms == ["blue", "white", "modern", "dark"]

    def test_platforms_and_technologies(self):
        entities = self.extractor.parse("iOS and Android, built with Flutter and Firebase").entities
        assert entities.platforms == ["ios", "android"]
        assert entities.technologies == ["flutter", "firebase"]

    def test_competitors_and_numbers(self):
        entities = self.extractor.parse("like instagram but for 500 pet owners").entities
        assert entities.competitors == ["instagram"]
        assert entities.numbers == [500]

    def test_shopping_scenario(self):
        entities = self.extractor.parse(
            "I want a shopping app where users can browse products, add to cart, and checkout"
        ).entities
        assert entities.app_category == "ecommerce"
        assert {"search", "cart", "checkout"} <= set(entities.features)


class TestFactsAndSentiment:

    def setup_method(self):
        self.extractor = MessageExtractor()

    def test_target_audience_fact(self):
        text = "It's for busy parents who can't keep up with chores"
        facts = self.extractor.parse(text).facts
        assert facts.target_audience == text

    def test_problem_fact(self):
        text = "It solves the mess of splitting bills between roommates"
        assert self.extractor.parse(text).facts.problem_statement == text

    def test_unique_value_fact(self):
        text = "Unlike other apps it works completely offline"
        assert self.extractor.parse(text).facts.unique_value == text

    def test_positive(self):
        assert self.extractor.parse("I love this idea, it's great").sentiment is Sentiment.POSITIVE

    def test_negative(self):
        assert self.extractor.parse("the current apps are terrible and confusing").sentiment is Sentiment.NEGATIVE

    def test_neutral(self):
        assert self.extractor.parse("a todo list with deadlines").sentiment is Sentiment.NEUTRAL
