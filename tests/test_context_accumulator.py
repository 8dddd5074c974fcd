"""
Tests for the context accumulator (context_accumulator.py).
"""

from briefbot.context_accumulator import ContextAccumulator, ConversationContext
from briefbot.nlp import EntityBundle, ExtractedFacts, Intent, MessageExtractor


def bundle(**kwargs) -> EntityBundle:
    entities = EntityBundle()
    for kind, values in kwargs.items():
        if kind == "app_category":
            entities.app_category = values
        else:
            entities.add(kind, values)
    return entities


class TestMerge:

    def setup_method(self):
        self.acc = ContextAccumulator()

    def test_input_not_mutated(self):
        context = ConversationContext()
        merged = self.acc.merge(context, bundle(app_category="fitness", features=["chat"]), Intent.DESCRIBING_FEATURES)

        assert context.app_category is None
        assert context.features == []
        assert merged is not context

    def test_category_is_write_once(self):
        context = self.acc.merge(ConversationContext(), bundle(app_category="fitness"), Intent.DESCRIBING_APP_TYPE)
        context = self.acc.merge(context, bundle(app_category="food_recipe"), Intent.DESCRIBING_APP_TYPE)
        assert context.app_category == "fitness"

    def test_features_union_keeps_order(self):
        context = self.acc.merge(ConversationContext(), bundle(features=["chat", "search"]), Intent.DESCRIBING_FEATURES)
        context = self.acc.merge(context, bundle(features=["search", "calendar"]), Intent.DESCRIBING_FEATURES)

        assert context.features == ["chat", "search", "calendar"]
        assert context.latest_feature == "calendar"

    def test_colors_and_styles_become_design_preferences(self):
        context = self.acc.merge(
            ConversationContext(),
            bundle(colors=["blue"], design_styles=["minimal"]),
            Intent.DESCRIBING_DESIGN,
        )
        assert context.design_preferences == ["blue", "minimal"]

    def test_platforms_and_technologies(self):
        context = self.acc.merge(
            ConversationContext(),
            bundle(platforms=["ios"], technologies=["firebase"]),
            Intent.DESCRIBING_TECHNICAL,
        )
        assert context.platforms == ["ios"]
        assert context.technologies == ["firebase"]

    def test_latest_fact_wins(self):
        context = self.acc.merge(
            ConversationContext(), EntityBundle(), Intent.GENERAL_DESCRIPTION,
            facts=ExtractedFacts(target_audience="for students"),
        )
        context = self.acc.merge(
            context, EntityBundle(), Intent.GENERAL_DESCRIPTION,
            facts=ExtractedFacts(target_audience="for teachers"),
        )
        assert context.target_audience == "for teachers"

    def test_fact_never_cleared(self):
        context = self.acc.merge(
            ConversationContext(), EntityBundle(), Intent.GENERAL_DESCRIPTION,
            facts=ExtractedFacts(problem_statement="bills are hard to split"),
        )
        context = self.acc.merge(context, EntityBundle(), Intent.GENERAL_DESCRIPTION, facts=ExtractedFacts())
        assert context.problem_statement == "bills are hard to split"

    def test_problem_intent_stores_text(self):
        context = self.acc.merge(
            ConversationContext(), EntityBundle(), Intent.DESCRIBING_PROBLEM,
            text="The challenge: nobody tracks shared groceries",
        )
        assert context.problem_statement == "The challenge: nobody tracks shared groceries"

    def test_audience_intent_stores_text(self):
        context = self.acc.merge(
            ConversationContext(), EntityBundle(), Intent.DESCRIBING_TARGET_AUDIENCE,
            text="Our audience is retirees",
        )
        assert context.target_audience == "Our audience is retirees"

    def test_description_accumulates(self):
        context = self.acc.merge(ConversationContext(), EntityBundle(), Intent.GENERAL_DESCRIPTION, text="A recipe app.")
        context = self.acc.merge(context, EntityBundle(), Intent.GENERAL_DESCRIPTION, text="With meal plans.")
        assert context.description == "A recipe app. With meal plans."

    def test_current_focus_is_intent(self):
        context = self.acc.merge(ConversationContext(), EntityBundle(), Intent.DESCRIBING_DESIGN)
        assert context.current_focus == "describing_design"

    def test_merge_parsed_message(self):
        parsed = MessageExtractor().parse("A dark fitness app with chat for athletes")
        context = self.acc.merge(ConversationContext(), parsed.entities, parsed.intent, parsed.facts, parsed.original_text)

        assert context.app_category == "fitness"
        assert "chat" in context.features
        assert "dark" in context.design_preferences
        assert context.target_audience == "A dark fitness app with chat for athletes"


class TestFocusAndAdoption:

    def setup_method(self):
        self.acc = ContextAccumulator()

    def test_set_focus_only(self):
        context = ConversationContext(app_category="fitness")
        updated = self.acc.set_focus(context, Intent.DECLINING)

        assert updated.current_focus == "declining"
        assert updated.app_category == "fitness"
        assert context.current_focus is None

    def test_adopt_feature(self):
        context = self.acc.adopt_subject(ConversationContext(features=["chat"]), "feature", "push_notifications")
        assert context.features == ["chat", "push_notifications"]

    def test_adopt_design(self):
        context = self.acc.adopt_subject(ConversationContext(), "design", "blue")
        assert context.design_preferences == ["blue"]

    def test_adopt_is_idempotent(self):
        context = self.acc.adopt_subject(ConversationContext(features=["chat"]), "feature", "chat")
        assert context.features == ["chat"]


class TestMissingAndCompleteness:

    def setup_method(self):
        self.acc = ContextAccumulator()

    def test_missing_order(self):
        assert self.acc.missing_information(ConversationContext()) == [
            "app_type",
            "core_features",
            "problem_statement",
            "target_audience",
            "design_preferences",
            "platform",
        ]

    def test_two_features_still_missing(self):
        context = ConversationContext(app_category="fitness", features=["chat", "search"])
        assert self.acc.missing_information(context)[0] == "core_features"

    def test_category_and_three_features(self):
        context = ConversationContext(app_category="ecommerce", features=["search", "cart", "checkout"])
        assert self.acc.completeness(context) == 45

    def test_rich_features_bonus(self):
        context = ConversationContext(app_category="ecommerce", features=["a", "b", "c", "d", "e"])
        assert self.acc.completeness(context) == 55

    def test_full_context_is_100(self):
        context = ConversationContext(
            app_category="fitness",
            features=["a", "b", "c", "d", "e"],
            design_preferences=["blue"],
            platforms=["ios"],
            problem_statement="p",
            target_audience="t",
            unique_value="u",
        )
        assert self.acc.completeness(context) == 100

    def test_custom_weights(self):
        acc = ContextAccumulator(weights={"app_type": 50})
        assert acc.completeness(ConversationContext(app_category="fitness")) == 50

    def test_is_satisfied(self):
        context = ConversationContext(technologies=["api"])
        assert self.acc.is_satisfied(context, "technical_requirements") is True
        assert self.acc.is_satisfied(context, "app_type") is False
        assert self.acc.is_satisfied(context, "user_flow") is True

    def test_untracked_keys_never_covered(self):
        assert self.acc.is_covered(ConversationContext(), "user_flow") is False
        assert self.acc.is_covered(ConversationContext(app_category="game"), "app_type") is True


class TestSummary:

    def setup_method(self):
        self.acc = ContextAccumulator()

    def test_empty_summary(self):
        assert self.acc.summary(ConversationContext()) == "No information collected yet."

    def test_summary_parts(self):
        context = ConversationContext(
            app_category="food_recipe",
            features=["meal_plans", "search"],
            platforms=["ios"],
        )
        assert self.acc.summary(context) == (
            "App Type: food recipe | Features: meal plans, search | Platforms: ios"
        )

    def test_suggestions_follow_missing_information(self):
        context = ConversationContext(app_category="fitness", features=["a", "b", "c"], platforms=["web"])
        suggestions = self.acc.suggest_next_information(context)

        assert suggestions == [
            "Explain the problem your app solves",
            "Describe who will use your app",
            "Share your design preferences (colors, style)",
        ]


class TestSerialization:

    def test_dict_round_trip(self):
        context = ConversationContext(app_category="travel", features=["maps"], description="trip planner")
        assert ConversationContext.from_dict(context.to_dict()) == context

    def test_from_empty(self):
        assert ConversationContext.from_dict(None) == ConversationContext()
