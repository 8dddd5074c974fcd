"""
Shared pytest fixtures for briefbot tests.

Provides fixtures for:
- Seeded random source
- Bundled question catalog and a small hand-written catalog
- Engine factory with isolated feature flags
- Feature flag overrides on the global registry
- History builders
"""

import random
from contextlib import contextmanager
from typing import Dict, List

import pytest

from briefbot.engine import ConversationEngine
from briefbot.feature_flags import FeatureFlags
from briefbot.question_catalog import CATALOG_PATH, QuestionCatalog


# =============================================================================
# Catalog Fixtures
# =============================================================================

SMALL_CATALOG = {
    "category_questions": {
        "fitness": ["What workouts should the fitness app cover?"],
    },
    "feature_questions": {
        "chat": ["Should chat be one-on-one or in groups?"],
    },
    "design_questions": {
        "green": ["Bright green or muted green?"],
    },
    "technical_questions": {
        "firebase": ["Which Firebase services do you need?"],
    },
    "focus_questions": {
        "app_type": ["What kind of app is it?", "What's the main idea?"],
        "core_features": ["Name three must-have features."],
        "design_preferences": ["Which colors do you like?"],
    },
    "missing_examples": {
        "app_type": "\"a fitness app\". What do you have in mind?",
    },
    "stage_guidance": {
        "initial": "What type of app do you want to build?",
    },
    "templates": {
        "welcome": ["Hi!", "What are we building?"],
        "invalid_input": ["Sorry ({reason})."],
        "redirection_prefixes": ["Back to your app!"],
        "agreement": {"to_feature": ["Adding {subject}. {follow_up}"]},
        "disagreement": {"to_feature": ["Dropping {subject}. {follow_up}"]},
        "reference_apologetic": ["Sorry, you told me about {reference}. {follow_up}"],
        "reference_acknowledging": ["Yes, {reference}. {follow_up}"],
        "vague": ["For example, {example}"],
        "category_confirmation": ["A {category} app!"],
        "encouragement": ["Keep going!"],
        "completion": ["Your {app_type} app is ready."],
    },
    "lexicons": {
        "off_topic": ["weather"],
        "app_relevant": ["app"],
    },
}


@pytest.fixture(scope="session")
def catalog():
    """Bundled question catalog."""
    return QuestionCatalog.load(CATALOG_PATH)


@pytest.fixture
def small_catalog():
    """Tiny catalog with one or two questions per bank."""
    return QuestionCatalog.from_dict(SMALL_CATALOG)


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def isolated_flags():
    """Fresh FeatureFlags instance; overrides never leak into other tests."""
    return FeatureFlags()


@pytest.fixture
def engine_factory(catalog, isolated_flags):
    """Build an engine with the bundled catalog, a seeded rng and isolated flags."""
    def _create(catalog_override=None, seed: int = 1234, **flag_overrides) -> ConversationEngine:
        for flag, value in flag_overrides.items():
            isolated_flags.set_override(flag, value)
        return ConversationEngine(
            catalog=catalog_override if catalog_override is not None else catalog,
            rng=random.Random(seed),
            flags=isolated_flags,
        )
    return _create


@pytest.fixture
def engine(engine_factory):
    return engine_factory()


# =============================================================================
# Feature Flags Fixtures
# =============================================================================

@pytest.fixture
def feature_flags_override():
    """Context manager for temporary overrides on the global flags."""
    from briefbot.feature_flags import flags

    @contextmanager
    def _override(**kwargs):
        for flag, value in kwargs.items():
            flags.set_override(flag, value)
        try:
            yield flags
        finally:
            for flag in kwargs:
                flags.clear_override(flag)

    return _override


# =============================================================================
# History Fixtures
# =============================================================================

@pytest.fixture
def make_history():
    """Build a history list from (role, content) pairs."""
    def _create(*pairs) -> List[Dict[str, str]]:
        return [{"sender_role": role, "content": content} for role, content in pairs]
    return _create
