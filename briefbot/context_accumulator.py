"""
Context Accumulator - running description of the app being discussed.

ConversationContext only grows: entity lists are ordered unions and the
app category is write-once. ContextAccumulator never mutates its input;
every operation returns a new context.

Usage:
    accumulator = ContextAccumulator()
    context = accumulator.merge(ConversationContext(), parsed.entities, parsed.intent)
    accumulator.missing_information(context)  # ["core_features", "problem_statement", ...]
    accumulator.completeness(context)         # 20
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from briefbot.nlp.models import EntityBundle, ExtractedFacts, Intent
from briefbot.nlp.vocabulary import humanize
from briefbot.settings import settings


# Priority order of what we still need to learn
MISSING_INFO_ORDER = [
    "app_type",
    "core_features",
    "problem_statement",
    "target_audience",
    "design_preferences",
    "platform",
]

# Requirement keys the context can answer; anything else (user_flow,
# monetization, ...) is only ever a conversation topic
TRACKED_KEYS = frozenset(MISSING_INFO_ORDER + ["unique_value", "technical_requirements"])


def _union(existing: List[str], new_values) -> List[str]:
    result = list(existing)
    for value in new_values:
        if value and value not in result:
            result.append(value)
    return result


@dataclass
class ConversationContext:
    """Everything learned about the app so far."""
    app_category: Optional[str] = None
    features: List[str] = field(default_factory=list)
    design_preferences: List[str] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)
    technologies: List[str] = field(default_factory=list)
    problem_statement: Optional[str] = None
    target_audience: Optional[str] = None
    unique_value: Optional[str] = None
    current_focus: Optional[str] = None
    description: str = ""

    def copy(self) -> "ConversationContext":
        return deepcopy(self)

    @property
    def latest_feature(self) -> Optional[str]:
        return self.features[-1] if self.features else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_category": self.app_category,
            "features": list(self.features),
            "design_preferences": list(self.design_preferences),
            "platforms": list(self.platforms),
            "technologies": list(self.technologies),
            "problem_statement": self.problem_statement,
            "target_audience": self.target_audience,
            "unique_value": self.unique_value,
            "current_focus": self.current_focus,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConversationContext":
        data = data or {}
        return cls(
            app_category=data.get("app_category"),
            features=list(data.get("features", [])),
            design_preferences=list(data.get("design_preferences", [])),
            platforms=list(data.get("platforms", [])),
            technologies=list(data.get("technologies", [])),
            problem_statement=data.get("problem_statement"),
            target_audience=data.get("target_audience"),
            unique_value=data.get("unique_value"),
            current_focus=data.get("current_focus"),
            description=data.get("description", ""),
        )


class ContextAccumulator:
    """
    Folds parsed messages into ConversationContext.

    Completeness weights come from settings.completeness.weights.
    """

    def __init__(self, weights: Optional[Dict[str, int]] = None):
        cfg = settings.get_nested("completeness", {})
        self.weights: Dict[str, int] = dict(cfg.get("weights", {}))
        if weights:
            self.weights.update(weights)
        self.min_core_features = cfg.get("min_core_features", 3)
        self.rich_feature_count = cfg.get("rich_feature_count", 5)

    def merge(
        self,
        context: ConversationContext,
        entities: EntityBundle,
        intent: Intent,
        facts: Optional[ExtractedFacts] = None,
        text: Optional[str] = None,
    ) -> ConversationContext:
        """
        Merge one message into the context.

        Args:
            context: Current context (not modified)
            entities: Entities from the message
            intent: Primary intent of the message
            facts: Problem / audience / unique-value statements
            text: Original message, appended to the running description

        Returns:
            New ConversationContext
        """
        merged = context.copy()

        if not merged.app_category and entities.app_category:
            merged.app_category = entities.app_category

        merged.features = _union(merged.features, entities.features)
        merged.design_preferences = _union(merged.design_preferences, entities.design_terms)
        merged.platforms = _union(merged.platforms, entities.platforms)
        merged.technologies = _union(merged.technologies, entities.technologies)

        facts = facts or ExtractedFacts()
        statement = (text or "").strip()
        problem = facts.problem_statement
        audience = facts.target_audience
        if statement and intent is Intent.DESCRIBING_PROBLEM and not problem:
            problem = statement
        if statement and intent is Intent.DESCRIBING_TARGET_AUDIENCE and not audience:
            audience = statement

        # Latest statement wins; the field itself never goes back to empty
        if problem:
            merged.problem_statement = problem
        if audience:
            merged.target_audience = audience
        if facts.unique_value:
            merged.unique_value = facts.unique_value

        if statement:
            merged.description = f"{merged.description} {statement}".strip()

        merged.current_focus = intent.value
        return merged

    def set_focus(self, context: ConversationContext, intent: Intent) -> ConversationContext:
        """Only update current_focus (off-topic and invalid turns)."""
        updated = context.copy()
        updated.current_focus = intent.value
        return updated

    def adopt_subject(self, context: ConversationContext, kind: str, term: str) -> ConversationContext:
        """
        Record a term the user agreed to ("Do you want push notifications?" - "yes").

        Args:
            kind: "feature" or "design"
            term: Normalized entity name
        """
        updated = context.copy()
        if kind == "feature":
            updated.features = _union(updated.features, [term])
        elif kind == "design":
            updated.design_preferences = _union(updated.design_preferences, [term])
        return updated

    def missing_information(self, context: ConversationContext) -> List[str]:
        """Keys of MISSING_INFO_ORDER that are still unknown, in priority order."""
        checks = {
            "app_type": not context.app_category,
            "core_features": len(context.features) < self.min_core_features,
            "problem_statement": not context.problem_statement,
            "target_audience": not context.target_audience,
            "design_preferences": not context.design_preferences,
            "platform": not context.platforms,
        }
        return [key for key in MISSING_INFO_ORDER if checks[key]]

    def is_satisfied(self, context: ConversationContext, key: str) -> bool:
        """Whether a requirement key is known. Unknown keys count as satisfied."""
        checks = {
            "app_type": bool(context.app_category),
            "core_features": len(context.features) >= self.min_core_features,
            "problem_statement": bool(context.problem_statement),
            "target_audience": bool(context.target_audience),
            "design_preferences": bool(context.design_preferences),
            "platform": bool(context.platforms),
            "unique_value": bool(context.unique_value),
            "technical_requirements": bool(context.technologies),
        }
        return checks.get(key, True)

    def is_covered(self, context: ConversationContext, key: str) -> bool:
        """Like is_satisfied(), but keys the context does not track are never covered."""
        return key in TRACKED_KEYS and self.is_satisfied(context, key)

    def completeness(self, context: ConversationContext) -> int:
        """Structural completeness percentage from what the context contains."""
        w = self.weights
        total = 0
        if context.app_category:
            total += w.get("app_type", 0)
        if len(context.features) >= self.min_core_features:
            total += w.get("core_features", 0)
        if len(context.features) >= self.rich_feature_count:
            total += w.get("extra_features", 0)
        if context.problem_statement:
            total += w.get("problem_statement", 0)
        if context.target_audience:
            total += w.get("target_audience", 0)
        if context.design_preferences:
            total += w.get("design_preferences", 0)
        if context.platforms:
            total += w.get("platform", 0)
        if context.unique_value:
            total += w.get("unique_value", 0)
        return min(total, 100)

    def summary(self, context: ConversationContext) -> str:
        """One-line human readable summary."""
        parts = []
        if context.app_category:
            parts.append(f"App Type: {humanize(context.app_category)}")
        if context.features:
            parts.append("Features: " + ", ".join(humanize(f) for f in context.features))
        if context.design_preferences:
            parts.append("Design: " + ", ".join(humanize(d) for d in context.design_preferences))
        if context.platforms:
            parts.append("Platforms: " + ", ".join(context.platforms))
        if context.technologies:
            parts.append("Tech: " + ", ".join(humanize(t) for t in context.technologies))
        if context.problem_statement:
            parts.append(f"Problem: {context.problem_statement}")
        if context.target_audience:
            parts.append(f"Audience: {context.target_audience}")
        if context.unique_value:
            parts.append(f"Unique value: {context.unique_value}")
        return " | ".join(parts) if parts else "No information collected yet."

    def suggest_next_information(self, context: ConversationContext) -> List[str]:
        """Hints for the user about what to describe next."""
        suggestions = []
        if not context.app_category:
            suggestions.append("Tell us what type of app you want to build")
        if len(context.features) < self.min_core_features:
            suggestions.append(f"Describe at least {self.min_core_features} core features your app should have")
        if not context.problem_statement:
            suggestions.append("Explain the problem your app solves")
        if not context.target_audience:
            suggestions.append("Describe who will use your app")
        if not context.design_preferences:
            suggestions.append("Share your design preferences (colors, style)")
        if not context.platforms:
            suggestions.append("Say which platforms you need (iOS, Android, web)")
        return suggestions
