"""
Data models for message parsing.

Contains:
- Intent: closed set of primary intent tags
- Sentiment: coarse emotional tone of a message
- ReferenceStrength: how strongly the user signals they are repeating themselves
- EntityBundle: entities found in one message
- ExtractedFacts: free-text statements (problem, audience, unique value)
- ParsedMessage: full result of MessageExtractor.parse()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Intent(Enum):
    """Primary intent of a user message."""
    AGREEING = "agreeing"
    DECLINING = "declining"
    CLARIFYING = "clarifying"                    # "as I said ..."
    DESCRIBING_APP_TYPE = "describing_app_type"
    DESCRIBING_FEATURES = "describing_features"
    DESCRIBING_DESIGN = "describing_design"
    DESCRIBING_TECHNICAL = "describing_technical"
    DESCRIBING_USER_FLOW = "describing_user_flow"
    DESCRIBING_PROBLEM = "describing_problem"
    DESCRIBING_TARGET_AUDIENCE = "describing_target_audience"
    GENERAL_DESCRIPTION = "general_description"


class Sentiment(Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    FRUSTRATED = "frustrated"


class ReferenceStrength(Enum):
    NONE = "none"
    MILD = "mild"       # "as I said"
    STRONG = "strong"   # "I already told you", "again,"


def _add_unique(target: List[str], values) -> None:
    for value in values:
        if value not in target:
            target.append(value)


@dataclass
class EntityBundle:
    """
    Entities detected in a single message.

    Lists keep first-seen order and never contain duplicates.
    """
    app_category: Optional[str] = None
    features: List[str] = field(default_factory=list)
    design_styles: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)
    technologies: List[str] = field(default_factory=list)
    competitors: List[str] = field(default_factory=list)
    numbers: List[int] = field(default_factory=list)

    def add(self, kind: str, values) -> None:
        _add_unique(getattr(self, kind), values)

    @property
    def design_terms(self) -> List[str]:
        """Colors and styles in one list (colors first)."""
        terms = list(self.colors)
        _add_unique(terms, self.design_styles)
        return terms

    def has_any(self) -> bool:
        """True when at least one entity category is non-empty (numbers excluded)."""
        return bool(
            self.app_category
            or self.features
            or self.design_styles
            or self.colors
            or self.platforms
            or self.technologies
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_category": self.app_category,
            "features": list(self.features),
            "design_styles": list(self.design_styles),
            "colors": list(self.colors),
            "platforms": list(self.platforms),
            "technologies": list(self.technologies),
            "competitors": list(self.competitors),
            "numbers": list(self.numbers),
        }


@dataclass
class ExtractedFacts:
    problem_statement: Optional[str] = None
    target_audience: Optional[str] = None
    unique_value: Optional[str] = None

    def has_any(self) -> bool:
        return bool(self.problem_statement or self.target_audience or self.unique_value)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "problem_statement": self.problem_statement,
            "target_audience": self.target_audience,
            "unique_value": self.unique_value,
        }


@dataclass
class ParsedMessage:
    """Result of parsing one inbound message."""
    original_text: str
    cleaned_text: str
    tokens: List[str]
    intent: Intent
    entities: EntityBundle
    facts: ExtractedFacts = field(default_factory=ExtractedFacts)
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: int = 0
    is_agreement: bool = False
    is_disagreement: bool = False
    is_vague: bool = False
    is_reference: bool = False
    is_question: bool = False
    reference_strength: ReferenceStrength = ReferenceStrength.NONE
    signals: List[str] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.tokens)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logs and debugging."""
        return {
            "original_text": self.original_text,
            "cleaned_text": self.cleaned_text,
            "tokens": list(self.tokens),
            "intent": self.intent.value,
            "entities": self.entities.to_dict(),
            "facts": self.facts.to_dict(),
            "sentiment": self.sentiment.value,
            "confidence": self.confidence,
            "is_agreement": self.is_agreement,
            "is_disagreement": self.is_disagreement,
            "is_vague": self.is_vague,
            "is_reference": self.is_reference,
            "is_question": self.is_question,
            "reference_strength": self.reference_strength.value,
            "signals": list(self.signals),
        }
