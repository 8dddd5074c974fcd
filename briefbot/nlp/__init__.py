"""
Message parsing: intent, entities, sentiment and validity.

Usage:
    from briefbot.nlp import MessageExtractor, validate_message

    extractor = MessageExtractor()
    parsed = extractor.parse("I want a fitness app with workout tracking")
    parsed.entities.app_category  # "fitness"
"""

from .models import (
    EntityBundle,
    ExtractedFacts,
    Intent,
    ParsedMessage,
    ReferenceStrength,
    Sentiment,
)
from .extractor import MessageExtractor
from .validation import ValidationResult, is_gibberish, validate_message
from .vocabulary import humanize

__all__ = [
    "EntityBundle",
    "ExtractedFacts",
    "Intent",
    "MessageExtractor",
    "ParsedMessage",
    "ReferenceStrength",
    "Sentiment",
    "ValidationResult",
    "humanize",
    "is_gibberish",
    "validate_message",
]
