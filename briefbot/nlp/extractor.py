"""
Rule-based message extractor.

Turns raw user text into a ParsedMessage: agreement/disagreement,
reference and vagueness flags, a single primary intent, entities,
free-text facts, sentiment and a confidence score.

Never raises: empty or symbol-only input yields an empty, vague parse.
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from briefbot.logger import logger
from briefbot.settings import settings

from .markers import (
    AGREEMENT_MARKERS,
    AGREEMENT_MAX_WORDS,
    AGREEMENT_TIERS,
    FACT_MARKERS,
    FILLER_WORDS,
    FRUSTRATION_MARKERS,
    INTENT_MARKERS,
    LOW_CONTENT_MAX_WORDS,
    NEGATIVE_WORDS,
    POSITIVE_WORDS,
    QUESTION_STARTERS,
    REFERENCE_MARKERS,
    VAGUE_EXACT_MARKERS,
    VAGUE_PHRASE_MARKERS,
    VAGUE_PHRASE_MAX_WORDS,
)
from .models import (
    EntityBundle,
    ExtractedFacts,
    Intent,
    ParsedMessage,
    ReferenceStrength,
    Sentiment,
)
from .vocabulary import (
    APP_CATEGORY_KEYWORDS,
    CATEGORY_APP_PHRASE_BONUS,
    COLORS,
    COMPETITORS,
    DESIGN_STYLES,
    FEATURE_PATTERNS,
    FEATURE_SUPERSEDES,
    PLATFORM_PATTERNS,
    TECHNOLOGY_PATTERNS,
)


_FLAGS = re.IGNORECASE | re.UNICODE


def _compile(patterns: List[str]) -> List[Pattern]:
    return [re.compile(p, _FLAGS) for p in patterns]


def _word(fragment: str) -> Pattern:
    return re.compile(r"\b(?:" + fragment + r")\b", _FLAGS)


class MessageExtractor:
    """
    Deterministic parser for one user message.

    Pattern tables live in markers.py and vocabulary.py; they are compiled
    once per instance.
    """

    def __init__(self):
        cfg = settings.get_nested("extractor", {})
        self.vague_confidence = cfg.get("vague_confidence", 10)
        self.base_confidence = cfg.get("base_confidence", 50)
        self.long_message_words = cfg.get("long_message_words", 10)
        self.very_long_message_words = cfg.get("very_long_message_words", 20)
        self.length_bonus = cfg.get("length_bonus", 20)
        self.very_long_bonus = cfg.get("very_long_bonus", 10)
        self.entity_bonus = cfg.get("entity_bonus", 20)
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        self._agreement: Dict[str, List[Pattern]] = {
            name: _compile(patterns) for name, patterns in AGREEMENT_MARKERS.items()
        }
        self._reference = {
            ReferenceStrength.STRONG: _compile(REFERENCE_MARKERS["strong"]),
            ReferenceStrength.MILD: _compile(REFERENCE_MARKERS["mild"]),
        }
        self._frustration = _compile(FRUSTRATION_MARKERS)
        self._vague_exact = _compile(VAGUE_EXACT_MARKERS)
        self._vague_phrase = _compile(VAGUE_PHRASE_MARKERS)
        self._intents: List[Tuple[Intent, List[Pattern]]] = [
            (intent, _compile(patterns)) for intent, patterns in INTENT_MARKERS.items()
        ]
        self._facts = {name: _compile(patterns) for name, patterns in FACT_MARKERS.items()}

        self._categories: List[Tuple[str, List[Tuple[str, Pattern]]]] = [
            (name, [(kw, _word(kw)) for kw in keywords])
            for name, keywords in APP_CATEGORY_KEYWORDS.items()
        ]
        self._features = [(name, _word(p)) for name, p in FEATURE_PATTERNS.items()]
        self._styles = [(name, _word(p)) for name, p in DESIGN_STYLES.items()]
        self._colors = _word("|".join(COLORS))
        self._platforms = [(name, _word(p)) for name, p in PLATFORM_PATTERNS.items()]
        self._technologies = [(name, _word(p)) for name, p in TECHNOLOGY_PATTERNS.items()]
        self._competitors = [(name, _word(re.escape(name))) for name in COMPETITORS]
        self._numbers = re.compile(r"\b\d+\b")

    # =========================================================================
    # Public API
    # =========================================================================

    def parse(self, text: Optional[str]) -> ParsedMessage:
        """
        Parse one message.

        Args:
            text: Raw message text, may be None, empty or garbage

        Returns:
            ParsedMessage
        """
        original = text if isinstance(text, str) else ""
        cleaned = self.clean(original)
        tokens = cleaned.split()
        signals: List[str] = []

        is_agreement, is_disagreement = self._detect_agreement(cleaned, tokens, signals)
        reference_strength = self._detect_reference(cleaned, signals)
        is_reference = reference_strength is not ReferenceStrength.NONE

        entities = self.extract_entities(cleaned)
        facts = self.extract_facts(original.strip(), cleaned)

        is_vague = self._detect_vague(
            cleaned, tokens, entities, is_agreement or is_disagreement, signals
        )

        intent = self._detect_intent(cleaned, is_agreement, is_disagreement, is_reference)
        sentiment = self._detect_sentiment(cleaned, tokens, is_reference)
        confidence = self._confidence(tokens, entities, is_vague)

        parsed = ParsedMessage(
            original_text=original,
            cleaned_text=cleaned,
            tokens=tokens,
            intent=intent,
            entities=entities,
            facts=facts,
            sentiment=sentiment,
            confidence=confidence,
            is_agreement=is_agreement,
            is_disagreement=is_disagreement,
            is_vague=is_vague,
            is_reference=is_reference,
            is_question=self._is_question(cleaned, tokens),
            reference_strength=reference_strength,
            signals=signals,
        )

        logger.debug(
            "Message parsed",
            intent=intent.value,
            vague=is_vague,
            features=len(entities.features),
            category=entities.app_category,
        )
        return parsed

    @staticmethod
    def clean(text: str) -> str:
        """Lower-case and collapse whitespace."""
        return re.sub(r"\s+", " ", (text or "").lower()).strip()

    def extract_entities(self, cleaned: str) -> EntityBundle:
        """Multi-label entity extraction over the full text."""
        bundle = EntityBundle()
        if not cleaned:
            return bundle

        bundle.app_category = self.detect_category(cleaned)

        features = [name for name, pattern in self._features if pattern.search(cleaned)]
        superseded = set()
        for name in features:
            superseded.update(FEATURE_SUPERSEDES.get(name, []))
        bundle.add("features", [f for f in features if f not in superseded])

        bundle.add("design_styles", [name for name, p in self._styles if p.search(cleaned)])
        bundle.add("colors", [m.lower() for m in self._colors.findall(cleaned)])
        bundle.add("platforms", [name for name, p in self._platforms if p.search(cleaned)])
        bundle.add("technologies", [name for name, p in self._technologies if p.search(cleaned)])
        bundle.add("competitors", [name for name, p in self._competitors if p.search(cleaned)])
        bundle.numbers = [int(n) for n in self._numbers.findall(cleaned)]
        return bundle

    def detect_category(self, cleaned: str) -> Optional[str]:
        """
        Pick the best-matching app category.

        Each distinct keyword hit scores 1, "<keyword> app" scores extra.
        Ties go to the category listed first in the vocabulary.
        """
        best: Optional[str] = None
        best_score = 0
        for name, keywords in self._categories:
            score = 0
            for keyword, pattern in keywords:
                if pattern.search(cleaned):
                    score += 1
                    if re.search(r"\b(?:" + keyword + r")\s+app\b", cleaned):
                        score += CATEGORY_APP_PHRASE_BONUS
            if score > best_score:
                best, best_score = name, score
        return best

    def extract_facts(self, original: str, cleaned: str) -> ExtractedFacts:
        facts = ExtractedFacts()
        for name, patterns in self._facts.items():
            if any(p.search(cleaned) for p in patterns):
                setattr(facts, name, original)
        return facts

    # =========================================================================
    # Detectors
    # =========================================================================

    @staticmethod
    def _strip_punct(cleaned: str) -> str:
        return re.sub(r"[\s.!?,;:]+$", "", cleaned)

    def _match_tier(self, polarity: str, cleaned: str, bare: str) -> Optional[int]:
        """Index of the strongest tier matching for 'yes' / 'no', None if no match."""
        for index, tier in enumerate(AGREEMENT_TIERS):
            for pattern in self._agreement[f"{tier}_{polarity}"]:
                target = bare if pattern.pattern.endswith("$") else cleaned
                if pattern.search(target):
                    return index
        return None

    def _detect_agreement(
        self, cleaned: str, tokens: List[str], signals: List[str]
    ) -> Tuple[bool, bool]:
        if not tokens or len(tokens) > AGREEMENT_MAX_WORDS:
            return False, False

        bare = self._strip_punct(cleaned)
        yes_tier = self._match_tier("yes", cleaned, bare)
        no_tier = self._match_tier("no", cleaned, bare)

        if yes_tier is None and no_tier is None:
            return False, False
        if no_tier is None or (yes_tier is not None and yes_tier <= no_tier):
            signals.append(f"agreement:{AGREEMENT_TIERS[yes_tier]}")
            return True, False
        signals.append(f"disagreement:{AGREEMENT_TIERS[no_tier]}")
        return False, True

    def _detect_reference(self, cleaned: str, signals: List[str]) -> ReferenceStrength:
        for strength in (ReferenceStrength.STRONG, ReferenceStrength.MILD):
            for pattern in self._reference[strength]:
                if pattern.search(cleaned):
                    signals.append(f"reference:{strength.value}")
                    return strength
        return ReferenceStrength.NONE

    def _detect_vague(
        self,
        cleaned: str,
        tokens: List[str],
        entities: EntityBundle,
        is_reply: bool,
        signals: List[str],
    ) -> bool:
        words = re.findall(r"[a-z']+", cleaned)
        if not words:
            signals.append("vague:empty")
            return True
        if is_reply:
            return False

        bare = self._strip_punct(cleaned)
        if any(p.search(bare) for p in self._vague_exact):
            signals.append("vague:exact")
            return True

        if entities.has_any():
            return False

        if len(tokens) <= VAGUE_PHRASE_MAX_WORDS and any(p.search(cleaned) for p in self._vague_phrase):
            signals.append("vague:phrase")
            return True

        if all(w in FILLER_WORDS for w in words):
            signals.append("vague:filler")
            return True

        if len(tokens) <= LOW_CONTENT_MAX_WORDS:
            signals.append("vague:short")
            return True

        return False

    def _detect_intent(
        self,
        cleaned: str,
        is_agreement: bool,
        is_disagreement: bool,
        is_reference: bool,
    ) -> Intent:
        if is_agreement:
            return Intent.AGREEING
        if is_disagreement:
            return Intent.DECLINING
        if is_reference:
            return Intent.CLARIFYING

        for intent, patterns in self._intents:
            if any(p.search(cleaned) for p in patterns):
                return intent
        return Intent.GENERAL_DESCRIPTION

    def _detect_sentiment(self, cleaned: str, tokens: List[str], is_reference: bool) -> Sentiment:
        if is_reference or any(p.search(cleaned) for p in self._frustration):
            return Sentiment.FRUSTRATED

        words = re.findall(r"[a-z']+", cleaned)
        positive = sum(1 for w in words if w in POSITIVE_WORDS)
        negative = sum(1 for w in words if w in NEGATIVE_WORDS)
        if positive > negative:
            return Sentiment.POSITIVE
        if negative > positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def _confidence(self, tokens: List[str], entities: EntityBundle, is_vague: bool) -> int:
        if is_vague:
            return self.vague_confidence

        confidence = self.base_confidence
        if len(tokens) > self.long_message_words:
            confidence += self.length_bonus
        if len(tokens) > self.very_long_message_words:
            confidence += self.very_long_bonus
        if entities.has_any():
            confidence += self.entity_bonus
        return min(confidence, 100)

    @staticmethod
    def _is_question(cleaned: str, tokens: List[str]) -> bool:
        if cleaned.endswith("?"):
            return True
        return bool(tokens) and tokens[0].strip(",.!") in QUESTION_STARTERS
