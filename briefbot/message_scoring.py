"""
Message Scoring - how much one message adds to the app description.

Seven independent, capped sub-scores are summed into a total that maps to
a quality tier and a progress delta.

Usage:
    scorer = MessageScorer()
    score = scorer.score(text, parsed, context, history)
    score.progress_delta  # 0..15
    score.quality         # QualityTier.GOOD
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Pattern

from briefbot.context_accumulator import ConversationContext
from briefbot.history import is_repeat, last_bot_message
from briefbot.nlp.models import ParsedMessage
from briefbot.nlp.validation import is_gibberish, VOWELS
from briefbot.nlp.vocabulary import CATEGORY_FEATURES, COLORS
from briefbot.settings import settings


class QualityTier(Enum):
    """Coarse quality of a single message."""
    POOR = "poor"
    BASIC = "basic"
    GOOD = "good"
    EXCELLENT = "excellent"


@dataclass
class ScoreBreakdown:
    word_count: int = 0
    detail: int = 0
    specificity: int = 0
    feature_density: int = 0
    technical_depth: int = 0
    clarity: int = 0
    relevance: int = 0

    @property
    def total(self) -> int:
        return (
            self.word_count
            + self.detail
            + self.specificity
            + self.feature_density
            + self.technical_depth
            + self.clarity
            + self.relevance
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class MessageScore:
    """Result of scoring one message"""
    breakdown: ScoreBreakdown
    total: int
    quality: QualityTier
    should_increase_progress: bool
    progress_delta: int
    feedback: str
    needs_clarification: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "breakdown": self.breakdown.to_dict(),
            "total": self.total,
            "quality": self.quality.value,
            "should_increase_progress": self.should_increase_progress,
            "progress_delta": self.progress_delta,
            "feedback": self.feedback,
            "needs_clarification": self.needs_clarification,
        }


def _compile(words: List[str]) -> List[Pattern]:
    return [re.compile(r"\b" + re.escape(w) + r"\b", re.IGNORECASE) for w in words]


def _count(patterns: List[Pattern], text: str) -> int:
    return sum(1 for p in patterns if p.search(text))


class MessageScorer:
    """
    Rule-based message scorer.

    Caps and lexicons are class constants; thresholds come from
    settings.scoring.
    """

    # Word count steps: (upper bound exclusive, points)
    WORD_COUNT_STEPS = [(3, 0), (5, 1), (10, 3), (20, 5), (40, 7), (60, 9)]
    WORD_COUNT_MAX = 10

    # Sub-score caps
    DETAIL_CAP = 10
    SPECIFICITY_CAP = 15
    FEATURE_DENSITY_CAP = 12
    CATEGORY_FEATURE_CAP = 10
    ACTION_VERB_CAP = 5
    TECHNICAL_CAP = 15
    CLARITY_MAX = 10

    # Detail markers: (pattern, points)
    DETAIL_MARKERS = [
        (r"\b(specifically|exactly|precisely|particularly|in detail)\b", 3),
        (r"\b(such as|for example|e\.g\.|for instance|similar to)", 3),
        (r"\b(better than|worse than|different from|compared to|unlike|instead of)\b", 2),
        (r"\b\d+\s*(users?|people|items?|products?|features?|screens?|pages?|minutes?|hours?|days?)\b", 3),
        (r"\b(daily|weekly|monthly|yearly|hourly|real-?time|instant(ly)?)\b", 2),
    ]

    FEATURE_POINTS = 2
    FEATURE_CAP = 6
    DESIGN_POINTS = 2
    DESIGN_CAP = 4
    EXPLICIT_COLOR_POINTS = 3
    NAMED_COLOR_POINTS = 1
    PLATFORM_POINTS = 2

    ACTION_VERBS = [
        "create", "edit", "delete", "upload", "download", "share", "like",
        "comment", "post", "save", "export", "import", "filter", "search",
        "sort", "track", "monitor", "analyze", "report", "notify", "browse",
        "book", "order", "schedule", "invite",
    ]

    # Technical lexicons: name -> (words, points per hit, cap)
    TECHNICAL_LEXICONS = {
        "integrations": ([
            "api", "rest api", "graphql", "websocket", "oauth", "sso", "stripe",
            "paypal", "google maps", "firebase", "supabase", "aws", "azure",
            "gcp", "cloudinary", "sendgrid", "twilio",
        ], 2, 8),
        "storage": ([
            "database", "postgresql", "postgres", "mysql", "mongodb", "redis",
            "cloud storage", "s3", "blob storage", "cdn",
        ], 2, 6),
        "auth": ([
            "login", "signup", "sign up", "authentication", "google login",
            "facebook login", "email verification", "two-factor", "2fa",
            "biometric", "jwt",
        ], 1, 4),
        "advanced": ([
            "machine learning", "ai", "blockchain", "encryption", "caching",
            "load balancing", "microservices", "serverless", "websockets",
        ], 2, 4),
    }

    VAGUE_WORDS = [
        "thing", "things", "stuff", "maybe", "kind of", "sort of",
        "whatever", "something", "anything",
    ]
    VAGUE_WORD_PENALTY = 2
    NO_VOWEL_PENALTY = 8
    REPEATED_TOKEN_PENALTY = 10
    NO_LETTERS_PENALTY = 10
    GIBBERISH_PENALTY = 10
    PUNCTUATION_RUN_PENALTY = 2

    # Relevance: (words in last bot message, words in user message)
    RELEVANCE_FAMILIES = {
        "features": (r"\bfeatures?\b", r"\b(features?|functions?|functionality|capabilit(y|ies))\b"),
        "design": (r"\b(design|style|colou?rs?|look|theme)\b", r"\b(design|style|colou?rs?|theme|look)\b"),
        "user_flow": (r"\b(users?|screens?|pages?|navigat\w*)\b", r"\b(users?|screens?|pages?|navigat\w*)\b"),
        "problem": (r"\b(problem|solve|purpose|issue)\b", r"\b(problem|solve[sd]?|solution|issue|help)\b"),
    }
    RELEVANCE_TOPIC_POINTS = 5
    RELEVANCE_CATEGORY_ECHO = 3
    RELEVANCE_FEATURE_ECHO = 2
    REPEAT_PENALTY = 10

    def __init__(self):
        cfg = settings.get_nested("scoring", {})
        self.progress_threshold = cfg.get("progress_threshold", 15)
        self.max_progress_delta = cfg.get("max_progress_delta", 15)
        self.min_clear_words = cfg.get("min_clear_words", 3)
        tiers = cfg.get("tiers", {})
        self.tier_thresholds = [
            (QualityTier.EXCELLENT, tiers.get("excellent", 40)),
            (QualityTier.GOOD, tiers.get("good", 25)),
            (QualityTier.BASIC, tiers.get("basic", 10)),
        ]

        self._detail = [(re.compile(p, re.IGNORECASE), pts) for p, pts in self.DETAIL_MARKERS]
        self._named_colors = re.compile(r"\b(" + "|".join(COLORS) + r")\b", re.IGNORECASE)
        self._explicit_color = re.compile(r"#[0-9a-f]{6}\b|#[0-9a-f]{3}\b|\b(rgba?|hsl)\s*\(", re.IGNORECASE)
        self._action_verbs = _compile(self.ACTION_VERBS)
        self._technical = {
            name: (_compile(words), points, cap)
            for name, (words, points, cap) in self.TECHNICAL_LEXICONS.items()
        }
        self._vague_words = _compile(self.VAGUE_WORDS)
        self._category_features = {
            name: _compile(terms) for name, terms in CATEGORY_FEATURES.items()
        }
        self._relevance = {
            name: (re.compile(bot, re.IGNORECASE), re.compile(user, re.IGNORECASE))
            for name, (bot, user) in self.RELEVANCE_FAMILIES.items()
        }

    # =========================================================================
    # Public API
    # =========================================================================

    def score(
        self,
        text: str,
        parsed: ParsedMessage,
        context: ConversationContext,
        history: Optional[List[Dict]] = None,
        known_context: Optional[ConversationContext] = None,
    ) -> MessageScore:
        """
        Score one message.

        Args:
            text: Raw message text
            parsed: Parse result for the text
            context: Context after merging this message
            history: Prior messages (the current one excluded)
            known_context: Context before this message, for echo bonuses
                           (defaults to context)

        Returns:
            MessageScore
        """
        text = text or ""
        known_context = known_context or context

        breakdown = ScoreBreakdown(
            word_count=self.word_count_score(parsed.word_count),
            detail=self.detail_score(text),
            specificity=self.specificity_score(text, parsed),
            feature_density=self.feature_density_score(text, context),
            technical_depth=self.technical_depth_score(text),
            clarity=self.clarity_score(text),
            relevance=self.relevance_score(text, parsed, known_context, history),
        )
        total = breakdown.total
        quality = self.quality_for(total)

        needs_clarification = parsed.is_vague or parsed.word_count < self.min_clear_words
        should_increase = total >= self.progress_threshold and not needs_clarification
        delta = min(total, self.max_progress_delta) if should_increase else 0

        return MessageScore(
            breakdown=breakdown,
            total=total,
            quality=quality,
            should_increase_progress=should_increase,
            progress_delta=delta,
            feedback=self.feedback(breakdown, quality, context),
            needs_clarification=needs_clarification,
        )

    def quality_for(self, total: int) -> QualityTier:
        for tier, threshold in self.tier_thresholds:
            if total >= threshold:
                return tier
        return QualityTier.POOR

    # =========================================================================
    # Sub-scores
    # =========================================================================

    def word_count_score(self, count: int) -> int:
        for bound, points in self.WORD_COUNT_STEPS:
            if count < bound:
                return points
        return self.WORD_COUNT_MAX

    def detail_score(self, text: str) -> int:
        score = sum(points for pattern, points in self._detail if pattern.search(text))
        return min(score, self.DETAIL_CAP)

    def specificity_score(self, text: str, parsed: ParsedMessage) -> int:
        entities = parsed.entities
        score = min(len(entities.features) * self.FEATURE_POINTS, self.FEATURE_CAP)
        score += min(len(entities.design_styles) * self.DESIGN_POINTS, self.DESIGN_CAP)

        if self._explicit_color.search(text):
            score += self.EXPLICIT_COLOR_POINTS
        elif self._named_colors.search(text):
            score += self.NAMED_COLOR_POINTS

        if entities.platforms:
            score += self.PLATFORM_POINTS

        return min(score, self.SPECIFICITY_CAP)

    def feature_density_score(self, text: str, context: ConversationContext) -> int:
        """Category feature vocabulary (only with a known category) + action verbs."""
        score = 0
        patterns = self._category_features.get(context.app_category or "")
        if patterns:
            score += min(_count(patterns, text) * 2, self.CATEGORY_FEATURE_CAP)
        score += min(_count(self._action_verbs, text), self.ACTION_VERB_CAP)
        return min(score, self.FEATURE_DENSITY_CAP)

    def technical_depth_score(self, text: str) -> int:
        score = 0
        for patterns, points, cap in self._technical.values():
            score += min(_count(patterns, text) * points, cap)
        return min(score, self.TECHNICAL_CAP)

    def clarity_score(self, text: str) -> int:
        """Starts at 10, loses points for noise, gains a little for sentence form."""
        stripped = text.strip()
        lower = stripped.lower()
        score = self.CLARITY_MAX

        score -= _count(self._vague_words, lower) * self.VAGUE_WORD_PENALTY

        compact = re.sub(r"\s+", "", lower)
        if len(compact) > 3 and not any(ch in VOWELS for ch in compact):
            score -= self.NO_VOWEL_PENALTY

        tokens = lower.split()
        if len(tokens) > 1 and len(set(tokens)) == 1:
            score -= self.REPEATED_TOKEN_PENALTY

        if not re.search(r"[a-z]", lower):
            score -= self.NO_LETTERS_PENALTY
        elif is_gibberish(lower):
            score -= self.GIBBERISH_PENALTY

        score -= len(re.findall(r"[!?.]{2,}", stripped)) * self.PUNCTUATION_RUN_PENALTY

        if score > 0:
            if stripped[:1].isupper():
                score += 1
            if stripped[-1:] in ".!?":
                score += 1

        return max(0, min(score, self.CLARITY_MAX))

    def relevance_score(
        self,
        text: str,
        parsed: ParsedMessage,
        known_context: ConversationContext,
        history: Optional[List[Dict]],
    ) -> int:
        """Topical match with the last bot question, echo of known facts, repeat penalty."""
        score = 0
        last_question = last_bot_message(history)

        if last_question:
            for name, (bot_pattern, user_pattern) in self._relevance.items():
                if not bot_pattern.search(last_question):
                    continue
                if user_pattern.search(text) or self._entity_answers(name, parsed):
                    score += self.RELEVANCE_TOPIC_POINTS

        if known_context.app_category and parsed.entities.app_category == known_context.app_category:
            score += self.RELEVANCE_CATEGORY_ECHO
        if any(f in known_context.features for f in parsed.entities.features):
            score += self.RELEVANCE_FEATURE_ECHO

        if is_repeat(text, history):
            score -= self.REPEAT_PENALTY

        return max(0, score)

    @staticmethod
    def _entity_answers(family: str, parsed: ParsedMessage) -> bool:
        if family == "features":
            return bool(parsed.entities.features)
        if family == "design":
            return bool(parsed.entities.design_terms)
        return False

    # =========================================================================
    # Feedback
    # =========================================================================

    def feedback(
        self,
        breakdown: ScoreBreakdown,
        quality: QualityTier,
        context: ConversationContext,
    ) -> str:
        issues = []
        strengths = []

        if breakdown.word_count < 3:
            issues.append("message is too short")
        if breakdown.clarity < 5:
            issues.append("message is unclear or contains gibberish")
        if breakdown.specificity < 3:
            issues.append("needs more specific details")
        if breakdown.feature_density < 2:
            issues.append("should mention specific features")

        if breakdown.specificity >= 10:
            strengths.append("very specific")
        if breakdown.technical_depth >= 8:
            strengths.append("good technical depth")
        if breakdown.detail >= 7:
            strengths.append("detailed")
        if breakdown.relevance >= 5:
            strengths.append("relevant to the conversation")

        if quality is QualityTier.POOR:
            if issues:
                return f"Please provide more details: {', '.join(issues)}."
            return "Please provide more details."
        if quality is QualityTier.BASIC:
            topic = "features and design" if context.app_category else "what type of app you want"
            return f"Good start! Consider adding more information about {topic}."
        if quality is QualityTier.GOOD:
            if strengths:
                return f"Great! Your description is {' and '.join(strengths)}."
            return "Good information! Keep going with more details."
        if strengths:
            return f"Excellent! {', '.join(strengths).capitalize()}. This is very helpful!"
        return "Perfect! Very comprehensive description."
