"""
Basic validity checks for inbound messages.

A message that fails these checks is answered with a clarification request
and never moves the progress bar.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .models import ParsedMessage


VOWELS = set("aeiouy")

# Token-level heuristics for keyboard mashing
MIN_GIBBERISH_TOKEN = 3
MAX_CONSONANT_RUN = 4
MAX_VOWEL_RUN = 3

_WORD_RE = re.compile(r"[a-z]+")
_CONSONANT_RUN_RE = re.compile(r"[bcdfghjklmnpqrstvwxz]{%d,}" % (MAX_CONSONANT_RUN + 1))
_VOWEL_RUN_RE = re.compile(r"[aeiou]{%d,}" % (MAX_VOWEL_RUN + 1))
_HAS_LETTER_RE = re.compile(r"[a-z]", re.IGNORECASE)


@dataclass
class ValidationResult:
    valid: bool
    reason: Optional[str] = None


def looks_like_gibberish_token(token: str) -> bool:
    """True for tokens like 'asdkjh' or 'qweiou'."""
    if len(token) < MIN_GIBBERISH_TOKEN:
        return False
    if not any(ch in VOWELS for ch in token):
        return True
    if _CONSONANT_RUN_RE.search(token):
        return True
    return bool(_VOWEL_RUN_RE.search(token))


def alpha_words(text: str) -> List[str]:
    return _WORD_RE.findall(text.lower())


def is_gibberish(text: str) -> bool:
    """
    Most alphabetic tokens look like random key presses.

    Short tokens ("ok", "hi") are ignored; a text with no long tokens
    is not gibberish by this rule.
    """
    words = [w for w in alpha_words(text) if len(w) >= MIN_GIBBERISH_TOKEN]
    if not words:
        return False
    suspicious = sum(1 for w in words if looks_like_gibberish_token(w))
    return suspicious * 2 > len(words)


def validate_message(text: str, parsed: Optional[ParsedMessage] = None) -> ValidationResult:
    """
    Check that a message is worth interpreting.

    Args:
        text: Raw message text
        parsed: Parse result; agreement replies, non-committal replies
                ("idk") and messages with recognized entities are allowed
                to be a single word

    Returns:
        ValidationResult with a user-facing reason when invalid
    """
    trimmed = (text or "").strip()

    if len(trimmed) < 2:
        return ValidationResult(False, "Message is too short")

    if not _HAS_LETTER_RE.search(trimmed):
        return ValidationResult(False, "Message contains only numbers or symbols")

    compact = re.sub(r"\s+", "", trimmed.lower())
    if len(set(compact)) == 1:
        return ValidationResult(False, "Message is a single repeated character")

    # Acronyms like "CRM" or "GPS" have no vowels but name known entities
    recognized = parsed is not None and parsed.entities.has_any()
    if not recognized:
        if len(compact) > 3 and not any(ch in VOWELS for ch in compact):
            return ValidationResult(False, "Message doesn't contain real words")
        if is_gibberish(trimmed):
            return ValidationResult(False, "Message looks like random characters")

    words = alpha_words(trimmed)
    if len(words) < 2:
        exempt = parsed is not None and (
            parsed.is_agreement
            or parsed.is_disagreement
            or parsed.entities.has_any()
            or "vague:exact" in parsed.signals
        )
        if not exempt:
            return ValidationResult(False, "Please use at least a couple of words")

    return ValidationResult(True)
