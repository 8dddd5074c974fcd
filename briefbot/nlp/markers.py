"""
Regex markers for message parsing.

All patterns are matched against the lower-cased, whitespace-normalized
text. Patterns anchored with ^...$ are matched against the text with
trailing punctuation stripped.
"""

from typing import Dict, List

from .models import Intent


# =============================================================================
# Agreement / disagreement
# =============================================================================

# Agreement detection only looks at short replies; a long message that
# starts with "yes" is a description, not an answer.
AGREEMENT_MAX_WORDS = 12

AGREEMENT_MARKERS: Dict[str, List[str]] = {
    "strong_yes": [
        r"^(yes|yeah|yep|yup|sure|definitely|absolutely|of course|for sure|correct|right|exactly|indeed)$",
        r"^(yes|yeah|yep|yup|sure|definitely|absolutely)[,!.]?\s",
        r"\b(that'?s\s+right|that'?s\s+correct|you'?re\s+right)\b",
    ],
    "mild_yes": [
        r"^(ok|okay|alright|fine|sounds good|sounds great|perfect|great|good|nice|cool)$",
        r"\b(i agree|i think so|why not|let'?s do (it|that))\b",
    ],
    "strong_no": [
        r"^(no|nope|nah|never|not at all|absolutely not|definitely not|no thanks|no thank you)$",
        r"^(no|nope|nah)[,!.]?\s",
        r"\b(don'?t\s+(want|need)|won'?t\s+need|not\s+needed)\b",
    ],
    "mild_no": [
        r"\b(maybe not|probably not|not really|i don'?t think so)\b",
        r"\b(skip( it| that)?|leave it|pass on)\b",
    ],
}

# Tier order: index 0 wins
AGREEMENT_TIERS = ["strong", "mild"]


# =============================================================================
# Reference ("I already told you") markers
# =============================================================================

REFERENCE_MARKERS: Dict[str, List[str]] = {
    "strong": [
        r"\bi (already|just) (said|told you|mentioned)\b",
        r"\bi repeat\b",
        r"\bagain,",
        r"\bi'?ll say (it )?again\b",
        r"\b(already told|keep asking|stop asking)\b",
    ],
    "mild": [
        r"\bas i (said|mentioned)\b",
        r"\blike i (said|mentioned|told you)\b",
        r"\bthat'?s what i (said|meant)\b",
    ],
}

FRUSTRATION_MARKERS: List[str] = [
    r"\b(again|repeat|repeating|already told|keep asking|stop asking)\b",
]


# =============================================================================
# Vagueness
# =============================================================================

VAGUE_EXACT_MARKERS: List[str] = [
    r"^(idk|dunno|i don'?t know|not sure|no idea|maybe|whatever|anything|something|hmm+|eh|meh|no clue)$",
]

# Only count in short messages
VAGUE_PHRASE_MARKERS: List[str] = [
    r"\b(i guess|kind of|sort of|whatever you (want|think)|up to you|you decide)\b",
    r"\b(doesn'?t matter|whichever|no preference|not sure)\b",
]
VAGUE_PHRASE_MAX_WORDS = 6

# A message made only of these words carries no information
FILLER_WORDS = {
    "idk", "dunno", "maybe", "something", "anything", "whatever", "stuff",
    "thing", "things", "um", "uh", "umm", "hmm", "like", "just", "some",
    "kind", "sort", "of", "i", "guess", "not", "sure", "know", "don't",
    "dont", "the", "a", "an", "it", "that", "this", "and", "or", "so",
    "well", "eh", "meh", "yeah", "really", "you", "think",
}

# At or below this many tokens, a message with no entities is vague
LOW_CONTENT_MAX_WORDS = 2


# =============================================================================
# Intent markers (evaluated in dict order, first match wins)
# =============================================================================

INTENT_MARKERS: Dict[Intent, List[str]] = {
    Intent.DESCRIBING_APP_TYPE: [
        r"\b(want|like|need|build|make|create|develop|planning|thinking of|idea)\b[^.?!]*\b(app|application|platform|website|software|game)\b",
        r"\b(an?)\s+([\w-]+\s+){0,2}(app|application|platform|website|game)\b",
    ],
    Intent.DESCRIBING_FEATURES: [
        r"\b(features?|functions?|functionality|capabilit(y|ies))\b",
        r"\b(should|can|will|must)\s+(have|let|allow|support|include|be able)\b",
        r"\b(need|want|include|allow|let users)\b",
    ],
    Intent.DESCRIBING_DESIGN: [
        r"\b(design|look|looks|style|colou?rs?|theme|ui|ux|interface|layout|fonts?|buttons?)\b",
    ],
    Intent.DESCRIBING_TECHNICAL: [
        r"\b(api|database|server|backend|cloud|integration|integrate|authentication|payment gateway|hosting|framework|sdk)\b",
    ],
    Intent.DESCRIBING_USER_FLOW: [
        r"\b(navigate|navigation|click|tap|onboarding|user flow|journey|home screen|screens?|pages?)\b",
        r"\busers?\s+(first|then|start|open|land|go)\b",
    ],
    Intent.DESCRIBING_PROBLEM: [
        r"\b(problem|solve[sd]?|solution|pain point|struggle|purpose|goal|issue|challenge)\b",
    ],
    Intent.DESCRIBING_TARGET_AUDIENCE: [
        r"\b(target(ed|ing)?|audience|aimed at|demographic|age group)\b",
    ],
}


# =============================================================================
# Fact markers (independent of intent)
# =============================================================================

_AUDIENCE_NOUNS = (
    r"(people|users?|customers?|clients?|students?|teachers?|professionals?|"
    r"business(es)?|kids|children|parents|seniors|teenagers?|teens|adults?|"
    r"families|freelancers|developers|athletes|beginners|owners|moms|dads|travell?ers)"
)

FACT_MARKERS: Dict[str, List[str]] = {
    "problem_statement": [
        r"\b(problem|issue|challenge|difficulty)\s+(is|with)\b",
        r"\b(solves?|solving|solution for|helps? (people |users )?(with|to))\b",
        r"\busers? (struggle|have trouble|find it hard|can'?t|cannot)\b",
        r"\b(pain point|frustration|obstacle)\b",
    ],
    "target_audience": [
        r"\b(for|target(ing)?|aimed at|designed for|built for)\s+([\w-]+\s+){0,2}" + _AUDIENCE_NOUNS + r"\b",
        r"\b(audience|demographic|market)\s+(is|are|would be|will be)\b",
        r"\bage group\b",
    ],
    "unique_value": [
        r"\b(unique|different from|unlike|stands? out|sets? it apart|better than|the only app)\b",
    ],
}


# =============================================================================
# Sentiment lexicons
# =============================================================================

POSITIVE_WORDS = {
    "love", "great", "awesome", "amazing", "excellent", "good", "nice",
    "perfect", "happy", "excited", "cool", "fantastic", "wonderful",
    "beautiful", "like", "enjoy", "fun",
}

NEGATIVE_WORDS = {
    "hate", "bad", "terrible", "awful", "horrible", "poor", "ugly",
    "annoying", "boring", "confusing", "disappointed", "worst", "sucks",
    "frustrating", "useless",
}


# =============================================================================
# Questions
# =============================================================================

QUESTION_STARTERS = (
    "what", "when", "where", "who", "why", "how", "can", "could",
    "should", "will", "would", "is", "are", "do", "does",
)
