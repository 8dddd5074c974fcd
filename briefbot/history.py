"""
Helpers over the message history supplied by the caller.

History is an ordered list of {"content": str, "sender_role": str} dicts,
oldest first, NOT including the message currently being processed.
"sender_type" is accepted as an alias of "sender_role".
"""

import re
from typing import Dict, List, Optional


BOT_ROLES = {"bot", "assistant", "system"}
USER_ROLES = {"user", "client", "human"}


def _role(entry: Dict) -> str:
    role = entry.get("sender_role") or entry.get("sender_type") or ""
    return str(role).lower()


def normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").lower()).strip()


def last_bot_message(history: Optional[List[Dict]]) -> str:
    """Most recent outbound message, '' when there is none."""
    for entry in reversed(history or []):
        if _role(entry) in BOT_ROLES:
            return entry.get("content") or ""
    return ""


def user_messages(history: Optional[List[Dict]]) -> List[str]:
    return [entry.get("content") or "" for entry in history or [] if _role(entry) in USER_ROLES]


def is_repeat(text: str, history: Optional[List[Dict]]) -> bool:
    """Verbatim (case/whitespace-insensitive) repeat of an earlier user message."""
    target = normalize(text)
    if not target:
        return False
    return any(normalize(previous) == target for previous in user_messages(history))
