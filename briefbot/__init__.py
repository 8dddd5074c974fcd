"""
briefbot - deterministic interviewer that collects a complete app description.

Usage:
    from briefbot import ConversationEngine

    engine = ConversationEngine()
    start = engine.start_conversation()
    result = engine.process_message("I want a fitness app", start.context, start.state, history=[])
    print(result.message)
"""

from briefbot.engine import ConversationEngine, TurnResult

__version__ = "0.3.0"

__all__ = ["ConversationEngine", "TurnResult", "__version__"]
