"""
Logging for briefbot.

Two output modes, picked by the LOG_FORMAT environment variable:
    readable (default)  "[conv_1] Turn processed [rule=vague]"
    json                one JSON object per line, for log shippers

The active conversation id and any extra context live in ContextVars, so
sessions handled on different threads or tasks keep their own ids.

    from briefbot.logger import logger

    logger.set_conversation("conv_123")
    logger.info("Message parsed", intent="describing_features")
    logger.metric("progress_delta", 12, stage="feature_gathering")
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from briefbot.settings import settings


_current_conversation: ContextVar[Optional[str]] = ContextVar("briefbot_conversation", default=None)
_current_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar("briefbot_log_context", default=None)

READABLE_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


def _json_enabled() -> bool:
    return os.environ.get("LOG_FORMAT", "readable").lower() == "json"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class StructuredLogger:
    """
    Thin wrapper over a stdlib logger that attaches key/value fields.

    metric() and event() are INFO records with their own level tag, so
    analytics can filter them out of the JSON stream.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            self._configure()

    def _configure(self) -> None:
        configured = str(settings.get_nested("logging.level", "INFO")).upper()
        level = logging.getLevelName(configured)
        if not isinstance(level, int):
            level = logging.INFO

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        if _json_enabled():
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler.setFormatter(logging.Formatter(READABLE_FORMAT, datefmt="%H:%M:%S"))

        self.logger.setLevel(level)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    @property
    def conversation_id(self) -> Optional[str]:
        return _current_conversation.get()

    def set_conversation(self, conv_id: str) -> None:
        _current_conversation.set(conv_id)

    def clear_conversation(self) -> None:
        _current_conversation.set(None)

    @property
    def _extra_context(self) -> Dict[str, Any]:
        return dict(_current_context.get() or {})

    def set_context(self, **kwargs: Any) -> None:
        """Add fields that every later record in this context carries."""
        _current_context.set({**self._extra_context, **kwargs})

    def clear_context(self) -> None:
        _current_context.set({})

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _format_structured(self, level: str, message: str, **kwargs: Any) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(),
            "level": level,
            "logger": self.name,
            "message": message,
        }
        conv_id = self.conversation_id
        if conv_id:
            entry["conversation_id"] = conv_id
        entry.update(self._extra_context)
        entry.update(kwargs)
        return entry

    def _format_readable(self, message: str, **kwargs: Any) -> str:
        line = message
        if kwargs:
            fields = ", ".join(f"{key}={value}" for key, value in kwargs.items())
            line = f"{line} [{fields}]"
        conv_id = self.conversation_id
        return f"[{conv_id}] {line}" if conv_id else line

    def _log(self, level: str, message: str, output_fn: Callable[[str], Any], **kwargs: Any) -> None:
        if _json_enabled():
            entry = self._format_structured(level, message, **kwargs)
            output_fn(json.dumps(entry, ensure_ascii=False, default=str))
        else:
            output_fn(self._format_readable(message, **kwargs))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, self.logger.debug, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, self.logger.info, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, self.logger.warning, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, self.logger.error, **kwargs)

    def metric(self, name: str, value: Any, **kwargs: Any) -> None:
        """
        Numeric measurement with optional dimensions.

            logger.metric("progress_delta", 15, stage="feature_gathering")
        """
        self._log("METRIC", name, self.logger.info, value=value, **kwargs)

    def event(self, event_type: str, **kwargs: Any) -> None:
        """Named occurrence, e.g. stage_changed or session_closed."""
        self._log("EVENT", event_type, self.logger.info, **kwargs)


logger = StructuredLogger("briefbot")
