"""
Feature flags for briefbot.

Lets optional behaviours of the engine be switched off without a deploy.

Usage:
    from briefbot.feature_flags import flags

    if flags.competitor_questions:
        ...

    if flags.is_enabled("custom_flag"):
        ...
"""

import os
from typing import Dict, List, Set

from briefbot.settings import settings


class FeatureFlags:
    """
    Feature flag registry.

    - Defaults below, overridden by settings.yaml (feature_flags section)
    - FF_<NAME> environment variables override settings
    - Runtime overrides (set_override) win over everything, used by tests
    """

    DEFAULTS: Dict[str, bool] = {
        # Percentage = max(incremental sum, structural snapshot)
        "structural_completeness": True,
        # "yes" to "Do you want X?" records X in the context
        "agreement_adoption": True,
        # Off-topic messages get a redirection instead of normal scoring
        "off_topic_redirect": True,
        # Extra cascade rules
        "competitor_questions": True,
        "technical_questions": True,
    }

    GROUPS: Dict[str, List[str]] = {
        "progress": ["structural_completeness", "agreement_adoption"],
        "cascade_extras": ["competitor_questions", "technical_questions"],
    }

    def __init__(self):
        self._flags: Dict[str, bool] = {}
        self._overrides: Dict[str, bool] = {}
        self._load_flags()

    def _load_flags(self) -> None:
        self._flags = self.DEFAULTS.copy()

        settings_flags = settings.get_nested("feature_flags", {})
        if isinstance(settings_flags, dict):
            for key, value in settings_flags.items():
                if isinstance(value, bool):
                    self._flags[key] = value

        for key in self._flags:
            env_value = os.environ.get(f"FF_{key.upper()}")
            if env_value is not None:
                self._flags[key] = env_value.lower() in ("true", "1", "yes", "on")

    def reload(self) -> None:
        """Reload flags from settings, dropping overrides"""
        self._overrides.clear()
        self._load_flags()

    def is_enabled(self, flag: str) -> bool:
        """
        Check whether a flag is on.

        Args:
            flag: Flag name

        Returns:
            True when enabled, False otherwise (unknown flags are off)
        """
        if flag in self._overrides:
            return self._overrides[flag]
        return self._flags.get(flag, False)

    def set_override(self, flag: str, value: bool) -> None:
        self._overrides[flag] = value

    def clear_override(self, flag: str) -> None:
        self._overrides.pop(flag, None)

    def clear_all_overrides(self) -> None:
        self._overrides.clear()

    def get_all_flags(self) -> Dict[str, bool]:
        result = self._flags.copy()
        result.update(self._overrides)
        return result

    def get_enabled_flags(self) -> Set[str]:
        return {k for k, v in self.get_all_flags().items() if v}

    def is_group_enabled(self, group: str, require_all: bool = False) -> bool:
        """
        Check a group of flags.

        Args:
            group: Group name
            require_all: True = every flag must be on, False = at least one
        """
        flags_in_group = self.GROUPS.get(group, [])
        if not flags_in_group:
            return False

        if require_all:
            return all(self.is_enabled(f) for f in flags_in_group)
        return any(self.is_enabled(f) for f in flags_in_group)

    def enable_group(self, group: str) -> None:
        for flag in self.GROUPS.get(group, []):
            self.set_override(flag, True)

    def disable_group(self, group: str) -> None:
        for flag in self.GROUPS.get(group, []):
            self.set_override(flag, False)

    # =========================================================================
    # Typed properties
    # =========================================================================

    @property
    def structural_completeness(self) -> bool:
        return self.is_enabled("structural_completeness")

    @property
    def agreement_adoption(self) -> bool:
        return self.is_enabled("agreement_adoption")

    @property
    def off_topic_redirect(self) -> bool:
        return self.is_enabled("off_topic_redirect")

    @property
    def competitor_questions(self) -> bool:
        return self.is_enabled("competitor_questions")

    @property
    def technical_questions(self) -> bool:
        return self.is_enabled("technical_questions")


# Singleton
flags = FeatureFlags()
