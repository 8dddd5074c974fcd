"""
Settings loader for settings.yaml

Usage:
    from briefbot.settings import settings

    threshold = settings.scoring.progress_threshold
    level = settings.get_nested("logging.level", "INFO")
"""

import yaml
from pathlib import Path
from typing import List, Any


# Path to the settings file
SETTINGS_FILE = Path(__file__).parent / "settings.yaml"

# Defaults (used when a key is absent from the YAML file)
DEFAULTS = {
    "extractor": {
        "vague_confidence": 10,
        "base_confidence": 50,
        "long_message_words": 10,
        "very_long_message_words": 20,
        "length_bonus": 20,
        "very_long_bonus": 10,
        "entity_bonus": 20,
    },
    "scoring": {
        "progress_threshold": 15,
        "max_progress_delta": 15,
        "min_clear_words": 3,
        "tiers": {
            "excellent": 40,
            "good": 25,
            "basic": 10,
        },
    },
    "completeness": {
        "weights": {
            "app_type": 20,
            "core_features": 25,
            "extra_features": 10,
            "problem_statement": 15,
            "target_audience": 10,
            "design_preferences": 10,
            "platform": 5,
            "unique_value": 5,
        },
        "min_core_features": 3,
        "rich_feature_count": 5,
    },
    "catalog": {
        "path": None,
    },
    "session": {
        "ttl_seconds": 3600,
        "lock_dir": None,
    },
    "logging": {
        "level": "INFO",
        "log_turns": True,
    },
    "feature_flags": {},
}


class DotDict(dict):
    """Dict with attribute access: d.key instead of d['key']"""

    def __getattr__(self, key: str) -> Any:
        try:
            value = self[key]
            if isinstance(value, dict):
                return DotDict(value)
            return value
        except KeyError:
            raise AttributeError(f"Setting '{key}' not found")

    def __setattr__(self, key: str, value: Any) -> None:
        self[key] = value

    def get_nested(self, path: str, default: Any = None) -> Any:
        """Get a value by dotted path: 'scoring.tiers.good'"""
        keys = path.split('.')
        value = self
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge of two dicts (override wins)"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(filepath: Path = None) -> DotDict:
    """
    Load settings from a YAML file.

    Priority:
    1. Values from the YAML file
    2. DEFAULTS

    Args:
        filepath: Settings file (settings.yaml next to this module by default)

    Returns:
        DotDict with settings
    """
    filepath = Path(filepath) if filepath else SETTINGS_FILE

    config = _deep_merge({}, DEFAULTS)

    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        config = _deep_merge(config, yaml_config)
    else:
        print(f"[settings] Settings file not found: {filepath}")
        print("[settings] Using defaults")

    return DotDict(config)


def validate_settings(settings: DotDict) -> List[str]:
    """
    Validate settings.

    Returns:
        List of errors (empty when everything is fine)
    """
    errors = []

    # Scoring
    if settings.scoring.progress_threshold < 0:
        errors.append("scoring.progress_threshold must be >= 0")
    if not (0 < settings.scoring.max_progress_delta <= 100):
        errors.append("scoring.max_progress_delta must be in (0, 100]")

    tiers = settings.scoring.tiers
    if not (tiers.excellent > tiers.good > tiers.basic >= 0):
        errors.append("scoring.tiers must satisfy excellent > good > basic >= 0")

    # Extractor
    vague = settings.extractor.vague_confidence
    if not (0 <= vague <= settings.extractor.base_confidence <= 100):
        errors.append("extractor.vague_confidence must be <= base_confidence <= 100")

    # Completeness weights
    for name, value in settings.completeness.weights.items():
        if value < 0:
            errors.append(f"completeness.weights.{name} must be >= 0")
    if settings.completeness.rich_feature_count < settings.completeness.min_core_features:
        errors.append("completeness.rich_feature_count must be >= min_core_features")

    return errors


# Global settings instance (lazy)
_settings = None


def get_settings() -> DotDict:
    """Global settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = load_settings()
        errors = validate_settings(_settings)
        if errors:
            print("[settings] Invalid settings:")
            for err in errors:
                print(f"  - {err}")
    return _settings


def reload_settings() -> DotDict:
    """Reload settings from file"""
    global _settings
    _settings = None
    return get_settings()


# For convenience: from briefbot.settings import settings
settings = get_settings()


if __name__ == "__main__":
    import json

    s = load_settings()
    errors = validate_settings(s)
    if errors:
        print("[!] ERRORS:")
        for err in errors:
            print(f"  - {err}")
    else:
        print("[+] Settings are valid")

    print(json.dumps(dict(s), indent=2, ensure_ascii=False))
