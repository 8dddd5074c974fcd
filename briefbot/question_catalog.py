"""
Question Catalog - every piece of outbound text the engine can send.

The catalog is immutable configuration loaded from
yaml_config/question_catalog.yaml (or any file passed to load()) and
validated with pydantic. Banks are looked up by key; an unknown key is an
empty bank, which the response selector answers with generic phrasing.

Usage:
    from briefbot.question_catalog import get_catalog, QuestionCatalog

    catalog = get_catalog()
    catalog.bank("category_questions", "fitness")

    custom = QuestionCatalog.from_dict({"focus_questions": {"app_type": ["..."]}})
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from briefbot.errors import CatalogValidationError
from briefbot.logger import logger
from briefbot.settings import settings
from briefbot.yaml_config import CONFIG_DIR


CATALOG_PATH = CONFIG_DIR / "question_catalog.yaml"

# Used when even the catalog has nothing to say
GENERIC_QUESTION = "Tell me more about your app vision!"


def _strip_empty(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


class TemplateSet(BaseModel):
    """Parameterized templates. Placeholders use str.format syntax."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    welcome: List[str] = Field(default_factory=list)
    invalid_input: List[str] = Field(default_factory=list, description="{reason}")
    redirection_prefixes: List[str] = Field(default_factory=list)
    agreement: Dict[str, List[str]] = Field(default_factory=dict, description="{subject}")
    disagreement: Dict[str, List[str]] = Field(default_factory=dict, description="{subject}")
    reference_apologetic: List[str] = Field(default_factory=list, description="{reference}")
    reference_acknowledging: List[str] = Field(default_factory=list, description="{reference}")
    vague: List[str] = Field(default_factory=list, description="{example}")
    category_confirmation: List[str] = Field(default_factory=list, description="{category}")
    feature_fallback: List[str] = Field(default_factory=list, description="{feature}")
    design_fallback: List[str] = Field(default_factory=list, description="{term}")
    technical_fallback: List[str] = Field(default_factory=list, description="{term}")
    competitor: List[str] = Field(default_factory=list, description="{competitor}")
    encouragement: List[str] = Field(default_factory=list)
    completion: List[str] = Field(default_factory=list, description="{app_type}")


class Lexicons(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    off_topic: List[str] = Field(default_factory=list)
    app_relevant: List[str] = Field(default_factory=list)

    @field_validator("off_topic", "app_relevant")
    @classmethod
    def _lowercase(cls, values: List[str]) -> List[str]:
        return [v.lower() for v in _strip_empty(values)]


class QuestionCatalog(BaseModel):
    """
    Question banks, templates and lexicons.

    Bank sections map a key (category, feature, design term, technology or
    focus topic) to an ordered list of questions.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = 1
    category_questions: Dict[str, List[str]] = Field(default_factory=dict)
    feature_questions: Dict[str, List[str]] = Field(default_factory=dict)
    design_questions: Dict[str, List[str]] = Field(default_factory=dict)
    technical_questions: Dict[str, List[str]] = Field(default_factory=dict)
    focus_questions: Dict[str, List[str]] = Field(default_factory=dict)
    missing_examples: Dict[str, str] = Field(default_factory=dict)
    stage_guidance: Dict[str, str] = Field(default_factory=dict)
    templates: TemplateSet = Field(default_factory=TemplateSet)
    lexicons: Lexicons = Field(default_factory=Lexicons)
    generic_question: str = GENERIC_QUESTION

    @field_validator(
        "category_questions",
        "feature_questions",
        "design_questions",
        "technical_questions",
        "focus_questions",
    )
    @classmethod
    def _clean_banks(cls, banks: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {key: _strip_empty(questions) for key, questions in banks.items()}

    @field_validator("generic_question")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("generic_question must not be blank")
        return value.strip()

    # =========================================================================
    # Lookup
    # =========================================================================

    def bank(self, section: str, key: Optional[str]) -> List[str]:
        """Questions for a key in a bank section; [] when absent."""
        if not key:
            return []
        banks = getattr(self, section, None)
        if not isinstance(banks, dict):
            return []
        return list(banks.get(key, []))

    def template(self, name: str, variant: Optional[str] = None) -> List[str]:
        """Templates by name (and variant for agreement/disagreement)."""
        value = getattr(self.templates, name, None)
        if isinstance(value, dict):
            return list(value.get(variant or "general", []))
        return list(value or [])

    def is_empty(self) -> bool:
        return not (
            self.category_questions
            or self.feature_questions
            or self.design_questions
            or self.technical_questions
            or self.focus_questions
        )

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], source: str = "<dict>") -> "QuestionCatalog":
        """
        Build a catalog from a plain dict.

        Raises:
            CatalogValidationError: when the data does not match the schema
        """
        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise CatalogValidationError(source, errors) from exc

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "QuestionCatalog":
        """
        Load a catalog file.

        A missing or unreadable file gives an empty catalog (generic
        fallbacks everywhere) and a warning. A readable file with a schema
        error raises CatalogValidationError.
        """
        path = Path(path) if path else CATALOG_PATH

        if not path.exists():
            logger.warning("Question catalog not found, using empty catalog", path=str(path))
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to read question catalog, using empty catalog", path=str(path), error=str(e))
            return cls()

        if not isinstance(data, dict):
            raise CatalogValidationError(str(path), ["top level must be a mapping"])

        catalog = cls.from_dict(data, source=str(path))
        logger.info(
            "Question catalog loaded",
            path=str(path),
            categories=len(catalog.category_questions),
            features=len(catalog.feature_questions),
        )
        return catalog


# Global catalog (lazy)
_catalog: Optional[QuestionCatalog] = None


def get_catalog() -> QuestionCatalog:
    """Catalog from settings.catalog.path, or the bundled one (singleton)."""
    global _catalog
    if _catalog is None:
        _catalog = QuestionCatalog.load(settings.get_nested("catalog.path"))
    return _catalog


def reload_catalog() -> QuestionCatalog:
    global _catalog
    _catalog = None
    return get_catalog()
