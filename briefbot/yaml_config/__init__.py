"""
Bundled YAML configuration.

question_catalog.yaml holds every question bank, template and lexicon the
engine uses. Point settings.catalog.path at another file to swap it.
"""

from pathlib import Path

CONFIG_DIR = Path(__file__).parent
