"""Morphological analyzer adapter layer."""

from kotoba_api.adapters.analyzer.base import EMPTY_FEATURE, AbstractMorphAnalyzer, RawToken
from kotoba_api.adapters.analyzer.janome_analyzer import JanomeAnalyzer, build_analyzer

__all__ = [
    "AbstractMorphAnalyzer",
    "EMPTY_FEATURE",
    "JanomeAnalyzer",
    "RawToken",
    "build_analyzer",
]
