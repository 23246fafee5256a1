"""Process-wide morphological analyzer shared by translation and analysis."""

from __future__ import annotations

from kotoba_api.adapters.analyzer.base import AbstractMorphAnalyzer
from kotoba_api.adapters.analyzer.janome_analyzer import build_analyzer
from kotoba_api.utils.lazy_singleton import AsyncLazySingleton

analyzer_singleton: AsyncLazySingleton[AbstractMorphAnalyzer] = AsyncLazySingleton(
    build_analyzer, name="janome_analyzer"
)


async def get_analyzer() -> AbstractMorphAnalyzer:
    """Return the shared analyzer, building it on first use."""
    return await analyzer_singleton.get_instance()
