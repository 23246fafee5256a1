"""Translation adapter layer - abstracts over machine translation providers."""

from kotoba_api.adapters.translation.base import AbstractTranslationClient, TranslationResult
from kotoba_api.adapters.translation.factory import create_translation_client
from kotoba_api.adapters.translation.google_client import GoogleTranslateClient

__all__ = [
    "AbstractTranslationClient",
    "GoogleTranslateClient",
    "TranslationResult",
    "create_translation_client",
]
