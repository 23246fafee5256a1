"""Translation service orchestrating validation, admission, caching and coalescing.

This service is the server-side core of the translation endpoint. It handles:
- Input validation (before any cache or quota interaction)
- Multi-tier admission control
- Response caching by (languages, trimmed text)
- Deduplication of concurrent identical calls
- Optional romanization of Japanese output
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from kotoba_api.adapters.analyzer.base import AbstractMorphAnalyzer
from kotoba_api.adapters.rate_limit.base import AdmissionDecision
from kotoba_api.adapters.translation.base import AbstractTranslationClient
from kotoba_api.core.config import settings
from kotoba_api.core.rate_limit import AdmissionSource, enforce_admission
from kotoba_api.schemas.translation import TranslateResponse
from kotoba_api.utils.cache_store import TTLCacheStore, build_cache_key
from kotoba_api.utils.coalescer import RequestCoalescer
from kotoba_api.utils.lazy_singleton import AsyncLazySingleton
from kotoba_api.utils.text_validators import validate_language_pair, validate_text

logger = logging.getLogger(__name__)

# Target whose output gets a romanization
ROMANIZED_TARGET = "ja"


class TranslationService:
    """Service translating text between English and Japanese.

    Attributes:
        provider: Machine translation client.
        cache: Store of translation payloads keyed by build_cache_key.
        coalescer: Registry of in-flight provider calls.
        admission: Admission controller or a per-request lookup of it
            (None disables admission checks).
        analyzer: Lazy analyzer used for romanization.
    """

    def __init__(
        self,
        provider: AbstractTranslationClient,
        cache: TTLCacheStore[dict[str, Any]],
        *,
        coalescer: RequestCoalescer[dict[str, Any]] | None = None,
        admission: AdmissionSource | None = None,
        analyzer: AsyncLazySingleton[AbstractMorphAnalyzer] | None = None,
        max_text_chars: int | None = None,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.coalescer = coalescer or RequestCoalescer(name="translate")
        self.admission = admission
        self.analyzer = analyzer
        self.max_text_chars = max_text_chars or settings.app.max_text_chars

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
        *,
        client_id: str,
    ) -> tuple[TranslateResponse, AdmissionDecision | None]:
        """Translate text, serving from cache when a fresh result exists.

        Args:
            text: Text to translate.
            source_language: "en" or "ja".
            target_language: "en" or "ja".
            client_id: Caller identity for the per-client admission tier.

        Returns:
            Tuple of (response, admission decision or None when disabled).

        Raises:
            ValidationAppError: If inputs are invalid.
            RateLimitAppError: If admission is denied or the provider throttles.
            AppError: Classified provider failures (never cached).
        """
        # Step 1: Validate inputs
        validate_text(text, max_chars=self.max_text_chars, action="translate")
        validate_language_pair(source_language, target_language)

        # Step 2: Admission control
        decision = enforce_admission(self.admission, client_id, noun="translation")

        # Step 3: Check cache
        cache_key = build_cache_key("translate", source_language, target_language, text=text)
        entry = self.cache.get_fresh(cache_key)
        if entry is not None:
            logger.info(
                "translate.cache_hit",
                extra={"cache_key": cache_key[:16], "target": target_language},
            )
            return TranslateResponse.model_validate({**entry.value, "cached": True}), decision

        # Step 4: Provider call shared with concurrent identical requests
        payload = await self.coalescer.join(
            cache_key,
            lambda: self._fetch_and_store(cache_key, text, source_language, target_language),
        )
        return TranslateResponse.model_validate({**payload, "cached": False}), decision

    async def _fetch_and_store(
        self,
        cache_key: str,
        text: str,
        source_language: str,
        target_language: str,
    ) -> dict[str, Any]:
        result = await self.provider.translate(
            text,
            source_language=source_language,
            target_language=target_language,
        )

        romanization = None
        if target_language == ROMANIZED_TARGET:
            romanization = await self._romanize(result.translated_text)

        payload = TranslateResponse(
            translated_text=result.translated_text,
            romanization=romanization,
            detected_source_language=result.detected_source_language,
        ).model_dump()

        # Stored even when every caller has gone away
        self.cache.put(cache_key, payload)
        logger.info(
            "translate.completed",
            extra={
                "cache_key": cache_key[:16],
                "source": source_language,
                "target": target_language,
                "chars": len(text),
                "romanized": romanization is not None,
            },
        )
        return payload

    async def _romanize(self, japanese_text: str) -> str | None:
        """Best-effort romanization; failures are logged and yield None."""
        if not japanese_text or self.analyzer is None:
            return None

        try:
            analyzer = await self.analyzer.get_instance()
            loop = asyncio.get_running_loop()
            romaji = await loop.run_in_executor(None, analyzer.romanize, japanese_text)
        except Exception as exc:
            logger.warning(
                "translate.romanization_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return None

        return romaji or None
