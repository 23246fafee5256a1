"""Morphological analysis service for Japanese text.

Turns raw dictionary tokens into learner-friendly tokens (hiragana readings,
English part-of-speech tags) and wraps the analyzer with the same admission,
caching and coalescing pipeline as translation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from kotoba_api.adapters.analyzer.base import EMPTY_FEATURE, AbstractMorphAnalyzer, RawToken
from kotoba_api.adapters.rate_limit.base import AdmissionDecision
from kotoba_api.core.config import settings
from kotoba_api.core.errors import AppError, ErrorCode, UpstreamAppError
from kotoba_api.core.rate_limit import AdmissionSource, enforce_admission
from kotoba_api.schemas.text_analysis import AnalyzedToken, AnalyzeResponse
from kotoba_api.utils.cache_store import TTLCacheStore, build_cache_key
from kotoba_api.utils.coalescer import RequestCoalescer
from kotoba_api.utils.lazy_singleton import AsyncLazySingleton
from kotoba_api.utils.text_validators import validate_text

logger = logging.getLogger(__name__)

POS_TRANSLATIONS = {
    "名詞": "Noun",
    "動詞": "Verb",
    "形容詞": "Adjective",
    "形容動詞": "Na-adjective",
    "副詞": "Adverb",
    "助詞": "Particle",
    "助動詞": "Auxiliary",
    "接続詞": "Conjunction",
    "連体詞": "Pre-noun",
    "感動詞": "Interjection",
    "記号": "Symbol",
    "フィラー": "Filler",
    "接頭詞": "Prefix",
    "接尾辞": "Suffix",
}

NO_DETAIL = "No additional info"

# Katakana ァ..ヶ map onto hiragana ぁ..ゖ at a fixed offset
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


def katakana_to_hiragana(katakana: str) -> str:
    """Convert katakana characters to hiragana, leaving others untouched."""
    return "".join(
        chr(ord(ch) - _KANA_OFFSET) if _KATAKANA_START <= ord(ch) <= _KATAKANA_END else ch
        for ch in katakana
    )


def simplify_pos(pos: str) -> str:
    """Translate a Japanese POS tag; unknown tags pass through."""
    return POS_TRANSLATIONS.get(pos, pos)


def describe_pos_detail(token: RawToken) -> str:
    """Join conjugation type, conjugation form and the first POS detail."""
    details = [
        value
        for value in (token.conjugated_type, token.conjugated_form, token.pos_detail_1)
        if value and value != EMPTY_FEATURE
    ]
    return ", ".join(details) or NO_DETAIL


def to_analyzed_token(token: RawToken) -> AnalyzedToken:
    reading = katakana_to_hiragana(token.reading) if token.reading != EMPTY_FEATURE else ""
    return AnalyzedToken(
        surface=token.surface,
        reading=reading or None,
        basic_form=token.basic_form if token.basic_form != EMPTY_FEATURE else None,
        pos=simplify_pos(token.pos),
        pos_detail=describe_pos_detail(token),
    )


class TextAnalysisService:
    """Service splitting Japanese text into annotated tokens.

    Attributes:
        analyzer: Lazy, process-wide morphological analyzer.
        cache: Store of analysis payloads keyed by build_cache_key.
        coalescer: Registry of in-flight analyses.
        admission: Admission controller or a per-request lookup of it
            (None disables admission checks).
    """

    def __init__(
        self,
        analyzer: AsyncLazySingleton[AbstractMorphAnalyzer],
        cache: TTLCacheStore[dict[str, Any]],
        *,
        coalescer: RequestCoalescer[dict[str, Any]] | None = None,
        admission: AdmissionSource | None = None,
        max_text_chars: int | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.cache = cache
        self.coalescer = coalescer or RequestCoalescer(name="analyze")
        self.admission = admission
        self.max_text_chars = max_text_chars or settings.app.max_text_chars

    async def analyze(
        self,
        text: str,
        *,
        client_id: str,
    ) -> tuple[AnalyzeResponse, AdmissionDecision | None]:
        """Analyze text, serving from cache when a fresh result exists.

        Args:
            text: Japanese text.
            client_id: Caller identity for the per-client admission tier.

        Returns:
            Tuple of (response, admission decision or None when disabled).

        Raises:
            ValidationAppError: If text is blank or too long.
            RateLimitAppError: If admission is denied.
            UpstreamAppError: If the analyzer cannot be built or fails.
        """
        validate_text(text, max_chars=self.max_text_chars, action="analyze")

        decision = enforce_admission(self.admission, client_id, noun="analysis")

        cache_key = build_cache_key("analyze", text=text)
        entry = self.cache.get_fresh(cache_key)
        if entry is not None:
            return AnalyzeResponse.model_validate({**entry.value, "cached": True}), decision

        payload = await self.coalescer.join(
            cache_key,
            lambda: self._analyze_and_store(cache_key, text),
        )
        return AnalyzeResponse.model_validate({**payload, "cached": False}), decision

    async def _analyze_and_store(self, cache_key: str, text: str) -> dict[str, Any]:
        try:
            analyzer = await self.analyzer.get_instance()
            loop = asyncio.get_running_loop()
            raw_tokens = await loop.run_in_executor(None, analyzer.tokenize, text)
        except AppError:
            raise
        except Exception as exc:
            logger.error(
                "analyze.failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise UpstreamAppError(
                code=ErrorCode.API_ERROR,
                message="Failed to analyze text. Please try again.",
                details={"reason": "analyzer_failure"},
            ) from exc

        payload = AnalyzeResponse(tokens=[to_analyzed_token(t) for t in raw_tokens]).model_dump()
        self.cache.put(cache_key, payload)
        logger.info(
            "analyze.completed",
            extra={"cache_key": cache_key[:16], "chars": len(text), "tokens": len(raw_tokens)},
        )
        return payload
