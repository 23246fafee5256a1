from functools import partial

from fastapi import APIRouter, Request, Response

from kotoba_api.adapters.translation.factory import create_translation_client
from kotoba_api.core.config import settings
from kotoba_api.core.rate_limit import (
    build_rate_limit_headers,
    get_admission_controller,
    get_client_identity,
)
from kotoba_api.schemas.translation import TranslateRequest, TranslateResponse
from kotoba_api.services.analyzer_registry import analyzer_singleton
from kotoba_api.services.translation_service import TranslationService
from kotoba_api.utils.cache_store import TTLCacheStore

router = APIRouter(tags=["Translation"])

# Initialize dependencies for the translation endpoint
_translation_client = create_translation_client()
_cache: TTLCacheStore = TTLCacheStore(
    ttl_seconds=settings.app.translate_cache_ttl_seconds,
    max_entries=settings.app.translate_cache_max_entries,
    cleanup_interval_seconds=settings.app.cache_cleanup_interval_seconds,
    name="translate",
)
_translation_service = TranslationService(
    provider=_translation_client,
    cache=_cache,
    admission=partial(get_admission_controller, "translate"),
    analyzer=analyzer_singleton,
)


@router.post(
    "/translate",
    response_model=TranslateResponse,
    response_model_exclude_none=True,
)
async def translate(
    payload: TranslateRequest,
    request: Request,
    response: Response,
) -> TranslateResponse:
    """Translate text between English and Japanese.

    Translations into Japanese include a Hepburn romanization when one can be
    produced. Identical requests are answered from cache (``cached: true``)
    and concurrent identical requests share a single provider call.

    Args:
        payload: Text plus source and target language codes.

    Returns:
        TranslateResponse: Translated text, optional romanization.

    Raises:
        AppError: Rendered by the global handlers (400, 429, 5xx).
    """
    result, decision = await _translation_service.translate(
        payload.text,
        payload.source_language,
        payload.target_language,
        client_id=get_client_identity(request),
    )

    response.headers["Cache-Control"] = f"private, max-age={settings.app.response_cache_max_age}"
    response.headers.update(build_rate_limit_headers(decision))
    return result
