from functools import partial

from fastapi import APIRouter, Request, Response

from kotoba_api.core.config import settings
from kotoba_api.core.rate_limit import (
    build_rate_limit_headers,
    get_admission_controller,
    get_client_identity,
)
from kotoba_api.schemas.text_analysis import AnalyzeRequest, AnalyzeResponse
from kotoba_api.services.analyzer_registry import analyzer_singleton
from kotoba_api.services.text_analysis_service import TextAnalysisService
from kotoba_api.utils.cache_store import TTLCacheStore

router = APIRouter(tags=["Analysis"])

_cache: TTLCacheStore = TTLCacheStore(
    ttl_seconds=settings.app.analyze_cache_ttl_seconds,
    max_entries=settings.app.analyze_cache_max_entries,
    cleanup_interval_seconds=settings.app.cache_cleanup_interval_seconds,
    name="analyze",
)
_analysis_service = TextAnalysisService(
    analyzer=analyzer_singleton,
    cache=_cache,
    admission=partial(get_admission_controller, "analyze"),
)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
)
async def analyze(
    payload: AnalyzeRequest,
    request: Request,
    response: Response,
) -> AnalyzeResponse:
    """Split Japanese text into words with readings and parts of speech.

    The first request after startup also loads the analyzer dictionary.

    Args:
        payload: Text to analyze.

    Returns:
        AnalyzeResponse: Ordered tokens.
    """
    result, decision = await _analysis_service.analyze(
        payload.text,
        client_id=get_client_identity(request),
    )

    response.headers["Cache-Control"] = f"private, max-age={settings.app.response_cache_max_age}"
    response.headers.update(build_rate_limit_headers(decision))
    return result
