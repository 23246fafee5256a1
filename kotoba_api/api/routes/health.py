from __future__ import annotations

from fastapi import APIRouter

from kotoba_api.services.analyzer_registry import analyzer_singleton

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    The analyzer is loaded lazily on the first analysis or romanization, so
    ``analyzer_loaded`` is informational and never affects the status.
    """

    return {"status": "ok", "analyzer_loaded": analyzer_singleton.is_initialized}
