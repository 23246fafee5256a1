from __future__ import annotations

from kotoba_api.api.routes.analyze import router as analyze_router
from kotoba_api.api.routes.health import router as health_router
from kotoba_api.api.routes.translate import router as translate_router

__all__ = ["analyze_router", "health_router", "translate_router"]
