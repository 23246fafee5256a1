"""Google Cloud Translation (v2 REST) client adapter."""

import logging
from typing import Any

import httpx

from kotoba_api.adapters.translation.base import AbstractTranslationClient, TranslationResult
from kotoba_api.core.errors import (
    AuthConfigurationAppError,
    ErrorCode,
    NetworkAppError,
    RateLimitAppError,
    UpstreamAppError,
)

logger = logging.getLogger(__name__)

PROVIDER = "google"

UNAVAILABLE_MESSAGE = "Translation service is temporarily unavailable."
CONFIGURATION_MESSAGE = "Translation service configuration error."


class GoogleTranslateClient(AbstractTranslationClient):
    """Client for the Google Cloud Translation v2 REST API.

    Every failure is classified into the application error taxonomy; upstream
    response bodies are logged by status only and never returned to callers.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://translation.googleapis.com/language/translate/v2",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Google client.

        Args:
            api_key: API key; when missing every call fails with AUTH_ERROR.
            base_url: Translation endpoint URL.
            timeout_seconds: Timeout for requests in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.base_url = base_url
        self.client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def translate(
        self,
        text: str,
        *,
        source_language: str,
        target_language: str,
    ) -> TranslationResult:
        """Translate text using the v2 ``translate`` method.

        Raises:
            AuthConfigurationAppError: If the key is missing or rejected (401/403).
            RateLimitAppError: If Google throttles the project (429).
            UpstreamAppError: On any other non-2xx status or a malformed payload.
            NetworkAppError: If the request cannot be completed.
        """
        if not self.api_key:
            logger.error("translate.missing_api_key", extra={"provider": PROVIDER})
            raise AuthConfigurationAppError(
                code=ErrorCode.AUTH_ERROR,
                message=CONFIGURATION_MESSAGE,
                details={"reason": "missing_api_key", "provider": PROVIDER},
            )

        payload = {
            "q": text,
            "source": source_language,
            "target": target_language,
            "format": "text",
        }

        try:
            response = await self.client.post(
                self.base_url,
                params={"key": self.api_key},
                json=payload,
            )
        except httpx.TimeoutException as exc:
            logger.warning("translate.timeout", extra={"provider": PROVIDER})
            raise NetworkAppError(
                code=ErrorCode.NETWORK_ERROR,
                message=UNAVAILABLE_MESSAGE,
                details={"reason": "timeout", "provider": PROVIDER},
            ) from exc
        except httpx.RequestError as exc:
            logger.warning(
                "translate.transport_error",
                extra={"provider": PROVIDER, "error_type": type(exc).__name__},
            )
            raise NetworkAppError(
                code=ErrorCode.NETWORK_ERROR,
                message="Unable to connect. Please check your internet connection.",
                details={"reason": "transport_error", "provider": PROVIDER},
            ) from exc

        self._raise_for_status(response)
        return self._parse(response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        logger.warning(
            "translate.upstream_error",
            extra={"provider": PROVIDER, "upstream_status": status},
        )

        if status == 429:
            raise RateLimitAppError(
                code=ErrorCode.RATE_LIMIT,
                message="Too many requests. Please wait a moment and try again.",
                details={"reason": "upstream_throttled", "upstream_status": status},
            )
        if status in (401, 403):
            raise AuthConfigurationAppError(
                code=ErrorCode.AUTH_ERROR,
                message=CONFIGURATION_MESSAGE,
                details={"reason": "credentials_rejected", "upstream_status": status},
            )
        raise UpstreamAppError(
            code=ErrorCode.API_ERROR,
            message=UNAVAILABLE_MESSAGE,
            details={"reason": "upstream_status", "upstream_status": status},
        )

    def _parse(self, response: httpx.Response) -> TranslationResult:
        try:
            data: dict[str, Any] = response.json()
            translation = data["data"]["translations"][0]
            translated_text = translation["translatedText"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning(
                "translate.malformed_payload",
                extra={"provider": PROVIDER, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code=ErrorCode.API_ERROR,
                message=UNAVAILABLE_MESSAGE,
                details={"reason": "malformed_payload", "provider": PROVIDER},
            ) from exc

        return TranslationResult(
            translated_text=translated_text,
            detected_source_language=translation.get("detectedSourceLanguage"),
        )
