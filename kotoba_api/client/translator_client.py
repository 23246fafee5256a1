"""Client-side translator with its own cache and request deduplication.

This is the transport-bound counterpart of the server's translation pipeline:
it validates input before any network traffic, answers repeated requests from
a local cache, shares in-flight requests between concurrent callers and turns
transport failures into OFFLINE / NETWORK_ERROR errors. Its cache is
independent of the server cache and uses its own TTL and size bound.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from kotoba_api.core.config import settings
from kotoba_api.core.errors import (
    ERROR_CLASSES_BY_CODE,
    AppError,
    ErrorCode,
    NetworkAppError,
    OfflineAppError,
    RateLimitAppError,
    UpstreamAppError,
)
from kotoba_api.schemas.translation import TranslateResponse
from kotoba_api.utils.cache_store import TTLCacheStore, build_cache_key
from kotoba_api.utils.coalescer import RequestCoalescer
from kotoba_api.utils.text_validators import validate_text

logger = logging.getLogger(__name__)

ERROR_MESSAGES: dict[str, str] = {
    ErrorCode.INVALID_INPUT: "Please enter valid text to translate.",
    ErrorCode.RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorCode.API_ERROR: "Translation service is temporarily unavailable.",
    ErrorCode.AUTH_ERROR: "Translation service configuration error.",
    ErrorCode.NETWORK_ERROR: "Unable to connect. Please check your internet connection.",
    ErrorCode.OFFLINE: "You are offline. Please check your internet connection.",
}


def get_error_message(code: str | None) -> str:
    """Return a user-facing message for ``code``, API_ERROR's when unknown."""
    return ERROR_MESSAGES.get(code or "", ERROR_MESSAGES[ErrorCode.API_ERROR])


def _always_online() -> bool:
    return True


def error_from_response(response: httpx.Response) -> AppError:
    """Rebuild the server's structured error from a non-2xx response.

    Args:
        response: Response with a non-2xx status.

    Returns:
        AppError subclass matching the server code, with the HTTP status.
    """
    try:
        data: dict[str, Any] = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    code = data.get("code") or ErrorCode.API_ERROR
    message = data.get("message") or get_error_message(code)
    error_cls = ERROR_CLASSES_BY_CODE.get(code, UpstreamAppError)

    if error_cls is RateLimitAppError:
        retry_after = data.get("retryAfter")
        if retry_after is None and response.headers.get("Retry-After", "").isdigit():
            retry_after = int(response.headers["Retry-After"])
        return RateLimitAppError(
            code=code,
            message=message,
            status=response.status_code,
            retry_after=retry_after,
        )
    return error_cls(code=code, message=message, status=response.status_code)


class TranslatorClient:
    """Async client for the Kotoba API translation endpoint.

    Attributes:
        cache: Client-side store of successful responses.
        coalescer: Registry of in-flight HTTP requests.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        cache: TTLCacheStore[TranslateResponse] | None = None,
        is_online: Callable[[], bool] = _always_online,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server base URL; defaults to CLIENT_BASE_URL.
            timeout_seconds: Request timeout; defaults to CLIENT_TIMEOUT_SECONDS.
            cache: Optional cache (built from client settings when omitted).
            is_online: Connectivity check consulted before every request.
            transport: Optional httpx transport (used by tests).
        """
        self.http = httpx.AsyncClient(
            base_url=base_url or settings.client.base_url,
            timeout=timeout_seconds or settings.client.timeout_seconds,
            transport=transport,
        )
        self.cache: TTLCacheStore[TranslateResponse] = cache or TTLCacheStore(
            ttl_seconds=settings.client.cache_ttl_seconds,
            max_entries=settings.client.cache_max_entries,
            name="client",
        )
        self.coalescer: RequestCoalescer[TranslateResponse] = RequestCoalescer(name="client")
        self._is_online = is_online

    async def __aenter__(self) -> "TranslatorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def translate(
        self,
        text: str,
        source_language: str,
        target_language: str,
    ) -> TranslateResponse:
        """Translate text through the server.

        Args:
            text: Text to translate.
            source_language: "en" or "ja".
            target_language: "en" or "ja".

        Returns:
            TranslateResponse as returned by the server (or the local cache).

        Raises:
            OfflineAppError: If the connectivity check reports offline.
            ValidationAppError: If the text is blank or too long.
            NetworkAppError: If the request could not be sent or completed.
            AppError: Server-reported errors, rebuilt from the response body.
        """
        if not self._is_online():
            raise OfflineAppError(
                code=ErrorCode.OFFLINE,
                message=get_error_message(ErrorCode.OFFLINE),
                status=0,
            )

        validate_text(text, max_chars=settings.app.max_text_chars, action="translate")

        cache_key = build_cache_key("translate", source_language, target_language, text=text)
        entry = self.cache.get_fresh(cache_key)
        if entry is not None:
            return entry.value

        return await self.coalescer.join(
            cache_key,
            lambda: self._request(cache_key, text, source_language, target_language),
        )

    async def _request(
        self,
        cache_key: str,
        text: str,
        source_language: str,
        target_language: str,
    ) -> TranslateResponse:
        try:
            response = await self.http.post(
                "/v1/translate",
                json={
                    "text": text,
                    "sourceLanguage": source_language,
                    "targetLanguage": target_language,
                },
            )
        except httpx.TransportError as exc:
            logger.warning(
                "client.transport_error",
                extra={"error_type": type(exc).__name__},
            )
            raise NetworkAppError(
                code=ErrorCode.NETWORK_ERROR,
                message=get_error_message(ErrorCode.NETWORK_ERROR),
                status=0,
            ) from exc

        if response.is_error:
            error = error_from_response(response)
            logger.info(
                "client.request_failed",
                extra={"error_code": error.code, "status_code": response.status_code},
            )
            raise error

        try:
            result = TranslateResponse.model_validate(response.json())
        except ValueError as exc:
            raise UpstreamAppError(
                code=ErrorCode.API_ERROR,
                message=get_error_message(ErrorCode.API_ERROR),
                status=500,
            ) from exc

        self.cache.put(cache_key, result)
        return result
