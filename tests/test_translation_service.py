"""Tests for the translation orchestrator (validation, admission, cache, coalescing)."""

import asyncio
from unittest.mock import Mock

import pytest

from kotoba_api.adapters.analyzer.base import AbstractMorphAnalyzer, RawToken
from kotoba_api.adapters.rate_limit.tiered import TieredAdmissionController
from kotoba_api.adapters.translation.base import AbstractTranslationClient, TranslationResult
from kotoba_api.core.errors import (
    ErrorCode,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from kotoba_api.services.translation_service import TranslationService
from kotoba_api.utils.cache_store import TTLCacheStore
from kotoba_api.utils.lazy_singleton import AsyncLazySingleton


class FakeProvider(AbstractTranslationClient):
    """Provider double recording calls; optionally blocks until released."""

    def __init__(self, translated: str = "Hello", errors: list[Exception] | None = None) -> None:
        self.translated = translated
        self.errors = list(errors or [])
        self.calls: list[tuple[str, str, str]] = []
        self.gate: asyncio.Event | None = None

    async def translate(self, text, *, source_language, target_language):
        self.calls.append((text, source_language, target_language))
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        return TranslationResult(translated_text=self.translated, detected_source_language=None)


class FakeAnalyzer(AbstractMorphAnalyzer):
    def __init__(self, romaji: str = "konnichiha", fail: bool = False) -> None:
        self.romaji = romaji
        self.fail = fail

    def tokenize(self, text: str) -> list[RawToken]:
        return []

    def romanize(self, text: str) -> str:
        if self.fail:
            raise RuntimeError("converter crashed")
        return self.romaji


def _singleton(analyzer: AbstractMorphAnalyzer) -> AsyncLazySingleton:
    async def factory() -> AbstractMorphAnalyzer:
        return analyzer

    return AsyncLazySingleton(factory, name="fake_analyzer")


def _service(provider: FakeProvider, **kwargs) -> TranslationService:
    kwargs.setdefault("cache", TTLCacheStore(ttl_seconds=3600, max_entries=500, name="translate"))
    kwargs.setdefault("max_text_chars", 5000)
    return TranslationService(provider, **kwargs)


@pytest.mark.asyncio
async def test_second_identical_request_is_served_from_cache() -> None:
    provider = FakeProvider(translated="Hello")
    service = _service(provider)

    first, _ = await service.translate("こんにちは", "ja", "en", client_id="c1")
    second, _ = await service.translate("こんにちは", "ja", "en", client_id="c1")

    assert first.cached is False
    assert second.cached is True
    assert second.translated_text == first.translated_text == "Hello"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_surrounding_whitespace_shares_cache_entry() -> None:
    provider = FakeProvider()
    service = _service(provider)

    await service.translate("hello", "en", "ja", client_id="c1")
    result, _ = await service.translate("  hello  ", "en", "ja", client_id="c1")

    assert result.cached is True
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_empty_text_rejected_without_external_call() -> None:
    provider = FakeProvider()
    service = _service(provider)

    with pytest.raises(ValidationAppError) as exc_info:
        await service.translate("", "en", "ja", client_id="c1")

    assert exc_info.value.code == ErrorCode.INVALID_INPUT
    assert exc_info.value.http_status == 400
    assert provider.calls == []


@pytest.mark.asyncio
async def test_blank_text_rejected() -> None:
    service = _service(FakeProvider())

    with pytest.raises(ValidationAppError) as exc_info:
        await service.translate("   \n", "en", "ja", client_id="c1")

    assert exc_info.value.message == "Please enter text to translate."


@pytest.mark.asyncio
async def test_text_over_limit_rejected() -> None:
    provider = FakeProvider()
    service = _service(provider)

    with pytest.raises(ValidationAppError) as exc_info:
        await service.translate("a" * 5001, "en", "ja", client_id="c1")

    assert exc_info.value.http_status == 400
    assert exc_info.value.message == "Text exceeds maximum length of 5000 characters."
    assert provider.calls == []


@pytest.mark.asyncio
async def test_text_at_limit_accepted() -> None:
    provider = FakeProvider()
    service = _service(provider)

    result, _ = await service.translate("a" * 5000, "en", "ja", client_id="c1")

    assert result.translated_text == "Hello"


@pytest.mark.asyncio
async def test_unsupported_language_rejected() -> None:
    service = _service(FakeProvider())

    with pytest.raises(ValidationAppError) as exc_info:
        await service.translate("hello", "en", "fr", client_id="c1")

    assert exc_info.value.message == "Invalid language selection."


@pytest.mark.asyncio
async def test_concurrent_identical_requests_make_one_external_call() -> None:
    provider = FakeProvider(translated="Hello")
    provider.gate = asyncio.Event()
    service = _service(provider)

    tasks = [
        asyncio.create_task(service.translate("こんにちは", "ja", "en", client_id="c1"))
        for _ in range(1000)
    ]
    await asyncio.sleep(0)
    provider.gate.set()
    results = await asyncio.gather(*tasks)

    assert len(provider.calls) == 1
    assert {r.translated_text for r, _ in results} == {"Hello"}
    assert service.coalescer.in_flight() == 0


@pytest.mark.asyncio
async def test_client_over_limit_is_denied_and_other_client_unaffected() -> None:
    provider = FakeProvider()
    admission = TieredAdmissionController.from_limits(
        client_limit=2, global_limit=100, daily_limit=1000, clock=Mock(return_value=1000.0)
    )
    service = _service(provider, admission=admission)

    for _ in range(2):
        await service.translate("hello", "en", "ja", client_id="1.1.1.1")

    with pytest.raises(RateLimitAppError) as exc_info:
        await service.translate("hello", "en", "ja", client_id="1.1.1.1")

    error = exc_info.value
    assert error.code == ErrorCode.RATE_LIMIT
    assert error.http_status == 429
    assert error.retry_after is not None and error.retry_after > 0
    assert error.message.startswith("Too many requests. Please wait")

    result, decision = await service.translate("hello", "en", "ja", client_id="2.2.2.2")
    assert result.cached is True
    assert decision is not None and decision.allowed


@pytest.mark.asyncio
async def test_daily_quota_message_names_operation() -> None:
    admission = TieredAdmissionController.from_limits(
        client_limit=10, global_limit=10, daily_limit=1, clock=Mock(return_value=1000.0)
    )
    service = _service(FakeProvider(), admission=admission)

    await service.translate("hello", "en", "ja", client_id="c1")
    with pytest.raises(RateLimitAppError) as exc_info:
        await service.translate("other", "en", "ja", client_id="c2")

    assert exc_info.value.message == "Daily translation limit reached. Please try again tomorrow."


@pytest.mark.asyncio
async def test_validation_runs_before_admission() -> None:
    admission = TieredAdmissionController.from_limits(
        client_limit=1, global_limit=10, daily_limit=10, clock=Mock(return_value=1000.0)
    )
    service = _service(FakeProvider(), admission=admission)

    with pytest.raises(ValidationAppError):
        await service.translate("", "en", "ja", client_id="c1")

    # Invalid request consumed nothing
    _, decision = await service.translate("hello", "en", "ja", client_id="c1")
    assert decision is not None and decision.allowed


@pytest.mark.asyncio
async def test_provider_failure_is_not_cached() -> None:
    failure = UpstreamAppError(code=ErrorCode.API_ERROR, message="down")
    provider = FakeProvider(errors=[failure])
    service = _service(provider)

    with pytest.raises(UpstreamAppError):
        await service.translate("hello", "en", "ja", client_id="c1")

    result, _ = await service.translate("hello", "en", "ja", client_id="c1")
    assert result.cached is False
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_japanese_target_includes_romanization() -> None:
    service = _service(
        FakeProvider(translated="こんにちは"),
        analyzer=_singleton(FakeAnalyzer(romaji="konnichiha")),
    )

    result, _ = await service.translate("hello", "en", "ja", client_id="c1")

    assert result.translated_text == "こんにちは"
    assert result.romanization == "konnichiha"


@pytest.mark.asyncio
async def test_english_target_has_no_romanization() -> None:
    service = _service(FakeProvider(), analyzer=_singleton(FakeAnalyzer()))

    result, _ = await service.translate("こんにちは", "ja", "en", client_id="c1")

    assert result.romanization is None


@pytest.mark.asyncio
async def test_romanization_failure_is_omitted_not_fatal() -> None:
    service = _service(
        FakeProvider(translated="こんにちは"),
        analyzer=_singleton(FakeAnalyzer(fail=True)),
    )

    result, _ = await service.translate("hello", "en", "ja", client_id="c1")

    assert result.translated_text == "こんにちは"
    assert result.romanization is None
