"""Factory pattern for creating translation client instances."""

from kotoba_api.adapters.translation.base import AbstractTranslationClient
from kotoba_api.adapters.translation.google_client import GoogleTranslateClient
from kotoba_api.core.config import settings
from kotoba_api.core.errors import AuthConfigurationAppError, ErrorCode


def create_translation_client() -> AbstractTranslationClient:
    """Factory function to instantiate the configured translation client.

    Reads configuration from kotoba_api.core.config.settings (Pydantic Settings).
    A missing API key is not an error here: the client reports it per request
    so the rest of the service can start without translation credentials.

    Returns:
        AbstractTranslationClient: Configured translation client instance.

    Raises:
        AuthConfigurationAppError: If the provider is unknown.
    """
    provider = settings.translate.provider.lower()

    if provider == "google":
        return GoogleTranslateClient(
            api_key=settings.translate.api_key,
            base_url=settings.translate.base_url,
            timeout_seconds=settings.translate.timeout_seconds,
        )

    raise AuthConfigurationAppError(
        code=ErrorCode.AUTH_ERROR,
        message=f"Unknown translation provider: '{provider}'. Supported providers: google",
    )
