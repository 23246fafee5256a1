"""Client-side access to the Kotoba API."""

from kotoba_api.client.translator_client import TranslatorClient, get_error_message

__all__ = ["TranslatorClient", "get_error_message"]
