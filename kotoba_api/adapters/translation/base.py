from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TranslationResult:
	"""Provider-neutral translation outcome."""

	translated_text: str
	detected_source_language: str | None = None


class AbstractTranslationClient(ABC):
	"""Interface for machine translation providers."""

	@abstractmethod
	async def translate(
		self,
		text: str,
		*,
		source_language: str,
		target_language: str,
	) -> TranslationResult:
		"""Translate ``text`` from ``source_language`` to ``target_language``.

		Args:
			text: Text to translate.
			source_language: ISO 639-1 source code (e.g., "en").
			target_language: ISO 639-1 target code (e.g., "ja").

		Returns:
			TranslationResult: Translated text and optional detected language.

		Raises:
			AppError: Classified provider failure (rate limit, auth, upstream, network).
		"""
		...
