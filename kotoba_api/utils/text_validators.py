"""Input validation for text submitted to the translation and analysis endpoints."""

from __future__ import annotations

from typing import Any

from kotoba_api.core.errors import ErrorCode, ValidationAppError

SUPPORTED_LANGUAGES = frozenset({"en", "ja"})


def validate_text(text: Any, *, max_chars: int, action: str) -> str:
    """Validate user text before any cache or quota interaction.

    The length limit applies to the raw text, surrounding whitespace included.

    Args:
        text: Candidate text.
        max_chars: Maximum accepted length in characters.
        action: Verb used in messages (e.g., "translate").

    Returns:
        str: The text, unchanged.

    Raises:
        ValidationAppError: If text is not a string, is blank, or is too long.
    """
    if not isinstance(text, str) or not text:
        raise ValidationAppError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Please enter valid text to {action}.",
            details={"reason": "missing_text", "field": "text"},
        )

    if not text.strip():
        raise ValidationAppError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Please enter text to {action}.",
            details={"reason": "blank_text", "field": "text"},
        )

    if len(text) > max_chars:
        raise ValidationAppError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Text exceeds maximum length of {max_chars} characters.",
            details={
                "reason": "text_too_long",
                "field": "text",
                "max_chars": max_chars,
                "actual_chars": len(text),
            },
        )

    return text


def validate_language_pair(source_language: Any, target_language: Any) -> tuple[str, str]:
    """Validate that both language codes are supported.

    Raises:
        ValidationAppError: If either code is not one of SUPPORTED_LANGUAGES.
    """
    if source_language not in SUPPORTED_LANGUAGES or target_language not in SUPPORTED_LANGUAGES:
        raise ValidationAppError(
            code=ErrorCode.INVALID_INPUT,
            message="Invalid language selection.",
            details={"reason": "unsupported_language", "field": "language"},
        )
    return source_language, target_language
