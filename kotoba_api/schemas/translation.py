"""Pydantic schemas for the translation endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TranslateRequest(BaseModel):
    """Translation request body.

    Language codes are validated by the service so that every invalid input
    is reported with the same INVALID_INPUT error shape.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str = Field(..., description="Text to translate (max 5000 characters).")
    source_language: str = Field(..., description="Source language code: 'en' or 'ja'.")
    target_language: str = Field(..., description="Target language code: 'en' or 'ja'.")


class TranslateResponse(BaseModel):
    """Successful translation response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    translated_text: str = Field(..., description="Translated text.")
    romanization: str | None = Field(
        default=None,
        description="Hepburn romanization, only when translating to Japanese.",
    )
    detected_source_language: str | None = Field(
        default=None,
        description="Source language reported by the provider, when available.",
    )
    cached: bool = Field(
        default=False,
        description="True if the response was served from the server cache.",
    )
