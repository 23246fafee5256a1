"""Pydantic schemas for the morphological analysis endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalyzeRequest(BaseModel):
    """Analysis request body."""

    text: str = Field(..., description="Japanese text to analyze (max 5000 characters).")


class AnalyzedToken(BaseModel):
    """A single word of the analyzed text, simplified for learners."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    surface: str = Field(..., description="The text as it appears in the input.")
    reading: str | None = Field(default=None, description="Hiragana reading.")
    basic_form: str | None = Field(default=None, description="Dictionary form.")
    pos: str = Field(..., description="Part of speech (English).")
    pos_detail: str = Field(..., description="Conjugation and POS sub-category details.")


class AnalyzeResponse(BaseModel):
    """Successful analysis response."""

    tokens: list[AnalyzedToken] = Field(
        default_factory=list,
        description="Tokens in input order.",
    )
    cached: bool = Field(
        default=False,
        description="True if the response was served from the server cache.",
    )
