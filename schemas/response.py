"""Response schemas for the summariser API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SummarizeResponse(BaseModel):
    summary: str
    target_word_count: int = Field(ge=1)
    source_words: int = Field(ge=0, description="Word count of the text that was summarised.")
    url: str | None = None
