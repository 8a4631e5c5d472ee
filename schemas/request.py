"""Request schemas for the summariser API."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class SummarizeRequest(BaseModel):
    """Payload for ``POST /summarize``: either a URL to fetch or raw text."""

    url: str | None = Field(
        default=None,
        description="Absolute http(s) URL of a webpage or YouTube video.",
    )
    text: str | None = Field(
        default=None,
        min_length=1,
        description="Raw text to summarise instead of fetching a URL.",
    )
    target_word_count: int | None = Field(
        default=None,
        ge=1,
        alias="targetWordCount",
        description="Upper bound on the summary length in words.",
    )

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "SummarizeRequest":
        if (self.url is None) == (self.text is None):
            raise ValueError("Provide exactly one of 'url' or 'text'.")
        if self.url is not None and not self.url.startswith(("http://", "https://")):
            raise ValueError("URL must be absolute")
        return self
