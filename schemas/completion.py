"""Outcomes of a single completion request.

The completion client never raises for provider-level errors; it returns one
of these variants and the summarizer dispatches on the type.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field


class Success(BaseModel):
    model_config = {"frozen": True}

    text: str


class RetryableError(BaseModel):
    """Transient failure: malformed/empty response or a generic provider error."""

    model_config = {"frozen": True}

    reason: str = ""


class RateLimited(BaseModel):
    model_config = {"frozen": True}

    wait_seconds: float = Field(default=5.0, ge=0.0)


class ContextTooLong(BaseModel):
    model_config = {"frozen": True}


CompletionOutcome = Union[Success, RetryableError, RateLimited, ContextTooLong]
