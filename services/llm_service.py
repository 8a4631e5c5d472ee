"""Thin wrapper around LLM providers (OpenAI / Azure / local-compatible).

Provider errors are never raised to the caller.  Every response is turned into
a ``CompletionOutcome`` by :func:`classify_error` so the summarizer stays
provider-agnostic.  Only transport failures (connection refused, timeouts)
propagate as exceptions.
"""

from __future__ import annotations

import logging
from typing import Any

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from config import Settings
from schemas.completion import CompletionOutcome, ContextTooLong, RateLimited, RetryableError, Success

logger = logging.getLogger("summariser.llm")


def build_client(settings: Settings) -> tuple[AsyncOpenAI, str]:
    """Return (async_client, model_name) based on the configured provider.

    SDK-level retries are disabled: the summarizer owns the retry policy.
    """
    provider = settings.llm_provider.lower()
    common: dict[str, Any] = {"max_retries": 0}
    if settings.llm_timeout_seconds is not None:
        common["timeout"] = settings.llm_timeout_seconds

    if provider == "azure":
        client = AsyncAzureOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version="2024-12-01-preview",
            **common,
        )
        model = settings.azure_openai_deployment
    elif provider == "local":
        client = AsyncOpenAI(
            base_url=settings.local_llm_base_url,
            api_key="not-needed",
            **common,
        )
        model = settings.local_llm_model
    else:  # default: openai
        client = AsyncOpenAI(api_key=settings.openai_api_key, **common)
        model = settings.openai_model

    return client, model


def provider_message(exc: openai.APIError) -> str:
    """The provider's own error text, without the SDK's "Error code: NNN - " wrapper."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            body = body["error"]
        if body.get("message"):
            return str(body["message"])
    return str(getattr(exc, "message", "") or exc)


def classify_error(exc: openai.APIError, *, rate_limit_wait: float = 5.0) -> CompletionOutcome:
    """Map a provider error onto the outcome the summarizer dispatches on."""
    code = getattr(exc, "code", None)
    message = provider_message(exc)

    if code == "context_length_exceeded" or "maximum context length" in message:
        return ContextTooLong()

    if isinstance(exc, openai.RateLimitError) and code != "insufficient_quota":
        return RateLimited(wait_seconds=rate_limit_wait)
    if message.startswith("Rate limit reached"):
        return RateLimited(wait_seconds=rate_limit_wait)

    return RetryableError(reason=message)


class CompletionClient:
    """Sends (system instruction, user text) chat requests to the provider."""

    def __init__(
        self,
        settings: Settings,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
    ) -> None:
        if client is None:
            client, built_model = build_client(settings)
            model = model or built_model
        self._client = client
        self._model = model or settings.openai_model
        self._temperature = settings.llm_temperature
        self._rate_limit_wait = settings.rate_limit_wait_seconds

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, system_prompt: str, user_message: str) -> CompletionOutcome:
        """Send a chat-completion request and classify the reply.

        Parameters
        ----------
        system_prompt : str
            The system-level instruction.
        user_message : str
            The text to summarise.

        Returns
        -------
        CompletionOutcome
            ``Success`` with the assistant text, or the classified failure.
        """
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
        }
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIConnectionError:
            raise
        except openai.APIError as exc:
            logger.warning("LLM call failed: %s", exc)
            return classify_error(exc, rate_limit_wait=self._rate_limit_wait)

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        text = (content or "").strip()
        if not text:
            return RetryableError(reason="LLM returned empty content.")
        return Success(text=text)
