"""Recursive length-bounded summarization.

Inputs that fit the model's context are summarised with a single completion
request (retried on transient failures).  Longer inputs are split in half,
both halves are summarised concurrently, and the concatenation of the two
partial summaries is summarised once more to fit the word budget.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_exponential,
)

from config import Settings
from prompts.system_prompt import build_instruction
from schemas.completion import CompletionOutcome, ContextTooLong, RateLimited, RetryableError

logger = logging.getLogger("summariser.engine.summarizer")


class SummarizationError(Exception):
    """Raised when the completion backend cannot produce a summary."""


class CompletionBackend(Protocol):
    async def complete(self, system_prompt: str, user_message: str) -> CompletionOutcome: ...


def split_words(words: list[str]) -> tuple[str, str]:
    """Split *words* at the midpoint into two contiguous text blocks."""
    half = len(words) // 2
    return " ".join(words[:half]), " ".join(words[half:])


def _should_retry(outcome: CompletionOutcome) -> bool:
    return isinstance(outcome, (RateLimited, RetryableError))


class Summarizer:
    """Summarises arbitrary-length text into at most ``target_word_count`` words."""

    def __init__(
        self,
        client: CompletionBackend,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._sleep = sleep
        self._backoff = wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            max=settings.retry_backoff_max,
        )
        limit = settings.max_concurrent_completions
        self._semaphore = asyncio.Semaphore(limit) if limit > 0 else None

    async def summarize(self, text: str, target_word_count: int | None = None) -> str:
        """Return a summary of *text* no longer than *target_word_count* words.

        The word limit is an instruction to the model; the result is not
        re-counted.  Raises ``ValueError`` for a target below one word, and
        ``SummarizationError`` only when a bounded retry policy is exhausted
        or an unsplittable input is still too long.
        """
        target = target_word_count if target_word_count is not None else self._settings.summary_words
        if target < 1:
            raise ValueError(f"target_word_count must be at least 1, got {target}")
        words = text.split()

        if len(words) > self._settings.hard_cap_words:
            logger.info(
                "Input of %d words exceeds hard cap; keeping the first %d",
                len(words),
                self._settings.hard_cap_keep_words,
            )
            words = words[: self._settings.hard_cap_keep_words]
            text = " ".join(words)

        if len(words) > self._settings.split_threshold_words:
            return await self._divide_and_conquer(words, target)

        outcome = await self._complete_with_retry(text, target)
        if isinstance(outcome, ContextTooLong):
            if len(words) < 2:
                raise SummarizationError("Input is too long for the model and cannot be split further.")
            logger.info("Context length exceeded, splitting and retrying...")
            return await self._divide_and_conquer(words, target)
        return outcome.text

    async def _divide_and_conquer(self, words: list[str], target: int) -> str:
        first, second = split_words(words)
        logger.info("Splitting %d words in half", len(words))
        partials = await asyncio.gather(
            self.summarize(first, target),
            self.summarize(second, target),
        )
        return await self.summarize(" ".join(partials), target)

    # ── Backend call loop ─────────────────────────────────────────────

    async def _complete_with_retry(self, text: str, target: int) -> CompletionOutcome:
        """Call the backend until it returns ``Success`` or ``ContextTooLong``."""
        max_attempts = self._settings.max_attempts
        retrying = AsyncRetrying(
            retry=retry_if_result(_should_retry),
            wait=self._wait,
            stop=stop_after_attempt(max_attempts) if max_attempts > 0 else stop_never,
            before_sleep=self._log_retry,
            sleep=self._sleep,
        )
        instruction = build_instruction(target)
        try:
            return await retrying(self._call, instruction, text)
        except RetryError as exc:
            last = exc.last_attempt.result()
            raise SummarizationError(
                f"Gave up after {exc.last_attempt.attempt_number} attempts: {last!r}"
            ) from exc

    async def _call(self, instruction: str, text: str) -> CompletionOutcome:
        if self._semaphore is None:
            return await self._client.complete(instruction, text)
        async with self._semaphore:
            return await self._client.complete(instruction, text)

    def _wait(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome.result()
        if isinstance(outcome, RateLimited):
            return outcome.wait_seconds
        return self._backoff(retry_state)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome.result()
        if isinstance(outcome, RateLimited):
            logger.info("Rate limit reached, waiting %s seconds...", outcome.wait_seconds)
        else:
            logger.info("Retrying (attempt %d): %s", retry_state.attempt_number, outcome.reason)
