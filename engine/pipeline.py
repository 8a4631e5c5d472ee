"""Pipeline orchestrator — fetch the source, then summarise it."""

from __future__ import annotations

import logging
import time

from config import Settings
from engine.summarizer import Summarizer
from schemas.response import SummarizeResponse
from schemas.source import SourceText
from services.source_service import fetch_article, fetch_transcript, is_youtube_url

logger = logging.getLogger("summariser.pipeline")


class SourceUnavailable(Exception):
    """Raised when no text could be extracted from the requested URL."""


async def fetch_source(url: str, settings: Settings) -> SourceText | None:
    if is_youtube_url(url):
        return await fetch_transcript(url, settings)
    return await fetch_article(url, settings)


async def summarize_text(
    text: str,
    *,
    summarizer: Summarizer,
    settings: Settings,
    target_word_count: int | None = None,
    url: str | None = None,
) -> SummarizeResponse:
    """Summarise already-extracted *text*."""
    target = target_word_count or settings.summary_words
    t0 = time.perf_counter()

    summary = await summarizer.summarize(text, target)

    elapsed = time.perf_counter() - t0
    source_words = len(text.split())
    logger.info("Summary complete in %.2fs — %d words → ≤%d", elapsed, source_words, target)

    return SummarizeResponse(
        summary=summary,
        target_word_count=target,
        source_words=source_words,
        url=url,
    )


async def run_pipeline(
    url: str,
    *,
    summarizer: Summarizer,
    settings: Settings,
    target_word_count: int | None = None,
) -> SummarizeResponse:
    """Fetch *url* (webpage or YouTube transcript) and summarise it.

    Raises
    ------
    SourceUnavailable
        If the page or transcript yielded no text.
    """
    logger.info("Summarising: %s", url)

    source = await fetch_source(url, settings)
    if source is None:
        raise SourceUnavailable(url)

    return await summarize_text(
        source.render(),
        summarizer=summarizer,
        settings=settings,
        target_word_count=target_word_count,
        url=url,
    )
