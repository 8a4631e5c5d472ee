"""Fetch the text to summarise from a webpage or a YouTube video.

Both fetchers are best-effort: they return ``None`` when nothing usable could
be extracted, and the pipeline turns that into a 400 for the caller.
"""

from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from config import Settings
from schemas.source import SourceText

logger = logging.getLogger("summariser.sources")

YOUTUBE_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})",
    re.I,
)

HN_ITEM_PREFIX = "https://news.ycombinator.com/item?id="


# ── URL helpers ───────────────────────────────────────────────────────

def extract_video_id(url: str) -> str | None:
    match = YOUTUBE_RE.search(url)
    return match.group(1) if match else None


def is_youtube_url(url: str) -> bool:
    return extract_video_id(url) is not None


def hacker_news_link(html: str, page_url: str) -> str | None:
    """Return the off-site article an HN item page points to, if any.

    Ask HN / Show HN posts link back to the item itself; those return ``None``
    so the discussion page is summarised instead.
    """
    soup = BeautifulSoup(html, "lxml")
    anchor = soup.select_one(".titleline > a")
    if anchor is None or not anchor.get("href"):
        return None

    href = urljoin(page_url, anchor["href"])
    parsed = urlparse(href)
    if parsed.scheme not in ("http", "https") or parsed.netloc == urlparse(page_url).netloc:
        return None
    return href


# ── Webpages ──────────────────────────────────────────────────────────

def extract_article(html: str) -> SourceText | None:
    """Run readability over *html* and return its title and plain-text body."""
    if not html.strip():
        return None
    try:
        doc = Document(html)
        title = doc.title()
        body_html = doc.summary(html_partial=True)
    except Unparseable as exc:
        logger.warning("Readability could not parse page: %s", exc)
        return None

    text = BeautifulSoup(body_html, "lxml").get_text("\n", strip=True)
    if not text:
        return None
    if title == "[no-title]":
        title = None
    return SourceText(text=text, title=title or None)


async def _get_html(client: httpx.AsyncClient, url: str) -> str:
    response = await client.get(url)
    response.raise_for_status()
    return response.text


async def fetch_article(
    url: str,
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SourceText | None:
    """Fetch *url* (following redirects) and extract the readable article."""
    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=settings.fetch_timeout_seconds,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    ) as client:
        try:
            html = await _get_html(client, url)
            if url.startswith(HN_ITEM_PREFIX):
                link = hacker_news_link(html, url)
                if link:
                    logger.info("HN link detected, instead summarising %s", link)
                    html = await _get_html(client, link)
        except httpx.HTTPError as exc:
            logger.warning("Could not fetch %s: %s", url, exc)
            return None

    return extract_article(html)


# ── YouTube ───────────────────────────────────────────────────────────

async def fetch_transcript(
    url: str,
    settings: Settings,
    *,
    api: YouTubeTranscriptApi | None = None,
) -> SourceText | None:
    """Return the video's captions in ``settings.transcript_language``, in order."""
    video_id = extract_video_id(url)
    if video_id is None:
        return None

    api = api or YouTubeTranscriptApi()
    try:
        fetched = await asyncio.to_thread(api.fetch, video_id, languages=[settings.transcript_language])
    except CouldNotRetrieveTranscript as exc:
        logger.warning("No transcript for %s: %s", video_id, exc)
        return None

    text = "\n".join(snippet.text for snippet in fetched)
    if not text.strip():
        return None
    return SourceText(text=text)
