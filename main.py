"""URL summariser — summarise any webpage or YouTube video.

FastAPI application entry-point.
``GET /<absolute-url>`` returns a plain-text summary of the page at that URL.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from config import settings
from engine.pipeline import SourceUnavailable, run_pipeline, summarize_text
from engine.summarizer import SummarizationError, Summarizer
from schemas.request import SummarizeRequest
from schemas.response import SummarizeResponse
from services.llm_service import CompletionClient

VERSION = "0.1.0"

# ── Logging ────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)-30s | %(levelname)-7s | %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger("summariser")

LANDING_PAGE = """
<html>
  <head>
    <title>URL Summariser</title>
    <style>
      body {
        margin: 0;
        padding: 0;
        overflow: hidden;
        background: #030c22;
      }
    </style>
  </head>
  <body>
    <iframe src="https://yousefamar.com/projects/url-summariser/" style="width: 100%; height: 100%; border: none;"></iframe>
  </body>
</html>
"""


# ── Lifespan ───────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    client = CompletionClient(settings)
    app.state.summarizer = Summarizer(client, settings)
    logger.info(
        "URL Summariser started on port %d — provider=%s model=%s",
        settings.port,
        settings.llm_provider,
        client.model,
    )
    yield
    logger.info("URL Summariser shutting down.")


def get_summarizer(request: Request) -> Summarizer:
    return request.app.state.summarizer


# ── App ────────────────────────────────────────────────────────────────

app = FastAPI(
    title="URL Summariser",
    description="Summarise webpages and YouTube videos with an LLM.",
    version=VERSION,
    lifespan=lifespan,
)

_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Routes ─────────────────────────────────────────────────────────────

@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing() -> str:
    return LANDING_PAGE


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=204)


@app.get("/health")
async def health():
    return {"status": "ok", "engine": "url-summariser", "version": VERSION}


@app.post(
    "/summarize",
    response_model=SummarizeResponse,
    summary="Summarise a URL or raw text",
    description="JSON counterpart of ``GET /<url>`` that also accepts raw text and a word budget.",
)
async def summarize(
    payload: SummarizeRequest,
    summarizer: Summarizer = Depends(get_summarizer),
) -> SummarizeResponse:
    try:
        if payload.url is not None:
            return await run_pipeline(
                payload.url,
                summarizer=summarizer,
                settings=settings,
                target_word_count=payload.target_word_count,
            )
        return await summarize_text(
            payload.text,
            summarizer=summarizer,
            settings=settings,
            target_word_count=payload.target_word_count,
        )
    except SourceUnavailable as exc:
        raise HTTPException(status_code=400, detail="Could not fetch webpage") from exc
    except SummarizationError as exc:
        logger.exception("Summarisation failed")
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Pipeline failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _target_url(request: Request) -> str:
    """Everything after the leading slash, query string included, undecoded."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode()
    target = raw_path.split(b"?", 1)[0].decode("latin-1")[1:]
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return target


@app.get("/{target:path}", response_class=PlainTextResponse)
async def summarize_url(
    request: Request,
    summarizer: Summarizer = Depends(get_summarizer),
) -> PlainTextResponse:
    url = _target_url(request)

    if not url:
        return PlainTextResponse("No URL provided", status_code=400)
    if not url.startswith(("http://", "https://")):
        return PlainTextResponse("URL must be absolute", status_code=400)

    try:
        result = await run_pipeline(url, summarizer=summarizer, settings=settings)
    except SourceUnavailable:
        return PlainTextResponse("Could not fetch webpage", status_code=400)
    except SummarizationError:
        logger.exception("Summarisation failed for %s", url)
        return PlainTextResponse("Could not summarise webpage", status_code=502)
    except Exception:
        logger.exception("Pipeline failed for %s", url)
        return PlainTextResponse("Internal server error", status_code=500)

    return PlainTextResponse(result.summary)


# ── Dev runner ─────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        reload=True,
    )
