"""FastAPI preview service wired to the ingestion pipeline."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .config import get_settings
from .errors import ErrorKind, PipelineError
from .logging_setup import configure_logging


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(title="News Preview", lifespan=_lifespan)

ERROR_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_URL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.NETWORK: status.HTTP_502_BAD_GATEWAY,
}


def _add_cors(app: FastAPI) -> None:
    """Allow the curation frontend to call the API during local development."""
    allow_all = os.getenv("CORS_ALLOW_ALL", "true").lower() == "true"
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()]
    allow_credentials = (
        os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    )
    if allow_all or not origins:
        origins = ["*"]
    if origins == ["*"] and allow_credentials:
        # Starlette/FastAPI disallow wildcard origins when credentials are enabled.
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


_add_cors(app)


def _run_preview(url: str):
    """Lazy import wrapper so tests can swap the pipeline entry point."""
    from .pipeline import produce_preview

    return produce_preview(url)


def _error_response(kind: ErrorKind, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS[kind],
        content={"error": kind.value, "message": message},
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/articles/preview")
def preview_article(payload: Dict[str, Any]) -> JSONResponse:
    """
    Scrape and summarize one URL without storing anything.

    Failures return the error kind plus a short message the UI shows verbatim.
    """
    url = payload.get("url")
    if not url or not isinstance(url, str):
        return _error_response(ErrorKind.INVALID_URL, "URL is required")

    try:
        result = _run_preview(url)
    except PipelineError as exc:
        logger.warning(f"Preview failed at {exc.stage}: {exc.kind.value}")
        return _error_response(exc.kind, exc.message)

    body = {
        "message": "Article scraped and summarized successfully",
        "preview": result.to_payload(),
    }
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "news_preview.server:app",
        host=os.getenv("PREVIEW_HOST", "0.0.0.0"),
        port=int(os.getenv("PREVIEW_PORT", "8000")),
        reload=os.getenv("PREVIEW_RELOAD", "false").lower() == "true",
    )
