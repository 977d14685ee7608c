"""
Preview pipeline: validate -> fetch -> classify -> extract -> summarize.

Only URL validation and fetching can fail the pipeline; extraction and
summarization degrade internally. Injected callables allow offline runs
and tests without network or model access.
"""

from __future__ import annotations

import json
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx
from loguru import logger
from openai import OpenAI

from .config import Settings, get_settings
from .errors import ErrorKind, FetchError, PipelineError
from .extractors import extract
from .fetcher import fetch_page
from .models import ExtractedContent, Platform, PreviewResult, RawPage, SummaryBundle
from .platforms import classify
from .summarizer import summarize

FetchFn = Callable[[str], RawPage]
ClassifyFn = Callable[[str], Platform]
ExtractFn = Callable[[RawPage, Platform], ExtractedContent]
SummarizeFn = Callable[[ExtractedContent], SummaryBundle]


def validate_url(url: str) -> str:
    """Return the trimmed URL or raise PipelineError(InvalidUrl)."""
    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise PipelineError("validate", ErrorKind.INVALID_URL, "Invalid URL format", exc) from exc
    if (
        parsed.scheme not in {"http", "https"}
        or not parsed.hostname
        or " " in candidate
        or not candidate.isprintable()
    ):
        raise PipelineError("validate", ErrorKind.INVALID_URL, "Invalid URL format")
    return candidate


def build_preview(content: ExtractedContent, summary: SummaryBundle) -> PreviewResult:
    """Map extracted metadata and summary fields onto the caller-facing record."""
    return PreviewResult(
        title=content.title,
        summary=summary.quick_summary,
        detailed_summary=summary.detailed_analysis,
        condensed_content=summary.condensed_content,
        key_points=list(summary.key_takeaways),
        statistics=list(summary.statistics),
        image_url=content.image,
        article_url=content.url,
        card_json=json.dumps(summary.card_payload, ensure_ascii=False),
        author=content.author,
        publisher=content.publisher,
        date=content.date,
    )


def produce_preview(
    url: str,
    *,
    settings: Settings | None = None,
    http_client: Optional[httpx.Client] = None,
    llm_client: Optional[OpenAI] = None,
    fetch_fn: FetchFn | None = None,
    classify_fn: ClassifyFn | None = None,
    extract_fn: ExtractFn | None = None,
    summarize_fn: SummarizeFn | None = None,
) -> PreviewResult:
    """
    Run the full pipeline for a single URL.

    Raises PipelineError for invalid input or an unrecoverable fetch; no
    partial preview is produced in that case.
    """
    settings = settings or get_settings()
    fetch_fn = fetch_fn or (lambda target: fetch_page(target, http_client, settings=settings))
    classify_fn = classify_fn or classify
    extract_fn = extract_fn or (lambda page, platform: extract(page, platform, settings))
    summarize_fn = summarize_fn or (
        lambda content: summarize(content, llm_client, settings=settings)
    )

    target = validate_url(url)
    logger.info(f"Scraping article: {target}")
    try:
        page = fetch_fn(target)
    except FetchError as exc:
        logger.warning(f"Fetch failed for {target}: {exc.kind.value} ({exc.message})")
        raise PipelineError("fetch", exc.kind, exc.message, exc) from exc

    platform = classify_fn(target)
    content = extract_fn(page, platform)
    logger.info("Summarizing article...")
    summary = summarize_fn(content)
    return build_preview(content, summary)
