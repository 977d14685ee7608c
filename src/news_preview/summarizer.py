"""
Two-pass model summarization with a deterministic fallback.

- quick pass: a short overview (`quickSummary`)
- structured pass: statistics, analysis, takeaways and a condensed paraphrase

Both passes request JSON-only output. Any model failure (no key, transport
error, empty or malformed JSON) degrades to word-count truncation of the
extracted text instead of raising, so callers always receive a complete
SummaryBundle. Texts under the short-content threshold never reach the model.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, List, Optional, Type, TypeVar

from loguru import logger
from openai import OpenAI
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import Settings, get_settings
from .models import ExtractedContent, Statistic, SummaryBundle
from .schema import validate_card_payload

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
QUICK_PROMPT = "quick_summary.txt"
STRUCTURED_PROMPT = "structured_summary.txt"
MAX_TAKEAWAYS = 5

FALLBACK_TAKEAWAYS: tuple[str, ...] = (
    "AI analysis unavailable; this summary was cut directly from the source text.",
    "Open the original source for full context and details.",
)
FALLBACK_STATISTICS: tuple[Statistic, ...] = (
    Statistic(label="Statistics", value="N/A", context="No statistics could be extracted."),
)

T = TypeVar("T", bound=BaseModel)


# --- Model response contracts -----------------------------------------------


class QuickSummaryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quick_summary: str = Field(
        validation_alias=AliasChoices("quickSummary", "quick_summary", "summary", "headline")
    )

    @field_validator("quick_summary")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("quickSummary is empty")
        return value


def _split_bullets(text: str) -> List[str]:
    bullets: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped[0] in "-•–—*":
            stripped = stripped.lstrip("-•–—* ").strip()
        bullets.append(stripped)
    return bullets


class StructuredSummaryPayload(BaseModel):
    """Structured pass output; coerces the loose shapes models tend to return."""

    model_config = ConfigDict(populate_by_name=True)

    overview: str = ""
    statistics: List[Statistic] = Field(default_factory=list)
    detailed_analysis: str = Field(
        validation_alias=AliasChoices("detailedAnalysis", "detailed_analysis", "detailed")
    )
    key_takeaways: List[str] = Field(
        validation_alias=AliasChoices("keyTakeaways", "key_takeaways", "keyPoints")
    )
    condensed_content: str = Field(
        validation_alias=AliasChoices("condensedContent", "condensed_content", "condensed")
    )

    @field_validator("overview", "detailed_analysis", "condensed_content", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, list):
            value = " ".join(str(item) for item in value)
        return str(value).strip()

    @field_validator("detailed_analysis", "condensed_content")
    @classmethod
    def _required_text(cls, value: str) -> str:
        if not value:
            raise ValueError("field is empty")
        return value

    @field_validator("statistics", mode="before")
    @classmethod
    def _repair_statistics(cls, value: Any) -> List[dict]:
        if not isinstance(value, list):
            return []
        repaired = []
        for item in value:
            if not isinstance(item, dict):
                continue
            label = str(item.get("label") or "").strip()
            stat_value = str(item.get("value") or "").strip()
            if not label or not stat_value:
                continue
            repaired.append(
                {"label": label, "value": stat_value, "context": str(item.get("context") or "").strip()}
            )
        return repaired

    @field_validator("key_takeaways", mode="before")
    @classmethod
    def _repair_takeaways(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            items = _split_bullets(value)
        elif isinstance(value, list):
            items = [str(item).strip() for item in value if str(item).strip()]
        else:
            items = []
        if not items:
            raise ValueError("keyTakeaways is empty")
        return items[:MAX_TAKEAWAYS]


@dataclass
class ModelResult(Generic[T]):
    """Either a parsed model payload or the reason the caller must fall back."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


# --- Helpers ----------------------------------------------------------------


def build_client(settings: Settings | None = None) -> OpenAI:
    """Create an OpenAI client with no automatic retries; separated for easier testing."""
    settings = settings or get_settings()
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )


def _load_prompt_file(filename: str) -> str:
    path = PROMPTS_DIR / filename
    return path.read_text(encoding="utf-8")


def _system_prompt(filename: str, content: ExtractedContent) -> str:
    return _load_prompt_file(filename).replace("{content_type}", content.platform.content_label)


def _user_message(content: ExtractedContent, source: str, settings: Settings) -> str:
    lines = [
        f"Content type: {content.platform.content_label}",
        f"Title: {content.title}",
        f"Source: {content.publisher}",
        f"Author: {content.author}",
    ]
    if content.author_subtitle:
        lines.append(f"Author title: {content.author_subtitle}")
    lines.append(f"Published: {content.date or 'unknown'}")
    return "\n".join(lines) + f"\n\n{source[: settings.max_prompt_chars]}"


def _response_text_or_raise(response: object, *, step: str) -> str:
    """Extract response text or raise a clear error when output is missing."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text

    status = getattr(response, "status", None)
    if status == "incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None) if details else None
        raise RuntimeError(f"{step} response incomplete (reason={reason}).")

    err = getattr(response, "error", None)
    if err:
        raise RuntimeError(f"{step} response error: {err}")

    raise RuntimeError(f"{step} response missing output text.")


def _call_model(
    client: OpenAI,
    settings: Settings,
    *,
    system_prompt: str,
    user_message: str,
    payload_cls: Type[T],
    step: str,
) -> ModelResult[T]:
    request_kwargs: dict[str, Any] = {
        "model": settings.summarizer_model,
        "input": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        "text": {"format": {"type": "json_object"}},
    }
    if settings.max_tokens and settings.max_tokens > 0:
        request_kwargs["max_output_tokens"] = settings.max_tokens
    # gpt-5 family models reject the temperature parameter; omit it for them.
    if not settings.summarizer_model.startswith("gpt-5"):
        request_kwargs["temperature"] = settings.temperature

    try:
        response = client.responses.create(**request_kwargs)
        text_output = _response_text_or_raise(response, step=step)
        data = json.loads(text_output)
        return ModelResult(value=payload_cls.model_validate(data))
    except Exception as exc:
        logger.warning(f"{step} failed, falling back: {exc}")
        return ModelResult(error=str(exc))


# --- Length discipline ------------------------------------------------------


def truncate_words(text: str, limit: int) -> str:
    words = text.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + "..."


def condensed_cap(original_length: int, ratio: float) -> int:
    # The epsilon keeps exact products such as 0.3 * 1000 from rounding down.
    return int(ratio * original_length + 1e-9)


def _sentences(text: str) -> List[str]:
    pieces = [piece.strip() for piece in text.split(". ") if piece.strip()]
    sentences = []
    for idx, piece in enumerate(pieces):
        if idx < len(pieces) - 1 and not piece.endswith((".", "!", "?")):
            piece = f"{piece}."
        sentences.append(piece)
    return sentences


def _cut_to_boundary(text: str, limit: int) -> str:
    """
    Trim `text` to at most `limit` chars, ending on a sentence or word boundary.

    When not even the first word fits, that whole word is returned instead of
    a fragment, so the result may exceed `limit` for very short sources.
    """
    if len(text) <= limit:
        return text
    head = text[:limit]
    if text[limit:limit + 1] in (" ", "") and head.endswith((".", "!", "?")):
        return head
    sentence_end = max(head.rfind(". "), head.rfind("! "), head.rfind("? "))
    if sentence_end > 0:
        return head[: sentence_end + 1]
    word_end = head.rfind(" ")
    if word_end > 0:
        return head[:word_end].rstrip(" ,;:")
    words = text.split(None, 1)
    return words[0] if words else text


def enforce_condensed_length(
    condensed: str, quick_summary: str, original_length: int, settings: Settings
) -> str:
    """
    Keep the condensed text within `condensed_max_ratio` of the source length.

    Over-long text is rebuilt from whole sentences up to the
    `condensed_target_ratio` budget, falling back to the quick summary when
    not even one sentence fits. The cap is then applied to whichever value
    was chosen.
    """
    cap = condensed_cap(original_length, settings.condensed_max_ratio)
    condensed = condensed.strip()
    if len(condensed) <= cap:
        return condensed

    budget = condensed_cap(original_length, settings.condensed_target_ratio)
    rebuilt = ""
    for sentence in _sentences(condensed):
        candidate = f"{rebuilt} {sentence}".strip()
        if len(candidate) > budget:
            break
        rebuilt = candidate
    chosen = rebuilt or quick_summary.strip()
    return _cut_to_boundary(chosen, cap)


# --- Bundle assembly --------------------------------------------------------


def build_card_payload(
    content: ExtractedContent,
    *,
    quick_summary: str,
    detailed_analysis: str,
    condensed_content: str,
    key_takeaways: List[str],
    statistics: List[Statistic],
    overview: str | None = None,
) -> dict[str, Any]:
    """Flatten summary fields and page provenance into one serializable record."""
    payload: dict[str, Any] = {
        "headline": content.title,
        "summary": quick_summary,
        "detailedSummary": detailed_analysis,
        "condensedContent": condensed_content,
        "keyPoints": list(key_takeaways),
        "statistics": [stat.model_dump() for stat in statistics],
        "source": content.publisher,
        "author": content.author,
        "authorSubtitle": content.author_subtitle,
        "publishedAt": content.date,
        "imageUrl": content.image,
        "articleUrl": content.url,
        "platform": content.platform.value,
    }
    if overview:
        payload["overview"] = overview
    return validate_card_payload(payload)


def _bundle(
    content: ExtractedContent,
    settings: Settings,
    *,
    quick_summary: str,
    detailed_analysis: str,
    condensed_content: str,
    key_takeaways: List[str],
    statistics: List[Statistic],
    overview: str | None = None,
    used_fallback: bool,
) -> SummaryBundle:
    source = content.source_text()
    condensed = enforce_condensed_length(
        condensed_content, quick_summary, len(source), settings
    )
    card = build_card_payload(
        content,
        quick_summary=quick_summary,
        detailed_analysis=detailed_analysis,
        condensed_content=condensed,
        key_takeaways=key_takeaways,
        statistics=statistics,
        overview=overview,
    )
    return SummaryBundle(
        quick_summary=quick_summary,
        detailed_analysis=detailed_analysis,
        key_takeaways=list(key_takeaways),
        statistics=list(statistics),
        condensed_content=condensed,
        card_payload=card,
        used_fallback=used_fallback,
    )


def fallback_bundle(
    content: ExtractedContent,
    settings: Settings | None = None,
    *,
    quick_summary: str | None = None,
) -> SummaryBundle:
    """Deterministic bundle built from fixed word-count slices of the source text."""
    settings = settings or get_settings()
    source = content.source_text()
    quick = quick_summary or truncate_words(source, settings.fallback_quick_words)
    return _bundle(
        content,
        settings,
        quick_summary=quick,
        detailed_analysis=truncate_words(source, settings.fallback_detailed_words),
        condensed_content=truncate_words(source, settings.fallback_condensed_words),
        key_takeaways=list(FALLBACK_TAKEAWAYS),
        statistics=list(FALLBACK_STATISTICS),
        used_fallback=True,
    )


def short_content_bundle(
    content: ExtractedContent, settings: Settings | None = None
) -> SummaryBundle:
    """Direct truncation summary for text too short to justify a model call."""
    settings = settings or get_settings()
    source = content.source_text()
    limit = settings.short_summary_chars
    quick = source if len(source) <= limit else source[:limit] + "..."
    takeaways = [truncate_words(s, 25) for s in _sentences(source)[:3]] or list(FALLBACK_TAKEAWAYS)
    return _bundle(
        content,
        settings,
        quick_summary=quick,
        detailed_analysis=source,
        condensed_content=source,
        key_takeaways=takeaways,
        statistics=list(FALLBACK_STATISTICS),
        used_fallback=True,
    )


def summarize(
    content: ExtractedContent,
    client: Optional[OpenAI] = None,
    *,
    settings: Settings | None = None,
) -> SummaryBundle:
    """Summarize extracted content; never raises."""
    settings = settings or get_settings()
    source = content.source_text()

    if len(source) < settings.short_content_threshold:
        logger.info(f"Content is {len(source)} chars; skipping model for {content.url}")
        return short_content_bundle(content, settings)

    if client is None:
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; using fallback summary.")
            return fallback_bundle(content, settings)
        client = build_client(settings)

    user_message = _user_message(content, source, settings)
    quick = _call_model(
        client,
        settings,
        system_prompt=_system_prompt(QUICK_PROMPT, content),
        user_message=user_message,
        payload_cls=QuickSummaryPayload,
        step="Quick summary",
    )
    if not quick.ok:
        return fallback_bundle(content, settings)

    structured = _call_model(
        client,
        settings,
        system_prompt=_system_prompt(STRUCTURED_PROMPT, content),
        user_message=user_message,
        payload_cls=StructuredSummaryPayload,
        step="Structured summary",
    )
    if not structured.ok:
        return fallback_bundle(content, settings, quick_summary=quick.value.quick_summary)

    analysis = structured.value
    try:
        bundle = _bundle(
            content,
            settings,
            quick_summary=quick.value.quick_summary,
            detailed_analysis=analysis.detailed_analysis,
            condensed_content=analysis.condensed_content,
            key_takeaways=analysis.key_takeaways,
            statistics=analysis.statistics,
            overview=analysis.overview or None,
            used_fallback=False,
        )
    except ValueError as exc:
        logger.warning(f"Model output rejected ({exc}); using fallback summary.")
        return fallback_bundle(content, settings, quick_summary=quick.value.quick_summary)

    logger.info(f"Summarized: {content.title[:50]!r}")
    return bundle
