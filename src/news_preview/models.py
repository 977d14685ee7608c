"""Data models for the news preview pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(str, Enum):
    """Content-source category that selects an extraction strategy."""

    ARTICLE = "article"
    LINKEDIN = "social_a"
    TWITTER = "social_b"

    @property
    def content_label(self) -> str:
        return _CONTENT_LABELS[self]


_CONTENT_LABELS = {
    Platform.ARTICLE: "article",
    Platform.LINKEDIN: "LinkedIn post",
    Platform.TWITTER: "X (Twitter) post",
}


@dataclass(frozen=True)
class RawPage:
    """Markup returned by the fetcher, together with the URL it resolved to."""

    html: str
    final_url: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedContent(_CamelModel):
    """Normalized fields pulled out of one fetched page."""

    platform: Platform
    title: str = "Untitled"
    author: str = "Unknown"
    author_subtitle: Optional[str] = None
    publisher: str = ""
    date: str = ""
    url: str
    logo_url: Optional[str] = None
    description: str = ""
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    full_content: str = Field("", description="Body text, paragraphs separated by blank lines.")

    def source_text(self) -> str:
        """Text the summarizer works from: body, then description, then title."""
        for candidate in (self.full_content, self.description, self.title):
            if candidate and candidate.strip():
                return candidate.strip()
        return "Summary not available"


class Statistic(_CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    label: str
    value: str
    context: str = ""


class SummaryBundle(_CamelModel):
    """Summarizer output for one extracted page; never mutated after creation."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    quick_summary: str
    detailed_analysis: str
    key_takeaways: List[str]
    statistics: List[Statistic]
    condensed_content: str
    card_payload: dict[str, Any]
    used_fallback: bool = Field(
        False, exclude=True, description="True when any field came from the fallback path."
    )


class PreviewResult(_CamelModel):
    """Caller-facing preview; dumps with the field names the ingestion API expects."""

    title: str
    summary: str
    detailed_summary: str
    condensed_content: str
    key_points: List[str]
    statistics: List[Statistic]
    image_url: Optional[str]
    article_url: str
    card_json: str
    author: str
    publisher: str
    date: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
