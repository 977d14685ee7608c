"""
Per-platform content extraction.

One extractor class per platform turns a fetched page into ExtractedContent.
`extract()` picks the class for the classified platform and never raises:
any failure inside an extractor degrades to a minimal record so the
summarizer can still work from whatever metadata exists.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag
from loguru import logger

from .config import Settings, get_settings
from .images import collect_content_images, is_profile_image
from .locators import Locator, all_matches, first_match, longest_match, text_of
from .metadata import PageMetadata, extract_metadata, normalize_date
from .models import ExtractedContent, Platform, RawPage

BOILERPLATE_SELECTORS: Tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    "aside",
    "iframe",
    "ads",
    ".ad",
    "#ad",
    ".ads",
    ".advert",
    ".advertisement",
)

CONTENT_CONTAINER_SELECTORS: Tuple[str, ...] = (
    "article",
    '[role="main"]',
    ".article-content",
    ".post-content",
    ".entry-content",
    "main",
    "#content",
)

TEXT_TAGS: Tuple[str, ...] = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "li")
MIN_FRAGMENT_CHARS = 20


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _hostname(url: str) -> str:
    return urlparse(url).hostname or ""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def strip_boilerplate(soup: BeautifulSoup | Tag) -> None:
    for selector in BOILERPLATE_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()


def _outermost(tags: List[Tag]) -> List[Tag]:
    """Drop matches nested inside another match so text is not collected twice."""
    ids = {id(tag) for tag in tags}
    return [
        tag for tag in tags if not any(id(parent) in ids for parent in tag.parents)
    ]


def _nested_in_text_tag(element: Tag, container: Tag) -> bool:
    for parent in element.parents:
        if parent is container:
            return False
        if parent.name in TEXT_TAGS:
            return True
    return False


def _collect_paragraphs(container: Tag) -> List[str]:
    paragraphs: List[str] = []
    for element in container.find_all(TEXT_TAGS):
        if _nested_in_text_tag(element, container):
            continue
        text = " ".join(element.get_text(" ", strip=True).split())
        if len(text) < MIN_FRAGMENT_CHARS:
            continue
        paragraphs.append(text)
    return paragraphs


class ContentExtractor:
    """Base class; subclasses implement `_extract` for one platform."""

    platform: ClassVar[Platform]

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def placeholder_image(self) -> Optional[str]:
        return None

    def extract(self, page: RawPage) -> ExtractedContent:
        try:
            return self._extract(page)
        except Exception:
            logger.exception(
                f"{type(self).__name__} failed on {page.final_url}; returning minimal record"
            )
            return self.minimal(page)

    def minimal(self, page: RawPage) -> ExtractedContent:
        return ExtractedContent(
            platform=self.platform,
            publisher=_hostname(page.final_url),
            date=_now_iso(),
            url=page.final_url,
            image=self.placeholder_image(),
        )

    def _extract(self, page: RawPage) -> ExtractedContent:
        raise NotImplementedError

    def _with_defaults(
        self, page: RawPage, meta: PageMetadata, **fields
    ) -> ExtractedContent:
        """Merge platform fields over metadata, applying the standard defaults."""
        values = {
            "title": meta.title,
            "author": meta.author,
            "publisher": meta.publisher,
            "date": meta.date,
            "url": meta.url,
            "logo_url": meta.logo,
            "description": meta.description,
        }
        values.update({key: value for key, value in fields.items() if value is not None})
        description = values.get("description") or ""
        return ExtractedContent(
            platform=self.platform,
            title=values.get("title") or "Untitled",
            author=values.get("author") or "Unknown",
            author_subtitle=values.get("author_subtitle"),
            publisher=values.get("publisher") or _hostname(page.final_url),
            date=values.get("date") or _now_iso(),
            url=values.get("url") or page.final_url,
            logo_url=values.get("logo_url"),
            description=description,
            image=values.get("image"),
            images=values.get("images") or [],
            full_content=values.get("full_content") or description,
        )


class ArticleExtractor(ContentExtractor):
    """Generic news/blog article: metadata chain plus main-container paragraphs."""

    platform = Platform.ARTICLE

    def _extract(self, page: RawPage) -> ExtractedContent:
        soup = _parse(page.html)
        # JSON-LD lives in <script>, so metadata is read before boilerplate goes.
        meta = extract_metadata(page.html, page.final_url, soup)
        strip_boilerplate(soup)

        containers = self._content_containers(soup)
        paragraphs: List[str] = []
        image_tags: List[Tag] = []
        for container in containers:
            paragraphs.extend(_collect_paragraphs(container))
            image_tags.extend(container.find_all("img"))

        max_square = self.settings.profile_image_max_square
        images = collect_content_images(image_tags, page.final_url, max_square)
        image = meta.image
        if image and is_profile_image(image, max_square):
            image = None
        return self._with_defaults(
            page,
            meta,
            image=image or (images[0] if images else None),
            images=images,
            full_content="\n\n".join(paragraphs),
        )

    def _content_containers(self, soup: BeautifulSoup) -> List[Tag]:
        for selector in CONTENT_CONTAINER_SELECTORS:
            matches = soup.select(selector)
            if matches:
                return _outermost(matches)
        body = soup.body or soup
        return [body]


class SocialPostExtractor(ContentExtractor):
    """
    Shared policy for short-form social posts.

    Subclasses only supply selector tables. Post images come solely from the
    media containers and the displayed image is always the platform
    placeholder, since in-post media is not a reliable thumbnail.
    """

    text_locators: ClassVar[Tuple[Locator, ...]] = ()
    prefer_longest_text: ClassVar[bool] = False
    media_selectors: ClassVar[Tuple[str, ...]] = ()
    author_locators: ClassVar[Tuple[Locator, ...]] = ()
    subtitle_locators: ClassVar[Tuple[Locator, ...]] = ()
    time_locators: ClassVar[Tuple[Locator, ...]] = (
        Locator("time[datetime]", "datetime"),
        Locator("time"),
    )
    publisher_name: ClassVar[str] = ""

    def _post_text(self, soup: BeautifulSoup) -> Optional[str]:
        if self.prefer_longest_text:
            return longest_match(soup, self.text_locators)
        return first_match(soup, self.text_locators)

    def _post_images(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        image_tags: List[Tag] = []
        for container in all_matches(soup, self.media_selectors):
            if container.name == "img":
                image_tags.append(container)
            image_tags.extend(container.find_all("img"))
        return collect_content_images(
            image_tags, base_url, self.settings.profile_image_max_square
        )

    def _subtitle(self, soup: BeautifulSoup) -> Optional[str]:
        return first_match(soup, self.subtitle_locators)

    def _timestamp(self, soup: BeautifulSoup) -> Optional[str]:
        raw = first_match(soup, self.time_locators)
        return normalize_date(raw) if raw else None

    def _extract(self, page: RawPage) -> ExtractedContent:
        soup = _parse(page.html)
        meta = extract_metadata(page.html, page.final_url, soup)
        for selector in ("script", "style", "noscript"):
            for tag in soup.select(selector):
                tag.decompose()

        text = self._post_text(soup)
        author = first_match(soup, self.author_locators)
        return self._with_defaults(
            page,
            meta,
            author=author,
            author_subtitle=self._subtitle(soup),
            date=self._timestamp(soup),
            publisher=self.publisher_name or None,
            image=self.placeholder_image(),
            images=self._post_images(soup, page.final_url),
            full_content=text,
        )


class LinkedInExtractor(SocialPostExtractor):
    platform = Platform.LINKEDIN
    publisher_name = "LinkedIn"
    # Post text is split across many inline spans; the longest block wins.
    prefer_longest_text = True
    text_locators = (
        Locator(".update-components-text"),
        Locator(".feed-shared-update-v2__description"),
        Locator(".feed-shared-text"),
        Locator('[data-test-id="main-feed-activity-card__commentary"]'),
        Locator(".attributed-text-segment-list__content"),
        Locator(".share-update-card__update-text"),
        Locator('meta[property="og:description"]', "content"),
    )
    media_selectors = (
        ".update-components-image",
        ".feed-shared-image",
        '[data-test-id="feed-images-content"]',
        ".share-images",
        ".main-feed-card__image",
    )
    author_locators = (
        Locator(".update-components-actor__name span[aria-hidden=true]"),
        Locator(".update-components-actor__name"),
        Locator(".feed-shared-actor__name"),
        Locator('[data-tracking-control-name="public_post_feed-actor-name"]'),
        Locator(".share-update-card__actor-text"),
    )
    subtitle_locators = (
        Locator(".update-components-actor__description span[aria-hidden=true]"),
        Locator(".update-components-actor__description"),
        Locator(".feed-shared-actor__description"),
        Locator(".share-update-card__actor-headline"),
        Locator('[data-test-id="main-feed-activity-card__entity-lockup"] p'),
    )
    time_locators = (
        Locator("time[datetime]", "datetime"),
        Locator(".update-components-actor__sub-description"),
        Locator("time"),
    )

    def placeholder_image(self) -> Optional[str]:
        return self.settings.linkedin_placeholder_image


class TwitterExtractor(SocialPostExtractor):
    platform = Platform.TWITTER
    publisher_name = "X (Twitter)"
    text_locators = (
        Locator('article [data-testid="tweetText"]'),
        Locator('[data-testid="tweetText"]'),
        Locator(".tweet-text"),
        Locator('meta[property="og:description"]', "content"),
    )
    media_selectors = (
        '[data-testid="tweetPhoto"]',
        '[data-testid="card.layoutLarge.media"]',
        ".AdaptiveMedia-photoContainer",
    )
    author_locators = (
        Locator('[data-testid="User-Name"] a span'),
        Locator('[data-testid="User-Name"] span'),
        Locator(".fullname"),
    )

    def _subtitle(self, soup: BeautifulSoup) -> Optional[str]:
        def handle(tag: Tag, _locator: Locator) -> Optional[str]:
            value = text_of(tag)
            return value if value.startswith("@") else None

        return first_match(
            soup,
            (Locator('[data-testid="User-Name"] span'), Locator(".username")),
            handle,
        )

    def placeholder_image(self) -> Optional[str]:
        return self.settings.twitter_placeholder_image


EXTRACTORS: Dict[Platform, type[ContentExtractor]] = {
    cls.platform: cls for cls in (ArticleExtractor, LinkedInExtractor, TwitterExtractor)
}


def extract(
    page: RawPage, platform: Platform, settings: Settings | None = None
) -> ExtractedContent:
    """Run the extractor registered for `platform` over `page`."""
    extractor_cls = EXTRACTORS.get(platform, ArticleExtractor)
    content = extractor_cls(settings).extract(page)
    logger.info(
        f"Extracted {platform.value} content from {page.final_url}: "
        f"{len(content.full_content)} chars, {len(content.images)} images"
    )
    return content
