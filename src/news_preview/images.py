"""Image candidate filtering shared by every extractor."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import Tag

PROFILE_URL_MARKERS: tuple[str, ...] = (
    "profile",
    "avatar",
    "user",
    "/p/",
    "profile_image",
    "profile-photo",
    "headshot",
    "pfp",
)

# Class names that mark chrome rather than post media.
NON_CONTENT_CLASS_MARKERS: tuple[str, ...] = (
    "profile",
    "avatar",
    "icon",
    "emoji",
    "logo",
    "headshot",
    "pfp",
)

_DIMENSION_PATTERNS = (
    re.compile(r"(?<!\d)(\d{1,4})x(\d{1,4})(?!\d)"),
    re.compile(r"[?&](?:w|width)=(\d{1,4})&(?:h|height)=(\d{1,4})(?!\d)"),
)


def _square_size(url: str) -> Optional[int]:
    for pattern in _DIMENSION_PATTERNS:
        for width, height in pattern.findall(url):
            if width == height:
                return int(width)
    return None


def is_profile_image(url: str, max_square: int = 200) -> bool:
    """
    Return True when `url` looks like an avatar or profile picture.

    Matches known path/name markers, or a square size of at most
    `max_square` pixels encoded in the URL. False positives are preferred
    over letting an avatar through.
    """
    lowered = (url or "").lower()
    if not lowered:
        return True
    if any(marker in lowered for marker in PROFILE_URL_MARKERS):
        return True
    size = _square_size(lowered)
    return size is not None and size <= max_square


def has_non_content_class(tag: Tag) -> bool:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    joined = " ".join(classes).lower()
    alt = str(tag.get("alt") or "").lower()
    return any(marker in joined for marker in NON_CONTENT_CLASS_MARKERS) or "emoji" in alt


def image_src(tag: Tag, base_url: str) -> Optional[str]:
    raw = tag.get("src") or tag.get("data-src") or tag.get("data-delayed-url")
    if not raw or str(raw).startswith("data:"):
        return None
    return urljoin(base_url, str(raw).strip())


def collect_content_images(
    tags: Iterable[Tag], base_url: str, max_square: int = 200
) -> List[str]:
    """Absolute, de-duplicated image URLs from `tags` with avatars and icons removed."""
    images: List[str] = []
    for tag in tags:
        if has_non_content_class(tag):
            continue
        src = image_src(tag, base_url)
        if not src or src in images or is_profile_image(src, max_square):
            continue
        images.append(src)
    return images
