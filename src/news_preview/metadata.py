"""
Page metadata inference.

Title, author, date, description, image, site name and canonical URL come
from trafilatura's metadata extraction. The publisher logo, which trafilatura
does not report, and a JSON-LD image fallback are read from the parsed page.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urljoin

import trafilatura
from bs4 import BeautifulSoup
from dateutil import parser as dateutil_parser

from .locators import Locator, first_match


@dataclass
class PageMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    publisher: Optional[str] = None
    logo: Optional[str] = None
    url: Optional[str] = None


LOGO_LOCATORS = (
    Locator('meta[property="og:logo"]', "content"),
    Locator('meta[itemprop="logo"]', "content"),
    Locator('link[rel~="apple-touch-icon"]', "href"),
    Locator('link[rel~="icon"]', "href"),
)

_URL_FIELDS = ("image", "logo", "url")
_BYLINE_PREFIX = re.compile(r"^(?:by|written by|posted by)\s+", re.IGNORECASE)
# Relative ages shown on social posts ("3d", "2h", "1mo"); dateutil reads these as times of day.
_RELATIVE_AGE = re.compile(r"^\d+\s*(?:s|m|h|d|w|mo|y|yr)$", re.IGNORECASE)


# --- JSON-LD ----------------------------------------------------------------


def _walk_json_ld(node: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(node, list):
        for item in node:
            yield from _walk_json_ld(item)
    elif isinstance(node, dict):
        yield node
        if "@graph" in node:
            yield from _walk_json_ld(node["@graph"])


def _load_json_ld(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    objects: List[Dict[str, Any]] = []
    for script in soup.select('script[type="application/ld+json"]'):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            continue
        objects.extend(_walk_json_ld(data))
    return objects


def _first_url(value: Any) -> Optional[str]:
    """A single URL from a JSON-LD value: a string, an ImageObject, or the first of a list."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for item in value:
            url = _first_url(item)
            if url:
                return url
        return None
    if isinstance(value, dict):
        return _first_url(value.get("url") or value.get("contentUrl"))
    return None


def _json_ld_image(objects: List[Dict[str, Any]]) -> Optional[str]:
    for obj in objects:
        url = _first_url(obj.get("image") or obj.get("thumbnailUrl"))
        if url:
            return url
    return None


def _json_ld_logo(objects: List[Dict[str, Any]]) -> Optional[str]:
    for obj in objects:
        publisher = obj.get("publisher")
        if isinstance(publisher, list):
            publisher = publisher[0] if publisher else None
        if isinstance(publisher, dict):
            url = _first_url(publisher.get("logo"))
            if url:
                return url
    return None


# --- Field cleanup ----------------------------------------------------------


def normalize_date(value: str) -> str:
    """Return an ISO-8601 form of `value` when it parses, else the text as found."""
    if _RELATIVE_AGE.match(value.strip()):
        return value.strip()
    try:
        return dateutil_parser.parse(value).isoformat()
    except (ValueError, OverflowError):
        return value


def _clean(field: str, value: Optional[str], base_url: str) -> Optional[str]:
    value = " ".join((value or "").split())
    if not value:
        return None
    if field in _URL_FIELDS:
        return urljoin(base_url, value)
    if field == "author":
        if value.startswith(("http://", "https://")):
            return None
        value = _BYLINE_PREFIX.sub("", value).strip(" .,;:")
        return value or None
    if field == "date":
        return normalize_date(value)
    return value


def _library_fields(html: str, url: str) -> Dict[str, Optional[str]]:
    document = trafilatura.extract_metadata(html, default_url=url)
    if document is None:
        return {}
    return {
        "title": document.title,
        "author": document.author,
        "date": document.date,
        "description": document.description,
        "image": document.image,
        "publisher": document.sitename,
        "url": document.url,
    }


def extract_metadata(
    html: str, url: str, soup: Optional[BeautifulSoup] = None
) -> PageMetadata:
    """
    Collect page metadata for `html` fetched from `url`.

    `soup` may be passed to reuse an existing parse; it must still contain
    the page's <script> and <link> elements.
    """
    soup = soup if soup is not None else BeautifulSoup(html or "", "lxml")
    json_ld = _load_json_ld(soup)
    found = _library_fields(html, url)

    if not found.get("image"):
        found["image"] = _json_ld_image(json_ld)
    found["logo"] = (
        _json_ld_logo(json_ld)
        or first_match(soup, LOGO_LOCATORS)
        or (urljoin(url, "/favicon.ico") if url.startswith("http") else None)
    )
    return PageMetadata(
        **{field: _clean(field, found.get(field), url) for field in PageMetadata.__dataclass_fields__}
    )
