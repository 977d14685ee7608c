"""Ordered "try each selector, keep the first hit" lookups over a parsed page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from bs4 import BeautifulSoup, Tag

T = TypeVar("T")


@dataclass(frozen=True)
class Locator:
    """A CSS selector plus the attribute to read; `attr=None` reads element text."""

    selector: str
    attr: Optional[str] = None


def text_of(tag: Tag, attr: Optional[str] = None) -> str:
    if attr:
        value = tag.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        return (value or "").strip()
    return " ".join(tag.get_text(" ", strip=True).split())


def first_match(
    root: BeautifulSoup | Tag,
    locators: Sequence[Locator],
    extract: Callable[[Tag, Locator], Optional[T]] | None = None,
) -> Optional[T]:
    """
    Return the first non-empty value produced by `extract` across `locators`.

    Locators are tried in order and every element a selector matches is
    offered to `extract` before moving on. The default extractor reads the
    locator's attribute, or the element text when it has none.
    """
    extract = extract or (lambda tag, loc: text_of(tag, loc.attr))
    for locator in locators:
        for tag in root.select(locator.selector):
            value = extract(tag, locator)
            if value:
                return value
    return None


def longest_match(root: BeautifulSoup | Tag, locators: Sequence[Locator]) -> Optional[str]:
    """Return the longest text any locator yields; used for posts split into fragments."""
    best = ""
    for locator in locators:
        for tag in root.select(locator.selector):
            value = text_of(tag, locator.attr)
            if len(value) > len(best):
                best = value
    return best or None


def all_matches(root: BeautifulSoup | Tag, selectors: Iterable[str]) -> List[Tag]:
    """Every element matched by any selector, in selector order, without repeats."""
    seen: set[int] = set()
    found: List[Tag] = []
    for selector in selectors:
        for tag in root.select(selector):
            if id(tag) in seen:
                continue
            seen.add(id(tag))
            found.append(tag)
    return found
