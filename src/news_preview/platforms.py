"""Domain routing that picks an extraction strategy for a URL."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlparse

from .models import Platform


# Rules are applied in order; the first match wins.
@dataclass(frozen=True)
class PlatformRule:
    platform: Platform
    match_any: Tuple[str, ...]
    hosts: Tuple[str, ...] = ()


PLATFORM_RULES: Tuple[PlatformRule, ...] = (
    PlatformRule(Platform.LINKEDIN, ("linkedin.com", "lnkd.in")),
    # Bare "x.com" would also match hosts like "fox.com", so it is host-matched.
    PlatformRule(Platform.TWITTER, ("twitter.com",), hosts=("x.com", "t.co")),
)


def _host_from_url(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith(f".{domain}")


def classify(url: str) -> Platform:
    """Return the platform for `url`; anything unrecognized is a plain article."""
    lowered = (url or "").lower()
    host = _host_from_url(lowered)
    for rule in PLATFORM_RULES:
        if any(token in lowered for token in rule.match_any):
            return rule.platform
        if host and any(_host_matches(host, domain) for domain in rule.hosts):
            return rule.platform
    return Platform.ARTICLE
