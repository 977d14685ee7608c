"""Browser-like page fetcher with a bounded retry budget."""

from __future__ import annotations

import httpx
from loguru import logger
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import Settings, get_settings
from .errors import ErrorKind, FetchError
from .models import RawPage

TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class _TransientStatus(Exception):
    """Upstream answered with a status worth retrying."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def browser_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Cache-Control": "max-age=0",
    }


def build_http_client(
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """
    Create the HTTP client used for page fetches; separated for easier testing.

    TLS verification follows `settings.verify_tls`, which defaults to off so
    that sites with misconfigured certificates can still be previewed.
    """
    settings = settings or get_settings()
    return httpx.Client(
        headers=browser_headers(settings),
        timeout=settings.fetch_timeout_seconds,
        follow_redirects=True,
        verify=settings.verify_tls,
        transport=transport,
    )


def _get_once(client: httpx.Client, url: str) -> RawPage:
    response = client.get(url)
    status = response.status_code
    if status == 404:
        raise FetchError(ErrorKind.NOT_FOUND, "Article not found (404)")
    if status == 403:
        raise FetchError(
            ErrorKind.FORBIDDEN, "Access forbidden - website blocking scraping"
        )
    if status in TRANSIENT_STATUSES:
        raise _TransientStatus(status)
    if status >= 400:
        raise FetchError(ErrorKind.NETWORK, f"Failed to scrape URL: HTTP {status}")
    return RawPage(html=response.text, final_url=str(response.url))


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Fetch attempt {retry_state.attempt_number} failed: {exc}")


def fetch_page(
    url: str,
    client: httpx.Client | None = None,
    *,
    settings: Settings | None = None,
) -> RawPage:
    """
    Retrieve `url` and return its markup with the post-redirect URL.

    Transport faults and 429/5xx answers are retried up to
    `settings.fetch_retries` times; 403/404 fail immediately. Every failure
    surfaces as a FetchError carrying one of the caller-facing kinds.
    """
    settings = settings or get_settings()
    owns_client = client is None
    active = client or build_http_client(settings)
    retrying = Retrying(
        stop=stop_after_attempt(settings.fetch_retries + 1),
        wait=wait_exponential(multiplier=settings.fetch_backoff_seconds, max=4),
        retry=retry_if_exception_type((httpx.TransportError, _TransientStatus)),
        before_sleep=_log_retry,
        reraise=True,
    )
    try:
        page = retrying(_get_once, active, url)
    except FetchError:
        raise
    except httpx.TimeoutException as exc:
        raise FetchError(ErrorKind.TIMEOUT, "Request timeout - website too slow") from exc
    except httpx.ConnectError as exc:
        raise FetchError(ErrorKind.NETWORK, "Invalid URL or domain not found") from exc
    except _TransientStatus as exc:
        raise FetchError(
            ErrorKind.NETWORK, f"Failed to scrape URL: HTTP {exc.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise FetchError(ErrorKind.NETWORK, f"Failed to scrape URL: {exc}") from exc
    except (httpx.InvalidURL, ValueError) as exc:
        # httpx rejects some URLs while building the request, outside HTTPError.
        raise FetchError(ErrorKind.NETWORK, "Invalid URL or domain not found") from exc
    finally:
        if owns_client:
            active.close()

    logger.info(f"Fetched {url} -> {page.final_url} ({len(page.html)} chars)")
    return page
