import json
from types import SimpleNamespace

import httpx
import pytest

from news_preview.config import Settings
from news_preview.errors import ErrorKind, FetchError, PipelineError
from news_preview.fetcher import build_http_client
from news_preview.models import Platform, RawPage
from news_preview.pipeline import produce_preview, validate_url

PARAGRAPH = (
    "The regional transit authority approved a two million dollar expansion on Tuesday, "
    "adding three bus lines and extending weekend service hours across the city."
)

ARTICLE_HTML = f"""
<html><head>
  <meta property="og:title" content="Transit expansion approved">
  <meta property="og:site_name" content="Example News">
  <meta property="og:image" content="https://cdn.example.com/media/bus-1200x630.jpg">
  <meta name="author" content="Jane Reporter">
  <meta property="article:published_time" content="2024-03-05T08:30:00Z">
</head><body>
  <nav><p>Home and navigation links that should never appear</p></nav>
  <article>{''.join(f'<p>{PARAGRAPH}</p>' for _ in range(4))}</article>
</body></html>
"""


class FakeLLM:
    def __init__(self, *outputs):
        self.calls = []
        self._outputs = list(outputs)
        self.responses = self

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(output_text=self._outputs.pop(0))


def _settings() -> Settings:
    return Settings(openai_api_key="sk-test", fetch_backoff_seconds=0)


def test_forbidden_fetch_stops_pipeline_before_extraction():
    called = []

    def fake_fetch(url):
        raise FetchError(ErrorKind.FORBIDDEN, "Access forbidden - website blocking scraping")

    def fake_extract(page, platform):
        called.append("extract")

    def fake_summarize(content):
        called.append("summarize")

    with pytest.raises(PipelineError) as excinfo:
        produce_preview(
            "https://blocked.example.com/story",
            settings=_settings(),
            fetch_fn=fake_fetch,
            extract_fn=fake_extract,
            summarize_fn=fake_summarize,
        )

    err = excinfo.value
    assert err.stage == "fetch"
    assert err.kind is ErrorKind.FORBIDDEN
    assert err.to_dict() == {
        "error": "Forbidden",
        "message": "Access forbidden - website blocking scraping",
    }
    assert called == []


def test_forbidden_status_over_http_maps_to_forbidden():
    client = build_http_client(
        _settings(), transport=httpx.MockTransport(lambda request: httpx.Response(403))
    )
    with pytest.raises(PipelineError) as excinfo:
        produce_preview("https://blocked.example.com/", settings=_settings(), http_client=client)
    assert excinfo.value.kind is ErrorKind.FORBIDDEN


@pytest.mark.parametrize(
    "url",
    [
        "",
        "not a url",
        "ftp://example.com/file",
        "https://",
        "https://exa mple.com/x",
        "https://:80/story",
        "http://exa\x7fmple.com/",
    ],
)
def test_invalid_urls_never_reach_the_fetcher(url):
    def fake_fetch(target):
        raise AssertionError("fetch should not run")

    with pytest.raises(PipelineError) as excinfo:
        produce_preview(url, settings=_settings(), fetch_fn=fake_fetch)
    assert excinfo.value.kind is ErrorKind.INVALID_URL
    assert excinfo.value.stage == "validate"


def test_validate_url_trims_whitespace():
    assert validate_url("  https://news.example.com/a ") == "https://news.example.com/a"


def test_classifier_sees_the_submitted_url():
    seen = {}

    def fake_classify(url):
        seen["url"] = url
        return Platform.ARTICLE

    produce_preview(
        "https://lnkd.in/abc",
        settings=Settings(openai_api_key=None),
        fetch_fn=lambda url: RawPage(html="<p>hi</p>", final_url="https://www.example.com/landing"),
        classify_fn=fake_classify,
    )
    assert seen["url"] == "https://lnkd.in/abc"


def test_end_to_end_preview_with_mocked_network_and_model():
    settings = _settings()
    http = build_http_client(
        settings,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text=ARTICLE_HTML)),
    )
    llm = FakeLLM(
        json.dumps({"quickSummary": "The transit authority approved an expansion."}),
        json.dumps(
            {
                "overview": "An expansion was approved.",
                "statistics": [{"label": "Funding", "value": "$2M", "context": "expansion"}],
                "detailedAnalysis": "Three bus lines are added and weekend hours grow.",
                "keyTakeaways": ["Expansion approved", "Three new lines"],
                "condensedContent": "The authority approved a two million dollar expansion.",
            }
        ),
    )

    preview = produce_preview(
        "https://news.example.com/transit", settings=settings, http_client=http, llm_client=llm
    )

    assert preview.title == "Transit expansion approved"
    assert preview.author == "Jane Reporter"
    assert preview.publisher == "Example News"
    assert preview.image_url == "https://cdn.example.com/media/bus-1200x630.jpg"
    assert preview.summary == "The transit authority approved an expansion."
    assert preview.key_points == ["Expansion approved", "Three new lines"]
    assert len(llm.calls) == 2
    assert "navigation links" not in llm.calls[0]["input"][1]["content"]

    payload = preview.to_payload()
    assert set(payload) >= {
        "title", "summary", "detailedSummary", "condensedContent", "keyPoints",
        "statistics", "imageUrl", "articleUrl", "cardJson", "author", "publisher", "date",
    }
    card = json.loads(payload["cardJson"])
    assert card["headline"] == "Transit expansion approved"
    assert card["articleUrl"] == "https://news.example.com/transit"
