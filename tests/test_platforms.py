import pytest

from news_preview.models import Platform
from news_preview.platforms import classify


@pytest.mark.parametrize(
    "url",
    [
        "https://twitter.com/jack/status/20",
        "https://mobile.twitter.com/someone",
        "https://TWITTER.com/Some/Deep/Path?x=1",
        "https://x.com/elonmusk/status/1234567890",
        "https://www.x.com/a",
    ],
)
def test_twitter_urls_classify_as_social_b(url):
    assert classify(url) is Platform.TWITTER


@pytest.mark.parametrize(
    "url",
    [
        "https://www.linkedin.com/posts/jane-doe_activity-123",
        "https://lnkd.in/abc123",
    ],
)
def test_linkedin_urls_classify_as_social_a(url):
    assert classify(url) is Platform.LINKEDIN


@pytest.mark.parametrize(
    "url",
    [
        "https://news.example.com/story",
        "https://www.fox.com/news/article",
        "not a url at all",
        "",
    ],
)
def test_everything_else_is_an_article(url):
    assert classify(url) is Platform.ARTICLE


def test_classify_is_stable_across_calls():
    url = "https://twitter.com/someone/status/1"
    assert classify(url) == classify(url)
