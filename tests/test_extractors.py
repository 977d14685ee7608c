from news_preview import extractors
from news_preview.config import Settings
from news_preview.extractors import (
    ArticleExtractor,
    LinkedInExtractor,
    TwitterExtractor,
    extract,
)
from news_preview.images import is_profile_image
from news_preview.models import Platform, RawPage
from news_preview.platforms import classify

P1 = "The city council approved the new transit budget after a lengthy debate on Tuesday."
P2 = "Officials said the plan adds three bus lines and extends service hours on weekends."
P3 = "Critics argued the funding relies on optimistic projections for fare revenue growth."
CAPTION = "Photo: AP."


def _settings() -> Settings:
    return Settings(openai_api_key=None)


def test_article_keeps_long_paragraphs_and_drops_short_caption():
    html = f"""
    <html><head><title>Transit budget</title></head>
    <body>
      <nav><p>Home / News / Local / Transit and infrastructure coverage</p></nav>
      <article>
        <p>{P1}</p>
        <p>{P2}</p>
        <p>{CAPTION}</p>
        <p>{P3}</p>
      </article>
    </body></html>
    """
    page = RawPage(html=html, final_url="https://news.example.com/story")
    content = extract(page, classify(page.final_url), _settings())

    assert content.platform is Platform.ARTICLE
    assert content.full_content == f"{P1}\n\n{P2}\n\n{P3}"
    assert CAPTION not in content.full_content
    assert content.title == "Transit budget"


def test_article_never_includes_boilerplate_text():
    html = f"""
    <html><head><style>.x {{ color: red }} /* style text that is long enough */</style></head>
    <body>
      <header><p>Header promo text that is definitely long enough to keep</p></header>
      <article>
        <p>{P1}</p>
        <script>var trackingCode = "script text that is long enough";</script>
        <aside><p>Aside related-links text that is long enough to keep</p></aside>
        <div class="ad"><p>Advertisement copy that is long enough to keep</p></div>
        <iframe>Iframe fallback text that is long enough to keep</iframe>
        <ul><li>{P2}</li></ul>
      </article>
      <footer><p>Footer copyright text that is long enough to keep</p></footer>
    </body></html>
    """
    content = ArticleExtractor(_settings()).extract(
        RawPage(html=html, final_url="https://news.example.com/a")
    )

    assert content.full_content == f"{P1}\n\n{P2}"
    for fragment in ("Header promo", "script text", "Aside related", "Advertisement", "Iframe", "Footer", "style text"):
        assert fragment not in content.full_content


def test_article_falls_back_to_body_and_applies_defaults():
    html = f"<html><body><div><p>{P1}</p><p>short</p></div></body></html>"
    content = ArticleExtractor(_settings()).extract(
        RawPage(html=html, final_url="https://blog.example.org/post/1")
    )

    assert content.full_content == P1
    assert content.title == "Untitled"
    assert content.author == "Unknown"
    assert content.publisher == "blog.example.org"
    assert content.url == "https://blog.example.org/post/1"
    assert content.date


def test_article_uses_description_when_no_body_text():
    html = '<html><head><meta name="description" content="Only a description here."></head><body></body></html>'
    content = ArticleExtractor(_settings()).extract(
        RawPage(html=html, final_url="https://news.example.com/empty")
    )
    assert content.full_content == "Only a description here."
    assert content.description == "Only a description here."


def test_article_images_exclude_avatars_and_primary_image_is_checked():
    html = f"""
    <html><head>
      <meta property="og:image" content="https://cdn.example.com/authors/headshot-jane.jpg">
    </head><body><article>
      <img src="https://cdn.example.com/avatar/jane.jpg">
      <img src="https://cdn.example.com/media/chart-1200x600.png">
      <p>{P1}</p>
    </article></body></html>
    """
    content = ArticleExtractor(_settings()).extract(
        RawPage(html=html, final_url="https://news.example.com/s")
    )

    assert content.images == ["https://cdn.example.com/media/chart-1200x600.png"]
    assert content.image == "https://cdn.example.com/media/chart-1200x600.png"
    assert all(not is_profile_image(url) for url in content.images)


TWEET_HTML = """
<html><head>
  <meta property="og:image" content="https://pbs.twimg.com/media/OG.jpg">
</head><body>
<article data-testid="tweet">
  <div data-testid="User-Name">
    <a href="/jane"><span>Jane Doe</span></a>
    <a href="/jane"><span>@janedoe</span></a>
  </div>
  <img src="https://pbs.twimg.com/profile_images/1/jane_normal.jpg">
  <div data-testid="tweetText"><span>Shipping the new release today.</span> <span>Huge thanks to the team!</span></div>
  <div data-testid="tweetPhoto">
    <img src="https://pbs.twimg.com/media/Fabc.jpg?format=jpg&amp;name=large">
    <img src="https://pbs.twimg.com/media/Fabc.jpg?format=jpg&amp;name=large">
    <img class="r-emoji" src="https://abs-0.twimg.com/emoji/v2/svg/1f389.svg">
  </div>
  <time datetime="2024-05-01T10:00:00.000Z">May 1</time>
</article>
</body></html>
"""


def test_twitter_post_uses_placeholder_image_even_with_media():
    url = "https://twitter.com/janedoe/status/1785"
    settings = _settings()
    page = RawPage(html=TWEET_HTML, final_url=url)
    platform = classify(url)
    content = extract(page, platform, settings)

    assert platform is Platform.TWITTER
    assert content.image == settings.twitter_placeholder_image
    assert content.images == ["https://pbs.twimg.com/media/Fabc.jpg?format=jpg&name=large"]
    assert content.full_content == "Shipping the new release today. Huge thanks to the team!"
    assert content.author == "Jane Doe"
    assert content.author_subtitle == "@janedoe"
    assert content.date == "2024-05-01T10:00:00+00:00"
    assert content.publisher == "X (Twitter)"


def test_twitter_text_falls_back_to_og_description():
    html = '<html><head><meta property="og:description" content="Tweet text from card"></head></html>'
    content = TwitterExtractor(_settings()).extract(
        RawPage(html=html, final_url="https://x.com/a/status/1")
    )
    assert content.full_content == "Tweet text from card"
    assert content.images == []


LINKEDIN_HTML = """
<html><body>
<div class="feed-shared-update-v2">
  <div class="update-components-actor">
    <img class="update-components-actor__avatar-image" src="https://media.licdn.com/dms/image/C4D03AQ/photo-shrink_100_100/0/1">
    <span class="update-components-actor__name"><span aria-hidden="true">Sam Rivera</span></span>
    <span class="update-components-actor__description"><span aria-hidden="true">Head of Data at Example Corp</span></span>
    <span class="update-components-actor__sub-description">3d <time datetime="2024-06-01T09:00:00Z">3d</time></span>
  </div>
  <div class="update-components-text"><span>Short</span></div>
  <div class="update-components-text"><span>We just published our annual report.</span> <span>Three findings stood out.</span></div>
  <div class="update-components-image">
    <img src="https://media.licdn.com/dms/image/D4E22AQ/feedshare-shrink_800/0/abc">
    <img src="https://media.licdn.com/dms/image/C4D03AQ/profile-displayphoto-shrink_100_100/0/x">
  </div>
</div>
<img src="https://media.licdn.com/dms/image/D4E22AQ/outside-post.jpg">
</body></html>
"""


def test_linkedin_picks_longest_text_and_only_post_media():
    settings = _settings()
    url = "https://www.linkedin.com/posts/sam-rivera_activity-1"
    content = extract(RawPage(html=LINKEDIN_HTML, final_url=url), classify(url), settings)

    assert content.platform is Platform.LINKEDIN
    assert content.full_content == "We just published our annual report. Three findings stood out."
    assert content.author == "Sam Rivera"
    assert content.author_subtitle == "Head of Data at Example Corp"
    assert content.images == ["https://media.licdn.com/dms/image/D4E22AQ/feedshare-shrink_800/0/abc"]
    assert content.image == settings.linkedin_placeholder_image
    assert content.date.startswith("2024-06-01T09:00:00")


def test_extractor_failure_degrades_to_minimal_record(monkeypatch):
    def boom(*_args, **_kwargs):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(extractors, "extract_metadata", boom)
    settings = _settings()

    article = extract(RawPage(html="<p>x</p>", final_url="https://news.example.com/z"), Platform.ARTICLE, settings)
    post = LinkedInExtractor(settings).extract(
        RawPage(html="<p>x</p>", final_url="https://www.linkedin.com/posts/x")
    )

    assert article.full_content == ""
    assert article.images == []
    assert article.title == "Untitled"
    assert article.publisher == "news.example.com"
    assert post.image == settings.linkedin_placeholder_image
