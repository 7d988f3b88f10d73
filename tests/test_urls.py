import pytest

from nuclearpulse.services.urls import canonicalize, is_article_url


def test_canonicalize_strips_tracking_parameters_and_fragment() -> None:
    url = "https://Example.com/news/story?utm_source=rss&id=5&fbclid=abc&mc_cid=1&_ga=2#comments"

    assert canonicalize(url) == "https://example.com/news/story?id=5"


def test_canonicalize_unwraps_google_news_links() -> None:
    url = (
        "https://news.google.com/rss/articles/CBMi?url="
        "https%3A%2F%2Fwww.world-nuclear-news.org%2Farticles%2Fnew-smr%3Futm_source%3Drss"
    )

    assert canonicalize(url) == "https://www.world-nuclear-news.org/articles/new-smr"


def test_canonicalize_unwraps_google_redirects() -> None:
    url = "https://www.google.com/url?q=https://www.ans.org/news/article-1234-reactor-restart/&sa=U"

    assert canonicalize(url) == "https://www.ans.org/news/article-1234-reactor-restart/"


def test_canonicalize_unwraps_redirects_with_untidy_paths() -> None:
    assert canonicalize("https://www.google.com//url?q=https://x.example/a-story") == "https://x.example/a-story"
    assert canonicalize("https://www.google.com/url/amp?q=https://x.example/a-story") == "https://x.example/a-story"


def test_canonicalize_removes_amp_variants() -> None:
    assert canonicalize("https://site.com/news/reactor-restart/amp/") == "https://site.com/news/reactor-restart"
    assert canonicalize("https://site.com/news/reactor-restart?amp=1") == "https://site.com/news/reactor-restart"
    assert canonicalize("https://site.com/news/reactor-restart?amp") == "https://site.com/news/reactor-restart"


def test_canonicalize_collapses_duplicate_slashes() -> None:
    url = "https://www.world-nuclear-news.org//articles//poland-signs-deal"

    assert canonicalize(url) == "https://www.world-nuclear-news.org/articles/poland-signs-deal"


def test_canonicalize_leaves_clean_query_untouched() -> None:
    url = "https://example.com/articles/story?b=2&a=1"

    assert canonicalize(url) == url


def test_canonicalize_handles_empty_and_unparseable_input() -> None:
    assert canonicalize("") == ""
    assert canonicalize("   ") == ""
    assert canonicalize(" http://[::1 ") == "http://[::1"


@pytest.mark.parametrize(
    "url",
    [
        "https://Example.com/news/story?utm_source=rss&id=5#top",
        "https://news.google.com/articles/x?url=https://example.com/a//b/amp?ref=home",
        "https://site.com/news/story/amp/amp/",
        "https://site.com/path?a=b%20c&utm_medium=email",
        "http://[::1",
        "relative/path//here",
        "https://www.google.com//url?q=https://x.example/a-story",
        "https://www.google.com/url/amp?q=https://x.example/a-story",
    ],
)
def test_canonicalize_is_idempotent(url: str) -> None:
    once = canonicalize(url)

    assert canonicalize(once) == once


@pytest.mark.parametrize(
    "url",
    [
        "https://www.world-nuclear-news.org/articles/poland-signs-ap1000-deal",
        "http://example.com/2024/10/05/reactor-restart",
        "https://www.powermag.com/nuclear-fleet-uprates-gain-momentum/",
    ],
)
def test_is_article_url_accepts_article_pages(url: str) -> None:
    assert is_article_url(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/",
        "https://example.com",
        "https://example.com/tag/safety",
        "https://example.com/news/tag/safety",
        "https://example.com/category/policy/",
        "https://example.com/topics/fusion",
        "https://example.com/page/2",
        "https://example.com/news/page/3/",
        "https://example.com/feed/",
        "https://example.com/rss",
        "https://example.com/author/jane-doe/",
        "https://example.com/about",
        "https://example.com/subscribe/",
        "https://example.com/archive/2024",
        "https://example.com/search?q=uranium",
        "https://example.com/news?s=uranium",
        "https://example.com/news?page=3",
        "https://example.com/news/12345",
        "ftp://example.com/articles/story",
        "not a url",
        "",
    ],
)
def test_is_article_url_rejects_index_pages(url: str) -> None:
    assert is_article_url(url) is False
