"""Unit tests for the RSS feed fetcher."""

import feedparser
import pytest

from newsbreeze.config import FeedConfig, HttpConfig
from newsbreeze.errors import UpstreamServiceError
from newsbreeze.models import FeedItem
from newsbreeze.rss import FeedFetcher
from upstream_fakes import (
    ATOM_FEED,
    EMPTY_RSS_FEED,
    HTML_PAGE,
    LONG_DESCRIPTION,
    RSS_FEED,
    TRUNCATED_CHANNEL_FEED,
    TRUNCATED_RSS_FEED,
    feed_transport,
    refusing_transport,
)

HTTP_CONFIG = HttpConfig(timeout=5.0, retry_attempts=1, backoff_seconds=0)


def make_fetcher(transport) -> FeedFetcher:
    return FeedFetcher(FeedConfig(), HTTP_CONFIG, "test-request", transport)


class TestFeedFetcherUnit:
    """Unit tests for FeedFetcher with specific feed formats."""

    @pytest.mark.asyncio
    async def test_rss_2_0_items_are_projected_in_order(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        items = await fetcher.fetch("https://news.example.com/rss.xml")

        assert [item.title for item in items] == [
            "First headline",
            "Second headline",
            "Third headline",
        ]
        first = items[0]
        assert isinstance(first, FeedItem)
        assert first.link == "https://news.example.com/first"
        assert first.pubDate == "Mon, 01 Jan 2024 10:00:00 GMT"
        assert first.contentSnippet == "Short story text."
        assert "<b>story</b>" in first.content

    @pytest.mark.asyncio
    async def test_long_snippet_is_truncated_with_marker(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        items = await fetcher.fetch("https://news.example.com/rss.xml")

        second = items[1]
        expected_text = " ".join(LONG_DESCRIPTION.split())
        assert second.contentSnippet == expected_text[:200] + "..."
        assert len(second.contentSnippet) == 203
        assert second.content.strip() == LONG_DESCRIPTION.strip()

    @pytest.mark.asyncio
    async def test_missing_content_leaves_fields_undefined(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        items = await fetcher.fetch("https://news.example.com/rss.xml")

        third = items[2]
        assert third.content is None
        assert third.contentSnippet is None
        assert third.pubDate is None
        assert third.to_dict() == {
            "title": "Third headline",
            "link": "https://news.example.com/third",
        }

    @pytest.mark.asyncio
    async def test_upstream_fields_outside_the_shape_are_dropped(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        items = await fetcher.fetch("https://news.example.com/rss.xml")

        assert set(items[0].to_dict()) == {
            "title",
            "link",
            "pubDate",
            "contentSnippet",
            "content",
        }

    @pytest.mark.asyncio
    async def test_atom_content_is_used(self):
        fetcher = make_fetcher(feed_transport(ATOM_FEED))

        items = await fetcher.fetch("https://atom.example.com/feed")

        assert len(items) == 1
        assert items[0].title == "Atom entry"
        assert items[0].link == "https://atom.example.com/entry"
        assert items[0].contentSnippet == "Update Full body."
        assert "<h2>" in items[0].content

    @pytest.mark.asyncio
    async def test_default_feed_is_used_without_url(self):
        seen = []
        fetcher = make_fetcher(feed_transport(RSS_FEED, seen=seen))

        await fetcher.fetch()

        assert seen == ["http://feeds.bbci.co.uk/news/rss.xml"]

    @pytest.mark.asyncio
    async def test_feed_without_items_is_empty(self):
        fetcher = make_fetcher(feed_transport(EMPTY_RSS_FEED))

        assert await fetcher.fetch("https://q.example.com/rss") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, status_code",
        [
            (HTML_PAGE, 200),
            ("this is not xml at all", 200),
            (TRUNCATED_RSS_FEED, 200),
            (TRUNCATED_CHANNEL_FEED, 200),
            (RSS_FEED, 404),
            (RSS_FEED, 503),
        ],
    )
    async def test_failures_collapse_to_generic_error(self, body, status_code):
        fetcher = make_fetcher(feed_transport(body, status_code=status_code))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await fetcher.fetch("https://news.example.com/rss.xml")

        assert exc_info.value.status_code == 500
        assert exc_info.value.to_dict() == {"error": "Failed to fetch news feed."}

    @pytest.mark.asyncio
    async def test_network_failure_collapses_to_generic_error(self):
        calls = []
        fetcher = make_fetcher(refusing_transport(calls))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await fetcher.fetch("https://news.example.com/rss.xml")

        assert exc_info.value.message == "Failed to fetch news feed."
        assert "refused" not in exc_info.value.message
        assert len(calls) == 2  # first attempt plus one retry

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "ftp://news.example.com/rss.xml",
            "file:///etc/passwd",
            "not a url",
            "http://[::1",
        ],
    )
    async def test_non_http_urls_are_rejected(self, url):
        calls = []
        fetcher = make_fetcher(refusing_transport(calls))

        with pytest.raises(UpstreamServiceError):
            await fetcher.fetch(url)

        assert calls == []

    def test_normalize_item_from_parsed_entry(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))
        entry = feedparser.FeedParserDict(
            title="Entry",
            link="https://example.com/entry",
            published="Wed, 03 Jan 2024 08:00:00 GMT",
            summary="<p>Plain summary</p>",
        )

        item = fetcher.normalize_item(entry)

        assert item == FeedItem(
            title="Entry",
            link="https://example.com/entry",
            pubDate="Wed, 03 Jan 2024 08:00:00 GMT",
            contentSnippet="Plain summary",
            content="<p>Plain summary</p>",
        )

    def test_html_cleaning_specific_cases(self):
        """Test HTML cleaning with specific problematic cases."""
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        test_cases = [
            ("<p>Simple paragraph</p>", "Simple paragraph"),
            ("<div><h1>Title</h1><p>Content</p></div>", "Title Content"),
            ("<script>alert('xss')</script><p>Safe content</p>", "Safe content"),
            ("<style>body{color:red}</style><p>Styled content</p>", "Styled content"),
            ("Plain text without HTML", "Plain text without HTML"),
            ("<p>Multiple  \n\n  spaces   and\tlines</p>", "Multiple spaces and lines"),
        ]

        for html_input, expected_output in test_cases:
            result = fetcher.clean_html_content(html_input)
            assert result == expected_output, f"Failed for input: {html_input}"

    def test_empty_and_none_content_handling(self):
        fetcher = make_fetcher(feed_transport(RSS_FEED))

        assert fetcher.clean_html_content("") == ""
        assert fetcher.clean_html_content(None) == ""
        assert fetcher.clean_html_content("   ") == ""
        assert fetcher.clean_html_content("<div></div>") == ""
