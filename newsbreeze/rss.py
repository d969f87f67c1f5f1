"""RSS Feed retrieval module for NewsBreeze."""

from urllib.parse import urlparse
from xml.sax import SAXParseException

import feedparser
import httpx
from bs4 import BeautifulSoup

from .config import FeedConfig, HttpConfig
from .errors import UpstreamServiceError
from .http_client import UpstreamClient
from .logging_config import create_request_logger
from .models import FeedItem

SNIPPET_LIMIT = 200
TRUNCATION_MARKER = "..."


class FeedParseError(ValueError):
    """Raised when a downloaded document is not a usable RSS/Atom feed."""


def truncate_snippet(snippet: str | None) -> str | None:
    """Clip a snippet to SNIPPET_LIMIT characters, marking clipped text.

    An absent snippet stays absent.
    """
    if snippet is None:
        return None
    if len(snippet) > SNIPPET_LIMIT:
        return snippet[:SNIPPET_LIMIT] + TRUNCATION_MARKER
    return snippet


class FeedFetcher:
    """Retrieves an RSS/Atom feed and projects it to lean FeedItems."""

    def __init__(
        self,
        config: FeedConfig,
        http_config: HttpConfig,
        request_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize FeedFetcher with configuration.

        Args:
            config: Feed configuration (default feed URL)
            http_config: Upstream timeout and retry settings
            request_id: Request ID for logging context
            transport: Optional httpx transport replacing the network
        """
        self.config = config
        self.logger = create_request_logger("feed_fetcher", request_id)
        self.client = UpstreamClient(http_config, self.logger, transport)

    async def fetch(self, feed_url: str | None = None) -> list[FeedItem]:
        """Fetch a feed and return its items in upstream order.

        Args:
            feed_url: URL of the feed, the configured default when empty

        Raises:
            UpstreamServiceError: If the feed cannot be retrieved or parsed
        """
        feed_url = feed_url or self.config.default_feed_url
        try:
            items = await self.parse_feed(feed_url)
        except (httpx.HTTPError, httpx.InvalidURL, FeedParseError) as e:
            self.logger.error(
                f"Failed to fetch or parse RSS feed {feed_url}: {e!r}",
                feed_url=feed_url,
                error=str(e),
            )
            raise UpstreamServiceError("Failed to fetch news feed.") from e

        self.logger.info(
            f"Processed feed: {len(items)} items found",
            feed_url=feed_url,
        )
        return items

    async def parse_feed(self, feed_url: str) -> list[FeedItem]:
        """Download and parse a single RSS/Atom feed.

        Raises:
            FeedParseError: If the URL is unusable or the body is not a feed
            httpx.HTTPError: If the feed download fails
        """
        try:
            parsed_url = urlparse(feed_url)
        except ValueError as e:
            raise FeedParseError(f"Feed URL is malformed: {feed_url}") from e
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            raise FeedParseError(f"Feed URL must be an http(s) URL: {feed_url}")

        self.logger.log_upstream_call("feed source", feed_url)
        response = await self.client.get(feed_url)
        response.raise_for_status()
        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
        )

        feed = feedparser.parse(response.content)

        if not feed.get("version") and not feed.entries:
            raise FeedParseError(
                f"Not a recognizable RSS/Atom feed: {feed.get('bozo_exception', 'no entries')}"
            )

        # Encoding notices are served, broken XML is not
        if feed.bozo and isinstance(feed.get("bozo_exception"), SAXParseException):
            raise FeedParseError(f"Feed is not well-formed XML: {feed.bozo_exception}")

        if feed.bozo and hasattr(feed, "bozo_exception"):
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {feed.bozo_exception}",
                feed_url=feed_url,
            )

        return [self.normalize_item(entry) for entry in feed.entries]

    def normalize_item(self, raw_item) -> FeedItem:
        """Project a raw feed entry onto the FeedItem shape.

        Args:
            raw_item: Raw feed entry from feedparser

        Returns:
            FeedItem holding only the fields clients receive
        """
        content = self.extract_content(raw_item)
        snippet = None
        if content is not None:
            snippet = truncate_snippet(self.clean_html_content(content))

        return FeedItem(
            title=getattr(raw_item, "title", None),
            link=getattr(raw_item, "link", None),
            pubDate=getattr(raw_item, "published", None),
            contentSnippet=snippet,
            content=content,
        )

    def extract_content(self, raw_item) -> str | None:
        """Return the fullest content an entry carries, HTML included."""
        # content:encoded (RSS) and <content> (Atom) arrive as a list
        entry_content = getattr(raw_item, "content", None)
        if isinstance(entry_content, list) and entry_content:
            value = entry_content[0].get("value")
            if value is not None:
                return value

        summary = getattr(raw_item, "summary", None)
        if summary is not None:
            return summary

        return getattr(raw_item, "description", None)

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" not in content and ">" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")
        return " ".join(text.split())
