"""Upstream HTTP client for NewsBreeze."""

import asyncio

import httpx

from .config import HttpConfig
from .logging_config import RequestLogger, create_request_logger

USER_AGENT = "NewsBreeze/1.0 (RSS news to speech proxy)"

# Failures worth a second attempt; HTTP error statuses are never retried
TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class UpstreamClient:
    """Makes single upstream calls with a bounded timeout and one retry."""

    def __init__(
        self,
        config: HttpConfig,
        logger: RequestLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the upstream client.

        Args:
            config: Timeout and retry settings
            logger: Logger of the component making the calls
            transport: Optional httpx transport replacing the network
        """
        self.config = config
        self.logger = logger or create_request_logger("upstream")
        self.transport = transport

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, retrying transient transport failures.

        A fresh client is opened per call. Responses are returned whatever their
        status; callers decide what a failure status means.

        Raises:
            httpx.HTTPError: If the request cannot be completed
        """
        headers = {"User-Agent": USER_AGENT, **kwargs.pop("headers", {})}
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(
                    timeout=self.config.timeout,
                    follow_redirects=True,
                    transport=self.transport,
                ) as client:
                    return await client.request(method, url, headers=headers, **kwargs)
            except TRANSIENT_ERRORS as e:
                if attempt >= self.config.retry_attempts:
                    raise
                self.logger.warning(
                    f"Transient error calling {url}: {e!r}",
                    attempt=attempt + 1,
                    error=str(e),
                )
                await self.handle_backoff(attempt)
                attempt += 1

    async def handle_backoff(self, retry_count: int) -> None:
        """Wait with exponential backoff before the next attempt.

        Args:
            retry_count: Current retry attempt number
        """
        backoff_time = self.config.backoff_seconds * (
            self.config.backoff_factor**retry_count
        )
        self.logger.warning(
            f"Waiting {backoff_time} seconds before retry {retry_count + 1}",
            attempt=retry_count + 1,
        )
        await asyncio.sleep(backoff_time)
