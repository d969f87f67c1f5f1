"""Summarization module using the Hugging Face Inference API."""

from typing import Any

import httpx

from .config import HttpConfig, SummarizationConfig
from .errors import (
    ClientInputError,
    ConfigurationError,
    UpstreamServiceError,
    UpstreamShapeError,
    UpstreamTransportError,
)
from .http_client import UpstreamClient
from .logging_config import create_request_logger
from .models import SummarizationResult

# Substring the provider uses while a cold model is being loaded
MODEL_LOADING_SIGNAL = "currently loading"


class Summarizer:
    """Forwards text to a summarization model and normalizes its answer."""

    UPSTREAM = "summarization service"

    def __init__(
        self,
        config: SummarizationConfig,
        http_config: HttpConfig,
        request_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the summarizer with provider configuration."""
        self.config = config
        self.logger = create_request_logger("summarizer", request_id)
        self.client = UpstreamClient(http_config, self.logger, transport)

    @property
    def model_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model_id}"

    def build_payload(self, text: str) -> dict[str, Any]:
        """Build the provider request; the length bounds are fixed policy."""
        return {
            "inputs": text,
            "parameters": {
                "min_length": self.config.min_length,
                "max_length": self.config.max_length,
                "do_sample": False,
            },
        }

    async def summarize(self, text: Any) -> SummarizationResult:
        """Summarize raw text.

        Args:
            text: Text to summarize, as received from the caller

        Returns:
            SummarizationResult with a non-empty summary

        Raises:
            ConfigurationError: If no API token is configured
            ClientInputError: If the text is empty or missing
            UpstreamTransportError: If the provider cannot be reached
            UpstreamServiceError: If the provider reports a failure
            UpstreamShapeError: If the provider answers with an unknown shape
        """
        if not self.config.api_token:
            self.logger.error("Hugging Face API token is not configured.")
            raise ConfigurationError(
                "Summarization service is not configured. Missing API token."
            )

        if not text:
            raise ClientInputError("textToSummarize is required in the request body.")
        if not isinstance(text, str):
            raise ClientInputError("textToSummarize must be a string.")

        self.logger.log_upstream_call(self.UPSTREAM, self.model_url)
        try:
            response = await self.client.post(
                self.model_url,
                json=self.build_payload(text),
                headers={"Authorization": f"Bearer {self.config.api_token}"},
            )
        except httpx.HTTPError as e:
            self.logger.log_upstream_failure(self.UPSTREAM, repr(e), error=str(e))
            raise UpstreamTransportError(
                "Failed to summarize text. Could not reach the summarization "
                "service, check network connectivity."
            ) from e

        data = self._json_or_none(response)

        if response.is_error:
            self.logger.log_upstream_failure(
                self.UPSTREAM,
                str(data if data is not None else response.text),
                status_code=response.status_code,
            )
            provider_error = _error_field(data)
            message = "Failed to summarize text."
            if provider_error is not None:
                message = self.describe_provider_error(provider_error)
            raise UpstreamServiceError(message, status_code=response.status_code)

        return self.interpret_response(data)

    def interpret_response(self, data: Any) -> SummarizationResult:
        """Map a successful provider answer onto a result or a failure.

        Exactly one branch applies: a list whose first element carries the
        summary, an explicit error field, or anything else.
        """
        if isinstance(data, list) and data:
            first = data[0]
            summary = first.get("summary_text") if isinstance(first, dict) else None
            if isinstance(summary, str) and summary:
                return SummarizationResult(summary=summary)

        provider_error = _error_field(data)
        if provider_error is not None:
            self.logger.log_upstream_failure(self.UPSTREAM, provider_error)
            raise UpstreamServiceError(self.describe_provider_error(provider_error))

        self.logger.error(
            f"Unexpected response structure from Hugging Face API: {data!r}",
            upstream=self.UPSTREAM,
        )
        raise UpstreamShapeError(
            "Summarization failed due to an unexpected API response."
        )

    def describe_provider_error(self, provider_error: str) -> str:
        """Turn a provider error into a caller-facing message."""
        message = f"Summarization failed: {provider_error}"
        if MODEL_LOADING_SIGNAL in provider_error:
            message += (
                f" The model {self.config.model_id} might be loading, "
                "please try again in a moment."
            )
        return message

    def _json_or_none(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None


def _error_field(data: Any) -> str | None:
    """Return the provider's error text, if the body carries one."""
    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        return error if isinstance(error, str) else str(error)
    return None
