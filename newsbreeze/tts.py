"""Text-to-speech module for NewsBreeze.

Two backends are supported, one active at a time:

* ``local``: a TTS server on the local network that answers with WAV audio.
* ``cloning``: a hosted voice-cloning service that answers with a link to the
  generated audio, or with a job id when the sample is rendered asynchronously.
"""

import json
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlparse

import httpx

from .config import HttpConfig, SpeechConfig
from .errors import (
    ClientInputError,
    ConfigurationError,
    UpstreamServiceError,
    UpstreamShapeError,
    UpstreamTransportError,
)
from .http_client import UpstreamClient
from .logging_config import create_request_logger
from .models import (
    AudioUrl,
    CloningResponse,
    SampleSubmitted,
    SpeechAudio,
    SynthesisResult,
    UnrecognizedPayload,
)

WAV_MEDIA_TYPE = "audio/wav"

SUBMITTED_MESSAGE = (
    "Speech synthesis submitted. The audio is not available yet; "
    "use the returned job data to retrieve it."
)


class SpeechSynthesizer(ABC):
    """Abstract base class for TTS backends."""

    def __init__(
        self,
        config: SpeechConfig,
        http_config: HttpConfig,
        request_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.logger = create_request_logger("speech_synthesizer", request_id)
        self.client = UpstreamClient(http_config, self.logger, transport)

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the short name of this backend (e.g. 'local')."""

    @abstractmethod
    async def synthesize(
        self,
        *,
        text: Any,
        speaker_id: Any = None,
        language: Any = None,
    ) -> SynthesisResult:
        """Synthesize *text*, returning audio or a reference to it."""


class LocalSpeechSynthesizer(SpeechSynthesizer):
    """TTS backend for a local synthesis server returning WAV audio."""

    name = "local"
    UPSTREAM = "local TTS server"

    @property
    def port(self) -> int:
        parsed = urlparse(self.config.local_url)
        if parsed.port is not None:
            return parsed.port
        return 443 if parsed.scheme == "https" else 80

    async def synthesize(
        self,
        *,
        text: Any,
        speaker_id: Any = None,
        language: Any = None,
    ) -> SynthesisResult:
        """Synthesize speech on the local server.

        Voice selection parameters are not supported by this backend and are ignored.
        """
        if not text:
            raise ClientInputError("text is required in the request body.")
        if not isinstance(text, str):
            raise ClientInputError("text must be a string.")

        self.logger.log_upstream_call(self.UPSTREAM, self.config.local_url)
        try:
            response = await self.client.post(self.config.local_url, json={"text": text})
        except httpx.ConnectError as e:
            self.logger.log_upstream_failure(self.UPSTREAM, repr(e), error=str(e))
            raise UpstreamTransportError(
                "Failed to connect to local TTS server. "
                f"Is it running on port {self.port}?"
            ) from e
        except httpx.HTTPError as e:
            self.logger.log_upstream_failure(self.UPSTREAM, repr(e), error=str(e))
            raise UpstreamTransportError(
                "Failed to generate speech. The local TTS server did not answer."
            ) from e

        content_type = response.headers.get("content-type", "")
        if response.is_error or content_type.startswith("application/json"):
            raise UpstreamServiceError(self.describe_failure(response))

        self.logger.info(
            "Speech generated",
            upstream=self.UPSTREAM,
            status_code=response.status_code,
        )
        return SpeechAudio(content=response.content, media_type=WAV_MEDIA_TYPE)

    def describe_failure(self, response: httpx.Response) -> str:
        """Build the caller message for a failed local synthesis.

        Never raises: a body that cannot be parsed yields a message citing the
        upstream status.
        """
        self.logger.log_upstream_failure(
            self.UPSTREAM,
            response.text[:500],
            status_code=response.status_code,
        )
        if not response.content:
            return "Failed to generate speech."
        try:
            data = json.loads(response.content)
        except (ValueError, UnicodeDecodeError):
            return (
                "Failed to generate speech. Local TTS server responded with "
                f"status {response.status_code}."
            )
        if isinstance(data, dict) and data.get("error"):
            return f"TTS Error: {data['error']}"
        return "Failed to generate speech."


class CloningSpeechSynthesizer(SpeechSynthesizer):
    """TTS backend for a hosted voice-cloning service."""

    name = "cloning"
    UPSTREAM = "TTS service"
    REQUIRED_FIELDS = ("text", "speaker_id", "language")

    @property
    def endpoint(self) -> str:
        base = (self.config.base_url or "").rstrip("/")
        path = self.config.synthesis_path or ""
        if path and not path.startswith("/"):
            path = "/" + path
        return base + path

    @property
    def is_sample_endpoint(self) -> bool:
        segments = urlparse(self.endpoint).path.split("/")
        return "samples" in segments

    def check_configuration(self) -> None:
        if not self.config.api_token:
            self.logger.error("TTS API token is not configured.")
            raise ConfigurationError("TTS service is not configured. Missing API token.")
        if not self.config.base_url:
            self.logger.error("TTS base URL is not configured.")
            raise ConfigurationError("TTS service is not configured. Missing base URL.")

    async def synthesize(
        self,
        *,
        text: Any,
        speaker_id: Any = None,
        language: Any = None,
    ) -> SynthesisResult:
        """Synthesize speech with a cloned voice."""
        self.check_configuration()

        fields = {"text": text, "speaker_id": speaker_id, "language": language}
        missing = [name for name in self.REQUIRED_FIELDS if not fields[name]]
        if missing:
            verb = "is" if len(missing) == 1 else "are"
            raise ClientInputError(
                f"{', '.join(missing)} {verb} required in the request body."
            )
        for name in self.REQUIRED_FIELDS:
            if not isinstance(fields[name], str):
                raise ClientInputError(f"{name} must be a string.")

        self.logger.log_upstream_call(self.UPSTREAM, self.endpoint)
        try:
            response = await self.client.post(
                self.endpoint,
                json=fields,
                headers={
                    "Authorization": f"Bearer {self.config.api_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            self.logger.log_upstream_failure(self.UPSTREAM, repr(e), error=str(e))
            host = urlparse(self.endpoint).netloc or self.endpoint
            raise UpstreamTransportError(
                f"Failed to connect to TTS service at {host}. Is it reachable?"
            ) from e

        data = _json_or_text(response)

        if response.is_error:
            self.logger.log_upstream_failure(
                self.UPSTREAM, str(data), status_code=response.status_code
            )
            raise UpstreamServiceError(
                _failure_message(data), status_code=response.status_code
            )

        shape = interpret_cloning_payload(data, self.is_sample_endpoint)
        if isinstance(shape, UnrecognizedPayload):
            self.logger.error(
                f"Unexpected response structure from TTS service: {shape.payload!r}",
                upstream=self.UPSTREAM,
            )
            raise UpstreamShapeError(
                "Unexpected response from TTS service.", details=shape.payload
            )
        if isinstance(shape, SampleSubmitted):
            self.logger.info(
                f"Sample submitted as job {shape.job_id}", upstream=self.UPSTREAM
            )
        return shape


def interpret_cloning_payload(payload: Any, sample_endpoint: bool) -> CloningResponse:
    """Classify a hosted TTS answer.

    Shapes are tried in priority order: a ``url`` field, an ``audio_url`` field,
    then (for sample-creation endpoints only) a bare job ``id``. Anything else
    is unrecognized.
    """
    if isinstance(payload, dict):
        if isinstance(payload.get("url"), str) and payload["url"]:
            return AudioUrl(url=payload["url"])
        if isinstance(payload.get("audio_url"), str) and payload["audio_url"]:
            return AudioUrl(url=payload["audio_url"])
        if sample_endpoint and payload.get("id"):
            return SampleSubmitted(job_id=str(payload["id"]), payload=payload)
    return UnrecognizedPayload(payload=payload)


def build_synthesizer(
    config: SpeechConfig,
    http_config: HttpConfig,
    request_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SpeechSynthesizer:
    """Create the synthesizer for the configured backend."""
    synthesizers = {
        LocalSpeechSynthesizer.name: LocalSpeechSynthesizer,
        CloningSpeechSynthesizer.name: CloningSpeechSynthesizer,
    }
    if config.backend not in synthesizers:
        raise ValueError(f"Unsupported TTS backend: {config.backend}")
    return synthesizers[config.backend](config, http_config, request_id, transport)


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _failure_message(data: Any) -> str:
    """Prefer the upstream's structured detail/error over a generic message."""
    if isinstance(data, dict):
        for key in ("detail", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return f"TTS Error: {value}"
            if value:
                return f"TTS Error: {json.dumps(value)}"
    return "Failed to generate speech."
