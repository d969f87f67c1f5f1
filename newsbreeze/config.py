"""Configuration management for NewsBreeze."""

import os
from dataclasses import dataclass

SPEECH_BACKENDS = ("local", "cloning")


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3000
    static_dir: str = "public"
    log_level: str = "INFO"


@dataclass(frozen=True)
class FeedConfig:
    """Configuration for RSS feed retrieval."""

    default_feed_url: str = "http://feeds.bbci.co.uk/news/rss.xml"


@dataclass(frozen=True)
class SummarizationConfig:
    """Configuration for the Hugging Face summarization provider."""

    api_token: str | None = None
    model_id: str = "Falconsai/text_summarization"
    base_url: str = "https://api-inference.huggingface.co"
    min_length: int = 20
    max_length: int = 150


@dataclass(frozen=True)
class SpeechConfig:
    """Configuration for the text-to-speech backend."""

    backend: str = "local"
    local_url: str = "http://localhost:5002/tts"
    api_token: str | None = None
    base_url: str | None = None
    synthesis_path: str = "/samples"


@dataclass(frozen=True)
class HttpConfig:
    """Configuration for upstream HTTP calls."""

    timeout: float = 30.0
    retry_attempts: int = 1
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0


class Config:
    """Main configuration manager.

    The environment is read once, in ``__init__``. Credentials that are not set
    stay ``None``; handlers check for them on every request.
    """

    def __init__(self, environ: dict[str, str] | None = None):
        """Initialize configuration from environment variables."""
        env = os.environ if environ is None else environ

        self.host = env.get("HOST", "0.0.0.0")
        self.port = _parse_int(env, "PORT", 3000)
        self.static_dir = env.get("STATIC_DIR", "public")
        self.log_level = env.get("LOG_LEVEL", "INFO")

        self.default_feed_url = env.get(
            "DEFAULT_FEED_URL", "http://feeds.bbci.co.uk/news/rss.xml"
        )

        self.huggingface_api_token = _optional(env, "HUGGINGFACE_API_TOKEN")
        self.summarization_model = (
            _optional(env, "HF_SUMMARIZATION_MODEL") or "Falconsai/text_summarization"
        )
        self.huggingface_base_url = env.get(
            "HF_INFERENCE_BASE_URL", "https://api-inference.huggingface.co"
        )

        self.tts_backend = env.get("TTS_BACKEND", "local").strip().lower()
        if self.tts_backend not in SPEECH_BACKENDS:
            raise ValueError(
                f"Invalid TTS_BACKEND {self.tts_backend!r}, expected one of: "
                + ", ".join(SPEECH_BACKENDS)
            )
        self.local_tts_url = env.get("LOCAL_TTS_URL", "http://localhost:5002/tts")
        self.tts_api_token = _optional(env, "TTS_API_TOKEN")
        self.tts_base_url = _optional(env, "TTS_BASE_URL")
        self.tts_synthesis_path = env.get("TTS_SYNTHESIS_PATH", "/samples")

        self.upstream_timeout = _parse_float(env, "UPSTREAM_TIMEOUT_SECONDS", 30.0)
        self.upstream_retry_attempts = _parse_int(env, "UPSTREAM_RETRY_ATTEMPTS", 1)
        self.upstream_backoff = _parse_float(env, "UPSTREAM_BACKOFF_SECONDS", 0.5)

    def get_server_config(self) -> ServerConfig:
        """Get HTTP server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            static_dir=self.static_dir,
            log_level=self.log_level,
        )

    def get_feed_config(self) -> FeedConfig:
        """Get feed retrieval configuration."""
        return FeedConfig(default_feed_url=self.default_feed_url)

    def get_summarization_config(self) -> SummarizationConfig:
        """Get summarization provider configuration."""
        return SummarizationConfig(
            api_token=self.huggingface_api_token,
            model_id=self.summarization_model,
            base_url=self.huggingface_base_url,
        )

    def get_speech_config(self) -> SpeechConfig:
        """Get text-to-speech backend configuration."""
        return SpeechConfig(
            backend=self.tts_backend,
            local_url=self.local_tts_url,
            api_token=self.tts_api_token,
            base_url=self.tts_base_url,
            synthesis_path=self.tts_synthesis_path,
        )

    def get_http_config(self) -> HttpConfig:
        """Get upstream HTTP client configuration."""
        return HttpConfig(
            timeout=self.upstream_timeout,
            retry_attempts=self.upstream_retry_attempts,
            backoff_seconds=self.upstream_backoff,
        )


def _optional(env, name: str) -> str | None:
    """Return a stripped environment value, or None when unset or blank."""
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must not be negative: {value}")
    return value


def _parse_float(env, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid number for {name}: {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must not be negative: {value}")
    return value
