"""Data models for NewsBreeze."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class FeedItem:
    """Represents a single RSS/Atom feed item as served to clients."""

    title: str | None = None
    link: str | None = None
    pubDate: str | None = None
    contentSnippet: str | None = None  # Max 200 characters plus "..."
    content: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Serialize the item, leaving out fields the feed did not provide."""
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class SummarizationResult:
    """Represents a successful summarization."""

    summary: str


@dataclass(frozen=True)
class SpeechAudio:
    """Raw audio returned by a synthesis backend."""

    content: bytes
    media_type: str = "audio/wav"


@dataclass(frozen=True)
class AudioUrl:
    """Location of audio generated by a hosted synthesis backend."""

    url: str


@dataclass(frozen=True)
class SampleSubmitted:
    """A sample-creation job accepted upstream whose audio is not yet available."""

    job_id: str
    payload: Any


@dataclass(frozen=True)
class UnrecognizedPayload:
    """An upstream response that matches none of the known shapes."""

    payload: Any


# Shapes a hosted synthesis backend may answer with
CloningResponse = AudioUrl | SampleSubmitted | UnrecognizedPayload

# What a synthesizer hands back to the web layer
SynthesisResult = SpeechAudio | AudioUrl | SampleSubmitted
