"""HTTP API for NewsBreeze."""

import os
import re
import time
from typing import Any

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from .config import Config
from .errors import ApiError
from .logging_config import (
    create_request_logger,
    new_request_id,
    setup_structured_logging,
)
from .models import AudioUrl, SampleSubmitted, SpeechAudio
from .rss import FeedFetcher
from .summarize import Summarizer
from .tts import SUBMITTED_MESSAGE, build_synthesizer

# Client-supplied request ids outside this shape are replaced with a fresh one
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


class SummarizeRequest(BaseModel):
    textToSummarize: Any = None


class SpeechRequest(BaseModel):
    text: Any = None
    speaker_id: Any = None
    language: Any = None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs its outcome."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id", "")
        if not REQUEST_ID_PATTERN.fullmatch(request_id):
            request_id = new_request_id()
        request.state.request_id = request_id
        logger = create_request_logger("api", request_id)

        start_time = time.monotonic()
        response: Response = await call_next(request)
        duration_ms = int((time.monotonic() - start_time) * 1000)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        response.headers["X-Request-ID"] = request_id
        return response


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def create_app(
    config: Config | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration read at startup; read from the environment when omitted
        transport: Optional httpx transport used for every upstream call

    Returns:
        Configured FastAPI application
    """
    config = config or Config()
    server_config = config.get_server_config()
    feed_config = config.get_feed_config()
    summarization_config = config.get_summarization_config()
    speech_config = config.get_speech_config()
    http_config = config.get_http_config()

    app = FastAPI(title="NewsBreeze API", version="1.0.0")
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        create_request_logger("api", _request_id(request)).warning(
            f"Rejected request body: {exc.errors()}", path=request.url.path
        )
        return JSONResponse(
            status_code=400, content={"error": "Request body must be a JSON object."}
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        create_request_logger("api", _request_id(request)).error(
            f"Unhandled error: {exc!r}", path=request.url.path
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error."})

    @app.get("/api/hello")
    async def hello() -> dict[str, str]:
        return {"message": "Hello from NewsBreeze API!"}

    @app.get("/api/news")
    async def news(request: Request, url: str | None = None) -> list[dict[str, str]]:
        """Return the items of an RSS feed, the default feed when no url is given."""
        fetcher = FeedFetcher(feed_config, http_config, _request_id(request), transport)
        items = await fetcher.fetch(url)
        return [item.to_dict() for item in items]

    @app.post("/api/summarize")
    async def summarize(
        request: Request, body: SummarizeRequest | None = None
    ) -> dict[str, str]:
        """Summarize a piece of text."""
        summarizer = Summarizer(
            summarization_config, http_config, _request_id(request), transport
        )
        body = body or SummarizeRequest()
        result = await summarizer.summarize(body.textToSummarize)
        return {"summary": result.summary}

    @app.post("/api/tts")
    async def tts(request: Request, body: SpeechRequest | None = None):
        """Synthesize speech: WAV audio, an audio URL or a job acknowledgment."""
        synthesizer = build_synthesizer(
            speech_config, http_config, _request_id(request), transport
        )
        body = body or SpeechRequest()
        result = await synthesizer.synthesize(
            text=body.text, speaker_id=body.speaker_id, language=body.language
        )
        if isinstance(result, SpeechAudio):
            return Response(content=result.content, media_type=result.media_type)
        if isinstance(result, AudioUrl):
            return {"audioUrl": result.url}
        if isinstance(result, SampleSubmitted):
            return {"message": SUBMITTED_MESSAGE, "data": result.payload}
        raise TypeError(f"Unknown synthesis result: {result!r}")

    # Static UI, mounted after the API routes
    if os.path.isdir(server_config.static_dir):
        app.mount(
            "/",
            StaticFiles(directory=server_config.static_dir, html=True),
            name="static",
        )

    return app


def main() -> None:
    """Run the API server."""
    load_dotenv()
    config = Config()
    server_config = config.get_server_config()
    setup_structured_logging(server_config.log_level)

    create_request_logger("api", "startup").info(
        f"NewsBreeze app listening at http://{server_config.host}:{server_config.port}"
    )
    uvicorn.run(
        create_app(config),
        host=server_config.host,
        port=server_config.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
