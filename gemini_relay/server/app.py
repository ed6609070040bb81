"""FastAPI application exposing the relay routes used by the mobile app.

WHY: The mobile client needs a small HTTP surface for chat (single turn,
with an image, or with history), speech-to-text and text-to-speech,
without ever holding the Gemini API key. Responses must be immediately
usable by the UI: plain text instead of Markdown, WAV instead of raw PCM.

HOW: A single FastAPI app. One GeminiClient is opened in the lifespan and
injected into handlers through the get_gemini_client dependency. Each
handler validates input, builds Gemini Content turns, calls the client
and reshapes the answer with strip_markdown or encode_wav. Upstream and
encoding failures are mapped to 500 responses by app-level exception
handlers. slowapi applies a per-address default rate limit.

RULES:
- Missing body, blank prompt/text or empty messages → 400 before any
  upstream call
- Every text reply goes through strip_markdown
- TTS audio is wrapped as 24 kHz mono PCM16 WAV and base64 encoded
- /chat-converse and /api/claude/chat are the same handler
- Upstream errors → 500 with {"detail": message}
- The rate limit applies to every route, /health included
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import base64
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Body, Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from gemini_relay import __version__
from gemini_relay.api.client import GeminiAPIError, GeminiClient, MissingAudioError
from gemini_relay.api.models import Content, InlineData, Part
from gemini_relay.config import (
    DEFAULT_VOICE,
    MAX_AUDIO_BYTES,
    MAX_IMAGE_BYTES,
    PLAIN_TEXT_INSTRUCTION,
    RATE_LIMIT,
    TTS_CHANNELS,
    TTS_SAMPLE_RATE,
    WEB_ORIGIN,
)
from gemini_relay.core.markdown import strip_markdown
from gemini_relay.core.wav import AudioFormatParams, WavEncodingError, encode_wav
from gemini_relay.server.models import (
    ChatRequest,
    ConverseRequest,
    ErrorResponse,
    HealthResponse,
    ReplyResponse,
    SpeechRequest,
    SpeechResponse,
    TranscriptionResponse,
)
from gemini_relay.server.uploads import is_audio_type, is_image_type, read_upload

logger = logging.getLogger(__name__)

TTS_FORMAT = AudioFormatParams(sample_rate=TTS_SAMPLE_RATE, channels=TTS_CHANNELS)

_UPSTREAM_ERRORS = {500: {"model": ErrorResponse, "description": "Gemini call failed"}}


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared Gemini client on startup, close it on shutdown."""
    try:
        client = GeminiClient()
    except ValueError as exc:
        logger.error("Gemini client unavailable: %s", exc)
        app.state.gemini = None
        yield
        return

    async with client:
        app.state.gemini = client
        yield
    app.state.gemini = None


limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT])

app = FastAPI(
    lifespan=lifespan,
    title="Gemini Relay API",
    description=(
        "Relay between the mobile app and Google Gemini: plain-text chat "
        "(single turn, image, history), speech-to-text and text-to-speech "
        "with WAV output."
    ),
    version=__version__,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[WEB_ORIGIN],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


def get_gemini_client(request: Request) -> GeminiClient:
    """Dependency returning the process-wide Gemini client."""
    client = getattr(request.app.state, "gemini", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Gemini client is not configured.")
    return client


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_message(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


@app.exception_handler(GeminiAPIError)
@app.exception_handler(MissingAudioError)
@app.exception_handler(WavEncodingError)
async def _upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": _error_message(exc)})


@app.exception_handler(httpx.HTTPError)
async def _transport_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.exception("%s %s: Gemini transport error", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": _error_message(exc)})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _system_instruction(system: Optional[str]) -> str:
    """Prefix the caller's system prompt to the plain-text instruction."""
    return (system + " " if system else "") + PLAIN_TEXT_INSTRUCTION


def _require_text(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise HTTPException(
            status_code=400,
            detail='Field "{}" is required.'.format(field_name),
        )
    return value


# ---------------------------------------------------------------------------
# Endpoints: Chat
# ---------------------------------------------------------------------------


@app.post(
    "/chat",
    response_model=ReplyResponse,
    tags=["chat"],
    summary="Single-turn plain-text chat",
    responses={400: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
async def chat(
    body: Optional[ChatRequest] = Body(default=None),
    gemini: GeminiClient = Depends(get_gemini_client),
) -> ReplyResponse:
    prompt = _require_text(body.prompt if body else None, "prompt")
    raw = await gemini.generate_text([Content.user_text(PLAIN_TEXT_INSTRUCTION, prompt)])
    return ReplyResponse(reply=strip_markdown(raw))


@app.post(
    "/chat-image",
    response_model=ReplyResponse,
    tags=["chat"],
    summary="Ask about an uploaded image",
    description="Multipart form with an `image` file and an optional `prompt` field.",
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
async def chat_image(
    image: Optional[UploadFile] = File(default=None, description="Image file (png, jpeg, ...)."),
    prompt: Optional[str] = Form(default=None, description="Question about the image."),
    gemini: GeminiClient = Depends(get_gemini_client),
) -> ReplyResponse:
    mime_type = image.content_type if image is not None else None
    data = await read_upload(
        image,
        "image",
        accept=is_image_type,
        max_bytes=MAX_IMAGE_BYTES,
        type_error="Upload a valid image (png, jpeg, etc.).",
    )
    logger.info("Image received: %s (%.1f KB)", mime_type, len(data) / 1024)

    contents = [
        Content(
            role="user",
            parts=[
                Part(inline_data=InlineData.from_bytes(data, mime_type or "image/jpeg")),
                Part(text=PLAIN_TEXT_INSTRUCTION),
                Part(text=prompt or ""),
            ],
        )
    ]
    raw = await gemini.generate_text(contents)
    return ReplyResponse(reply=strip_markdown(raw))


@app.post(
    "/chat-converse",
    response_model=ReplyResponse,
    tags=["chat"],
    summary="Chat with conversation history",
    responses={400: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
@app.post(
    "/api/claude/chat",
    response_model=ReplyResponse,
    tags=["chat"],
    summary="Chat with conversation history (compatibility alias)",
    responses={400: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
async def chat_converse(
    body: Optional[ConverseRequest] = Body(default=None),
    gemini: GeminiClient = Depends(get_gemini_client),
) -> ReplyResponse:
    if body is None or not body.messages:
        raise HTTPException(status_code=400, detail='Field "messages" must be a non-empty list.')

    contents = [Content.from_message(m.role, m.content) for m in body.messages]
    raw = await gemini.generate_text(contents, system_instruction=_system_instruction(body.system))
    return ReplyResponse(reply=strip_markdown(raw))


# ---------------------------------------------------------------------------
# Endpoints: Speech
# ---------------------------------------------------------------------------


@app.post(
    "/stt",
    response_model=TranscriptionResponse,
    tags=["speech"],
    summary="Transcribe an uploaded recording",
    description="Multipart form with an `audio` file (audio/* or video/webm).",
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
async def speech_to_text(
    audio: Optional[UploadFile] = File(default=None, description="Audio recording."),
    gemini: GeminiClient = Depends(get_gemini_client),
) -> TranscriptionResponse:
    mime_type = (audio.content_type if audio is not None else None) or "audio/wav"
    data = await read_upload(
        audio,
        "audio",
        accept=is_audio_type,
        max_bytes=MAX_AUDIO_BYTES,
        type_error="Upload a valid audio file.",
    )
    logger.info("Audio received: %s (%.1f KB)", mime_type, len(data) / 1024)

    raw = await gemini.transcribe_audio(data, mime_type)
    return TranscriptionResponse(text=strip_markdown(raw))


@app.post(
    "/tts",
    response_model=SpeechResponse,
    tags=["speech"],
    summary="Synthesize speech as a WAV file",
    responses={400: {"model": ErrorResponse}, **_UPSTREAM_ERRORS},
)
async def text_to_speech(
    body: Optional[SpeechRequest] = Body(default=None),
    gemini: GeminiClient = Depends(get_gemini_client),
) -> SpeechResponse:
    text = _require_text(body.text if body else None, "text")
    voice = body.voiceName or DEFAULT_VOICE
    pcm = await gemini.synthesize_speech(text, voice)
    wav = encode_wav(pcm, TTS_FORMAT)
    logger.info("TTS audio: %d PCM bytes, voice %s", len(pcm), voice)
    return SpeechResponse(
        audioBase64=base64.b64encode(wav).decode("ascii"),
        mimeType="audio/wav",
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, version=__version__)


def run_api(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Entry point for the gemini-relay console script."""
    import uvicorn

    from gemini_relay.config import HOST, PORT

    uvicorn.run(app, host=host or HOST, port=port or PORT)
