"""Pydantic request/response models for the relay HTTP API.

WHY: The mobile client speaks a small, fixed JSON dialect ({prompt},
{messages, system}, {text, voiceName} in; {reply}, {text},
{audioBase64, mimeType} out). Pydantic models pin those shapes down for
validation, serialization and the generated OpenAPI docs.

HOW: One model per request body and per response body. Required-looking
fields are Optional at the schema level so blank or missing values reach
the handler, which answers with a 400 and a readable message instead of
a generic 422.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- JSON field names match the mobile client exactly (voiceName, audioBase64)
- Numbers and booleans in text fields are coerced to their string form
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from gemini_relay.config import DEFAULT_VOICE


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


def scalar_to_str(value: Any) -> Any:
    """Render JSON numbers and booleans as text; leave everything else as is.

    The mobile client occasionally sends a bare number as the prompt. It is
    forwarded as its textual form ("42", "1.5", "true") rather than rejected.
    Falsy scalars (0, false) count as missing, so they end up blank.
    """
    if isinstance(value, (bool, int, float)) and not value:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return value


class ChatRequest(BaseModel):
    """Single-turn chat request body for POST /chat."""

    prompt: Optional[str] = Field(
        default=None,
        description="User prompt. Must contain non-whitespace text.",
    )

    @field_validator("prompt", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        return scalar_to_str(value)


class ChatMessage(BaseModel):
    """One turn of a conversation history."""

    role: Optional[str] = Field(
        default="user",
        description="'model' for assistant turns; any other value is treated as 'user'.",
    )
    content: Optional[str] = Field(default="", description="Turn text.")

    @field_validator("role", "content", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        return scalar_to_str(value)


class ConverseRequest(BaseModel):
    """Multi-turn chat request body for POST /chat-converse."""

    messages: Optional[List[ChatMessage]] = Field(
        default=None,
        description="Conversation history, oldest first. Must not be empty.",
    )
    system: Optional[str] = Field(
        default=None,
        description="Optional system instruction prepended to the plain-text instruction.",
    )

    @field_validator("system", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        return scalar_to_str(value)


class SpeechRequest(BaseModel):
    """Text-to-speech request body for POST /tts."""

    text: Optional[str] = Field(
        default=None,
        description="Text to synthesize. Must contain non-whitespace text.",
    )
    voiceName: Optional[str] = Field(
        default=DEFAULT_VOICE,
        description="Gemini prebuilt voice name. Null falls back to the default voice.",
    )

    @field_validator("text", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        return scalar_to_str(value)

    model_config = {"json_schema_extra": {
        "examples": [{"text": "Olá! Tudo bem?", "voiceName": "Kore"}]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ReplyResponse(BaseModel):
    """Plain-text chat reply (Markdown already stripped)."""

    reply: str = Field(description="Model reply as plain text.")


class TranscriptionResponse(BaseModel):
    """Speech-to-text result (Markdown already stripped)."""

    text: str = Field(description="Transcribed text.")


class SpeechResponse(BaseModel):
    """Synthesized speech wrapped in a WAV container."""

    audioBase64: str = Field(description="Base64-encoded WAV file (24 kHz, mono, 16-bit).")
    mimeType: str = Field(default="audio/wav", description="MIME type of the decoded audio.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = Field(description="Always true when the service is up.")
    version: str = Field(description="Relay version string.", json_schema_extra={"example": "0.1.0"})
