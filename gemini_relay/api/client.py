"""Async HTTP client for the Gemini generateContent REST API.

WHY: Every relay route ends in the same upstream call, POST
/models/{model}:generateContent, with a different payload shape: plain
chat, chat with history, an image or audio blob, or a TTS request with
the AUDIO response modality. This module keeps the HTTP details (auth
header, URL layout, error wrapping) behind one client class so route
handlers, the CLI and tests only deal with typed Content objects.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. GeminiClient is an
async context manager; enter it to get an authenticated client, exit to
close the connection pool. generate_content() is the single transport
method; generate_text(), transcribe_audio() and synthesize_speech() build
on it.

RULES:
- Always use the async context manager (async with GeminiClient() as client:)
- Authentication is the x-goog-api-key header, never a query parameter
- Text requests set responseMimeType "text/plain"
- synthesize_speech() returns decoded PCM (24 kHz mono PCM16), not WAV
- Non-2xx responses raise GeminiAPIError with the upstream status and body
- A 2xx body that is not a JSON object also raises GeminiAPIError
- A TTS response without inline audio raises MissingAudioError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from gemini_relay.api.models import Content, GenerateContentResponse, InlineData, Part
from gemini_relay.config import (
    CHAT_MODEL,
    DEFAULT_VOICE,
    GEMINI_BASE_URL,
    TRANSCRIBE_PROMPT,
    TTS_MODEL,
    load_api_key,
)

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT_S = 120.0
_CONNECT_TIMEOUT_S = 15.0


class GeminiAPIError(Exception):
    """Raised when the Gemini API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Gemini API error {status_code}: {message}")


class MissingAudioError(Exception):
    """Raised when a TTS response carries no inline audio data."""


class GeminiClient:
    """Async client for the Gemini generateContent endpoint.

    WHY: Provides one authenticated connection pool per process and typed
    helpers for each relay use case.

    HOW: Wraps httpx.AsyncClient with the API key header. ``transport`` can
    be injected (e.g. httpx.MockTransport) to run without the network.

    RULES:
    - api_key defaults to load_api_key() from .env
    - base_url, chat_model and tts_model default to config values
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        chat_model: Optional[str] = None,
        tts_model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or GEMINI_BASE_URL).rstrip("/")
        self.chat_model = chat_model or CHAT_MODEL
        self.tts_model = tts_model or TTS_MODEL
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> GeminiClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"x-goog-api-key": self._api_key},
            timeout=httpx.Timeout(_REQUEST_TIMEOUT_S, connect=_CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "GeminiClient must be used as an async context manager: "
                "async with GeminiClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        contents: Sequence[Content],
        system_instruction: Optional[str] = None,
        model: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> GenerateContentResponse:
        """POST a generateContent request and parse the response.

        Args:
            contents: Conversation turns, oldest first.
            system_instruction: Optional system prompt.
            model: Model name; defaults to the chat model.
            generation_config: Raw generationConfig object.

        Returns:
            The parsed GenerateContentResponse.

        Raises:
            GeminiAPIError: On any non-2xx response, or a 2xx body that is
                not a JSON object.
        """
        client = self._ensure_client()
        model = model or self.chat_model

        body: Dict[str, Any] = {"contents": [c.to_dict() for c in contents]}
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if generation_config:
            body["generationConfig"] = generation_config

        logger.debug("generateContent model=%s turns=%d", model, len(contents))
        resp = await client.post(f"/models/{model}:generateContent", json=body)

        if not resp.is_success:
            logger.warning("Gemini returned HTTP %d for model %s", resp.status_code, model)
            raise GeminiAPIError(resp.status_code, resp.text)

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.warning("Gemini returned a non-JSON body for model %s", model)
            raise GeminiAPIError(
                resp.status_code, "Invalid JSON from Gemini: {}".format(exc)
            ) from exc
        if not isinstance(payload, dict):
            raise GeminiAPIError(
                resp.status_code,
                "Invalid JSON from Gemini: expected an object, got {}".format(
                    type(payload).__name__
                ),
            )

        return GenerateContentResponse.from_dict(payload)

    # ------------------------------------------------------------------
    # Use cases
    # ------------------------------------------------------------------

    async def generate_text(
        self,
        contents: Sequence[Content],
        system_instruction: Optional[str] = None,
    ) -> str:
        """Run a chat request and return the raw reply text ("" if empty)."""
        response = await self.generate_content(
            contents,
            system_instruction=system_instruction,
            generation_config={"responseMimeType": "text/plain"},
        )
        return response.text

    async def transcribe_audio(
        self,
        audio: bytes,
        mime_type: str,
        prompt: Optional[str] = None,
    ) -> str:
        """Send an audio blob with a transcription prompt, return the text."""
        contents: List[Content] = [
            Content(
                role="user",
                parts=[
                    Part(inline_data=InlineData.from_bytes(audio, mime_type)),
                    Part(text=prompt or TRANSCRIBE_PROMPT),
                ],
            )
        ]
        return await self.generate_text(contents)

    async def synthesize_speech(
        self,
        text: str,
        voice_name: Optional[str] = None,
    ) -> bytes:
        """Synthesize speech and return raw PCM16 samples.

        RULES:
        - Uses the TTS model with responseModalities ["AUDIO"]
        - Voice is a Gemini prebuilt voice name (default "Kore")
        - Returns the decoded inline audio bytes, unwrapped

        Raises:
            GeminiAPIError: On any non-2xx response.
            MissingAudioError: When the response has no inline audio.
        """
        response = await self.generate_content(
            [Content(parts=[Part(text=text)])],
            model=self.tts_model,
            generation_config={
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice_name or DEFAULT_VOICE}
                    }
                },
            },
        )
        inline = response.inline_data
        if inline is None:
            raise MissingAudioError("TTS response contained no audio.")
        return inline.decode()
