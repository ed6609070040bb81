"""Gemini API client package: async HTTP interface to Google Gemini.

WHY: The relay forwards chat, image, audio and TTS requests to Gemini.
This package encapsulates all Gemini communication behind an async
client class so the HTTP routes stay free of wire-format details.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. GeminiClient exposes
one method per use case. Request and response JSON is mapped to typed
dataclasses defined in models.py.

RULES:
- All upstream HTTP calls go through GeminiClient (no direct httpx usage elsewhere)
- Authentication is via the x-goog-api-key header from config
"""

from gemini_relay.api.client import GeminiAPIError, GeminiClient, MissingAudioError
from gemini_relay.api.models import Content, GenerateContentResponse, InlineData, Part

__all__ = [
    "Content",
    "GeminiAPIError",
    "GeminiClient",
    "GenerateContentResponse",
    "InlineData",
    "MissingAudioError",
    "Part",
]
