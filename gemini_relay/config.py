"""Configuration constants, prompt defaults, and .env loading.

WHY: Model names, prompts, upload limits, CORS origin and the rate limit
all change between deployments. Keeping them as plain module constants in
one place makes them easy to find and override without touching the
request handlers.

HOW: python-dotenv loads the .env file on import. Each constant reads its
environment variable with a default. load_api_key() gives a clear error
when the Gemini key is missing.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- TTS output format is fixed at 24 kHz mono PCM16 (what Gemini returns)
- Upload limits: 10 MiB for images, 50 MiB for audio
- All string defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()

# ---------------------------------------------------------------------------
# Gemini API
# ---------------------------------------------------------------------------

GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
CHAT_MODEL = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash")
TTS_MODEL = os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts")
DEFAULT_VOICE = os.getenv("GEMINI_TTS_VOICE", "Kore")

TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1

# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

PLAIN_TEXT_INSTRUCTION = os.getenv(
    "PLAIN_TEXT_INSTRUCTION", "Responda em texto puro, sem Markdown."
)
"""Appended to every chat request so the model avoids Markdown up front."""

TRANSCRIBE_PROMPT = os.getenv(
    "TRANSCRIBE_PROMPT",
    "Transcreva o áudio em pt-BR. Saída: texto puro, sem comentários.",
)

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))
WEB_ORIGIN = os.getenv("WEB_ORIGIN", "*")
RATE_LIMIT = os.getenv("RATE_LIMIT", "60/minute")

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_AUDIO_BYTES = 50 * 1024 * 1024


def load_api_key() -> str:
    """Load the Gemini API key from the environment.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("GEMINI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Gemini API key not configured. "
            "Add GEMINI_API_KEY to the .env file or the environment."
        )
    return key
