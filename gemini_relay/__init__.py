"""Gemini relay: a thin backend between a mobile app and Google Gemini.

WHY: The mobile client must not hold the Gemini API key, and it cannot
render Markdown or play headerless PCM. This package sits in between:
it forwards chat, image, speech-to-text and text-to-speech requests to
Gemini and reshapes the answers into plain text and WAV audio.

HOW: Three layers: core (pure transforms), api (async Gemini client),
server (FastAPI routes). The CLI wraps the server and the transforms.

RULES:
- Every text reply is passed through core.strip_markdown
- Every TTS reply is wrapped by core.encode_wav (24 kHz mono PCM16)
- The API key is read from the environment, never from requests
"""

__version__ = "0.1.0"
