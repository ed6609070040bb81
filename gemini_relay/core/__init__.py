"""Pure response transforms applied before the relay answers a client.

WHY: The relay's only non-trivial logic is reshaping what Gemini returns:
raw PCM becomes a playable WAV file and Markdown replies become plain text.
Both are kept free of HTTP and SDK concerns so they can be tested and
reused (CLI, server) in isolation.

HOW: wav.py builds and reads the canonical 44-byte WAV header, markdown.py
runs an ordered chain of regex substitutions.

RULES:
- No I/O, no shared state; safe to call from any thread or task
- Errors are typed (WavEncodingError family); strip_markdown never raises
"""

from gemini_relay.core.markdown import strip_markdown
from gemini_relay.core.wav import (
    AudioFormatParams,
    InvalidFormatParams,
    MalformedPcmBuffer,
    WavEncodingError,
    WavHeader,
    encode_wav,
    read_wav_header,
)

__all__ = [
    "AudioFormatParams",
    "InvalidFormatParams",
    "MalformedPcmBuffer",
    "WavEncodingError",
    "WavHeader",
    "encode_wav",
    "read_wav_header",
    "strip_markdown",
]
