"""Shared test fixtures for the gemini_relay test suite.

WHY: The HTTP tests must never reach the real Gemini API, and several test
modules need the same PCM samples and a recording stand-in for the client.

HOW: FakeGemini mimics the three GeminiClient use-case methods, records
every call, and can be told to raise. Sample PCM is a short deterministic
ramp so byte-level assertions stay readable.

RULES:
- No network access anywhere in the suite
- FakeGemini.calls records (method, args) tuples in call order
- Setting FakeGemini.error makes every method raise it
"""

from typing import Any, List, Optional, Tuple

import pytest


class FakeGemini:
    """Drop-in replacement for GeminiClient in route handlers."""

    def __init__(self) -> None:
        self.reply = "**Olá!** Veja [docs](http://example.com)."
        self.transcript = "# Transcrição\nbom dia"
        self.pcm = b"\x01\x00\x02\x00\x03\x00\x04\x00"
        self.error: Optional[Exception] = None
        self.calls: List[Tuple[str, Any]] = []

    def _maybe_raise(self) -> None:
        if self.error is not None:
            raise self.error

    async def generate_text(self, contents, system_instruction=None):
        self.calls.append(("generate_text", (contents, system_instruction)))
        self._maybe_raise()
        return self.reply

    async def transcribe_audio(self, audio, mime_type, prompt=None):
        self.calls.append(("transcribe_audio", (audio, mime_type, prompt)))
        self._maybe_raise()
        return self.transcript

    async def synthesize_speech(self, text, voice_name=None):
        self.calls.append(("synthesize_speech", (text, voice_name)))
        self._maybe_raise()
        return self.pcm


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def mono_pcm():
    """One hundred 16-bit mono frames (a little-endian ramp)."""
    return b"".join(i.to_bytes(2, "little", signed=True) for i in range(-50, 50))
