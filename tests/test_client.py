"""Tests for the async Gemini client and its response models.

WHY: The client builds the exact JSON Gemini expects (contents, system
instruction, generation config) and unwraps nested responses. A wrong
field name fails silently upstream, so request bodies are asserted
field by field.

HOW: httpx.MockTransport captures every outgoing request and returns
canned responses; no network access. Coroutines run via asyncio.run().
"""

import asyncio
import base64
import json

import httpx
import pytest

from gemini_relay.api.client import GeminiAPIError, GeminiClient, MissingAudioError
from gemini_relay.api.models import Content, GenerateContentResponse, Part
from gemini_relay.config import PLAIN_TEXT_INSTRUCTION, TRANSCRIBE_PROMPT


def _text_response(*texts):
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": t} for t in texts]},
                "finishReason": "STOP",
            }
        ]
    }


def _audio_response(pcm):
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{
                        "inlineData": {
                            "mimeType": "audio/L16;codec=pcm;rate=24000",
                            "data": base64.b64encode(pcm).decode("ascii"),
                        }
                    }],
                }
            }
        ]
    }


class _Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else _text_response("ok")
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


def _run(recorder, coro_factory, **client_kwargs):
    async def _inner():
        async with GeminiClient(
            api_key="test-key",
            base_url="https://gemini.test/v1beta",
            transport=httpx.MockTransport(recorder),
            **client_kwargs
        ) as client:
            return await coro_factory(client)

    return asyncio.run(_inner())


# ---------------------------------------------------------------------------
# generate_text
# ---------------------------------------------------------------------------


class TestGenerateText:

    def test_posts_to_model_endpoint_with_api_key(self):
        recorder = _Recorder()
        _run(recorder, lambda c: c.generate_text([Content.user_text("hi")]), chat_model="chat-x")
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/chat-x:generateContent"
        assert request.headers["x-goog-api-key"] == "test-key"

    def test_request_body(self):
        recorder = _Recorder()
        _run(recorder, lambda c: c.generate_text(
            [Content.user_text(PLAIN_TEXT_INSTRUCTION, "Oi")],
            system_instruction="Seja breve.",
        ))
        body = recorder.last_json
        assert body["contents"] == [{
            "role": "user",
            "parts": [{"text": PLAIN_TEXT_INSTRUCTION}, {"text": "Oi"}],
        }]
        assert body["systemInstruction"] == {"parts": [{"text": "Seja breve."}]}
        assert body["generationConfig"] == {"responseMimeType": "text/plain"}

    def test_no_system_instruction_key_when_absent(self):
        recorder = _Recorder()
        _run(recorder, lambda c: c.generate_text([Content.user_text("hi")]))
        assert "systemInstruction" not in recorder.last_json

    def test_joins_text_parts(self):
        recorder = _Recorder(body=_text_response("Hello, ", "world"))
        assert _run(recorder, lambda c: c.generate_text([Content.user_text("hi")])) == "Hello, world"

    def test_empty_candidates_yield_empty_text(self):
        recorder = _Recorder(body={"promptFeedback": {"blockReason": "SAFETY"}})
        assert _run(recorder, lambda c: c.generate_text([Content.user_text("hi")])) == ""

    def test_error_status_raises(self):
        recorder = _Recorder(status_code=429, body="quota exceeded")
        with pytest.raises(GeminiAPIError) as excinfo:
            _run(recorder, lambda c: c.generate_text([Content.user_text("hi")]))
        assert excinfo.value.status_code == 429
        assert "quota exceeded" in str(excinfo.value)

    def test_html_body_on_success_status_raises(self):
        recorder = _Recorder(status_code=200, body="<html>oops</html>")
        with pytest.raises(GeminiAPIError) as excinfo:
            _run(recorder, lambda c: c.generate_text([Content.user_text("hi")]))
        assert excinfo.value.status_code == 200
        assert "Invalid JSON from Gemini" in excinfo.value.message

    def test_non_object_json_raises(self):
        recorder = _Recorder(body=["not", "an", "object"])
        with pytest.raises(GeminiAPIError, match="expected an object"):
            _run(recorder, lambda c: c.generate_text([Content.user_text("hi")]))

    def test_any_2xx_status_is_success(self):
        recorder = _Recorder(status_code=201, body=_text_response("criado"))
        assert _run(recorder, lambda c: c.generate_text([Content.user_text("hi")])) == "criado"


# ---------------------------------------------------------------------------
# transcribe_audio / synthesize_speech
# ---------------------------------------------------------------------------


class TestTranscribeAudio:

    def test_sends_inline_audio_and_default_prompt(self):
        recorder = _Recorder(body=_text_response("bom dia"))
        text = _run(recorder, lambda c: c.transcribe_audio(b"\x00\x01", "audio/webm"))
        assert text == "bom dia"
        parts = recorder.last_json["contents"][0]["parts"]
        assert parts[0] == {"inlineData": {"mimeType": "audio/webm", "data": "AAE="}}
        assert parts[1] == {"text": TRANSCRIBE_PROMPT}


class TestSynthesizeSpeech:

    def test_returns_decoded_pcm(self):
        pcm = b"\x01\x00\xff\x7f"
        recorder = _Recorder(body=_audio_response(pcm))
        assert _run(recorder, lambda c: c.synthesize_speech("Olá", "Puck"), tts_model="tts-x") == pcm

    def test_request_uses_tts_model_and_voice(self):
        recorder = _Recorder(body=_audio_response(b"\x00\x00"))
        _run(recorder, lambda c: c.synthesize_speech("Olá", "Puck"), tts_model="tts-x")
        assert recorder.requests[0].url.path == "/v1beta/models/tts-x:generateContent"
        config = recorder.last_json["generationConfig"]
        assert config["responseModalities"] == ["AUDIO"]
        assert config["speechConfig"]["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Puck"
        assert recorder.last_json["contents"] == [{"role": "user", "parts": [{"text": "Olá"}]}]

    def test_default_voice(self):
        recorder = _Recorder(body=_audio_response(b"\x00\x00"))
        _run(recorder, lambda c: c.synthesize_speech("Olá"))
        voice = recorder.last_json["generationConfig"]["speechConfig"]["voiceConfig"]
        assert voice["prebuiltVoiceConfig"]["voiceName"] == "Kore"

    def test_missing_audio_raises(self):
        recorder = _Recorder(body=_text_response("no audio here"))
        with pytest.raises(MissingAudioError):
            _run(recorder, lambda c: c.synthesize_speech("Olá"))


# ---------------------------------------------------------------------------
# Client lifecycle and config
# ---------------------------------------------------------------------------


class TestClientLifecycle:

    def test_requires_context_manager(self):
        client = GeminiClient(api_key="k")
        with pytest.raises(RuntimeError, match="async context manager"):
            asyncio.run(client.generate_text([Content.user_text("hi")]))

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiClient()

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        recorder = _Recorder()

        async def _inner():
            async with GeminiClient(transport=httpx.MockTransport(recorder)) as client:
                await client.generate_text([Content.user_text("hi")])

        asyncio.run(_inner())
        assert recorder.requests[0].headers["x-goog-api-key"] == "env-key"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:

    def test_message_roles_coerced(self):
        assert Content.from_message("model", "a").role == "model"
        assert Content.from_message("assistant", "a").role == "user"
        assert Content.from_message(None, None).parts[0].text == ""

    def test_part_serializes_text_or_inline_data(self):
        assert Part(text="x").to_dict() == {"text": "x"}
        response = GenerateContentResponse.from_dict(_audio_response(b"\x01\x02"))
        assert response.inline_data.decode() == b"\x01\x02"
        assert response.text == ""

    def test_sparse_response(self):
        response = GenerateContentResponse.from_dict({"candidates": [{}]})
        assert response.text == ""
        assert response.inline_data is None
