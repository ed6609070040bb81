"""Gemini generateContent request and response dataclasses.

WHY: The Gemini REST API exchanges nested camelCase JSON (contents → parts →
text | inlineData). Typed dataclasses keep the request builders and the
response readers explicit, so the route handlers never index raw dicts.

HOW: Request-side classes (Part, Content) serialize with to_dict().
Response-side classes (Candidate, GenerateContentResponse) parse with
from_dict(). Inline binary data stays base64 in the dataclass and is
decoded on demand.

RULES:
- Field names follow the REST API: inlineData/mimeType on the wire,
  snake_case in Python
- A part carries either text or inline_data, never both
- Missing candidates/parts parse to empty lists (no KeyError on sparse
  responses, e.g. safety-blocked prompts)
- Content roles are "user" or "model"
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class InlineData:
    """Base64 payload with its MIME type (images, audio)."""

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> InlineData:
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    def decode(self) -> bytes:
        return base64.b64decode(self.data)

    def to_dict(self) -> Dict[str, str]:
        return {"mimeType": self.mime_type, "data": self.data}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InlineData:
        return cls(mime_type=data.get("mimeType", ""), data=data.get("data", ""))


@dataclass
class Part:
    """One element of a Content: a text fragment or an inline blob."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.inline_data is not None:
            return {"inlineData": self.inline_data.to_dict()}
        return {"text": self.text or ""}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Part:
        inline = data.get("inlineData")
        return cls(
            text=data.get("text"),
            inline_data=InlineData.from_dict(inline) if inline else None,
        )


@dataclass
class Content:
    """A single conversation turn.

    RULES:
    - role is "user" or "model"; anything else is coerced to "user"
    """

    role: str = "user"
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def user_text(cls, *texts: str) -> Content:
        return cls(role="user", parts=[Part(text=t) for t in texts])

    @classmethod
    def from_message(cls, role: Optional[str], text: Optional[str]) -> Content:
        """Build a turn from a client chat message, coercing the role."""
        return cls(
            role="model" if role == "model" else "user",
            parts=[Part(text=str(text or ""))],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [p.to_dict() for p in self.parts]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Content:
        return cls(
            role=data.get("role", "model"),
            parts=[Part.from_dict(p) for p in data.get("parts") or []],
        )


@dataclass
class Candidate:
    """One generated alternative from a generateContent response."""

    content: Content
    finish_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Candidate:
        return cls(
            content=Content.from_dict(data.get("content") or {}),
            finish_reason=data.get("finishReason"),
        )


@dataclass
class GenerateContentResponse:
    """Parsed body of POST /models/{model}:generateContent.

    WHY: Callers want "the text" or "the audio" of the answer. Gemini nests
    both under candidates[0].content.parts, and either may be absent.

    RULES:
    - text joins all text parts of the first candidate ("" if none)
    - inline_data is the first inline blob of the first candidate, or None
    """

    candidates: List[Candidate] = field(default_factory=list)
    model_version: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GenerateContentResponse:
        return cls(
            candidates=[Candidate.from_dict(c) for c in data.get("candidates") or []],
            model_version=data.get("modelVersion"),
        )

    @property
    def text(self) -> str:
        if not self.candidates:
            return ""
        return "".join(
            p.text for p in self.candidates[0].content.parts if p.text
        )

    @property
    def inline_data(self) -> Optional[InlineData]:
        if not self.candidates:
            return None
        for part in self.candidates[0].content.parts:
            if part.inline_data is not None and part.inline_data.data:
                return part.inline_data
        return None
