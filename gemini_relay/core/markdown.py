"""Markdown to plain text normalization for chat and speech replies.

WHY: Even when asked for plain text, Gemini regularly answers with Markdown
(bold, bullet lists, headings, code fences). The mobile UI renders replies
as plain text and the same text may be fed to TTS, so markup characters
must go while the words and list structure stay.

HOW: A fixed sequence of regex substitutions, each applied to the whole
text and producing the input of the next. This is a heuristic chain, not a
Markdown parser: the order is part of the observable behavior and must not
be rearranged (e.g. links are unwrapped only after images are removed, so
``![alt](url)`` never leaves a stray ``!alt``).

RULES:
- Stage order: fences, inline code, images, links, headings, emphasis,
  bullets, blockquotes, then trim
- Fenced code blocks are dropped entirely, inline code is unwrapped
- Images are dropped with their alt text; links keep their label
- Bullets (-, *, +) become "• "
- Unbalanced markers are left as literal characters
- Never raises; plain text passes through unchanged (modulo trim)
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

BULLET = "• "

# Line starts follow any line terminator, not only "\n".
_LINE_START = r"(?:^|(?<=[\r\u2028\u2029]))"

# Edge whitespace, including the byte order mark str.strip() keeps.
_EDGE_WHITESPACE = re.compile(r"\A[\s\ufeff]+|[\s\ufeff]+\Z")

# (name, compiled pattern, replacement), applied in order.
STAGES: Tuple[Tuple[str, re.Pattern, str], ...] = (
    ("fenced_code", re.compile(r"```[\s\S]*?```"), ""),
    ("inline_code", re.compile(r"`([^`]+)`"), r"\1"),
    ("image", re.compile(r"!\[[^\]]*\]\([^)]*\)"), ""),
    ("link", re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    ("heading", re.compile(_LINE_START + r"#{1,6}\s+", re.MULTILINE), ""),
    ("emphasis", re.compile(r"[*_~]{1,3}([^*_~]+)[*_~]{1,3}"), r"\1"),
    ("bullet", re.compile(_LINE_START + r"\s*[-*+]\s+", re.MULTILINE), BULLET),
    ("blockquote", re.compile(_LINE_START + r">\s?", re.MULTILINE), ""),
)


def strip_markdown(text: Optional[str]) -> str:
    """Convert a Markdown string to plain text.

    Args:
        text: Markdown source. None is treated as an empty string.

    Returns:
        The plain text with leading/trailing whitespace removed.
    """
    if not text:
        return ""
    result = str(text)
    for _name, pattern, replacement in STAGES:
        result = pattern.sub(replacement, result)
    return _EDGE_WHITESPACE.sub("", result)
