"""Validation and reading of multipart uploads (images and audio).

WHY: /chat-image and /stt accept user files that are forwarded inline to
Gemini. Oversized or wrongly typed files must be rejected before any
upstream call is made.

HOW: The MIME type declared by the client is checked against an accept
predicate, then the spooled upload is read in chunks so the size limit
is enforced without buffering more than limit + one chunk.

RULES:
- Images: any image/* type, at most MAX_IMAGE_BYTES
- Audio: any audio/* type or video/webm (browser recordings), at most
  MAX_AUDIO_BYTES
- Missing file → 400, wrong type → 400, too large → 413
- The upload is always closed after reading
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import HTTPException, UploadFile

_READ_CHUNK = 1024 * 1024


def is_image_type(mime_type: Optional[str]) -> bool:
    return (mime_type or "").startswith("image/")


def is_audio_type(mime_type: Optional[str]) -> bool:
    mime = mime_type or ""
    return mime.startswith("audio/") or mime == "video/webm"


async def read_upload(
    upload: Optional[UploadFile],
    field_name: str,
    accept: Callable[[Optional[str]], bool],
    max_bytes: int,
    type_error: str,
) -> bytes:
    """Validate and read an uploaded file.

    Args:
        upload: The UploadFile from the form, or None when the field is absent.
        field_name: Form field name, used in error messages.
        accept: Predicate on the declared content type.
        max_bytes: Maximum accepted size.
        type_error: Message for a rejected content type.

    Returns:
        The full file content.

    Raises:
        HTTPException: 400 (missing / wrong type / empty) or 413 (too large).
    """
    if upload is None or not upload.filename:
        raise HTTPException(
            status_code=400,
            detail='Field "{}" is required.'.format(field_name),
        )

    try:
        if not accept(upload.content_type):
            raise HTTPException(status_code=400, detail=type_error)

        chunks = []
        total = 0
        while True:
            chunk = await upload.read(_READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > max_bytes:
                raise HTTPException(
                    status_code=413,
                    detail="File exceeds the {} MiB limit.".format(max_bytes // (1024 * 1024)),
                )
            chunks.append(chunk)
    finally:
        await upload.close()

    if total == 0:
        raise HTTPException(status_code=400, detail='Field "{}" is empty.'.format(field_name))
    return b"".join(chunks)
