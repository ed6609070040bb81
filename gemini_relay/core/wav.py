"""RIFF/WAVE container construction for raw 16-bit PCM audio.

WHY: The Gemini text-to-speech endpoint returns bare PCM samples (signed
16-bit little-endian, 24 kHz mono) with no container. Mobile audio players
cannot play headerless PCM, so the relay wraps the samples in a canonical
44-byte WAV header before handing them to the client.

HOW: A 44-byte header is built with struct.pack_into at the documented
offsets, then concatenated with the PCM payload copied verbatim.
read_wav_header() reads the same offsets back, which is what the CLI
``info`` command and the round-trip tests rely on.

RULES:
- 16-bit PCM only (AudioFormat=1, BitsPerSample=16)
- ChunkSize = 36 + len(pcm); Subchunk2Size = len(pcm)
- Empty PCM is valid and produces a header-only 44-byte file
- sample_rate/channels must be positive and fit their header fields
- PCM length must be a whole number of frames (channels * 2 bytes)
- No sample content validation (silence, clipping), format only
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT = 1

DEFAULT_SAMPLE_RATE = 24000
DEFAULT_CHANNELS = 1

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF

# RIFF header (12) + fmt chunk (24) + data chunk header (8)
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavEncodingError(ValueError):
    """Base class for WAV container errors."""


class InvalidFormatParams(WavEncodingError):
    """Raised when the sample rate or channel count cannot form a valid header."""


class MalformedPcmBuffer(WavEncodingError):
    """Raised when the PCM payload is not a whole number of 16-bit frames."""


@dataclass(frozen=True)
class AudioFormatParams:
    """Sample rate (Hz) and interleaved channel count of a PCM buffer."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS

    @property
    def block_align(self) -> int:
        return self.channels * BYTES_PER_SAMPLE

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


@dataclass(frozen=True)
class WavHeader:
    """Fields read back from a canonical 44-byte WAV header."""

    chunk_size: int
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int


def _validate_params(params: AudioFormatParams) -> None:
    for field_name in ("sample_rate", "channels"):
        value = getattr(params, field_name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidFormatParams(
                "{} must be an integer, got {!r}".format(field_name, value)
            )
    if params.sample_rate <= 0:
        raise InvalidFormatParams(
            "sample_rate must be a positive integer, got {!r}".format(params.sample_rate)
        )
    if params.channels <= 0:
        raise InvalidFormatParams(
            "channels must be a positive integer, got {!r}".format(params.channels)
        )
    if params.channels > _U16_MAX // BYTES_PER_SAMPLE:
        raise InvalidFormatParams(
            "channels={} does not fit the 16-bit BlockAlign field".format(params.channels)
        )
    if params.byte_rate > _U32_MAX:
        raise InvalidFormatParams(
            "byte rate {} does not fit the 32-bit ByteRate field".format(params.byte_rate)
        )


def encode_wav(pcm: bytes, params: AudioFormatParams | None = None) -> bytes:
    """Wrap raw 16-bit little-endian PCM in a RIFF/WAVE container.

    Args:
        pcm: Interleaved signed 16-bit little-endian samples. May be empty.
        params: Sample rate and channel count. Defaults to 24000 Hz mono,
                the format Gemini TTS produces.

    Returns:
        ``44 + len(pcm)`` bytes: the canonical header followed by ``pcm``.

    Raises:
        InvalidFormatParams: sample_rate or channels is not positive, or
            does not fit its header field.
        MalformedPcmBuffer: len(pcm) is not a multiple of ``channels * 2``,
            or the payload is too large for a 32-bit RIFF size.
    """
    if params is None:
        params = AudioFormatParams()
    _validate_params(params)

    pcm_length = len(pcm)
    if pcm_length % params.block_align:
        raise MalformedPcmBuffer(
            "PCM length {} is not a multiple of the {}-byte frame size".format(
                pcm_length, params.block_align
            )
        )
    if pcm_length > _U32_MAX - 36:
        raise MalformedPcmBuffer(
            "PCM payload of {} bytes exceeds the RIFF size limit".format(pcm_length)
        )

    out = bytearray(HEADER_SIZE + pcm_length)
    _HEADER.pack_into(
        out,
        0,
        b"RIFF",
        36 + pcm_length,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT,
        params.channels,
        params.sample_rate,
        params.byte_rate,
        params.block_align,
        BITS_PER_SAMPLE,
        b"data",
        pcm_length,
    )
    out[HEADER_SIZE:] = pcm
    return bytes(out)


def read_wav_header(data: bytes) -> WavHeader:
    """Parse the canonical 44-byte header produced by encode_wav().

    Only the fixed layout is understood: RIFF/WAVE with a 16-byte ``fmt ``
    chunk immediately followed by the ``data`` chunk. Files with extra
    chunks (LIST, fact) are rejected rather than walked.

    Raises:
        WavEncodingError: data is shorter than 44 bytes or a tag is wrong.
    """
    if len(data) < HEADER_SIZE:
        raise WavEncodingError(
            "WAV data is {} bytes, shorter than the {}-byte header".format(
                len(data), HEADER_SIZE
            )
        )

    (
        riff,
        chunk_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_size,
    ) = _HEADER.unpack_from(data, 0)

    for actual, expected in ((riff, b"RIFF"), (wave, b"WAVE"), (fmt, b"fmt "), (data_tag, b"data")):
        if actual != expected:
            raise WavEncodingError(
                "Expected tag {!r}, found {!r}".format(expected, actual)
            )
    if fmt_size != 16:
        raise WavEncodingError("Unsupported fmt chunk size {}".format(fmt_size))

    return WavHeader(
        chunk_size=chunk_size,
        audio_format=audio_format,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )
