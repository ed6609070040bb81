"""Command-line interface for the Gemini relay.

WHY: Besides running the HTTP server, operators need quick offline access
to the relay's transforms: check how a model reply will look once Markdown
is stripped, wrap a raw PCM dump in a WAV header, inspect a WAV header, or
synthesize a phrase end to end against the real API.

HOW: argparse with one subcommand per task. ``serve`` hands over to
uvicorn; ``strip``, ``wav`` and ``info`` are pure file/stdin transforms;
``tts`` runs the async GeminiClient via asyncio.run(). Status messages go
to stderr so stdout stays pipeable.

RULES:
- serve: --host/--port default to config HOST/PORT
- strip: reads FILE or stdin, writes plain text to stdout
- wav: PCM_FILE → WAV at --output, --rate (default 24000), --channels (default 1)
- info: prints the parsed header fields of a WAV file
- tts: TEXT → WAV at --output using --voice
- Errors print "Error: ..." to stderr and exit with status 1
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gemini_relay.config import DEFAULT_VOICE, HOST, PORT, TTS_CHANNELS, TTS_SAMPLE_RATE
from gemini_relay.core.markdown import strip_markdown
from gemini_relay.core.wav import (
    AudioFormatParams,
    encode_wav,
    read_wav_header,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs every request at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_serve(args: argparse.Namespace) -> int:
    from gemini_relay.server.app import run_api

    logger.info("Starting relay on %s:%d", args.host, args.port)
    run_api(host=args.host, port=args.port)
    return 0


def _cmd_strip(args: argparse.Namespace) -> int:
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()
    sys.stdout.write(strip_markdown(text) + "\n")
    return 0


def _cmd_wav(args: argparse.Namespace) -> int:
    pcm = Path(args.pcm_file).read_bytes()
    wav = encode_wav(pcm, AudioFormatParams(sample_rate=args.rate, channels=args.channels))
    Path(args.output).write_bytes(wav)
    _status("Wrote {} ({} bytes, {:.2f}s of audio)".format(
        args.output, len(wav), len(pcm) / (args.rate * args.channels * 2),
    ))
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    with open(args.wav_file, "rb") as f:
        header = read_wav_header(f.read(44))
    print("channels:        {}".format(header.channels))
    print("sample_rate:     {}".format(header.sample_rate))
    print("bits_per_sample: {}".format(header.bits_per_sample))
    print("byte_rate:       {}".format(header.byte_rate))
    print("block_align:     {}".format(header.block_align))
    print("data_size:       {}".format(header.data_size))
    if header.byte_rate:
        print("duration_s:      {:.3f}".format(header.data_size / header.byte_rate))
    return 0


async def _synthesize(text: str, voice: str) -> bytes:
    from gemini_relay.api.client import GeminiClient

    async with GeminiClient() as client:
        return await client.synthesize_speech(text, voice)


def _cmd_tts(args: argparse.Namespace) -> int:
    _status("Synthesizing with voice {}...".format(args.voice))
    pcm = asyncio.run(_synthesize(args.text, args.voice))
    wav = encode_wav(pcm, AudioFormatParams(TTS_SAMPLE_RATE, TTS_CHANNELS))
    Path(args.output).write_bytes(wav)
    _status("Wrote {} ({} bytes)".format(args.output, len(wav)))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemini-relay",
        description="Gemini relay server and offline response transforms.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP relay.")
    serve.add_argument("--host", default=HOST)
    serve.add_argument("--port", type=int, default=PORT)
    serve.set_defaults(func=_cmd_serve)

    strip = sub.add_parser("strip", help="Strip Markdown from FILE or stdin.")
    strip.add_argument("file", nargs="?", help="Markdown file (default: stdin).")
    strip.set_defaults(func=_cmd_strip)

    wav = sub.add_parser("wav", help="Wrap raw PCM16 little-endian audio in a WAV header.")
    wav.add_argument("pcm_file")
    wav.add_argument("-o", "--output", required=True)
    wav.add_argument("--rate", type=int, default=TTS_SAMPLE_RATE)
    wav.add_argument("--channels", type=int, default=TTS_CHANNELS)
    wav.set_defaults(func=_cmd_wav)

    info = sub.add_parser("info", help="Print the header fields of a WAV file.")
    info.add_argument("wav_file")
    info.set_defaults(func=_cmd_info)

    tts = sub.add_parser("tts", help="Synthesize TEXT to a WAV file via Gemini.")
    tts.add_argument("text")
    tts.add_argument("-o", "--output", required=True)
    tts.add_argument("--voice", default=DEFAULT_VOICE)
    tts.set_defaults(func=_cmd_tts)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits with the subcommand's status."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        code = args.func(args)
    except (OSError, ValueError) as exc:
        # WavEncodingError and missing API key are ValueErrors
        _status("Error: {}".format(exc))
        sys.exit(1)
    except Exception as exc:
        logger.exception("Command %s failed", args.command)
        _status("Error: {}".format(exc))
        sys.exit(1)
    sys.exit(code)
