"""Package entry point for ``python -m gemini_relay``.

WHY: Operators run the relay as ``python -m gemini_relay serve`` and use the
same entry point for the offline helpers (strip, wav, info, tts).

HOW: Delegates to the CLI's main() function.
"""

from gemini_relay.cli import main

if __name__ == "__main__":
    main()
