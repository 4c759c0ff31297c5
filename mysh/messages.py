import sys
from typing import IO, Optional

COLORS = {
    "RESET": "\033[0m",
    "RED": "\033[91m",
    "CYAN": "\033[96m",
}

FAREWELL = "Exiting shell..."

_use_colors = True


def set_colors(enabled: bool) -> None:
    global _use_colors
    _use_colors = enabled


def color(text: str, color_name: str, stream: Optional[IO[str]] = None) -> str:
    """Wrap ``text`` in an ANSI color when ``stream`` is a terminal."""
    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if not _use_colors or isatty is None or not isatty():
        return text
    return f"{COLORS.get(color_name, '')}{text}{COLORS['RESET']}"


def report(error: Exception, stream: Optional[IO[str]] = None) -> None:
    """Print one diagnostic line for ``error``."""
    stream = stream or sys.stderr
    print(color(str(error), "RED", stream), file=stream, flush=True)


def notice(text: str, stream: Optional[IO[str]] = None) -> None:
    stream = stream or sys.stdout
    print(color(text, "CYAN", stream), file=stream, flush=True)
