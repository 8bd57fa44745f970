"""Terminal output helpers: coloured messages, spinners and progress bars."""

from __future__ import annotations

import itertools
import os
import sys
import threading
from typing import TextIO

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_BLUE = "\x1b[34m"

_BAR_WIDTH = 60
_BAR_FILLED = "#"
_BAR_HEAD = ">"
_BAR_EMPTY = "-"

_SPINNER_FRAMES = "⠁⠂⠄⡀⢀⠠⠐⠈"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _colors_enabled(stream: TextIO | None = None) -> bool:
    if os.environ.get("CLICOLOR_FORCE", "0") != "0":
        return True
    if os.environ.get("CLICOLOR") == "0":
        return False
    stream = stream if stream is not None else sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _style(text: object, code: str, stream: TextIO | None = None) -> str:
    text = str(text)
    if not _colors_enabled(stream):
        return text
    return f"{code}{text}{_RESET}"


def bold(text: object) -> str:
    """Render text in bold when the terminal supports colours."""
    return _style(text, _BOLD)


def blue(text: object) -> str:
    """Render text in blue when the terminal supports colours."""
    return _style(text, _BLUE)


def warn(message: str) -> None:
    """Print a red warning line."""
    symbol = "!" if no_emoji() else "⚠️ "
    print(f"{_style(symbol, _RED)} {_style(message, _RED)}")


def success(message: str) -> None:
    """Print a green success line."""
    symbol = "✓" if no_emoji() else "✅"
    print(f"{_style(symbol, _GREEN)} {_style(message, _GREEN)}")


class Spinner:
    """A spinner that ticks in the background while work is in progress."""

    def __init__(
        self,
        message: str = "",
        stream: TextIO | None = None,
        interval: float = 0.1,
    ) -> None:
        self.message = message
        self._stream = stream if stream is not None else sys.stderr
        isatty = getattr(self._stream, "isatty", None)
        self._visible = bool(isatty and isatty())
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._finished = False
        self._thread: threading.Thread | None = None
        if self._visible:
            self._thread = threading.Thread(
                target=self._spin, args=(interval,), daemon=True
            )
            self._thread.start()

    def _spin(self, interval: float) -> None:
        for frame in itertools.cycle(_SPINNER_FRAMES):
            if self._stop.is_set():
                return
            with self._lock:
                self._stream.write(f"\r{frame} {self.message}\x1b[K")
                self._stream.flush()
            self._stop.wait(interval)

    def set_message(self, message: str) -> None:
        """Replace the text shown next to the spinner."""
        with self._lock:
            self.message = message

    def finish_and_clear(self) -> None:
        """Stop the spinner and erase its line."""
        if self._finished:
            return
        self._finished = True
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        if self._visible:
            self._stream.write("\r\x1b[K")
            self._stream.flush()

    def __enter__(self) -> Spinner:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish_and_clear()


class ProgressBar:
    """A fixed-width progress bar of the form ``Progress: [###>---] pos/len msg``."""

    def __init__(self, total: int, stream: TextIO | None = None) -> None:
        self.total = total
        self.position = 0
        self.message = ""
        self._stream = stream if stream is not None else sys.stderr
        isatty = getattr(self._stream, "isatty", None)
        self._visible = bool(isatty and isatty())

    def set_position(self, position: int) -> None:
        self.position = position
        self._draw()

    def inc(self, delta: int = 1) -> None:
        self.position += delta
        self._draw()

    def set_message(self, message: str) -> None:
        self.message = message
        self._draw()

    def render(self) -> str:
        """Return the current bar as a single line of text."""
        fraction = 1.0 if self.total == 0 else min(self.position / self.total, 1.0)
        fill = fraction * _BAR_WIDTH
        full = int(fill)
        head = 1 if fill > 0 and full < _BAR_WIDTH else 0
        filled = _BAR_FILLED * full + _BAR_HEAD * head
        empty = _BAR_EMPTY * (_BAR_WIDTH - full - head)
        bar = _style(filled, _GREEN, self._stream) + _style(empty, _RED, self._stream)
        return f"Progress: [{bar}] {self.position}/{self.total} {self.message}"

    def _draw(self) -> None:
        if self._visible:
            self._stream.write(f"\r{self.render()}\x1b[K")
            self._stream.flush()