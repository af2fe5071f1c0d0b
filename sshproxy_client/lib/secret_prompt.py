"""Masked password+OTP prompt and terminal state restoration."""

import getpass
import sys
from typing import TextIO

try:
    import termios
except ImportError:  # non-POSIX platforms have no tty attributes to restore
    termios = None

from .errors import UserAbort
from .logging_config import LOGGER

SECRET_PROMPT = "Enter your password+OTP: "


class TerminalState:
    """Snapshot the terminal attributes on entry and put them back on exit.

    getpass() turns echo off while reading. If the process is torn down while
    echo is off, the user's shell is left unusable, so the original attributes
    are restored on every exit path.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdin
        self._saved = None

    def __enter__(self) -> "TerminalState":
        if termios is None or not self.stream.isatty():
            return self
        try:
            self._saved = termios.tcgetattr(self.stream.fileno())
        except termios.error as e:
            LOGGER.debug("Cannot read terminal attributes: %s", e)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        """Restore saved attributes; only the first call has any effect."""
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        try:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, saved)
        except termios.error as e:
            LOGGER.warning("Failed to restore terminal attributes: %s", e)


def prompt_secret(prompt: str = SECRET_PROMPT, stream: TextIO | None = None) -> str:
    """Read the password+OTP without echo.

    Raises:
        UserAbort: If the read is interrupted or input is closed
    """
    try:
        return getpass.getpass(prompt, stream=stream)
    except KeyboardInterrupt as e:
        # getpass does not print the newline the user never typed
        print(file=stream if stream is not None else sys.stderr)
        raise UserAbort("Interrupted while reading password") from e
    except EOFError as e:
        raise UserAbort("No password entered") from e
