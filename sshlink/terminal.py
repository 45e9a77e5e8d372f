"""Controlling-terminal helpers: size query and scoped raw mode (POSIX only)."""

import contextlib
import logging
import os
from typing import Iterator

from sshlink.errors import PtyError, RawModeError

logger = logging.getLogger(__name__)


def get_size(fd: int) -> tuple[int, int]:
    """Return (columns, rows) of the terminal attached to ``fd``.

    Raises:
        PtyError: If ``fd`` is not a terminal
    """
    try:
        size = os.get_terminal_size(fd)
    except OSError as e:
        raise PtyError(f"Failed to query terminal size: {e}") from e
    return size.columns, size.lines


@contextlib.contextmanager
def raw_mode(fd: int) -> Iterator[None]:
    """Put ``fd`` into raw mode for the duration of the block.

    The previous mode is restored on every exit path, including exceptions
    raised inside the block. When the block raises, a failed restore is only
    logged and the block's exception propagates.

    Raises:
        RawModeError: If raw mode cannot be entered, or the mode cannot be
            restored after the block completed normally
    """
    try:
        import termios
        import tty
    except ImportError as e:
        raise RawModeError("Raw terminal mode requires a POSIX terminal (termios)") from e

    try:
        saved = termios.tcgetattr(fd)
        tty.setraw(fd)
    except (termios.error, OSError) as e:
        raise RawModeError(f"Failed to enter raw mode: {e}") from e
    logger.debug("Terminal fd %d in raw mode", fd)

    def _restore() -> None:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        logger.debug("Terminal fd %d restored", fd)

    try:
        yield
    except BaseException:
        try:
            _restore()
        except (termios.error, OSError) as e:
            logger.warning("Failed to restore terminal mode on fd %d: %s", fd, e)
        raise

    try:
        _restore()
    except (termios.error, OSError) as e:
        raise RawModeError(f"Failed to restore terminal mode: {e}") from e


__all__ = ["get_size", "raw_mode"]
