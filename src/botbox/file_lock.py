"""Cross-platform lock file for sync runs.

Two `botbox sync` (or `init`) invocations against the same project would
race on the config file in the middle of a migration batch. Both commands
hold an exclusive lock on `<managed-dir>/.sync.lock` for their whole run.

Public API:
    acquire_file_lock: Context manager holding an exclusive lock on a file
    LockTimeoutError: Raised when the lock cannot be acquired in time

Example:
    >>> from pathlib import Path
    >>> with acquire_file_lock(Path(".agents/botbox/.sync.lock"), operation="sync"):
    ...     pass  # only this process syncs the project

Backoff: 0.1s -> 0.2s -> 0.4s -> 0.8s -> 1.6s -> 2.0s (capped)
"""

import logging
import platform
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from botbox.errors import BotboxError

_system = platform.system()
if TYPE_CHECKING or _system == "Windows":
    import msvcrt  # type: ignore[import-not-found]
if TYPE_CHECKING or _system != "Windows":
    import fcntl  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".sync.lock"

__all__ = ["LOCK_FILE_NAME", "LockTimeoutError", "acquire_file_lock"]


class LockTimeoutError(BotboxError):
    """Raised when the lock cannot be acquired within the timeout."""


@contextmanager
def acquire_file_lock(
    file_path: Path,
    timeout: float = 5.0,
    operation: str = "sync",
) -> Generator[None, None, None]:
    """Hold an exclusive lock on a file for the duration of the block.

    The lock file and its parent directory are created if missing. Uses
    fcntl.flock() on POSIX and msvcrt.locking() on Windows.

    Args:
        file_path: Lock file path
        timeout: Maximum seconds to wait for the lock
        operation: Description used in the timeout message

    Raises:
        LockTimeoutError: If another process holds the lock past the timeout
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, "a") as file_handle:
        try:
            _acquire_lock_with_backoff(file_handle, file_path, timeout, operation)
            yield
        finally:
            _release_lock(file_handle)


def _acquire_lock_with_backoff(
    file_handle: TextIO,
    file_path: Path,
    timeout: float,
    operation: str,
) -> None:
    start_time = time.monotonic()
    delay = 0.1
    attempt = 0

    while True:
        elapsed = time.monotonic() - start_time
        if elapsed >= timeout:
            raise LockTimeoutError(
                f"Could not lock {file_path} for {operation} after {timeout} seconds. "
                "Another botbox process is probably running in this project."
            )

        try:
            if _system == "Windows":
                msvcrt.locking(file_handle.fileno(), msvcrt.LK_NBLCK, 1)  # type: ignore[attr-defined]
            else:
                fcntl.flock(file_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            if attempt:
                logger.debug(f"Acquired {file_path} after {attempt} retries")
            return

        except (BlockingIOError, PermissionError) as e:
            # A first-attempt PermissionError on POSIX is a real permission problem
            if isinstance(e, PermissionError) and attempt == 0 and _system != "Windows":
                raise

            sleep_time = min(delay, timeout - elapsed)
            if sleep_time > 0:
                time.sleep(sleep_time)
            delay = min(delay * 2, 2.0)
            attempt += 1


def _release_lock(file_handle: TextIO) -> None:
    try:
        if _system == "Windows":
            msvcrt.locking(file_handle.fileno(), msvcrt.LK_UNLCK, 1)  # type: ignore[attr-defined]
        else:
            fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)
    except OSError as e:
        logger.debug(f"Error during lock cleanup: {e}")
