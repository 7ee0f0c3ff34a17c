"""Cooperative file-presence lock guarding episode store mutations."""

import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from text2podcast.errors import FileError, LockTimeout

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 10
DEFAULT_RETRY_DELAY = 0.1


@contextmanager
def file_lock(
    lock_path: Path,
    retries: int = DEFAULT_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> Iterator[None]:
    """Context manager holding an exclusive lock marker for the duration of the block.

    The marker is created with O_EXCL, so only one holder (thread or process)
    can exist at a time. There is no expiry: a marker left behind by a
    crashed holder must be removed by hand.

    Args:
        lock_path: Path of the marker file.
        retries: Number of creation attempts before giving up.
        retry_delay: Seconds to wait between attempts.

    Raises:
        LockTimeout: If the marker still exists after all attempts.
    """
    _acquire(Path(lock_path), retries, retry_delay)
    try:
        yield
    finally:
        try:
            os.unlink(lock_path)
        except OSError as e:
            logger.warning("Impossibile rimuovere il lock %s: %s", lock_path, e)


def _acquire(lock_path: Path, retries: int, retry_delay: float) -> None:
    for attempt in range(retries):
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            if attempt < retries - 1:
                time.sleep(retry_delay)
            continue
        except OSError as e:
            raise FileError(f"Impossibile creare il lock {lock_path}: {e}", original_error=e) from e

        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)
        return

    raise LockTimeout(
        f"Lock {lock_path.name} non acquisito dopo {retries} tentativi"
    )
