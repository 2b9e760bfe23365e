"""Lock file management to prevent concurrent pruning runs.

Two runs deleting from the same tree would race on the empty-directory
checks, so the entry point holds an exclusive lock for the whole run.

Example:
    >>> from pruner.lock import acquire_lock
    >>> with acquire_lock('tv_prune'):
    ...     prune(deletion_plan)
"""

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path


logger = logging.getLogger(__name__)


class LockError(Exception):
    """Raised when lock acquisition fails."""
    pass


@contextmanager
def acquire_lock(script_name: str, lock_dir: str = '/tmp'):
    """Acquire an exclusive, non-blocking lock for the duration of a run.

    Args:
        script_name: Name of the script (used for lock filename)
        lock_dir: Directory for lock files (default: /tmp)

    Yields:
        File handle of the lock file

    Raises:
        LockError: If another instance holds the lock or the lock file
            cannot be created
    """
    lock_file = Path(lock_dir) / f"{script_name}.lock"

    try:
        fp = open(lock_file, 'w')
    except OSError as e:
        raise LockError(f"Cannot create lock file {lock_file}: {e}")

    try:
        fcntl.flock(fp, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        fp.close()
        raise LockError(f"Another instance of {script_name} is already running")

    fp.write(str(os.getpid()))
    fp.flush()
    logger.debug(f"Lock acquired: {lock_file}")

    try:
        yield fp
    finally:
        fcntl.flock(fp, fcntl.LOCK_UN)
        fp.close()

        try:
            lock_file.unlink()
            logger.debug(f"Lock released: {lock_file}")
        except FileNotFoundError:
            pass
