"""Single-run lock on the shared download directory."""

import collections.abc
import contextlib
import pathlib

import beartype
import filelock

import pwshinstall.errors

LOCK_NAME = "pwsh-install.lock"


@contextlib.contextmanager
@beartype.beartype
def acquire_lock(temp_dpath: pathlib.Path) -> collections.abc.Iterator[None]:
    """Acquire exclusive install lock. Fails immediately if the lock is held."""
    lock_fpath = temp_dpath / LOCK_NAME
    lock_fpath.parent.mkdir(parents=True, exist_ok=True)

    # World-writable so runs as root and as a regular user share one lock file.
    lock = filelock.FileLock(lock_fpath, mode=0o666)
    try:
        lock.acquire(timeout=0)
    except filelock.Timeout:
        raise pwshinstall.errors.LockError.make(lock_fpath) from None
    except OSError as err:
        raise pwshinstall.errors.LockError(
            message=f"Cannot open install lock {lock_fpath}: {err.strerror or err}",
            hint=f"Delete {lock_fpath} (it may be owned by root), or run with sudo.",
            lock_fpath=lock_fpath,
        ) from None

    try:
        yield
    finally:
        lock.release()
