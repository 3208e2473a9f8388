"""Advisory file lock for settings shared with a running host.

The lock is a sentinel file created with exclusive-create semantics next to
the settings document.  It only protects against other cooperating writers
(another ``flake-shells`` process); it is advisory.

The holder writes its process id into the sentinel.  A sentinel left behind
by a process that no longer exists is removed and the acquisition retried,
so a crash mid-write never blocks later updates.  A sentinel without a
readable process id is treated the same once it is older than
``stale_after``.

Classes
-------
FileLock
    Holds ``<path>.lock`` for the duration of a read-modify-write cycle.
"""
from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import IO

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS: float = 0.05


def _process_alive(pid: int) -> bool | None:
    """Return whether ``pid`` names a live process, or None if unknown."""
    if os.name == "nt":
        # os.kill terminates the target on Windows.
        return None
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return None
    return True


class FileLock:
    """Exclusive-create advisory lock.

    Parameters
    ----------
    lock_path:
        Path of the sentinel file.  Created on acquisition, deleted on
        release.  Its parent directory is created if missing.
    timeout:
        Seconds to wait before raising :class:`TimeoutError`.
    stale_after:
        Age in seconds after which a sentinel with no live, known holder is
        broken.  Defaults to ``timeout``.
    """

    def __init__(
        self,
        lock_path: str | Path,
        timeout: float = 10.0,
        stale_after: float | None = None,
    ) -> None:
        self._lock_path: Path = Path(lock_path)
        self._timeout: float = timeout
        self._stale_after: float = timeout if stale_after is None else stale_after
        self._lock_file: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._lock_path

    @property
    def held(self) -> bool:
        """True while this instance owns the sentinel file."""
        return self._lock_file is not None

    def holder_pid(self) -> int | None:
        """Process id recorded in the sentinel, or None if absent or unreadable."""
        try:
            text = self._lock_path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return int(text) if text.isdigit() else None

    def is_stale(self) -> bool:
        """True if the sentinel exists and its holder is gone."""
        try:
            mtime = self._lock_path.stat().st_mtime
        except OSError:
            return False
        pid = self.holder_pid()
        alive = _process_alive(pid) if pid is not None else None
        if alive is not None:
            return not alive
        return time.time() - mtime >= self._stale_after

    def acquire(self) -> None:
        """Block until the sentinel file is created by us or time runs out.

        Raises
        ------
        TimeoutError
            If a live writer holds the lock for longer than ``timeout``.
        """
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self._timeout
        while True:
            try:
                handle = open(self._lock_path, "x", encoding="utf-8")
            except FileExistsError:
                if self.is_stale():
                    logger.warning(
                        "Removing stale lock %s (holder %s)", self._lock_path, self.holder_pid()
                    )
                    self._lock_path.unlink(missing_ok=True)
                    continue
                if time.monotonic() >= deadline:
                    raise TimeoutError(
                        f"Could not acquire lock {self._lock_path} within {self._timeout}s"
                    ) from None
                time.sleep(_POLL_INTERVAL_SECONDS)
                continue
            handle.write(str(os.getpid()))
            handle.flush()
            self._lock_file = handle
            return

    def release(self) -> None:
        """Close and delete the sentinel file.  Safe to call when not held."""
        if self._lock_file is None:
            return
        self._lock_file.close()
        self._lock_file = None
        self._lock_path.unlink(missing_ok=True)

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.release()
