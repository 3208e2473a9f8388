"""Diagnostic transcript.

The transcript is the full, ordered record of what happened during each
activation: the command line, every stdout/stderr line as it arrived, exit
codes and the outcome.  User-facing messages stay short and point here.

Classes
-------
- Transcript: thread-safe ordered text buffer, optionally mirrored to a file
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

RULE = "=" * 80
BANNER_RULE = "*" * 80

DEFAULT_LOG_MAX_BYTES = 512 * 1024


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Transcript:
    """Append-only diagnostic channel.

    Appends from several threads are serialised by a lock, so the recorded
    order is the order in which the text arrived.

    Parameters
    ----------
    log_path:
        When given, every append is also written to this file.  The parent
        directory is created on first write.
    max_log_bytes:
        Size at which the log file is rotated to ``<name>.1`` before the
        next append.  One previous generation is kept.
    """

    def __init__(
        self,
        log_path: str | Path | None = None,
        max_log_bytes: int = DEFAULT_LOG_MAX_BYTES,
    ) -> None:
        self._chunks: list[str] = []
        self._lock = threading.Lock()
        self._log_path: Path | None = Path(log_path) if log_path is not None else None
        self._max_log_bytes = max_log_bytes

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def append(self, text: str) -> None:
        """Record ``text`` exactly as given (no newline added)."""
        with self._lock:
            self._chunks.append(text)
            if self._log_path is not None:
                self._mirror(self._log_path, text, self._max_log_bytes)

    def append_line(self, line: str = "") -> None:
        """Record ``line`` followed by a newline."""
        self.append(line + "\n")

    def banner(self, title: str, **fields: object) -> None:
        """Record a starred banner with ``title``, ``fields`` and a timestamp."""
        lines = ["", BANNER_RULE, title]
        lines.extend(f"{name.replace('_', ' ').capitalize()}: {value}" for name, value in fields.items())
        lines.append(f"Time: {_now()}")
        lines.append(BANNER_RULE)
        lines.append("")
        self.append("\n".join(lines) + "\n")

    def timestamped(self, message: str) -> None:
        """Record ``message`` prefixed with the current UTC time."""
        self.append_line(f"[{_now()}] {message}")

    @staticmethod
    def backup_path(path: Path) -> Path:
        return path.with_name(path.name + ".1")

    @classmethod
    def _mirror(cls, path: Path, text: str, max_bytes: int) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            size = path.stat().st_size if path.exists() else 0
            if size and size + len(text.encode("utf-8")) > max_bytes:
                path.replace(cls.backup_path(path))
            with path.open("a", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as exc:
            logger.warning("Transcript: cannot write %s: %s", path, exc)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def text(self) -> str:
        """Return everything recorded by this instance."""
        with self._lock:
            return "".join(self._chunks)

    def lines(self) -> list[str]:
        return self.text().splitlines()

    def read_log(self) -> str:
        """Return the mirrored log file contents, or ``""`` if there is none."""
        if self._log_path is None or not self._log_path.exists():
            return ""
        return self._log_path.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"Transcript(chunks={len(self._chunks)}, log_path={self._log_path!r})"
