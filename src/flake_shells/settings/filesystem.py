"""JSON-file settings store.

Persists settings as a single flat JSON object, the layout used by a
workspace ``.vscode/settings.json``.  The document is shared with the host
application, so every update re-reads the file and rewrites it whole while
holding an advisory lock; keys this package does not own are preserved.

Classes
-------
- JsonSettingsStore: lock-guarded settings.json store
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flake_shells.errors import SettingsError
from flake_shells.settings.base import SettingsStore
from flake_shells.settings.locking import FileLock

logger = logging.getLogger(__name__)

_LOCK_SUFFIX = ".lock"


class JsonSettingsStore(SettingsStore):
    """Settings stored in one JSON document on disk.

    Parameters
    ----------
    path:
        Location of the settings document.  It does not need to exist yet;
        its directory is created on the first write.
    lock_timeout:
        Seconds to wait for the advisory lock before failing.
    """

    def __init__(self, path: str | Path, lock_timeout: float = 10.0) -> None:
        self._path: Path = Path(path)
        self._lock_timeout = lock_timeout

    @classmethod
    def for_workspace(cls, workspace_root: str | Path) -> JsonSettingsStore:
        """Return the store for ``<workspace_root>/.vscode/settings.json``."""
        return cls(Path(workspace_root) / ".vscode" / "settings.json")

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock(self) -> FileLock:
        return FileLock(
            self._path.with_name(self._path.name + _LOCK_SUFFIX),
            timeout=self._lock_timeout,
        )

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read settings {self._path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SettingsError(f"Settings file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {self._path} must contain a JSON object")
        return data

    def _write_document(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot write settings {self._path}: {exc}") from exc

    # ------------------------------------------------------------------
    # SettingsStore interface
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_document().get(key, default)

    def update(self, key: str, value: Any) -> None:
        """Read-modify-write ``key`` under the advisory lock.

        The file is left untouched when the value does not change, so
        clearing an already-clear key never rewrites the document.
        """
        try:
            with self._lock():
                data = self._read_document()
                if value is None:
                    if key not in data:
                        return
                    del data[key]
                else:
                    if data.get(key) == value:
                        return
                    data[key] = value
                self._write_document(data)
        except TimeoutError as exc:
            raise SettingsError(str(exc)) from exc
        logger.debug("JsonSettingsStore: updated %r in %s", key, self._path)

    def keys(self) -> list[str]:
        return list(self._read_document())

    def __repr__(self) -> str:
        return f"JsonSettingsStore(path={str(self._path)!r})"
