"""Workspace containment check for flake paths.

Functions
---------
- validate_flake_path: True when a candidate is a regular file inside a root

Classes
-------
- PathGuard: the same check bound to one trusted root
"""
from __future__ import annotations

import os
import stat
from pathlib import Path


def _normalize(path: str | Path, base: str | Path | None = None) -> str:
    """Return an absolute, lexically normalised path without resolving symlinks."""
    raw = os.fspath(path)
    if base is not None and not os.path.isabs(raw):
        raw = os.path.join(os.fspath(base), raw)
    return os.path.normpath(os.path.abspath(raw))


def validate_flake_path(candidate: str | Path, trusted_root: str | Path) -> bool:
    """Return True if ``candidate`` is a regular file lying inside ``trusted_root``.

    A relative ``candidate`` is interpreted relative to ``trusted_root``.
    Containment is decided on whole path components, so ``/ws2/flake.nix``
    is not inside ``/ws``.  The file type comes from ``lstat``: a symlink is
    never accepted, whatever it points at.

    Parameters
    ----------
    candidate:
        Path proposed by configuration or user input.
    trusted_root:
        The workspace directory the flake must stay within.

    Returns
    -------
    bool
        False on any containment failure or ``OSError``; this function never
        raises.
    """
    try:
        root = _normalize(trusted_root)
        target = _normalize(candidate, base=root)
    except (TypeError, ValueError):
        return False

    prefix = root if root.endswith(os.sep) else root + os.sep
    if not target.startswith(prefix):
        return False

    try:
        mode = os.lstat(target).st_mode
    except (OSError, ValueError):
        return False
    return stat.S_ISREG(mode)


class PathGuard:
    """Validate flake paths against a fixed trusted root.

    Parameters
    ----------
    trusted_root:
        The workspace directory.
    """

    def __init__(self, trusted_root: str | Path) -> None:
        self._root = Path(_normalize(trusted_root))

    @property
    def root(self) -> Path:
        return self._root

    def validate(self, candidate: str | Path) -> bool:
        """Return True if ``candidate`` may be used as a flake descriptor."""
        return validate_flake_path(candidate, self._root)

    def absolute(self, candidate: str | Path) -> Path:
        """Return ``candidate`` as a normalised absolute path under the root."""
        return Path(_normalize(candidate, base=self._root))

    def __repr__(self) -> str:
        return f"PathGuard(root={str(self._root)!r})"
