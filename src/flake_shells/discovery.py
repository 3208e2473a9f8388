"""Flake descriptors and their discovery inside a workspace.

Classes
-------
- Descriptor: a validated ``flake.nix`` location

Functions
---------
- discover_flakes: find candidate ``flake.nix`` files under a root
"""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

from flake_shells.errors import PathValidationError
from flake_shells.guard import PathGuard

FLAKE_FILENAME = "flake.nix"
DEFAULT_DISCOVERY_LIMIT = 10
_EXCLUDED_DIRS: frozenset[str] = frozenset({"node_modules", ".git", ".direnv"})


class Descriptor(BaseModel):
    """One environment source: a ``flake.nix`` inside the workspace.

    Build instances with :meth:`checked`, which runs the path guard.  Once
    chosen a descriptor is never mutated; selecting another flake replaces
    it wholesale.

    Parameters
    ----------
    path:
        Absolute path of the ``flake.nix`` file.
    """

    path: Path

    model_config = {"frozen": True}

    @property
    def directory(self) -> Path:
        """The directory holding the flake; ``nix`` runs from here."""
        return self.path.parent

    @property
    def name(self) -> str:
        """Short display name: the name of the containing directory."""
        return self.directory.name

    @classmethod
    def checked(cls, candidate: str | Path, trusted_root: str | Path) -> Descriptor:
        """Validate ``candidate`` against ``trusted_root`` and wrap it.

        Raises
        ------
        PathValidationError
            If the path is outside the root, missing, or not a regular file.
        """
        guard = PathGuard(trusted_root)
        if not guard.validate(candidate):
            raise PathValidationError(str(candidate))
        return cls(path=guard.absolute(candidate))

    def relative_to(self, root: str | Path) -> str:
        """Return the flake path relative to ``root`` in POSIX form."""
        return self.path.relative_to(PathGuard(root).root).as_posix()


def discover_flakes(
    workspace_root: str | Path,
    limit: int = DEFAULT_DISCOVERY_LIMIT,
) -> list[Descriptor]:
    """Return up to ``limit`` flakes found below ``workspace_root``.

    The walk is breadth-first by directory depth and sorted by name within
    a directory, so the flake at the workspace root always comes first.
    ``node_modules`` and VCS directories are skipped, and symlinked
    directories are not followed.  Every hit passes through the path guard.
    """
    guard = PathGuard(workspace_root)
    found: list[Descriptor] = []
    for dirpath, dirnames, filenames in _walk_by_depth(guard.root):
        if FLAKE_FILENAME in filenames:
            candidate = dirpath / FLAKE_FILENAME
            if guard.validate(candidate):
                found.append(Descriptor(path=candidate))
                if len(found) >= limit:
                    break
    return found


def _walk_by_depth(root: Path):
    level = [root]
    while level:
        next_level: list[Path] = []
        for directory in level:
            try:
                with os.scandir(directory) as iterator:
                    entries = sorted(iterator, key=lambda entry: entry.name)
            except OSError:
                continue
            dirnames = [
                entry.name
                for entry in entries
                if entry.is_dir(follow_symlinks=False) and entry.name not in _EXCLUDED_DIRS
            ]
            filenames = [entry.name for entry in entries if entry.is_file(follow_symlinks=False)]
            yield directory, dirnames, filenames
            next_level.extend(directory / name for name in dirnames)
        level = next_level
