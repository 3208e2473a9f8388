"""Derived artifacts written while the environment is active.

When the resolved ``PATH`` contains a Python interpreter, a filtered
``KEY=VALUE`` dump is written to ``<workspace>/.vscode/.env.nix`` for the
Python tooling to load.  The file should be ignored by version control.

Classes
-------
- InterpreterArtifact: interpreter path plus env file location
- DerivedArtifactWriter: locate the interpreter, write and remove the env file

Functions
---------
- locate_interpreter: first ``python3``/``python`` on a PATH value
- filter_python_env: keep only the allow-listed variables
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from flake_shells.errors import ArtifactIOError
from flake_shells.resolver.transcript import Transcript

logger = logging.getLogger(__name__)

ENV_FILE_RELATIVE = Path(".vscode") / ".env.nix"
ENV_FILE_SETTING = "${workspaceFolder}/.vscode/.env.nix"

_INTERPRETER_NAMES: tuple[str, ...] = ("python3", "python")
_EXACT_KEYS: frozenset[str] = frozenset({"PATH", "LD_LIBRARY_PATH", "PYTHONPATH"})
_KEY_PREFIXES: tuple[str, ...] = ("JUPYTER", "PYTHON")


@dataclass(frozen=True)
class InterpreterArtifact:
    """Result of a successful artifact write."""

    interpreter: Path
    env_file: Path


def _is_executable_file(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def locate_interpreter(path_value: str | None) -> Path | None:
    """Return the interpreter found in the first qualifying PATH entry.

    Entries are scanned in order.  An entry qualifies if it contains an
    executable ``python3`` or ``python``; within that entry ``python3`` is
    preferred.  Empty entries are ignored.
    """
    if not path_value:
        return None
    for entry in path_value.split(os.pathsep):
        if not entry:
            continue
        directory = Path(entry)
        for name in _INTERPRETER_NAMES:
            candidate = directory / name
            if _is_executable_file(candidate):
                return candidate
    return None


def filter_python_env(variables: dict[str, str]) -> dict[str, str]:
    """Keep ``PATH``, ``LD_LIBRARY_PATH``, ``PYTHONPATH`` and ``JUPYTER*``/``PYTHON*`` keys."""
    return {
        key: value
        for key, value in variables.items()
        if key in _EXACT_KEYS or key.startswith(_KEY_PREFIXES)
    }


class DerivedArtifactWriter:
    """Write and remove the env file consumed by the Python tooling.

    Parameters
    ----------
    workspace_root:
        Workspace directory; the env file lives at ``.vscode/.env.nix``
        below it.
    transcript:
        Diagnostic channel for "no interpreter found" and file notices.
    """

    def __init__(self, workspace_root: str | Path, transcript: Transcript | None = None) -> None:
        self._workspace_root = Path(workspace_root)
        self._transcript = transcript or Transcript()

    @property
    def env_file(self) -> Path:
        return self._workspace_root / ENV_FILE_RELATIVE

    def write_interpreter_artifact(self, variables: dict[str, str]) -> InterpreterArtifact | None:
        """Locate an interpreter in ``variables["PATH"]`` and write the env file.

        Returns
        -------
        InterpreterArtifact | None
            None when no interpreter is on the resolved PATH; nothing is
            written in that case.

        Raises
        ------
        ArtifactIOError
            If the directory or file cannot be written.
        """
        interpreter = locate_interpreter(variables.get("PATH"))
        if interpreter is None:
            self._transcript.append_line("No Python interpreter found in flake environment")
            return None

        self._transcript.append_line(f"Configuring Python interpreter: {interpreter}")
        content = "\n".join(f"{key}={value}" for key, value in filter_python_env(variables).items())
        target = self.env_file
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ArtifactIOError(str(target), exc) from exc

        self._transcript.append_line(f"Created environment file: {target}")
        logger.debug("DerivedArtifactWriter: wrote %s", target)
        return InterpreterArtifact(interpreter=interpreter, env_file=target)

    def remove(self, path: str | Path | None = None) -> bool:
        """Delete the env file (or ``path``); absence is not an error.

        Returns
        -------
        bool
            True if a file was removed.

        Raises
        ------
        ArtifactIOError
            If the file exists but cannot be removed.
        """
        target = Path(path) if path is not None else self.env_file
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise ArtifactIOError(str(target), exc) from exc
        self._transcript.append_line(f"Removed environment file: {target}")
        return True

    def __repr__(self) -> str:
        return f"DerivedArtifactWriter(env_file={str(self.env_file)!r})"
