"""Settings written for per-language tooling.

Classes
-------
- InterpreterConfigurator: ``python.defaultInterpreterPath`` / ``python.envFile``
- NotebookConfigurator: ``jupyter.notebookFileRoot``, only when Jupyter is present
"""
from __future__ import annotations

import logging
import shutil
from collections.abc import Callable

from flake_shells.integration.artifacts import ENV_FILE_SETTING, InterpreterArtifact
from flake_shells.settings.base import SettingsStore

logger = logging.getLogger(__name__)

INTERPRETER_KEY = "python.defaultInterpreterPath"
ENV_FILE_KEY = "python.envFile"
NOTEBOOK_ROOT_KEY = "jupyter.notebookFileRoot"
NOTEBOOK_ROOT_VALUE = "${workspaceFolder}"


class InterpreterConfigurator:
    """Point the Python tooling at the flake's interpreter and env file."""

    def __init__(self, store: SettingsStore) -> None:
        self._store = store

    def configure(self, artifact: InterpreterArtifact) -> None:
        self._store.update(INTERPRETER_KEY, str(artifact.interpreter))
        self._store.update(ENV_FILE_KEY, ENV_FILE_SETTING)

    def clear(self) -> None:
        self._store.update(INTERPRETER_KEY, None)
        self._store.update(ENV_FILE_KEY, None)


def _jupyter_on_path() -> bool:
    return shutil.which("jupyter") is not None


class NotebookConfigurator:
    """Configure the notebook subsystem if, and only if, it is present.

    Parameters
    ----------
    store:
        Settings store shared with the host.
    presence:
        Capability query.  Defaults to looking for ``jupyter`` on PATH.
    """

    def __init__(self, store: SettingsStore, presence: Callable[[], bool] | None = None) -> None:
        self._store = store
        self._presence = presence or _jupyter_on_path

    def is_present(self) -> bool:
        return bool(self._presence())

    def configure(self) -> bool:
        """Set the notebook root; return False when the subsystem is absent."""
        if not self.is_present():
            logger.debug("NotebookConfigurator: notebook subsystem absent, skipping")
            return False
        self._store.update(NOTEBOOK_ROOT_KEY, NOTEBOOK_ROOT_VALUE)
        return True

    def clear(self) -> None:
        # Cleared unconditionally: the subsystem may have been removed since.
        self._store.update(NOTEBOOK_ROOT_KEY, None)
