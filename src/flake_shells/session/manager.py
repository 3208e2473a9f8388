"""Environment session lifecycle.

Provides ``EnvironmentSessionManager``, the single owner of the activation
state.  Every transition goes through it:

- ``activate``: probe, resolve, persist, then write derived artifacts
- ``deactivate``: drop the state, clear the slots, remove artifacts
- ``restore``: rebuild the active state from durable settings after a
  restart, without running ``nix``
- ``startup``: flake detection, restore and optional auto-activation

Activation is all-or-nothing up to the durable write: a failing guard,
probe or resolution leaves the state inactive and the settings untouched.
Artifacts and tooling settings come afterwards and are best-effort.

Classes
-------
- EnvironmentSessionManager: the facade the host and the CLI drive
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path

from flake_shells.config import FLAKE_PATH_KEY, ShellsConfig
from flake_shells.discovery import Descriptor, discover_flakes
from flake_shells.errors import (
    ActivationInProgressError,
    ArtifactIOError,
    FlakeShellsError,
    InvalidTransitionError,
    NoFlakeSelectedError,
    PathValidationError,
    SettingsError,
    ToolUnavailableError,
)
from flake_shells.guard import PathGuard
from flake_shells.integration.artifacts import DerivedArtifactWriter
from flake_shells.integration.collaborators import InterpreterConfigurator, NotebookConfigurator
from flake_shells.integration.injector import InteractiveSession, SessionInjector
from flake_shells.resolver.probe import ToolProbe
from flake_shells.resolver.resolver import EnvironmentResolver
from flake_shells.resolver.transcript import RULE, Transcript
from flake_shells.session.persistence import PersistedSnapshot, PersistenceBridge
from flake_shells.session.state import ActiveSnapshot, SessionState, SessionStatus
from flake_shells.settings.base import SettingsStore

logger = logging.getLogger(__name__)


class EnvironmentSessionManager:
    """Own the flake environment state for one workspace.

    Collaborators are injectable so tests can replace the probe, resolver
    and tooling hooks; defaults are built around ``tool``.

    Parameters
    ----------
    workspace_root:
        The trusted root every flake must live under.
    store:
        Settings store shared with the host.  Holds the activation slots and
        the ``shells.*`` configuration.
    transcript:
        Diagnostic channel.  Shared with the default resolver and artifact
        writer.
    tool:
        The ``nix`` executable.
    platform:
        Override for ``sys.platform`` when picking the primary slot.
    """

    def __init__(
        self,
        workspace_root: str | Path,
        store: SettingsStore,
        *,
        transcript: Transcript | None = None,
        resolver: EnvironmentResolver | None = None,
        probe: ToolProbe | None = None,
        injector: SessionInjector | None = None,
        artifacts: DerivedArtifactWriter | None = None,
        interpreter: InterpreterConfigurator | None = None,
        notebook: NotebookConfigurator | None = None,
        tool: str = "nix",
        platform: str | None = None,
    ) -> None:
        self._guard = PathGuard(workspace_root)
        self._store = store
        self.transcript = transcript or Transcript()
        self._resolver = resolver or EnvironmentResolver(self.transcript, tool=tool)
        self._probe = probe or ToolProbe(tool)
        self._injector = injector or SessionInjector(tool)
        self._artifacts = artifacts or DerivedArtifactWriter(self._guard.root, self.transcript)
        self._interpreter = interpreter or InterpreterConfigurator(store)
        self._notebook = notebook or NotebookConfigurator(store)
        self._persistence = PersistenceBridge(store, platform=platform)

        self._state = SessionState()
        self._selected: Descriptor | None = None
        # Serialises activate/deactivate/restore; activate never waits on it.
        self._operation_lock = threading.Lock()
        # Guards reads and writes of ``_state`` itself; held only briefly.
        self._state_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def workspace_root(self) -> Path:
        return self._guard.root

    @property
    def persistence(self) -> PersistenceBridge:
        return self._persistence

    @property
    def config(self) -> ShellsConfig:
        """Current ``shells.*`` settings, re-read on every access."""
        return ShellsConfig.from_settings(self._store)

    @property
    def selected(self) -> Descriptor | None:
        return self._selected

    @property
    def status(self) -> SessionStatus:
        with self._state_lock:
            return self._state.status

    def is_active(self) -> bool:
        with self._state_lock:
            return self._state.is_active()

    def snapshot(self) -> ActiveSnapshot | None:
        """Return a consistent copy of the active state, or None."""
        with self._state_lock:
            return self._state.snapshot()

    # ------------------------------------------------------------------
    # Flake selection
    # ------------------------------------------------------------------

    def discover(self) -> list[Descriptor]:
        """Return the flakes found in the workspace."""
        return discover_flakes(self.workspace_root)

    def select(self, candidate: str | Path, *, persist: bool = True) -> Descriptor:
        """Validate ``candidate`` and make it the selected flake.

        Selection does not change the activation state; the new flake is
        used by the next ``activate``.

        Raises
        ------
        PathValidationError
            If the path escapes the workspace or is not a regular file.
        """
        descriptor = Descriptor.checked(candidate, self.workspace_root)
        self._selected = descriptor
        if persist:
            self._store.update(FLAKE_PATH_KEY, descriptor.relative_to(self.workspace_root))
        logger.debug("EnvironmentSessionManager: selected %s", descriptor.path)
        return descriptor

    def detect(self, config: ShellsConfig | None = None) -> Descriptor | None:
        """Pick the configured flake, or else the first one discovered.

        Raises
        ------
        PathValidationError
            If ``shells.flakePath`` is set but fails validation.
        """
        cfg = config or self.config
        if cfg.flake_path:
            return Descriptor.checked(cfg.flake_path, self.workspace_root)
        found = self.discover()
        return found[0] if found else None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def recover(self, config: ShellsConfig | None = None) -> bool:
        """Detect the flake and restore a durable activation, never running ``nix``.

        An invalid ``shells.flakePath`` is noted in the transcript and does
        not stop the restore; the recorded flake is used instead.

        Returns
        -------
        bool
            True if the durable slots said active and the state was restored.
        """
        cfg = config or self.config
        if self._selected is None:
            try:
                self._selected = self.detect(cfg)
            except PathValidationError as exc:
                logger.warning("Ignoring configured flake during recovery: %s", exc)
                self.transcript.append_line(f"WARNING: ignoring invalid shells.flakePath {exc.path!r}")
        if self.is_active() or not self._persistence.was_active():
            return False
        return self.restore()

    def startup(self) -> SessionStatus:
        """Rebuild state for a freshly started process.

        1. Detect the flake (configured path or first discovered).
        2. If the durable slots say the environment was active, restore it.
        3. Otherwise, when ``shells.autoActivate`` is set, activate.
        """
        config = self.config
        self.recover(config)
        if (
            not self.is_active()
            and not self._persistence.was_active()
            and config.auto_activate
            and self._selected is not None
        ):
            self.activate(self._selected, config=config)
        return self.status

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def activate(
        self,
        descriptor: Descriptor | None = None,
        *,
        config: ShellsConfig | None = None,
    ) -> dict[str, str]:
        """Resolve a flake and make its environment active.

        Parameters
        ----------
        descriptor:
            Flake to activate.  Defaults to the selected one.
        config:
            Resolution settings.  Defaults to the current ``shells.*`` keys.

        Returns
        -------
        dict[str, str]
            A copy of the resolved variable mapping.

        Raises
        ------
        ActivationInProgressError
            If another activation is still running.
        InvalidTransitionError
            If the environment is already active.
        NoFlakeSelectedError
            If no descriptor is given or selected.
        PathValidationError, ToolUnavailableError, ToolSpawnError,
        ResolutionError, ResolutionTimeoutError, SettingsError
            Activation failed; state and durable slots are unchanged.
        """
        if not self._operation_lock.acquire(blocking=False):
            raise ActivationInProgressError()
        try:
            return self._activate(descriptor, config or self.config)
        finally:
            self._operation_lock.release()

    def _activate(self, descriptor: Descriptor | None, config: ShellsConfig) -> dict[str, str]:
        if self.is_active():
            raise InvalidTransitionError("Environment is already active; exit it first.")
        target = descriptor or self._selected
        if target is None:
            raise NoFlakeSelectedError()

        self.transcript.banner("Activating Nix Flake Environment", flake=target.path)
        try:
            # Re-check: the file may have been replaced since selection.
            target = Descriptor.checked(target.path, self.workspace_root)
            if not self._probe.is_available():
                raise ToolUnavailableError(self._probe.tool)
            self.transcript.append_line("Extracting environment variables from flake...")
            variables = self._resolver.resolve(target, config)
        except FlakeShellsError as exc:
            self._record_failure(exc)
            raise

        if not variables:
            logger.warning("Flake %s resolved to an empty environment", target.name)
            self.transcript.append_line("WARNING: nix develop produced no environment variables")
        elif "PATH" not in variables:
            logger.warning("Flake %s resolved without PATH", target.name)
            self.transcript.append_line("WARNING: resolved environment has no PATH variable")

        try:
            self._persistence.write(variables, target)
        except SettingsError as exc:
            self._record_failure(exc)
            self._rollback_slots()
            raise

        with self._state_lock:
            self._state.mark_active(target, variables)
        self._selected = target

        self._configure_tooling(variables)
        self.transcript.append_line()
        self.transcript.append_line("Nix flake environment activated successfully!")
        self.transcript.append_line(RULE)
        logger.debug("EnvironmentSessionManager: activated %s", target.path)
        return dict(variables)

    def deactivate(self) -> bool:
        """Drop the active environment and every derived side effect.

        Waits for an in-flight activation to finish first.  Safe to call
        at any time; when neither the in-memory state nor the durable slots
        are active it does nothing.

        Returns
        -------
        bool
            True if anything was active (in memory or durably).

        Raises
        ------
        SettingsError
            If the activation slots could not be cleared.  The in-memory
            state is inactive regardless.
        """
        with self._operation_lock:
            with self._state_lock:
                was_active_here = self._state.mark_inactive()
            if not was_active_here and not self._persistence.was_active():
                logger.debug("EnvironmentSessionManager: deactivate while inactive, nothing to do")
                return False

            self.transcript.banner("Deactivating Nix Flake Environment")
            self.transcript.append_line("Resetting terminal environment...")
            slot_error: SettingsError | None = None
            try:
                self._persistence.clear()
            except SettingsError as exc:
                self._record_failure(exc)
                slot_error = exc

            self._reset_tooling()
            if slot_error is not None:
                raise slot_error

            self.transcript.append_line()
            self.transcript.append_line("Nix flake environment deactivated successfully!")
            self.transcript.append_line(RULE)
            logger.debug("EnvironmentSessionManager: deactivated")
            return True

    def restore(self, snapshot: PersistedSnapshot | None = None) -> bool:
        """Rebuild the active state from durable settings.

        ``nix`` is not run.  The flake recorded at activation is used when
        it still validates; otherwise the selected flake.

        Parameters
        ----------
        snapshot:
            Result of ``PersistenceBridge.read()``; read now when omitted.

        Returns
        -------
        bool
            True if the state became active.

        Raises
        ------
        InvalidTransitionError
            If the environment is already active.
        """
        with self._operation_lock:
            if self.is_active():
                raise InvalidTransitionError("Environment is already active.")
            if snapshot is None:
                snapshot = self._persistence.read()
            if snapshot is None or not snapshot.variables:
                return False

            descriptor = self._recorded_descriptor(snapshot) or self._selected
            if descriptor is None:
                logger.warning("Durable settings are active but no valid flake is available")
                self.transcript.append_line(
                    "WARNING: environment marked active but no flake could be found; not restored"
                )
                return False

            self.transcript.banner("Restoring Nix Flake Environment State", flake=descriptor.path)
            with self._state_lock:
                self._state.mark_active(descriptor, snapshot.variables, restored=True)
            self._selected = descriptor
            self.transcript.append_line("Nix flake environment state restored from workspace configuration")
            self.transcript.append_line(RULE)
            return True

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def on_session_opened(self, session: InteractiveSession) -> bool:
        """Handle a "session created" event from the host.

        The state is read once, as a snapshot, so a concurrent deactivation
        yields either a full injection or none.
        """
        return self._injector.on_new_session(session, self.snapshot())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _recorded_descriptor(self, snapshot: PersistedSnapshot) -> Descriptor | None:
        if snapshot.flake_path is None:
            return None
        if not self._guard.validate(snapshot.flake_path):
            self.transcript.append_line("Recorded flake is no longer valid; using the selected flake")
            return None
        return Descriptor(path=self._guard.absolute(snapshot.flake_path))

    def _configure_tooling(self, variables: dict[str, str]) -> None:
        try:
            artifact = self._artifacts.write_interpreter_artifact(variables)
            if artifact is not None:
                self._interpreter.configure(artifact)
        except (ArtifactIOError, SettingsError) as exc:
            self._record_best_effort("Python interpreter", exc)

        try:
            if self._notebook.configure():
                self.transcript.append_line("Configuring Jupyter settings")
            else:
                self.transcript.append_line("Jupyter not installed - skipping Jupyter configuration")
        except SettingsError as exc:
            self._record_best_effort("Jupyter", exc)

    def _reset_tooling(self) -> None:
        self.transcript.append_line("Resetting Python configuration...")
        try:
            self._interpreter.clear()
        except SettingsError as exc:
            self._record_best_effort("Python interpreter", exc)
        try:
            self._artifacts.remove()
        except ArtifactIOError as exc:
            self._record_best_effort("environment file", exc)

        self.transcript.append_line("Resetting Jupyter configuration...")
        try:
            self._notebook.clear()
        except SettingsError as exc:
            self._record_best_effort("Jupyter", exc)

    def _rollback_slots(self) -> None:
        try:
            self._persistence.clear()
        except SettingsError as exc:
            logger.warning("Could not roll back activation slots: %s", exc)
            self.transcript.append_line(f"WARNING: could not roll back activation slots: {exc}")

    def _record_failure(self, exc: FlakeShellsError) -> None:
        self.transcript.append_line()
        self.transcript.append_line(f"ERROR: {exc}")
        self.transcript.append_line(RULE)
        logger.debug("EnvironmentSessionManager: %s: %s", type(exc).__name__, exc)

    def _record_best_effort(self, what: str, exc: FlakeShellsError) -> None:
        logger.warning("Could not update %s configuration: %s", what, exc)
        self.transcript.append_line(f"WARNING: could not update {what} configuration: {exc}")

    def __repr__(self) -> str:
        return (
            f"EnvironmentSessionManager(workspace_root={str(self.workspace_root)!r}, "
            f"status={self.status.value!r})"
        )
