"""Environment injection into newly opened interactive sessions.

Hosts normally hand the persisted variables to every new terminal
themselves.  Injection is the fallback for sessions that do not inherit
them: the session is told to re-derive the dev shell inline with
``nix print-dev-env``.  The inline result may legitimately differ from the
mapping captured at activation if the flake's inputs changed since.

Classes
-------
- InteractiveSession: protocol for anything that accepts typed text
- StreamSession: session writing to a text stream (used by the CLI)
- SessionInjector: renders and sends the injection text

Functions
---------
- shell_quote: single-quote a path for POSIX shells
- render_injection: the comment line and the eval line
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

if TYPE_CHECKING:
    from flake_shells.session.state import ActiveSnapshot

logger = logging.getLogger(__name__)

INJECTION_COMMENT = "# Entering Nix flake environment"


@runtime_checkable
class InteractiveSession(Protocol):
    """A session that accepts text as if typed by the user."""

    def send_text(self, text: str, add_newline: bool = True) -> None: ...


class StreamSession:
    """An :class:`InteractiveSession` that writes to a text stream.

    Parameters
    ----------
    stream:
        Destination, e.g. ``sys.stdout`` for ``eval "$(flake-shells hook)"``.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def send_text(self, text: str, add_newline: bool = True) -> None:
        self._stream.write(text + ("\n" if add_newline else ""))
        self._stream.flush()


def shell_quote(value: str) -> str:
    """Wrap ``value`` in single quotes, escaping each ``'`` as ``'\\''``."""
    return "'" + value.replace("'", "'\\''") + "'"


def render_injection(flake_dir: str | Path, tool: str = "nix") -> list[str]:
    """Return the two lines sent to a new session.

    Example
    -------
    For the directory ``/tmp/a'b`` the command line is::

        eval "$(nix print-dev-env '/tmp/a'\\''b')"
    """
    return [
        INJECTION_COMMENT,
        f'eval "$({tool} print-dev-env {shell_quote(str(flake_dir))})"',
    ]


class SessionInjector:
    """Send the injection text to sessions opened while the environment is active.

    Parameters
    ----------
    tool:
        The ``nix`` executable named in the eval line.
    """

    def __init__(self, tool: str = "nix") -> None:
        self.tool = tool

    def on_new_session(self, session: InteractiveSession, snapshot: ActiveSnapshot | None) -> bool:
        """Inject into ``session`` if ``snapshot`` describes an active environment.

        ``snapshot`` must be taken once, at dispatch time.  With ``None`` the
        session is left untouched.

        Returns
        -------
        bool
            True if the injection text was sent.
        """
        if snapshot is None:
            return False
        comment, command = render_injection(snapshot.descriptor.directory, self.tool)
        session.send_text(comment, add_newline=True)
        session.send_text(command, add_newline=True)
        logger.debug("SessionInjector: injected flake %r", snapshot.descriptor.name)
        return True

    def __repr__(self) -> str:
        return f"SessionInjector(tool={self.tool!r})"
