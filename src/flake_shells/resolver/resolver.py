"""Flake environment resolution.

Runs ``nix develop <dir> --command env`` for a descriptor and turns its
output into a variable mapping.

The child process gets an argument vector, never a shell string, so the
flake path cannot inject anything whatever characters it contains.  stdout
and stderr are drained by two reader threads: every line goes to the
transcript the moment it arrives, and each stream is also buffered so that
stdout can be parsed once the process has exited successfully.

Classes
-------
- EnvironmentResolver: spawn, observe, wait, parse

Functions
---------
- parse_env_output: ``KEY=VALUE`` lines to a dict, last duplicate wins
"""
from __future__ import annotations

import logging
import re
import subprocess
import threading
from typing import IO

from flake_shells.config import ShellsConfig
from flake_shells.discovery import Descriptor
from flake_shells.errors import ResolutionError, ResolutionTimeoutError, ToolSpawnError
from flake_shells.resolver.transcript import RULE, Transcript

logger = logging.getLogger(__name__)

DEFAULT_RESOLVE_TIMEOUT: float = 60.0

_ENV_LINE = re.compile(r"([^=]+)=(.*)")
_STDERR_PREFIX = "[STDERR] "
# How long to wait for the reader threads once the process is gone.
_READER_JOIN_SECONDS = 5.0


def parse_env_output(text: str) -> dict[str, str]:
    """Parse ``env`` output into a mapping.

    Each line is matched against ``KEY=VALUE`` where the key is one or more
    non-``=`` characters and the value is the rest of the line, embedded
    ``=`` included.  Lines that do not match are skipped.  A key seen more
    than once keeps its last value.

    Parameters
    ----------
    text:
        Complete stdout of the ``env`` command.

    Returns
    -------
    dict[str, str]
        Variables in first-seen order.
    """
    variables: dict[str, str] = {}
    for line in text.split("\n"):
        match = _ENV_LINE.fullmatch(line)
        if match is None:
            if line:
                logger.debug("parse_env_output: skipped line without KEY=VALUE")
            continue
        variables[match.group(1)] = match.group(2)
    return variables


class EnvironmentResolver:
    """Resolve a descriptor into a concrete variable mapping.

    Parameters
    ----------
    transcript:
        Diagnostic channel receiving the command line, live output and the
        outcome.  A private transcript is created when omitted.
    tool:
        The ``nix`` executable name or path.
    timeout:
        Wall-clock bound in seconds; the child is killed when it elapses.
    """

    def __init__(
        self,
        transcript: Transcript | None = None,
        tool: str = "nix",
        timeout: float = DEFAULT_RESOLVE_TIMEOUT,
    ) -> None:
        self.transcript = transcript or Transcript()
        self.tool = tool
        self.timeout = timeout

    def build_command(self, descriptor: Descriptor, config: ShellsConfig | None = None) -> list[str]:
        """Return the argument vector for resolving ``descriptor``."""
        cfg = config or ShellsConfig()
        return [
            self.tool,
            "develop",
            str(descriptor.directory),
            *cfg.resolution_flags(),
            "--command",
            "env",
        ]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, descriptor: Descriptor, config: ShellsConfig | None = None) -> dict[str, str]:
        """Run the tool for ``descriptor`` and return the parsed variables.

        Parameters
        ----------
        descriptor:
            The validated flake to resolve.
        config:
            Supplies ``--impure`` and the extra flags.

        Returns
        -------
        dict[str, str]
            The environment printed by ``env`` inside the dev shell.

        Raises
        ------
        ToolSpawnError
            If the process cannot be started.
        ResolutionTimeoutError
            If the process outlives ``timeout``; it is killed first.
        ResolutionError
            If the process exits non-zero.
        """
        argv = self.build_command(descriptor, config)
        self.transcript.timestamped(f"Running: {' '.join(argv)}")
        self.transcript.append_line(RULE)

        try:
            proc = subprocess.Popen(
                argv,
                cwd=descriptor.directory,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            self.transcript.timestamped(f"ERROR: {exc}")
            self.transcript.append_line()
            raise ToolSpawnError(self.tool, exc) from exc

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        readers = [
            self._start_reader(proc.stdout, stdout_lines, ""),
            self._start_reader(proc.stderr, stderr_lines, _STDERR_PREFIX),
        ]

        try:
            exit_code = proc.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            self._join(readers)
            self.transcript.append_line(RULE)
            self.transcript.timestamped(f"ERROR: process killed after {self.timeout:g} seconds")
            self.transcript.append_line()
            raise ResolutionTimeoutError(self.timeout) from None

        self._join(readers)
        stdout = "".join(stdout_lines)
        stderr = "".join(stderr_lines)

        self.transcript.append_line(RULE)
        self.transcript.timestamped(f"Process exited with code: {exit_code}")

        if exit_code != 0:
            self.transcript.append_line(f"ERROR: nix develop failed with code {exit_code}")
            if stderr:
                self.transcript.append_line("STDERR output:")
                self.transcript.append_line(stderr.rstrip("\n"))
            self.transcript.append_line()
            raise ResolutionError(exit_code, stderr)

        variables = parse_env_output(stdout)
        self.transcript.append_line(f"Successfully extracted {len(variables)} environment variables")
        self.transcript.append_line()
        logger.debug("EnvironmentResolver: %d variables from %s", len(variables), descriptor.path)
        return variables

    # ------------------------------------------------------------------
    # Stream plumbing
    # ------------------------------------------------------------------

    def _start_reader(self, stream: IO[bytes] | None, sink: list[str], prefix: str) -> threading.Thread:
        thread = threading.Thread(
            target=self._pump,
            args=(stream, sink, prefix),
            daemon=True,
        )
        thread.start()
        return thread

    def _pump(self, stream: IO[bytes] | None, sink: list[str], prefix: str) -> None:
        if stream is None:
            return
        with stream:
            for raw in iter(stream.readline, b""):
                text = raw.decode("utf-8", errors="replace")
                sink.append(text)
                self.transcript.append(prefix + text)

    @staticmethod
    def _join(readers: list[threading.Thread]) -> None:
        for reader in readers:
            reader.join(_READER_JOIN_SECONDS)

    def __repr__(self) -> str:
        return f"EnvironmentResolver(tool={self.tool!r}, timeout={self.timeout!r})"
