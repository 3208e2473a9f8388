"""Fast availability check for the resolution tool."""
from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT: float = 5.0


def _default_locator() -> str:
    return "where" if os.name == "nt" else "which"


class ToolProbe:
    """Check whether ``tool`` can be located before running it for real.

    Runs ``[locator, tool]`` as an argument vector with a hard timeout.  The
    full resolution has a much longer bound, so failing here first keeps
    "nix is not installed" fast.

    Parameters
    ----------
    tool:
        Executable name or path to look for.  Default: ``"nix"``.
    locator:
        The locate-executable command.  Default: ``which`` (``where`` on
        Windows).
    """

    def __init__(self, tool: str = "nix", locator: str | None = None) -> None:
        self.tool = tool
        self.locator = locator or _default_locator()

    def is_available(self, timeout: float = DEFAULT_PROBE_TIMEOUT) -> bool:
        """Return True if the locator exits 0 within ``timeout`` seconds."""
        try:
            result = subprocess.run(
                [self.locator, self.tool],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug("ToolProbe: %r timed out after %ss", self.tool, timeout)
            return False
        except OSError as exc:
            logger.debug("ToolProbe: could not run %r: %s", self.locator, exc)
            return False
        return result.returncode == 0

    def __repr__(self) -> str:
        return f"ToolProbe(tool={self.tool!r}, locator={self.locator!r})"
