"""User-facing configuration.

Classes
-------
- ShellsConfig: the ``shells.*`` settings with their defaults
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

from flake_shells.settings.base import SettingsStore

FLAKE_PATH_KEY = "shells.flakePath"
AUTO_ACTIVATE_KEY = "shells.autoActivate"
EXTRA_FLAGS_KEY = "shells.nixCommandExtraFlags"
IMPURE_KEY = "shells.impure"

logger = logging.getLogger(__name__)


def _coerce_flags(raw: Any) -> list[str]:
    """Accept a list of flags or a single flag string; ignore anything else."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if isinstance(raw, (list, tuple)):
        return [str(flag) for flag in raw]
    logger.warning("Ignoring %s: expected a list of strings, got %s", EXTRA_FLAGS_KEY, type(raw).__name__)
    return []


class ShellsConfig(BaseModel):
    """Settings that shape how a flake is resolved and when.

    Parameters
    ----------
    impure:
        Pass ``--impure`` to ``nix develop``.  Default: False.
    extra_flags:
        Opaque flags appended verbatim after the flake directory argument.
        Default: empty.
    auto_activate:
        Enter the flake environment at startup when it was not already
        active.  Default: False.
    flake_path:
        Workspace-relative path to the ``flake.nix`` to use.  ``None``
        means "first one discovered".
    """

    impure: bool = False
    extra_flags: list[str] = Field(default_factory=list)
    auto_activate: bool = False
    flake_path: str | None = None

    model_config = {"frozen": True}

    @field_validator("flake_path")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def from_settings(cls, store: SettingsStore) -> ShellsConfig:
        """Build the configuration from the ``shells.*`` keys of ``store``."""
        return cls(
            impure=bool(store.get(IMPURE_KEY, False)),
            extra_flags=_coerce_flags(store.get(EXTRA_FLAGS_KEY)),
            auto_activate=bool(store.get(AUTO_ACTIVATE_KEY, False)),
            flake_path=store.get(FLAKE_PATH_KEY),
        )

    def resolution_flags(self) -> list[str]:
        """Return the flags inserted between the flake directory and ``--command``."""
        return (["--impure"] if self.impure else []) + list(self.extra_flags)
