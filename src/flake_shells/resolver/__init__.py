"""Flake resolution subpackage.

Everything needed to turn a ``flake.nix`` into a variable mapping: a fast
availability probe, the resolver that runs ``nix develop`` and parses its
output, and the transcript that records what happened.

Public surface
--------------
- ToolProbe: ``which nix`` with a short timeout
- EnvironmentResolver: run ``nix develop <dir> --command env``
- parse_env_output: ``KEY=VALUE`` stream to dict
- Transcript: ordered diagnostic channel
"""
from __future__ import annotations

from flake_shells.resolver.probe import ToolProbe
from flake_shells.resolver.resolver import EnvironmentResolver, parse_env_output
from flake_shells.resolver.transcript import Transcript

__all__ = [
    "EnvironmentResolver",
    "ToolProbe",
    "Transcript",
    "parse_env_output",
]
