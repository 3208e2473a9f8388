"""Command-line interface for flake-shells."""
