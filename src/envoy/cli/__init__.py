"""
CLI module for Envoy.

Provides the command-line interface using Click.
"""

from envoy.cli.main import cli, main

__all__ = ["main", "cli"]
