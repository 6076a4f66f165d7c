"""Wisp CLI.

Registers every command on the main group.
"""

from wisp.cli.main import cli
from wisp.cli.pull import pull
from wisp.cli.serve import serve

__all__ = [
    "cli",
    "pull",
    "serve",
]
