"""Main CLI command group for Wisp."""

from __future__ import annotations

import click

import wisp


@click.group()
@click.version_option(version=wisp.__version__, prog_name="wisp")
def cli() -> None:
    """Wisp — Whisper transcription API."""
