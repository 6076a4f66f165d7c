"""`wisp pull` command — downloads whisper.cpp weights from the HuggingFace Hub."""

from __future__ import annotations

import sys

import click

from wisp.cli.main import cli
from wisp.config.settings import get_settings

_s = get_settings()
DEFAULT_MODELS_DIR = _s.whisper.models_dir
DEFAULT_REPO = _s.whisper.models_repo


@cli.command()
@click.argument("model_name")
@click.option(
    "--models-dir",
    default=DEFAULT_MODELS_DIR,
    show_default=True,
    help="Directory where the weights will be installed.",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite an existing weights file.",
)
def pull(model_name: str, models_dir: str, force: bool) -> None:
    """Downloads a model's weights from the HuggingFace Hub."""
    from wisp._types import WhisperModel
    from wisp.exceptions import FileProcessingError, InvalidModelError
    from wisp.pipeline.models import resolve_model
    from wisp.pipeline.provisioner import ModelProvisioner

    try:
        model = resolve_model(model_name)
    except InvalidModelError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("", err=True)
        click.echo("Available models:", err=True)
        for m in WhisperModel:
            click.echo(f"  {m.value}", err=True)
        sys.exit(1)

    provisioner = ModelProvisioner(models_dir, repo_id=DEFAULT_REPO)

    if provisioner.is_installed(model) and not force:
        click.echo(f"Model '{model.value}' is already installed.")
        click.echo("Use --force to reinstall.")
        return

    click.echo(f"Downloading {model.weights_filename} from {DEFAULT_REPO}...")

    try:
        path = provisioner.download(model, force=force)
    except FileProcessingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Model installed in {path}")
    click.echo("Run 'wisp serve' to start the server.")
