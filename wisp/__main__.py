from wisp.cli import cli

cli()
