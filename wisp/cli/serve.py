"""`wisp serve` command — starts the transcription API server."""

from __future__ import annotations

import asyncio
import signal

import click

from wisp.cli.main import cli
from wisp.config.settings import get_settings
from wisp.logging import configure_logging, get_logger

logger = get_logger("cli.serve")

_s = get_settings()
DEFAULT_HOST = _s.server.host
DEFAULT_PORT = _s.server.port


@cli.command()
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="API Server host.")
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True, help="HTTP port.")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Log format.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    show_default=True,
    help="Log level.",
)
def serve(host: str, port: int, log_format: str, log_level: str) -> None:
    """Starts the Wisp API Server."""
    configure_logging(log_format=log_format, level=log_level)
    asyncio.run(_serve(host, port))


async def _serve(host: str, port: int) -> None:
    """Main async flow for serve."""
    import uvicorn

    from wisp.server.app import create_app

    settings = get_settings()
    app = create_app(settings=settings)

    logger.info(
        "server_starting",
        host=host,
        port=port,
        engine=settings.whisper.engine_binary,
        models_dir=str(settings.whisper.models_path),
        token_limit=settings.rate_limit.token_limit,
        queue_limit=settings.rate_limit.queue_limit,
    )

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(s: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=s.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _handle_signal, sig)

    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    server_task = asyncio.create_task(server.serve())

    # Wait for shutdown signal or server to stop
    _done, _ = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    if not server_task.done():
        server.should_exit = True
        await server_task

    logger.info("server_stopped")
