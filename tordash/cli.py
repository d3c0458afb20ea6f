import asyncio
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import AppConfig, load_config, save_config
from .logging import get_logger, set_level
from .ui.app import TordashApp


LOG = get_logger(__name__)


def _apply_overrides(
    config: AppConfig,
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    download_dir: Optional[str],
) -> AppConfig:
    if host:
        config.rpc.host = host
    if port is not None:
        config.rpc.port = port
    if user is not None:
        config.rpc.username = user
    if password is not None:
        config.rpc.password = password
    if download_dir:
        config.paths.download_dir = Path(download_dir).expanduser()
    save_config(config)
    return config


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--host", default=None, help="Transmission RPC host (default: localhost)")
@click.option("--port", default=None, type=int, help="RPC port (default: 9091)")
@click.option("--user", default=None, help="RPC username")
@click.option("--password", default=None, help="RPC password")
@click.option("--download-dir", default=None, help="Default download directory for new torrents")
@click.option("--refresh", default=None, type=float, help="Torrent list refresh interval in seconds")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for ~/.cache/tordash/debug.log",
)
@click.version_option(__version__, "-v", "--version", message="tordash %(version)s")
def main(
    host: Optional[str],
    port: Optional[int],
    user: Optional[str],
    password: Optional[str],
    download_dir: Optional[str],
    refresh: Optional[float],
    log_level: Optional[str],
):
    """Run the tordash TUI."""
    if log_level:
        set_level(log_level)
    config = _apply_overrides(load_config(), host, port, user, password, download_dir)
    if refresh is not None:
        config.ui.refresh_interval = max(0.5, refresh)

    LOG.info("Connecting to %s:%s", config.rpc.host, config.rpc.port)
    app = TordashApp(config=config)
    try:
        asyncio.run(app.run_async())
    except KeyboardInterrupt:
        LOG.info("Interrupted by user (Ctrl+C)")


if __name__ == "__main__":
    main()
