"""CLI entry point."""

import asyncio
import os
import sys

from common.logging_config import setup_logging
from cli.config import Config, default_config_path
from cli.repl import repl_loop
from cli.utils import ProgressPrinter
from uploader.catalog import Catalog
from uploader.orchestrator import UploadOrchestrator
from uploader.remote_client import RemoteStorageClient


def build_orchestrator(config: Config) -> UploadOrchestrator:
    """Wire catalog, remote client and event printer together."""
    catalog = Catalog.load(config.get_catalog_path())
    client = RemoteStorageClient(
        token=catalog.token,
        base_url=config.get_base_url(),
        timeout=config.get_timeout(),
    )
    return UploadOrchestrator(
        catalog,
        client,
        emit=ProgressPrinter(),
        rate_limit_max_attempts=config.get_rate_limit_max_attempts(),
    )


async def run(config: Config) -> None:
    orchestrator = build_orchestrator(config)
    try:
        await repl_loop(orchestrator)
    finally:
        await orchestrator.shutdown()


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_logging('cli', log_level=log_level, extra_loggers=('uploader',))

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    logger.info("CLI starting...")
    try:
        asyncio.run(run(Config(default_config_path())))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
