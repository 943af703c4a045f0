"""Application entrypoint."""

from __future__ import annotations

import asyncio
import sys

import httpx

from stackoverflow_plugin.config import get_settings
from stackoverflow_plugin.launcher.plugin import StackOverflowPlugin
from stackoverflow_plugin.launcher.protocol import StdoutSink, iter_requests, open_stdin_reader
from stackoverflow_plugin.logging import configure_logging, logger
from stackoverflow_plugin.services.exceptions import ConfigurationError
from stackoverflow_plugin.services.stackexchange import StackExchangeClient


async def main() -> int:
    configure_logging()
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        return 1
    configure_logging(settings.log_level, settings.log_file)

    async with httpx.AsyncClient(headers={"Accept": "application/json"}) as http_client:
        plugin = StackOverflowPlugin(
            StackExchangeClient(http_client, settings),
            StdoutSink(),
            query_prefix=settings.query_prefix,
            description_mode=settings.description_mode,
        )
        reader = await open_stdin_reader()
        logger.info("plugin_starting", plugin=plugin.name, site=settings.site)
        await plugin.run(iter_requests(reader))
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
