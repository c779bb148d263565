"""
Entry point.

Runs the Discord bot and the FastAPI web server concurrently on the same
asyncio event loop. The web server only exposes health/status endpoints;
the bot maintains the Discord WebSocket connection and handles the Backup
context menu.

Usage:
    python3 -m discord_immich.main
"""

import asyncio
import logging
import os
import sys

import discord
import uvicorn

from discord_immich.api import create_app
from discord_immich.bot import create_bot
from discord_immich.config import ConfigurationError, load_settings
from discord_immich.services.immich import ImmichClient, ImmichError
from discord_immich.services.transfer import ImmichTransferrer

log = logging.getLogger(__name__)


async def main():
    try:
        settings = load_settings()
    except ConfigurationError as e:
        for problem in e.problems:
            log.critical("configuration: %s", problem)
        sys.exit(1)

    os.makedirs(settings.CACHE_PATH, exist_ok=True)

    # --- Shared services ---
    immich_client = ImmichClient(
        settings.IMMICH_URL,
        settings.IMMICH_API_KEY,
        device_id=settings.IMMICH_DEVICE_ID,
    )
    try:
        user = await immich_client.get_current_user()
        log.info("immich reachable at %s as %s", immich_client.endpoint, user.email if user else "?")
    except ImmichError as e:
        log.warning("immich not reachable at startup: %s", e)

    transferrer = ImmichTransferrer(immich_client, settings.CACHE_PATH)

    # --- Discord bot ---
    bot = create_bot(settings, transferrer)

    # --- FastAPI ---
    fastapi_app = create_app(immich_client)
    uvicorn_config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.PORT,
        log_level="warning",
    )
    server = uvicorn.Server(uvicorn_config)

    # Run both concurrently; either crashing will propagate to the other
    async with bot:
        await asyncio.gather(
            bot.start(settings.DISCORD_TOKEN),
            server.serve(),
        )


if __name__ == "__main__":
    discord.utils.setup_logging(level=logging.INFO)
    asyncio.run(main())
