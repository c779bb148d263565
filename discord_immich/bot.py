"""
Discord bot assembly.

Builds a commands.Bot with the Backup cog loaded and syncs the application
commands once the bot has logged in.
"""

import logging

import discord
from discord.ext import commands

from discord_immich.cogs import backup
from discord_immich.config import Settings
from discord_immich.services.transfer import Transferrer

log = logging.getLogger(__name__)


class BackupBot(commands.Bot):
    def __init__(self, settings: Settings, transferrer: Transferrer):
        # Context menus need no privileged intents
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=discord.Intents.default(),
            application_id=settings.DISCORD_APP_ID,
        )
        self.settings = settings
        self.transferrer = transferrer

    async def setup_hook(self):
        await backup.setup(self, self.settings.authorized_user_ids, self.transferrer)
        synced = await self.tree.sync()
        log.info("synced %d application command(s)", len(synced))

    async def on_ready(self):
        log.info("bot is up as %s", self.user)


def create_bot(settings: Settings, transferrer: Transferrer) -> BackupBot:
    return BackupBot(settings, transferrer)
