"""
BackupCog — copies a message's photos and videos into Immich.

Context menu (right click a message → Apps):
  Backup  — upload every image/video attachment of the message and report
            the Immich status of each one, visible only to the invoker.

Only users listed in DISCORD_AUTHORIZED_USER_IDS may run it. Anyone else is
ignored without a reply.
"""

import logging
from collections.abc import Iterable

import discord
from discord import app_commands
from discord.ext import commands

from discord_immich.services.snowflake import InvalidSnowflakeError, snowflake_to_datetime
from discord_immich.services.transfer import Transferrer

log = logging.getLogger(__name__)

INTERACTION_NAME = "Backup"
MEDIA_PREFIXES = ("image/", "video/")

NO_ATTACHMENTS = "no attachments detected"
NO_MEDIA = "no media attachments detected"
BAD_TIMESTAMP = "could not read the message timestamp"

# Discord's hard message length limit
DISCORD_MSG_LIMIT = 2000


class BackupCog(commands.Cog):
    def __init__(
        self,
        bot: commands.Bot,
        authorized_user_ids: Iterable[int],
        transferrer: Transferrer,
    ):
        self.bot = bot
        self.authorized_user_ids = frozenset(authorized_user_ids)
        self.transferrer = transferrer

        # Context menus can't be declared with a decorator inside a cog
        self.ctx_menu = app_commands.ContextMenu(name=INTERACTION_NAME, callback=self.backup_message)
        self.bot.tree.add_command(self.ctx_menu)

    async def cog_unload(self):
        self.bot.tree.remove_command(self.ctx_menu.name, type=self.ctx_menu.type)

    # ------------------------------------------------------------------
    # Context menu: Backup
    # ------------------------------------------------------------------

    async def backup_message(self, interaction: discord.Interaction, message: discord.Message):
        # Acknowledge first: uploads easily outlast Discord's 3 second window
        try:
            await interaction.response.defer(ephemeral=True, thinking=True)
        except discord.HTTPException as e:
            log.error("can't send interaction response: %s", e)
            return

        user = interaction.user
        if user.id not in self.authorized_user_ids:
            log.info("%s invoked %s but is not authorized", user.name, INTERACTION_NAME)
            return

        content = await self.back_up(message)

        for chunk in _split(content):
            try:
                await interaction.followup.send(chunk, ephemeral=True)
            except discord.HTTPException as e:
                log.error("can't send follow-up message: %s", e)
                return

    async def back_up(self, message: discord.Message) -> str:
        """Transfer the media attachments of ``message`` and return the status report."""
        if not message.attachments:
            log.info("no attachments detected on message %s", message.id)
            return NO_ATTACHMENTS

        try:
            created_at = snowflake_to_datetime(message.id)
        except InvalidSnowflakeError as e:
            log.error("failed to parse message ID to time: %s", e)
            return BAD_TIMESTAMP

        statuses = ""
        for attachment in message.attachments:
            if not is_media(attachment.content_type):
                continue

            result = await self.transferrer.transfer(attachment.filename, attachment.url, created_at)
            if result.ok:
                log.info("backed up %s: %s", attachment.filename, result.status)
            else:
                log.error("failed to back up %s", attachment.filename, exc_info=result.error)
            statuses += result.line

        return statuses or NO_MEDIA


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def is_media(content_type: str | None) -> bool:
    return bool(content_type) and content_type.startswith(MEDIA_PREFIXES)


def _split(text: str, limit: int = DISCORD_MSG_LIMIT) -> list[str]:
    """Split a string into chunks that fit within Discord's message limit."""
    if len(text) <= limit:
        return [text]
    chunks: list[str] = []
    while text:
        chunks.append(text[:limit])
        text = text[limit:]
    return chunks


async def setup(bot: commands.Bot, authorized_user_ids: Iterable[int], transferrer: Transferrer):
    await bot.add_cog(BackupCog(bot, authorized_user_ids, transferrer))
