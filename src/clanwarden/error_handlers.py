from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from .constants import ERROR_MESSAGES
from .errors import ConfigurationError
from .services.discord_safety import safe_send

log = logging.getLogger("clanwarden.error_handlers")


class ErrorHandler(commands.Cog):
    """Centralized error handling for application commands."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self._previous = None

    async def cog_load(self) -> None:
        tree = self.bot.tree
        self._previous = tree.on_error
        tree.error(self.on_app_command_error)

    async def cog_unload(self) -> None:
        if self._previous is not None:
            self.bot.tree.on_error = self._previous

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        original = getattr(error, "original", error)

        if isinstance(error, app_commands.MissingPermissions):
            await safe_send(interaction, "You don't have permission to use this command.")
            return

        if isinstance(error, app_commands.NoPrivateMessage):
            await safe_send(interaction, ERROR_MESSAGES["guild_only"])
            return

        if isinstance(original, ConfigurationError):
            await safe_send(interaction, str(original))
            return

        log.exception("Unexpected error in app command %s", interaction.command, exc_info=original)
        await safe_send(interaction, ERROR_MESSAGES["unexpected"])


async def setup_error_handlers(bot: commands.Bot) -> None:
    await bot.add_cog(ErrorHandler(bot))
