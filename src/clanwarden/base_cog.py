from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from .constants import ERROR_MESSAGES
from .services.discord_safety import safe_send

log = logging.getLogger("clanwarden.base_cog")


class BaseCog(commands.Cog):
    """Base class for all cogs with common functionality."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        self.log = logging.getLogger(f"clanwarden.cog.{self.__class__.__name__.lower()}")

    async def cog_load(self) -> None:
        self.log.info("Loaded %s", self.__class__.__name__)

    async def safe_response(
        self,
        interaction: discord.Interaction,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
        ephemeral: bool = True,
    ) -> bool:
        return await safe_send(interaction, content, embed=embed, ephemeral=ephemeral)

    def has_permission(self, interaction: discord.Interaction, permission: str) -> bool:
        """Check the invoking member's guild permission, fresh from the interaction payload."""
        permissions = getattr(interaction.user, "guild_permissions", None)
        return bool(permissions is not None and getattr(permissions, permission, False))

    async def require_permission(self, interaction: discord.Interaction, permission: str, message: str) -> bool:
        """Reply privately and return False when the invoker lacks ``permission``."""
        if interaction.guild is None:
            await self.safe_response(interaction, ERROR_MESSAGES["guild_only"])
            return False
        if not self.has_permission(interaction, permission):
            await self.safe_response(interaction, message)
            return False
        return True
