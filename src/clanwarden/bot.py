from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from .cogs.review import ReviewCog
from .cogs.setup import SetupCog
from .config import Settings
from .error_handlers import setup_error_handlers
from .provisioning import ProvisioningEngine
from .review import JoinReviewService

log = logging.getLogger("clanwarden.bot")


class _CommandSyncManager:
    def __init__(self, bot: "ClanWardenBot") -> None:
        self.bot = bot
        self._lock = asyncio.Lock()

    async def sync_startup(self) -> None:
        guild_id = self.bot.settings.guild_id
        if not guild_id:
            log.warning("GUILD_ID not set; slash commands will not be registered to a guild")
            return
        await self.sync_guild(guild_id)

    async def sync_guild(self, guild_id: int) -> None:
        async with self._lock:
            guild = discord.Object(id=guild_id)
            self.bot.tree.copy_global_to(guild=guild)
            synced = await self.bot.tree.sync(guild=guild)
            log.info("Slash commands registered for guild %d: %s", guild_id, ", ".join(f"/{c.name}" for c in synced))


class ClanWardenBot(commands.Bot):
    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = False

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            allowed_mentions=discord.AllowedMentions(everyone=False, roles=False, users=True),
            help_command=None,
        )

        self.settings = settings
        self.engine = ProvisioningEngine(settings)
        self.review_service = JoinReviewService(settings)
        self._sync_mgr = _CommandSyncManager(self)
        self._commands_synced = False

    async def setup_hook(self) -> None:
        await setup_error_handlers(self)
        await self.add_cog(ReviewCog(self, self.review_service))
        await self.add_cog(SetupCog(self, self.engine))

    async def on_ready(self) -> None:
        log.info("Logged in as %s", self.user)
        # on_ready fires again after reconnects
        if self._commands_synced:
            return
        self._commands_synced = True
        try:
            await self._sync_mgr.sync_startup()
        except discord.HTTPException:
            log.exception("Command registration failed")
