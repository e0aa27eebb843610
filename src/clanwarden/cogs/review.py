from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from ..base_cog import BaseCog
from ..constants import ERROR_MESSAGES
from ..review import JoinReviewService


class ReviewCog(BaseCog):
    """New-member tagging, review cards and the accept/deny buttons."""

    def __init__(self, bot: commands.Bot, service: JoinReviewService) -> None:
        super().__init__(bot)
        self.service = service

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        await self.service.handle_member_join(member)

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        # Review buttons are routed by custom_id so cards keep working across restarts.
        if interaction.type is not discord.InteractionType.component:
            return
        try:
            await self.service.handle_button(interaction)
        except Exception:
            self.log.exception("Review button failed")
            await self.safe_response(interaction, ERROR_MESSAGES["unexpected"])

    @app_commands.guild_only()
    @app_commands.default_permissions(manage_roles=True)
    @app_commands.command(name="setupreview", description="Post a sample join-review card (for testing).")
    async def setupreview(self, interaction: discord.Interaction) -> None:
        if not await self.require_permission(interaction, "manage_roles", ERROR_MESSAGES["manage_roles_command"]):
            return
        await self.safe_response(interaction, "Posting a sample review card…")
        message = await self.service.post_review_card(interaction.user)  # type: ignore[arg-type]
        if message is None:
            await self.safe_response(interaction, "No join-requests channel found; card not posted.")
