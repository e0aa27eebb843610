from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from ..base_cog import BaseCog
from ..constants import ERROR_MESSAGES
from ..errors import ConfigurationError
from ..provisioning import ProvisioningEngine
from ..utils import truncate_text


class SetupCog(BaseCog):
    """Administrator commands: role ID listing and server provisioning."""

    def __init__(self, bot: commands.Bot, engine: ProvisioningEngine) -> None:
        super().__init__(bot)
        self.engine = engine

    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    @app_commands.command(name="listroles", description="Show all role IDs in this server.")
    async def listroles(self, interaction: discord.Interaction) -> None:
        if not await self.require_permission(interaction, "administrator", ERROR_MESSAGES["administrator"]):
            return
        roles = sorted(interaction.guild.roles, key=lambda r: r.position, reverse=True)
        lines = [f"{r.name} → `{r.id}`" for r in roles]
        await self.safe_response(interaction, truncate_text("\n".join(lines)) or "No roles found.")

    @app_commands.guild_only()
    @app_commands.default_permissions(administrator=True)
    @app_commands.command(name="setupserver", description="Create categories/channels with correct permissions.")
    async def setupserver(self, interaction: discord.Interaction) -> None:
        if not await self.require_permission(interaction, "administrator", ERROR_MESSAGES["administrator"]):
            return
        await self.safe_response(interaction, "Setting up categories & channels…")
        try:
            report = await self.engine.provision_server(interaction.guild)
        except ConfigurationError as e:
            self.log.warning("Setup aborted: %s", e)
            await self.safe_response(interaction, f"Setup failed: {e}")
            return
        except discord.HTTPException as e:
            self.log.exception("Setup failed in guild %s", interaction.guild.id)
            await self.safe_response(interaction, f"Setup failed: {e}")
            return
        await self.safe_response(
            interaction,
            truncate_text(f"Done! Channels & permissions configured.\n{report.summary()}"),
        )
