from __future__ import annotations

import logging

import discord


log = logging.getLogger("clanwarden.discord_safety")


async def safe_send(
    interaction: discord.Interaction,
    content: str | None = None,
    *,
    embed: discord.Embed | None = None,
    ephemeral: bool = True,
) -> bool:
    """Reply to an interaction, or follow up when it was already answered."""
    kwargs = {"content": content, "ephemeral": ephemeral}
    if embed is not None:
        kwargs["embed"] = embed
    try:
        if not interaction.response.is_done():
            await interaction.response.send_message(**kwargs)
            return True
        await interaction.followup.send(**kwargs)
        return True
    except discord.HTTPException as e:
        log.warning("Failed to reply to interaction: %s", e)
        return False
