from __future__ import annotations

import dataclasses

import discord
from discord import app_commands

from clanwarden.cogs.review import ReviewCog
from clanwarden.cogs.setup import SetupCog
from clanwarden.error_handlers import ErrorHandler
from clanwarden.errors import ConfigurationError
from clanwarden.provisioning import ProvisioningEngine
from clanwarden.review import JoinReviewService
from clanwarden.testing.fakes import FakeGuild, FakeInteraction


def _slash(guild, user):
    return FakeInteraction(guild, user, type=discord.InteractionType.application_command)


def _admin(guild):
    return guild.add_member("Admin", permissions=discord.Permissions(administrator=True))


class _ExplodingService:
    async def handle_button(self, interaction):
        raise RuntimeError("boom")


# ------------------------------------------------------------- /listroles


async def test_listroles_sorted_by_position(guild, settings, roles):
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, _admin(guild))

    await cog.listroles.callback(cog, interaction)

    lines = interaction.sent_text[0].splitlines()
    assert [line.split(" → ")[0] for line in lines] == [
        "Leader",
        "Co-Leader",
        "Elder",
        "Member",
        "Unverified",
        "@everyone",
    ]
    assert lines[0] == f"Leader → `{roles.leader.id}`"


async def test_listroles_with_no_roles(settings):
    empty = FakeGuild()
    empty.roles = []
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(empty, _admin(empty))

    await cog.listroles.callback(cog, interaction)

    assert interaction.sent_text == ["No roles found."]


async def test_listroles_requires_administrator(guild, settings, staff):
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, staff)

    await cog.listroles.callback(cog, interaction)

    assert interaction.sent_text == ["You need Administrator to run this command."]


# ----------------------------------------------------------- /setupserver


async def test_setupserver_requires_administrator(guild, settings, staff):
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, staff)

    await cog.setupserver.callback(cog, interaction)

    assert interaction.sent_text == ["You need Administrator to run this command."]
    assert guild.channels == []


async def test_setupserver_reports_missing_role_ids(guild, settings):
    settings = dataclasses.replace(settings, roles=dataclasses.replace(settings.roles, unverified=None))
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, _admin(guild))

    await cog.setupserver.callback(cog, interaction)

    assert interaction.sent_text[0] == "Setting up categories & channels…"
    assert interaction.sent_text[-1].startswith("Setup failed: Missing role IDs.")
    assert "UNVERIFIED_ROLE_ID" in interaction.sent_text[-1]
    assert guild.channels == []


async def test_setupserver_builds_layout(guild, settings):
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, _admin(guild))

    await cog.setupserver.callback(cog, interaction)

    assert interaction.sent_text[-1].startswith("Done! Channels & permissions configured.")
    assert len(guild.channels) == 10
    assert all(m["ephemeral"] for m in interaction.sent)


# ----------------------------------------------------------- /setupreview


async def test_setupreview_posts_card_for_invoker(guild, settings, inbox, staff):
    cog = ReviewCog(None, JoinReviewService(settings))
    interaction = _slash(guild, staff)

    await cog.setupreview.callback(cog, interaction)

    assert interaction.sent_text == ["Posting a sample review card…"]
    assert len(inbox.messages) == 1
    assert staff.mention in inbox.messages[0].embed.description


async def test_setupreview_without_inbox_says_so(guild, settings, staff):
    cog = ReviewCog(None, JoinReviewService(settings))
    interaction = _slash(guild, staff)

    await cog.setupreview.callback(cog, interaction)

    assert interaction.sent_text[-1] == "No join-requests channel found; card not posted."


async def test_setupreview_requires_manage_roles(guild, settings, inbox):
    cog = ReviewCog(None, JoinReviewService(settings))
    member = guild.add_member("Nobody")
    interaction = _slash(guild, member)

    await cog.setupreview.callback(cog, interaction)

    assert interaction.sent_text == ["You need Manage Roles to use this."]
    assert inbox.messages == []


async def test_setupreview_outside_guild(settings, staff):
    cog = ReviewCog(None, JoinReviewService(settings))
    interaction = _slash(None, staff)

    await cog.setupreview.callback(cog, interaction)

    assert interaction.sent_text == ["This command can only be used in a server."]


# ------------------------------------------------------------- listeners


async def test_member_join_listener_runs_review(guild, settings, roles, inbox):
    cog = ReviewCog(None, JoinReviewService(settings))
    alice = guild.add_member("Alice")

    await cog.on_member_join(alice)

    assert roles.unverified.id in alice.role_ids
    assert len(inbox.messages) == 1


async def test_interaction_listener_ignores_slash_commands(guild, staff):
    cog = ReviewCog(None, _ExplodingService())

    await cog.on_interaction(_slash(guild, staff))


async def test_interaction_listener_reports_unexpected_errors(guild, staff):
    cog = ReviewCog(None, _ExplodingService())
    interaction = FakeInteraction(guild, staff, custom_id="deny:1")

    await cog.on_interaction(interaction)

    assert interaction.sent_text == ["Something went wrong."]


# --------------------------------------------------------- error handler


async def test_error_handler_reports_configuration_errors(guild, settings, staff):
    handler = ErrorHandler(None)
    command = SetupCog(None, ProvisioningEngine(settings)).setupserver
    interaction = _slash(guild, staff)
    error = app_commands.CommandInvokeError(command, ConfigurationError("DISCORD_TOKEN is required"))

    await handler.on_app_command_error(interaction, error)

    assert interaction.sent_text == ["DISCORD_TOKEN is required"]


async def test_error_handler_missing_permissions(guild, staff):
    interaction = _slash(guild, staff)

    await ErrorHandler(None).on_app_command_error(interaction, app_commands.MissingPermissions(["administrator"]))

    assert interaction.sent_text == ["You don't have permission to use this command."]


async def test_error_handler_hides_unexpected_errors(guild, settings, staff):
    command = SetupCog(None, ProvisioningEngine(settings)).setupserver
    interaction = _slash(guild, staff)
    error = app_commands.CommandInvokeError(command, RuntimeError("boom"))

    await ErrorHandler(None).on_app_command_error(interaction, error)

    assert interaction.sent_text == ["Something went wrong."]


async def test_setupserver_reports_role_ids_missing_from_guild(guild, settings):
    settings = dataclasses.replace(settings, roles=dataclasses.replace(settings.roles, coleader=999999))
    cog = SetupCog(None, ProvisioningEngine(settings))
    interaction = _slash(guild, _admin(guild))

    await cog.setupserver.callback(cog, interaction)

    assert interaction.sent_text[-1].startswith("Setup failed: Role IDs not found in this server: COLEADER_ROLE_ID.")
    assert guild.channels == []
