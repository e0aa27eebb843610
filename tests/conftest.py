from __future__ import annotations

from types import SimpleNamespace

import discord
import pytest

from clanwarden.config import RoleIds, Settings
from clanwarden.testing.fakes import FakeGuild


@pytest.fixture
def guild() -> FakeGuild:
    g = FakeGuild(name="Clan")
    g.add_role("Leader", position=5)
    g.add_role("Co-Leader", position=4)
    g.add_role("Elder", position=3)
    g.add_role("Member", position=2)
    g.add_role("Unverified", position=1)
    return g


@pytest.fixture
def roles(guild: FakeGuild) -> SimpleNamespace:
    by_name = {r.name: r for r in guild.roles}
    return SimpleNamespace(
        leader=by_name["Leader"],
        coleader=by_name["Co-Leader"],
        elder=by_name["Elder"],
        member=by_name["Member"],
        unverified=by_name["Unverified"],
    )


@pytest.fixture
def role_ids(roles: SimpleNamespace) -> RoleIds:
    return RoleIds(
        leader=roles.leader.id,
        coleader=roles.coleader.id,
        elder=roles.elder.id,
        member=roles.member.id,
        unverified=roles.unverified.id,
    )


@pytest.fixture
def settings(guild: FakeGuild, role_ids: RoleIds) -> Settings:
    return Settings(token="test-token", guild_id=guild.id, roles=role_ids)


@pytest.fixture
def inbox(guild: FakeGuild):
    return guild.add_channel("join-requests")


@pytest.fixture
def staff(guild: FakeGuild):
    return guild.add_member("Staffer", permissions=discord.Permissions(manage_roles=True))
