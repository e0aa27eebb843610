"""
Server Layout Specification

Single source of truth for the clan server's categories, channels and
permission overwrites. Pure data: the engine reads it, nothing here calls
Discord.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import discord

from ..config import RoleIds

log = logging.getLogger("clanwarden.provisioning.spec")

EVERYONE = "@everyone"

Subject = Union[int, str]


class ChannelKind(Enum):
    """Channel type enumeration."""
    CATEGORY = "category"
    TEXT = "text"
    VOICE = "voice"


@dataclass(frozen=True)
class Overwrite:
    """One (subject, allow, deny) triple; subject is a role ID or EVERYONE."""
    subject: Subject
    allow: discord.Permissions = field(default_factory=discord.Permissions.none)
    deny: discord.Permissions = field(default_factory=discord.Permissions.none)

    def __post_init__(self) -> None:
        overlap = self.allow.value & self.deny.value
        if overlap:
            clashing = [name for name, value in discord.Permissions(overlap) if value]
            raise ValueError(f"Overwrite for {self.subject!r} both allows and denies: {', '.join(clashing)}")

    def to_discord(self) -> discord.PermissionOverwrite:
        return discord.PermissionOverwrite.from_pair(self.allow, self.deny)


@dataclass(frozen=True)
class ChannelSpec:
    """Channel or category specification.

    ``overwrites`` of ``None`` means "leave whatever is there"; an empty
    tuple means "clear every overwrite".
    """
    name: str
    kind: ChannelKind
    overwrites: Optional[tuple[Overwrite, ...]] = None
    parent: Optional[str] = None


def _staff(roles: RoleIds) -> tuple[Overwrite, ...]:
    return (
        Overwrite(EVERYONE, deny=discord.Permissions(view_channel=True)),
        Overwrite(roles.leader, allow=discord.Permissions(view_channel=True)),
        Overwrite(roles.coleader, allow=discord.Permissions(view_channel=True)),
    )


def _hidden_from_unverified(roles: RoleIds) -> tuple[Overwrite, ...]:
    return (
        Overwrite(EVERYONE, allow=discord.Permissions(view_channel=True, send_messages=True, read_message_history=True)),
        Overwrite(roles.unverified, deny=discord.Permissions(view_channel=True)),
    )


def build_layout(roles: RoleIds) -> List[ChannelSpec]:
    """Ordered layout applied by ``ProvisioningEngine.provision_server``.

    Callers must have checked ``roles.require_provisioning()`` first: every
    role ID used below except the elder one is assumed to be set.
    """
    staff = _staff(roles)
    hidden = _hidden_from_unverified(roles)

    war_announcements = (
        Overwrite(
            EVERYONE,
            allow=discord.Permissions(view_channel=True, read_message_history=True),
            deny=discord.Permissions(send_messages=True),
        ),
        Overwrite(roles.unverified, allow=discord.Permissions(view_channel=True), deny=discord.Permissions(send_messages=True)),
        Overwrite(roles.leader, allow=discord.Permissions(send_messages=True, view_channel=True, read_message_history=True)),
        Overwrite(roles.coleader, allow=discord.Permissions(send_messages=True, view_channel=True, read_message_history=True)),
    )
    war_vc = (
        Overwrite(EVERYONE, allow=discord.Permissions(view_channel=True, connect=True, speak=True)),
        Overwrite(roles.unverified, deny=discord.Permissions(view_channel=True)),
    )

    read_only = discord.Permissions(view_channel=True, read_message_history=True)
    verify = [
        Overwrite(EVERYONE, allow=read_only, deny=discord.Permissions(send_messages=True)),
        Overwrite(roles.unverified, allow=discord.Permissions(send_messages=True, view_channel=True, read_message_history=True)),
        Overwrite(roles.leader, allow=read_only),
        Overwrite(roles.coleader, allow=read_only),
        Overwrite(roles.member, allow=read_only),
    ]
    if roles.elder is not None:
        verify.append(Overwrite(roles.elder, allow=read_only))

    return [
        ChannelSpec("STAFF", ChannelKind.CATEGORY, staff),
        ChannelSpec("CLAN HQ", ChannelKind.CATEGORY),
        ChannelSpec("war-announcements", ChannelKind.TEXT, war_announcements, parent="CLAN HQ"),
        ChannelSpec("war-chat", ChannelKind.TEXT, hidden, parent="CLAN HQ"),
        ChannelSpec("base-links", ChannelKind.TEXT, hidden, parent="CLAN HQ"),
        ChannelSpec("recruiting", ChannelKind.TEXT, hidden, parent="CLAN HQ"),
        ChannelSpec("War VC", ChannelKind.VOICE, war_vc, parent="CLAN HQ"),
        ChannelSpec("join-requests", ChannelKind.TEXT, staff, parent="STAFF"),
        ChannelSpec("mod-log", ChannelKind.TEXT, staff, parent="STAFF"),
        ChannelSpec("verify", ChannelKind.TEXT, tuple(verify)),
    ]


def resolve_overwrites(
    guild: discord.Guild,
    overwrites: tuple[Overwrite, ...],
) -> Dict[Union[discord.Role, discord.Member], discord.PermissionOverwrite]:
    """Map the declarative table onto the objects discord.py expects."""
    resolved: Dict[Union[discord.Role, discord.Member], discord.PermissionOverwrite] = {}
    for ow in overwrites:
        if ow.subject == EVERYONE:
            target = guild.default_role
        else:
            target = guild.get_role(ow.subject)
        if target is None:
            log.warning("Skipping overwrite: role %s not found in guild %s", ow.subject, guild.id)
            continue
        resolved[target] = ow.to_discord()
    return resolved
