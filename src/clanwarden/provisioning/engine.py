from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import discord

from ..config import Settings
from ..constants import PROVISION_REASON
from ..errors import ConfigurationError
from ..services.api_wrapper import safe_set_overwrites, safe_set_parent
from ..utils.lookup import normalize_name
from .spec import ChannelKind, Overwrite, build_layout, resolve_overwrites

log = logging.getLogger("clanwarden.provisioning.engine")

_KIND_BY_TYPE = {
    discord.ChannelType.category: ChannelKind.CATEGORY,
    discord.ChannelType.text: ChannelKind.TEXT,
    discord.ChannelType.voice: ChannelKind.VOICE,
}


@dataclass
class ProvisionReport:
    created: List[str] = field(default_factory=list)
    reconciled: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def summary(self) -> str:
        lines = [
            f"Created: {len(self.created)}",
            f"Updated: {len(self.reconciled)}",
            f"Unchanged: {len(self.unchanged)}",
        ]
        if self.created:
            lines.append("New: " + ", ".join(self.created))
        for warning in self.warnings:
            lines.append(f"⚠️ {warning}")
        return "\n".join(lines)


class ChannelIndex:
    """Name -> channel snapshot taken once per provisioning run.

    Keys are (kind, case-folded name). When the listing holds duplicates the
    first one seen is canonical and the rest are ignored.
    """

    def __init__(self) -> None:
        self._by_key: Dict[Tuple[ChannelKind, str], discord.abc.GuildChannel] = {}

    @classmethod
    def build(cls, guild: discord.Guild) -> "ChannelIndex":
        index = cls()
        for channel in guild.channels:
            index.add(channel)
        return index

    def add(self, channel: discord.abc.GuildChannel) -> None:
        kind = _KIND_BY_TYPE.get(channel.type)
        if kind is None:
            return
        self._by_key.setdefault((kind, normalize_name(channel.name)), channel)

    def find(self, kind: ChannelKind, name: str) -> Optional[discord.abc.GuildChannel]:
        return self._by_key.get((kind, normalize_name(name)))

    def __len__(self) -> int:
        return len(self._by_key)


class ProvisioningEngine:
    """Idempotent find-or-create of the clan server layout."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def ensure_category(
        self,
        guild: discord.Guild,
        index: ChannelIndex,
        name: str,
        overwrites: Optional[tuple[Overwrite, ...]],
        report: Optional[ProvisionReport] = None,
    ) -> discord.CategoryChannel:
        report = report if report is not None else ProvisionReport()
        existing = index.find(ChannelKind.CATEGORY, name)
        if existing is not None:
            await self._reconcile(guild, existing, None, overwrites, report)
            return existing  # type: ignore[return-value]

        category = await guild.create_category(
            name,
            overwrites=resolve_overwrites(guild, overwrites or ()),
            reason=PROVISION_REASON,
        )
        index.add(category)
        report.created.append(name)
        log.info("Created category %s in guild %s", name, guild.id)
        return category

    async def ensure_channel(
        self,
        guild: discord.Guild,
        index: ChannelIndex,
        kind: ChannelKind,
        name: str,
        parent: Optional[discord.CategoryChannel],
        overwrites: Optional[tuple[Overwrite, ...]],
        report: Optional[ProvisionReport] = None,
    ) -> discord.abc.GuildChannel:
        if kind is ChannelKind.CATEGORY:
            raise ValueError("use ensure_category for categories")
        report = report if report is not None else ProvisionReport()

        existing = index.find(kind, name)
        if existing is not None:
            await self._reconcile(guild, existing, parent, overwrites, report)
            return existing

        create = guild.create_voice_channel if kind is ChannelKind.VOICE else guild.create_text_channel
        channel = await create(
            name,
            category=parent,
            overwrites=resolve_overwrites(guild, overwrites or ()),
            reason=PROVISION_REASON,
        )
        index.add(channel)
        report.created.append(name)
        log.info("Created %s channel %s in guild %s", kind.value, name, guild.id)
        return channel

    async def _reconcile(
        self,
        guild: discord.Guild,
        channel: discord.abc.GuildChannel,
        parent: Optional[discord.CategoryChannel],
        overwrites: Optional[tuple[Overwrite, ...]],
        report: ProvisionReport,
    ) -> None:
        changed = False

        if parent is not None and getattr(channel, "category_id", None) != parent.id:
            result = await safe_set_parent(channel, parent, reason=PROVISION_REASON)
            if result.success:
                changed = True
            else:
                report.warnings.append(f"Could not move {channel.name} under {parent.name}")

        if overwrites is not None:
            desired = resolve_overwrites(guild, overwrites)
            if dict(channel.overwrites) != desired:
                result = await safe_set_overwrites(channel, desired, reason=PROVISION_REASON)
                if result.success:
                    changed = True
                else:
                    report.warnings.append(f"Could not update permissions on {channel.name}")

        (report.reconciled if changed else report.unchanged).append(channel.name)

    def _require_roles_exist(self, guild: discord.Guild) -> None:
        unknown = [
            env_name
            for env_name, role_id in self.settings.roles.configured().items()
            if guild.get_role(role_id) is None
        ]
        if unknown:
            raise ConfigurationError(
                f"Role IDs not found in this server: {', '.join(unknown)}. Use /listroles to fetch them.",
                unknown,
            )

    async def provision_server(self, guild: discord.Guild) -> ProvisionReport:
        """Apply the full layout to ``guild``.

        Raises ``ConfigurationError`` before touching anything when a required
        role ID is missing or a configured one does not exist in the guild.
        Errors from creating a channel propagate and stop the run; failed
        reconcile steps are recorded as warnings.
        """
        roles = self.settings.roles
        roles.require_provisioning()
        self._require_roles_exist(guild)

        log.info("Provisioning guild %s", guild.id)
        index = ChannelIndex.build(guild)
        report = ProvisionReport()
        categories: Dict[str, discord.CategoryChannel] = {}

        for spec in build_layout(roles):
            if spec.kind is ChannelKind.CATEGORY:
                categories[normalize_name(spec.name)] = await self.ensure_category(
                    guild, index, spec.name, spec.overwrites, report
                )
                continue
            parent = categories.get(normalize_name(spec.parent)) if spec.parent else None
            await self.ensure_channel(guild, index, spec.kind, spec.name, parent, spec.overwrites, report)

        log.info(
            "Provisioned guild %s: created=%d updated=%d unchanged=%d warnings=%d",
            guild.id,
            len(report.created),
            len(report.reconciled),
            len(report.unchanged),
            len(report.warnings),
        )
        return report
