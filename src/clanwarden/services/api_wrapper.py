from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import discord
from discord import Forbidden, HTTPException, NotFound

log = logging.getLogger("clanwarden.api_wrapper")


@dataclass
class APIResult:
    """Outcome of a single platform mutation.

    Helpers never raise for platform errors; the caller decides whether a
    failed result is cosmetic or must be reported.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[Exception] = None
    total_time: float = 0.0


class APIWrapper:
    """Runs one platform call and turns discord.py errors into an APIResult."""

    def _log_error(self, operation: str, error: Exception, guild_id: Optional[int] = None) -> None:
        if isinstance(error, (Forbidden, NotFound)):
            log.warning("API operation %s failed (expected): %s guild=%s", operation, error, guild_id)
            return

        if isinstance(error, HTTPException) and error.status == 429:
            log.info("API operation %s rate limited guild=%s", operation, guild_id)
            return

        log.error("API operation %s failed guild=%s: %s", operation, guild_id, error)

    async def execute(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        guild_id: Optional[int] = None,
        **kwargs: Any,
    ) -> APIResult:
        start_time = time.monotonic()
        try:
            result = await func(*args, **kwargs)
        except HTTPException as error:
            self._log_error(operation, error, guild_id)
            return APIResult(success=False, error=error, total_time=time.monotonic() - start_time)

        duration = time.monotonic() - start_time
        log.debug("API operation %s succeeded (%.2fs) guild=%s", operation, duration, guild_id)
        return APIResult(success=True, data=result, total_time=duration)


# Shared instance for the whole bot
api_wrapper = APIWrapper()


def _guild_id(obj: Any) -> Optional[int]:
    guild = getattr(obj, "guild", None)
    return getattr(guild, "id", None)


async def safe_send_message(
    channel: discord.abc.Messageable,
    content: Optional[str] = None,
    **kwargs: Any,
) -> APIResult:
    return await api_wrapper.execute(
        "send_message", channel.send, content=content, guild_id=_guild_id(channel), **kwargs
    )


async def safe_edit_message(message: discord.Message, **kwargs: Any) -> APIResult:
    return await api_wrapper.execute("edit_message", message.edit, guild_id=_guild_id(message), **kwargs)


async def safe_add_role(
    member: discord.Member,
    role: discord.abc.Snowflake,
    reason: Optional[str] = None,
) -> APIResult:
    return await api_wrapper.execute("add_role", member.add_roles, role, reason=reason, guild_id=_guild_id(member))


async def safe_remove_role(
    member: discord.Member,
    role: discord.abc.Snowflake,
    reason: Optional[str] = None,
) -> APIResult:
    return await api_wrapper.execute(
        "remove_role", member.remove_roles, role, reason=reason, guild_id=_guild_id(member)
    )


async def safe_kick(member: discord.Member, reason: Optional[str] = None) -> APIResult:
    return await api_wrapper.execute("kick_member", member.kick, reason=reason, guild_id=_guild_id(member))


async def safe_set_parent(
    channel: discord.abc.GuildChannel,
    category: Optional[discord.CategoryChannel],
    reason: Optional[str] = None,
) -> APIResult:
    return await api_wrapper.execute(
        "set_parent", channel.edit, category=category, reason=reason, guild_id=_guild_id(channel)
    )


async def safe_set_overwrites(
    channel: discord.abc.GuildChannel,
    overwrites: Dict[Any, discord.PermissionOverwrite],
    reason: Optional[str] = None,
) -> APIResult:
    """Replace every overwrite on ``channel`` with ``overwrites``."""
    return await api_wrapper.execute(
        "set_overwrites", channel.edit, overwrites=overwrites, reason=reason, guild_id=_guild_id(channel)
    )
