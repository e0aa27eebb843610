from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import ConfigurationError

log = logging.getLogger("clanwarden.config")


def _get_str(env: Mapping[str, str], name: str, default: str) -> str:
    return (env.get(name, "") or "").strip() or default


def _get_id(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = (env.get(name, "") or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s: %r is not a valid Discord ID", name, raw)
        return None


@dataclass(frozen=True)
class RoleIds:
    leader: Optional[int] = None
    coleader: Optional[int] = None
    elder: Optional[int] = None
    member: Optional[int] = None
    unverified: Optional[int] = None

    # Elder is optional everywhere.
    _REQUIRED = (
        ("LEADER_ROLE_ID", "leader"),
        ("COLEADER_ROLE_ID", "coleader"),
        ("MEMBER_ROLE_ID", "member"),
        ("UNVERIFIED_ROLE_ID", "unverified"),
    )

    def missing_for_provisioning(self) -> list[str]:
        return [env_name for env_name, attr in self._REQUIRED if getattr(self, attr) is None]

    def require_provisioning(self) -> None:
        missing = self.missing_for_provisioning()
        if missing:
            raise ConfigurationError(
                f"Missing role IDs. Set {', '.join(missing)} in the environment. "
                "Use /listroles to fetch them.",
                missing,
            )

    def configured(self) -> dict[str, int]:
        """Env var name -> role ID for every role that is set, elder included."""
        pairs = self._REQUIRED + (("ELDER_ROLE_ID", "elder"),)
        return {env_name: getattr(self, attr) for env_name, attr in pairs if getattr(self, attr) is not None}

    @property
    def elder_or_member(self) -> Optional[int]:
        return self.elder if self.elder is not None else self.member

    def granted(self) -> set[int]:
        """IDs of every configured role that marks a member as already reviewed."""
        return {rid for rid in (self.leader, self.coleader, self.elder, self.member) if rid is not None}


@dataclass(frozen=True)
class Settings:
    token: str
    # Commands are only registered when a guild is configured.
    guild_id: Optional[int] = None
    join_requests_channel_id: Optional[int] = None
    mod_log_channel_id: Optional[int] = None
    roles: RoleIds = field(default_factory=RoleIds)
    log_level: str = "INFO"

    # Name fallbacks used when no channel ID is configured
    join_requests_channel_name: str = "join-requests"
    mod_log_channel_name: str = "mod-log"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    token = (env.get("DISCORD_TOKEN", "") or "").strip()
    if not token:
        raise ConfigurationError("DISCORD_TOKEN is required", ["DISCORD_TOKEN"])
    return Settings(
        token=token,
        guild_id=_get_id(env, "GUILD_ID"),
        join_requests_channel_id=_get_id(env, "JOIN_REQUESTS_CHANNEL_ID"),
        mod_log_channel_id=_get_id(env, "MOD_LOG_CHANNEL_ID"),
        roles=RoleIds(
            leader=_get_id(env, "LEADER_ROLE_ID"),
            coleader=_get_id(env, "COLEADER_ROLE_ID"),
            elder=_get_id(env, "ELDER_ROLE_ID"),
            member=_get_id(env, "MEMBER_ROLE_ID"),
            unverified=_get_id(env, "UNVERIFIED_ROLE_ID"),
        ),
        log_level=_get_str(env, "LOG_LEVEL", "INFO"),
        join_requests_channel_name=_get_str(env, "JOIN_REQUESTS_CHANNEL_NAME", "join-requests"),
        mod_log_channel_name=_get_str(env, "MOD_LOG_CHANNEL_NAME", "mod-log"),
    )
