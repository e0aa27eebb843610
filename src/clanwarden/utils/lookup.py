from __future__ import annotations

from typing import Iterable, Optional, TypeVar

import discord

T = TypeVar("T")


def normalize_name(name: str) -> str:
    """Case-insensitive key for channel and category names."""
    return (name or "").strip().casefold()


def first_named(candidates: Iterable[T], target: str, *, attr: str = "name") -> Optional[T]:
    """Return the first candidate whose name matches ``target`` ignoring case.

    Discord gives no ordering guarantee for these listings, so when two
    entities share a name the winner is whichever the listing yields first.
    """
    key = normalize_name(target)
    if not key:
        return None
    for c in candidates:
        if normalize_name(getattr(c, attr, "") or "") == key:
            return c
    return None


def find_text_channel(guild: discord.Guild, target: str) -> Optional[discord.TextChannel]:
    return first_named(guild.text_channels, target)

