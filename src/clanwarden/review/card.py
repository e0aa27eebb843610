from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import discord

from ..constants import COLORS


class ReviewDecision(Enum):
    """Staff decision on a join request; the value is the button token prefix."""
    ACCEPT_MEMBER = "accept_member"
    ACCEPT_ELDER = "accept_elder"
    ACCEPT_CO_LEADER = "accept_co"
    DENY = "deny"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def style(self) -> discord.ButtonStyle:
        return _STYLES[self]

    @property
    def rank(self) -> str:
        """Display name of the rank the decision grants."""
        return _RANKS[self]


_LABELS = {
    ReviewDecision.ACCEPT_MEMBER: "Accept → Member",
    ReviewDecision.ACCEPT_ELDER: "Accept → Elder",
    ReviewDecision.ACCEPT_CO_LEADER: "Accept → Co-Leader",
    ReviewDecision.DENY: "Deny (Kick)",
}

_STYLES = {
    ReviewDecision.ACCEPT_MEMBER: discord.ButtonStyle.success,
    ReviewDecision.ACCEPT_ELDER: discord.ButtonStyle.primary,
    ReviewDecision.ACCEPT_CO_LEADER: discord.ButtonStyle.secondary,
    ReviewDecision.DENY: discord.ButtonStyle.danger,
}

_RANKS = {
    ReviewDecision.ACCEPT_MEMBER: "Member",
    ReviewDecision.ACCEPT_ELDER: "Elder",
    ReviewDecision.ACCEPT_CO_LEADER: "Co-Leader",
    ReviewDecision.DENY: "Removed",
}


def encode_token(decision: ReviewDecision, member_id: int) -> str:
    return f"{decision.value}:{member_id}"


def decode_token(custom_id: Optional[str]) -> Optional[Tuple[ReviewDecision, int]]:
    """Parse a button custom_id back into (decision, member id).

    Returns None for anything that is not a review token.
    """
    if not custom_id or ":" not in custom_id:
        return None
    action, _, raw_id = custom_id.partition(":")
    try:
        decision = ReviewDecision(action)
    except ValueError:
        return None
    if not raw_id.isdigit():
        return None
    return decision, int(raw_id)


@dataclass
class ReviewCard:
    embed: discord.Embed
    view: discord.ui.View


def _detached(view: discord.ui.View) -> discord.ui.View:
    # Presses are routed by custom_id in the on_interaction listener; a stopped
    # view is not kept in discord.py's view store when sent or edited.
    view.stop()
    return view


def review_buttons(member_id: int) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    for decision in ReviewDecision:
        view.add_item(
            discord.ui.Button(
                label=decision.label,
                style=decision.style,
                custom_id=encode_token(decision, member_id),
            )
        )
    return _detached(view)


def render_review_card(member: discord.Member) -> ReviewCard:
    """Build the join-review card for ``member``. No side effects."""
    embed = discord.Embed(
        title="New Join Request",
        description=f"{member.mention} just joined.\n\nReview and choose a role:",
        color=COLORS["info"],
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="User", value=f"{member} ({member.id})", inline=False)
    return ReviewCard(embed=embed, view=review_buttons(member.id))


def disabled_view(message: discord.Message) -> discord.ui.View:
    """Rebuild every button on ``message`` in a disabled state."""
    view = discord.ui.View(timeout=None)
    for row_index, row in enumerate(message.components):
        for component in getattr(row, "children", ()):
            if component.type is not discord.ComponentType.button:
                continue
            view.add_item(
                discord.ui.Button(
                    label=component.label,
                    style=component.style,
                    emoji=component.emoji,
                    url=component.url,
                    custom_id=None if component.url else component.custom_id,
                    disabled=True,
                    row=row_index,
                )
            )
    return _detached(view)
