from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import discord

from ..config import Settings
from ..constants import ERROR_MESSAGES, JOIN_REASON, KICK_REASON, REVIEW_REASON
from ..services.api_wrapper import (
    api_wrapper,
    safe_add_role,
    safe_edit_message,
    safe_kick,
    safe_remove_role,
    safe_send_message,
)
from ..services.discord_safety import safe_send
from ..utils.lookup import find_text_channel
from .card import ReviewDecision, decode_token, disabled_view, render_review_card

log = logging.getLogger("clanwarden.review")


class ReviewState(Enum):
    UNVERIFIED = "unverified"
    PENDING_REVIEW = "pending_review"
    MEMBER = "member"
    ELDER = "elder"
    CO_LEADER = "co_leader"
    REMOVED = "removed"


_TERMINAL_STATE = {
    ReviewDecision.ACCEPT_MEMBER: ReviewState.MEMBER,
    ReviewDecision.ACCEPT_ELDER: ReviewState.ELDER,
    ReviewDecision.ACCEPT_CO_LEADER: ReviewState.CO_LEADER,
    ReviewDecision.DENY: ReviewState.REMOVED,
}


@dataclass
class DecisionOutcome:
    decision: ReviewDecision
    member_id: int
    # None when the target could not be resolved
    state: Optional[ReviewState]
    message: str
    # A platform mutation was attempted (role change or kick)
    attempted: bool = False
    target_tag: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.state is not None

    @property
    def applied(self) -> bool:
        return self.state is _TERMINAL_STATE[self.decision]


class DecisionGuard:
    """Single-use marker per review card.

    The first activation claims the card; later activations are refused until
    the claim is released. Check-and-set has no await in between, so it is
    atomic on the event loop. Only the newest ``max_claims`` claims are kept;
    an evicted card that is pressed again finds its decision already applied.
    """

    def __init__(self, max_claims: int = 1000) -> None:
        self.max_claims = max_claims
        self._claimed: OrderedDict[int, None] = OrderedDict()

    def try_claim(self, card_id: int) -> bool:
        if card_id in self._claimed:
            return False
        self._claimed[card_id] = None
        while len(self._claimed) > self.max_claims:
            self._claimed.popitem(last=False)
        return True

    def release(self, card_id: int) -> None:
        self._claimed.pop(card_id, None)

    def __contains__(self, card_id: int) -> bool:
        return card_id in self._claimed


class JoinReviewService:
    """Tags new members, posts review cards and applies staff decisions."""

    def __init__(self, settings: Settings, guard: Optional[DecisionGuard] = None) -> None:
        self.settings = settings
        self.guard = guard or DecisionGuard()

    # ------------------------------------------------------------------ joins

    async def handle_member_join(self, member: discord.Member) -> Optional[ReviewState]:
        """Returns None when the member is outside the review flow."""
        guild = member.guild
        if self.settings.guild_id and guild.id != self.settings.guild_id:
            return None

        roles = self.settings.roles
        if any(member.get_role(rid) is not None for rid in roles.granted()):
            log.info("Member %s already holds a clan role; skipping review", member.id)
            return None

        if roles.unverified is not None and member.get_role(roles.unverified) is None:
            await safe_add_role(member, discord.Object(id=roles.unverified), reason=JOIN_REASON)

        message = await self.post_review_card(member)
        log.info("Member %s joined guild %s (card posted: %s)", member.id, guild.id, message is not None)
        return ReviewState.PENDING_REVIEW if message is not None else ReviewState.UNVERIFIED

    async def resolve_inbox(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        return await self._resolve_text_channel(
            guild, self.settings.join_requests_channel_id, self.settings.join_requests_channel_name
        )

    async def resolve_mod_log(self, guild: discord.Guild) -> Optional[discord.TextChannel]:
        return await self._resolve_text_channel(
            guild, self.settings.mod_log_channel_id, self.settings.mod_log_channel_name
        )

    async def _resolve_text_channel(
        self, guild: discord.Guild, channel_id: Optional[int], name: str
    ) -> Optional[discord.TextChannel]:
        if channel_id:
            channel = guild.get_channel(channel_id)
            if channel is None:
                try:
                    channel = await guild.fetch_channel(channel_id)
                except (discord.HTTPException, discord.InvalidData):
                    channel = None
            if channel is not None and channel.type == discord.ChannelType.text:
                return channel  # type: ignore[return-value]
        return find_text_channel(guild, name)

    async def post_review_card(self, member: discord.Member) -> Optional[discord.Message]:
        channel = await self.resolve_inbox(member.guild)
        if channel is None:
            log.warning("No join-requests channel in guild %s; card not posted", member.guild.id)
            return None
        card = render_review_card(member)
        result = await safe_send_message(channel, embed=card.embed, view=card.view)
        return result.data if result.success else None

    # -------------------------------------------------------------- decisions

    def _target_role(self, decision: ReviewDecision) -> Optional[int]:
        roles = self.settings.roles
        if decision is ReviewDecision.ACCEPT_MEMBER:
            return roles.member
        if decision is ReviewDecision.ACCEPT_ELDER:
            return roles.elder_or_member
        if decision is ReviewDecision.ACCEPT_CO_LEADER:
            return roles.coleader
        return None

    async def apply_decision(
        self, guild: discord.Guild, decision: ReviewDecision, member_id: int
    ) -> DecisionOutcome:
        try:
            target = await guild.fetch_member(member_id)
        except discord.NotFound:
            return DecisionOutcome(decision, member_id, None, ERROR_MESSAGES["user_not_found"])

        tag = str(target)
        if decision is ReviewDecision.DENY:
            result = await safe_kick(target, reason=KICK_REASON)
            if result.success:
                return DecisionOutcome(decision, member_id, ReviewState.REMOVED, f"🛑 Kicked {tag}", True, tag)
            return DecisionOutcome(
                decision,
                member_id,
                ReviewState.PENDING_REVIEW,
                f"Failed to kick {tag}. Keeping Unverified.",
                True,
                tag,
            )

        role_id = self._target_role(decision)
        if role_id is None:
            return DecisionOutcome(
                decision,
                member_id,
                ReviewState.PENDING_REVIEW,
                f"No role is configured for {decision.rank}.",
                False,
                tag,
            )

        if target.get_role(role_id) is None:
            added = await safe_add_role(target, discord.Object(id=role_id), reason=REVIEW_REASON)
            if not added.success:
                return DecisionOutcome(
                    decision,
                    member_id,
                    ReviewState.PENDING_REVIEW,
                    f"Failed to give {tag} the {decision.rank} role.",
                    True,
                    tag,
                )

        unverified = self.settings.roles.unverified
        if unverified is not None and target.get_role(unverified) is not None:
            await safe_remove_role(target, discord.Object(id=unverified), reason=REVIEW_REASON)

        return DecisionOutcome(
            decision, member_id, _TERMINAL_STATE[decision], f"✔️ Set {tag} → {decision.rank}", True, tag
        )

    async def handle_button(self, interaction: discord.Interaction) -> bool:
        """Handle a review-card button press. Returns False if the press is not ours."""
        parsed = decode_token((interaction.data or {}).get("custom_id"))
        if parsed is None:
            return False
        decision, member_id = parsed

        guild = interaction.guild
        if guild is None:
            await safe_send(interaction, ERROR_MESSAGES["guild_only"])
            return True

        permissions = getattr(interaction.user, "guild_permissions", None)
        if permissions is None or not permissions.manage_roles:
            await safe_send(interaction, ERROR_MESSAGES["manage_roles"])
            return True

        message = interaction.message
        card_id = message.id if message is not None else member_id
        if not self.guard.try_claim(card_id):
            await safe_send(interaction, ERROR_MESSAGES["already_handled"])
            return True

        try:
            outcome = await self.apply_decision(guild, decision, member_id)
        except Exception:
            self.guard.release(card_id)
            raise
        if not outcome.applied:
            self.guard.release(card_id)

        log.info(
            "Review decision %s on %s by %s -> %s",
            decision.value,
            member_id,
            interaction.user.id,
            outcome.state.value if outcome.state else "not_found",
        )
        await safe_send(interaction, outcome.message)

        if outcome.attempted:
            await self.disable_controls(message)
        if outcome.applied:
            await self._note_decision(guild, interaction.user, outcome)
        return True

    async def disable_controls(self, message: Optional[discord.Message]) -> bool:
        if message is None:
            return False
        fetched = await api_wrapper.execute("fetch_message", message.fetch)
        if not fetched.success:
            return False
        edited = await safe_edit_message(fetched.data, view=disabled_view(fetched.data))
        return edited.success

    async def _note_decision(
        self, guild: discord.Guild, actor: discord.abc.User, outcome: DecisionOutcome
    ) -> None:
        channel = await self.resolve_mod_log(guild)
        if channel is None:
            return
        await safe_send_message(
            channel,
            f"{outcome.target_tag} ({outcome.member_id}) → {outcome.decision.rank} by {actor}",
            allowed_mentions=discord.AllowedMentions.none(),
        )
