from __future__ import annotations

import discord
import pytest

from clanwarden.review import ReviewDecision, decode_token, disabled_view, encode_token, render_review_card
from clanwarden.testing.fakes import FakeChannel, FakeMessage


def test_decode_known_token():
    assert decode_token("accept_member:1234") == (ReviewDecision.ACCEPT_MEMBER, 1234)
    assert decode_token("deny:99") == (ReviewDecision.DENY, 99)


@pytest.mark.parametrize("custom_id", [None, "", "deny", "promote:12", "deny:abc", "deny:", "persistent_verify"])
def test_decode_rejects_foreign_tokens(custom_id):
    assert decode_token(custom_id) is None


def test_original_token_format():
    assert encode_token(ReviewDecision.ACCEPT_CO_LEADER, 42) == "accept_co:42"


async def test_card_names_member_and_has_four_controls(guild):
    alice = guild.add_member("Alice")

    card = render_review_card(alice)

    assert card.embed.title == "New Join Request"
    assert alice.mention in card.embed.description
    assert card.embed.fields[0].name == "User"
    assert card.embed.fields[0].value == f"Alice ({alice.id})"
    buttons = [item for item in card.view.children if isinstance(item, discord.ui.Button)]
    assert [b.label for b in buttons] == ["Accept → Member", "Accept → Elder", "Accept → Co-Leader", "Deny (Kick)"]
    assert [decode_token(b.custom_id) for b in buttons] == [(d, alice.id) for d in ReviewDecision]
    assert buttons[-1].style is discord.ButtonStyle.danger
    assert not any(b.disabled for b in buttons)


async def test_disabled_view_keeps_labels_and_tokens(guild):
    alice = guild.add_member("Alice")
    card = render_review_card(alice)
    message = FakeMessage(FakeChannel(guild=guild), embed=card.embed, view=card.view)

    view = disabled_view(message)

    buttons = view.children
    assert len(buttons) == 4
    assert all(b.disabled for b in buttons)
    assert [b.custom_id for b in buttons] == [encode_token(d, alice.id) for d in ReviewDecision]
    assert [b.style for b in buttons] == [d.style for d in ReviewDecision]


async def test_rendered_views_stay_out_of_view_store(guild):
    card = render_review_card(guild.add_member("Alice"))
    message = FakeMessage(FakeChannel(guild=guild), embed=card.embed, view=card.view)

    assert card.view.is_finished()
    assert disabled_view(message).is_finished()
