from .card import ReviewCard, ReviewDecision, decode_token, disabled_view, encode_token, render_review_card
from .service import DecisionGuard, DecisionOutcome, JoinReviewService, ReviewState

__all__ = [
    "ReviewCard",
    "ReviewDecision",
    "decode_token",
    "disabled_view",
    "encode_token",
    "render_review_card",
    "DecisionGuard",
    "DecisionOutcome",
    "JoinReviewService",
    "ReviewState",
]
