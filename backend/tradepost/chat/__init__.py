"""Buyer-side negotiation chat client."""

from tradepost.chat.acceptance import extract_dollar_amount, match_acceptance
from tradepost.chat.countdown import Countdown, compute_countdown
from tradepost.chat.session import (
    AgentReply,
    ChatMessage,
    ChatState,
    NegotiationChatSession,
    parse_agent_reply,
    round_flags,
)

__all__ = [
    "extract_dollar_amount",
    "match_acceptance",
    "Countdown",
    "compute_countdown",
    "AgentReply",
    "ChatMessage",
    "ChatState",
    "NegotiationChatSession",
    "parse_agent_reply",
    "round_flags",
]
