"""API routers package."""

from tradepost.api import trades, negotiate, inbox, events, deps

__all__ = [
    "trades",
    "negotiate",
    "inbox",
    "events",
    "deps",
]
