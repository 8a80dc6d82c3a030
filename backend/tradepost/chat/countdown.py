"""Countdown display state for time-limited counter-offers."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

EXPIRED_LABEL = "EXPIRED"


@dataclass(frozen=True)
class Countdown:
    """What a counter-offer's timer shows at one instant."""
    remaining_label: str
    progress_percent: float
    is_expired: bool


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps from the API are UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def compute_countdown(now: datetime, expires_at: datetime, total_duration: timedelta) -> Countdown:
    """
    Timer state for a counter-offer, as a pure function of the clock.

    Progress decays linearly from 100 at (expires_at - total_duration) to 0 at
    expires_at and is clamped to [0, 100]. Reaching expires_at flips the offer
    to EXPIRED; nothing is retracted server-side.

    Args:
        now: Current wall-clock time
        expires_at: When the counter-offer lapses
        total_duration: Full validity window of the offer
    """
    remaining = _as_utc(expires_at) - _as_utc(now)

    if remaining <= timedelta(0):
        return Countdown(remaining_label=EXPIRED_LABEL, progress_percent=0.0, is_expired=True)

    total_seconds = total_duration.total_seconds()
    if total_seconds <= 0:
        progress = 0.0
    else:
        progress = min(100.0, max(0.0, remaining.total_seconds() / total_seconds * 100))

    # Round partial seconds up so the label never shows 0:00 before expiry
    whole_seconds = int(-(-remaining.total_seconds() // 1))
    minutes, seconds = divmod(whole_seconds, 60)

    return Countdown(
        remaining_label=f"{minutes}:{seconds:02d}",
        progress_percent=progress,
        is_expired=False
    )
