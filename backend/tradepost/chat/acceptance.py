"""
Local detection of buyer messages that accept an agent's counter-offer.

A message counts as an acceptance when it contains one of the acceptance
phrases (case-insensitive) and a dollar amount. Such messages are confirmed
locally instead of being sent to the negotiation function.

Known limitation: matching is by substring, so negated phrasing such as
"I don't accept your offer of $50" is treated as an acceptance.
"""

import re
from decimal import Decimal
from typing import Optional

ACCEPTANCE_PHRASES = (
    "i accept your offer",
    "i accept the offer",
)

DOLLAR_AMOUNT_PATTERN = re.compile(r"\$(\d{1,3}(?:,\d{3})+|\d+)(\.\d{1,2})?")


def extract_dollar_amount(text: str) -> Optional[Decimal]:
    """First "$" amount in the text with thousands separators removed, or None."""
    match = DOLLAR_AMOUNT_PATTERN.search(text or "")
    if not match:
        return None
    whole, cents = match.groups()
    return Decimal(whole.replace(",", "") + (cents or ""))


def is_acceptance_phrase(text: str) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in ACCEPTANCE_PHRASES)


def match_acceptance(text: str) -> Optional[Decimal]:
    """
    Accepted amount if the text accepts an offer and names a price.

    "I accept your offer of $1,250.00" -> Decimal("1250.00")
    "I accept the offer"               -> None (no amount, goes to the agent)
    """
    if not is_acceptance_phrase(text):
        return None
    return extract_dollar_amount(text)
