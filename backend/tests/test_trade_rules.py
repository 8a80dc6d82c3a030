"""Tests for trade offer validation and value balance."""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from tradepost.core.exceptions import (
    CashCeilingExceededError,
    EmptyOfferError,
    NegativeCashAdjustmentError,
)
from tradepost.models.trade import TradeProposal
from tradepost.services.trade_service import (
    BalanceDirection,
    compute_balance,
    compute_offer_value,
    effective_status,
    validate_proposal,
)


def _items(*prices):
    return [SimpleNamespace(price=Decimal(p)) for p in prices]


def test_offer_value_sums_items_and_cash():
    assert compute_offer_value(_items("50.00", "30.00"), Decimal("25")) == Decimal("105.00")


def test_offer_value_cash_only():
    assert compute_offer_value([], 40) == Decimal("40")


def test_empty_offer_rejected():
    with pytest.raises(EmptyOfferError):
        validate_proposal([], Decimal("0"))


def test_cash_only_offer_is_valid():
    validate_proposal([], Decimal("10"))


def test_negative_cash_rejected():
    with pytest.raises(NegativeCashAdjustmentError):
        validate_proposal(["item-a"], Decimal("-5"))


def test_cash_at_ceiling_allowed():
    validate_proposal(["item-a"], Decimal("500"))


def test_cash_above_ceiling_rejected():
    with pytest.raises(CashCeilingExceededError) as exc_info:
        validate_proposal(["item-a"], Decimal("500.01"))

    assert exc_info.value.details["ceiling"] == "500"


def test_custom_ceiling():
    with pytest.raises(CashCeilingExceededError):
        validate_proposal([], Decimal("101"), ceiling=100)


def test_balance_within_tolerance_is_even():
    balance = compute_balance(Decimal("119.50"), Decimal("120.00"))

    assert balance.direction == BalanceDirection.EVEN
    assert balance.difference == Decimal("-0.50")


def test_balance_exactly_at_tolerance_is_not_even():
    balance = compute_balance(Decimal("121.00"), Decimal("120.00"))

    assert balance.direction == BalanceDirection.PROPOSER_OFFERS_MORE


def test_balance_target_offers_more():
    balance = compute_balance(Decimal("80"), Decimal("120"))

    assert balance.direction == BalanceDirection.TARGET_OFFERS_MORE
    assert balance.difference == Decimal("-40")


def test_balance_direction_wire_values():
    assert BalanceDirection.PROPOSER_OFFERS_MORE.value == "proposerOffersMore"
    assert BalanceDirection.TARGET_OFFERS_MORE.value == "targetOffersMore"


def test_effective_status_reads_stale_pending_as_expired():
    now = datetime(2026, 1, 1, 12, 0, 0)
    proposal = TradeProposal(status="pending", expires_at=now - timedelta(seconds=1))

    assert effective_status(proposal, now) == "expired"


def test_effective_status_keeps_terminal_status():
    now = datetime(2026, 1, 1, 12, 0, 0)
    proposal = TradeProposal(status="accepted", expires_at=now - timedelta(hours=1))

    assert effective_status(proposal, now) == "accepted"


def test_effective_status_pending_before_expiry():
    now = datetime(2026, 1, 1, 12, 0, 0)
    proposal = TradeProposal(status="pending", expires_at=now + timedelta(minutes=1))

    assert effective_status(proposal, now) == "pending"


def test_smallest_cash_only_offer_is_valid():
    validate_proposal([], Decimal("0.01"))


def test_items_without_cash_is_valid():
    validate_proposal(["item-a"], Decimal("0"))


def test_balance_sign_matches_direction():
    for offer, target in [("10", "50"), ("50", "10"), ("50", "50.5")]:
        balance = compute_balance(Decimal(offer), Decimal(target))
        if balance.direction == BalanceDirection.PROPOSER_OFFERS_MORE:
            assert balance.difference > 0
        elif balance.direction == BalanceDirection.TARGET_OFFERS_MORE:
            assert balance.difference < 0
        else:
            assert abs(balance.difference) < 1


def test_sub_cent_cash_only_offer_is_empty():
    """Cash that rounds to 0.00 at storage precision is no cash."""
    with pytest.raises(EmptyOfferError):
        validate_proposal([], Decimal("0.004"))


def test_cash_rounding_up_to_a_cent_is_valid():
    validate_proposal([], Decimal("0.005"))
