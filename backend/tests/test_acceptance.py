"""Tests for local acceptance detection."""

from decimal import Decimal

import pytest

from tradepost.chat.acceptance import extract_dollar_amount, is_acceptance_phrase, match_acceptance


@pytest.mark.parametrize("text, expected", [
    ("I accept your offer of $45", Decimal("45")),
    ("i ACCEPT the offer, $1,250.00 it is", Decimal("1250.00")),
    ("Ok, I accept your offer: $89.99!", Decimal("89.99")),
])
def test_acceptance_with_amount(text, expected):
    assert match_acceptance(text) == expected


def test_acceptance_without_amount():
    assert match_acceptance("I accept your offer") is None


def test_amount_without_acceptance():
    assert match_acceptance("Would you do $45?") is None


def test_amount_without_dollar_sign_is_not_read():
    assert extract_dollar_amount("I accept your offer of 45") is None


def test_first_amount_wins():
    assert extract_dollar_amount("$40 or maybe $45") == Decimal("40")


def test_negated_phrase_still_matches():
    # Substring matching cannot see negation
    assert is_acceptance_phrase("I don't think I accept your offer of $50")
    assert match_acceptance("I don't think I accept your offer of $50") == Decimal("50")
