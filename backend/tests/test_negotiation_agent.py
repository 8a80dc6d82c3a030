"""Tests for the seller-side negotiation agent and its endpoint."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from tradepost.models import NegotiationMessage
from tradepost.services.negotiation_agent_service import decide, parse_offer_amount


NOW = datetime(2026, 3, 1, 9, 30, 0)


def test_parse_offer_amount_variants():
    assert parse_offer_amount("Would you take $1,250.50?") == Decimal("1250.50")
    assert parse_offer_amount("how about 300 for it") == Decimal("300")
    assert parse_offer_amount("Is it still available?") is None


def test_parse_offer_amount_reads_bare_numbers():
    # Without a required "$" any number counts as an offer
    assert parse_offer_amount("can you ship in 2 days?") == Decimal("2")


def test_offer_at_asking_price_is_accepted():
    decision = decide(Decimal("120"), Decimal("120"), Decimal("90"), 0, now=NOW)

    assert decision.offer_accepted is True
    assert decision.counter_offer_amount is None


def test_offer_below_minimum_is_declined_with_floor():
    decision = decide(Decimal("80"), Decimal("120"), Decimal("90"), 0, item_title="Road Bike", now=NOW)

    assert decision.offer_accepted is False
    assert decision.counter_offer_amount is None
    assert "$90.00" in decision.response


@pytest.mark.parametrize("style, expected", [
    ("passive", Decimal("106.00")),
    ("balanced", Decimal("110.00")),
    ("aggressive", Decimal("114.00")),
    ("very_aggressive", Decimal("116.00")),
    ("unheard_of", Decimal("110.00")),
])
def test_counter_moves_toward_asking_by_style(style, expected):
    decision = decide(Decimal("100"), Decimal("120"), Decimal("90"), 0, aggressiveness=style, now=NOW)

    assert decision.counter_offer_amount == expected
    assert decision.expires_at == NOW + timedelta(minutes=10)
    assert "10 minutes" in decision.response


def test_counter_never_reaches_asking_price():
    decision = decide(
        Decimal("100.00"), Decimal("100.01"), Decimal("90"), 0,
        aggressiveness="very_aggressive", now=NOW
    )

    assert decision.counter_offer_amount == Decimal("100.00")


def test_agent_stops_countering_after_max_rounds():
    decision = decide(Decimal("100"), Decimal("120"), Decimal("90"), 3, now=NOW)

    assert decision.offer_accepted is True
    assert decision.counter_offer_amount is None


# API

@pytest.mark.asyncio
async def test_negotiate_endpoint_counters_in_camel_case(client: AsyncClient, db, proposer, target_item):
    response = await client.post(
        "/api/agent-negotiate",
        json={"itemId": target_item.id, "userMessage": "Would you take $100?", "buyerId": proposer.id}
    )

    assert response.status_code == 200
    data = response.json()

    assert data["success"] is True
    assert data["isOffer"] is True
    assert data["offerAccepted"] is False
    assert isinstance(data["counterOfferAmount"], float)
    assert data["counterOfferAmount"] == 110.0
    assert data["conversationId"]
    assert data["expiresAt"].endswith("Z")
    expires_at = datetime.fromisoformat(data["expiresAt"].replace("Z", "+00:00"))
    assert expires_at.tzinfo is not None

    result = await db.execute(
        select(NegotiationMessage)
        .where(NegotiationMessage.conversation_id == data["conversationId"])
        .order_by(NegotiationMessage.sequence)
    )
    messages = result.scalars().all()
    assert [m.sender for m in messages] == ["user", "ai"]
    assert messages[0].offer_amount == Decimal("100")


@pytest.mark.asyncio
async def test_negotiate_endpoint_accepts_after_three_counters(client: AsyncClient, proposer, target_item):
    conversation_id = None
    for _ in range(3):
        response = await client.post(
            "/api/agent-negotiate",
            json={
                "itemId": target_item.id,
                "userMessage": "$100 is my offer",
                "conversationId": conversation_id,
                "buyerId": proposer.id
            }
        )
        data = response.json()
        assert data["counterOfferAmount"] is not None
        conversation_id = data["conversationId"]

    final = await client.post(
        "/api/agent-negotiate",
        json={"itemId": target_item.id, "userMessage": "$100, final", "conversationId": conversation_id}
    )

    assert final.json()["offerAccepted"] is True
    assert final.json()["conversationId"] == conversation_id


@pytest.mark.asyncio
async def test_negotiate_endpoint_plain_question(client: AsyncClient, target_item):
    response = await client.post(
        "/api/agent-negotiate",
        json={"itemId": target_item.id, "userMessage": "Is it still available?"}
    )

    data = response.json()
    assert data["isOffer"] is False
    assert data["counterOfferAmount"] is None
    assert "Road Bike" in data["response"]


@pytest.mark.asyncio
async def test_negotiate_endpoint_default_minimum(client: AsyncClient, owner, make_item):
    """Without a seller minimum the floor is 70% of the asking price."""
    item = await make_item(owner, "Bookshelf", "100.00")

    response = await client.post(
        "/api/agent-negotiate",
        json={"itemId": item.id, "userMessage": "$60?"}
    )

    assert "$70.00" in response.json()["response"]


@pytest.mark.asyncio
async def test_negotiate_endpoint_unknown_item(client: AsyncClient):
    response = await client.post(
        "/api/agent-negotiate",
        json={"itemId": "missing", "userMessage": "$10?"}
    )

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_negotiate_endpoint_sold_item(client: AsyncClient, owner, make_item):
    item = await make_item(owner, "Sofa", "300.00", status="sold")

    response = await client.post(
        "/api/agent-negotiate",
        json={"itemId": item.id, "userMessage": "$250?"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_negotiate_endpoint_rejects_other_buyers_conversation(client: AsyncClient, proposer, outsider, target_item):
    first = await client.post(
        "/api/agent-negotiate",
        json={"itemId": target_item.id, "userMessage": "$100?", "buyerId": proposer.id}
    )
    conversation_id = first.json()["conversationId"]

    hijack = await client.post(
        "/api/agent-negotiate",
        json={
            "itemId": target_item.id,
            "userMessage": "$95?",
            "conversationId": conversation_id,
            "buyerId": outsider.id
        }
    )

    assert hijack.status_code == 403
    assert hijack.json()["success"] is False
