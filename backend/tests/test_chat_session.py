"""Tests for the buyer-side negotiation chat client."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest

from tradepost.chat import ChatState, NegotiationChatSession, parse_agent_reply, round_flags
from tradepost.chat.session import ERROR_MESSAGE
from tradepost.core.exceptions import MalformedAgentReplyError

FUNCTION_URL = "http://negotiator.test/agent-negotiate"


def _counter_reply(amount, conversation_id="conv-1"):
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=10)
    return {
        "success": True,
        "response": f"How about ${amount}?",
        "conversationId": conversation_id,
        "counterOfferAmount": amount,
        "offerAccepted": False,
        "expiresAt": expires_at.isoformat(),
    }


def _session(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NegotiationChatSession(
        "item-1",
        buyer_id="buyer-1",
        client=client,
        function_url=FUNCTION_URL,
        think_delay=(0, 0),
        **kwargs
    ), client


def test_round_flags():
    assert round_flags(0) == (False, False)
    assert round_flags(1) == (True, False)
    assert round_flags(2) == (False, True)
    assert round_flags(5) == (False, True)


def test_parse_agent_reply_rejects_failure_body():
    with pytest.raises(MalformedAgentReplyError):
        parse_agent_reply({"success": False, "error": "Item not found"})


def test_parse_agent_reply_requires_response_text():
    with pytest.raises(MalformedAgentReplyError):
        parse_agent_reply({"success": True, "conversationId": "c"})


def test_parse_agent_reply_reads_camel_case_fields():
    reply = parse_agent_reply({
        "success": True,
        "response": "Deal",
        "conversationId": "conv-9",
        "counterOfferAmount": "110.00",
        "expiresAt": "2026-03-01T09:40:00Z",
    })

    assert reply.conversation_id == "conv-9"
    assert reply.counter_offer_amount == Decimal("110.00")
    assert reply.expires_at == datetime(2026, 3, 1, 9, 40, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_counter_offer_turn_sends_camel_case_payload():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=_counter_reply(110))

    session, client = _session(handler)
    async with client:
        appended = await session.send("Would you take $100?")

    assert requests == [{
        "itemId": "item-1",
        "userMessage": "Would you take $100?",
        "conversationId": None,
        "buyerId": "buyer-1",
    }]
    assert [m.sender for m in appended] == ["user", "ai"]
    assert appended[1].counter_offer == Decimal("110")
    assert session.conversation_id == "conv-1"
    assert session.negotiation_round == 1
    assert session.state is ChatState.IDLE


@pytest.mark.asyncio
async def test_conversation_id_is_sent_on_later_turns():
    seen_ids = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_ids.append(json.loads(request.content)["conversationId"])
        return httpx.Response(200, json=_counter_reply(110, conversation_id="conv-7"))

    session, client = _session(handler)
    async with client:
        await session.send("$100?")
        await session.send("$102?")

    assert seen_ids == [None, "conv-7"]


@pytest.mark.asyncio
async def test_counter_round_flags_progress():
    amounts = iter([110, 108, 106])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_counter_reply(next(amounts)))

    session, client = _session(handler)
    async with client:
        for text in ("$100", "$101", "$102"):
            await session.send(text)

    counters = [m for m in session.messages if m.counter_offer is not None]
    assert [(m.is_second_counter, m.is_final_counter) for m in counters] == [
        (False, False),
        (True, False),
        (False, True),
    ]
    assert session.negotiation_round == 3


@pytest.mark.asyncio
async def test_acceptance_phrase_is_confirmed_locally():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("acceptance must not reach the negotiation function")

    session, client = _session(handler)
    async with client:
        appended = await session.send("I accept your offer of $1,250.00")

    assert [m.sender for m in appended] == ["user", "ai"]
    assert appended[1].offer_accepted is True
    assert appended[1].accepted_offer == Decimal("1250.00")
    assert session.offer_accepted is True


@pytest.mark.asyncio
async def test_acceptance_without_amount_goes_to_agent():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"success": True, "response": "Which offer?", "conversationId": "c"})

    session, client = _session(handler)
    async with client:
        await session.send("I accept the offer")

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_agent_acceptance_adds_congratulations():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "success": True,
            "response": "Perfect! I accept your offer.",
            "conversationId": "conv-1",
            "offerAccepted": True,
        })

    session, client = _session(handler)
    async with client:
        appended = await session.send("$120")

    assert [m.sender for m in appended] == ["user", "ai", "system"]
    assert appended[1].offer_accepted is True
    assert "Congratulations" in appended[2].content
    assert session.offer_accepted is True


@pytest.mark.asyncio
async def test_timeout_becomes_inline_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    session, client = _session(handler)
    async with client:
        appended = await session.send("$100?")

    assert [m.sender for m in appended] == ["user", "system"]
    assert appended[1].content == ERROR_MESSAGE
    assert session.last_error is not None
    assert session.state is ChatState.IDLE


@pytest.mark.asyncio
async def test_connection_error_becomes_inline_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    session, client = _session(handler)
    async with client:
        appended = await session.send("$100?")

    assert appended[-1].content == ERROR_MESSAGE


@pytest.mark.asyncio
async def test_failure_body_becomes_inline_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "error": "Item not found"})

    session, client = _session(handler)
    async with client:
        appended = await session.send("$100?")

    assert appended[-1].sender == "system"
    assert isinstance(session.last_error, MalformedAgentReplyError)


@pytest.mark.asyncio
async def test_error_does_not_advance_round():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream exploded")

    session, client = _session(handler)
    async with client:
        await session.send("$100?")

    assert session.negotiation_round == 0
    assert session.conversation_id is None


@pytest.mark.asyncio
async def test_empty_message_is_ignored():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("empty input must not be sent")

    session, client = _session(handler)
    async with client:
        assert await session.send("   ") is None

    assert session.messages == ()


@pytest.mark.asyncio
async def test_second_send_while_awaiting_is_dropped():
    release = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json=_counter_reply(110))

    session, client = _session(handler)
    async with client:
        first = asyncio.create_task(session.send("$100?"))
        await asyncio.sleep(0)
        assert session.state is ChatState.AWAITING_AGENT_REPLY

        assert await session.send("$105?") is None

        release.set()
        await first

    assert [m.content for m in session.messages if m.sender == "user"] == ["$100?"]


@pytest.mark.asyncio
async def test_counter_message_countdown():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_counter_reply(110))

    session, client = _session(handler)
    async with client:
        appended = await session.send("$100?")

    countdown = appended[1].countdown()
    assert countdown is not None
    assert countdown.is_expired is False
    assert appended[0].countdown() is None

    later = appended[1].expires_at + timedelta(seconds=1)
    assert appended[1].countdown(later).remaining_label == "EXPIRED"
