"""
Buyer-side client for negotiating an item's price with the seller's agent.

A session keeps a display cache of the conversation. The durable state lives
with the negotiation function; the session only remembers the conversation
id it was given, the number of counter-offers seen, and the transcript.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

import httpx

from tradepost.chat.acceptance import match_acceptance
from tradepost.chat.countdown import Countdown, compute_countdown
from tradepost.config import settings
from tradepost.core.exceptions import MalformedAgentReplyError, TransportError

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Sorry, there was an error. Please try again."


class ChatState(str, Enum):
    """Client-observable conversation state."""
    IDLE = "idle"
    AWAITING_AGENT_REPLY = "awaiting_agent_reply"


@dataclass(frozen=True)
class ChatMessage:
    """One transcript entry. Never modified after it is appended."""
    sender: str  # "user" | "ai" | "system"
    content: str
    timestamp: datetime
    offer_accepted: bool = False
    counter_offer: Optional[Decimal] = None
    accepted_offer: Optional[Decimal] = None
    expires_at: Optional[datetime] = None
    is_second_counter: bool = False
    is_final_counter: bool = False

    def countdown(self, now: Optional[datetime] = None) -> Optional[Countdown]:
        """Timer state for a counter-offer message, None for anything else."""
        if self.counter_offer is None or self.expires_at is None:
            return None
        return compute_countdown(
            now or datetime.now(timezone.utc),
            self.expires_at,
            timedelta(seconds=settings.COUNTER_OFFER_WINDOW_SECONDS)
        )


@dataclass(frozen=True)
class AgentReply:
    """Structured reply from the negotiation function."""
    conversation_id: Optional[str]
    response: str
    counter_offer_amount: Optional[Decimal] = None
    offer_accepted: bool = False
    expires_at: Optional[datetime] = None


def round_flags(negotiation_round: int) -> tuple[bool, bool]:
    """
    Presentation flags for a counter-offer given the rounds already seen.

    Returns:
        Tuple of (is_second_counter, is_final_counter)
    """
    return negotiation_round == 1, negotiation_round >= 2


def parse_agent_reply(data) -> AgentReply:
    """
    Validate a negotiation function response body.

    Raises:
        MalformedAgentReplyError: success is false or required fields are missing
    """
    if not isinstance(data, dict):
        raise MalformedAgentReplyError("Negotiation function returned a non-object body")

    if not data.get("success"):
        raise MalformedAgentReplyError(data.get("error") or "Negotiation function reported a failure")

    response = data.get("response")
    if not isinstance(response, str) or not response:
        raise MalformedAgentReplyError("Negotiation function reply has no response text")

    counter = data.get("counterOfferAmount")
    expires_at = data.get("expiresAt")
    try:
        counter = Decimal(str(counter)) if counter is not None else None
        if expires_at is not None:
            expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    except (InvalidOperation, AttributeError, ValueError) as e:
        raise MalformedAgentReplyError(f"Negotiation function reply has invalid fields: {e}")

    return AgentReply(
        conversation_id=data.get("conversationId"),
        response=response,
        counter_offer_amount=counter,
        offer_accepted=bool(data.get("offerAccepted")),
        expires_at=expires_at
    )


class NegotiationChatSession:
    """
    One buyer's conversation with the negotiation agent about one item.

    Usage:
        async with NegotiationChatSession(item_id, buyer_id) as chat:
            await chat.send("Would you take $40?")
            for message in chat.messages:
                print(message.sender, message.content)
    """

    def __init__(
        self,
        item_id: str,
        buyer_id: str | None = None,
        client: httpx.AsyncClient | None = None,
        function_url: str | None = None,
        timeout: float | None = None,
        think_delay: tuple[float, float] | None = None
    ):
        self.item_id = item_id
        self.buyer_id = buyer_id
        self.function_url = function_url or settings.NEGOTIATION_FUNCTION_URL
        self.timeout = settings.NEGOTIATION_TIMEOUT_SECONDS if timeout is None else timeout
        self.think_delay = think_delay or (settings.THINK_DELAY_MIN_SECONDS, settings.THINK_DELAY_MAX_SECONDS)

        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

        self.conversation_id: Optional[str] = None
        self.negotiation_round = 0
        self.offer_accepted = False
        self.state = ChatState.IDLE
        self.last_error: Optional[Exception] = None
        self._messages: list[ChatMessage] = []

    async def __aenter__(self) -> "NegotiationChatSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    async def send(self, text: str) -> list[ChatMessage] | None:
        """
        Send one buyer message and append whatever comes back.

        Returns:
            Messages appended by this turn, or None if the text was empty or
            a previous turn is still awaiting its reply
        """
        text = (text or "").strip()
        if not text or self.state is ChatState.AWAITING_AGENT_REPLY:
            return None

        self.state = ChatState.AWAITING_AGENT_REPLY
        try:
            return await self._take_turn(text)
        finally:
            self.state = ChatState.IDLE

    async def _take_turn(self, text: str) -> list[ChatMessage]:
        appended = [self._append(ChatMessage(sender="user", content=text, timestamp=self._now()))]

        accepted_amount = match_acceptance(text)
        if accepted_amount is not None:
            # Obvious confirmations never leave the client
            self.offer_accepted = True
            appended.append(self._append(ChatMessage(
                sender="ai",
                content=(
                    f"Wonderful! Your acceptance of ${accepted_amount:.2f} is confirmed. "
                    "The seller will contact you shortly to complete the purchase."
                ),
                timestamp=self._now(),
                offer_accepted=True,
                accepted_offer=accepted_amount
            )))
            return appended

        try:
            reply = await self._call_negotiation_function(text)
        except (TransportError, MalformedAgentReplyError) as e:
            logger.warning(f"Negotiation turn failed for item {self.item_id}: {e}")
            self.last_error = e
            appended.append(self._append(ChatMessage(sender="system", content=ERROR_MESSAGE, timestamp=self._now())))
            return appended

        self.last_error = None

        # Pacing so replies don't feel instantaneous
        await asyncio.sleep(random.uniform(*self.think_delay))

        if reply.conversation_id:
            self.conversation_id = reply.conversation_id

        is_second_counter = is_final_counter = False
        if reply.counter_offer_amount is not None:
            is_second_counter, is_final_counter = round_flags(self.negotiation_round)
            self.negotiation_round += 1

        appended.append(self._append(ChatMessage(
            sender="ai",
            content=reply.response,
            timestamp=self._now(),
            offer_accepted=reply.offer_accepted,
            counter_offer=reply.counter_offer_amount,
            expires_at=reply.expires_at,
            is_second_counter=is_second_counter,
            is_final_counter=is_final_counter
        )))

        if reply.offer_accepted:
            self.offer_accepted = True
            appended.append(self._append(ChatMessage(
                sender="system",
                content=(
                    "Congratulations! Your offer has been accepted! "
                    "The seller will contact you shortly to complete the purchase."
                ),
                timestamp=self._now()
            )))

        return appended

    async def _call_negotiation_function(self, text: str) -> AgentReply:
        payload = {
            "itemId": self.item_id,
            "userMessage": text,
            "conversationId": self.conversation_id,
            "buyerId": self.buyer_id,
        }
        headers = {}
        if settings.NEGOTIATION_FUNCTION_KEY:
            headers["Authorization"] = f"Bearer {settings.NEGOTIATION_FUNCTION_KEY}"

        try:
            response = await self._client.post(
                self.function_url,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Negotiation function timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Negotiation function unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if data is None and response.is_error:
            raise TransportError(f"Negotiation function returned HTTP {response.status_code}")

        return parse_agent_reply(data)

    def _append(self, message: ChatMessage) -> ChatMessage:
        self._messages.append(message)
        return message

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
