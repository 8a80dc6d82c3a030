"""
Rule-based negotiation agent that answers buyers on behalf of a seller.

The agent accepts offers at or above the asking price, declines offers
below the seller's minimum, and otherwise counters part of the way toward
the asking price. Counter-offers carry a short validity window and the agent
stops countering after MAX_COUNTER_OFFERS rounds.

Known limitation: the "$" in an offer is optional, so any number in the
message is read as a price ("can you ship in 2 days?" is a $2 offer).
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tradepost.config import settings
from tradepost.core.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from tradepost.models.item import Item, ItemStatus
from tradepost.models.negotiation import NegotiationConversation, NegotiationMessage
from tradepost.models.profile import Profile

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# Share of the gap between offer and asking price the agent counters with
COUNTER_SHARE_BY_AGGRESSIVENESS = {
    "passive": Decimal("0.3"),
    "balanced": Decimal("0.5"),
    "aggressive": Decimal("0.7"),
    "very_aggressive": Decimal("0.8"),
}

OFFER_AMOUNT_PATTERN = re.compile(r"\$?\s*(\d{1,3}(?:,\d{3})+|\d+)(\.\d{1,2})?")


def parse_offer_amount(message: str) -> Optional[Decimal]:
    """First dollar amount in a buyer message ("$1,250.50", "300"), or None."""
    match = OFFER_AMOUNT_PATTERN.search(message or "")
    if not match:
        return None
    whole, cents = match.groups()
    return Decimal(whole.replace(",", "") + (cents or ""))


@dataclass(frozen=True)
class NegotiationDecision:
    """What the agent says back to one buyer turn."""
    response: str
    offer_accepted: bool = False
    counter_offer_amount: Optional[Decimal] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class NegotiationReply:
    """Result of one negotiation turn, as returned to the chat client."""
    conversation_id: str
    response: str
    is_offer: bool
    offer_accepted: bool = False
    counter_offer_amount: Optional[Decimal] = None
    expires_at: Optional[datetime] = None


def decide(
    offer_amount: Decimal,
    asking_price: Decimal,
    minimum_price: Decimal,
    previous_counters: int,
    aggressiveness: str = "balanced",
    item_title: str = "item",
    item_condition: str | None = None,
    now: Optional[datetime] = None
) -> NegotiationDecision:
    """
    Decide how to answer a concrete price offer.

    Args:
        offer_amount: Buyer's offer
        asking_price: Listed price
        minimum_price: Seller's floor (never revealed unless declining)
        previous_counters: Counter-offers the agent already made in this conversation
        aggressiveness: Seller's negotiation style
        now: Clock for the counter-offer expiry

    Returns:
        NegotiationDecision
    """
    condition = item_condition or "good"

    if offer_amount >= asking_price:
        return NegotiationDecision(
            response=(
                f"Perfect! I accept your offer of ${offer_amount:.2f} for the {item_title}. "
                "This is exactly what I was asking for. Let's proceed with the purchase!"
            ),
            offer_accepted=True
        )

    if offer_amount < minimum_price:
        return NegotiationDecision(
            response=(
                f"I appreciate your offer of ${offer_amount:.2f}, but I can't go below "
                f"${minimum_price:.2f} for this {item_title}. The item is in {condition} condition "
                f"and worth every penny. Would you consider ${minimum_price:.2f}?"
            )
        )

    if previous_counters >= settings.MAX_COUNTER_OFFERS:
        return NegotiationDecision(
            response=(
                f"I've made my best offers already. Your offer of ${offer_amount:.2f} meets my "
                "minimum, so I accept it. Let's close this deal!"
            ),
            offer_accepted=True
        )

    share = COUNTER_SHARE_BY_AGGRESSIVENESS.get(aggressiveness, COUNTER_SHARE_BY_AGGRESSIVENESS["balanced"])
    counter = (offer_amount + (asking_price - offer_amount) * share).quantize(CENTS, rounding=ROUND_HALF_UP)

    # Never counter at or above the listed price
    if counter >= asking_price:
        counter = asking_price - CENTS

    window_minutes = settings.COUNTER_OFFER_WINDOW_SECONDS // 60
    return NegotiationDecision(
        response=(
            f"I appreciate your offer of ${offer_amount:.2f}! How about we meet in the middle at "
            f"${counter:.2f}? This way, you still get a fantastic {item_title} that's in {condition} "
            "condition, and it's a fair compromise for both of us! "
            f"This offer is valid for the next {window_minutes} minutes. What do you think?"
        ),
        counter_offer_amount=counter,
        expires_at=(now or datetime.utcnow()) + timedelta(seconds=settings.COUNTER_OFFER_WINDOW_SECONDS)
    )


class NegotiationAgentService:
    """Service behind the negotiation function endpoint."""

    async def negotiate(
        self,
        db: AsyncSession,
        item_id: str,
        user_message: str,
        conversation_id: str | None = None,
        buyer_id: str | None = None
    ) -> NegotiationReply:
        """
        Handle one buyer turn.

        Args:
            item_id: Item being negotiated
            user_message: Buyer's free text
            conversation_id: Existing conversation, or None on the first turn
            buyer_id: Buyer's user id

        Returns:
            NegotiationReply with the agent's text and structured fields

        Raises:
            NotFoundError: Item, seller profile, or conversation does not exist
            ValidationError: Item is no longer for sale or belongs to another conversation
            NotAuthorizedError: Conversation was started by a different buyer
        """
        result = await db.execute(select(Item).where(Item.id == item_id))
        item = result.scalar_one_or_none()

        if not item:
            raise NotFoundError("Item not found")

        if item.status != ItemStatus.ACTIVE.value:
            raise ValidationError("Item is no longer available for negotiation")

        result = await db.execute(select(Profile).where(Profile.id == item.seller_id))
        seller = result.scalar_one_or_none()

        if not seller:
            raise NotFoundError("Seller profile not found")

        conversation = await self._get_or_create_conversation(db, item.id, conversation_id, buyer_id)

        offer_amount = parse_offer_amount(user_message)
        is_offer = offer_amount is not None

        if is_offer:
            previous_counters = await self._count_counter_offers(db, conversation.id)
            asking_price = Decimal(item.price)
            minimum_price = (
                Decimal(item.minimum_price) if item.minimum_price
                else (asking_price * settings.DEFAULT_MINIMUM_PRICE_RATIO).quantize(CENTS, rounding=ROUND_HALF_UP)
            )

            logger.debug(
                f"Negotiating item {item.id}: offer={offer_amount}, asking={asking_price}, "
                f"minimum={minimum_price}, style={seller.negotiation_aggressiveness}, "
                f"previous_counters={previous_counters}"
            )

            decision = decide(
                offer_amount=offer_amount,
                asking_price=asking_price,
                minimum_price=minimum_price,
                previous_counters=previous_counters,
                aggressiveness=seller.negotiation_aggressiveness,
                item_title=item.title,
                item_condition=item.condition
            )
        else:
            decision = NegotiationDecision(
                response=(
                    f"Thanks for your message! I'm here to help you with any questions about this "
                    f"{item.title}. If you'd like to make an offer, just mention a price like "
                    "\"$50\" and I'll be happy to negotiate!"
                )
            )

        sequence = await self._next_sequence(db, conversation.id)
        db.add(NegotiationMessage(
            conversation_id=conversation.id,
            sequence=sequence,
            sender="user",
            content=user_message,
            offer_amount=offer_amount,
            message_type="offer" if is_offer else "text"
        ))
        db.add(NegotiationMessage(
            conversation_id=conversation.id,
            sequence=sequence + 1,
            sender="ai",
            content=decision.response,
            counter_offer_amount=decision.counter_offer_amount,
            expires_at=decision.expires_at,
            message_type="response"
        ))

        if is_offer:
            conversation.current_offer = offer_amount
        if decision.offer_accepted:
            conversation.status = "offer_accepted"
        conversation.updated_at = datetime.utcnow()

        await db.commit()

        if decision.offer_accepted:
            logger.info(f"Conversation {conversation.id}: offer of ${offer_amount} accepted for item {item.id}")
        elif decision.counter_offer_amount is not None:
            logger.info(f"Conversation {conversation.id}: countered with ${decision.counter_offer_amount}")

        return NegotiationReply(
            conversation_id=conversation.id,
            response=decision.response,
            is_offer=is_offer,
            offer_accepted=decision.offer_accepted,
            counter_offer_amount=decision.counter_offer_amount,
            expires_at=decision.expires_at
        )

    async def _get_or_create_conversation(
        self,
        db: AsyncSession,
        item_id: str,
        conversation_id: str | None,
        buyer_id: str | None
    ) -> NegotiationConversation:
        if conversation_id:
            result = await db.execute(
                select(NegotiationConversation).where(NegotiationConversation.id == conversation_id)
            )
            conversation = result.scalar_one_or_none()

            if not conversation:
                raise NotFoundError("Conversation not found")

            if conversation.item_id != item_id:
                raise ValidationError("Conversation is about a different item")

            if buyer_id and conversation.buyer_id and conversation.buyer_id != buyer_id:
                raise NotAuthorizedError("Conversation belongs to another buyer")

            return conversation

        conversation = NegotiationConversation(item_id=item_id, buyer_id=buyer_id, status="active")
        db.add(conversation)
        await db.flush()  # Flush to get conversation.id
        return conversation

    async def _count_counter_offers(self, db: AsyncSession, conversation_id: str) -> int:
        result = await db.execute(
            select(func.count()).where(
                NegotiationMessage.conversation_id == conversation_id,
                NegotiationMessage.sender == "ai",
                NegotiationMessage.counter_offer_amount.is_not(None)
            )
        )
        return result.scalar() or 0

    async def _next_sequence(self, db: AsyncSession, conversation_id: str) -> int:
        result = await db.execute(
            select(func.count()).where(NegotiationMessage.conversation_id == conversation_id)
        )
        return result.scalar() or 0


# Singleton
negotiation_agent_service = NegotiationAgentService()
