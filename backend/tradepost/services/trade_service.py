"""
Trade proposal service: value balance, validation, and the accept/reject
state machine for item-for-item (+cash) trades.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from tradepost.config import settings
from tradepost.core.events import event_bus
from tradepost.core.exceptions import (
    AlreadyDecidedError,
    CashCeilingExceededError,
    EmptyOfferError,
    ExpiredError,
    InvalidActionError,
    ItemsNoLongerAvailableError,
    NegativeCashAdjustmentError,
    NotAuthorizedError,
    NotFoundError,
    OfferedItemUnavailableError,
    SelfTradeError,
    TradingDisabledError,
    ValidationError,
)
from tradepost.models.item import Item, ItemStatus
from tradepost.models.profile import Profile
from tradepost.models.trade import TradeItem, TradeProposal, TradeStatus
from tradepost.services.notification_service import create_notification

logger = logging.getLogger(__name__)

VALID_ACTIONS = {
    "accept": TradeStatus.ACCEPTED,
    "reject": TradeStatus.REJECTED,
}

CENTS = Decimal("0.01")


class BalanceDirection(str, Enum):
    """Which side of a trade carries more value."""
    EVEN = "even"
    PROPOSER_OFFERS_MORE = "proposerOffersMore"
    TARGET_OFFERS_MORE = "targetOffersMore"


@dataclass(frozen=True)
class Balance:
    """Signed offer-minus-target difference and its category."""
    difference: Decimal
    direction: BalanceDirection


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging binary noise into Decimal
    return Decimal(str(value))


def _to_cents(value) -> Decimal:
    # Matches the Numeric(10, 2) columns money is stored in
    return _to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_offer_value(offered_items: Iterable, cash_adjustment=0) -> Decimal:
    """Sum of the offered items' prices plus the cash adjustment."""
    total = sum((_to_decimal(item.price) for item in offered_items), Decimal("0"))
    return total + _to_decimal(cash_adjustment)


def validate_proposal(offered_items: Sequence, cash_adjustment=0, ceiling=None) -> None:
    """
    Check the shape of an offer before anything is read or written.

    Cash is rounded to cents first, so an amount that would be stored as
    0.00 counts as no cash.

    Raises:
        EmptyOfferError: No items and no positive cash
        NegativeCashAdjustmentError: Cash below zero
        CashCeilingExceededError: Cash above the ceiling (the ceiling itself is allowed)
    """
    cash = _to_cents(cash_adjustment)
    ceiling = settings.MAX_CASH_ADJUSTMENT if ceiling is None else _to_decimal(ceiling)

    if len(offered_items) == 0 and cash <= 0:
        raise EmptyOfferError()

    if cash < 0:
        raise NegativeCashAdjustmentError(cash)

    if cash > ceiling:
        raise CashCeilingExceededError(cash, ceiling)


def compute_balance(offer_value, target_value, tolerance=None) -> Balance:
    """
    Compare an offer against the target item's value.

    Differences smaller than the tolerance (1.0 by default) count as even so
    that rounding on either side never flips the label.
    """
    tolerance = settings.BALANCE_TOLERANCE if tolerance is None else _to_decimal(tolerance)
    difference = _to_decimal(offer_value) - _to_decimal(target_value)

    if abs(difference) < tolerance:
        direction = BalanceDirection.EVEN
    elif difference > 0:
        direction = BalanceDirection.PROPOSER_OFFERS_MORE
    else:
        direction = BalanceDirection.TARGET_OFFERS_MORE

    return Balance(difference=difference, direction=direction)


def effective_status(proposal: TradeProposal, now: Optional[datetime] = None) -> str:
    """Stored status, except that a stale pending proposal reads as expired."""
    now = now or datetime.utcnow()
    if proposal.status == TradeStatus.PENDING.value and now >= proposal.expires_at:
        return TradeStatus.EXPIRED.value
    return proposal.status


class TradeService:
    """Service for proposing and answering trades."""

    async def submit_proposal(
        self,
        db: AsyncSession,
        target_item_id: str,
        proposer_id: str,
        offered_item_ids: list[str],
        cash_adjustment=Decimal("0"),
        message: str | None = None,
        target_owner_id: str | None = None
    ) -> TradeProposal:
        """
        Proposer offers items and/or cash for someone else's item.

        Args:
            target_item_id: Item the proposer wants
            proposer_id: User making the offer
            offered_item_ids: Proposer's items to give up
            cash_adjustment: Extra cash, 0 up to MAX_CASH_ADJUSTMENT
            message: Optional note for the owner
            target_owner_id: Owner the client believes holds the item (checked if given)

        Returns:
            Created pending TradeProposal

        Raises:
            ValidationError: Offer shape or item ownership is invalid
            TradingDisabledError: Either party has trading switched off
            NotFoundError: Target item missing or no longer active
        """
        cash = _to_cents(cash_adjustment)
        offered_item_ids = list(offered_item_ids or [])

        validate_proposal(offered_item_ids, cash)

        if len(set(offered_item_ids)) != len(offered_item_ids):
            raise ValidationError("The same item cannot be offered twice")

        # Target item must be live
        result = await db.execute(select(Item).where(Item.id == target_item_id))
        target_item = result.scalar_one_or_none()

        if not target_item or target_item.status != ItemStatus.ACTIVE.value:
            raise NotFoundError("Target item not found or not available")

        if target_owner_id and target_item.seller_id != target_owner_id:
            raise ValidationError("Target item does not belong to specified seller")

        if target_item.seller_id == proposer_id:
            raise SelfTradeError()

        # Both parties must have trading switched on
        result = await db.execute(
            select(Profile).where(Profile.id.in_([proposer_id, target_item.seller_id]))
        )
        profiles = {profile.id: profile for profile in result.scalars().all()}
        proposer = profiles.get(proposer_id)
        owner = profiles.get(target_item.seller_id)

        if not proposer or not owner or not proposer.open_to_trades or not owner.open_to_trades:
            raise TradingDisabledError()

        # Offered items must belong to the proposer and still be live
        offered_items: list[Item] = []
        if offered_item_ids:
            result = await db.execute(
                select(Item).where(
                    Item.id.in_(offered_item_ids),
                    Item.seller_id == proposer_id,
                    Item.status == ItemStatus.ACTIVE.value
                )
            )
            found = {item.id: item for item in result.scalars().all()}
            missing = [item_id for item_id in offered_item_ids if item_id not in found]
            if missing:
                raise OfferedItemUnavailableError(missing)
            offered_items = [found[item_id] for item_id in offered_item_ids]

        now = datetime.utcnow()
        total_offered_value = compute_offer_value(offered_items, cash)

        proposal = TradeProposal(
            target_item_id=target_item.id,
            proposer_id=proposer_id,
            target_owner_id=target_item.seller_id,
            cash_adjustment=cash,
            message=message,
            total_offered_value=total_offered_value,
            status=TradeStatus.PENDING.value,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.TRADE_PROPOSAL_EXPIRATION_MINUTES)
        )

        db.add(proposal)
        await db.flush()  # Flush to get proposal.id

        for position, item in enumerate(offered_items):
            db.add(TradeItem(trade_offer_id=proposal.id, item_id=item.id, position=position))

        cash_text = f" + ${cash}" if cash > 0 else ""
        plural = "" if len(offered_items) == 1 else "s"
        await create_notification(
            db=db,
            notification_type="trade_proposed",
            from_user_id=proposer_id,
            to_user_id=target_item.seller_id,
            trade_offer_id=proposal.id,
            content_data={
                "message": (
                    f"Trade Offer: {proposer.full_name or 'Someone'} wants to trade "
                    f"{len(offered_items)} item{plural}{cash_text} for your \"{target_item.title}\"! "
                    f"Offer expires in {settings.TRADE_PROPOSAL_EXPIRATION_MINUTES} minutes."
                ),
                "trade_id": proposal.id,
                "total_offered_value": str(total_offered_value),
            },
            commit=False
        )

        await db.commit()
        await db.refresh(proposal, ["offered_items"])

        logger.info(
            f"Trade {proposal.id} proposed: {proposer_id} offers {len(offered_items)} items "
            f"+ ${cash} (total ${total_offered_value}) for item {target_item.id}"
        )

        await event_bus.publish("trade_proposed", {
            "trade_id": proposal.id,
            "target_item_id": target_item.id,
            "proposer_id": proposer_id,
            "target_owner_id": target_item.seller_id,
            "total_offered_value": str(total_offered_value),
            "expires_at": proposal.expires_at.isoformat(),
        })

        return proposal

    async def respond_to_proposal(
        self,
        db: AsyncSession,
        proposal_id: str,
        responder_id: str,
        action: str  # "accept" | "reject"
    ) -> TradeProposal:
        """
        Target owner accepts or rejects a pending proposal.

        The transition is a conditional update on status = 'pending', so of two
        concurrent responses only one can win; the loser gets AlreadyDecidedError.

        Raises:
            InvalidActionError: Action is not accept or reject
            NotFoundError: Proposal does not exist
            AlreadyDecidedError: Proposal is no longer pending
            ExpiredError: Proposal is past expiration (it is marked expired)
            NotAuthorizedError: Responder does not own the target item
            ItemsNoLongerAvailableError: Accepting, but an offered or target item
                was sold or changed hands (the proposal stays pending)
        """
        if action not in VALID_ACTIONS:
            raise InvalidActionError(action)

        proposal = await self._load(db, proposal_id)

        if proposal.status != TradeStatus.PENDING.value:
            raise AlreadyDecidedError(proposal.id, proposal.status)

        now = datetime.utcnow()
        if now >= proposal.expires_at:
            await self._mark_expired(db, proposal, now)
            raise ExpiredError(proposal.id)

        if responder_id != proposal.target_owner_id:
            raise NotAuthorizedError("Only the target item's owner can respond to this trade")

        if action == "accept":
            await self._check_items_still_available(db, proposal)

        new_status = VALID_ACTIONS[action]
        result = await db.execute(
            update(TradeProposal)
            .where(
                TradeProposal.id == proposal.id,
                TradeProposal.status == TradeStatus.PENDING.value
            )
            .values(status=new_status.value, responded_at=now)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            # Another response (or the sweep) got there first
            await db.rollback()
            await db.refresh(proposal)
            raise AlreadyDecidedError(proposal.id, proposal.status)

        target_title = await self._item_title(db, proposal.target_item_id)
        if new_status == TradeStatus.ACCEPTED:
            text = (
                f"Trade Accepted! Your trade offer for \"{target_title}\" was accepted! "
                "Please arrange collection details with the other party."
            )
        else:
            text = f"Trade Rejected: Your trade offer for \"{target_title}\" was declined."

        await create_notification(
            db=db,
            notification_type=f"trade_{new_status.value}",
            from_user_id=responder_id,
            to_user_id=proposal.proposer_id,
            trade_offer_id=proposal.id,
            content_data={"message": text, "trade_id": proposal.id},
            commit=False
        )

        await db.commit()
        await db.refresh(proposal)

        logger.info(f"Trade {proposal.id} {new_status.value} by {responder_id}")

        # Fulfillment (ownership exchange, collection) listens for trade_accepted
        await event_bus.publish(f"trade_{new_status.value}", {
            "trade_id": proposal.id,
            "target_item_id": proposal.target_item_id,
            "offered_item_ids": proposal.offered_item_ids,
            "proposer_id": proposal.proposer_id,
            "target_owner_id": proposal.target_owner_id,
            "cash_adjustment": str(proposal.cash_adjustment),
        })

        return proposal

    async def get_proposal(
        self,
        db: AsyncSession,
        proposal_id: str,
        user_id: str
    ) -> TradeProposal:
        """
        Get a proposal (only if you're one of the two parties).

        Raises:
            NotFoundError: Proposal does not exist
            NotAuthorizedError: Caller is not a party to it
        """
        proposal = await self._load(db, proposal_id)

        if user_id not in (proposal.proposer_id, proposal.target_owner_id):
            raise NotAuthorizedError("You are not authorized to view this trade")

        return proposal

    async def list_my_proposals(
        self,
        db: AsyncSession,
        user_id: str,
        role: str | None = None,
        status_filter: str | None = None
    ) -> list[TradeProposal]:
        """
        List proposals the user sent, received, or both.

        Args:
            user_id: User ID
            role: "proposer" (sent), "target" (received), or None for both
            status_filter: Optional stored status to filter on
        """
        query = select(TradeProposal).options(selectinload(TradeProposal.offered_items))

        if role == "proposer":
            query = query.where(TradeProposal.proposer_id == user_id)
        elif role == "target":
            query = query.where(TradeProposal.target_owner_id == user_id)
        elif role is None:
            query = query.where(
                (TradeProposal.proposer_id == user_id) |
                (TradeProposal.target_owner_id == user_id)
            )
        else:
            raise ValidationError(f"Invalid role: {role}. Must be 'proposer' or 'target'")

        if status_filter:
            query = query.where(TradeProposal.status == status_filter)

        query = query.order_by(TradeProposal.created_at.desc())

        result = await db.execute(query)
        return list(result.scalars().all())

    async def preview_balance(
        self,
        db: AsyncSession,
        target_item_id: str,
        offered_item_ids: list[str],
        cash_adjustment=Decimal("0")
    ) -> tuple[Decimal, Decimal, Balance]:
        """
        Live value feedback while a proposer is assembling an offer.

        Returns:
            Tuple of (offer_value, target_value, balance)
        """
        result = await db.execute(select(Item).where(Item.id == target_item_id))
        target_item = result.scalar_one_or_none()
        if not target_item:
            raise NotFoundError("Target item not found")

        offered_items: list[Item] = []
        if offered_item_ids:
            result = await db.execute(select(Item).where(Item.id.in_(offered_item_ids)))
            offered_items = list(result.scalars().all())
            missing = set(offered_item_ids) - {item.id for item in offered_items}
            if missing:
                raise OfferedItemUnavailableError(sorted(missing))

        offer_value = compute_offer_value(offered_items, cash_adjustment)
        target_value = _to_decimal(target_item.price)
        return offer_value, target_value, compute_balance(offer_value, target_value)

    async def expire_stale_proposals(
        self,
        db: AsyncSession,
        now: Optional[datetime] = None
    ) -> int:
        """
        Permanently mark every pending proposal past its expiration as expired.

        Returns:
            Number of proposals expired by this sweep
        """
        now = now or datetime.utcnow()

        result = await db.execute(
            select(TradeProposal).where(
                TradeProposal.status == TradeStatus.PENDING.value,
                TradeProposal.expires_at <= now
            )
        )
        stale = list(result.scalars().all())

        if not stale:
            logger.debug("No expired trades found")
            return 0

        expired: list[TradeProposal] = []
        for proposal in stale:
            if not await self._transition_to_expired(db, proposal.id, now):
                continue
            expired.append(proposal)

            target_title = await self._item_title(db, proposal.target_item_id)
            await create_notification(
                db=db,
                notification_type="trade_expired",
                from_user_id=proposal.target_owner_id,
                to_user_id=proposal.proposer_id,
                trade_offer_id=proposal.id,
                content_data={
                    "message": f"Trade Expired: Your trade offer for \"{target_title}\" has expired.",
                    "trade_id": proposal.id,
                },
                commit=False
            )

        await db.commit()

        for proposal in expired:
            await db.refresh(proposal)
            await event_bus.publish("trade_expired", {
                "trade_id": proposal.id,
                "proposer_id": proposal.proposer_id,
                "target_owner_id": proposal.target_owner_id,
            })

        logger.info(f"Trade expiration complete: {len(expired)} of {len(stale)} stale proposals expired")

        return len(expired)

    async def _load(self, db: AsyncSession, proposal_id: str) -> TradeProposal:
        result = await db.execute(
            select(TradeProposal)
            .options(selectinload(TradeProposal.offered_items))
            .where(TradeProposal.id == proposal_id)
        )
        proposal = result.scalar_one_or_none()

        if not proposal:
            raise NotFoundError("Trade offer not found")

        return proposal

    async def _transition_to_expired(self, db: AsyncSession, proposal_id: str, now: datetime) -> bool:
        result = await db.execute(
            update(TradeProposal)
            .where(
                TradeProposal.id == proposal_id,
                TradeProposal.status == TradeStatus.PENDING.value
            )
            .values(status=TradeStatus.EXPIRED.value, responded_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def _mark_expired(self, db: AsyncSession, proposal: TradeProposal, now: datetime) -> None:
        if await self._transition_to_expired(db, proposal.id, now):
            logger.info(f"Trade {proposal.id} expired on response attempt")
        await db.commit()
        await db.refresh(proposal)

    async def _check_items_still_available(self, db: AsyncSession, proposal: TradeProposal) -> None:
        offered_ids = proposal.offered_item_ids
        if offered_ids:
            result = await db.execute(
                select(Item.id).where(
                    Item.id.in_(offered_ids),
                    Item.seller_id == proposal.proposer_id,
                    Item.status == ItemStatus.ACTIVE.value
                )
            )
            available = set(result.scalars().all())
            gone = [item_id for item_id in offered_ids if item_id not in available]
            if gone:
                raise ItemsNoLongerAvailableError("Some offered items are no longer available", gone)

        result = await db.execute(
            select(Item.id).where(
                Item.id == proposal.target_item_id,
                Item.seller_id == proposal.target_owner_id,
                Item.status == ItemStatus.ACTIVE.value
            )
        )
        if result.scalar_one_or_none() is None:
            raise ItemsNoLongerAvailableError(
                "Requested item is no longer available", [proposal.target_item_id]
            )

    async def _item_title(self, db: AsyncSession, item_id: str) -> str:
        result = await db.execute(select(Item.title).where(Item.id == item_id))
        return result.scalar_one_or_none() or "item"


async def expiry_sweep_loop(session_factory: async_sessionmaker, interval_seconds: int) -> None:
    """Run expire_stale_proposals every interval until cancelled."""
    logger.info(f"Trade expiry sweep running every {interval_seconds}s")
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_factory() as db:
                await trade_service.expire_stale_proposals(db)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Trade expiry sweep failed")


# Singleton
trade_service = TradeService()
