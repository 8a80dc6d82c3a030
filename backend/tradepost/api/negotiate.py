"""
Negotiation function endpoint for the buyer-facing chat client.

Wire format is camelCase in both directions. Failures answer with
{"success": false, "error": ...} so the client can show them inline.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tradepost.api.deps import get_db
from tradepost.core.exceptions import MarketError
from tradepost.schemas.negotiation import NegotiateRequest, NegotiateResponse
from tradepost.services.negotiation_agent_service import negotiation_agent_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["negotiation"])


@router.post("/agent-negotiate", response_model=NegotiateResponse)
async def agent_negotiate(
    request: NegotiateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Run one negotiation turn against the seller's agent.

    Example:
        ```json
        {
          "itemId": "item-123",
          "userMessage": "Would you take $80?",
          "conversationId": null,
          "buyerId": "user-789"
        }
        ```

    Returns:
        The agent's reply plus counterOfferAmount, offerAccepted,
        expiresAt and the conversationId to send on the next turn
    """
    try:
        reply = await negotiation_agent_service.negotiate(
            db=db,
            item_id=request.item_id,
            user_message=request.user_message,
            conversation_id=request.conversation_id,
            buyer_id=request.buyer_id
        )
    except MarketError:
        raise
    except Exception as e:
        logger.exception(f"Negotiation turn failed for item {request.item_id}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or "Internal server error"}
        )

    return NegotiateResponse(
        response=reply.response,
        conversation_id=reply.conversation_id,
        counter_offer_amount=reply.counter_offer_amount,
        offer_accepted=reply.offer_accepted,
        expires_at=reply.expires_at,
        is_offer=reply.is_offer
    )
