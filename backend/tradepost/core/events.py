"""Event bus for streaming trade events over SSE."""

import asyncio
from typing import Dict, Any, AsyncGenerator
from datetime import datetime


class EventBus:
    """
    In-memory event bus using asyncio.Queue for pub/sub pattern.

    Trade events (trade_proposed, trade_accepted, trade_rejected,
    trade_expired) are fanned out to every subscriber. The fulfillment
    workflow listens for trade_accepted.
    """

    def __init__(self):
        self._subscribers: list[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event_type: str, data: Dict[str, Any]) -> None:
        """
        Publish an event to all subscribers.

        Args:
            event_type: Type of event (e.g., "trade_proposed")
            data: Event payload data
        """
        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.utcnow().isoformat()
        }

        for queue in list(self._subscribers):
            queue.put_nowait(event)

    async def subscribe(self) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Subscribe to events and receive them as an async generator.

        Usage:
            async for event in event_bus.subscribe():
                print(event)
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            # Client disconnected or generator closed
            if queue in self._subscribers:
                self._subscribers.remove(queue)


# Global event bus instance
event_bus = EventBus()
