import asyncio
import json
from typing import AsyncIterator, Dict

def _offer(q: asyncio.Queue, payload: str):
    # slow subscribers drop events rather than block publishers
    if not q.full():
        q.put_nowait(payload)


class EventBroadcaster:
    """Fan-out of server-sent events to every connected subscriber.

    publish() may be called from sync endpoints running in the threadpool, so
    queue writes are handed to the subscriber's own loop.
    """

    def __init__(self):
        self._queues: Dict[asyncio.Queue, asyncio.AbstractEventLoop] = {}

    async def subscribe(self) -> AsyncIterator[str]:  # pragma: no cover (async generator)
        q: asyncio.Queue = asyncio.Queue(maxsize=100)
        self._queues[q] = asyncio.get_running_loop()
        try:
            while True:
                msg = await q.get()
                yield msg
        finally:
            self._queues.pop(q, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def publish(self, event: str, data: dict):
        payload = f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"
        for q, loop in list(self._queues.items()):
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(_offer, q, payload)

broadcaster = EventBroadcaster()
