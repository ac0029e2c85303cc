import asyncio
import logging

logger = logging.getLogger(__name__)


class Broadcaster:
    """Fans engine events out to connected dashboard websockets.

    ``publish`` may be called from any thread; delivery is scheduled on the
    loop that owns each subscriber queue.
    """

    def __init__(self, maxsize: int = 100):
        self.maxsize = maxsize
        self._queues: dict[asyncio.Queue, asyncio.AbstractEventLoop] = {}

    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self.maxsize)
        self._queues[q] = asyncio.get_running_loop()
        return q

    def unsubscribe(self, q: asyncio.Queue):
        self._queues.pop(q, None)

    def publish(self, event: str, data: dict):
        msg = {'event': event, 'data': data}
        for q, loop in list(self._queues.items()):
            try:
                loop.call_soon_threadsafe(self._deliver, q, msg)
            except RuntimeError:
                # loop đã đóng
                self.unsubscribe(q)

    @staticmethod
    def _deliver(q: asyncio.Queue, msg: dict):
        try:
            q.put_nowait(msg)
        except asyncio.QueueFull:
            logger.warning("dashboard client lagging, dropped %s event", msg['event'])

    def __len__(self) -> int:
        return len(self._queues)
