# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
In-process fan-out of chat events to WebSocket subscribers.

Each subscriber owns an ``asyncio.Queue`` living on the event loop that
serves its socket.  Publishers are the synchronous request handlers running
in FastAPI's thread pool, so frames are handed over with
``loop.call_soon_threadsafe`` instead of touching the queue directly.

Frames:
    {"type": "snapshot", "messages": [...]}   once, right after connect
    {"type": "added", "message": {...}}       every message sent afterwards
    {"type": "cleared"}                       history wiped or chat deleted

A subscriber that falls QUEUE_LIMIT frames behind is cut off: its queue is
emptied, a single ``None`` tells the socket handler to close, and the next
publish drops it from the hub.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Optional

from core.logger import logger

QUEUE_LIMIT = 256


@dataclass(eq=False)
class Subscriber:
    chat_id: str
    user_id: str
    loop: asyncio.AbstractEventLoop
    queue_limit: int = QUEUE_LIMIT
    queue: asyncio.Queue = field(init=False)
    overflowed: bool = False

    def __post_init__(self):
        self.queue = asyncio.Queue(maxsize=self.queue_limit)

    def push(self, frame: dict) -> None:
        self.loop.call_soon_threadsafe(self._offer, frame)

    def _offer(self, frame: Optional[dict]) -> None:
        # Runs on the subscriber's loop
        if self.overflowed:
            return
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull:
            self.overflowed = True
            while not self.queue.empty():
                self.queue.get_nowait()
            self.queue.put_nowait(None)
            logger.warning(
                "Chat %s: subscriber %s fell %d frames behind, dropping it",
                self.chat_id, self.user_id, self.queue_limit,
            )


class ChatHub:
    def __init__(self, queue_limit: int = QUEUE_LIMIT):
        self._queue_limit = queue_limit
        self._subscribers: dict[str, set[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, chat_id: str, user_id: str) -> Subscriber:
        """Register a subscriber; must be called from the socket's event loop."""
        sub = Subscriber(
            chat_id=chat_id,
            user_id=user_id,
            loop=asyncio.get_running_loop(),
            queue_limit=self._queue_limit,
        )
        with self._lock:
            self._subscribers.setdefault(chat_id, set()).add(sub)
        return sub

    def unsubscribe(self, sub: Subscriber) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.chat_id)
            if subs is None:
                return
            subs.discard(sub)
            if not subs:
                del self._subscribers[sub.chat_id]

    def publish(self, chat_id: str, frame: dict) -> None:
        with self._lock:
            targets = list(self._subscribers.get(chat_id, ()))
        for sub in targets:
            if sub.overflowed:
                self.unsubscribe(sub)
                continue
            try:
                sub.push(frame)
            except RuntimeError:
                # Loop already closed; the socket handler will unsubscribe
                continue

    def publish_all(self, frame: dict) -> None:
        with self._lock:
            chat_ids = list(self._subscribers)
        for chat_id in chat_ids:
            self.publish(chat_id, frame)

    def subscriber_count(self, chat_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(chat_id, ()))


hub = ChatHub()
