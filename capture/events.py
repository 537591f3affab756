"""
Event Broadcaster - fan-out of pose updates and loop diagnostics

The sampling loop publishes from its own thread; subscribers are either plain
callbacks (run on the loop thread) or asyncio queues fed through
``call_soon_threadsafe``. Publishing is fire-and-forget: subscriber errors are
logged and never reach the loop.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Union

from core.pose_types import DiagnosticEvent, PoseUpdate

logger = logging.getLogger(__name__)

CaptureEvent = Union[PoseUpdate, DiagnosticEvent]
EventCallback = Callable[[CaptureEvent], None]


class PoseSink(ABC):
    """Destination for sampling loop output"""

    @abstractmethod
    def emit_pose(self, update: PoseUpdate) -> None: ...

    @abstractmethod
    def emit_diagnostic(self, event: DiagnosticEvent) -> None: ...


class NullSink(PoseSink):
    """Discards everything"""

    def emit_pose(self, update: PoseUpdate) -> None:
        pass

    def emit_diagnostic(self, event: DiagnosticEvent) -> None:
        pass


class QueueSubscription:
    """
    Asyncio-side handle for one subscriber.

    When the queue is full the oldest event is dropped so a slow consumer
    always sees the most recent poses.
    """

    def __init__(self, broadcaster: "EventBroadcaster", loop: asyncio.AbstractEventLoop, maxsize: int):
        self._broadcaster = broadcaster
        self.loop = loop
        self.queue: "asyncio.Queue[CaptureEvent]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def _offer(self, event: CaptureEvent) -> None:
        # Runs on the event loop thread
        if self.queue.full():
            try:
                self.queue.get_nowait()
                self.dropped += 1
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(event)

    async def get(self) -> CaptureEvent:
        return await self.queue.get()

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)


class EventBroadcaster(PoseSink):
    """Thread-safe subscriber registry"""

    def __init__(self, queue_size: int = 32):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._callbacks: List[EventCallback] = []
        self._queues: List[QueueSubscription] = []
        self._published: Dict[str, int] = {"pose_update": 0, "tracking_debug": 0}

    def add_callback(self, callback: EventCallback) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def remove_callback(self, callback: EventCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def subscribe(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        maxsize: Optional[int] = None,
    ) -> QueueSubscription:
        """
        Register an asyncio consumer.

        Args:
            loop: Event loop that owns the queue (defaults to the running loop)
            maxsize: Queue capacity (defaults to queue_size)

        Returns:
            Subscription whose ``get()`` yields events in publish order
        """
        loop = loop or asyncio.get_running_loop()
        subscription = QueueSubscription(self, loop, maxsize or self.queue_size)
        with self._lock:
            self._queues.append(subscription)
        logger.debug(f"Subscriber added ({len(self._queues)} active)")
        return subscription

    def unsubscribe(self, subscription: QueueSubscription) -> None:
        with self._lock:
            if subscription in self._queues:
                self._queues.remove(subscription)
        logger.debug("Subscriber removed")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._callbacks) + len(self._queues)

    @property
    def published(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._published)

    def emit_pose(self, update: PoseUpdate) -> None:
        self._publish("pose_update", update)

    def emit_diagnostic(self, event: DiagnosticEvent) -> None:
        self._publish("tracking_debug", event)

    def _publish(self, name: str, event: CaptureEvent) -> None:
        with self._lock:
            self._published[name] += 1
            callbacks = list(self._callbacks)
            queues = list(self._queues)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Event callback failed for {name}: {e}")

        for subscription in queues:
            try:
                subscription.loop.call_soon_threadsafe(subscription._offer, event)
            except RuntimeError:
                # Event loop closed underneath us
                logger.debug("Dropping subscriber with closed event loop")
                self.unsubscribe(subscription)
