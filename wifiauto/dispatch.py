"""
Event dispatcher for wifiauto.

Inbound platform notifications (configuration toggles, boot, geofence
events, location fixes, scheduler ticks) are messages on an asyncio queue.
Each message is handled in its own task, so no handler waits for another.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from .exceptions import EventChannelError
from .log import LogComponent, get_logger

logger = get_logger(LogComponent.DISPATCH)

Handler = Callable[[Any], Awaitable[Any]]


class EventKind:
    """Inbound message kinds."""

    SET_MONITORING = "set_monitoring"
    SET_GEOFENCING = "set_geofencing"
    BOOT = "boot"
    GEOFENCE_EVENT = "geofence_event"
    LOCATION_FIX = "location_fix"
    PERIODIC_TICK = "periodic_tick"
    RADIO_CHANGED = "radio_changed"


@dataclass(frozen=True)
class Event:
    kind: str
    payload: Any = None
    meta: Dict[str, Any] = field(default_factory=dict)


_STOP = Event("__stop__")


class EventDispatcher:
    """Routes queued events to the handler registered for their kind."""

    def __init__(self, maxsize: int = 0) -> None:
        self._maxsize = maxsize
        # Created by run() so it binds to the loop that consumes it.
        self._queue: "Optional[asyncio.Queue[Event]]" = None
        self._backlog: List[Event] = []
        self._handlers: Dict[str, Handler] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def register(self, kind: str, handler: Handler) -> None:
        self._handlers[kind] = handler

    def post_nowait(self, event: Event) -> None:
        """Queue an event from the loop's own thread."""
        if self._queue is None:
            self._backlog.append(event)
        else:
            self._queue.put_nowait(event)

    def post(self, event: Event) -> None:
        """Queue an event from any thread."""
        if self._loop is None:
            self.post_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self.post_nowait, event)

    async def run(self) -> None:
        """Consume events until ``stop()``."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(self._maxsize)
        for event in self._backlog:
            self._queue.put_nowait(event)
        self._backlog.clear()
        self._running = True
        logger.info("Event dispatcher started")
        try:
            while True:
                event = await self._queue.get()
                if event is _STOP:
                    break
                self._spawn(event)
        finally:
            self._running = False
            self._loop = None
            while not self._queue.empty():
                self._backlog.append(self._queue.get_nowait())
            self._queue = None
            await self.drain()
            logger.info("Event dispatcher stopped")

    def stop(self) -> None:
        self.post(_STOP)

    async def drain(self) -> None:
        """Wait until every handler spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def dispatch(self, event: Event) -> Any:
        """Run the handler for ``event`` now; failures are logged, not raised."""
        handler = self._handlers.get(event.kind)
        if handler is None:
            logger.warning(str(EventChannelError("No handler for event", kind=event.kind)))
            return None
        try:
            return await handler(event.payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Handler for {event.kind} failed: {e}")
            return None

    def _spawn(self, event: Event) -> None:
        task = asyncio.get_running_loop().create_task(self.dispatch(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
