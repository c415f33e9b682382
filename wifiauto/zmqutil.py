"""
ZMQ utilities for wifiauto.

The platform side (location provider, geofence provider, settings UI,
notification area) talks to the agent over a PUB/SUB pair, optionally through
the XSUB/XPUB forwarder started by ``run_zmq_proxy``:

* the agent publishes commands on topic ``wifiauto.cmd``
  (``location_subscribe``, ``location_unsubscribe``, ``geofence_register``,
  ``geofence_unregister``, ``keepalive``);
* the platform publishes events on topic ``wifiauto.evt``; each one becomes a
  dispatcher message.

Payloads are JSON objects ``{"type": ..., "payload": ...}``.
"""

from __future__ import annotations

import asyncio
import json
import socket
from typing import Any, Dict, Optional, Set, Tuple

from .constants import (
    ZMQ_PROXY_IN_PORT,
    ZMQ_PROXY_OUT_PORT,
    ZMQ_TOPIC_COMMAND,
    ZMQ_TOPIC_EVENT,
)
from .dispatch import Event, EventDispatcher, EventKind
from .exceptions import EventChannelError, GeofenceUnavailableError
from .log import LogComponent, get_logger
from .protocols import GeofenceCallback, LocationCallback
from .types import GeofenceEvent, GeofenceRegion, LocationFix, LocationProfile

logger = get_logger(LogComponent.ZMQ)

_FORWARDED_KINDS = {
    EventKind.SET_MONITORING,
    EventKind.SET_GEOFENCING,
    EventKind.BOOT,
    EventKind.PERIODIC_TICK,
    EventKind.RADIO_CHANGED,
}


def encode_message(topic: str, kind: str, payload: Any = None) -> Tuple[bytes, bytes]:
    body = json.dumps({"type": kind, "payload": payload}).encode("utf-8")
    return topic.encode("utf-8"), body


def decode_message(frames) -> Tuple[str, Any]:
    """Decode ``[topic, body]`` frames into (kind, payload)."""
    if len(frames) != 2:
        raise EventChannelError(f"Expected 2 frames, got {len(frames)}")
    try:
        message = json.loads(frames[1].decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise EventChannelError(f"Malformed message body: {e}")
    if not isinstance(message, dict) or "type" not in message:
        raise EventChannelError("Message has no type")
    return message["type"], message.get("payload")


class ZMQPlatformBridge:
    """
    LocationService, GeofenceService and KeepaliveIndicator over ZMQ.

    Inbound fixes and geofence events are queued on the dispatcher rather
    than awaited here, so a slow handler never stalls the socket.
    """

    def __init__(
        self,
        pub_addr: str,
        sub_addr: str,
        dispatcher: EventDispatcher,
        context=None,
    ) -> None:
        self._pub_addr = pub_addr
        self._sub_addr = sub_addr
        self._dispatcher = dispatcher
        self._context = context
        self._pub = None
        self._sub = None
        self._location_callback: Optional[LocationCallback] = None
        self._geofence_callback: Optional[GeofenceCallback] = None
        self._location_settings_ok = True
        self._keepalive_visible: Optional[bool] = None
        self._tasks: Set[asyncio.Task] = set()
        self._running = False

    def connect(self) -> None:
        import zmq
        import zmq.asyncio

        if self._context is None:
            self._context = zmq.asyncio.Context.instance()
        self._pub = self._context.socket(zmq.PUB)
        self._pub.connect(self._pub_addr)
        self._sub = self._context.socket(zmq.SUB)
        self._sub.connect(self._sub_addr)
        self._sub.setsockopt(zmq.SUBSCRIBE, ZMQ_TOPIC_EVENT.encode("utf-8"))
        logger.info(f"ZMQ bridge connected (pub={self._pub_addr}, sub={self._sub_addr})")

    def close(self) -> None:
        self._running = False
        for sock in (self._pub, self._sub):
            if sock is not None:
                sock.close(linger=0)
        self._pub = self._sub = None

    async def _publish(self, kind: str, payload: Any = None) -> None:
        import zmq

        if self._pub is None:
            raise GeofenceUnavailableError("ZMQ bridge not connected", reason=kind)
        try:
            await self._pub.send_multipart(encode_message(ZMQ_TOPIC_COMMAND, kind, payload))
        except zmq.ZMQError as e:
            raise GeofenceUnavailableError(f"ZMQ send failed: {e}", reason=kind) from e

    # --- LocationService ---

    async def settings_satisfied(self, profile: LocationProfile) -> bool:
        return self._location_settings_ok

    async def subscribe(self, profile: LocationProfile, callback: LocationCallback) -> None:
        self._location_callback = callback
        await self._publish("location_subscribe", profile.to_dict())

    async def unsubscribe(self) -> None:
        self._location_callback = None
        await self._publish("location_unsubscribe")

    # --- GeofenceService ---

    async def register(self, region: GeofenceRegion, callback: GeofenceCallback) -> None:
        self._geofence_callback = callback
        await self._publish("geofence_register", region.to_dict())

    async def unregister(self, request_id: str) -> None:
        self._geofence_callback = None
        await self._publish("geofence_unregister", {"request_id": request_id})

    # --- KeepaliveIndicator ---

    def show(self) -> None:
        self._set_keepalive(True)

    def hide(self) -> None:
        self._set_keepalive(False)

    def _set_keepalive(self, visible: bool) -> None:
        if self._keepalive_visible == visible or self._pub is None:
            return
        self._keepalive_visible = visible
        task = asyncio.get_running_loop().create_task(self._send_keepalive(visible))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    async def _send_keepalive(self, visible: bool) -> None:
        try:
            await self._publish("keepalive", {"visible": visible})
        except GeofenceUnavailableError:
            # Forget the state so the next show/hide sends again.
            if self._keepalive_visible == visible:
                self._keepalive_visible = None
            raise

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Keepalive update failed: {exc}")

    # --- Inbound ---

    def route(self, kind: str, payload: Any) -> Optional[Event]:
        """Turn one inbound message into a dispatcher event (None when dropped)."""
        if kind == "location_settings":
            self._location_settings_ok = bool((payload or {}).get("satisfied", True))
            return None
        if kind == EventKind.LOCATION_FIX:
            if self._location_callback is None:
                logger.debug("Dropping location fix: no active subscription")
                return None
            return Event(EventKind.LOCATION_FIX, LocationFix.from_dict(payload))
        if kind == EventKind.GEOFENCE_EVENT:
            if self._geofence_callback is None:
                logger.debug("Dropping geofence event: no registered region")
                return None
            return Event(EventKind.GEOFENCE_EVENT, GeofenceEvent.from_dict(payload or {}))
        if kind in _FORWARDED_KINDS:
            return Event(kind, payload)
        raise EventChannelError("Unknown message type", kind=kind)

    async def listen(self) -> None:
        """Receive platform events until ``close()``."""
        if self._sub is None:
            self.connect()
        self._running = True
        while self._running:
            frames = await self._sub.recv_multipart()
            try:
                kind, payload = decode_message(frames)
                event = self.route(kind, payload)
            except (EventChannelError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring platform message: {e}")
                continue
            if event is not None:
                self._dispatcher.post(event)


def check_zmq_proxy_reachable(proxy_addr: str, timeout_s: float = 2.0) -> bool:
    """
    Check if ZMQ proxy is reachable before starting the agent.

    Returns:
        True if proxy port accepts connections.
    """
    try:
        with socket.create_connection(
            (proxy_addr, int(ZMQ_PROXY_OUT_PORT)), timeout=timeout_s
        ) as _:
            return True
    except (socket.error, OSError, ValueError):
        return False


def run_zmq_proxy() -> None:
    """
    Start ZMQ forwarder (XSUB/XPUB proxy). Blocking.

    Start proxy before the agent and the platform adapters.
    """
    import zmq

    ctx = zmq.Context()
    p_sub = ctx.socket(zmq.XSUB)
    p_pub = ctx.socket(zmq.XPUB)
    p_sub.bind(f"tcp://*:{ZMQ_PROXY_IN_PORT}")
    p_pub.bind(f"tcp://*:{ZMQ_PROXY_OUT_PORT}")
    logger.info("ZMQ proxy started")
    zmq.proxy(p_sub, p_pub)


def default_endpoints(proxy_addr: str) -> Dict[str, str]:
    """Agent endpoints when going through the proxy on ``proxy_addr``."""
    return {
        "pub": f"tcp://{proxy_addr}:{ZMQ_PROXY_IN_PORT}",
        "sub": f"tcp://{proxy_addr}:{ZMQ_PROXY_OUT_PORT}",
    }
