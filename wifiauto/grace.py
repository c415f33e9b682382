"""
Grace period for wifiauto.

A single persisted expiry timestamp during which the periodic monitor must
not disable the radio. Which events open the window is a policy
(``GraceActivation``), not hard-wired.
"""

from __future__ import annotations

import time
from enum import Flag, auto
from typing import Callable, Optional

from .constants import GRACE_PERIOD_S, KEY_GRACE_PERIOD_EXPIRES_AT
from .log import LogComponent, get_logger

logger = get_logger(LogComponent.GRACE)


class GraceActivation(Flag):
    """Points at which the grace window is opened."""

    NONE = 0
    GEOFENCE_ENABLE = auto()
    USER_ENABLE = auto()
    MONITORING_START = auto()

    @classmethod
    def parse(cls, value: str) -> "GraceActivation":
        """Parse a comma separated list such as ``"geofence_enable,user_enable"``."""
        policy = cls.NONE
        for name in value.split(","):
            name = name.strip().upper()
            if not name or name == "NONE":
                continue
            try:
                policy |= cls[name]
            except KeyError:
                raise ValueError(f"Unknown grace activation point: {name.lower()}")
        return policy


DEFAULT_GRACE_POLICY = GraceActivation.GEOFENCE_ENABLE | GraceActivation.USER_ENABLE


class GracePeriod:
    """
    Suppression window stored under ``grace_period_expires_at`` (epoch ms).
    """

    def __init__(
        self,
        store,
        duration_s: float = GRACE_PERIOD_S,
        policy: GraceActivation = DEFAULT_GRACE_POLICY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._duration_s = duration_s
        self._policy = policy
        self._clock = clock

    @property
    def policy(self) -> GraceActivation:
        return self._policy

    @property
    def expires_at(self) -> Optional[int]:
        value = self._store.get(KEY_GRACE_PERIOD_EXPIRES_AT)
        return int(value) if value is not None else None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_active(self, now_ms: Optional[int] = None) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        now_ms = self._now_ms() if now_ms is None else now_ms
        return now_ms < expires_at

    def applies(self, point: GraceActivation) -> bool:
        return bool(self._policy & point)

    def activate(self, duration_s: Optional[float] = None) -> int:
        """
        Open the window for ``duration_s`` from now.

        A running window is never shortened. Returns the resulting expiry.
        """
        duration_s = self._duration_s if duration_s is None else duration_s
        with self._store.edit() as editor:
            candidate = self._now_ms() + int(duration_s * 1000)
            current = editor.get(KEY_GRACE_PERIOD_EXPIRES_AT)
            expires_at = max(candidate, int(current)) if current is not None else candidate
            editor.set(KEY_GRACE_PERIOD_EXPIRES_AT, expires_at)
        logger.info(f"Grace period active until {expires_at}")
        return expires_at

    def activate_for(self, point: GraceActivation) -> bool:
        """Activate when ``point`` belongs to the policy. Returns whether it did."""
        if not self.applies(point):
            return False
        self.activate()
        return True
