"""
PeriodicMonitor for wifiauto.

Recurring job deciding whether the radio is on for nothing. It only ever
turns the radio off; turning it on belongs to the geofence trigger.
"""

from __future__ import annotations

from typing import Optional

from .exceptions import RadioControlError
from .grace import GracePeriod
from .log import LogComponent, get_logger
from .protocols import DiagnosticLog, KeepaliveIndicator, RadioControl
from .types import JobResult, MonitorOutcome

logger = get_logger(LogComponent.MONITOR)


class PeriodicMonitor:
    """
    Disables the radio when it is enabled but not associated with a network.

    Every invocation reports completion exactly once so the scheduler can plan
    the next run; there is no retry of its own, the next tick is the retry.
    """

    def __init__(
        self,
        radio: RadioControl,
        grace: GracePeriod,
        event_log: DiagnosticLog,
        keepalive: Optional[KeepaliveIndicator] = None,
    ) -> None:
        self._radio = radio
        self._grace = grace
        self._event_log = event_log
        self._keepalive = keepalive
        self.last_outcome: Optional[MonitorOutcome] = None

    async def run(self) -> JobResult:
        """Scheduler entry point."""
        logger.info("Starting Wi-Fi monitoring")
        try:
            self.last_outcome = await self.check()
        finally:
            logger.info("Wi-Fi monitoring is done")
        return JobResult.SUCCESS

    async def check(self) -> MonitorOutcome:
        if self._keepalive is not None:
            self._keepalive.show()
        self._event_log.append("Monitoring Wi-Fi")

        try:
            return await self._decide()
        except RadioControlError as e:
            logger.error(f"Wi-Fi monitoring failed: {e}")
            self._event_log.append("Wi-Fi monitoring failed")
            return MonitorOutcome.FAILED

    async def _decide(self) -> MonitorOutcome:
        if not await self._radio.is_enabled():
            logger.info("Wi-Fi is already disabled")
            self._event_log.append("Wi-Fi is already disabled")
            return MonitorOutcome.ALREADY_DISABLED

        if self._grace.is_active():
            logger.info("Wi-Fi grace period enabled")
            self._event_log.append("Wi-Fi grace period enabled")
            return MonitorOutcome.GRACE_PERIOD

        # Internet reachability does not matter here: only whether the radio
        # is powered without carrying any association.
        attachment = await self._radio.current_attachment()
        if attachment.associated_via_radio:
            logger.info("Device is connected via Wi-Fi: keep current settings")
            self._event_log.append("Keep Wi-Fi running")
            return MonitorOutcome.IN_USE

        logger.info(
            "Wi-Fi is enabled but no active connection has been detected "
            f"(transport={attachment.transport.value}, state={attachment.state.value})"
        )
        await self._radio.set_enabled(False)
        logger.info("Wi-Fi is disabled")
        self._event_log.append("Wi-Fi has been disabled")
        return MonitorOutcome.DISABLED_RADIO
