"""Unit tests for AutomationController."""

import asyncio

import pytest

from wifiauto.constants import (
    GEOFENCE_REQUEST_ID,
    KEY_GEOFENCE_ENABLED,
    KEY_GEOFENCE_LATITUDE,
    KEY_GEOFENCE_LONGITUDE,
    LOCATION_TAG,
    MONITORING_INTERVAL_S,
    MONITORING_TAG,
)
from wifiauto.types import GeofenceEvent, JobResult, Transition, TriggerOutcome


async def _enable_geofencing(controller, scheduler, location_service, lat=48.8, lon=2.3):
    assert await controller.set_geofencing(True) is True
    assert await scheduler.run(LOCATION_TAG) is JobResult.SUCCESS
    await location_service.deliver(lat, lon)


class TestMonitoringToggle:
    @pytest.mark.asyncio
    async def test_enable_schedules_recurring(self, controller, scheduler, store, event_log):
        await controller.set_monitoring(True)
        assert store.get("monitoring_enabled") is True
        assert scheduler.scheduled[MONITORING_TAG] == MONITORING_INTERVAL_S
        assert event_log.entries == ["Setup Wi-Fi monitoring: enabled"]

    @pytest.mark.asyncio
    async def test_disable_cancels(self, controller, scheduler, keepalive, event_log):
        await controller.set_monitoring(True)
        keepalive.show()
        await controller.set_monitoring(False)
        assert MONITORING_TAG not in scheduler.scheduled
        assert keepalive.visible is False
        assert event_log.entries[-1] == "Setup Wi-Fi monitoring: disabled"

    @pytest.mark.asyncio
    async def test_scheduled_job_runs_monitor(self, controller, scheduler, radio):
        await controller.set_monitoring(True)
        assert await scheduler.run(MONITORING_TAG) is JobResult.SUCCESS
        assert radio.enabled is False

    @pytest.mark.asyncio
    async def test_monitoring_start_policy_opens_grace(self, store, radio, scheduler,
                                                       location_service, geofence_service,
                                                       permissions, event_log, clock):
        from wifiauto.controller import AutomationController
        from wifiauto.grace import GraceActivation

        controller = AutomationController(
            store, radio, scheduler, location_service, geofence_service,
            permissions, event_log, grace_policy=GraceActivation.MONITORING_START,
            clock=clock,
        )
        await controller.set_monitoring(True)
        assert controller.grace.is_active()
        await scheduler.run(MONITORING_TAG)
        assert radio.enabled is True


class TestGeofenceToggle:
    @pytest.mark.asyncio
    async def test_enable_registers_region_from_fix(
        self, controller, scheduler, location_service, geofence_service, store
    ):
        await _enable_geofencing(controller, scheduler, location_service)
        region = geofence_service.region(GEOFENCE_REQUEST_ID)
        assert (region.latitude, region.longitude) == (48.8, 2.3)
        assert region.radius_m == 100.0
        assert region.transitions == frozenset({Transition.ENTER, Transition.DWELL})
        assert store.get(KEY_GEOFENCE_LATITUDE) == 48.8
        assert store.get(KEY_GEOFENCE_LONGITUDE) == 2.3

    @pytest.mark.asyncio
    async def test_enable_schedules_location_once(self, controller, scheduler, event_log):
        await controller.set_geofencing(True)
        assert scheduler.scheduled == {LOCATION_TAG: None}
        assert event_log.entries == ["Geofence: enabled"]

    @pytest.mark.asyncio
    async def test_disable_with_region(
        self, controller, scheduler, location_service, geofence_service, store
    ):
        await _enable_geofencing(controller, scheduler, location_service)
        assert await controller.set_geofencing(False) is False
        assert geofence_service.regions == {}
        assert geofence_service.unregistered == [GEOFENCE_REQUEST_ID]
        assert store.get(KEY_GEOFENCE_LATITUDE) is None
        assert not location_service.subscribed
        # Stray fixes after disabling are ignored.
        await controller.on_location_fix(48.9, 2.4)
        assert geofence_service.regions == {}

    @pytest.mark.asyncio
    async def test_permission_denied_reverts_flag(
        self, controller, permissions, scheduler, store
    ):
        permissions.revoke("location")
        assert await controller.set_geofencing(True) is False
        assert store.get(KEY_GEOFENCE_ENABLED) is False
        assert LOCATION_TAG not in scheduler.scheduled

    @pytest.mark.asyncio
    async def test_unsatisfiable_settings_revert_flag(
        self, controller, location_service, scheduler, store
    ):
        location_service.settings_ok = False
        assert await controller.set_geofencing(True) is False
        assert store.get(KEY_GEOFENCE_ENABLED) is False
        assert location_service.subscribe_count == 0

    @pytest.mark.asyncio
    async def test_permission_revoked_before_job_runs(
        self, controller, permissions, scheduler, store
    ):
        await controller.set_geofencing(True)
        permissions.revoke("location")
        assert await scheduler.run(LOCATION_TAG) is JobResult.FAILURE
        assert store.get(KEY_GEOFENCE_ENABLED) is False

    @pytest.mark.asyncio
    async def test_reenable_after_disable(
        self, controller, scheduler, location_service, geofence_service
    ):
        await _enable_geofencing(controller, scheduler, location_service)
        await controller.set_geofencing(False)
        await _enable_geofencing(controller, scheduler, location_service, 40.0, -3.7)
        assert geofence_service.region().latitude == 40.0


class TestBoot:
    @pytest.mark.asyncio
    async def test_boot_restores_schedules_and_region(
        self, controller, scheduler, geofence_service, store
    ):
        scheduler.persisted[MONITORING_TAG] = MONITORING_INTERVAL_S
        store.set(KEY_GEOFENCE_ENABLED, True)
        controller.settings.save_geofence_center(48.8, 2.3)
        await controller.on_boot()
        assert scheduler.restored
        assert MONITORING_TAG in scheduler.scheduled
        assert geofence_service.region().latitude == 48.8

    @pytest.mark.asyncio
    async def test_boot_clears_stale_flag(self, controller, geofence_service, store):
        store.set(KEY_GEOFENCE_ENABLED, True)
        assert await controller.on_restore_geofence() is None
        assert store.get(KEY_GEOFENCE_ENABLED) is False
        assert geofence_service.register_count == 0

    @pytest.mark.asyncio
    async def test_boot_without_permission_keeps_settings(
        self, controller, permissions, geofence_service, store
    ):
        store.set(KEY_GEOFENCE_ENABLED, True)
        controller.settings.save_geofence_center(48.8, 2.3)
        permissions.revoke("location")
        await controller.on_boot()
        assert geofence_service.register_count == 0
        assert store.get(KEY_GEOFENCE_ENABLED) is True

    @pytest.mark.asyncio
    async def test_boot_with_geofencing_off(self, controller, geofence_service):
        await controller.on_boot()
        assert geofence_service.register_count == 0

    @pytest.mark.asyncio
    async def test_boot_with_rejected_registration(self, controller, geofence_service, store):
        store.set(KEY_GEOFENCE_ENABLED, True)
        controller.settings.save_geofence_center(48.8, 2.3)
        geofence_service.reject = True
        assert await controller.on_restore_geofence() is None
        assert store.get(KEY_GEOFENCE_LATITUDE) == 48.8


class TestEvents:
    @pytest.mark.asyncio
    async def test_geofence_event_from_dict(self, controller, radio, store):
        store.set(KEY_GEOFENCE_ENABLED, True)
        radio.enabled = False
        outcome = await controller.on_geofence_event({"transitions": ["dwell"]})
        assert outcome is TriggerOutcome.ENABLED_RADIO
        assert radio.enabled

    @pytest.mark.asyncio
    async def test_registered_region_triggers_controller(
        self, controller, scheduler, location_service, geofence_service, radio
    ):
        await _enable_geofencing(controller, scheduler, location_service)
        radio.enabled = False
        outcome = await geofence_service.fire(
            GeofenceEvent(transitions=frozenset({Transition.ENTER}))
        )
        assert outcome is TriggerOutcome.ENABLED_RADIO
        assert controller.grace.is_active()

    @pytest.mark.asyncio
    async def test_user_enable_opens_grace(self, controller, event_log):
        assert await controller.on_radio_changed_by_user(False) is False
        assert await controller.on_radio_changed_by_user(True) is True
        assert controller.grace.is_active()
        assert event_log.entries == ["Wi-Fi enabled by user"]

    @pytest.mark.asyncio
    async def test_periodic_tick(self, controller, radio):
        assert await controller.on_periodic_tick() is JobResult.SUCCESS
        assert radio.enabled is False

    @pytest.mark.asyncio
    async def test_status(self, controller, scheduler, location_service):
        await _enable_geofencing(controller, scheduler, location_service)
        status = controller.status()
        assert status["geofence_enabled"] is True
        assert status["monitoring_enabled"] is False
        assert status["region"]["latitude"] == 48.8
        assert status["location_active"] is True
        assert status["grace_period_active"] is False

    @pytest.mark.asyncio
    async def test_tick_during_geofence_enable_keeps_radio_on(self, controller, radio, store):
        store.set(KEY_GEOFENCE_ENABLED, True)
        radio.enabled = False

        async def slow_set_enabled(enabled):
            radio.set_calls.append(enabled)
            radio.enabled = enabled
            for _ in range(3):
                await asyncio.sleep(0)

        radio.set_enabled = slow_set_enabled

        async def tick_later():
            await asyncio.sleep(0)
            return await controller.on_periodic_tick()

        outcome, result = await asyncio.gather(
            controller.on_geofence_event(
                GeofenceEvent(transitions=frozenset({Transition.ENTER}))
            ),
            tick_later(),
        )
        assert outcome is TriggerOutcome.ENABLED_RADIO
        assert result is JobResult.SUCCESS
        assert radio.enabled is True
        assert radio.set_calls == [True]
