"""Unit tests for the wifiauto exception hierarchy."""

import pytest

from wifiauto.exceptions import (
    ConfigError,
    ErrorSeverity,
    EventChannelError,
    GeofenceUnavailableError,
    PermissionDeniedError,
    RadioControlError,
    SchedulerError,
    StaleConfigurationError,
    WifiAutoError,
)


class TestWifiAutoError:
    """Base exception."""

    def test_base_message(self):
        e = WifiAutoError("test message")
        assert e.message == "test message"
        assert str(e) == "[ERROR] test message"
        assert e.recoverable is True

    def test_details_rendered(self):
        e = WifiAutoError("outer", details={"key": "value"})
        assert str(e) == "[ERROR] outer (key=value)"


class TestPermissionDeniedError:
    def test_is_critical_and_not_recoverable(self):
        e = PermissionDeniedError(capability="location")
        assert e.severity is ErrorSeverity.CRITICAL
        assert e.recoverable is False
        assert e.capability == "location"
        assert "capability=location" in str(e)


class TestGeofenceUnavailableError:
    def test_reason_and_status_code(self):
        e = GeofenceUnavailableError(reason="rejected", status_code=1000)
        assert e.details == {"reason": "rejected", "status_code": 1000}
        assert e.status_code == 1000

    def test_status_code_zero_kept(self):
        e = GeofenceUnavailableError(status_code=0)
        assert e.details["status_code"] == 0


class TestOtherErrors:
    def test_stale_configuration_is_warning(self):
        e = StaleConfigurationError(key="geofence_latitude")
        assert e.severity is ErrorSeverity.WARNING
        assert e.key == "geofence_latitude"

    def test_radio_control_error(self):
        e = RadioControlError("nmcli command failed", command="nmcli radio wifi off", reason="boom")
        assert e.command == "nmcli radio wifi off"
        assert "reason=boom" in str(e)

    def test_event_channel_error_is_warning(self):
        e = EventChannelError(kind="bogus")
        assert e.severity is ErrorSeverity.WARNING
        assert e.kind == "bogus"

    @pytest.mark.parametrize(
        "cls",
        [
            PermissionDeniedError,
            GeofenceUnavailableError,
            StaleConfigurationError,
            RadioControlError,
            SchedulerError,
            ConfigError,
            EventChannelError,
        ],
    )
    def test_all_inherit_from_base(self, cls):
        assert issubclass(cls, WifiAutoError)
