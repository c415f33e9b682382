"""
Pytest configuration and fixtures for wifiauto tests.

Every collaborator is replaced by the in-memory fakes of ``wifiauto.testing``;
no test touches nmcli, ZMQ sockets or the real clock.
"""

from __future__ import annotations

import logging

import pytest

from wifiauto.config import MemoryConfigStore
from wifiauto.controller import AutomationController
from wifiauto.testing import (
    FakeGeofenceService,
    FakeJobScheduler,
    FakeKeepalive,
    FakeLocationService,
    FakePermissions,
    FakeRadio,
    ManualClock,
    MemoryEventLog,
)


def pytest_configure(config: pytest.Config) -> None:
    """Pytest configuration."""
    logging.getLogger("wifiauto").setLevel(logging.DEBUG)


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """Auto-apply markers based on test path."""
    for item in items:
        path_str = str(item.path)
        if "/unit/" in path_str:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in path_str:
            item.add_marker(pytest.mark.integration)


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def radio():
    return FakeRadio(enabled=True)


@pytest.fixture
def scheduler():
    return FakeJobScheduler()


@pytest.fixture
def location_service():
    return FakeLocationService()


@pytest.fixture
def geofence_service():
    return FakeGeofenceService()


@pytest.fixture
def permissions():
    return FakePermissions()


@pytest.fixture
def event_log():
    return MemoryEventLog()


@pytest.fixture
def keepalive():
    return FakeKeepalive()


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


@pytest.fixture
def controller(
    store,
    radio,
    scheduler,
    location_service,
    geofence_service,
    permissions,
    event_log,
    keepalive,
    clock,
) -> AutomationController:
    """Controller wired to fakes; nothing is enabled yet."""
    return AutomationController(
        store,
        radio,
        scheduler,
        location_service,
        geofence_service,
        permissions,
        event_log,
        keepalive=keepalive,
        clock=clock,
    )
