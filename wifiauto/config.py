"""
Configuration for wifiauto.

Two kinds of configuration live here:

* persisted settings (``ConfigStore``): the feature switches, the geofence
  center, the grace period expiry and the scheduler's recurring jobs. Every
  multi-key change goes through ``edit()``, which holds the store lock for the
  whole read-modify-write and commits once;
* ``AgentConfig``: process options filled from the command line.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple, Union

from .constants import (
    GRACE_PERIOD_S,
    KEY_GEOFENCE_ENABLED,
    KEY_GEOFENCE_LATITUDE,
    KEY_GEOFENCE_LONGITUDE,
    KEY_MONITORING_ENABLED,
    MONITORING_INTERVAL_S,
)
from .exceptions import ConfigError, StaleConfigurationError
from .log import LogComponent, get_logger

logger = get_logger(LogComponent.CONFIG)

_MISSING = object()


class ConfigEditor:
    """Pending changes of one ``edit()`` block. Reads see pending writes."""

    def __init__(self, values: Dict[str, Any]) -> None:
        self._values = values
        self.dirty = False

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if self._values.get(key, _MISSING) != value:
            self._values[key] = value
            self.dirty = True

    def remove(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            self.dirty = True

    @property
    def values(self) -> Dict[str, Any]:
        return self._values


class MemoryConfigStore:
    """In-process ConfigStore."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self.edit() as editor:
            editor.set(key, value)

    def remove(self, key: str) -> None:
        with self.edit() as editor:
            editor.remove(key)

    @contextmanager
    def edit(self) -> Iterator[ConfigEditor]:
        """
        Atomic read-modify-write.

        Changes are committed when the block exits normally and dropped when
        it raises.
        """
        with self._lock:
            editor = ConfigEditor(dict(self._values))
            yield editor
            if editor.dirty:
                self._commit(editor.values)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._values)

    def _commit(self, values: Dict[str, Any]) -> None:
        self._values = values


class JsonConfigStore(MemoryConfigStore):
    """ConfigStore persisted as a JSON document, replaced atomically on write."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        super().__init__(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Unable to load settings from {self._path}: {exc}")
            return {}
        if not isinstance(payload, dict):
            logger.warning(f"Ignoring settings file {self._path}: not an object")
            return {}
        return payload

    def _commit(self, values: Dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".settings-", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(values, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self._path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise ConfigError(
                f"Unable to persist settings: {exc}", path=str(self._path)
            ) from exc
        super()._commit(values)


class Settings:
    """Typed view of the persisted settings."""

    def __init__(self, store) -> None:
        self._store = store

    @property
    def store(self):
        return self._store

    @property
    def monitoring_enabled(self) -> bool:
        return bool(self._store.get(KEY_MONITORING_ENABLED, False))

    @monitoring_enabled.setter
    def monitoring_enabled(self, enabled: bool) -> None:
        self._store.set(KEY_MONITORING_ENABLED, bool(enabled))

    @property
    def geofence_enabled(self) -> bool:
        return bool(self._store.get(KEY_GEOFENCE_ENABLED, False))

    @geofence_enabled.setter
    def geofence_enabled(self, enabled: bool) -> None:
        self._store.set(KEY_GEOFENCE_ENABLED, bool(enabled))

    def geofence_center(self) -> Optional[Tuple[float, float]]:
        """Persisted region center, or None when no region was registered."""
        with self._store.edit() as editor:
            latitude = editor.get(KEY_GEOFENCE_LATITUDE)
            longitude = editor.get(KEY_GEOFENCE_LONGITUDE)
        if latitude is None or longitude is None:
            return None
        return float(latitude), float(longitude)

    def require_geofence_center(self) -> Tuple[float, float]:
        center = self.geofence_center()
        if center is None:
            raise StaleConfigurationError(key=KEY_GEOFENCE_LATITUDE)
        return center

    def save_geofence_center(self, latitude: float, longitude: float) -> None:
        with self._store.edit() as editor:
            editor.set(KEY_GEOFENCE_LATITUDE, float(latitude))
            editor.set(KEY_GEOFENCE_LONGITUDE, float(longitude))

    def clear_geofence_center(self) -> None:
        with self._store.edit() as editor:
            editor.remove(KEY_GEOFENCE_LATITUDE)
            editor.remove(KEY_GEOFENCE_LONGITUDE)

    def clear_stale_geofence(self) -> None:
        """Drop a geofence flag that has no region behind it."""
        with self._store.edit() as editor:
            editor.remove(KEY_GEOFENCE_LATITUDE)
            editor.remove(KEY_GEOFENCE_LONGITUDE)
            editor.set(KEY_GEOFENCE_ENABLED, False)


@dataclass
class AgentConfig:
    """Process options of the wifiauto agent."""

    config_path: str = "wifiauto-settings.json"
    event_log_path: str = "wifiauto-events.log"
    interface: Optional[str] = None
    granted: FrozenSet[str] = field(default_factory=frozenset)
    monitoring_interval_s: float = MONITORING_INTERVAL_S
    grace_period_s: float = GRACE_PERIOD_S
    grace_policy: str = "geofence_enable,user_enable"
    zmq_pub_addr: Optional[str] = None
    zmq_sub_addr: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None


__all__ = [
    "ConfigEditor",
    "MemoryConfigStore",
    "JsonConfigStore",
    "Settings",
    "AgentConfig",
]
