"""
Constants for wifiauto.

Timing values, configuration keys and job tags shared across modules.
"""

# Configuration keys
KEY_MONITORING_ENABLED = "monitoring_enabled"
KEY_GEOFENCE_ENABLED = "geofence_enabled"
KEY_GEOFENCE_LATITUDE = "geofence_latitude"
KEY_GEOFENCE_LONGITUDE = "geofence_longitude"
KEY_GRACE_PERIOD_EXPIRES_AT = "grace_period_expires_at"
KEY_SCHEDULED_JOBS = "scheduled_jobs"

# Job tags
MONITORING_TAG = "wifiauto.monitoring"
LOCATION_TAG = "wifiauto.location"

# Periodic monitor
MONITORING_INTERVAL_S = 15 * 60

# Grace period
GRACE_PERIOD_S = 15 * 60

# Geofence region
GEOFENCE_REQUEST_ID = "wifiauto"
GEOFENCE_RADIUS_M = 100.0
GEOFENCE_DWELL_DELAY_MS = 2 * 60 * 1000

# Location request profile
LOCATION_INTERVAL_S = 4.0
LOCATION_FASTEST_INTERVAL_S = 1.0
LOCATION_EXPIRATION_S = 30.0

# Diagnostic event log
EVENT_LOG_MAX_BYTES = 128 * 1024
EVENT_LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Capabilities
LOCATION_PERMISSION = "location"

# ZMQ
ZMQ_PROXY_IN_PORT = "5570"
ZMQ_PROXY_OUT_PORT = "5571"
ZMQ_TOPIC_COMMAND = "wifiauto.cmd"
ZMQ_TOPIC_EVENT = "wifiauto.evt"

# nmcli
NMCLI_TIMEOUT_S = 15.0
