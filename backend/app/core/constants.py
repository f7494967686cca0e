"""
Centralized constants for availability aggregation, live updates and the scheduler.

Change job IDs or intervals here instead of scattering literals across main and services.
"""

# Trailing window: only reports created in the last N minutes count toward a status,
# and a user may file one report per study space per window.
REPORT_WINDOW_MINUTES = 5

# Status labels accepted for availability reports (seeded into study_space_statuses).
STATUS_AVAILABLE = "Available"
STATUS_NEARLY_FULL = "Nearly Full"
STATUS_FULL = "Full"
STATUS_UNKNOWN = "Unknown"

# Tie-break priority for consensus: earlier wins when counts are equal.
STATUS_PRIORITY = (STATUS_AVAILABLE, STATUS_NEARLY_FULL, STATUS_FULL)

# Wire keys for rawReports, same order as STATUS_PRIORITY
RAW_REPORT_KEYS = {
    STATUS_AVAILABLE: "available",
    STATUS_NEARLY_FULL: "nearlyFull",
    STATUS_FULL: "full",
}

# A status is verified only with a strict majority backed by at least this many reports
VERIFIED_MIN_REPORTS = 3

# Live updates: keepalive so proxies (e.g. Heroku router) do not drop idle sockets
HEARTBEAT_INTERVAL_SECONDS = 29
HEARTBEAT_MESSAGE = "ping"
# Message a client sends after reporting (legacy frontend protocol)
CLIENT_AVAILABILITY_UPDATED = "availabilityUpdated"
# Per-client send timeout during a broadcast; slow clients are dropped
BROADCAST_SEND_TIMEOUT_SECONDS = 5.0

# Scheduler job IDs (must match ids used in main.py / update_scheduler)
HEARTBEAT_JOB_ID = "live_heartbeat"
BUILDING_REFRESH_JOB_PREFIX = "building_refresh"

# Validation limits shared by schemas
MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_CAPACITY = 2000
