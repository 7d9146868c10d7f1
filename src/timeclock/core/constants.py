"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

TEMPLATE_LENGTH = 128

DEFAULT_MATCH_THRESHOLD = 0.6
DEFAULT_VERIFY_THRESHOLD = 0.5

DEFAULT_TOLERANCE_MINUTES = 30
DEFAULT_DUPLICATE_COOLDOWN_SECONDS = 60
DEFAULT_OFFLINE_SYNC_MAX_AGE_DAYS = 7

DEFAULT_TEMPLATE_CACHE_TTL_SECONDS = 3600
DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS = 2.0

# Generic read-through cache TTLs (seconds)
CACHE_TTL_SHORT = 60
CACHE_TTL_MEDIUM = 300
CACHE_TTL_SETTINGS = 300
CACHE_TTL_ORGANIZATION = 600

TOLERANCE_SETTING_KEY = "punch_tolerance_minutes"
