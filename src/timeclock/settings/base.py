"""Settings shared by every environment; environment modules override them."""

import os

from ..core.constants import (
    DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS,
    DEFAULT_DUPLICATE_COOLDOWN_SECONDS,
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_OFFLINE_SYNC_MAX_AGE_DAYS,
    DEFAULT_TEMPLATE_CACHE_TTL_SECONDS,
    DEFAULT_TOLERANCE_MINUTES,
    DEFAULT_VERIFY_THRESHOLD,
)

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_db"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

# Empty REDIS_URL -> per-process template cache.
REDIS_URL = os.getenv("REDIS_URL", "")
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", str(DEFAULT_CACHE_SOCKET_TIMEOUT_SECONDS)))
TEMPLATE_CACHE_TTL_SECONDS = int(os.getenv("TEMPLATE_CACHE_TTL_SECONDS", str(DEFAULT_TEMPLATE_CACHE_TTL_SECONDS)))
# 0 disables the background warm-up thread.
TEMPLATE_CACHE_WARMUP_SECONDS = int(os.getenv("TEMPLATE_CACHE_WARMUP_SECONDS", "0"))

FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", str(DEFAULT_MATCH_THRESHOLD)))
FACE_VERIFY_THRESHOLD = float(os.getenv("FACE_VERIFY_THRESHOLD", str(DEFAULT_VERIFY_THRESHOLD)))

PUNCH_TOLERANCE_MINUTES = int(os.getenv("PUNCH_TOLERANCE_MINUTES", str(DEFAULT_TOLERANCE_MINUTES)))
DUPLICATE_COOLDOWN_SECONDS = int(os.getenv("DUPLICATE_COOLDOWN_SECONDS", str(DEFAULT_DUPLICATE_COOLDOWN_SECONDS)))
OFFLINE_SYNC_MAX_AGE_DAYS = int(os.getenv("OFFLINE_SYNC_MAX_AGE_DAYS", str(DEFAULT_OFFLINE_SYNC_MAX_AGE_DAYS)))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
