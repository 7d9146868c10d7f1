from .base import *  # noqa: F401,F403

DEBUG = False
TESTING = True

REDIS_URL = ""
TEMPLATE_CACHE_WARMUP_SECONDS = 0
AUTO_INIT_DB = False
LOG_LEVEL = "WARNING"
