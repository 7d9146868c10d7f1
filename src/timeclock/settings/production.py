import os

from .base import *  # noqa: F401,F403

DEBUG = False

TEMPLATE_CACHE_WARMUP_SECONDS = int(os.getenv("TEMPLATE_CACHE_WARMUP_SECONDS", "900"))
