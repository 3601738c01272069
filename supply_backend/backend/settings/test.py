# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite (fast, isolated per run)
- Fast password hashing
- Relaxed throttling so API tests never flake
- Service loggers quietened to WARNING
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK as BASE_REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = ()

INVENTORY_STRICT_BATCH_CONSUMPTION = False
STOCK_SYNC_TOLERANCE = 1

for _name in ("inventory", "ledger", "payments", "purchases"):
    LOGGING["loggers"][_name]["level"] = "WARNING"
