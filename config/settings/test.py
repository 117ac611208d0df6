# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# keep streaming tests fast
LABOPS_SSE_HEARTBEAT_SECONDS = 1
LABOPS_SSE_QUEUE_SIZE = 10

LOGGING["loggers"]["lab_core"]["level"] = "WARNING"
