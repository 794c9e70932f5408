from .base import *  # noqa: F403
from .base import LOGGING
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#debug
DEBUG = True
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="Hq3tV8yLwP1cZr5NbK0xGm7sDf2uJa9eTi4oWn6lYvXhRbC1kQz8MpEgS3dUjF0A",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#allowed-hosts
ALLOWED_HOSTS = ["localhost", "0.0.0.0", "127.0.0.1"]  # noqa: S104

# CACHES
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#caches
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "",
    },
}

# Logging
# ------------------------------------------------------------------------------
# Make local development chatty so lifecycle transitions show up immediately.
LOGGING["loggers"] = {
    "classbook": {
        "handlers": ["console"],
        "level": "DEBUG",
        "propagate": False,
    },
}
