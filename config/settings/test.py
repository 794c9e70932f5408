"""
With these settings, tests run faster.
"""

import os

# Set test-safe payment secrets before base settings reads them
# These look like real test keys but are dummy values for testing
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy_test_key_for_testing")

from .base import *  # noqa: F403
from .base import DATABASES
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="nN4lPkU6u0yR3rXQ2gq8ZhWm1tVb7cJfEa9sLdKo5iTy2GxHwMzBpRvCe6jA0uQs",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#test-runner
TEST_RUNNER = "django.test.runner.DiscoverRunner"
DATABASES["default"]["CONN_MAX_AGE"] = 0
# https://docs.djangoproject.com/en/dev/ref/settings/#allowed-hosts
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# PASSWORDS
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#password-hashers
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Your stuff...
# ------------------------------------------------------------------------------
BILLING_CURRENCY = "INR"
BILLING_GRACE_PERIOD_DAYS = 7
