"""
Billing constants for the subscription engine.

These enums define the plan and coupon codes, the subscription lifecycle
states and the payment intent states used throughout the billing module.
Plan and coupon codes are the keys of the static catalogs in
``classbook.billing.catalog``.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class PlanCode(models.TextChoices):
    """
    Plan codes, one per prepaid plan length.

    Every plan is billed per student per month for its whole duration up
    front. There is no free tier and no trial.
    """

    SIX_MONTHS = "6M", _("6 months")
    ONE_YEAR = "1Y", _("1 year")
    TWO_YEARS = "2Y", _("2 years")
    THREE_YEARS = "3Y", _("3 years")


class CouponCode(models.TextChoices):
    """Coupon codes. Each coupon waives a number of plan months."""

    FREE_3M = "FREE_3M", _("3 months free")
    FREE_6M = "FREE_6M", _("6 months free")


class SubscriptionStatus(models.TextChoices):
    """
    Subscription lifecycle states.

    Typical flow:
        ACTIVE → GRACE (end date passed) → EXPIRED (grace window passed)
        ACTIVE → EXPIRED (sweep ran after the grace window already closed)
        QUEUED → ACTIVE (nothing current and the start date has arrived)

    A school has at most one ACTIVE or GRACE subscription at any time.
    QUEUED subscriptions are prepaid renewals waiting their turn.
    """

    ACTIVE = "active", _("Active")
    GRACE = "grace", _("Grace period")
    QUEUED = "queued", _("Queued")
    EXPIRED = "expired", _("Expired")


class PaymentIntentStatus(models.TextChoices):
    """
    Payment intent states. Transitions only move forward:

        CREATED → PAID (gateway confirmed) → USED (funded a subscription)
    """

    CREATED = "created", _("Created")
    PAID = "paid", _("Paid")
    USED = "used", _("Used")


class IntentMode(models.TextChoices):
    """What a payment intent pays for."""

    REGISTER = "register", _("Register")
    UPGRADE = "upgrade", _("Upgrade")


# Statuses that hold the entitlement for a school. At most one per school.
CURRENT_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.GRACE)

# Statuses that still count towards committed capacity.
NON_EXPIRED_STATUSES = (
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.GRACE,
    SubscriptionStatus.QUEUED,
)

# Days of access retained after a subscription's end date.
GRACE_PERIOD_DAYS = 7

# Smallest payable amount, charged for fully waived plans so the payment
# gateway still sees a real transaction.
NOMINAL_PAID_AMOUNT = 1

DEFAULT_CURRENCY = "INR"

# Upper bound on each student count in a single order. Keeps every stored
# amount inside a 32-bit integer column.
MAX_STUDENTS_PER_ORDER = 10_000
