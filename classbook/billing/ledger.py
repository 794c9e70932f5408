"""
Subscription ledger.

Appends subscription rows and answers the read queries the rest of the
engine needs. Status changes over time live in lifecycle.py; deciding what
to append lives in activation.py. Nothing here opens its own transaction:
callers run these inside ``transaction.atomic``.
"""

from __future__ import annotations

import calendar
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.db import transaction
from django.db.models import Max
from django.db.models import Q

from classbook.billing.constants import GRACE_PERIOD_DAYS
from classbook.billing.exceptions import DuplicatePaymentError
from classbook.billing.exceptions import NoActiveSubscriptionError
from classbook.billing.models import Subscription

if TYPE_CHECKING:
    from datetime import datetime

    from classbook.billing.pricing import PriceBreakdown
    from classbook.schools.models import School

logger = logging.getLogger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the end of the target month.

    Jan 31 + 1 month is Feb 28 (or 29), not Mar 3.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def get_grace_period_days() -> int:
    return getattr(settings, "BILLING_GRACE_PERIOD_DAYS", GRACE_PERIOD_DAYS)


def create_subscription(
    *,
    school: School,
    pricing: PriceBreakdown,
    order_id: str,
    payment_id: str,
    start_date: datetime,
    status: str,
    previous: Subscription | None = None,
    carry_over: timedelta = timedelta(0),
) -> Subscription:
    """
    Append a subscription row to the school's ledger.

    ``carry_over`` pushes the end date later to credit unused time from a
    previous period. No policy grants such credit yet, so callers pass zero.

    Raises:
        DuplicatePaymentError: The order or payment already funded a
            subscription, or a storage constraint rejected the row.
    """
    exists = Subscription.objects.filter(
        Q(order_id=order_id) | Q(payment_id=payment_id),
    ).exists()
    if exists:
        raise DuplicatePaymentError(order_id=order_id)

    end_date = add_months(start_date, pricing.total_months) + carry_over
    grace_period_days = get_grace_period_days()

    try:
        # Savepoint so a constraint violation leaves the outer
        # transaction usable for the caller's error handling
        with transaction.atomic():
            subscription = Subscription.objects.create(
                school=school,
                plan_code=pricing.plan_code,
                order_id=order_id,
                payment_id=payment_id,
                entered_students=pricing.entered_students,
                future_students=pricing.future_students,
                billable_students=pricing.billable_students,
                original_amount=pricing.original_amount,
                discount_amount=pricing.discount_amount,
                paid_amount=pricing.paid_amount,
                coupon_code=pricing.coupon_code or "",
                start_date=start_date,
                end_date=end_date,
                grace_period_days=grace_period_days,
                grace_end_date=end_date + timedelta(days=grace_period_days),
                status=status,
                previous_subscription=previous,
            )
    except IntegrityError as e:
        logger.warning(
            "Constraint violation creating subscription for school=%s order=%s: %s",
            school.pk,
            order_id,
            e,
        )
        raise DuplicatePaymentError(order_id=order_id) from e

    logger.info(
        "Created %s subscription %s for school=%s plan=%s billable=%d [%s, %s)",
        status,
        subscription.pk,
        school.pk,
        pricing.plan_code,
        pricing.billable_students,
        start_date.isoformat(),
        end_date.isoformat(),
    )
    return subscription


# =============================================================================
# Queries
# =============================================================================


def current_subscription(school: School) -> Subscription | None:
    """The school's ACTIVE or GRACE subscription, if any."""
    return Subscription.objects.current().filter(school=school).first()


def chain_tail(school: School) -> Subscription | None:
    """
    The non-expired subscription with the latest end date.

    New renewals start where this one ends. It is a queued renewal when one
    exists, otherwise the current subscription.
    """
    return (
        Subscription.objects.non_expired()
        .filter(school=school)
        .order_by("-end_date", "-created")
        .first()
    )


def next_queued(school: School, now: datetime) -> Subscription | None:
    """The queued subscription with the earliest start date that has begun."""
    return (
        Subscription.objects.queued()
        .filter(school=school, start_date__lte=now)
        .order_by("start_date", "created")
        .first()
    )


def has_history(school: School) -> bool:
    return Subscription.objects.filter(school=school).exists()


def billable_ceiling(school: School) -> int:
    """
    The school's current billable-student ceiling.

    Raises:
        NoActiveSubscriptionError: No ACTIVE or GRACE subscription. A school
            without one has no capacity at all, not zero capacity.
    """
    subscription = current_subscription(school)
    if subscription is None:
        raise NoActiveSubscriptionError
    return subscription.billable_students


def max_committed_billable(school: School) -> int:
    """Largest billable_students across the school's non-expired rows."""
    result = (
        Subscription.objects.non_expired()
        .filter(school=school)
        .aggregate(maximum=Max("billable_students"))
    )
    return result["maximum"] or 0


def history(school: School):
    """All of the school's subscriptions, oldest first."""
    return Subscription.objects.filter(school=school).order_by("start_date", "created")
