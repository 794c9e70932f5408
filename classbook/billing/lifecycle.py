"""
Lifecycle transition sweeper.

Subscriptions change status with time, but nothing runs on a timer.
Instead every request that depends on a school's entitlement calls
``sweep(school)`` first, which catches the ledger up to the current time:

    ACTIVE → GRACE     now >= end_date and now < grace_end_date
    ACTIVE → EXPIRED   now >= grace_end_date (grace skipped if the sweep is late)
    GRACE  → EXPIRED   now >= grace_end_date
    QUEUED → ACTIVE    nothing is ACTIVE/GRACE and now >= start_date

Queued renewals are promoted earliest start first. Promotion also moves the
school's entitlement pointer to the promoted subscription.

A sweep repeats until nothing changes, so a single late sweep reaches the
same state as any number of earlier ones. Sweeping twice at the same time
is a no-op the second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

from classbook.billing import ledger
from classbook.billing.constants import SubscriptionStatus
from classbook.schools.models import School

if TYPE_CHECKING:
    from datetime import datetime

    from classbook.billing.models import Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    subscription_id: int
    old_status: str
    new_status: str


@dataclass
class SweepResult:
    """What a sweep did and where it left the school."""

    school: School
    current: Subscription | None = None
    transitions: list[Transition] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.transitions)


def status_at(subscription: Subscription, now: datetime) -> str:
    """The status an ACTIVE or GRACE subscription should have at ``now``."""
    if subscription.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.GRACE):
        return subscription.status
    if now >= subscription.grace_end_date:
        return SubscriptionStatus.EXPIRED
    if now >= subscription.end_date:
        return SubscriptionStatus.GRACE
    return subscription.status


def _set_status(
    subscription: Subscription,
    new_status: str,
    result: SweepResult,
) -> None:
    old_status = subscription.status
    subscription.status = new_status
    subscription.save(update_fields=["status", "modified"])
    result.transitions.append(
        Transition(
            subscription_id=subscription.pk,
            old_status=old_status,
            new_status=new_status,
        ),
    )
    logger.info(
        "Subscription %s for school=%s moved %s -> %s",
        subscription.pk,
        subscription.school_id,
        old_status,
        new_status,
    )


@transaction.atomic
def sweep(school: School, now: datetime | None = None) -> SweepResult:
    """
    Apply every overdue status transition for one school.

    Safe to call redundantly and concurrently: the school row is locked for
    the duration, and a second sweep at the same or a later time only
    applies what the first one could not yet.
    """
    now = now or timezone.now()
    # Serialise sweeps and activations for the same school
    locked_school = School.objects.select_for_update().get(pk=school.pk)
    result = SweepResult(school=locked_school)

    while True:
        current = ledger.current_subscription(locked_school)
        if current is not None:
            new_status = status_at(current, now)
            if new_status != current.status:
                _set_status(current, new_status, result)
            if current.status != SubscriptionStatus.EXPIRED:
                result.current = current
                break

        queued = ledger.next_queued(locked_school, now)
        if queued is None:
            break

        _set_status(queued, SubscriptionStatus.ACTIVE, result)
        locked_school.subscription = queued
        locked_school.save(update_fields=["subscription", "modified"])
        logger.info(
            "Entitlement pointer for school=%s moved to subscription %s",
            locked_school.pk,
            queued.pk,
        )

    # Keep the caller's instance in step with the pointer
    school.subscription_id = locked_school.subscription_id
    return result
