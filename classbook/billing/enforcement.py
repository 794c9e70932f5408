"""
Entitlement enforcement.

Called at enforcement points (before adding a student, before serving an
entitlement read) to make sure the school is inside what it paid for. Each
check sweeps the school first so a subscription that lapsed since the last
request is seen as lapsed.

Usage:
    # Before adding a student
    StudentCapacityEnforcer().check_can_add_student(school)

    # Anywhere an active subscription is required
    subscription = require_active_subscription(school)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from classbook.billing import ledger
from classbook.billing import lifecycle
from classbook.billing.exceptions import NoActiveSubscriptionError
from classbook.billing.exceptions import StudentLimitError
from classbook.schools.models import StudentStatus

if TYPE_CHECKING:
    from classbook.billing.models import Subscription
    from classbook.schools.models import School

logger = logging.getLogger(__name__)


def require_active_subscription(school: School) -> Subscription:
    """
    Sweep the school and return its ACTIVE or GRACE subscription.

    Raises:
        NoActiveSubscriptionError: Nothing is current after the sweep.
    """
    result = lifecycle.sweep(school)
    if result.current is None:
        raise NoActiveSubscriptionError
    return result.current


class StudentCapacityEnforcer:
    """Enforce the billable-student ceiling when enrolling students."""

    def check_can_add_student(self, school: School) -> None:
        """
        Check if the school can enrol another active student.

        Raises:
            NoActiveSubscriptionError: No current subscription, so no capacity.
            StudentLimitError: The active roster is at the ceiling.
        """
        lifecycle.sweep(school)
        limit = ledger.billable_ceiling(school)
        current_students = self._count_active(school)

        if current_students >= limit:
            logger.info(
                "Student limit reached for school=%s (%d/%d)",
                school.pk,
                current_students,
                limit,
            )
            raise StudentLimitError(
                detail=(
                    f"Your school has reached its limit of {limit} students. "
                    "Upgrade your plan to add more students."
                ),
                limit=limit,
            )

    def get_student_usage(self, school: School) -> dict:
        """
        Get current capacity usage.

        Returns:
            dict with 'used', 'limit' and 'remaining' keys
        """
        lifecycle.sweep(school)
        limit = ledger.billable_ceiling(school)
        used = self._count_active(school)
        return {
            "used": used,
            "limit": limit,
            "remaining": max(limit - used, 0),
        }

    def _count_active(self, school: School) -> int:
        return school.students.filter(status=StudentStatus.ACTIVE).count()
