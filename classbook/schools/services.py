"""
Roster operations the billing engine depends on.

``count_active_students`` feeds capacity checks. ``enroll_student`` is the
single write path for new students and goes through the capacity enforcer
so a school can never grow past its billable ceiling.
"""

from __future__ import annotations

import logging

from django.db import transaction

from classbook.billing.enforcement import StudentCapacityEnforcer
from classbook.schools.models import School
from classbook.schools.models import Student
from classbook.schools.models import StudentStatus

logger = logging.getLogger(__name__)


def count_active_students(school: School) -> int:
    return Student.objects.filter(
        school=school,
        status=StudentStatus.ACTIVE,
    ).count()


@transaction.atomic
def enroll_student(school: School, name: str) -> Student:
    """
    Add an active student to the school's roster.

    Raises:
        NoActiveSubscriptionError: The school has no current subscription.
        StudentLimitError: The roster is already at the billable ceiling.
    """
    # Lock the school so concurrent enrolments are counted one at a time
    School.objects.select_for_update().get(pk=school.pk)
    StudentCapacityEnforcer().check_can_add_student(school)

    student = Student.objects.create(school=school, name=name)
    logger.info("Enrolled student %s in school %s", student.pk, school.pk)
    return student
