"""
Tests for roster services.
"""

import pytest

from classbook.billing.exceptions import NoActiveSubscriptionError
from classbook.billing.exceptions import StudentLimitError
from classbook.billing.tests.factories import SubscriptionFactory
from classbook.schools.models import Student
from classbook.schools.models import StudentStatus
from classbook.schools.services import count_active_students
from classbook.schools.services import enroll_student
from classbook.schools.tests.factories import StudentFactory

pytestmark = pytest.mark.django_db


def test_count_active_students(school):
    StudentFactory.create_batch(3, school=school)
    StudentFactory(school=school, status=StudentStatus.INACTIVE)
    StudentFactory()

    assert count_active_students(school) == 3


def test_enroll_student_within_capacity(school):
    SubscriptionFactory(school=school, entered_students=2, future_students=0)

    student = enroll_student(school, "Lisa Simpson")

    assert student.status == StudentStatus.ACTIVE
    assert student.school == school


def test_enroll_student_rejected_at_capacity(school):
    SubscriptionFactory(school=school, entered_students=1, future_students=0)
    enroll_student(school, "Bart Simpson")

    with pytest.raises(StudentLimitError):
        enroll_student(school, "Milhouse Van Houten")

    assert Student.objects.filter(school=school).count() == 1


def test_enroll_student_without_subscription(school):
    with pytest.raises(NoActiveSubscriptionError):
        enroll_student(school, "Nelson Muntz")

    assert not Student.objects.filter(school=school).exists()


def test_school_email_is_lower_cased(school):
    school.email = "  Principal@Springfield.EDU"
    school.save()

    school.refresh_from_db()
    assert school.email == "principal@springfield.edu"
