import pytest

from classbook.schools.models import School
from classbook.schools.tests.factories import SchoolFactory


@pytest.fixture(autouse=True)
def _billing_settings(settings) -> None:
    settings.BILLING_CURRENCY = "INR"
    settings.BILLING_GRACE_PERIOD_DAYS = 7
    settings.STRIPE_SECRET_KEY = "sk_test_dummy_test_key_for_testing"


@pytest.fixture
def school(db) -> School:
    return SchoolFactory()
