"""
Tests for the subscription ledger.
"""

from datetime import UTC
from datetime import datetime
from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.db import transaction
from django.test import TestCase

from classbook.billing import ledger
from classbook.billing.constants import SubscriptionStatus
from classbook.billing.exceptions import DuplicatePaymentError
from classbook.billing.exceptions import NoActiveSubscriptionError
from classbook.billing.ledger import add_months
from classbook.billing.models import Subscription
from classbook.billing.pricing import calculate_price
from classbook.billing.tests.factories import SubscriptionFactory
from classbook.schools.tests.factories import SchoolFactory


class TestAddMonths:
    def test_simple(self):
        start = datetime(2025, 3, 15, 10, 30, tzinfo=UTC)
        assert add_months(start, 12) == datetime(2026, 3, 15, 10, 30, tzinfo=UTC)

    def test_clamps_to_month_end(self):
        start = datetime(2025, 1, 31, tzinfo=UTC)
        assert add_months(start, 1) == datetime(2025, 2, 28, tzinfo=UTC)

    def test_leap_year(self):
        start = datetime(2024, 2, 29, tzinfo=UTC)
        assert add_months(start, 12) == datetime(2025, 2, 28, tzinfo=UTC)
        assert add_months(start, 48) == datetime(2028, 2, 29, tzinfo=UTC)

    def test_crosses_year(self):
        start = datetime(2025, 11, 5, tzinfo=UTC)
        assert add_months(start, 6) == datetime(2026, 5, 5, tzinfo=UTC)


class CreateSubscriptionTests(TestCase):
    """Tests for ledger.create_subscription."""

    def setUp(self):
        self.school = SchoolFactory()
        self.start = datetime(2025, 6, 1, tzinfo=UTC)
        self.price = calculate_price("1Y", 100, 20)

    def _create(self, **kwargs):
        defaults = {
            "school": self.school,
            "pricing": self.price,
            "order_id": "order_1",
            "payment_id": "pay_1",
            "start_date": self.start,
            "status": SubscriptionStatus.ACTIVE,
        }
        defaults.update(kwargs)
        return ledger.create_subscription(**defaults)

    def test_dates_and_amounts(self):
        subscription = self._create()

        self.assertEqual(subscription.end_date, datetime(2026, 6, 1, tzinfo=UTC))
        self.assertEqual(subscription.grace_period_days, 7)
        self.assertEqual(subscription.grace_end_date, datetime(2026, 6, 8, tzinfo=UTC))
        self.assertEqual(subscription.billable_students, 120)
        self.assertEqual(subscription.paid_amount, 11520)
        self.assertEqual(subscription.coupon_code, "")

    def test_grace_period_from_settings(self):
        with self.settings(BILLING_GRACE_PERIOD_DAYS=3):
            subscription = self._create()

        self.assertEqual(subscription.grace_period_days, 3)
        self.assertEqual(
            subscription.grace_end_date,
            subscription.end_date + timedelta(days=3),
        )

    def test_carry_over_extends_end_date(self):
        subscription = self._create(carry_over=timedelta(days=10))

        self.assertEqual(subscription.end_date, datetime(2026, 6, 11, tzinfo=UTC))

    def test_reused_order_id_is_duplicate_payment(self):
        self._create()

        with pytest.raises(DuplicatePaymentError):
            self._create(payment_id="pay_2", status=SubscriptionStatus.QUEUED)

    def test_reused_payment_id_is_duplicate_payment(self):
        self._create()

        with pytest.raises(DuplicatePaymentError):
            self._create(order_id="order_2", status=SubscriptionStatus.QUEUED)

    def test_second_current_subscription_is_duplicate_payment(self):
        self._create()

        with pytest.raises(DuplicatePaymentError):
            self._create(order_id="order_2", payment_id="pay_2")

        self.assertEqual(Subscription.objects.filter(school=self.school).count(), 1)


class OneCurrentSubscriptionConstraintTests(TestCase):
    """The one-current-per-school rule is enforced by the database."""

    def test_constraint_rejects_second_active_row(self):
        school = SchoolFactory()
        SubscriptionFactory(school=school, status=SubscriptionStatus.ACTIVE)

        with pytest.raises(IntegrityError), transaction.atomic():
            SubscriptionFactory(school=school, status=SubscriptionStatus.GRACE)

    def test_constraint_allows_queued_and_expired_rows(self):
        school = SchoolFactory()
        SubscriptionFactory(school=school, status=SubscriptionStatus.ACTIVE)
        SubscriptionFactory(school=school, status=SubscriptionStatus.QUEUED)
        SubscriptionFactory(school=school, status=SubscriptionStatus.EXPIRED)
        SubscriptionFactory(school=school, status=SubscriptionStatus.EXPIRED)

        self.assertEqual(Subscription.objects.filter(school=school).count(), 4)


class LedgerQueryTests(TestCase):
    """Tests for the ledger read queries."""

    def setUp(self):
        self.school = SchoolFactory()
        self.now = datetime(2025, 6, 1, tzinfo=UTC)

    def test_billable_ceiling_without_current_subscription(self):
        SubscriptionFactory(school=self.school, status=SubscriptionStatus.EXPIRED)

        with pytest.raises(NoActiveSubscriptionError):
            ledger.billable_ceiling(self.school)

    def test_billable_ceiling_from_current(self):
        SubscriptionFactory(
            school=self.school,
            status=SubscriptionStatus.GRACE,
            entered_students=30,
            future_students=5,
        )

        self.assertEqual(ledger.billable_ceiling(self.school), 35)

    def test_chain_tail_is_latest_non_expired(self):
        current = SubscriptionFactory(school=self.school, start_date=self.now)
        queued = SubscriptionFactory(
            school=self.school,
            start_date=current.end_date,
            status=SubscriptionStatus.QUEUED,
        )
        SubscriptionFactory(
            school=self.school,
            start_date=self.now - timedelta(days=800),
            status=SubscriptionStatus.EXPIRED,
        )

        self.assertEqual(ledger.chain_tail(self.school), queued)

    def test_chain_tail_none_when_lapsed(self):
        SubscriptionFactory(school=self.school, status=SubscriptionStatus.EXPIRED)

        self.assertIsNone(ledger.chain_tail(self.school))
        self.assertTrue(ledger.has_history(self.school))

    def test_max_committed_billable_ignores_expired(self):
        SubscriptionFactory(
            school=self.school,
            status=SubscriptionStatus.EXPIRED,
            entered_students=500,
        )
        SubscriptionFactory(school=self.school, entered_students=80, future_students=0)
        SubscriptionFactory(
            school=self.school,
            status=SubscriptionStatus.QUEUED,
            entered_students=90,
            future_students=0,
        )

        self.assertEqual(ledger.max_committed_billable(self.school), 90)

    def test_max_committed_billable_without_rows(self):
        self.assertEqual(ledger.max_committed_billable(self.school), 0)

    def test_next_queued_only_when_started(self):
        queued = SubscriptionFactory(
            school=self.school,
            start_date=self.now + timedelta(days=1),
            status=SubscriptionStatus.QUEUED,
        )

        self.assertIsNone(ledger.next_queued(self.school, self.now))
        self.assertEqual(ledger.next_queued(self.school, self.now + timedelta(days=1)), queued)

    def test_history_is_oldest_first(self):
        later = SubscriptionFactory(
            school=self.school,
            start_date=self.now,
            status=SubscriptionStatus.QUEUED,
        )
        earlier = SubscriptionFactory(
            school=self.school,
            start_date=self.now - timedelta(days=365),
            status=SubscriptionStatus.EXPIRED,
        )

        self.assertEqual(list(ledger.history(self.school)), [earlier, later])
