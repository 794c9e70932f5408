from datetime import timedelta

import factory
from django.utils import timezone
from factory.django import DjangoModelFactory

from classbook.billing.constants import IntentMode
from classbook.billing.constants import PaymentIntentStatus
from classbook.billing.constants import PlanCode
from classbook.billing.constants import SubscriptionStatus
from classbook.billing.ledger import add_months
from classbook.billing.models import PaymentIntent
from classbook.billing.models import Subscription
from classbook.schools.tests.factories import SchoolFactory


class PaymentIntentFactory(DjangoModelFactory):
    class Meta:
        model = PaymentIntent

    order_id = factory.Sequence(lambda n: f"order_{n:06d}")
    school = factory.SubFactory(SchoolFactory)
    school_email = factory.LazyAttribute(lambda o: o.school.email if o.school else "")
    mode = IntentMode.REGISTER
    plan_code = PlanCode.ONE_YEAR
    entered_students = 100
    future_students = 20
    coupon_code = ""
    status = PaymentIntentStatus.CREATED


class SubscriptionFactory(DjangoModelFactory):
    """
    A one year subscription for 120 billable students, starting now.

    Pass ``start_date`` to move it in time; end and grace dates follow.
    """

    class Meta:
        model = Subscription

    school = factory.SubFactory(SchoolFactory)
    plan_code = PlanCode.ONE_YEAR
    order_id = factory.Sequence(lambda n: f"sub_order_{n:06d}")
    payment_id = factory.Sequence(lambda n: f"sub_pay_{n:06d}")
    entered_students = 100
    future_students = 20
    billable_students = factory.LazyAttribute(
        lambda o: o.entered_students + o.future_students,
    )
    original_amount = factory.LazyAttribute(lambda o: o.billable_students * 8 * 12)
    discount_amount = 0
    paid_amount = factory.LazyAttribute(lambda o: o.original_amount - o.discount_amount)
    start_date = factory.LazyFunction(timezone.now)
    end_date = factory.LazyAttribute(lambda o: add_months(o.start_date, 12))
    grace_period_days = 7
    grace_end_date = factory.LazyAttribute(
        lambda o: o.end_date + timedelta(days=o.grace_period_days),
    )
    status = SubscriptionStatus.ACTIVE
