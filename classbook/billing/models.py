"""
Billing models for the Classbook subscription engine.

Key design decisions:
- Plans and coupons are constant data (see catalog.py), not tables
- PaymentIntent records each external payment attempt, keyed by the gateway
  order id, and is never deleted
- Subscription is an append-only ledger: one row per paid entitlement
  period. Rows are never deleted and only their status moves
- The "one current subscription per school" rule is a partial unique
  constraint, so two racing activations cannot both commit

Relationship: School ──1:N── Subscription ──0..1── Subscription (previous)
              School ──1:N── PaymentIntent
"""

from django.db import models
from django.db.models import Q
from model_utils.models import TimeStampedModel

from classbook.billing.constants import CURRENT_STATUSES
from classbook.billing.constants import GRACE_PERIOD_DAYS
from classbook.billing.constants import NON_EXPIRED_STATUSES
from classbook.billing.constants import CouponCode
from classbook.billing.constants import IntentMode
from classbook.billing.constants import PaymentIntentStatus
from classbook.billing.constants import PlanCode
from classbook.billing.constants import SubscriptionStatus


class PaymentIntent(TimeStampedModel):
    """
    One external payment attempt.

    Created when checkout starts, marked PAID once the gateway confirms
    the payment, and marked USED once, in the same transaction that
    creates the subscription it pays for. The stored plan and student
    counts are what the subscription is priced from.
    """

    order_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Gateway order id. Primary correlation key.",
    )
    payment_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Gateway payment id, set once the payment is confirmed.",
    )
    school = models.ForeignKey(
        "schools.School",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_intents",
        help_text="Paying school. Empty for first-time registration.",
    )
    school_email = models.EmailField(
        blank=True,
        help_text="Registration email of the school a register intent pays for.",
    )
    mode = models.CharField(
        max_length=20,
        choices=IntentMode.choices,
        default=IntentMode.REGISTER,
    )

    plan_code = models.CharField(max_length=4, choices=PlanCode.choices)
    entered_students = models.PositiveIntegerField()
    future_students = models.PositiveIntegerField(default=0)
    coupon_code = models.CharField(
        max_length=20,
        choices=CouponCode.choices,
        blank=True,
        default="",
    )

    status = models.CharField(
        max_length=20,
        choices=PaymentIntentStatus.choices,
        default=PaymentIntentStatus.CREATED,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["school", "status"], name="payint_school_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["payment_id"],
                condition=~Q(payment_id=""),
                name="uq_paymentintent_payment_id",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} ({self.status})"

    @property
    def is_used(self) -> bool:
        return self.status == PaymentIntentStatus.USED


class SubscriptionQuerySet(models.QuerySet):
    def current(self):
        return self.filter(status__in=CURRENT_STATUSES)

    def non_expired(self):
        return self.filter(status__in=NON_EXPIRED_STATUSES)

    def queued(self):
        return self.filter(status=SubscriptionStatus.QUEUED)


class Subscription(TimeStampedModel):
    """
    One paid entitlement period for a school.

    Renewals never edit an existing row. They append a new row whose
    ``previous_subscription`` points at the row it follows, so a school's
    rows form a gap-free chain:

        [start, end) → [end, end + plan) → ...

    Each row carries the price it was sold at, so the ledger doubles as the
    invoice history.
    """

    school = models.ForeignKey(
        "schools.School",
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    plan_code = models.CharField(max_length=4, choices=PlanCode.choices)

    # Funding payment. Each may fund at most one subscription.
    order_id = models.CharField(max_length=255, unique=True)
    payment_id = models.CharField(max_length=255, unique=True)

    entered_students = models.PositiveIntegerField()
    future_students = models.PositiveIntegerField(default=0)
    billable_students = models.PositiveIntegerField(
        help_text="Capacity ceiling: entered plus future students.",
    )

    original_amount = models.PositiveIntegerField()
    discount_amount = models.PositiveIntegerField(default=0)
    paid_amount = models.PositiveIntegerField()
    coupon_code = models.CharField(
        max_length=20,
        choices=CouponCode.choices,
        blank=True,
        default="",
    )

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    grace_period_days = models.PositiveSmallIntegerField(default=GRACE_PERIOD_DAYS)
    grace_end_date = models.DateTimeField()

    status = models.CharField(
        max_length=20,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.ACTIVE,
    )
    previous_subscription = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="renewals",
    )

    objects = SubscriptionQuerySet.as_manager()

    class Meta:
        ordering = ["start_date", "created"]
        constraints = [
            models.UniqueConstraint(
                fields=["school"],
                condition=Q(status__in=CURRENT_STATUSES),
                name="uq_subscription_one_current_per_school",
            ),
        ]
        indexes = [
            models.Index(fields=["school", "status"], name="sub_school_status_idx"),
            models.Index(fields=["school", "end_date"], name="sub_school_end_date_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.school} - {self.plan_code} ({self.status})"

    @property
    def is_current(self) -> bool:
        return self.status in CURRENT_STATUSES
