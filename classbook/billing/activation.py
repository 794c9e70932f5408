"""
Activation and upgrade orchestration.

Ties a confirmed payment to a ledger write and to the school's entitlement
pointer. Two workflows:

- Initial activation (register intents): the school's first subscription,
  ACTIVE from now, pointer set to it.
- Upgrade/renewal (upgrade intents): a new subscription queued after the
  last non-expired one, or ACTIVE from now if the school has fully lapsed.

Each workflow runs in one database transaction covering the intent read,
the capacity checks, the subscription insert, the pointer update and the
intent's move to USED. Any failure rolls all of it back and is raised to
the caller; the engine never retries on its own. Payment callbacks are
delivered at least once, so replaying a confirmation for an intent that is
already USED returns the subscription it funded.

Usage:
    service = ActivationService()
    result = service.confirm_payment(order_id, payment_id)
    result.subscription, result.created, result.queued
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db import transaction
from django.utils import timezone

from classbook.billing import ledger
from classbook.billing import lifecycle
from classbook.billing import payment_intents
from classbook.billing.constants import IntentMode
from classbook.billing.constants import PaymentIntentStatus
from classbook.billing.constants import SubscriptionStatus
from classbook.billing.exceptions import CapacityDecreaseRejectedError
from classbook.billing.exceptions import DuplicatePaymentError
from classbook.billing.exceptions import InvalidTransitionError
from classbook.billing.exceptions import NoSubscriptionHistoryError
from classbook.billing.exceptions import PaymentNotConfirmedError
from classbook.billing.exceptions import PaymentVerificationError
from classbook.billing.exceptions import SchoolAlreadyRegisteredError
from classbook.billing.exceptions import SchoolNotFoundError
from classbook.billing.gateway import PaymentGateway
from classbook.billing.models import Subscription
from classbook.billing.pricing import calculate_price
from classbook.schools.models import School
from classbook.schools.services import count_active_students

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from classbook.billing.models import PaymentIntent
    from classbook.billing.pricing import PriceBreakdown

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    """Result of an activation or upgrade."""

    subscription: Subscription
    created: bool
    message: str = ""

    @property
    def queued(self) -> bool:
        return self.subscription.status == SubscriptionStatus.QUEUED


class ActivationService:
    """
    Turns paid payment intents into subscriptions.

    The price of the new subscription is always recomputed from the
    parameters stored on the intent, never taken from the caller.
    """

    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.gateway = gateway or PaymentGateway()
        self.clock = clock or timezone.now

    def confirm_payment(
        self,
        order_id: str,
        payment_id: str,
    ) -> ActivationResult:
        """
        Verify a gateway payment and activate what it paid for.

        Raises:
            PaymentVerificationError: The gateway does not confirm the payment.
            GatewayError: The gateway could not be reached.
            IntentNotFoundError: Unknown order.
            Anything activate_initial or upgrade raises.
        """
        if not self.gateway.verify_payment(order_id, payment_id):
            logger.warning("Rejected unverified payment for order=%s", order_id)
            raise PaymentVerificationError

        intent = payment_intents.mark_paid(order_id, payment_id)

        try:
            if intent.mode == IntentMode.UPGRADE:
                return self.upgrade(order_id)
            return self.activate_initial(order_id)
        except DuplicatePaymentError:
            # A concurrent delivery of the same payment may have committed
            # first, in which case its result is ours too
            intent.refresh_from_db()
            if intent.is_used:
                logger.info("Order %s was activated concurrently", order_id)
                return self._already_processed(intent)
            raise

    def activate_initial(self, order_id: str) -> ActivationResult:
        """
        Create a new school's first subscription from a paid register intent.

        Raises:
            PaymentNotConfirmedError: Intent is not PAID.
            SchoolNotFoundError: No school matches the intent.
            SchoolAlreadyRegisteredError: The school already has a subscription.
            DuplicatePaymentError: Payment already funded a subscription.
        """
        with _atomic_activation(order_id):
            intent = payment_intents.get_intent(order_id, for_update=True)
            if intent.is_used:
                return self._already_processed(intent)
            self._require_paid(intent, IntentMode.REGISTER)

            school = self._lock_school(intent)

            if school.subscription_id:
                # Already registered by an earlier payment. The intent stays
                # PAID so it shows up for reconciliation.
                logger.warning(
                    "School %s already has subscription %s; order %s left unused",
                    school.pk,
                    school.subscription_id,
                    order_id,
                )
                raise SchoolAlreadyRegisteredError(
                    order_id=order_id,
                    subscription_id=school.subscription_id,
                )

            price = self._price(intent)
            subscription = ledger.create_subscription(
                school=school,
                pricing=price,
                order_id=intent.order_id,
                payment_id=intent.payment_id,
                start_date=self.clock(),
                status=SubscriptionStatus.ACTIVE,
            )
            self._point_school_at(school, subscription)

            intent.school = school
            payment_intents.mark_used(intent)

        logger.info(
            "Activated subscription %s for school=%s from order=%s",
            subscription.pk,
            school.pk,
            order_id,
        )
        return ActivationResult(
            subscription=subscription,
            created=True,
            message="Payment verified & subscription activated.",
        )

    def upgrade(self, order_id: str) -> ActivationResult:
        """
        Add a renewal/upgrade subscription from a paid upgrade intent.

        The new subscription starts where the school's last non-expired
        subscription ends and is QUEUED until then. The entitlement pointer
        stays on the current subscription. A school whose subscriptions
        have all expired gets an ACTIVE subscription from now instead, and
        the pointer moves to it.

        Raises:
            PaymentNotConfirmedError: Intent is not PAID.
            NoSubscriptionHistoryError: The school never had a subscription.
            CapacityDecreaseRejectedError: Requested capacity is below the
                active roster or below capacity already paid for.
            DuplicatePaymentError: Payment already funded a subscription.
        """
        with _atomic_activation(order_id):
            intent = payment_intents.get_intent(order_id, for_update=True)
            if intent.is_used:
                return self._already_processed(intent)
            self._require_paid(intent, IntentMode.UPGRADE)

            school = self._lock_school(intent)
            now = self.clock()
            lifecycle.sweep(school, now=now)

            if not ledger.has_history(school):
                raise NoSubscriptionHistoryError

            price = self._price(intent)
            self._check_capacity(school, price)

            tail = ledger.chain_tail(school)
            if tail is not None:
                subscription = ledger.create_subscription(
                    school=school,
                    pricing=price,
                    order_id=intent.order_id,
                    payment_id=intent.payment_id,
                    start_date=tail.end_date,
                    status=SubscriptionStatus.QUEUED,
                    previous=tail,
                )
                message = (
                    "Renewal queued. It starts when the current subscription ends."
                )
            else:
                subscription = ledger.create_subscription(
                    school=school,
                    pricing=price,
                    order_id=intent.order_id,
                    payment_id=intent.payment_id,
                    start_date=now,
                    status=SubscriptionStatus.ACTIVE,
                    previous=ledger.history(school).last(),
                )
                self._point_school_at(school, subscription)
                message = "Subscription renewed and active."

            payment_intents.mark_used(intent)

        logger.info(
            "Upgrade order=%s created %s subscription %s for school=%s",
            order_id,
            subscription.status,
            subscription.pk,
            school.pk,
        )
        return ActivationResult(subscription=subscription, created=True, message=message)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_paid(self, intent: PaymentIntent, mode: str) -> None:
        if intent.status != PaymentIntentStatus.PAID:
            raise PaymentNotConfirmedError(intent.order_id)
        if intent.mode != mode:
            logger.error(
                "Order %s is a %s intent, not %s",
                intent.order_id,
                intent.mode,
                mode,
            )
            raise InvalidTransitionError(
                f"Payment intent {intent.order_id} is a {intent.mode} intent.",
            )

    def _lock_school(self, intent: PaymentIntent) -> School:
        schools = School.objects.select_for_update()
        try:
            if intent.school_id:
                return schools.get(pk=intent.school_id)
            return schools.get(email=intent.school_email)
        except School.DoesNotExist:
            raise SchoolNotFoundError from None

    def _price(self, intent: PaymentIntent) -> PriceBreakdown:
        return calculate_price(
            intent.plan_code,
            intent.entered_students,
            intent.future_students,
            intent.coupon_code or None,
        )

    def _check_capacity(self, school: School, price: PriceBreakdown) -> None:
        """Reject renewals that would shrink capacity below what is committed."""
        minimum = max(
            count_active_students(school),
            ledger.max_committed_billable(school),
        )
        if price.billable_students < minimum:
            logger.info(
                "Rejected capacity decrease for school=%s: requested=%d minimum=%d",
                school.pk,
                price.billable_students,
                minimum,
            )
            raise CapacityDecreaseRejectedError(
                requested=price.billable_students,
                minimum=minimum,
            )

    def _point_school_at(self, school: School, subscription: Subscription) -> None:
        school.subscription = subscription
        school.save(update_fields=["subscription", "modified"])

    def _already_processed(self, intent: PaymentIntent) -> ActivationResult:
        subscription = Subscription.objects.filter(order_id=intent.order_id).first()
        if subscription is None:
            # Used intents always funded a row; reaching here means the
            # ledger and intent ledger disagree
            logger.error("Order %s is USED but funded no subscription", intent.order_id)
            raise InvalidTransitionError(
                f"Payment intent {intent.order_id} is used but has no subscription.",
            )
        return ActivationResult(
            subscription=subscription,
            created=False,
            message="Subscription already activated.",
        )


@contextmanager
def _atomic_activation(order_id: str):
    """``transaction.atomic`` that reports constraint violations as duplicates."""
    try:
        with transaction.atomic():
            yield
    except IntegrityError as e:
        logger.warning("Activation of order %s hit a constraint: %s", order_id, e)
        raise DuplicatePaymentError(order_id=order_id) from e
