"""
Payment intent ledger.

Tracks each external payment from checkout to the subscription it funds:

    start_checkout / create_intent → CREATED
    mark_paid                      → PAID   (idempotent)
    mark_used                      → USED   (inside the activation transaction)

Intents are an audit trail and are never deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.db import transaction
from django.utils import timezone

from classbook.billing.constants import DEFAULT_CURRENCY
from classbook.billing.constants import IntentMode
from classbook.billing.constants import PaymentIntentStatus
from classbook.billing.exceptions import DuplicateIntentError
from classbook.billing.exceptions import DuplicatePaymentError
from classbook.billing.exceptions import IntentNotFoundError
from classbook.billing.exceptions import InvalidTransitionError
from classbook.billing.exceptions import PricingValidationError
from classbook.billing.models import PaymentIntent
from classbook.billing.pricing import PriceBreakdown
from classbook.billing.pricing import calculate_price

if TYPE_CHECKING:
    from classbook.billing.gateway import PaymentGateway
    from classbook.schools.models import School

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Gateway order created for a checkout, with the price it was created for."""

    order_id: str
    currency: str
    price: PriceBreakdown
    intent: PaymentIntent


def create_intent(
    *,
    order_id: str,
    mode: str,
    plan_code: str,
    entered_students: int,
    future_students: int = 0,
    coupon_code: str | None = None,
    school: School | None = None,
    school_email: str = "",
) -> PaymentIntent:
    """
    Record a new payment intent in the CREATED state.

    The pricing inputs are validated here so an intent that could never be
    priced is never stored.

    Raises:
        DuplicateIntentError: An intent for ``order_id`` already exists.
            Callers treat this as success.
        PricingValidationError: Upgrade intent without a school.
        InvalidPlanError, InvalidCouponError, InvalidDiscountError:
            The stored parameters would not price.
    """
    calculate_price(plan_code, entered_students, future_students, coupon_code)

    if mode == IntentMode.UPGRADE and school is None:
        raise PricingValidationError("An upgrade payment requires a school.")

    if PaymentIntent.objects.filter(order_id=order_id).exists():
        raise DuplicateIntentError(order_id)

    try:
        with transaction.atomic():
            intent = PaymentIntent.objects.create(
                order_id=order_id,
                mode=mode,
                plan_code=plan_code,
                entered_students=entered_students,
                future_students=future_students,
                coupon_code=coupon_code or "",
                school=school,
                school_email=(school_email or "").strip().lower(),
            )
    except IntegrityError as e:
        # Lost a race with an identical create
        raise DuplicateIntentError(order_id) from e

    logger.info(
        "Created %s payment intent order=%s plan=%s school=%s",
        mode,
        order_id,
        plan_code,
        school.pk if school else None,
    )
    return intent


def start_checkout(
    gateway: PaymentGateway,
    *,
    mode: str,
    plan_code: str,
    entered_students: int,
    future_students: int = 0,
    coupon_code: str | None = None,
    school: School | None = None,
    school_email: str = "",
) -> CheckoutResult:
    """
    Price the request, open a gateway order for it and record the intent.

    The gateway is charged the server computed ``paid_amount``; nothing the
    client sends about amounts is used.
    """
    price = calculate_price(plan_code, entered_students, future_students, coupon_code)
    currency = getattr(settings, "BILLING_CURRENCY", DEFAULT_CURRENCY)

    order_id = gateway.create_order(
        amount=price.paid_amount,
        currency=currency,
        notes={
            "plan_code": plan_code,
            "entered_students": str(entered_students),
            "coupon_code": coupon_code or "NONE",
        },
    )

    intent = create_intent(
        order_id=order_id,
        mode=mode,
        plan_code=plan_code,
        entered_students=entered_students,
        future_students=future_students,
        coupon_code=coupon_code,
        school=school,
        school_email=school_email,
    )
    return CheckoutResult(
        order_id=order_id,
        currency=currency,
        price=price,
        intent=intent,
    )


def get_intent(order_id: str, *, for_update: bool = False) -> PaymentIntent:
    """
    Fetch an intent by order id, optionally locking its row.

    Raises:
        IntentNotFoundError: No such order.
    """
    queryset = PaymentIntent.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(order_id=order_id)
    except PaymentIntent.DoesNotExist:
        raise IntentNotFoundError(order_id) from None


@transaction.atomic
def mark_paid(order_id: str, payment_id: str) -> PaymentIntent:
    """
    Record gateway confirmation of an intent's payment.

    Idempotent: an intent that is already PAID or USED is returned untouched.

    Raises:
        IntentNotFoundError: No such order.
        DuplicatePaymentError: The payment id already paid another order.
    """
    intent = get_intent(order_id, for_update=True)
    if intent.status != PaymentIntentStatus.CREATED:
        logger.info(
            "Payment intent order=%s already %s, skipping mark_paid",
            order_id,
            intent.status,
        )
        return intent

    intent.payment_id = payment_id
    intent.status = PaymentIntentStatus.PAID
    intent.paid_at = timezone.now()
    try:
        with transaction.atomic():
            intent.save(update_fields=["payment_id", "status", "paid_at", "modified"])
    except IntegrityError as e:
        logger.warning(
            "Payment %s reported for order=%s already paid another order",
            payment_id,
            order_id,
        )
        raise DuplicatePaymentError(order_id=order_id) from e
    logger.info("Payment intent order=%s marked paid (payment=%s)", order_id, payment_id)
    return intent


def mark_used(intent: PaymentIntent) -> PaymentIntent:
    """
    Mark a PAID intent as USED.

    Only called from inside the activation transaction, together with the
    ledger write the intent pays for.

    Raises:
        InvalidTransitionError: The intent is not PAID.
    """
    if intent.status != PaymentIntentStatus.PAID:
        logger.error(
            "Refusing to mark payment intent order=%s used from status %s",
            intent.order_id,
            intent.status,
        )
        raise InvalidTransitionError(
            f"Payment intent {intent.order_id} cannot move from "
            f"{intent.status} to {PaymentIntentStatus.USED}.",
        )

    intent.status = PaymentIntentStatus.USED
    intent.used_at = timezone.now()
    intent.save(update_fields=["school", "status", "used_at", "modified"])
    return intent
