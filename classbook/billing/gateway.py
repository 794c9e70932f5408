"""
Payment gateway client.

The billing engine needs two things from the gateway:
- ``create_order``: open an order for an amount and get its id back
- ``verify_payment``: confirm that a client-reported payment is genuine

Orders are Stripe PaymentIntents. A client reports a payment as the
PaymentIntent id plus the id of the charge that settled it. We never trust
that report: the PaymentIntent is fetched back from Stripe with the secret
key, and the payment only counts when Stripe says it succeeded and its
latest charge is the one the client named.

Usage:
    gateway = PaymentGateway()
    order_id = gateway.create_order(amount=11520, currency="INR")
    if gateway.verify_payment(order_id, payment_id):
        ...
"""

from __future__ import annotations

import logging

import stripe
from django.conf import settings

from classbook.billing.exceptions import GatewayError

logger = logging.getLogger(__name__)

# Amounts are whole currency units; the gateway wants minor units.
MINOR_UNITS_PER_UNIT = 100

PAYMENT_SUCCEEDED = "succeeded"


class PaymentGateway:
    """
    Thin wrapper around the Stripe SDK.

    Keeps gateway specifics (minor units, metadata, payment lookup) out of
    the billing engine, and is the single seam tests patch.
    """

    def __init__(self):
        """Initialize with Stripe API key from settings."""
        stripe.api_key = settings.STRIPE_SECRET_KEY

    def create_order(
        self,
        amount: int,
        currency: str,
        notes: dict[str, str] | None = None,
    ) -> str:
        """
        Create a gateway order for ``amount`` whole currency units.

        Returns the order id.

        Raises:
            GatewayError: If the gateway call fails.
        """
        try:
            order = stripe.PaymentIntent.create(
                amount=amount * MINOR_UNITS_PER_UNIT,
                currency=currency.lower(),
                metadata=notes or {},
            )
        except stripe.StripeError as e:
            logger.exception("Failed to create payment order")
            raise GatewayError from e

        logger.info(
            "Created payment order %s for %s %s",
            order.id,
            amount,
            currency,
        )
        return order.id

    def verify_payment(self, order_id: str, payment_id: str) -> bool:
        """
        True when Stripe reports the order as paid by ``payment_id``.

        An order Stripe does not know is reported as unverified.

        Raises:
            GatewayError: If Stripe cannot be reached.
        """
        if not (order_id and payment_id):
            return False

        try:
            order = stripe.PaymentIntent.retrieve(order_id)
        except stripe.InvalidRequestError:
            logger.warning("Gateway has no order %s", order_id)
            return False
        except stripe.StripeError as e:
            logger.exception("Failed to retrieve payment order %s", order_id)
            raise GatewayError from e

        if order.status != PAYMENT_SUCCEEDED:
            logger.info("Order %s is %s, not paid", order_id, order.status)
            return False

        charge = order.latest_charge
        charge_id = charge if isinstance(charge, str) else getattr(charge, "id", None)
        if charge_id != payment_id:
            logger.warning(
                "Order %s was paid by %s, not the reported %s",
                order_id,
                charge_id,
                payment_id,
            )
            return False
        return True
