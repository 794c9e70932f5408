"""
Tests for the payment gateway client.
"""

from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
import stripe

from classbook.billing.exceptions import GatewayError
from classbook.billing.gateway import PaymentGateway


def stripe_order(status="succeeded", latest_charge="ch_1"):
    return MagicMock(id="pi_1", status=status, latest_charge=latest_charge)


@patch("classbook.billing.gateway.stripe.PaymentIntent.retrieve")
class TestVerifyPayment:
    def test_accepts_succeeded_order_paid_by_reported_charge(self, mock_retrieve):
        mock_retrieve.return_value = stripe_order()

        assert PaymentGateway().verify_payment("pi_1", "ch_1")
        mock_retrieve.assert_called_once_with("pi_1")

    def test_accepts_expanded_charge(self, mock_retrieve):
        mock_retrieve.return_value = stripe_order(latest_charge=MagicMock(id="ch_1"))

        assert PaymentGateway().verify_payment("pi_1", "ch_1")

    def test_rejects_charge_the_order_was_not_paid_by(self, mock_retrieve):
        mock_retrieve.return_value = stripe_order(latest_charge="ch_other")

        assert not PaymentGateway().verify_payment("pi_1", "ch_1")

    @pytest.mark.parametrize(
        "status",
        ["requires_payment_method", "processing", "canceled"],
    )
    def test_rejects_order_that_has_not_succeeded(self, mock_retrieve, status):
        mock_retrieve.return_value = stripe_order(status=status)

        assert not PaymentGateway().verify_payment("pi_1", "ch_1")

    def test_unknown_order_is_unverified(self, mock_retrieve):
        mock_retrieve.side_effect = stripe.InvalidRequestError(
            "No such payment_intent: 'pi_forged'",
            param="intent",
        )

        assert not PaymentGateway().verify_payment("pi_forged", "ch_1")

    def test_stripe_outage_raises_gateway_error(self, mock_retrieve):
        mock_retrieve.side_effect = stripe.APIConnectionError("network down")

        with pytest.raises(GatewayError):
            PaymentGateway().verify_payment("pi_1", "ch_1")

    @pytest.mark.parametrize(("order_id", "payment_id"), [("", "ch_1"), ("pi_1", "")])
    def test_rejects_empty_inputs_without_calling_stripe(
        self,
        mock_retrieve,
        order_id,
        payment_id,
    ):
        assert not PaymentGateway().verify_payment(order_id, payment_id)
        mock_retrieve.assert_not_called()


class TestCreateOrder:
    @patch("classbook.billing.gateway.stripe.PaymentIntent.create")
    def test_amount_sent_in_minor_units(self, mock_create):
        mock_create.return_value = MagicMock(id="pi_123")

        order_id = PaymentGateway().create_order(
            amount=11520,
            currency="INR",
            notes={"plan_code": "1Y"},
        )

        assert order_id == "pi_123"
        mock_create.assert_called_once_with(
            amount=1152000,
            currency="inr",
            metadata={"plan_code": "1Y"},
        )

    @patch("classbook.billing.gateway.stripe.PaymentIntent.create")
    def test_stripe_failure_raises_gateway_error(self, mock_create):
        mock_create.side_effect = stripe.APIConnectionError("network down")

        with pytest.raises(GatewayError):
            PaymentGateway().create_order(amount=100, currency="INR")
