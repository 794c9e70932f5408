"""
Billing exceptions.

Every error raised by the billing engine derives from ``BillingError`` and
carries a human readable ``detail``, a stable machine ``code`` and the HTTP
status the API layer should answer with. Views catch ``BillingError`` and
render ``{"detail": ..., "code": ...}``; anything else propagates.

Two errors describe idempotency collisions rather than failures
(``DuplicateIntentError`` and ``DuplicatePaymentError``). Calling workflows
treat them as success, which is why their status is 200.
"""

from http import HTTPStatus


class BillingError(Exception):
    """Base exception for billing-related errors."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, detail: str, code: str = "billing_error"):
        self.detail = detail
        self.code = code
        super().__init__(detail)


# Pricing ---------------------------------------------------------------------


class PricingValidationError(BillingError):
    """Raised when student counts are out of range."""

    def __init__(self, detail: str = "Invalid pricing input."):
        super().__init__(detail, code="invalid_input")


class InvalidPlanError(BillingError):
    """Raised for a plan code that is not in the catalog."""

    def __init__(self, plan_code: str = ""):
        self.plan_code = plan_code
        super().__init__(f"Invalid plan: {plan_code!r}.", code="invalid_plan")


class InvalidCouponError(BillingError):
    """Raised for a coupon code that is not in the catalog."""

    def __init__(self, coupon_code: str = ""):
        self.coupon_code = coupon_code
        super().__init__(
            f"Invalid coupon code: {coupon_code!r}.",
            code="invalid_coupon",
        )


class InvalidDiscountError(BillingError):
    """Raised when a coupon would discount more than the plan costs."""

    def __init__(self, detail: str = "Discount exceeds the plan price."):
        super().__init__(detail, code="invalid_discount")


# Idempotency -----------------------------------------------------------------


class DuplicateIntentError(BillingError):
    """Raised when a payment intent for the order already exists."""

    status_code = HTTPStatus.OK

    def __init__(self, order_id: str = ""):
        self.order_id = order_id
        super().__init__(
            "Payment intent already exists.",
            code="duplicate_intent",
        )


class DuplicatePaymentError(BillingError):
    """Raised when an order or payment already funded a subscription."""

    status_code = HTTPStatus.OK

    def __init__(self, detail: str = "Payment already used.", order_id: str = ""):
        self.order_id = order_id
        super().__init__(detail, code="duplicate_payment")


# Business rules --------------------------------------------------------------


class CapacityDecreaseRejectedError(BillingError):
    """Raised when a renewal would shrink capacity below committed usage."""

    status_code = HTTPStatus.CONFLICT

    def __init__(self, requested: int = 0, minimum: int = 0):
        self.requested = requested
        self.minimum = minimum
        super().__init__(
            f"Requested capacity of {requested} students is below the "
            f"required minimum of {minimum}. Enter a higher student count.",
            code="capacity_decrease_rejected",
        )


class NoSubscriptionHistoryError(BillingError):
    """Raised when an upgrade is attempted by a school that never subscribed."""

    status_code = HTTPStatus.CONFLICT

    def __init__(
        self,
        detail: str = (
            "No previous subscription to upgrade from. "
            "Complete registration first."
        ),
    ):
        super().__init__(detail, code="no_subscription_history")


class SchoolAlreadyRegisteredError(BillingError):
    """
    Raised when a registration payment arrives for a school that is
    already registered.

    The payment stays recorded as PAID, unused, for reconciliation.
    """

    status_code = HTTPStatus.CONFLICT

    def __init__(self, order_id: str = "", subscription_id: int | None = None):
        self.order_id = order_id
        self.subscription_id = subscription_id
        super().__init__(
            "This school is already registered. The payment was recorded "
            "and needs reconciling; renew through an upgrade instead.",
            code="already_registered",
        )


class NoActiveSubscriptionError(BillingError):
    """Raised when a school has no active or grace subscription."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, detail: str = "No active subscription found."):
        super().__init__(detail, code="no_active_subscription")


class StudentLimitError(BillingError):
    """Raised when enrolling a student would exceed the billable ceiling."""

    status_code = HTTPStatus.FORBIDDEN

    def __init__(
        self,
        detail: str = "Student limit reached. Upgrade required.",
        limit: int | None = None,
    ):
        self.limit = limit
        super().__init__(detail, code="student_limit_exceeded")


# Payments --------------------------------------------------------------------


class PaymentVerificationError(BillingError):
    """Raised when the gateway does not confirm a reported payment."""

    def __init__(self, detail: str = "Payment could not be verified."):
        super().__init__(detail, code="payment_not_verified")


class PaymentNotConfirmedError(BillingError):
    """Raised when activation is attempted with an intent that is not paid."""

    def __init__(self, order_id: str = ""):
        self.order_id = order_id
        super().__init__(
            "Invalid or unpaid payment.",
            code="payment_not_confirmed",
        )


class IntentNotFoundError(BillingError):
    """Raised when no payment intent matches an order id."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, order_id: str = ""):
        self.order_id = order_id
        super().__init__(
            f"Payment intent not found for order {order_id!r}.",
            code="intent_not_found",
        )


class SchoolNotFoundError(BillingError):
    """Raised when a registration payment cannot be matched to a school."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, detail: str = "School not found for this payment."):
        super().__init__(detail, code="school_not_found")


class GatewayError(BillingError):
    """Raised when the payment gateway call fails."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, detail: str = "Failed to create payment order."):
        super().__init__(detail, code="gateway_error")


# Invariants ------------------------------------------------------------------


class InvalidTransitionError(BillingError):
    """
    Raised on an illegal state transition.

    This never happens in correct operation. It aborts the surrounding
    transaction and should be treated as a bug.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "Invalid state transition."):
        super().__init__(detail, code="invalid_transition")
