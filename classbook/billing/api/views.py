"""
Billing API endpoints.

Public endpoints (catalog, price preview, checkout, payment confirmation)
are open to anonymous clients: a new school pays before it has an account.
School-scoped endpoints (entitlement, invoices, billable students) are for
the school's principal.

Every view renders ``BillingError`` as ``{"detail": ..., "code": ...}``
with the error's status code. Other exceptions go to DRF's handler.
"""

import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from classbook.billing import ledger
from classbook.billing import payment_intents
from classbook.billing.activation import ActivationService
from classbook.billing.api.school_scoped import SchoolPrincipalPermission
from classbook.billing.api.school_scoped import SchoolScopedMixin
from classbook.billing.api.school_scoped import can_manage_school
from classbook.billing.api.serializers import CheckoutRequestSerializer
from classbook.billing.api.serializers import ConfirmPaymentSerializer
from classbook.billing.api.serializers import CreateIntentRequestSerializer
from classbook.billing.api.serializers import PaymentIntentSerializer
from classbook.billing.api.serializers import PriceRequestSerializer
from classbook.billing.api.serializers import SubscriptionSerializer
from classbook.billing.catalog import list_plans
from classbook.billing.enforcement import StudentCapacityEnforcer
from classbook.billing.enforcement import require_active_subscription
from classbook.billing.exceptions import BillingError
from classbook.billing.exceptions import DuplicateIntentError
from classbook.billing.gateway import PaymentGateway
from classbook.billing.pricing import calculate_price
from classbook.schools.models import School

logger = logging.getLogger(__name__)


class BillingAPIView(APIView):
    """Base view that turns billing errors into API responses."""

    def handle_exception(self, exc):
        if isinstance(exc, BillingError):
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
                logger.error("Billing error in %s: %s", type(self).__name__, exc.detail)
            return Response(
                {"detail": exc.detail, "code": exc.code},
                status=exc.status_code,
            )
        return super().handle_exception(exc)


def _resolve_school(request, data) -> School | None:
    """
    The school a checkout or intent is for.

    Naming a school by id is only allowed for someone who manages it.
    """
    school_id = data.get("school_id")
    if not school_id:
        return None
    school = get_object_or_404(School, pk=school_id)
    if not can_manage_school(request.user, school):
        raise PermissionDenied("You must be the principal of this school.")
    return school


# =============================================================================
# Public endpoints
# =============================================================================


class PlanListView(BillingAPIView):
    """List the plan catalog."""

    permission_classes = [AllowAny]

    @extend_schema(summary="List plans", tags=["Billing"])
    def get(self, request):
        return Response([plan.as_dict() for plan in list_plans()])


class PricePreviewView(BillingAPIView):
    """Price a plan without creating anything."""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Preview a price",
        request=PriceRequestSerializer,
        tags=["Billing"],
    )
    def post(self, request):
        serializer = PriceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        price = calculate_price(
            data["plan_code"],
            data["entered_students"],
            data["future_students"],
            data["coupon_code"],
        )
        return Response(price.as_dict())


class CheckoutView(BillingAPIView):
    """
    Open a gateway order for a plan and record the payment intent.

    The client completes payment with the returned order id and then calls
    the confirm endpoint with the id of the charge that paid it.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Start checkout",
        request=CheckoutRequestSerializer,
        tags=["Billing"],
    )
    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        school = _resolve_school(request, data)

        result = payment_intents.start_checkout(
            PaymentGateway(),
            mode=data["mode"],
            plan_code=data["plan_code"],
            entered_students=data["entered_students"],
            future_students=data["future_students"],
            coupon_code=data["coupon_code"],
            school=school,
            school_email=data.get("school_email") or (school.email if school else ""),
        )
        return Response(
            {
                "order_id": result.order_id,
                "amount": result.price.paid_amount,
                "currency": result.currency,
                "price": result.price.as_dict(),
            },
            status=status.HTTP_201_CREATED,
        )


class PaymentIntentCreateView(BillingAPIView):
    """
    Record a payment intent for an order created outside checkout.

    Returns 201 for a new intent and 200 when the order is already known.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Record a payment intent",
        request=CreateIntentRequestSerializer,
        tags=["Billing"],
    )
    def post(self, request):
        serializer = CreateIntentRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        school = _resolve_school(request, data)

        try:
            intent = payment_intents.create_intent(
                order_id=data["order_id"],
                mode=data["mode"],
                plan_code=data["plan_code"],
                entered_students=data["entered_students"],
                future_students=data["future_students"],
                coupon_code=data["coupon_code"],
                school=school,
                school_email=data.get("school_email") or (school.email if school else ""),
            )
        except DuplicateIntentError as e:
            return Response(
                {"detail": e.detail, "code": e.code, "order_id": e.order_id},
                status=e.status_code,
            )
        return Response(
            PaymentIntentSerializer(intent).data,
            status=status.HTTP_201_CREATED,
        )


class ConfirmPaymentView(BillingAPIView):
    """
    Confirm a gateway payment and activate the subscription it pays for.

    Safe to call more than once for the same payment.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Confirm a payment",
        request=ConfirmPaymentSerializer,
        tags=["Billing"],
    )
    def post(self, request):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = ActivationService(gateway=PaymentGateway())
        result = service.confirm_payment(data["order_id"], data["payment_id"])
        return Response(
            {
                "message": result.message,
                "created": result.created,
                "queued": result.queued,
                "subscription": SubscriptionSerializer(result.subscription).data,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )


# =============================================================================
# School-scoped endpoints
# =============================================================================


class SchoolBillingView(SchoolScopedMixin, BillingAPIView):
    permission_classes = [IsAuthenticated, SchoolPrincipalPermission]


class EntitlementView(SchoolBillingView):
    """The school's current subscription, after applying overdue transitions."""

    @extend_schema(summary="Current entitlement", tags=["Billing"])
    def get(self, request, school_id):
        subscription = require_active_subscription(self.school)
        usage = StudentCapacityEnforcer().get_student_usage(self.school)
        return Response(
            {
                "subscription": SubscriptionSerializer(subscription).data,
                "students": usage,
            },
        )


class InvoiceHistoryView(SchoolBillingView):
    """Every subscription the school has paid for, oldest first."""

    @extend_schema(summary="Invoice history", tags=["Billing"])
    def get(self, request, school_id):
        subscriptions = ledger.history(self.school)
        return Response(SubscriptionSerializer(subscriptions, many=True).data)


class BillableStudentsView(SchoolBillingView):
    """The school's billable-student ceiling."""

    @extend_schema(summary="Billable student ceiling", tags=["Billing"])
    def get(self, request, school_id):
        subscription = require_active_subscription(self.school)
        return Response(
            {
                "billable_students": subscription.billable_students,
                "status": subscription.status,
            },
        )
