from rest_framework import serializers

from classbook.billing.constants import MAX_STUDENTS_PER_ORDER
from classbook.billing.constants import IntentMode
from classbook.billing.constants import PlanCode
from classbook.billing.models import PaymentIntent
from classbook.billing.models import Subscription


class PriceRequestSerializer(serializers.Serializer):
    """
    Pricing inputs shared by preview, checkout and intent creation.

    Plan and coupon codes are passed through as strings so the pricing
    calculator reports unknown codes with its own error codes.
    """

    plan_code = serializers.CharField(max_length=8)
    entered_students = serializers.IntegerField(max_value=MAX_STUDENTS_PER_ORDER)
    future_students = serializers.IntegerField(
        required=False,
        default=0,
        max_value=MAX_STUDENTS_PER_ORDER,
    )
    coupon_code = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        default=None,
    )

    def validate_coupon_code(self, value):
        return value or None


class CheckoutRequestSerializer(PriceRequestSerializer):
    """
    Start a payment.

    Registrations identify the school by ``school_email`` (the school may be
    created while the payment is in flight). Upgrades name the school.
    """

    mode = serializers.ChoiceField(
        choices=IntentMode.choices,
        default=IntentMode.REGISTER,
    )
    school_id = serializers.IntegerField(required=False, allow_null=True)
    school_email = serializers.EmailField(required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs["mode"] == IntentMode.UPGRADE and not attrs.get("school_id"):
            raise serializers.ValidationError(
                {"school_id": "An upgrade payment requires a school."},
            )
        if attrs["mode"] == IntentMode.REGISTER and not (
            attrs.get("school_id") or attrs.get("school_email")
        ):
            raise serializers.ValidationError(
                {"school_email": "A registration payment requires a school email."},
            )
        return attrs


class CreateIntentRequestSerializer(CheckoutRequestSerializer):
    order_id = serializers.CharField(max_length=255)


class ConfirmPaymentSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=255)
    payment_id = serializers.CharField(max_length=255)


class PaymentIntentSerializer(serializers.ModelSerializer[PaymentIntent]):
    class Meta:
        model = PaymentIntent
        fields = [
            "order_id",
            "mode",
            "plan_code",
            "entered_students",
            "future_students",
            "coupon_code",
            "status",
            "created",
        ]
        read_only_fields = fields


class SubscriptionSerializer(serializers.ModelSerializer[Subscription]):
    """A ledger row, as shown on entitlement reads and invoice history."""

    plan_name = serializers.SerializerMethodField()

    class Meta:
        model = Subscription
        fields = [
            "id",
            "plan_code",
            "plan_name",
            "order_id",
            "payment_id",
            "entered_students",
            "future_students",
            "billable_students",
            "original_amount",
            "discount_amount",
            "paid_amount",
            "coupon_code",
            "start_date",
            "end_date",
            "grace_period_days",
            "grace_end_date",
            "status",
            "previous_subscription",
            "created",
        ]
        read_only_fields = fields

    def get_plan_name(self, obj) -> str:
        try:
            return str(PlanCode(obj.plan_code).label)
        except ValueError:
            return obj.plan_code
