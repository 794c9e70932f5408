"""
Django admin configuration for billing models.

Provides admin interfaces for:
- PaymentIntent: Audit trail of gateway payments
- Subscription: Each school's subscription ledger

Both are read-only. Rows are written by the billing engine, never by hand,
and neither payments nor subscriptions are ever deleted.
"""

from django.contrib import admin

from classbook.billing.models import PaymentIntent
from classbook.billing.models import Subscription


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """View-only admin for ledger rows."""

    def has_add_permission(self, request):
        """Rows are created by the billing engine, not manually."""
        return False

    def has_change_permission(self, request, obj=None):
        """Status and pricing only change through the billing engine."""
        return False

    def has_delete_permission(self, request, obj=None):
        """The ledger is an audit trail."""
        return False


@admin.register(PaymentIntent)
class PaymentIntentAdmin(ReadOnlyLedgerAdmin):
    """Admin for payment intents."""

    list_display = [
        "order_id",
        "school",
        "school_email",
        "mode",
        "plan_code",
        "entered_students",
        "status",
        "created",
    ]
    list_filter = ["status", "mode", "plan_code"]
    search_fields = ["order_id", "payment_id", "school__name", "school_email"]
    raw_id_fields = ["school"]


@admin.register(Subscription)
class SubscriptionAdmin(ReadOnlyLedgerAdmin):
    """Admin for school subscriptions."""

    list_display = [
        "school",
        "plan_code",
        "status",
        "billable_students",
        "paid_amount",
        "start_date",
        "end_date",
    ]
    list_filter = ["status", "plan_code"]
    search_fields = ["school__name", "order_id", "payment_id"]
    raw_id_fields = ["school", "previous_subscription"]
    readonly_fields = ["created", "modified"]

    fieldsets = [
        (None, {"fields": ["school", "plan_code", "status", "previous_subscription"]}),
        ("Payment", {"fields": ["order_id", "payment_id"]}),
        (
            "Capacity",
            {"fields": ["entered_students", "future_students", "billable_students"]},
        ),
        (
            "Pricing",
            {
                "fields": [
                    "original_amount",
                    "discount_amount",
                    "paid_amount",
                    "coupon_code",
                ],
            },
        ),
        (
            "Period",
            {
                "fields": [
                    "start_date",
                    "end_date",
                    "grace_period_days",
                    "grace_end_date",
                ],
            },
        ),
        ("Timestamps", {"fields": ["created", "modified"]}),
    ]
