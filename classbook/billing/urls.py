from django.urls import path

from classbook.billing.api import views

urlpatterns = [
    path("billing/plans/", views.PlanListView.as_view(), name="billing-plans"),
    path(
        "billing/price-preview/",
        views.PricePreviewView.as_view(),
        name="billing-price-preview",
    ),
    path("billing/checkout/", views.CheckoutView.as_view(), name="billing-checkout"),
    path(
        "billing/intents/",
        views.PaymentIntentCreateView.as_view(),
        name="billing-intents",
    ),
    path(
        "billing/confirm/",
        views.ConfirmPaymentView.as_view(),
        name="billing-confirm",
    ),
    path(
        "schools/<int:school_id>/entitlement/",
        views.EntitlementView.as_view(),
        name="school-entitlement",
    ),
    path(
        "schools/<int:school_id>/invoices/",
        views.InvoiceHistoryView.as_view(),
        name="school-invoices",
    ),
    path(
        "schools/<int:school_id>/billable-students/",
        views.BillableStudentsView.as_view(),
        name="school-billable-students",
    ),
]
