from django.apps import AppConfig


class BillingConfig(AppConfig):
    """
    Django app configuration for the billing app.

    Handles plan pricing, payment intents, the subscription ledger and
    subscription lifecycle transitions.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "classbook.billing"
