"""
Tests for the billing admin.

Payment intents and subscriptions are an append-only ledger, so the admin
only ever shows them.
"""

from django.contrib.admin.sites import site
from django.test import RequestFactory
from django.test import TestCase
from django.urls import reverse

from classbook.billing.constants import SubscriptionStatus
from classbook.billing.models import PaymentIntent
from classbook.billing.models import Subscription
from classbook.billing.tests.factories import PaymentIntentFactory
from classbook.billing.tests.factories import SubscriptionFactory
from classbook.schools.tests.factories import UserFactory


class LedgerAdminTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.superuser = UserFactory(is_staff=True, is_superuser=True)
        cls.subscription = SubscriptionFactory(status=SubscriptionStatus.QUEUED)
        cls.intent = PaymentIntentFactory()

    def setUp(self):
        self.client.force_login(self.superuser)
        self.request = RequestFactory().get("/")
        self.request.user = self.superuser

    def test_superuser_cannot_add_change_or_delete(self):
        for model in (Subscription, PaymentIntent):
            model_admin = site._registry[model]  # noqa: SLF001
            with self.subTest(model=model.__name__):
                self.assertFalse(model_admin.has_add_permission(self.request))
                self.assertFalse(model_admin.has_change_permission(self.request))
                self.assertFalse(model_admin.has_delete_permission(self.request))
                self.assertTrue(model_admin.has_view_permission(self.request))

    def test_delete_view_leaves_subscription_in_place(self):
        url = reverse(
            "admin:billing_subscription_delete",
            args=[self.subscription.pk],
        )

        response = self.client.post(url, {"post": "yes"})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Subscription.objects.filter(pk=self.subscription.pk).exists())

    def test_change_form_does_not_update_status(self):
        url = reverse(
            "admin:billing_subscription_change",
            args=[self.subscription.pk],
        )

        response = self.client.post(url, {"status": SubscriptionStatus.ACTIVE})

        self.assertEqual(response.status_code, 403)
        self.subscription.refresh_from_db()
        self.assertEqual(self.subscription.status, SubscriptionStatus.QUEUED)

    def test_change_page_is_viewable(self):
        url = reverse(
            "admin:billing_subscription_change",
            args=[self.subscription.pk],
        )

        response = self.client.get(url)

        self.assertEqual(response.status_code, 200)

    def test_add_view_forbidden(self):
        response = self.client.get(reverse("admin:billing_paymentintent_add"))

        self.assertEqual(response.status_code, 403)
