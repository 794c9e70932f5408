"""
Tenant models.

A School is one subscribing tenant. Its ``subscription`` field is the
entitlement pointer: the subscription currently authoritative for capacity
checks. Only the billing engine writes it.

Students are kept to the minimum the billing engine needs: a status, so the
active roster can be counted.

Relationship: School ──1:N── Subscription (ledger)
              School ──0..1── Subscription (entitlement pointer)
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from model_utils.models import TimeStampedModel


class School(TimeStampedModel):
    """A subscribing school."""

    name = models.CharField(
        max_length=255,
        help_text=_("Name of the school, e.g. 'Springfield Elementary'"),
    )
    email = models.EmailField(
        unique=True,
        help_text=_("Registration email. Stored lower-cased."),
    )
    principal = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="schools",
        help_text=_("Admin user who manages billing for the school."),
    )
    # Entitlement pointer, see classbook.billing.activation
    subscription = models.ForeignKey(
        "billing.Subscription",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text=_("Subscription currently authoritative for capacity checks."),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)


class StudentStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    INACTIVE = "inactive", _("Inactive")


class Student(TimeStampedModel):
    """A student on a school's roster."""

    school = models.ForeignKey(
        School,
        on_delete=models.CASCADE,
        related_name="students",
    )
    name = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=StudentStatus.choices,
        default=StudentStatus.ACTIVE,
    )

    class Meta:
        indexes = [
            models.Index(fields=["school", "status"], name="student_school_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.school})"
