from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("schools", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentIntent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("order_id", models.CharField(help_text="Gateway order id. Primary correlation key.", max_length=255, unique=True)),
                ("payment_id", models.CharField(blank=True, default="", help_text="Gateway payment id, set once the payment is confirmed.", max_length=255)),
                ("school_email", models.EmailField(blank=True, help_text="Registration email of the school a register intent pays for.", max_length=254)),
                ("mode", models.CharField(choices=[("register", "Register"), ("upgrade", "Upgrade")], default="register", max_length=20)),
                ("plan_code", models.CharField(choices=[("6M", "6 months"), ("1Y", "1 year"), ("2Y", "2 years"), ("3Y", "3 years")], max_length=4)),
                ("entered_students", models.PositiveIntegerField()),
                ("future_students", models.PositiveIntegerField(default=0)),
                ("coupon_code", models.CharField(blank=True, choices=[("FREE_3M", "3 months free"), ("FREE_6M", "6 months free")], default="", max_length=20)),
                ("status", models.CharField(choices=[("created", "Created"), ("paid", "Paid"), ("used", "Used")], default="created", max_length=20)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("school", models.ForeignKey(blank=True, help_text="Paying school. Empty for first-time registration.", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payment_intents", to="schools.school")),
            ],
            options={
                "indexes": [models.Index(fields=["school", "status"], name="payint_school_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("plan_code", models.CharField(choices=[("6M", "6 months"), ("1Y", "1 year"), ("2Y", "2 years"), ("3Y", "3 years")], max_length=4)),
                ("order_id", models.CharField(max_length=255, unique=True)),
                ("payment_id", models.CharField(max_length=255, unique=True)),
                ("entered_students", models.PositiveIntegerField()),
                ("future_students", models.PositiveIntegerField(default=0)),
                ("billable_students", models.PositiveIntegerField(help_text="Capacity ceiling: entered plus future students.")),
                ("original_amount", models.PositiveIntegerField()),
                ("discount_amount", models.PositiveIntegerField(default=0)),
                ("paid_amount", models.PositiveIntegerField()),
                ("coupon_code", models.CharField(blank=True, choices=[("FREE_3M", "3 months free"), ("FREE_6M", "6 months free")], default="", max_length=20)),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("grace_period_days", models.PositiveSmallIntegerField(default=7)),
                ("grace_end_date", models.DateTimeField()),
                ("status", models.CharField(choices=[("active", "Active"), ("grace", "Grace period"), ("queued", "Queued"), ("expired", "Expired")], default="active", max_length=20)),
                ("previous_subscription", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="renewals", to="billing.subscription")),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="subscriptions", to="schools.school")),
            ],
            options={
                "ordering": ["start_date", "created"],
                "indexes": [
                    models.Index(fields=["school", "status"], name="sub_school_status_idx"),
                    models.Index(fields=["school", "end_date"], name="sub_school_end_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status__in", ("active", "grace"))), fields=("school",), name="uq_subscription_one_current_per_school"),
                ],
            },
        ),
    ]
