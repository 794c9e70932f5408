from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    dependencies = [
        ("billing", "0001_initial"),
        ("schools", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="school",
            name="subscription",
            field=models.ForeignKey(blank=True, help_text="Subscription currently authoritative for capacity checks.", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="billing.subscription"),
        ),
    ]
