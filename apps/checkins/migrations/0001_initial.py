import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CheckIn",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("lead_id", models.CharField(db_index=True, max_length=64)),
                ("lead_name", models.CharField(blank=True, max_length=255)),
                ("model_name", models.CharField(max_length=255)),
                ("model_photo", models.TextField(blank=True, null=True)),
                ("responsible", models.CharField(blank=True, max_length=255, null=True)),
                ("checked_in_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("is_active", models.BooleanField(default=True)),
                ("bitrix_updated", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ["-checked_in_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="checkin",
            constraint=models.UniqueConstraint(
                condition=models.Q(("is_active", True)),
                fields=("lead_id", "model_name"),
                name="unique_active_checkin_per_model",
            ),
        ),
    ]
