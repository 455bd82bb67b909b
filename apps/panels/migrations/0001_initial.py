import uuid

import django.db.models.deletion
from django.db import migrations, models

import apps.panels.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Panel",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "id",
                    models.CharField(
                        default=apps.panels.models._panel_id,
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(unique=True)),
                ("description", models.TextField(blank=True)),
                ("bitrix_stage_id", models.CharField(blank=True, db_index=True, max_length=100, null=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="Call",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("lead_id", models.CharField(db_index=True, max_length=64)),
                ("model_name", models.CharField(max_length=255)),
                ("model_photo", models.TextField(blank=True, null=True)),
                ("room", models.CharField(blank=True, max_length=100, null=True)),
                ("responsible", models.CharField(blank=True, max_length=255, null=True)),
                ("source", models.CharField(default="bitrix", max_length=32)),
                ("custom_data", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("calling", "Calling"),
                            ("acknowledged", "Acknowledged"),
                            ("completed", "Completed"),
                        ],
                        default="calling",
                        max_length=16,
                    ),
                ),
                ("idempotency_key", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("called_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "panel",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="calls",
                        to="panels.panel",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
