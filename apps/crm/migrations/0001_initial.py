from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="WebhookConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_active", models.BooleanField(default=True)),
                ("bitrix_webhook_url", models.TextField()),
                ("auth_token", models.TextField(blank=True)),
                ("notify_on_call", models.BooleanField(default=True)),
                ("notify_on_checkin", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="FieldMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_active", models.BooleanField(default=True)),
                ("field_name", models.CharField(max_length=100, unique=True)),
                ("crm_field_code", models.CharField(max_length=100)),
                ("field_type", models.CharField(default="string", max_length=32)),
            ],
            options={
                "ordering": ["field_name"],
            },
        ),
    ]
