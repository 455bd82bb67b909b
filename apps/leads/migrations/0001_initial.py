from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CustomField",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("is_active", models.BooleanField(default=True)),
                ("field_key", models.SlugField(max_length=100, unique=True)),
                ("field_label", models.CharField(max_length=255)),
                (
                    "field_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("number", "Number"),
                            ("date", "Date"),
                            ("image", "Image"),
                            ("boolean", "Boolean"),
                            ("list", "List"),
                        ],
                        default="text",
                        max_length=16,
                    ),
                ),
                ("field_options", models.JSONField(blank=True, default=list)),
                ("bitrix_field_name", models.CharField(blank=True, max_length=100)),
                ("show_in_checkin", models.BooleanField(default=True)),
                ("show_in_panels", models.BooleanField(default=False)),
                ("sort_order", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ["sort_order", "field_key"],
            },
        ),
    ]
