"""Domain models for the leads module."""

from django.db import models

from apps.common.models import ActivatableModel


class CustomFieldType(models.TextChoices):
    TEXT = "text", "Text"
    NUMBER = "number", "Number"
    DATE = "date", "Date"
    IMAGE = "image", "Image"
    BOOLEAN = "boolean", "Boolean"
    LIST = "list", "List"


class CustomField(ActivatableModel):
    """Dynamic kiosk form field, optionally mirrored into a CRM lead field."""

    field_key = models.SlugField(max_length=100, unique=True)
    field_label = models.CharField(max_length=255)
    field_type = models.CharField(
        max_length=16, choices=CustomFieldType.choices, default=CustomFieldType.TEXT
    )
    field_options = models.JSONField(default=list, blank=True)
    bitrix_field_name = models.CharField(max_length=100, blank=True)
    show_in_checkin = models.BooleanField(default=True)
    show_in_panels = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "field_key"]

    def __str__(self) -> str:
        return self.field_label
