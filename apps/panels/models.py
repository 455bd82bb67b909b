"""Domain models for the calling panels module."""

from uuid import uuid4

from django.db import models

from apps.common.models import ActivatableModel, TimeStampedModel


def _panel_id() -> str:
    return uuid4().hex


class CallStatus(models.TextChoices):
    CALLING = "calling", "Calling"
    ACKNOWLEDGED = "acknowledged", "Acknowledged"
    COMPLETED = "completed", "Completed"


class Panel(ActivatableModel):
    """Waiting-room display bound to a CRM stage."""

    id = models.CharField(primary_key=True, max_length=64, default=_panel_id)
    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True)
    description = models.TextField(blank=True)
    bitrix_stage_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return self.name


class Call(TimeStampedModel):
    """A model being called to a room on a panel."""

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    panel = models.ForeignKey(Panel, on_delete=models.SET_NULL, null=True, related_name="calls")
    lead_id = models.CharField(max_length=64, db_index=True)
    model_name = models.CharField(max_length=255)
    model_photo = models.TextField(null=True, blank=True)
    room = models.CharField(max_length=100, null=True, blank=True)
    responsible = models.CharField(max_length=255, null=True, blank=True)
    source = models.CharField(max_length=32, default="bitrix")
    custom_data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=16, choices=CallStatus.choices, default=CallStatus.CALLING)
    idempotency_key = models.CharField(max_length=64, null=True, blank=True, unique=True)
    called_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.model_name} -> {self.room or '-'}"
