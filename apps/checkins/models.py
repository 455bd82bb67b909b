"""Domain models for the check-ins module."""

from uuid import uuid4

from django.db import models
from django.db.models import Q
from django.utils import timezone


class CheckIn(models.Model):
    """Attendance of a lead, scoped to one model."""

    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    lead_id = models.CharField(max_length=64, db_index=True)
    lead_name = models.CharField(max_length=255, blank=True)
    model_name = models.CharField(max_length=255)
    model_photo = models.TextField(null=True, blank=True)
    responsible = models.CharField(max_length=255, null=True, blank=True)
    checked_in_at = models.DateTimeField(default=timezone.now)
    is_active = models.BooleanField(default=True)
    bitrix_updated = models.BooleanField(default=False)

    class Meta:
        ordering = ["-checked_in_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["lead_id", "model_name"],
                condition=Q(is_active=True),
                name="unique_active_checkin_per_model",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.lead_id}:{self.model_name}"
