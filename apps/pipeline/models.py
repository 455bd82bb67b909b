"""Domain models for the pipeline stages module."""

from django.db import models

from apps.common.models import TimeStampedModel
from apps.panels.models import Panel
from apps.pipeline.relay import RelayEvent


class Stage(TimeStampedModel):
    """CRM pipeline stage with its panel binding and relay settings."""

    id = models.CharField(primary_key=True, max_length=100)
    name = models.CharField(max_length=255)
    position = models.PositiveIntegerField(default=0)
    is_default = models.BooleanField(default=False)
    panel = models.ForeignKey(
        Panel, on_delete=models.SET_NULL, null=True, blank=True, related_name="stages"
    )
    webhook_url = models.URLField(max_length=500, null=True, blank=True)
    webhook_on_enter = models.BooleanField(default=False)
    webhook_on_exit = models.BooleanField(default=False)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self) -> str:
        return self.name

    def relays(self, event_type: str) -> bool:
        if not self.webhook_url:
            return False
        if event_type == RelayEvent.ENTER:
            return self.webhook_on_enter
        if event_type == RelayEvent.EXIT:
            return self.webhook_on_exit
        return False


class StageTransition(TimeStampedModel):
    """Append-only log of a lead moving between stages."""

    lead_id = models.CharField(max_length=64, db_index=True)
    from_stage = models.ForeignKey(
        Stage, on_delete=models.SET_NULL, null=True, blank=True, related_name="exits"
    )
    to_stage = models.ForeignKey(
        Stage, on_delete=models.SET_NULL, null=True, blank=True, related_name="entries"
    )
    by_user = models.CharField(max_length=255, blank=True)
    method = models.CharField(max_length=32, default="manual")
    room = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
