"""Domain models for the CRM integration module."""

from django.db import models

from apps.common.models import ActivatableModel, EncryptedSecretsMixin


class WebhookConfig(EncryptedSecretsMixin, ActivatableModel):
    """Inbound webhook base URL for the Bitrix24 REST API.

    The most recently created active row wins.
    """

    secret_fields = ("bitrix_webhook_url", "auth_token")

    bitrix_webhook_url = models.TextField()
    auth_token = models.TextField(blank=True)
    notify_on_call = models.BooleanField(default=True)
    notify_on_checkin = models.BooleanField(default=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"WebhookConfig #{self.pk} ({'active' if self.is_active else 'inactive'})"

    def get_webhook_url(self) -> str:
        return self.get_secret("bitrix_webhook_url").rstrip("/")


class FieldMapping(ActivatableModel):
    """Maps a kiosk field name (e.g. ``photo``) to a CRM field code."""

    field_name = models.CharField(max_length=100, unique=True)
    crm_field_code = models.CharField(max_length=100)
    field_type = models.CharField(max_length=32, default="string")

    class Meta:
        ordering = ["field_name"]

    def __str__(self) -> str:
        return f"{self.field_name} -> {self.crm_field_code}"
