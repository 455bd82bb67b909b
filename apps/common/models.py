from django.db import models

from apps.common.security import decrypt_secret, encrypt_secret, is_encrypted_secret


class TimeStampedModel(models.Model):
    """Abstract base model with created/updated tracking."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ActivatableModel(TimeStampedModel):
    """Configuration rows that can be switched off without deleting them."""

    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True


class EncryptedSecretsMixin(models.Model):
    """Encrypt the fields listed in ``secret_fields`` before they are written."""

    secret_fields: tuple[str, ...] = ()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        for field in self.secret_fields:
            value = getattr(self, field)
            if value and not is_encrypted_secret(value):
                setattr(self, field, encrypt_secret(value))
        super().save(*args, **kwargs)

    def get_secret(self, field: str) -> str:
        return decrypt_secret(getattr(self, field))
