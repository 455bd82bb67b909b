"""Symmetric encryption for CRM webhook URLs and tokens stored in the database."""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

_ENCRYPTION_PREFIX = "enc::"


def _derive_key(source: str) -> bytes:
    digest = hashlib.sha256(source.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _get_fernet() -> Fernet:
    secret = getattr(settings, "ENCRYPTION_KEY", "")
    if not secret:
        raise ImproperlyConfigured("ENCRYPTION_KEY is required to store webhook secrets")
    return Fernet(_derive_key(secret))


def is_encrypted_secret(value: Optional[str]) -> bool:
    return bool(value and value.startswith(_ENCRYPTION_PREFIX))


def encrypt_secret(value: str) -> str:
    if not value or is_encrypted_secret(value):
        return value
    token = _get_fernet().encrypt(value.encode("utf-8")).decode("utf-8")
    return f"{_ENCRYPTION_PREFIX}{token}"


def decrypt_secret(value: Optional[str]) -> str:
    """Return the plain text for ``value``; legacy unencrypted values pass through."""
    if not value:
        return ""
    if not is_encrypted_secret(value):
        return value
    token = value[len(_ENCRYPTION_PREFIX):]
    try:
        return _get_fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken as exc:
        raise ImproperlyConfigured("Failed to decrypt stored webhook secret") from exc
