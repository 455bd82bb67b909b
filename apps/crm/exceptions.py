"""Errors raised by the CRM sync client."""

from __future__ import annotations


class CRMError(RuntimeError):
    """Base class for CRM integration failures."""


class ConfigError(CRMError):
    """No active webhook configuration; fix it under the webhook settings."""


class NetworkError(CRMError):
    """The CRM could not be reached or answered with a failing HTTP status.

    Safe for the caller to retry.
    """


class RemoteError(CRMError):
    """The CRM answered but did not accept the request."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class InvalidResponse(RemoteError):
    """The CRM answered 2xx without the expected ``result`` field."""
