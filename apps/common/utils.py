"""Utility helpers shared across apps."""

from __future__ import annotations

import json
from typing import Any, Dict

from django.http import HttpRequest, JsonResponse


class PayloadError(ValueError):
    """Raised when an inbound webhook body cannot be used."""


def read_json_body(request: HttpRequest) -> Dict[str, Any]:
    """Decode a JSON object body; anything else is a :class:`PayloadError`."""
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PayloadError("invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise PayloadError("JSON body must be an object")
    return payload


def json_error(message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)
