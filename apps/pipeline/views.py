"""Inbound relay-trigger webhook."""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.common.utils import PayloadError, json_error, read_json_body
from apps.pipeline.relay import dispatch_stage_webhook

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
def stage_relay_webhook(request: HttpRequest) -> JsonResponse:
    try:
        payload = read_json_body(request)
        card_data = payload.get("card_data") or {}
        if not isinstance(card_data, dict):
            raise PayloadError("card_data must be an object")
        result = dispatch_stage_webhook(
            payload.get("webhook_url"),
            payload.get("lead_id"),
            payload.get("stage_name"),
            payload.get("event_type"),
            card_data,
        )
    except Exception as exc:  # boundary
        logger.error("relay.failed", extra={"error": str(exc)})
        return json_error(str(exc) or "Unknown error", status=500)
    return JsonResponse(result.as_dict())
