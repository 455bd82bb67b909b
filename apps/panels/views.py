"""Inbound stage-event webhook that feeds the calling panels."""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.common.utils import PayloadError, json_error, read_json_body
from apps.panels.serializers import CallSerializer
from apps.panels.services import StageEvent, ingest_stage_event

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
def stage_event_webhook(request: HttpRequest) -> JsonResponse:
    try:
        payload = read_json_body(request)
        event = StageEvent.from_payload(payload)
    except (PayloadError, ValueError) as exc:
        return json_error(str(exc), status=400)

    logger.info("stage_event.received", extra={"lead_id": event.lead_id, "stage_id": event.stage_id})
    try:
        result = ingest_stage_event(event)
    except Exception as exc:  # boundary
        logger.exception("stage_event.failed", extra={"lead_id": event.lead_id, "stage_id": event.stage_id})
        return json_error(str(exc) or "Unknown error", status=500)

    if not result.found:
        return json_error("Panel not found for this stage", status=404)
    return JsonResponse({"success": True, "call": CallSerializer(result.call).data})
