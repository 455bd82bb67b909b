"""Pipeline API views."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.common.api import error_response, ok_response
from apps.crm.exceptions import ConfigError, NetworkError, RemoteError
from apps.panels.serializers import CallSerializer
from apps.pipeline.serializers import FinalSyncSerializer, StageTransitionSerializer
from apps.pipeline.services import perform_final_sync, transition_lead

logger = logging.getLogger(__name__)


class StageTransitionView(APIView):
    """Move a lead between stages (kanban drag)."""

    def post(self, request):
        serializer = StageTransitionSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("INVALID_TRANSITION")
        data = serializer.validated_data
        result = transition_lead(
            data["lead_id"],
            data["to_stage"],
            from_stage=data.get("from_stage"),
            model_name=data["model_name"],
            model_photo=data["model_photo"],
            responsible=data["responsible"],
            room=data["room"],
            custom_data=data["custom_data"],
            by_user=data["by_user"],
            method="api",
        )
        return ok_response(
            {
                "transition_id": result.transition.id,
                "relays_queued": result.queued_relays,
                "call": CallSerializer(result.call).data if result.call else None,
            },
            status_code=status.HTTP_201_CREATED,
        )


class FinalSyncView(APIView):
    """Push the lead's stage timings back to the CRM."""

    def post(self, request, lead_id: str):
        serializer = FinalSyncSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)
        try:
            fields = perform_final_sync(lead_id, **serializer.validated_data)
        except ConfigError as exc:
            return error_response(str(exc), status_code=status.HTTP_409_CONFLICT)
        except NetworkError as exc:
            return error_response(str(exc), status_code=status.HTTP_502_BAD_GATEWAY)
        except RemoteError as exc:
            logger.error("crm.final_sync_rejected", extra={"lead_id": lead_id, "body": exc.body})
            return error_response(str(exc), status_code=status.HTTP_502_BAD_GATEWAY)
        return ok_response({"lead_id": lead_id, "fields": fields})
