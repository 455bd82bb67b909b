"""Check-in API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.views import APIView

from apps.checkins.resolver import EmptyModelNameError
from apps.checkins.serializers import (
    CheckInRequestSerializer,
    CheckInSerializer,
    ResolveRequestSerializer,
)
from apps.checkins.services import (
    DuplicateCheckInError,
    find_active_check_in,
    queue_crm_update,
    register_check_in,
    resolver_for,
)
from apps.common.api import error_response, ok_response


class CheckInView(APIView):
    """Register a check-in; an active check-in for the lead is reported as a conflict."""

    def post(self, request):
        serializer = CheckInRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        outcome = register_check_in(
            data["lead_id"],
            data["model_name"],
            lead_name=data["lead_name"],
            model_photo=data["model_photo"],
            responsible=data["responsible"],
        )
        if not outcome.created:
            resolver = resolver_for(outcome.check_in)
            return error_response(
                "CHECK_IN_EXISTS",
                status_code=status.HTTP_409_CONFLICT,
                data=resolver.summary(),
            )
        queue_crm_update(outcome.check_in)
        return ok_response(CheckInSerializer(outcome.check_in).data, status_code=status.HTTP_201_CREATED)


class CheckInResolveView(APIView):
    """Apply the operator's choice for a lead that is already checked in."""

    def post(self, request):
        serializer = ResolveRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        existing = find_active_check_in(data["lead_id"])
        if existing is None:
            return error_response("CHECK_IN_NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)

        resolver = resolver_for(existing)
        if data["action"] == "recheck":
            check_in = resolver.recheck_in()
            queue_crm_update(check_in)
            return ok_response(CheckInSerializer(check_in).data)

        resolver.choose_new_model()
        try:
            check_in = resolver.confirm_new_model(data["model_name"])
        except EmptyModelNameError:
            return error_response("MODEL_NAME_REQUIRED")
        except DuplicateCheckInError:
            return error_response("CHECK_IN_EXISTS", status_code=status.HTTP_409_CONFLICT)
        queue_crm_update(check_in)
        return ok_response(CheckInSerializer(check_in).data, status_code=status.HTTP_201_CREATED)
