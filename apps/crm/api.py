"""CRM lead API views used by the check-in kiosk."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.views import APIView

from apps.common.api import error_response, ok_response
from apps.crm.client import BitrixClient, active_webhook_url
from apps.crm.exceptions import ConfigError, InvalidResponse, NetworkError, RemoteError
from apps.crm.serializers import LeadCreateSerializer
from apps.leads.services import collect_custom_field_values

logger = logging.getLogger(__name__)


def _crm_error(exc: Exception):
    if isinstance(exc, ConfigError):
        return error_response(str(exc), status_code=status.HTTP_409_CONFLICT)
    return error_response(str(exc), status_code=status.HTTP_502_BAD_GATEWAY)


class LeadCreateView(APIView):
    """Create a lead in the CRM from a kiosk registration."""

    def post(self, request):
        serializer = LeadCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            lead_id = BitrixClient().create_lead(
                active_webhook_url(),
                data["name"],
                data["phone"],
                assigned_by_id=data["assigned_by_id"],
                custom_fields=collect_custom_field_values(data["custom_values"]),
                additional_phones=data["additional_phones"],
            )
        except (ConfigError, NetworkError, InvalidResponse) as exc:
            return _crm_error(exc)
        return ok_response({"lead_id": lead_id}, status_code=status.HTTP_201_CREATED)


class LeadUpdateView(APIView):
    """Update name, responsible, photo or raw CRM fields of a lead."""

    def post(self, request, lead_id: str):
        lead_data = dict(request.data or {})
        lead_data["lead_id"] = lead_id
        try:
            result = BitrixClient().update_lead(lead_data)
        except (ConfigError, NetworkError, RemoteError) as exc:
            return _crm_error(exc)
        return ok_response(result)


class LeadSearchView(APIView):
    """Find existing leads by phone before checking someone in."""

    def get(self, request):
        phone = request.query_params.get("phone", "")
        if not phone.strip():
            return error_response("PHONE_REQUIRED")
        try:
            leads = BitrixClient().find_leads_by_phone(active_webhook_url(), phone)
        except (ConfigError, NetworkError, RemoteError) as exc:
            return _crm_error(exc)
        return ok_response(leads)


class LeadDetailView(APIView):
    def get(self, request, lead_id: str):
        try:
            lead = BitrixClient().get_lead(active_webhook_url(), lead_id)
        except InvalidResponse:
            return error_response("LEAD_NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)
        except (ConfigError, NetworkError, RemoteError) as exc:
            return _crm_error(exc)
        return ok_response(lead)
