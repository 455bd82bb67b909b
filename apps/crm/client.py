"""Bitrix24 REST client used to create and update leads."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests
from django.conf import settings
from django.utils import timezone

from apps.crm.exceptions import ConfigError, InvalidResponse, NetworkError, RemoteError
from apps.crm.models import FieldMapping, WebhookConfig
from apps.leads.utils import FieldOverrides, build_lead_fields, normalize_phone_number

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_FIELD = "UF_CRM_1745431662"
STANDARD_UPDATE_KEYS = {"lead_id", "name", "responsible", "photo"}
LEAD_SEARCH_LIMIT = 10


@dataclass(frozen=True)
class StageTimestamp:
    stage_name: str
    entered_at: str
    duration_seconds: Optional[int] = None


@dataclass
class FinalSyncData:
    """End-of-flow summary pushed back to the CRM once a lead leaves the kiosk."""

    lead_id: str
    stage_timestamps: List[StageTimestamp] = field(default_factory=list)
    status_id: Optional[str] = None
    room_log: Dict[str, str] = field(default_factory=dict)
    total_duration_seconds: Optional[int] = None
    notes: Optional[str] = None


def stage_field_token(stage_name: str) -> str:
    """``"Check-in realizado"`` -> ``"CHECK_IN_REALIZADO"``."""
    token = re.sub(r"[^A-Z0-9]", "_", stage_name.upper())
    return re.sub(r"_+", "_", token).strip("_")


def active_webhook_config() -> WebhookConfig:
    config = WebhookConfig.objects.filter(is_active=True).order_by("-created_at", "-id").first()
    if config is None or not config.bitrix_webhook_url:
        raise ConfigError("Webhook URL not configured. Configure it under Admin > Webhooks.")
    return config


def active_webhook_url() -> str:
    return active_webhook_config().get_webhook_url()


def photo_field_code() -> str:
    mapping = FieldMapping.objects.filter(field_name="photo", is_active=True).first()
    if mapping and mapping.crm_field_code:
        return mapping.crm_field_code
    return getattr(settings, "CRM_DEFAULT_PHOTO_FIELD", DEFAULT_PHOTO_FIELD)


class BitrixClient:
    """Single-attempt wrapper around the Bitrix24 inbound webhook API.

    Every method performs exactly one HTTP request; retrying is up to the
    caller (see ``apps.workers.tasks``).
    """

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout or getattr(settings, "CRM_HTTP_TIMEOUT_SECONDS", 15)

    def create_lead(
        self,
        webhook_url: str,
        name: str | None,
        phone: str | None = None,
        assigned_by_id: str | int | None = None,
        custom_fields: FieldOverrides | None = None,
        additional_phones: Iterable[str] = (),
    ) -> Any:
        """Create a lead and return the CRM-assigned id."""
        fields = build_lead_fields(
            name,
            phone,
            assigned_by_id=assigned_by_id,
            custom_fields=custom_fields,
            additional_phones=additional_phones,
        )
        url = f"{webhook_url.rstrip('/')}/crm.lead.add.json"
        # crm.lead.add takes the field map as one JSON-encoded form parameter.
        response = self._post(url, data={"fields": json.dumps(fields)})
        if not _is_success(response.status_code):
            logger.error(
                "crm.create_failed",
                extra={"status": response.status_code, "body": response.text},
            )
            raise NetworkError(f"Failed to create lead in Bitrix ({response.status_code}): {response.text}")

        data = _decode(response)
        if not data.get("result"):
            logger.error("crm.create_invalid_response", extra={"body": response.text})
            raise InvalidResponse(
                f"Bitrix API error: {json.dumps(data)}",
                status=response.status_code,
                body=response.text,
            )
        logger.info("crm.lead_created", extra={"lead_id": data["result"]})
        return data["result"]

    def update_lead(self, lead_data: Mapping[str, Any]) -> Dict[str, Any]:
        """Update a lead through the active webhook configuration."""
        lead_id = lead_data.get("lead_id")
        if not lead_id:
            raise ValueError("lead_id is required for update")

        webhook_url = active_webhook_url()
        fields = self._update_fields(lead_data)
        logger.info("crm.update_lead", extra={"lead_id": lead_id, "fields": sorted(fields)})
        self._send_update(webhook_url, lead_id, fields)
        return {"success": True, "lead_id": lead_id}

    def sync_final_state(self, webhook_url: str, sync_data: FinalSyncData) -> Dict[str, Any]:
        """Write per-stage timings and the final status onto the lead."""
        if not webhook_url:
            raise ConfigError("Webhook URL not configured.")

        fields: Dict[str, Any] = {}
        if sync_data.status_id:
            fields["STATUS_ID"] = sync_data.status_id

        durations: Dict[str, int] = {}
        for stage in sync_data.stage_timestamps:
            token = stage_field_token(stage.stage_name)
            fields[f"UF_CRM_{token}_AT"] = stage.entered_at
            if stage.duration_seconds is not None:
                fields[f"UF_CRM_{token}_DURATION"] = stage.duration_seconds
                durations[stage.stage_name] = stage.duration_seconds

        if sync_data.total_duration_seconds:
            fields["UF_CRM_TOTAL_DURATION"] = sync_data.total_duration_seconds
        if sync_data.room_log:
            fields["UF_CRM_ROOM_LOG"] = json.dumps(sync_data.room_log)
        if durations:
            fields["UF_CRM_STAGE_DURATIONS"] = json.dumps(durations)
        if sync_data.notes:
            fields["UF_CRM_CHECKIN_NOTES"] = sync_data.notes
        fields["UF_CRM_FLOW_COMPLETED_AT"] = timezone.now().isoformat()

        self._send_update(webhook_url, sync_data.lead_id, fields)
        logger.info("crm.final_sync_done", extra={"lead_id": sync_data.lead_id})
        return fields

    def get_lead(self, webhook_url: str, lead_id: Any) -> Dict[str, Any]:
        """Fetch one lead with all of its fields."""
        url = f"{webhook_url.rstrip('/')}/crm.lead.get.json"
        response = self._post(url, json={"id": lead_id})
        if not _is_success(response.status_code):
            logger.warning(
                "crm.get_failed",
                extra={"lead_id": lead_id, "status": response.status_code, "body": response.text},
            )
            raise RemoteError(
                f"Bitrix API error ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )
        data = _decode(response)
        if not isinstance(data.get("result"), dict):
            raise InvalidResponse(
                f"Lead {lead_id} not returned: {json.dumps(data)}",
                status=response.status_code,
                body=response.text,
            )
        return data["result"]

    def find_leads_by_phone(
        self,
        webhook_url: str,
        phone: str | None,
        limit: int = LEAD_SEARCH_LIMIT,
    ) -> List[Dict[str, Any]]:
        """Look leads up by phone, duplicate search first and list filter second.

        Returns full lead records where they can be fetched; list rows stand in
        for leads whose detail request fails.
        """
        normalized = normalize_phone_number(phone)
        if not normalized:
            return []
        base = webhook_url.rstrip("/")

        lead_ids = self._duplicate_lead_ids(base, normalized)[:limit]
        if lead_ids:
            leads = []
            for lead_id in lead_ids:
                try:
                    leads.append(self.get_lead(base, lead_id))
                except RemoteError:
                    continue
            if leads:
                logger.info("crm.leads_found", extra={"source": "duplicate", "count": len(leads)})
                return leads

        response = self._post(
            f"{base}/crm.lead.list.json",
            json={"filter": {"PHONE": normalized}, "select": ["ID", "TITLE", "NAME"]},
        )
        if not _is_success(response.status_code):
            raise RemoteError(
                f"Bitrix API error ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )
        rows = _decode(response).get("result")
        if not isinstance(rows, list):
            return []

        leads = []
        for row in rows[:limit]:
            lead_id = row.get("ID") if isinstance(row, dict) else row
            try:
                leads.append(self.get_lead(base, lead_id))
            except RemoteError:
                leads.append(row if isinstance(row, dict) else {"ID": lead_id})
        logger.info("crm.leads_found", extra={"source": "list", "count": len(leads)})
        return leads

    def _duplicate_lead_ids(self, base: str, phone: str) -> List[Any]:
        response = self._post(
            f"{base}/crm.duplicate.findbycomm.json",
            json={"entity_type": "LEAD", "type": "PHONE", "values": [phone]},
        )
        if not _is_success(response.status_code):
            logger.info("crm.duplicate_search_unavailable", extra={"status": response.status_code})
            return []
        try:
            result = _decode(response).get("result")
        except InvalidResponse:
            return []
        # Either {"LEAD": [ids]} or a bare list of ids.
        if isinstance(result, dict):
            result = result.get("LEAD")
        return list(result) if isinstance(result, list) else []

    def _update_fields(self, lead_data: Mapping[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if "name" in lead_data:
            # NAME shows in list views, TITLE in the detail view.
            fields["NAME"] = lead_data["name"]
            fields["TITLE"] = lead_data["name"]
        if "responsible" in lead_data:
            fields["ASSIGNED_BY_ID"] = lead_data["responsible"]
        if "photo" in lead_data:
            fields[photo_field_code()] = lead_data["photo"]
        for key, value in lead_data.items():
            if key not in STANDARD_UPDATE_KEYS:
                fields[key] = value
        return fields

    def _send_update(self, webhook_url: str, lead_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{webhook_url.rstrip('/')}/crm.lead.update.json"
        response = self._post(url, json={"id": lead_id, "fields": fields})
        if not _is_success(response.status_code):
            logger.error(
                "crm.update_failed",
                extra={"lead_id": lead_id, "status": response.status_code, "body": response.text},
            )
            raise RemoteError(
                f"Bitrix API error ({response.status_code}): {response.text}",
                status=response.status_code,
                body=response.text,
            )
        data = _decode(response)
        if not data.get("result"):
            logger.error("crm.update_rejected", extra={"lead_id": lead_id, "body": response.text})
            raise RemoteError(
                f"Failed to update lead: {json.dumps(data)}",
                status=response.status_code,
                body=response.text,
            )
        return data

    def _post(self, url: str, **kwargs: Any):
        try:
            return requests.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("crm.unreachable", extra={"url": _redact(url), "error": str(exc)})
            raise NetworkError(f"Bitrix unreachable: {exc}") from exc


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _decode(response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise InvalidResponse(
            "Bitrix returned a non-JSON body",
            status=response.status_code,
            body=response.text,
        ) from exc
    if not isinstance(data, dict):
        raise InvalidResponse(
            f"Bitrix API error: {json.dumps(data)}",
            status=response.status_code,
            body=response.text,
        )
    return data


def _redact(url: str) -> str:
    """Drop the webhook token path segments before logging."""
    match = re.match(r"^(https?://[^/]+)", url)
    return match.group(1) if match else "<invalid-url>"
