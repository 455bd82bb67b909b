"""Turn CRM stage-entry events into panel calls."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.panels.models import Call, CallStatus, Panel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageEvent:
    """Inbound notification that a lead entered a CRM stage."""

    lead_id: str
    stage_id: str
    model_name: str = ""
    model_photo: Optional[str] = None
    room: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StageEvent":
        lead_id = payload.get("lead_id")
        stage_id = payload.get("stage_id")
        if lead_id in (None, "") or stage_id in (None, ""):
            raise ValueError("lead_id and stage_id are required")
        return cls(
            lead_id=str(lead_id),
            stage_id=str(stage_id),
            model_name=payload.get("model_name") or "",
            model_photo=payload.get("model_photo"),
            room=payload.get("room"),
        )


class IngestOutcome:
    """Terminal states of a single stage event."""

    CALL_CREATED = "call_created"
    NO_PANEL = "no_panel"


@dataclass
class IngestResult:
    outcome: str
    call: Optional[Call] = None
    panel: Optional[Panel] = None
    duplicate: bool = False

    @property
    def found(self) -> bool:
        return self.outcome == IngestOutcome.CALL_CREATED


def resolve_panel(stage_id: str) -> Panel | None:
    """Return the panel bound to ``stage_id``; the store is expected to hold at most one."""
    return Panel.objects.filter(bitrix_stage_id=stage_id).order_by("created_at", "id").first()


def _dedupe_key(lead_id: str, stage_id: str) -> str | None:
    window = int(getattr(settings, "STAGE_EVENT_DEDUPE_WINDOW_SECONDS", 0))
    if window <= 0:
        return None
    bucket = int(timezone.now().timestamp()) // window
    raw = f"{lead_id}:{stage_id}:{bucket}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def create_call(
    panel: Panel,
    *,
    lead_id: str,
    model_name: str,
    model_photo: str | None = None,
    room: str | None = None,
    responsible: str | None = None,
    source: str = "bitrix",
    custom_data: Dict[str, Any] | None = None,
    idempotency_key: str | None = None,
) -> Call:
    with transaction.atomic():
        return Call.objects.create(
            panel=panel,
            lead_id=lead_id,
            model_name=model_name,
            model_photo=model_photo,
            room=room,
            responsible=responsible,
            source=source,
            custom_data=custom_data or {},
            status=CallStatus.CALLING,
            idempotency_key=idempotency_key,
        )


def _duplicate(event: StageEvent, panel: Panel, existing: Call) -> IngestResult:
    logger.info(
        "stage_event.duplicate",
        extra={"lead_id": event.lead_id, "stage_id": event.stage_id, "call_id": str(existing.id)},
    )
    return IngestResult(outcome=IngestOutcome.CALL_CREATED, call=existing, panel=panel, duplicate=True)


def ingest_stage_event(event: StageEvent) -> IngestResult:
    """Create a call for the panel bound to the event's stage, if any.

    Repeated events create repeated calls unless a dedupe window is
    configured through ``STAGE_EVENT_DEDUPE_WINDOW_SECONDS``.
    """
    panel = resolve_panel(event.stage_id)
    if panel is None:
        logger.info(
            "stage_event.no_panel",
            extra={"lead_id": event.lead_id, "stage_id": event.stage_id},
        )
        return IngestResult(outcome=IngestOutcome.NO_PANEL)

    idempotency_key = _dedupe_key(event.lead_id, event.stage_id)
    if idempotency_key:
        existing = Call.objects.filter(idempotency_key=idempotency_key).first()
        if existing is not None:
            return _duplicate(event, panel, existing)

    try:
        call = create_call(
            panel,
            lead_id=event.lead_id,
            model_name=event.model_name,
            model_photo=event.model_photo,
            room=event.room,
            idempotency_key=idempotency_key,
        )
    except IntegrityError:
        if not idempotency_key:
            raise
        # A concurrent delivery of the same event won the insert.
        return _duplicate(event, panel, Call.objects.get(idempotency_key=idempotency_key))

    logger.info(
        "stage_event.call_created",
        extra={"lead_id": event.lead_id, "panel_id": panel.id, "call_id": str(call.id)},
    )
    return IngestResult(outcome=IngestOutcome.CALL_CREATED, call=call, panel=panel)
