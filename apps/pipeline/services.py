"""Stage transitions: relay fan-out, panel calls and the final CRM sync."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.db import transaction

from apps.crm.client import BitrixClient, FinalSyncData, StageTimestamp, active_webhook_url
from apps.panels.models import Call
from apps.panels.services import create_call
from apps.pipeline.models import Stage, StageTransition
from apps.pipeline.relay import RelayEvent
from apps.workers.tasks import relay_stage_webhook

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    transition: StageTransition
    queued_relays: List[str] = field(default_factory=list)
    call: Optional[Call] = None


def _queue_relay(
    stage: Stage,
    event_type: str,
    lead_id: str,
    card_data: Dict[str, Any],
    result: TransitionResult,
) -> None:
    if not stage.relays(event_type):
        return
    args = [stage.webhook_url, lead_id, stage.name, event_type, card_data]
    transaction.on_commit(lambda: relay_stage_webhook.delay(*args))
    result.queued_relays.append(event_type)


def transition_lead(
    lead_id: str,
    to_stage: Stage,
    *,
    from_stage: Stage | None = None,
    model_name: str = "",
    model_photo: str | None = None,
    responsible: str | None = None,
    room: str | None = None,
    custom_data: Dict[str, Any] | None = None,
    by_user: str = "",
    method: str = "manual",
) -> TransitionResult:
    """Move a lead into ``to_stage`` and trigger everything bound to the move.

    Exit relay for the source stage and enter relay for the destination stage
    are queued once the transition commits; a panel call is created when the
    destination stage has a panel.
    """
    with transaction.atomic():
        transition = StageTransition.objects.create(
            lead_id=lead_id,
            from_stage=from_stage,
            to_stage=to_stage,
            by_user=by_user,
            method=method,
            room=room or "",
        )
    result = TransitionResult(transition=transition)
    card_data = {"model_name": model_name, "responsible": responsible, "room": room}

    if from_stage is not None and from_stage.pk != to_stage.pk:
        _queue_relay(from_stage, RelayEvent.EXIT, lead_id, card_data, result)
    _queue_relay(to_stage, RelayEvent.ENTER, lead_id, card_data, result)

    if to_stage.panel_id:
        result.call = create_call(
            to_stage.panel,
            lead_id=lead_id,
            model_name=model_name,
            model_photo=model_photo,
            room=room,
            responsible=responsible,
            source="kanban",
            custom_data=custom_data,
        )

    logger.info(
        "pipeline.transition",
        extra={
            "lead_id": lead_id,
            "from_stage": from_stage.pk if from_stage else None,
            "to_stage": to_stage.pk,
            "call_created": result.call is not None,
        },
    )
    return result


def lead_stage_history(lead_id: str) -> List[StageTimestamp]:
    """Entry time per stage; duration is measured up to the next move."""
    transitions = list(
        StageTransition.objects.filter(lead_id=lead_id, to_stage__isnull=False)
        .select_related("to_stage")
        .order_by("created_at", "id")
    )
    history: List[StageTimestamp] = []
    for index, transition in enumerate(transitions):
        duration = None
        if index + 1 < len(transitions):
            delta = transitions[index + 1].created_at - transition.created_at
            duration = int(delta.total_seconds())
        history.append(
            StageTimestamp(
                stage_name=transition.to_stage.name,
                entered_at=transition.created_at.isoformat(),
                duration_seconds=duration,
            )
        )
    return history


def lead_room_log(lead_id: str) -> Dict[str, str]:
    log: Dict[str, str] = {}
    for transition in (
        StageTransition.objects.filter(lead_id=lead_id, to_stage__isnull=False)
        .exclude(room="")
        .select_related("to_stage")
        .order_by("created_at", "id")
    ):
        log[transition.to_stage.name] = transition.room
    return log


def perform_final_sync(
    lead_id: str,
    status_id: str | None = None,
    notes: str | None = None,
    client: BitrixClient | None = None,
) -> Dict[str, Any]:
    webhook_url = active_webhook_url()
    history = lead_stage_history(lead_id)
    sync_data = FinalSyncData(
        lead_id=lead_id,
        status_id=status_id,
        stage_timestamps=history,
        room_log=lead_room_log(lead_id),
        total_duration_seconds=sum(stage.duration_seconds or 0 for stage in history),
        notes=notes,
    )
    return (client or BitrixClient()).sync_final_state(webhook_url, sync_data)
