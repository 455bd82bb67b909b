"""Outbound webhook relay fired when a lead enters or leaves a stage."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.utils import timezone

logger = logging.getLogger(__name__)

_validate_url = URLValidator(schemes=["http", "https"])


class RelayEvent:
    ENTER = "enter"
    EXIT = "exit"

    ALL = (ENTER, EXIT)


class RelayError(RuntimeError):
    """The relay could not be attempted or the target was unreachable."""


@dataclass(frozen=True)
class RelayResult:
    """Outcome of a delivered relay; ``success`` mirrors the remote 2xx status."""

    success: bool
    status: int
    response: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_relay_payload(
    event_type: str,
    lead_id: Any,
    stage_name: str,
    card_data: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Standard keys first, then ``card_data`` (which wins on collision)."""
    payload: Dict[str, Any] = {
        "event": event_type,
        "lead_id": lead_id,
        "stage_name": stage_name,
        "timestamp": (now or timezone.now()).isoformat(),
    }
    payload.update(card_data or {})
    return payload


def dispatch_stage_webhook(
    webhook_url: str,
    lead_id: Any,
    stage_name: str,
    event_type: str,
    card_data: Optional[Mapping[str, Any]] = None,
    timeout: Optional[int] = None,
) -> RelayResult:
    """POST the stage event to ``webhook_url`` once.

    A non-2xx answer is a normal result with ``success=False``; only local
    failures raise :class:`RelayError`.
    """
    if event_type not in RelayEvent.ALL:
        raise RelayError(f"unknown event_type: {event_type!r}")
    try:
        _validate_url(webhook_url or "")
    except ValidationError as exc:
        raise RelayError(f"invalid webhook_url: {webhook_url!r}") from exc

    payload = build_relay_payload(event_type, lead_id, stage_name, card_data)
    logger.info(
        "relay.dispatching",
        extra={"lead_id": lead_id, "stage_name": stage_name, "event_type": event_type},
    )
    try:
        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout or getattr(settings, "RELAY_HTTP_TIMEOUT_SECONDS", 15),
        )
    except requests.RequestException as exc:
        logger.warning(
            "relay.unreachable",
            extra={"lead_id": lead_id, "event_type": event_type, "error": str(exc)},
        )
        raise RelayError(str(exc)) from exc

    result = RelayResult(
        success=200 <= response.status_code < 300,
        status=response.status_code,
        response=response.text,
    )
    log = logger.info if result.success else logger.warning
    log(
        "relay.dispatched",
        extra={"lead_id": lead_id, "event_type": event_type, "status": result.status},
    )
    return result
