"""Celery tasks owning retry policy for CRM sync and stage relays.

Clients under ``apps.crm`` and ``apps.pipeline`` make exactly one attempt;
backoff and give-up decisions live here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from celery import shared_task
from django.conf import settings

from apps.checkins.models import CheckIn
from apps.crm.client import BitrixClient
from apps.crm.exceptions import ConfigError, NetworkError, RemoteError
from apps.pipeline.relay import RelayError, dispatch_stage_webhook

logger = logging.getLogger(__name__)

CRM_SYNC_MAX_ATTEMPTS = int(getattr(settings, "CRM_SYNC_MAX_ATTEMPTS", 5))
CRM_SYNC_INITIAL_DELAY = int(getattr(settings, "CRM_SYNC_INITIAL_DELAY", 30))
CRM_SYNC_MAX_DELAY = int(getattr(settings, "CRM_SYNC_MAX_DELAY", 900))

RELAY_MAX_ATTEMPTS = int(getattr(settings, "RELAY_MAX_ATTEMPTS", 1))
RELAY_RETRY_DELAY = int(getattr(settings, "RELAY_RETRY_DELAY", 60))


def backoff_countdown(attempt: int) -> int:
    return min(CRM_SYNC_INITIAL_DELAY * (2 ** (attempt - 1)), CRM_SYNC_MAX_DELAY)


@shared_task(bind=True, max_retries=0)
def sync_lead_update(
    self,
    lead_data: Dict[str, Any],
    check_in_id: Optional[str] = None,
    attempt: int = 1,
) -> str:
    """Push a lead update, rescheduling itself on network failures only."""
    lead_id = lead_data.get("lead_id")
    try:
        BitrixClient().update_lead(lead_data)
    except ConfigError as exc:
        logger.error("crm_sync.no_config", extra={"lead_id": lead_id, "error": str(exc)})
        return "missing_config"
    except RemoteError as exc:
        logger.error(
            "crm_sync.rejected",
            extra={"lead_id": lead_id, "status": exc.status, "body": exc.body},
        )
        return "rejected"
    except NetworkError as exc:
        if attempt >= CRM_SYNC_MAX_ATTEMPTS:
            logger.error(
                "crm_sync.failed",
                extra={"lead_id": lead_id, "attempt": attempt, "error": str(exc)},
            )
            return "failed"
        countdown = backoff_countdown(attempt)
        logger.warning(
            "crm_sync.retry_backoff",
            extra={"lead_id": lead_id, "attempt": attempt, "countdown": countdown, "error": str(exc)},
        )
        sync_lead_update.apply_async(
            args=[lead_data],
            kwargs={"check_in_id": check_in_id, "attempt": attempt + 1},
            countdown=countdown,
        )
        return "rescheduled"

    if check_in_id:
        CheckIn.objects.filter(id=check_in_id).update(bitrix_updated=True)
    logger.info("crm_sync.synced", extra={"lead_id": lead_id, "attempt": attempt})
    return "synced"


@shared_task(bind=True, max_retries=0)
def relay_stage_webhook(
    self,
    webhook_url: str,
    lead_id: str,
    stage_name: str,
    event_type: str,
    card_data: Optional[Dict[str, Any]] = None,
    attempt: int = 1,
) -> Dict[str, Any]:
    """Deliver a stage relay; local failures are retried up to ``RELAY_MAX_ATTEMPTS``."""
    try:
        result = dispatch_stage_webhook(webhook_url, lead_id, stage_name, event_type, card_data)
    except RelayError as exc:
        if attempt >= RELAY_MAX_ATTEMPTS:
            logger.error(
                "relay.gave_up",
                extra={"lead_id": lead_id, "event_type": event_type, "attempt": attempt, "error": str(exc)},
            )
            return {"success": False, "error": str(exc)}
        relay_stage_webhook.apply_async(
            args=[webhook_url, lead_id, stage_name, event_type, card_data],
            kwargs={"attempt": attempt + 1},
            countdown=RELAY_RETRY_DELAY,
        )
        return {"success": False, "error": str(exc), "rescheduled": True}
    return result.as_dict()
