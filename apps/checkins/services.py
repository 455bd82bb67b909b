"""Check-in registration and the persistence behind the multi-model resolver."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.checkins.models import CheckIn
from apps.checkins.resolver import ExistingCheckIn, MultiModelResolver
from apps.crm.client import active_webhook_config
from apps.crm.exceptions import ConfigError
from apps.workers.tasks import sync_lead_update

logger = logging.getLogger(__name__)


class DuplicateCheckInError(RuntimeError):
    """The lead already has an active check-in for that model."""


class CheckInStatus:
    CREATED = "created"
    CONFLICT = "conflict"


@dataclass
class CheckInOutcome:
    status: str
    check_in: CheckIn

    @property
    def created(self) -> bool:
        return self.status == CheckInStatus.CREATED


def find_active_check_in(lead_id: str, model_name: str | None = None) -> Optional[CheckIn]:
    queryset = CheckIn.objects.filter(lead_id=lead_id, is_active=True)
    if model_name is not None:
        queryset = queryset.filter(model_name=model_name)
    return queryset.order_by("-checked_in_at").first()


def _create(
    lead_id: str,
    model_name: str,
    *,
    lead_name: str = "",
    model_photo: str | None = None,
    responsible: str | None = None,
) -> CheckIn:
    try:
        with transaction.atomic():
            return CheckIn.objects.create(
                lead_id=lead_id,
                lead_name=lead_name,
                model_name=model_name,
                model_photo=model_photo,
                responsible=responsible,
            )
    except IntegrityError as exc:
        raise DuplicateCheckInError(
            f"lead {lead_id} already has an active check-in for model {model_name!r}"
        ) from exc


def register_check_in(
    lead_id: str,
    model_name: str,
    *,
    lead_name: str = "",
    model_photo: str | None = None,
    responsible: str | None = None,
) -> CheckInOutcome:
    """Create a check-in unless the lead is already active under any model.

    On conflict nothing is written; the caller resolves it through
    :func:`resolver_for`.
    """
    existing = find_active_check_in(lead_id)
    if existing is not None:
        logger.info(
            "checkin.conflict",
            extra={"lead_id": lead_id, "previous_model": existing.model_name},
        )
        return CheckInOutcome(status=CheckInStatus.CONFLICT, check_in=existing)

    check_in = _create(
        lead_id,
        model_name,
        lead_name=lead_name,
        model_photo=model_photo,
        responsible=responsible,
    )
    logger.info("checkin.created", extra={"lead_id": lead_id, "check_in_id": str(check_in.id)})
    return CheckInOutcome(status=CheckInStatus.CREATED, check_in=check_in)


def recheck_in(check_in: CheckIn) -> CheckIn:
    check_in.checked_in_at = timezone.now()
    check_in.bitrix_updated = False
    check_in.save(update_fields=["checked_in_at", "bitrix_updated"])
    logger.info("checkin.refreshed", extra={"lead_id": check_in.lead_id, "check_in_id": str(check_in.id)})
    return check_in


def create_model_check_in(existing: CheckIn, model_name: str) -> CheckIn:
    """New check-in for the same lead under ``model_name``; ``existing`` is left as is."""
    check_in = _create(
        existing.lead_id,
        model_name,
        lead_name=existing.lead_name,
        responsible=existing.responsible,
    )
    logger.info(
        "checkin.model_added",
        extra={"lead_id": existing.lead_id, "model": model_name, "check_in_id": str(check_in.id)},
    )
    return check_in


def resolver_for(check_in: CheckIn) -> MultiModelResolver:
    """Bind a resolver for ``check_in`` to the persistence helpers above."""
    existing = ExistingCheckIn(
        lead_id=check_in.lead_id,
        name=check_in.lead_name,
        previous_model_name=check_in.model_name,
        checked_in_at=check_in.checked_in_at,
    )
    return MultiModelResolver(
        existing,
        on_recheck_in=lambda: recheck_in(check_in),
        on_create_new_model=lambda name: create_model_check_in(check_in, name),
    )


def crm_update_payload(check_in: CheckIn) -> dict:
    lead_data: dict = {"lead_id": check_in.lead_id}
    if check_in.lead_name:
        lead_data["name"] = check_in.lead_name
    if check_in.model_photo:
        lead_data["photo"] = check_in.model_photo
    if check_in.responsible:
        lead_data["responsible"] = check_in.responsible
    return lead_data


def queue_crm_update(check_in: CheckIn) -> bool:
    """Schedule the CRM update for ``check_in`` once the current transaction commits."""
    try:
        config = active_webhook_config()
    except ConfigError:
        logger.warning("checkin.crm_sync_skipped", extra={"lead_id": check_in.lead_id})
        return False
    if not config.notify_on_checkin:
        return False
    lead_data = crm_update_payload(check_in)
    check_in_id = str(check_in.id)
    transaction.on_commit(lambda: sync_lead_update.delay(lead_data, check_in_id=check_in_id))
    return True
