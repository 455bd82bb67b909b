"""Read-only access to the custom field catalogue."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Tuple

from django.db.models import QuerySet

from apps.leads.models import CustomField, CustomFieldType

logger = logging.getLogger(__name__)


def active_fields() -> QuerySet[CustomField]:
    return CustomField.objects.filter(is_active=True).order_by("sort_order", "field_key")


def checkin_fields() -> QuerySet[CustomField]:
    return active_fields().filter(show_in_checkin=True)


def panel_fields() -> QuerySet[CustomField]:
    return active_fields().filter(show_in_panels=True)


def collect_custom_field_values(values: Mapping[str, Any] | None) -> List[Tuple[str, Any]]:
    """Translate form values keyed by ``field_key`` into ordered CRM overrides.

    Only active fields that declare a CRM field are forwarded; list fields
    drop values outside their declared options.
    """
    if not values:
        return []
    overrides: List[Tuple[str, Any]] = []
    for field in active_fields().exclude(bitrix_field_name=""):
        if field.field_key not in values:
            continue
        value = values[field.field_key]
        if field.field_type == CustomFieldType.LIST and field.field_options and value not in field.field_options:
            logger.warning(
                "custom_fields.option_rejected",
                extra={"field_key": field.field_key, "value": value},
            )
            continue
        overrides.append((field.bitrix_field_name, value))
    return overrides
