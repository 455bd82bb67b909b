"""Pure helpers turning kiosk contact data into CRM lead field payloads."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from django.conf import settings

NON_DIGITS = re.compile(r"\D")
CRM_FIELD_CODE = re.compile(r"^[A-Z][A-Z0-9_]*$")

BRAZIL_COUNTRY_CODE = "55"
PHONE_VALUE_TYPE = "MOBILE"

FieldOverrides = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def normalize_phone_number(raw: str | None) -> str:
    """Normalize a phone number to ``+<digits>``, assuming Brazil for local numbers.

    Never raises: input without digits yields an empty string, and an already
    normalized number comes back unchanged.
    """
    if not raw:
        return ""
    digits = NON_DIGITS.sub("", str(raw))
    if not digits:
        return ""
    if digits.startswith(BRAZIL_COUNTRY_CODE) and len(digits) in (12, 13):
        return f"+{digits}"
    if len(digits) in (10, 11) and not digits.startswith(BRAZIL_COUNTRY_CODE):
        return f"+{BRAZIL_COUNTRY_CODE}{digits}"
    return f"+{digits}"


def custom_field_overrides(values: FieldOverrides | None, strict: bool = False) -> List[Tuple[str, Any]]:
    """Flatten custom fields into ordered ``(code, value)`` pairs.

    With ``strict`` every key must look like a CRM field code (``UF_CRM_...``).
    """
    if not values:
        return []
    pairs = list(values.items()) if isinstance(values, Mapping) else [tuple(pair) for pair in values]
    if strict:
        for key, _ in pairs:
            if not isinstance(key, str) or not CRM_FIELD_CODE.match(key):
                raise ValueError(f"invalid CRM field code: {key!r}")
    return pairs


def build_phone_entries(*numbers: str | None) -> List[Dict[str, str]]:
    entries = []
    for number in numbers:
        normalized = normalize_phone_number(number)
        if normalized:
            entries.append({"VALUE": normalized, "VALUE_TYPE": PHONE_VALUE_TYPE})
    return entries


def build_lead_fields(
    name: str | None,
    phone: str | None = None,
    assigned_by_id: str | int | None = None,
    custom_fields: FieldOverrides | None = None,
    additional_phones: Iterable[str] = (),
) -> Dict[str, Any]:
    """Build the ``fields`` map for ``crm.lead.add``.

    Custom fields are applied last so they win over the standard keys.
    """
    title = name if name and name.strip() else getattr(settings, "CRM_DEFAULT_LEAD_TITLE", "Novo Lead")
    fields: Dict[str, Any] = {"TITLE": title, "NAME": name}

    phones = build_phone_entries(phone, *additional_phones)
    if phones:
        fields["PHONE"] = phones

    if assigned_by_id not in (None, ""):
        fields["ASSIGNED_BY_ID"] = assigned_by_id

    for key, value in custom_field_overrides(custom_fields):
        fields[key] = value
    return fields
