"""Management command to load panels, stages and CRM configuration from YAML."""

from pathlib import Path
from typing import Any, Dict

import yaml
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.crm.models import FieldMapping, WebhookConfig
from apps.leads.models import CustomField
from apps.panels.models import Panel
from apps.pipeline.models import Stage


class Command(BaseCommand):
    help = "Import panels, pipeline stages, field mappings and the CRM webhook into the database."

    def add_arguments(self, parser):
        parser.add_argument(
            "--file",
            default="seeds/kiosk.yaml",
            help="Path to the kiosk seed YAML file.",
        )

    def handle(self, *args, **options):
        path = Path(options["file"])
        if not path.exists():
            raise CommandError(f"Kiosk seed file not found: {path}")

        data: Dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

        with transaction.atomic():
            panels = self._load_panels(data.get("panels", []))
            stages = self._load_stages(data.get("stages", []))
            mappings = self._load_field_mappings(data.get("field_mappings", []))
            fields = self._load_custom_fields(data.get("custom_fields", []))
            webhook = self._load_webhook(data.get("webhook"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded {panels} panels, {stages} stages, {mappings} field mappings, "
                f"{fields} custom fields{', webhook' if webhook else ''}."
            )
        )

    def _load_panels(self, entries) -> int:
        for entry in entries:
            Panel.objects.update_or_create(
                id=entry["id"],
                defaults={
                    "name": entry["name"],
                    "slug": entry.get("slug", entry["id"]),
                    "description": entry.get("description", ""),
                    "bitrix_stage_id": entry.get("bitrix_stage_id"),
                    "is_active": entry.get("is_active", True),
                },
            )
        return len(entries)

    def _load_stages(self, entries) -> int:
        for position, entry in enumerate(entries):
            Stage.objects.update_or_create(
                id=entry["id"],
                defaults={
                    "name": entry["name"],
                    "position": entry.get("position", position),
                    "is_default": entry.get("is_default", False),
                    "panel_id": entry.get("panel"),
                    "webhook_url": entry.get("webhook_url"),
                    "webhook_on_enter": entry.get("webhook_on_enter", False),
                    "webhook_on_exit": entry.get("webhook_on_exit", False),
                },
            )
        return len(entries)

    def _load_field_mappings(self, entries) -> int:
        for entry in entries:
            FieldMapping.objects.update_or_create(
                field_name=entry["field_name"],
                defaults={
                    "crm_field_code": entry["crm_field_code"],
                    "field_type": entry.get("field_type", "string"),
                    "is_active": entry.get("is_active", True),
                },
            )
        return len(entries)

    def _load_custom_fields(self, entries) -> int:
        for order, entry in enumerate(entries):
            CustomField.objects.update_or_create(
                field_key=entry["field_key"],
                defaults={
                    "field_label": entry.get("field_label", entry["field_key"]),
                    "field_type": entry.get("field_type", "text"),
                    "field_options": entry.get("field_options", []),
                    "bitrix_field_name": entry.get("bitrix_field_name", ""),
                    "show_in_checkin": entry.get("show_in_checkin", True),
                    "show_in_panels": entry.get("show_in_panels", False),
                    "sort_order": entry.get("sort_order", order),
                },
            )
        return len(entries)

    def _load_webhook(self, entry) -> bool:
        if not entry or not entry.get("bitrix_webhook_url"):
            return False
        WebhookConfig.objects.filter(is_active=True).update(is_active=False)
        WebhookConfig.objects.create(
            bitrix_webhook_url=entry["bitrix_webhook_url"],
            auth_token=entry.get("auth_token", ""),
            notify_on_call=entry.get("notify_on_call", True),
            notify_on_checkin=entry.get("notify_on_checkin", True),
        )
        return True
