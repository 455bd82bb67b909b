import json
from types import SimpleNamespace

import pytest

from apps.crm.models import WebhookConfig
from apps.panels.models import Panel
from apps.pipeline.models import Stage

BITRIX_URL = "https://example.bitrix24.com.br/rest/1/token123"


@pytest.fixture(autouse=True)
def _settings(settings):
    settings.ENCRYPTION_KEY = "test-encryption-key"
    settings.STAGE_EVENT_DEDUPE_WINDOW_SECONDS = 0


@pytest.fixture
def webhook_config(db):
    return WebhookConfig.objects.create(bitrix_webhook_url=BITRIX_URL)


@pytest.fixture
def panel(db):
    return Panel.objects.create(id="P1", name="Recepção", slug="recepcao", bitrix_stage_id="S1")


@pytest.fixture
def stage(panel):
    return Stage.objects.create(id="S1", name="Check-in realizado", panel=panel)


@pytest.fixture
def fake_response():
    def _build(status_code=200, payload=None, text=None):
        body = text if text is not None else json.dumps(payload if payload is not None else {})

        def _json():
            if payload is None:
                return json.loads(body)
            return payload

        return SimpleNamespace(status_code=status_code, text=body, json=_json)

    return _build
