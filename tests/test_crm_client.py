import json

import pytest
import requests

from apps.crm.client import BitrixClient, FinalSyncData, StageTimestamp, stage_field_token
from apps.crm.exceptions import ConfigError, InvalidResponse, NetworkError, RemoteError
from apps.crm.models import FieldMapping, WebhookConfig

BITRIX_URL = "https://example.bitrix24.com.br/rest/1/token123"

pytestmark = pytest.mark.django_db


def test_create_lead_posts_form_encoded_fields(monkeypatch, fake_response):
    called = {}

    def fake_post(url, timeout=None, **kwargs):
        called["url"] = url
        called.update(kwargs)
        return fake_response(200, {"result": 321})

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)

    lead_id = BitrixClient().create_lead(BITRIX_URL + "/", "Ana", "11999998888", assigned_by_id=5)

    assert lead_id == 321
    assert called["url"] == f"{BITRIX_URL}/crm.lead.add.json"
    assert "json" not in called
    fields = json.loads(called["data"]["fields"])
    assert fields["NAME"] == "Ana"
    assert fields["PHONE"] == [{"VALUE": "+5511999998888", "VALUE_TYPE": "MOBILE"}]
    assert fields["ASSIGNED_BY_ID"] == 5


def test_create_lead_non_2xx_is_network_error(monkeypatch, fake_response):
    monkeypatch.setattr(
        "apps.crm.client.requests.post",
        lambda url, timeout=None, **kwargs: fake_response(503, text="unavailable"),
    )
    with pytest.raises(NetworkError):
        BitrixClient().create_lead(BITRIX_URL, "Ana", "11999998888")


def test_create_lead_without_result_is_invalid_response(monkeypatch, fake_response):
    monkeypatch.setattr(
        "apps.crm.client.requests.post",
        lambda url, timeout=None, **kwargs: fake_response(200, {"error": "ACCESS_DENIED"}),
    )
    with pytest.raises(InvalidResponse) as excinfo:
        BitrixClient().create_lead(BITRIX_URL, "Ana")
    assert "ACCESS_DENIED" in excinfo.value.body


def test_transport_failure_is_network_error(monkeypatch):
    def boom(url, timeout=None, **kwargs):
        raise requests.Timeout("timed out")

    monkeypatch.setattr("apps.crm.client.requests.post", boom)
    with pytest.raises(NetworkError):
        BitrixClient(timeout=1).create_lead(BITRIX_URL, "Ana")


def test_update_lead_requires_active_config():
    WebhookConfig.objects.create(bitrix_webhook_url=BITRIX_URL, is_active=False)
    with pytest.raises(ConfigError):
        BitrixClient().update_lead({"lead_id": "42", "name": "Ana"})


def test_update_lead_requires_lead_id(webhook_config):
    with pytest.raises(ValueError):
        BitrixClient().update_lead({"name": "Ana"})


def test_update_lead_maps_fields_and_uses_latest_config(monkeypatch, fake_response, webhook_config):
    WebhookConfig.objects.create(bitrix_webhook_url="https://newer.bitrix24.com/rest/9/abc")
    FieldMapping.objects.create(field_name="photo", crm_field_code="UF_CRM_PHOTO")
    called = {}

    def fake_post(url, json=None, timeout=None, **kwargs):
        called["url"] = url
        called["payload"] = json
        return fake_response(200, {"result": True})

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)

    result = BitrixClient().update_lead(
        {"lead_id": "42", "name": "Ana", "responsible": "9", "photo": "https://cdn/x.jpg", "UF_CRM_ROOM": "A1"}
    )

    assert result == {"success": True, "lead_id": "42"}
    assert called["url"] == "https://newer.bitrix24.com/rest/9/abc/crm.lead.update.json"
    assert called["payload"] == {
        "id": "42",
        "fields": {
            "NAME": "Ana",
            "TITLE": "Ana",
            "ASSIGNED_BY_ID": "9",
            "UF_CRM_PHOTO": "https://cdn/x.jpg",
            "UF_CRM_ROOM": "A1",
        },
    }


def test_update_lead_photo_falls_back_to_default_field(monkeypatch, fake_response, webhook_config):
    called = {}

    def fake_post(url, json=None, timeout=None, **kwargs):
        called["payload"] = json
        return fake_response(200, {"result": True})

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)
    BitrixClient().update_lead({"lead_id": "42", "photo": "p.jpg"})
    assert called["payload"]["fields"] == {"UF_CRM_1745431662": "p.jpg"}


@pytest.mark.parametrize(
    "status_code, payload",
    [(400, {"error": "INVALID"}), (200, {"result": False, "error": "NOT_FOUND"})],
)
def test_update_lead_remote_errors(monkeypatch, fake_response, webhook_config, status_code, payload):
    monkeypatch.setattr(
        "apps.crm.client.requests.post",
        lambda url, json=None, timeout=None, **kwargs: fake_response(status_code, payload),
    )
    with pytest.raises(RemoteError) as excinfo:
        BitrixClient().update_lead({"lead_id": "42", "name": "Ana"})
    assert excinfo.value.status == status_code
    assert payload["error"] in excinfo.value.body


def test_webhook_url_is_encrypted_at_rest(webhook_config):
    webhook_config.refresh_from_db()
    assert webhook_config.bitrix_webhook_url.startswith("enc::")
    assert "token123" not in webhook_config.bitrix_webhook_url
    assert webhook_config.get_webhook_url() == BITRIX_URL


def test_sync_final_state_builds_stage_fields(monkeypatch, fake_response):
    called = {}

    def fake_post(url, json=None, timeout=None, **kwargs):
        called["url"] = url
        called["payload"] = json
        return fake_response(200, {"result": True})

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)

    fields = BitrixClient().sync_final_state(
        BITRIX_URL,
        FinalSyncData(
            lead_id="42",
            status_id="CONVERTED",
            stage_timestamps=[
                StageTimestamp("Check-in realizado", "2026-10-19T10:00:00+00:00", 600),
                StageTimestamp("Sessão de fotos", "2026-10-19T10:10:00+00:00"),
            ],
            room_log={"Sessão de fotos": "A1"},
            total_duration_seconds=600,
            notes="ok",
        ),
    )

    assert called["url"].endswith("/crm.lead.update.json")
    assert called["payload"]["id"] == "42"
    assert fields["STATUS_ID"] == "CONVERTED"
    assert fields["UF_CRM_CHECK_IN_REALIZADO_AT"] == "2026-10-19T10:00:00+00:00"
    assert fields["UF_CRM_CHECK_IN_REALIZADO_DURATION"] == 600
    assert "UF_CRM_SESS_O_DE_FOTOS_DURATION" not in fields
    assert json.loads(fields["UF_CRM_STAGE_DURATIONS"]) == {"Check-in realizado": 600}
    assert json.loads(fields["UF_CRM_ROOM_LOG"]) == {"Sessão de fotos": "A1"}
    assert fields["UF_CRM_TOTAL_DURATION"] == 600
    assert fields["UF_CRM_CHECKIN_NOTES"] == "ok"
    assert "UF_CRM_FLOW_COMPLETED_AT" in fields


def test_stage_field_token():
    assert stage_field_token("Check-in realizado") == "CHECK_IN_REALIZADO"
    assert stage_field_token("  --Sala 2--  ") == "SALA_2"


def _routed_post(monkeypatch, routes, calls):
    """Answer each Bitrix method from ``routes``; a callable route gets the JSON body."""

    def fake_post(url, timeout=None, **kwargs):
        method = url.rsplit("/", 1)[-1]
        calls.append((method, kwargs.get("json")))
        route = routes[method]
        return route(kwargs.get("json")) if callable(route) else route

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)


def test_get_lead_returns_record(monkeypatch, fake_response):
    calls = []
    _routed_post(
        monkeypatch,
        {"crm.lead.get.json": fake_response(200, {"result": {"ID": "42", "NAME": "Ana"}})},
        calls,
    )

    assert BitrixClient().get_lead(BITRIX_URL + "/", "42") == {"ID": "42", "NAME": "Ana"}
    assert calls == [("crm.lead.get.json", {"id": "42"})]


def test_get_lead_errors(monkeypatch, fake_response):
    monkeypatch.setattr(
        "apps.crm.client.requests.post",
        lambda url, timeout=None, **kwargs: fake_response(400, {"error": "Not found"}),
    )
    with pytest.raises(RemoteError) as excinfo:
        BitrixClient().get_lead(BITRIX_URL, "404")
    assert excinfo.value.status == 400

    monkeypatch.setattr(
        "apps.crm.client.requests.post",
        lambda url, timeout=None, **kwargs: fake_response(200, {"result": False}),
    )
    with pytest.raises(InvalidResponse):
        BitrixClient().get_lead(BITRIX_URL, "404")


def test_find_leads_by_phone_uses_duplicate_search(monkeypatch, fake_response):
    calls = []
    _routed_post(
        monkeypatch,
        {
            "crm.duplicate.findbycomm.json": fake_response(200, {"result": {"LEAD": [7, 8]}}),
            "crm.lead.get.json": lambda body: fake_response(200, {"result": {"ID": str(body["id"])}}),
        },
        calls,
    )

    leads = BitrixClient().find_leads_by_phone(BITRIX_URL, "(11) 98765-4321")

    assert leads == [{"ID": "7"}, {"ID": "8"}]
    assert calls[0] == (
        "crm.duplicate.findbycomm.json",
        {"entity_type": "LEAD", "type": "PHONE", "values": ["+5511987654321"]},
    )
    assert [method for method, _ in calls].count("crm.lead.list.json") == 0


def test_find_leads_by_phone_falls_back_to_list(monkeypatch, fake_response):
    calls = []

    def lead_get(body):
        if body["id"] == "9":
            return fake_response(500, text="boom")
        return fake_response(200, {"result": {"ID": body["id"], "NAME": "Ana", "PHONE": []}})

    _routed_post(
        monkeypatch,
        {
            "crm.duplicate.findbycomm.json": fake_response(403, text="forbidden"),
            "crm.lead.list.json": fake_response(
                200, {"result": [{"ID": "3", "TITLE": "Ana"}, {"ID": "9", "TITLE": "Bia"}]}
            ),
            "crm.lead.get.json": lead_get,
        },
        calls,
    )

    leads = BitrixClient().find_leads_by_phone(BITRIX_URL, "11987654321")

    assert leads == [{"ID": "3", "NAME": "Ana", "PHONE": []}, {"ID": "9", "TITLE": "Bia"}]
    list_body = next(body for method, body in calls if method == "crm.lead.list.json")
    assert list_body["filter"] == {"PHONE": "+5511987654321"}


def test_find_leads_by_phone_without_digits_skips_http(monkeypatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr("apps.crm.client.requests.post", unexpected)
    assert BitrixClient().find_leads_by_phone(BITRIX_URL, "n/a") == []


def test_find_leads_by_phone_network_error(monkeypatch):
    def unreachable(url, timeout=None, **kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr("apps.crm.client.requests.post", unreachable)
    with pytest.raises(NetworkError):
        BitrixClient().find_leads_by_phone(BITRIX_URL, "11987654321")
