from types import SimpleNamespace

import pytest

from apps.panels.models import Call
from apps.pipeline.models import Stage, StageTransition
from apps.pipeline.services import lead_room_log, lead_stage_history, perform_final_sync, transition_lead

pytestmark = pytest.mark.django_db

HOOK_URL = "https://hooks.example.com/stage"


@pytest.fixture
def queued_relays(monkeypatch):
    queued = []
    monkeypatch.setattr(
        "apps.pipeline.services.relay_stage_webhook",
        SimpleNamespace(delay=lambda *args: queued.append(args)),
    )
    return queued


@pytest.fixture
def lobby():
    return Stage.objects.create(
        id="LOBBY",
        name="Lobby",
        webhook_url=HOOK_URL,
        webhook_on_enter=True,
        webhook_on_exit=True,
    )


def test_transition_queues_exit_then_enter_and_creates_call(
    lobby, stage, queued_relays, django_capture_on_commit_callbacks
):
    stage.webhook_url = HOOK_URL
    stage.webhook_on_enter = True
    stage.save()

    with django_capture_on_commit_callbacks(execute=True):
        result = transition_lead("42", stage, from_stage=lobby, model_name="Maria", room="A1")

    card = {"model_name": "Maria", "responsible": None, "room": "A1"}
    assert queued_relays == [
        (HOOK_URL, "42", "Lobby", "exit", card),
        (HOOK_URL, "42", "Check-in realizado", "enter", card),
    ]
    assert result.queued_relays == ["exit", "enter"]
    assert result.call is not None
    assert result.call.panel_id == "P1"
    assert result.call.source == "kanban"
    assert StageTransition.objects.filter(lead_id="42").count() == 1


def test_relays_wait_for_commit(lobby, stage, queued_relays, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        result = transition_lead("42", stage, from_stage=lobby)

    assert result.queued_relays == ["exit"]
    assert len(callbacks) == 1
    assert queued_relays == []


def test_transition_skips_disabled_relays(lobby, stage, queued_relays, django_capture_on_commit_callbacks):
    lobby.webhook_on_exit = False
    lobby.save()

    with django_capture_on_commit_callbacks(execute=True):
        result = transition_lead("42", stage, from_stage=lobby, model_name="Maria")

    assert queued_relays == []
    assert result.queued_relays == []
    assert Call.objects.filter(lead_id="42").count() == 1


def test_transition_to_stage_without_panel_creates_no_call(
    stage, lobby, queued_relays, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        result = transition_lead("42", lobby, from_stage=stage)

    assert result.call is None
    assert [args[3] for args in queued_relays] == ["enter"]


def test_transition_api(client, lobby, stage, queued_relays, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        response = client.post(
            "/pipeline/transitions",
            {"lead_id": "42", "to_stage": "S1", "from_stage": "LOBBY", "model_name": "Maria", "room": "A1"},
            content_type="application/json",
        )

    assert response.status_code == 201
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["relays_queued"] == ["exit"]
    assert body["data"]["call"]["panel_id"] == "P1"
    assert [args[3] for args in queued_relays] == ["exit"]


def test_transition_api_rejects_unknown_stage(client, db):
    response = client.post(
        "/pipeline/transitions",
        {"lead_id": "42", "to_stage": "NOPE"},
        content_type="application/json",
    )
    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "INVALID_TRANSITION"}


def test_history_and_room_log(lobby, stage, queued_relays):
    transition_lead("42", lobby, room="R1")
    transition_lead("42", stage, from_stage=lobby, room="A1")

    history = lead_stage_history("42")
    assert [entry.stage_name for entry in history] == ["Lobby", "Check-in realizado"]
    assert history[0].duration_seconds is not None
    assert history[1].duration_seconds is None
    assert lead_room_log("42") == {"Lobby": "R1", "Check-in realizado": "A1"}


def test_final_sync_writes_stage_fields(monkeypatch, fake_response, webhook_config, lobby, stage, queued_relays):
    transition_lead("42", lobby, room="R1")
    transition_lead("42", stage, from_stage=lobby)
    sent = {}

    def fake_post(url, json=None, timeout=None):
        sent["url"] = url
        sent["body"] = json
        return fake_response(200, payload={"result": True})

    monkeypatch.setattr("apps.crm.client.requests.post", fake_post)

    fields = perform_final_sync("42", status_id="CONVERTED", notes="ok")

    assert sent["url"].endswith("/crm.lead.update.json")
    assert sent["body"]["id"] == "42"
    assert fields["STATUS_ID"] == "CONVERTED"
    assert "UF_CRM_LOBBY_AT" in fields
    assert "UF_CRM_CHECK_IN_REALIZADO_AT" in fields
    assert fields["UF_CRM_CHECKIN_NOTES"] == "ok"
    assert "UF_CRM_FLOW_COMPLETED_AT" in fields


def test_final_sync_api_without_config_is_409(client, db):
    response = client.post("/leads/42/final-sync", {}, content_type="application/json")
    assert response.status_code == 409
    assert response.json()["ok"] is False
