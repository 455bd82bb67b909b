from types import SimpleNamespace

import pytest

from apps.checkins.models import CheckIn
from apps.checkins.services import (
    DuplicateCheckInError,
    create_model_check_in,
    queue_crm_update,
    register_check_in,
)

pytestmark = pytest.mark.django_db


def _check_in(client, **payload):
    body = {"lead_id": "42", "model_name": "Maria", "lead_name": "Ana"}
    body.update(payload)
    return client.post("/checkins", body, content_type="application/json")


def _resolve(client, **payload):
    return client.post("/checkins/resolve", payload, content_type="application/json")


def test_first_check_in_is_created(client):
    response = _check_in(client)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["lead_id"] == "42"
    assert data["model_name"] == "Maria"
    assert data["is_active"] is True


def test_second_check_in_reports_conflict(client):
    _check_in(client)
    response = _check_in(client, model_name="Joana")

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "CHECK_IN_EXISTS"
    assert body["data"]["previous_model_name"] == "Maria"
    assert body["data"]["mode"] == "choose"
    assert CheckIn.objects.filter(lead_id="42").count() == 1


def test_resolve_recheck_refreshes_existing(client):
    _check_in(client)
    original = CheckIn.objects.get(lead_id="42")

    response = _resolve(client, lead_id="42", action="recheck")

    assert response.status_code == 200
    refreshed = CheckIn.objects.get(pk=original.pk)
    assert refreshed.checked_in_at >= original.checked_in_at
    assert CheckIn.objects.filter(lead_id="42").count() == 1


def test_resolve_new_model_keeps_original(client):
    _check_in(client)

    response = _resolve(client, lead_id="42", action="new_model", model_name="  Joana  ")

    assert response.status_code == 201
    assert response.json()["data"]["model_name"] == "Joana"
    names = set(CheckIn.objects.filter(lead_id="42", is_active=True).values_list("model_name", flat=True))
    assert names == {"Maria", "Joana"}


def test_resolve_new_model_blank_name_is_400(client):
    _check_in(client)
    response = _resolve(client, lead_id="42", action="new_model", model_name="   ")
    assert response.status_code == 400
    assert response.json()["error"] == "MODEL_NAME_REQUIRED"
    assert CheckIn.objects.filter(lead_id="42").count() == 1


def test_resolve_new_model_same_name_is_409(client):
    _check_in(client)
    response = _resolve(client, lead_id="42", action="new_model", model_name="Maria")
    assert response.status_code == 409
    assert CheckIn.objects.filter(lead_id="42").count() == 1


def test_resolve_without_check_in_is_404(client):
    response = _resolve(client, lead_id="99", action="recheck")
    assert response.status_code == 404
    assert response.json()["error"] == "CHECK_IN_NOT_FOUND"


def test_duplicate_model_raises():
    outcome = register_check_in("42", "Maria")
    with pytest.raises(DuplicateCheckInError):
        create_model_check_in(outcome.check_in, "Maria")


def test_queue_crm_update_needs_config():
    outcome = register_check_in("42", "Maria")
    assert queue_crm_update(outcome.check_in) is False


def test_queue_crm_update_schedules_after_commit(webhook_config, monkeypatch, django_capture_on_commit_callbacks):
    queued = []
    monkeypatch.setattr(
        "apps.checkins.services.sync_lead_update",
        SimpleNamespace(delay=lambda lead_data, **kwargs: queued.append((lead_data, kwargs))),
    )
    outcome = register_check_in("42", "Maria", lead_name="Ana", model_photo="https://img/1.jpg")

    with django_capture_on_commit_callbacks(execute=True):
        assert queue_crm_update(outcome.check_in) is True

    assert queued == [
        (
            {"lead_id": "42", "name": "Ana", "photo": "https://img/1.jpg"},
            {"check_in_id": str(outcome.check_in.id)},
        )
    ]


def test_queue_crm_update_respects_notify_flag(webhook_config):
    webhook_config.notify_on_checkin = False
    webhook_config.save()
    outcome = register_check_in("42", "Maria")
    assert queue_crm_update(outcome.check_in) is False


def test_check_in_rejects_overlong_lead_name(client):
    response = _check_in(client, lead_name="A" * 256)
    assert response.status_code == 400
    assert CheckIn.objects.count() == 0
