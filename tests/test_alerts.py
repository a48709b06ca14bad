import smtplib

import pytest

from config import settings
from exceptions import ForbiddenError, NotFoundError
from Alert_module import Alert_crud, email_service
from Alert_module.Alert_model import Alert, MAX_SEVERITY, MAX_TITLE


def test_device_alert_from_query_string(client, db):
    resp = client.get("/device/alert", params={"alert": "Fence breach", "distance": "120", "motion": "1", "lat": "40.1", "lon": "-73.9"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Alert recorded"

    alert = db.query(Alert).filter(Alert.id == body["id"]).one()
    assert alert.title == "Fence breach"
    assert alert.message == "distance=120 motion=1"


def test_record_alert_maps_payload_and_applies_defaults(db):
    alert = Alert_crud.record_alert(db, {"alert": "Fence breach", "distance": "120", "motion": "1", "lat": "40.1", "lon": "-73.9"})

    assert alert.title == "Fence breach"
    assert alert.alert_type == "device"
    assert alert.severity == "medium"
    assert alert.status == "active"
    assert alert.auto_generated is True
    assert alert.farm_id == settings.DEFAULT_FARM_ID
    assert alert.message == "distance=120 motion=1"
    assert (alert.location_latitude, alert.location_longitude) == (40.1, -73.9)


def test_record_alert_truncates_long_fields(db, caplog):
    alert = Alert_crud.record_alert(db, {"title": "t" * 300, "severity": "s" * 50, "alert_type": "a" * 150})

    assert len(alert.title) == MAX_TITLE
    assert len(alert.severity) == MAX_SEVERITY
    assert len(alert.alert_type) == 100
    assert "Truncated title from 300 to 255" in caplog.text


def test_post_json_alert(client):
    resp = client.post("/device/alert", json={"title": "Low battery", "severity": "low", "collar_id": 12})

    assert resp.status_code == 201


def test_email_failure_does_not_affect_alert(db, monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", "farm@example.com")
    monkeypatch.setattr(settings, "SMTP_PASS", "app-password")
    monkeypatch.setattr(settings, "ALERT_EMAIL_TO", "owner@example.com")

    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "unavailable")

    monkeypatch.setattr(smtplib, "SMTP_SSL", refuse)

    alert = Alert_crud.record_alert(db, {"alert": "Fence breach"})

    assert alert.id is not None
    assert db.query(Alert).count() == 1


def test_email_connection_uses_configured_timeout(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", "farm@example.com")
    monkeypatch.setattr(settings, "SMTP_PASS", "app-password")
    monkeypatch.setattr(settings, "ALERT_EMAIL_TO", "owner@example.com")
    monkeypatch.setattr(settings, "SMTP_TIMEOUT_SECONDS", 2)
    monkeypatch.setattr(settings, "SMTP_SECURE", True)
    seen = {}

    def refuse(host, port, timeout=None):
        seen["timeout"] = timeout
        raise smtplib.SMTPConnectError(421, "unavailable")

    monkeypatch.setattr(smtplib, "SMTP_SSL", refuse)

    assert email_service.send_alert_email(Alert(id=1, title="x", severity="low")) is False
    assert seen["timeout"] == 2


def test_email_skipped_when_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_USER", None)

    assert email_service.send_alert_email(Alert(title="x", severity="low")) is False


def test_alert_email_content():
    alert = Alert(title="Fence breach", severity="high", message="distance=120 motion=1", location_latitude=40.1, location_longitude=-73.9)

    msg = email_service.build_alert_email(alert)

    assert msg["Subject"] == "Cattle Farm Alert: Fence breach"
    assert "Location: 40.1, -73.9" in msg.get_content()


def test_acknowledge_then_resolve(db):
    alert = Alert_crud.record_alert(db, {"alert": "Fence breach"})

    Alert_crud.acknowledge_alert(db, alert.id, actor_id=5)
    assert alert.status == "acknowledged"
    assert alert.acknowledged_by == 5

    Alert_crud.resolve_alert(db, alert.id, actor_id=5)
    assert alert.status == "resolved"

    # Acknowledging a resolved alert leaves it resolved
    Alert_crud.acknowledge_alert(db, alert.id, actor_id=6)
    assert alert.status == "resolved"
    assert alert.acknowledged_by == 5


def test_unknown_alert_is_not_found(db):
    with pytest.raises(NotFoundError):
        Alert_crud.resolve_alert(db, 321)


def test_clear_alerts_requires_admin(db, monkeypatch):
    monkeypatch.setattr(settings, "DEV_ALLOW_TRUNCATE", False)
    Alert_crud.record_alert(db, {"alert": "one"})

    with pytest.raises(ForbiddenError):
        Alert_crud.clear_alerts(db, None)
    assert db.query(Alert).count() == 1


def test_dashboard_alert_endpoints(client, auth_headers, admin_headers):
    alert_id = client.post("/device/alert", json={"title": "Fence breach"}).json()["id"]

    listed = client.get("/dashboard/alerts", headers=auth_headers).json()["data"]
    assert [a["id"] for a in listed] == [alert_id]
    assert listed[0]["status"] == "active"

    assert client.put(f"/dashboard/alerts/{alert_id}/read", headers=auth_headers).status_code == 200
    assert client.put(f"/dashboard/alerts/{alert_id}/resolve", headers=auth_headers).status_code == 200
    assert client.put("/dashboard/alerts/999/resolve", headers=auth_headers).status_code == 404

    forbidden = client.delete("/dashboard/alerts", headers=auth_headers)
    assert forbidden.status_code == 403

    cleared = client.delete("/dashboard/alerts", headers=admin_headers)
    assert cleared.status_code == 200
    assert client.get("/dashboard/alerts", headers=auth_headers).json()["data"] == []


def test_ping(client):
    assert client.get("/device/ping").json() == {"success": True, "message": "device route is reachable"}
