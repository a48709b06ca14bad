from datetime import datetime, timezone

import pytest

from exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from Location_module import Location_crud
from Location_module.Location_ingest import ingest
from Location_module.Location_model import AnimalLocation, CurrentLocation
from Location_module.Location_schema import LocationReport


def _collect(bus):
    events = []
    bus.subscribe(events.append)
    return events


def test_attributed_report_writes_history_and_current(db, bus):
    events = _collect(bus)

    result = ingest(db, LocationReport(latitude=40.1, longitude=-73.9, animal_id=7), bus)

    assert result.id is not None
    assert result.message == "Animal location saved"
    assert result.current_updated is True
    assert result.published is True

    history = Location_crud.list_history(db, animal_id=7)
    assert [(h.latitude, h.longitude) for h in history] == [(40.1, -73.9)]

    current = Location_crud.get_current_location(db, animal_id=7)
    assert current["latitude"] == 40.1
    assert current["longitude"] == -73.9

    assert len(events) == 1
    assert events[0].animal_id == 7
    assert (events[0].latitude, events[0].longitude) == (40.1, -73.9)


def test_collar_only_report_is_keyed_by_collar(db, bus):
    ingest(db, LocationReport(latitude=10.0, longitude=20.0, collar_id=12), bus)

    row = db.query(CurrentLocation).one()
    assert row.entity_key == "collar:12"
    assert row.animal_id is None
    assert row.collar_id == 12
    assert Location_crud.count_history(db, collar_id=12) == 1


def test_repeated_reports_overwrite_single_current_row(db, bus):
    ingest(db, LocationReport(latitude=1.0, longitude=1.0, animal_id=3, battery_level=90), bus)
    ingest(db, LocationReport(latitude=2.0, longitude=2.0, animal_id=3), bus)

    rows = db.query(CurrentLocation).filter(CurrentLocation.entity_key == "animal:3").all()
    assert len(rows) == 1
    assert (rows[0].latitude, rows[0].longitude) == (2.0, 2.0)
    assert rows[0].battery_level is None
    assert Location_crud.count_history(db, animal_id=3) == 2


def test_recorded_at_with_offset_is_stored_as_utc(db, bus):
    recorded_at = datetime.fromisoformat("2026-01-13T15:30:00+05:00")

    result = ingest(db, LocationReport(latitude=1.0, longitude=1.0, animal_id=7, recorded_at=recorded_at), bus)

    assert Location_crud.get_current_location(db, animal_id=7)["recorded_at"] == "2026-01-13T10:30:00+00:00"
    history = Location_crud.history_to_dict(Location_crud.get_history_or_404(db, result.id))
    assert history["recorded_at"] == "2026-01-13T10:30:00+00:00"


def test_collar_lookup_returns_newest_of_its_rows(db, bus):
    ingest(
        db,
        LocationReport(
            latitude=1.0, longitude=1.0, animal_id=7, collar_id=12,
            recorded_at=datetime(2026, 1, 13, 10, 0, tzinfo=timezone.utc),
        ),
        bus,
    )
    ingest(
        db,
        LocationReport(
            latitude=2.0, longitude=2.0, collar_id=12,
            recorded_at=datetime(2026, 1, 13, 11, 0, tzinfo=timezone.utc),
        ),
        bus,
    )

    assert db.query(CurrentLocation).count() == 2
    assert Location_crud.get_current_location(db, collar_id=12)["latitude"] == 2.0


def test_unattributed_report_updates_only_raw_position(db, bus):
    events = _collect(bus)

    result = ingest(db, LocationReport(latitude=5.5, longitude=6.5), bus)

    assert result.id is None
    assert result.message == "GPS coordinates saved (updated current location)"
    assert db.query(AnimalLocation).count() == 0

    row = db.query(CurrentLocation).one()
    assert row.entity_key == "animal:0"
    assert row.animal_id == 0

    raw = Location_crud.get_current_location(db)
    assert (raw["latitude"], raw["longitude"]) == (5.5, 6.5)
    assert len(events) == 1


def test_missing_coordinates_rejected_without_writes(db, bus):
    events = _collect(bus)

    with pytest.raises(ValidationError, match="Missing coordinates"):
        ingest(db, LocationReport(animal_id=7, latitude=40.1), bus)

    assert db.query(AnimalLocation).count() == 0
    assert db.query(CurrentLocation).count() == 0
    assert events == []


def test_correction_updates_row_in_place(db, bus):
    first = ingest(db, LocationReport(latitude=40.0, longitude=-73.0, animal_id=7), bus)
    recorded_at = datetime(2026, 1, 13, 15, 30, tzinfo=timezone.utc)

    correction = LocationReport(update_id=first.id, latitude=41.0, longitude=-74.0, recorded_at=recorded_at)
    result = ingest(db, correction, bus)
    again = ingest(db, correction, bus)

    assert result.id == first.id == again.id
    assert result.message == "GPS record updated"
    assert db.query(AnimalLocation).count() == 1

    record = Location_crud.get_history(db, first.id)
    assert (record.latitude, record.longitude) == (41.0, -74.0)
    assert record.animal_id == 7

    current = Location_crud.get_current_location(db, animal_id=7)
    assert (current["latitude"], current["longitude"]) == (41.0, -74.0)
    assert current["recorded_at"].startswith("2026-01-13T15:30:00")


def test_correction_without_coordinates_keeps_stored_position(db, bus):
    first = ingest(db, LocationReport(latitude=40.0, longitude=-73.0, collar_id=4), bus)

    ingest(db, LocationReport(id=first.id, battery_level=55), bus)

    record = Location_crud.get_history(db, first.id)
    assert (record.latitude, record.longitude) == (40.0, -73.0)
    assert record.battery_level == 55


def test_correction_of_unknown_row_is_not_found(db, bus):
    with pytest.raises(NotFoundError):
        ingest(db, LocationReport(update_id=999, latitude=1.0, longitude=1.0), bus)
    assert db.query(CurrentLocation).count() == 0


def test_correction_cannot_move_row_to_another_animal(db, bus):
    first = ingest(db, LocationReport(latitude=40.0, longitude=-73.0, animal_id=7), bus)

    with pytest.raises(ConflictError):
        ingest(db, LocationReport(update_id=first.id, animal_id=8, latitude=1.0, longitude=1.0), bus)

    record = Location_crud.get_history(db, first.id)
    assert (record.animal_id, record.latitude) == (7, 40.0)


def test_failed_current_upsert_keeps_history_and_skips_publish(db, bus, monkeypatch):
    events = _collect(bus)

    def broken_upsert(*args, **kwargs):
        raise StorageError("Failed to update current location", detail="disk full")

    monkeypatch.setattr(Location_crud, "upsert_current_location", broken_upsert)

    result = ingest(db, LocationReport(latitude=40.1, longitude=-73.9, animal_id=7), bus)

    assert result.id is not None
    assert result.current_updated is False
    assert result.published is False
    assert Location_crud.count_history(db, animal_id=7) == 1
    assert db.query(CurrentLocation).count() == 0
    assert events == []


def test_failed_raw_upsert_is_an_error(db, bus, monkeypatch):
    def broken_upsert(*args, **kwargs):
        raise StorageError("Failed to update current location")

    monkeypatch.setattr(Location_crud, "upsert_current_location", broken_upsert)

    with pytest.raises(StorageError):
        ingest(db, LocationReport(latitude=1.0, longitude=2.0), bus)


def test_failed_history_write_attempts_nothing_else(db, bus, monkeypatch):
    events = _collect(bus)

    def broken_insert(*args, **kwargs):
        raise StorageError("Database error")

    monkeypatch.setattr(Location_crud, "insert_history", broken_insert)

    with pytest.raises(StorageError):
        ingest(db, LocationReport(latitude=1.0, longitude=2.0, animal_id=7), bus)

    assert db.query(CurrentLocation).count() == 0
    assert events == []


def test_failing_subscriber_does_not_fail_ingest(db, bus):
    def explode(event):
        raise RuntimeError("socket gone")

    received = _collect(bus)
    bus.subscribe(explode)

    result = ingest(db, LocationReport(latitude=1.0, longitude=2.0, animal_id=7), bus)

    assert result.current_updated is True
    assert result.published is False
    assert len(received) == 1


def test_post_gps_end_to_end(client, db, bus):
    events = _collect(bus)

    resp = client.post("/gps", json={"latitude": 40.1, "longitude": -73.9, "animal_id": 7})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Animal location saved"
    assert isinstance(body["id"], int)

    current = client.get("/gps/current", params={"animal_id": 7}).json()
    assert current["data"]["latitude"] == 40.1
    assert current["data"]["longitude"] == -73.9

    history = client.get("/gps/history", params={"animal_id": 7}).json()
    assert [h["id"] for h in history["data"]] == [body["id"]]
    assert len(events) == 1

    second = client.post("/gps", json={"latitude": 40.2, "longitude": -73.9, "animal_id": 7})

    assert second.status_code == 200
    current = client.get("/gps/current", params={"animal_id": 7}).json()
    assert current["data"]["latitude"] == 40.2
    assert db.query(CurrentLocation).count() == 1
    history = client.get("/gps/history", params={"animal_id": 7}).json()
    assert sorted(h["id"] for h in history["data"]) == sorted([body["id"], second.json()["id"]])
    assert len(events) == 2


def test_post_gps_missing_coordinates_returns_400(client):
    resp = client.post("/gps", json={"animal_id": 7})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Missing coordinates"}


def test_post_gps_out_of_range_latitude_is_rejected(client):
    resp = client.post("/gps", json={"latitude": 91, "longitude": 0, "animal_id": 7})

    assert resp.status_code == 422
    assert resp.json()["success"] is False


def test_post_gps_correction_of_unknown_id_returns_404(client):
    resp = client.post("/gps", json={"update_id": 12345, "latitude": 1, "longitude": 1})

    assert resp.status_code == 404
    assert resp.json()["message"] == "GPS record not found"


def test_current_without_position_returns_null_data(client):
    resp = client.get("/gps/current", params={"animal_id": 42})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": None}


def test_markers_include_animal_display_fields(client, auth_headers):
    animal = client.post(
        "/dashboard/animals", json={"name": "Daisy", "tag_number": "T-1"}, headers=auth_headers
    ).json()["data"]
    client.post("/gps", json={"latitude": 40.1, "longitude": -73.9, "animal_id": animal["id"]})

    markers = client.get("/gps/markers").json()["data"]

    assert len(markers) == 1
    assert markers[0]["animal_name"] == "Daisy"
    assert markers[0]["tag_number"] == "T-1"
