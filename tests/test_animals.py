from Location_module import Location_crud


def _create(client, headers, **overrides):
    body = {"name": "Daisy", "tag_number": "T-100", "breed": "Jersey"}
    body.update(overrides)
    return client.post("/dashboard/animals", json=body, headers=headers)


def test_create_and_list_animals(client, auth_headers):
    resp = _create(client, auth_headers)

    assert resp.status_code == 201
    animal = resp.json()["data"]
    assert animal["gender"] == "female"
    assert animal["health_status"] == "healthy"

    listed = client.get("/dashboard/animals", headers=auth_headers).json()["data"]
    assert [a["tag_number"] for a in listed] == ["T-100"]


def test_duplicate_tag_is_conflict(client, auth_headers):
    _create(client, auth_headers)

    resp = _create(client, auth_headers, name="Bella")

    assert resp.status_code == 409
    assert resp.json()["message"] == "Tag number already exists"


def test_partial_update(client, auth_headers):
    animal_id = _create(client, auth_headers).json()["data"]["id"]

    resp = client.put(f"/dashboard/animals/{animal_id}", json={"notes": "limping"}, headers=auth_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["notes"] == "limping"
    assert data["name"] == "Daisy"


def test_empty_update_is_rejected(client, auth_headers):
    animal_id = _create(client, auth_headers).json()["data"]["id"]

    resp = client.put(f"/dashboard/animals/{animal_id}", json={}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "No fields to update"


def test_delete_is_soft(client, auth_headers):
    animal_id = _create(client, auth_headers).json()["data"]["id"]

    assert client.delete(f"/dashboard/animals/{animal_id}", headers=auth_headers).status_code == 200

    assert client.get("/dashboard/animals", headers=auth_headers).json()["data"] == []
    fetched = client.get(f"/dashboard/animals/{animal_id}", headers=auth_headers).json()["data"]
    assert fetched["is_active"] is False


def test_unknown_animal_is_not_found(client, auth_headers):
    assert client.get("/dashboard/animals/555", headers=auth_headers).status_code == 404


def test_manual_location_goes_through_pipeline(client, db, auth_headers, bus):
    events = []
    bus.subscribe(events.append)
    animal_id = _create(client, auth_headers).json()["data"]["id"]

    resp = client.post(
        f"/dashboard/animals/{animal_id}/location",
        json={"latitude": 40.1, "longitude": -73.9, "collar_id": 12},
        headers=auth_headers,
    )

    assert resp.status_code == 201
    assert resp.json()["message"] == "Location saved"
    assert Location_crud.count_history(db, animal_id=animal_id) == 1
    assert Location_crud.get_current_location(db, animal_id=animal_id)["collar_id"] == 12
    assert len(events) == 1


def test_manual_location_for_unknown_animal(client, auth_headers):
    resp = client.post("/dashboard/animals/555/location", json={"latitude": 1, "longitude": 1}, headers=auth_headers)

    assert resp.status_code == 404


def test_dashboard_requires_token(client):
    assert client.get("/dashboard/animals").status_code == 401
