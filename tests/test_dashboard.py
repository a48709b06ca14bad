def test_summary_counts_and_recent_alerts(client, auth_headers):
    client.post("/dashboard/animals", json={"name": "Daisy", "tag_number": "T-1"}, headers=auth_headers)
    client.post(
        "/dashboard/fences",
        json={"name": "Yard", "center_latitude": 1, "center_longitude": 1, "radius_meters": 100},
        headers=auth_headers,
    )
    client.post("/gps", json={"latitude": 1, "longitude": 1, "collar_id": 12})
    for title in ("first", "second", "third"):
        client.post("/device/alert", json={"title": title})

    data = client.get("/dashboard/summary", headers=auth_headers).json()["data"]

    assert data["summary"] == {"totalAnimals": 1, "totalCollars": 1, "totalTowers": 1, "totalAlerts": 3}
    assert len(data["alerts"]) == 2


def test_locations_prefers_current_positions(client, auth_headers):
    animal_id = client.post(
        "/dashboard/animals", json={"name": "Daisy", "tag_number": "T-1"}, headers=auth_headers
    ).json()["data"]["id"]
    client.post("/gps", json={"latitude": 1, "longitude": 1, "animal_id": animal_id})
    client.post("/gps", json={"latitude": 2, "longitude": 2, "animal_id": animal_id})

    data = client.get("/dashboard/locations", headers=auth_headers).json()["data"]

    assert len(data) == 1
    assert (data[0]["latitude"], data[0]["longitude"]) == (2, 2)
    assert data[0]["animal_name"] == "Daisy"
