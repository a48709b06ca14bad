import json

import pytest

from exceptions import ValidationError
from Fence_module.Fence_crud import validate_fence


@pytest.mark.parametrize(
    "lat, lon, radius",
    [
        (-90, -180, 50),
        (90, 180, 10000),
        (40.1, -73.9, 250),
    ],
)
def test_validate_fence_accepts_inclusive_bounds(lat, lon, radius):
    validate_fence(lat, lon, radius)


@pytest.mark.parametrize(
    "lat, lon, radius, message",
    [
        (90.0001, 0, 100, "Latitude must be between -90 and 90"),
        (-91, 0, 100, "Latitude must be between -90 and 90"),
        (0, 180.5, 100, "Longitude must be between -180 and 180"),
        (0, 0, 49.9, "Radius must be between 50 and 10000 meters"),
        (0, 0, 10001, "Radius must be between 50 and 10000 meters"),
        (float("nan"), 0, 100, "Latitude must be between -90 and 90"),
        (0, float("inf"), 100, "Longitude must be between -180 and 180"),
        (0, 0, float("nan"), "Radius must be between 50 and 10000 meters"),
    ],
)
def test_validate_fence_rejects_out_of_range(lat, lon, radius, message):
    with pytest.raises(ValidationError) as exc:
        validate_fence(lat, lon, radius)
    assert exc.value.message == message


def _fence(**overrides):
    body = {"name": "North pasture", "center_latitude": 40.1, "center_longitude": -73.9, "radius_meters": 250}
    body.update(overrides)
    return body


def test_fence_lifecycle(client, auth_headers):
    created = client.post("/dashboard/fences", json=_fence(), headers=auth_headers)
    assert created.status_code == 201
    fence_id = created.json()["data"]["id"]

    fences = client.get("/dashboard/fences", headers=auth_headers).json()["data"]
    assert fences[0]["fence_type"] == "custom"
    assert fences[0]["is_active"] is True

    updated = client.put(f"/dashboard/fences/{fence_id}", json=_fence(radius_meters=500, fence_type="water"), headers=auth_headers)
    assert updated.status_code == 200
    fence = client.get("/dashboard/fences", headers=auth_headers).json()["data"][0]
    assert (fence["radius_meters"], fence["fence_type"]) == (500, "water")

    assert client.delete(f"/dashboard/fences/{fence_id}", headers=auth_headers).status_code == 200
    assert client.get("/dashboard/fences", headers=auth_headers).json()["data"] == []


def test_invalid_radius_returns_400(client, auth_headers):
    resp = client.post("/dashboard/fences", json=_fence(radius_meters=20), headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Radius must be between 50 and 10000 meters"


def test_update_missing_fence_returns_404(client, auth_headers):
    resp = client.put("/dashboard/fences/77", json=_fence(), headers=auth_headers)

    assert resp.status_code == 404
    assert resp.json()["message"] == "Virtual fence not found"


def test_nan_center_returns_400(client, auth_headers):
    # JSON NaN literal; json.dumps emits it for float("nan")
    body = json.dumps(_fence(center_latitude=float("nan")))

    resp = client.post(
        "/dashboard/fences",
        content=body,
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Latitude must be between -90 and 90"
    assert client.get("/dashboard/fences", headers=auth_headers).json()["data"] == []
