from types import SimpleNamespace

import pytest
from flask import Flask

from timeclock.biometrics import controller as biometrics_controller
from timeclock.core.exceptions import StoreUnavailableError
from timeclock.punches import controller as punches_controller


@pytest.fixture
def client(world):
    app = Flask(__name__)
    app.config["TESTING"] = True
    container = SimpleNamespace(punch_service=world.service, biometric_service=world.biometrics)
    punches_controller.register(app, container)
    biometrics_controller.register(app, container)
    return app.test_client()


def test_face_punch_accepted(client, world, capture):
    alice = world.enroll(1, "Alice", "11111111111", seed=1)

    resp = client.post("/api/punches/face", json={"template": capture(alice).tolist(), "latitude": "-6.6"})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["outcome"] == "accepted"
    assert body["punch_type"] == "entry"
    assert body["daily_summary"]["entry"] == "08:00"


def test_unknown_face_is_not_an_error(client, world, template_factory):
    world.enroll(1, "Alice", "11111111111", seed=1)

    resp = client.post("/api/punches/face", json={"template": template_factory(404).tolist()})

    assert resp.status_code == 200
    assert resp.get_json()["outcome"] == "no_match"
    assert resp.get_json()["success"] is False


def test_malformed_template_is_400(client):
    resp = client.post("/api/punches/face", json={"template": [1, 2, 3]})

    assert resp.status_code == 400
    assert "128" in resp.get_json()["error"]


def test_non_object_body_is_400(client):
    resp = client.post("/api/punches/credential", data="nope", content_type="text/plain")

    assert resp.status_code == 400


def test_store_outage_is_503_and_retryable(client, world):
    def down(*_args):
        raise StoreUnavailableError("db down")

    world.employees.get_by_national_id = down

    resp = client.post("/api/punches/credential", json={"identifier": "111.111.111-11"})

    assert resp.status_code == 503
    assert resp.get_json()["retryable"] is True


def test_today_for_unknown_employee_is_404(client):
    resp = client.get("/api/employees/42/punches/today")

    assert resp.status_code == 404


def test_today_rejects_bad_date(client, world):
    world.enroll(1, "Alice", "11111111111", seed=1)

    resp = client.get("/api/employees/1/punches/today?date=10/03/2025")

    assert resp.status_code == 400


def test_sync_reports_each_item(client, world, capture):
    alice = world.enroll(1, "Alice", "11111111111", seed=1)
    world.clock[0] = world.clock[0].replace(hour=18)

    resp = client.post(
        "/api/punches/sync",
        json={
            "employee_id": 1,
            "punches": [
                {"id": "a", "timestamp": "2025-03-10T08:01:00", "template": capture(alice).tolist()},
                {"id": "b", "timestamp": "2025-03-01T08:01:00", "template": capture(alice).tolist()},
            ],
        },
    )

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is False
    assert [i["id"] for i in body["items"]] == ["b", "a"]
    assert body["synced"] == 1


def test_register_and_remove_face(client, world, template_factory):
    world.enroll(1, "Alice", "11111111111", seed=1)

    put = client.put("/api/employees/1/face", json={"template": template_factory(5).tolist()})
    assert put.status_code == 200
    assert put.get_json()["name"] == "Alice"

    assert client.delete("/api/employees/1/face").status_code == 200
    assert client.delete("/api/employees/1/face").status_code == 404


def test_cache_admin_routes(client, world):
    world.enroll(1, "Alice", "11111111111", seed=1)

    sync = client.post("/api/biometrics/cache/sync").get_json()
    assert sync == {"success": True, "synced": 1}

    stats = client.get("/api/biometrics/cache").get_json()
    assert stats["enrolled_count"] == 1

    assert client.delete("/api/biometrics/cache").get_json()["success"] is True
