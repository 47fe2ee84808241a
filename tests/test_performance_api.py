from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from shiftlog.models.entities import UserRole


def _setup_supervisor(client: TestClient, headers: dict[str, str]) -> list[str]:
    profile = client.put(
        "/api/v1/base-profile",
        headers=headers,
        json={
            "supervisor_name": "Sara Karimi",
            "supervisor_national_id": "0012345678",
            "base_name": "Base 101",
            "base_number": "101",
            "base_type": "urban",
        },
    )
    assert profile.status_code == 200
    assert profile.json()["is_complete"] is True

    personnel_ids = []
    for first, last in [("Ali", "Rezaei"), ("Mina", "Saberi")]:
        guest = client.post("/api/v1/personnel/guest", headers=headers, json={"first_name": first, "last_name": last})
        assert guest.status_code == 201
        assert guest.json()["employment_status"] == "temporary"
        assert guest.json()["national_id"].startswith("guest-")
        personnel_ids.append(guest.json()["id"])
    return personnel_ids


def test_period_lookup_auto_creates_single_log(client: TestClient, make_user, auth_headers, work_shifts) -> None:
    headers = auth_headers(make_user("supervisor"))
    _setup_supervisor(client, headers)

    first = client.get("/api/v1/performance-logs/period/1403/7", headers=headers)
    second = client.get("/api/v1/performance-logs/period/1403/7", headers=headers)

    assert first.status_code == 200
    assert first.json()["status"] == "draft"
    assert first.json()["submitted_at"] is None
    assert second.json()["id"] == first.json()["id"]

    duplicate = client.post("/api/v1/performance-logs", headers=headers, json={"year": 1403, "month": 7})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "duplicate_period"

    listed = client.get("/api/v1/performance-logs", headers=headers, params={"year": 1403})
    assert [row["id"] for row in listed.json()["items"]] == [first.json()["id"]]


def test_period_lookup_requires_complete_profile(client: TestClient, make_user, auth_headers) -> None:
    headers = auth_headers(make_user("newcomer"))

    response = client.get("/api/v1/performance-logs/period/1403/7", headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "incomplete_profile"


def test_batch_save_grid_and_finalize_flow(client: TestClient, make_user, auth_headers, work_shifts) -> None:
    supervisor = make_user("supervisor")
    headers = auth_headers(supervisor)
    ali_id, mina_id = _setup_supervisor(client, headers)
    shift_id = str(work_shifts["345"].id)
    log_id = client.get("/api/v1/performance-logs/period/1403/7", headers=headers).json()["id"]

    saved = client.post(
        f"/api/v1/performance-logs/{log_id}/entries/batch",
        headers=headers,
        json={
            "entries": [
                {"personnel_id": ali_id, "shift_id": shift_id, "date": "1403-07-01", "entry_type": "batch"},
                {"personnel_id": ali_id, "entry_type": "summary", "missions": 6, "meals": 2},
                {"personnel_id": mina_id, "entry_type": "summary", "missions": 1, "meals": 1},
            ]
        },
    )
    assert saved.status_code == 200
    assert saved.json()["saved_entries"] == 3
    entry_id = saved.json()["items"][0]["id"]

    grid = client.get(f"/api/v1/performance-logs/{log_id}/grid", headers=headers)
    assert grid.status_code == 200
    assert grid.json()["stats"]["total_missions"] == 7
    assert grid.json()["stats"]["total_assigned_shifts"] == 1
    assert len(grid.json()["days"]) == 30

    patched = client.patch(f"/api/v1/performance-entries/{entry_id}", headers=headers, json={"missions": 2})
    assert patched.status_code == 200
    assert patched.json()["missions"] == 2

    finalized = client.post(f"/api/v1/performance-logs/{log_id}/finalize", headers=headers)
    assert finalized.status_code == 200
    assert finalized.json()["status"] == "finalized"
    assert finalized.json()["submitted_at"] is not None

    again = client.post(f"/api/v1/performance-logs/{log_id}/finalize", headers=headers)
    assert again.status_code == 409
    assert again.json()["code"] == "already_finalized"

    locked_entry = client.patch(f"/api/v1/performance-entries/{entry_id}", headers=headers, json={"meals": 3})
    assert locked_entry.status_code == 409
    assert locked_entry.json()["code"] == "immutable_entry"

    locked_log = client.post(
        f"/api/v1/performance-logs/{log_id}/entries/batch",
        headers=headers,
        json={"entries": [{"personnel_id": mina_id, "shift_id": shift_id, "date": "1403-07-02"}]},
    )
    assert locked_log.status_code == 409
    assert locked_log.json()["code"] == "immutable_log"

    entries = client.get(f"/api/v1/performance-logs/{log_id}/entries", headers=headers)
    assert all(item["is_finalized"] for item in entries.json()["items"])

    by_user = client.get("/api/v1/performance-entries", headers=headers, params={"year": 1403, "month": 7})
    assert len(by_user.json()["items"]) == 3


def test_other_users_cannot_touch_log(client: TestClient, make_user, auth_headers, work_shifts) -> None:
    headers = auth_headers(make_user("supervisor"))
    ali_id, _ = _setup_supervisor(client, headers)
    log_id = client.get("/api/v1/performance-logs/period/1403/7", headers=headers).json()["id"]
    intruder = auth_headers(make_user("intruder"))
    admin = auth_headers(make_user("root", role=UserRole.ADMIN))
    payload = {"entries": [{"personnel_id": ali_id, "shift_id": str(work_shifts["273"].id), "date": "1403-07-03"}]}

    for headers_ in (intruder, admin):
        assert client.post(f"/api/v1/performance-logs/{log_id}/finalize", headers=headers_).status_code == 403
        batch = client.post(f"/api/v1/performance-logs/{log_id}/entries/batch", headers=headers_, json=payload)
        assert batch.status_code == 403
        assert batch.json()["code"] == "forbidden"

        notes = client.patch(f"/api/v1/performance-logs/{log_id}", headers=headers_, json={"notes": "hijacked"})
        assert notes.status_code == 403

    log = client.get(f"/api/v1/performance-logs/{log_id}", headers=headers).json()
    assert (log["status"], log["submitted_at"], log["notes"]) == ("draft", None, None)
    assert client.get(f"/api/v1/performance-logs/{log_id}/entries", headers=headers).json()["items"] == []

    assert client.get(f"/api/v1/performance-logs/{log_id}", headers=intruder).status_code == 403
    assert client.get(f"/api/v1/performance-logs/{log_id}/grid", headers=admin).status_code == 200


def test_entry_validation_errors_map_to_422(client: TestClient, make_user, auth_headers, work_shifts) -> None:
    headers = auth_headers(make_user("supervisor"))
    ali_id, _ = _setup_supervisor(client, headers)
    log_id = client.get("/api/v1/performance-logs/period/1403/7", headers=headers).json()["id"]

    out_of_month = client.post(
        f"/api/v1/performance-logs/{log_id}/entries",
        headers=headers,
        json={"personnel_id": ali_id, "shift_id": str(work_shifts["273"].id), "date": "1403-08-01"},
    )
    assert out_of_month.status_code == 422
    assert out_of_month.json()["code"] == "invalid_input"

    created = client.post(
        f"/api/v1/performance-logs/{log_id}/entries",
        headers=headers,
        json={"personnel_id": ali_id, "shift_id": str(work_shifts["273"].id), "date": "1403-07-01"},
    )
    assert created.status_code == 201
    assert created.json()["entry_type"] == "cell"
    assert created.json()["missions"] == 0

    negative = client.patch(
        f"/api/v1/performance-entries/{created.json()['id']}",
        headers=headers,
        json={"missions": -3},
    )
    assert negative.status_code == 422

    deleted = client.delete(f"/api/v1/performance-entries/{created.json()['id']}", headers=headers)
    assert deleted.status_code == 204
    missing = client.delete(f"/api/v1/performance-entries/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404


def test_notes_update(client: TestClient, make_user, auth_headers) -> None:
    headers = auth_headers(make_user("supervisor"))
    _setup_supervisor(client, headers)
    log_id = client.get("/api/v1/performance-logs/period/1403/1", headers=headers).json()["id"]

    response = client.patch(f"/api/v1/performance-logs/{log_id}", headers=headers, json={"notes": "two guests"})

    assert response.status_code == 200
    assert response.json()["notes"] == "two guests"
