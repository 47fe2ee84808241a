from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_endpoint(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_calendar_routes_require_session(client: TestClient) -> None:
    response = client.get("/api/v1/calendar/1403/1")

    assert response.status_code == 401
    assert response.json() == {"detail": "Missing bearer token.", "code": "unauthenticated"}


def test_calendar_month_lists_days(client: TestClient, make_user, auth_headers) -> None:
    headers = auth_headers(make_user("supervisor"))

    response = client.get("/api/v1/calendar/1403/12", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["days_in_month"] == 29
    assert body["days"][0] == {
        "day": 1,
        "date": "1403-12-01",
        "weekday": "جمعه",
        "is_holiday": True,
        "is_official_holiday": False,
        "holiday_title": None,
    }

    assert client.get("/api/v1/calendar/1403/13", headers=headers).status_code == 422
    assert client.get("/api/v1/calendar/today", headers=headers).status_code == 200
