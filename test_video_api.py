import pytest
from fastapi.testclient import TestClient

from video_funnel.core.config import settings
from video_funnel.crud import crud_event
from video_funnel.db.session import get_db
from video_funnel.main import app

ADMIN_HEADERS = {"X-API-Key": settings.MIDDLEWARE_API_KEY}


@pytest.fixture
def client(db_session_factory):
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_current_video_is_null_without_config(client):
    response = client.get("/api/video/current")
    assert response.status_code == 200
    assert response.json() == {"video": None}
    assert response.headers["X-Request-ID"].startswith("req_")


def test_admin_requires_api_key(client):
    assert client.get("/api/admin/video").status_code == 422
    response = client.post(
        "/api/admin/video",
        json={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        headers={"X-API-Key": "wrong"},
    )
    assert response.status_code == 401


def test_save_video_uses_admin_defaults(client):
    response = client.post(
        "/api/admin/video",
        json={"video_url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 200
    saved = response.json()["video"]
    assert saved["video_type"] == "youtube"
    assert saved["button_delay_seconds"] == 90
    assert saved["is_active"] is True

    current = client.get("/api/video/current").json()["video"]
    assert current["id"] == saved["id"]
    assert current["video_url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def test_new_video_replaces_active_one(client):
    first = client.post(
        "/api/admin/video",
        json={"video_url": "https://youtu.be/dQw4w9WgXcQ", "video_type": "youtube", "button_delay_seconds": 30},
        headers=ADMIN_HEADERS,
    ).json()["video"]
    second = client.post(
        "/api/admin/video",
        json={"video_url": "https://vimeo.com/1142286537", "video_type": "vimeo", "button_delay_seconds": 120},
        headers=ADMIN_HEADERS,
    ).json()["video"]

    current = client.get("/api/video/current").json()["video"]
    assert current["id"] == second["id"] != first["id"]
    assert current["video_type"] == "vimeo"
    assert current["button_delay_seconds"] == 120

    admin_view = client.get("/api/admin/video", headers=ADMIN_HEADERS).json()["video"]
    assert admin_view["id"] == second["id"]


def test_unknown_video_type_is_stored_as_youtube(client):
    response = client.post(
        "/api/admin/video",
        json={"video_url": "https://youtu.be/dQw4w9WgXcQ", "video_type": "dailymotion"},
        headers=ADMIN_HEADERS,
    )
    assert response.json()["video"]["video_type"] == "youtube"


def test_blank_url_is_rejected(client):
    response = client.post("/api/admin/video", json={"video_url": "   "}, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert client.post("/api/admin/video", json={"video_url": ""}, headers=ADMIN_HEADERS).status_code == 422


def test_delete_video(client):
    saved = client.post(
        "/api/admin/video",
        json={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        headers=ADMIN_HEADERS,
    ).json()["video"]

    response = client.delete(f"/api/admin/video/{saved['id']}", headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert client.get("/api/video/current").json() == {"video": None}

    missing = client.delete(f"/api/admin/video/{saved['id']}", headers=ADMIN_HEADERS)
    assert missing.status_code == 404


def test_track_event_is_stored(client, db_session_factory):
    response = client.post(
        "/api/analytics/event",
        json={
            "visitorId": "v_1",
            "eventType": "cta_unlocked",
            "eventData": {"video_id": "1142286537", "video_type": "vimeo"},
            "sessionId": "s_1",
        },
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    db = db_session_factory()
    try:
        events = crud_event.get_events(db, event_type="cta_unlocked")
    finally:
        db.close()
    assert len(events) == 1
    assert events[0].visitor_id == "v_1"
    assert events[0].event_data == {"video_id": "1142286537", "video_type": "vimeo"}


@pytest.mark.parametrize("header", ["DNT", "Sec-GPC"])
def test_track_event_respects_do_not_track(client, db_session_factory, header):
    response = client.post(
        "/api/analytics/event",
        json={"eventType": "video_play_start"},
        headers={header: "1"},
    )
    assert response.json() == {"success": True, "message": "DNT respetado"}

    db = db_session_factory()
    try:
        assert crud_event.get_events(db) == []
    finally:
        db.close()


def test_list_events_requires_api_key(client):
    client.post("/api/analytics/event", json={"eventType": "video_play_start"})

    assert client.get("/api/admin/events", headers={"X-API-Key": "wrong"}).status_code == 401
    events = client.get("/api/admin/events", headers=ADMIN_HEADERS).json()
    assert [e["event_type"] for e in events] == ["video_play_start"]


def test_health_checks_database(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["services"]["database"]["status"] == "ok"


def test_metrics_expose_engagement_counter(client):
    client.post("/api/analytics/event", json={"eventType": "video_play_start"})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert 'engagement_events_total{event_type="video_play_start"}' in response.text


def test_metrics_expose_request_series(client):
    assert client.get("/").status_code == 200

    body = client.get("/metrics").text
    assert 'api_requests_total{method="GET",endpoint="/",status_code="200"}' in body
    assert 'api_request_duration_seconds_count{method="GET",endpoint="/"}' in body


def test_health_timestamp_is_timezone_aware(client):
    timestamp = client.get("/api/health").json()["timestamp"]
    assert timestamp.endswith("+00:00")
