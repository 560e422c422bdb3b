import json
import os


def test_events_are_open_to_record(client, telemetry_store):
    for _ in range(3):
        r = client.post("/api/analytics/event", json={"event": "view_category", "properties": {"category_name": "Desserts"}})
        assert r.status_code == 200
    assert r.json() == {"success": True, "event": "view_category", "count": 3}
    assert telemetry_store.event_count("category_Desserts") == 3


def test_reading_events_needs_admin(client, make_user, login_as):
    client.post("/api/analytics/event", json={"event": "add_to_cart", "properties": {"item": 1}})

    assert client.get("/api/analytics/event").status_code == 401
    login_as(make_user(role="manager"))
    assert client.get("/api/analytics/event").status_code == 403

    login_as(make_user(role="admin"))
    body = client.get("/api/analytics/event").json()
    assert body["event_counts"] == {"add_to_cart": 1}
    assert body["recent_events"][0]["properties"] == {"item": 1}

    r = client.get("/api/analytics/event", params={"type": "add_to_cart"})
    assert r.json() == {"success": True, "event_type": "add_to_cart", "count": 1}


def test_page_views(client, make_user, login_as):
    client.post("/api/analytics/pageview", json={"path": "/menu"})
    r = client.post("/api/analytics/pageview", json={"path": "/menu"})
    assert r.json() == {"success": True, "path": "/menu", "views": 2}

    assert client.post("/api/analytics/pageview", json={}).status_code == 400

    login_as(make_user(role="admin"))
    views = client.get("/api/analytics/pageview").json()["page_views"]
    assert views["/menu"]["count"] == 2


def test_performance_timings(client, make_user, login_as):
    r = client.post("/api/performance/timing", json={"page_load_time": 120, "url": "/menu", "time_to_first_byte": 30})
    assert r.json() == {"success": True, "recorded": True}
    client.post("/api/performance/timing", json={"page_load_time": 80, "url": "/"})

    r = client.post("/api/performance/timing", json={"page_load_time": 0, "url": "/"})
    assert r.status_code == 400
    assert r.json()["message"].startswith("page_load_time")

    login_as(make_user(role="admin"))
    body = client.get("/api/performance/timing", params={"path": "/menu"}).json()
    assert [t["url"] for t in body["recent_timings"]] == ["/menu"]
    assert {a["url"] for a in body["averages"]} == {"/menu", "/"}


def test_client_errors(client, make_user, login_as):
    for _ in range(2):
        client.post("/api/performance/error", json={"message": "TypeError: x is undefined", "url": "/menu"})
    client.post("/api/performance/error", json={"message": "Network error", "context": {"status": 502}})
    assert client.post("/api/performance/error", json={"stack": "no message"}).status_code == 400

    assert client.get("/api/performance/error").status_code == 401

    login_as(make_user(role="admin"))
    body = client.get("/api/performance/error").json()
    assert body["total_errors"] == 3
    assert body["most_common_errors"][0] == {"message": "TypeError: x is undefined", "count": 2}
    assert body["recent_errors"][0]["context"] == {"status": 502}


def test_wrong_shaped_file_does_not_break_recording(client, telemetry_store):
    os.makedirs(telemetry_store.directory, exist_ok=True)
    with open(telemetry_store.path, "w", encoding="utf-8") as fh:
        json.dump({"page_views": [], "events": {"records": None}}, fh)

    r = client.post("/api/analytics/pageview", json={"path": "/menu"})
    assert r.status_code == 200
    assert r.json()["views"] == 1
    assert client.post("/api/analytics/event", json={"event": "click"}).json()["count"] == 1
