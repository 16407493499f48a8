import pytest
from starlette.testclient import TestClient

from echospace.api.app import app
from echospace.storage.memory import InMemoryFragmentStore

from conftest import ORIGIN, point_at


@pytest.fixture
def client(monkeypatch):
    # Patch the cached store factory so each test starts from an empty store.
    import echospace.api.routes as routes

    store = InMemoryFragmentStore()
    monkeypatch.setattr(routes, "_store", lambda: store)
    with TestClient(app) as c:
        yield c


def _body(bearing: float = 0, distance: float = 10, **overrides) -> dict:
    p = point_at(ORIGIN, bearing, distance)
    body = {
        "title": "Echo",
        "content": "A voice from the river.",
        "category": "story",
        "latitude": p.lat,
        "longitude": p.lng,
        "locationName": "Riverfront",
        "author": "Sam",
        "tags": ["river"],
    }
    body.update(overrides)
    return body


def test_create_get_like_delete_roundtrip(client):
    resp = client.post("/api/fragments", json=_body(imageUrl="https://example.com/x.jpg"))
    assert resp.status_code == 201
    created = resp.json()
    assert created["likes"] == 0
    assert created["locationName"] == "Riverfront"
    assert created["imageUrl"] == "https://example.com/x.jpg"
    fid = created["id"]

    assert client.get(f"/api/fragments/{fid}").json()["title"] == "Echo"
    assert client.post(f"/api/fragments/{fid}/like").json()["likes"] == 1

    patched = client.patch(f"/api/fragments/{fid}", json={"title": "Echoes"})
    assert patched.status_code == 200
    assert patched.json()["title"] == "Echoes"
    assert patched.json()["likes"] == 1

    assert client.delete(f"/api/fragments/{fid}").status_code == 204
    missing = client.get(f"/api/fragments/{fid}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "NOT_FOUND"


def test_invalid_fragment_is_rejected(client):
    resp = client.post("/api/fragments", json=_body(latitude=123.0))
    assert resp.status_code == 422
    resp = client.post("/api/fragments", json={"title": "only a title"})
    assert resp.status_code == 422


def test_patch_cannot_lower_likes(client):
    fid = client.post("/api/fragments", json=_body()).json()["id"]
    client.post(f"/api/fragments/{fid}/like")
    resp = client.patch(f"/api/fragments/{fid}", json={"likes": 0})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_like_missing_fragment_is_404(client):
    assert client.post("/api/fragments/nope/like").status_code == 404
    assert client.delete("/api/fragments/nope").status_code == 404


def test_list_filters_by_search_category_and_km_radius(client):
    client.post("/api/fragments", json=_body(0, 100, title="Near story"))
    client.post("/api/fragments", json=_body(90, 800, title="Mid mystery", category="mystery"))
    client.post("/api/fragments", json=_body(180, 5000, title="Far story"))

    assert len(client.get("/api/fragments").json()) == 3
    assert [f["title"] for f in client.get("/api/fragments", params={"category": "mystery"}).json()] == [
        "Mid mystery"
    ]
    assert [f["title"] for f in client.get("/api/fragments", params={"search": "far"}).json()] == ["Far story"]

    params = {"lat": ORIGIN.lat, "lng": ORIGIN.lng, "radius": 1}
    titles = sorted(f["title"] for f in client.get("/api/fragments", params=params).json())
    assert titles == ["Mid mystery", "Near story"]


def test_discovery_feed(client):
    client.post("/api/fragments", json=_body(0, 400, title="Close"))
    client.post("/api/fragments", json=_body(0, 100, title="Closer"))
    client.post("/api/fragments", json=_body(0, 2000, title="Far"))

    feed = client.get("/api/discovery", params={"lat": ORIGIN.lat, "lng": ORIGIN.lng, "sort": "nearest"}).json()
    assert feed["locationEnabled"] is True
    assert feed["totalCount"] == 3
    assert feed["nearbyCount"] == 2
    assert [f["title"] for f in feed["fragments"]] == ["Closer", "Close", "Far"]

    offline = client.get("/api/discovery").json()
    assert offline["locationEnabled"] is False
    assert offline["nearbyCount"] == 0
    assert all(f["distance"] is None for f in offline["fragments"])


def test_ar_frame_endpoint(client):
    client.post("/api/fragments", json=_body(10, 50, title="Ahead"))
    client.post("/api/fragments", json=_body(200, 80, title="Behind"))
    client.post("/api/fragments", json=_body(0, 300, title="Too far"))

    body = {
        "location": {"lat": ORIGIN.lat, "lng": ORIGIN.lng},
        "orientation": {"heading": 0},
        "arActive": True,
    }
    frame = client.post("/api/ar/frame", json=body).json()
    assert frame["active"] is True
    assert frame["nearbyCount"] == 2
    (marker,) = frame["markers"]
    assert marker["title"] == "Ahead"
    assert marker["screenX"] == pytest.approx(70, abs=1e-3)
    assert marker["screenY"] == pytest.approx(35, abs=1e-3)
    assert marker["color"] == "#F59E0B"

    empty = client.post("/api/ar/frame", json={"orientation": {"heading": 0}}).json()
    assert empty == {"active": False, "nearbyCount": 0, "heading": 0.0, "markers": []}


def test_map_markers_and_categories(client):
    client.post("/api/fragments", json=_body(category="lore"))
    doc = client.get("/api/map/markers", params={"lat": ORIGIN.lat, "lng": ORIGIN.lng}).json()
    kinds = sorted(f["properties"]["kind"] for f in doc["features"])
    assert kinds == ["accuracy", "fragment", "user"]

    cats = client.get("/api/categories").json()
    assert [c["value"] for c in cats["categories"]] == ["story", "memory", "lore", "mystery", "history"]
    assert cats["default"]["color"] == "#6B7280"


def test_bad_coordinates_are_a_client_error(client):
    resp = client.get("/api/discovery", params={"lat": 95, "lng": 0})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_public_settings_expose_thresholds(client):
    data = client.get("/api/settings").json()
    assert data["proximity"] == {"ar_radius_m": 100.0, "nearby_radius_m": 500.0}
    assert data["ar"]["cone_half_angle_deg"] == 60.0


def test_ar_frame_ignores_an_old_location_fix(client):
    client.post("/api/fragments", json=_body(10, 50, title="Ahead"))
    body = {
        "location": {"lat": ORIGIN.lat, "lng": ORIGIN.lng, "timestamp": "2000-01-01T00:00:00Z"},
        "orientation": {"heading": 0},
    }
    frame = client.post("/api/ar/frame", json=body).json()
    assert frame["active"] is False
    assert frame["markers"] == []


def test_category_filter_ignores_case(client):
    client.post("/api/fragments", json=_body(0, 100, title="Near story"))
    client.post("/api/fragments", json=_body(0, 200, title="Near lore", category="lore"))

    assert [f["title"] for f in client.get("/api/fragments", params={"category": "Story"}).json()] == [
        "Near story"
    ]
    params = {"lat": ORIGIN.lat, "lng": ORIGIN.lng, "radius": 1, "category": " LORE "}
    assert [f["title"] for f in client.get("/api/fragments", params=params).json()] == ["Near lore"]
