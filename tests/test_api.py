from fastapi.testclient import TestClient

# import the FastAPI app
from app.main import app
from app.storage_routes import routes

client = TestClient(app)


def test_root_lists_upload_prefix():
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["upload_prefix"] == "/storage"


def test_health_reports_registered_routes():
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()["data"]
    assert set(data["routes"]) == {"imagePost", "documents"}
    assert data["status"] in ("healthy", "unhealthy")


def test_upload_endpoints_registered():
    paths = {(route.path, method) for route in app.routes for method in getattr(route, "methods", ())}
    for name in routes:
        assert (f"/storage/{name}/upload", "POST") in paths
        assert (f"/storage/{name}/upload", "OPTIONS") in paths


def test_example_routes_policy():
    assert routes["imagePost"].file_types == ["image/*"]
    assert routes["imagePost"].max_file_count == 10
    assert routes["documents"].require_auth is True
