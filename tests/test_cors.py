from starlette.requests import Request

from app.features.storage import route
from app.features.storage.cors import build_cors_headers, is_preflight_request

ROUTES = {"images": route(file_types=["image/*"], max_file_size=1000)}

PREFLIGHT_HEADERS = {
    "Origin": "https://app.example.com",
    "Access-Control-Request-Method": "POST",
    "Access-Control-Request-Headers": "content-type",
}


def _request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "POST", "headers": raw})


def test_origin_echoed_with_credentials():
    headers = build_cors_headers(_request({"Origin": "https://app.example.com"}))
    assert headers == {
        "Access-Control-Allow-Origin": "https://app.example.com",
        "Access-Control-Allow-Methods": "POST",
        "Access-Control-Allow-Headers": "Content-Type, Digest, Authorization",
        "Access-Control-Max-Age": "86400",
        "Vary": "origin",
        "Access-Control-Allow-Credentials": "true",
    }


def test_fallback_origin_used_without_origin_header():
    headers = build_cors_headers(_request({}), fallback="https://site.example.com")
    assert headers["Access-Control-Allow-Origin"] == "https://site.example.com"
    assert headers["Access-Control-Allow-Credentials"] == "true"


def test_wildcard_origin_has_no_credentials():
    headers = build_cors_headers(_request({}))
    assert headers["Access-Control-Allow-Origin"] == "*"
    assert "Access-Control-Allow-Credentials" not in headers
    assert headers["Vary"] == "origin"


def test_preflight_requires_all_three_headers():
    assert is_preflight_request(_request(PREFLIGHT_HEADERS))
    for missing in PREFLIGHT_HEADERS:
        partial = {k: v for k, v in PREFLIGHT_HEADERS.items() if k != missing}
        assert not is_preflight_request(_request(partial))


def test_options_preflight_returns_cors_headers(make_client):
    client = make_client(ROUTES)
    r = client.options("/storage/images/upload", headers=PREFLIGHT_HEADERS)
    assert r.status_code == 200
    assert r.content == b""
    assert r.headers["access-control-allow-origin"] == "https://app.example.com"
    assert r.headers["access-control-allow-methods"] == "POST"
    assert r.headers["access-control-max-age"] == "86400"
    assert r.headers["access-control-allow-credentials"] == "true"


def test_options_without_preflight_headers_is_bare(make_client):
    client = make_client(ROUTES)
    r = client.options("/storage/images/upload", headers={"Origin": "https://app.example.com"})
    assert r.status_code == 200
    assert r.content == b""
    assert "access-control-allow-origin" not in r.headers
