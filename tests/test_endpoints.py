# tests/test_endpoints.py
"""
End-to-end behaviour of /, /cache and /history against SQLite + fakeredis.
"""
import datetime

from koronet.cache import LAST_REQUEST_KEY


def _parse_iso(ts):
    assert ts.endswith("Z")
    return datetime.datetime.fromisoformat(ts[:-1])


def test_root_greets_and_reports_services(client):
    r = client.get("/")
    assert r.status_code == 200
    j = r.json()
    assert j["message"] == "Hi Koronet Team."
    assert j["services"] == {"database": "PostgreSQL", "cache": "Redis"}
    _parse_iso(j["timestamp"])


def test_root_sets_marker_with_one_hour_ttl(client, fake_redis):
    ts = client.get("/").json()["timestamp"]
    assert fake_redis.get(LAST_REQUEST_KEY) == ts
    assert 0 < fake_redis.ttl(LAST_REQUEST_KEY) <= 3600


def test_cache_empty_before_any_request(client):
    r = client.get("/cache")
    assert r.status_code == 200
    j = r.json()
    assert j["lastRequest"] is None
    _parse_iso(j["timestamp"])


def test_cache_returns_last_root_timestamp(client):
    ts = client.get("/").json()["timestamp"]
    r = client.get("/cache")
    assert r.status_code == 200
    assert r.json()["lastRequest"] == ts


def test_history_empty(client):
    r = client.get("/history")
    assert r.status_code == 200
    j = r.json()
    assert j["requests"] == []
    _parse_iso(j["timestamp"])


def test_three_calls_history_and_cache(client):
    stamps = [client.get("/").json()["timestamp"] for _ in range(3)]

    r = client.get("/history")
    assert r.status_code == 200
    reqs = r.json()["requests"]
    assert [x["timestamp"] for x in reqs] == list(reversed(stamps))
    assert all(x["endpoint"] == "/" for x in reqs)

    assert client.get("/cache").json()["lastRequest"] == stamps[-1]


def test_history_caps_at_ten_newest_first(client):
    stamps = [client.get("/").json()["timestamp"] for _ in range(12)]
    reqs = client.get("/history").json()["requests"]
    assert len(reqs) == 10
    assert reqs[0]["timestamp"] == stamps[-1]
    assert reqs[0]["endpoint"] == "/"
    parsed = [_parse_iso(x["timestamp"]) for x in reqs]
    assert parsed == sorted(parsed, reverse=True)


def test_security_headers_present(client):
    r = client.get("/cache")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert "Strict-Transport-Security" not in r.headers


def test_cors_allows_any_origin_by_default(client):
    r = client.get("/cache", headers={"Origin": "http://example.com"})
    assert r.headers.get("access-control-allow-origin") == "*"
