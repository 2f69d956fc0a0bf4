from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_ahrefs_service, get_bron_service, get_dataforseo_service
from app.main import app
from app.services.ahrefs_service import AhrefsService
from app.services.bron_service import BronService
from app.services.dataforseo_service import DataForSEOService, resolve_action


def _ahrefs(handler) -> AhrefsService:
    return AhrefsService(api_key="ahrefs-key", transport=httpx.MockTransport(handler))


def _bron(handler) -> BronService:
    return BronService(
        api_id="id",
        api_key="key",
        api_secret="secret",
        transport=httpx.MockTransport(handler),
    )


# Ahrefs


def test_domain_audit_requires_domain(client: TestClient) -> None:
    resp = client.post("/api/v1/domain-audit", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Domain is required"}


def test_domain_audit_without_key_is_soft_error(client: TestClient) -> None:
    resp = client.post("/api/v1/domain-audit", json={"domain": "example.com"})
    assert resp.status_code == 200
    assert resp.json() == {"ahrefs": None, "ahrefsError": "Ahrefs API key not configured"}


def test_domain_audit_combines_rating_and_metrics(client: TestClient) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/domain-rating"):
            return httpx.Response(200, json={"domain_rating": {"domain_rating": 71.0}})
        return httpx.Response(
            200,
            json={"metrics": {"backlinks": 900, "refdomains": 80, "org_traffic": 4321.5, "org_keywords": 210}},
        )

    app.dependency_overrides[get_ahrefs_service] = lambda: _ahrefs(handler)

    resp = client.post("/api/v1/domain-audit", json={"domain": "https://www.example.com/about"})
    assert resp.status_code == 200
    assert resp.json() == {
        "ahrefs": {
            "domainRating": 71.0,
            "backlinks": 900,
            "referringDomains": 80,
            "organicTraffic": 4321.5,
            "organicKeywords": 210,
        },
        "ahrefsError": None,
    }
    assert seen[0].url.params["target"] == "example.com"
    assert seen[0].headers["authorization"] == "Bearer ahrefs-key"


@pytest.mark.parametrize(
    "status,message",
    [
        (401, "Invalid Ahrefs API key"),
        (403, "Ahrefs API access denied - check your subscription"),
        (429, "Ahrefs API rate limit exceeded"),
        (500, "Ahrefs API error: 500"),
    ],
)
def test_domain_audit_maps_upstream_errors(client: TestClient, status: int, message: str) -> None:
    app.dependency_overrides[get_ahrefs_service] = lambda: _ahrefs(
        lambda request: httpx.Response(status, text="nope")
    )

    resp = client.post("/api/v1/domain-audit", json={"domain": "example.com"})
    assert resp.status_code == 200
    assert resp.json() == {"ahrefs": None, "ahrefsError": message}


# DataForSEO proxy


def test_resolve_action_maps_named_actions() -> None:
    assert resolve_action("backlinks_summary", data=[{"target": "a.com"}]) == (
        "POST",
        "/backlinks/summary/live",
        [{"target": "a.com"}],
    )
    assert resolve_action("user_data", data={"ignored": True}) == ("GET", "/appendix/user_data", None)


def test_resolve_action_special_cases() -> None:
    assert resolve_action("onpage_summary", data={"task_id": "abc"}) == (
        "GET",
        "/on_page/summary/abc",
        None,
    )
    assert resolve_action("custom", endpoint="serp/id_list") == ("GET", "/serp/id_list", None)
    assert resolve_action("custom", endpoint="/x/live", data=[{}]) == ("POST", "/x/live", [{}])


@pytest.mark.parametrize(
    "action,endpoint,data",
    [
        ("nope", None, None),
        ("custom", None, None),
        ("onpage_summary", None, {}),
    ],
)
def test_resolve_action_rejects_bad_input(action, endpoint, data) -> None:
    with pytest.raises(ValueError):
        resolve_action(action, endpoint, data)


def test_dataforseo_proxy_without_credentials(client: TestClient) -> None:
    resp = client.post("/api/v1/dataforseo", json={"action": "user_data"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "DataForSEO credentials not configured"}


def test_dataforseo_proxy_passes_response_through(client: TestClient) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"status_code": 20100, "tasks": []})

    service = DataForSEOService(login="l", password="p", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_dataforseo_service] = lambda: service

    resp = client.post(
        "/api/v1/dataforseo",
        json={"action": "backlinks_summary", "data": [{"target": "example.com"}]},
    )
    assert resp.status_code == 202
    assert resp.json() == {"status_code": 20100, "tasks": []}
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/v3/backlinks/summary/live"
    assert json.loads(seen[0].content) == [{"target": "example.com"}]


def test_dataforseo_proxy_unknown_action(client: TestClient) -> None:
    service = DataForSEOService(
        login="l", password="p", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))
    )
    app.dependency_overrides[get_dataforseo_service] = lambda: service

    resp = client.post("/api/v1/dataforseo", json={"action": "nope"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Unknown action: nope"}


# BRON


def test_bron_requires_domain_and_endpoint(client: TestClient) -> None:
    assert client.post("/api/v1/bron", json={"endpoint": "articles"}).status_code == 400
    assert client.post("/api/v1/bron", json={"domain": "example.com"}).status_code == 400


def test_bron_without_credentials(client: TestClient) -> None:
    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "articles"})
    assert resp.status_code == 500


def test_bron_success_wraps_feed(client: TestClient) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"title": "Post"}])

    app.dependency_overrides[get_bron_service] = lambda: _bron(handler)

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "articles"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": [{"title": "Post"}], "endpoint": "articles"}
    assert seen[0].url.path == "/feed/Article.php"
    assert seen[0].url.params["feedit"] == "1"
    assert seen[0].url.params["domain"] == "example.com"
    assert seen[0].url.params["kkyy"] == "secret"


def test_bron_rate_limit_is_soft(client: TestClient) -> None:
    app.dependency_overrides[get_bron_service] = lambda: _bron(
        lambda request: httpx.Response(429, headers={"Retry-After": "17"})
    )

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "rankings"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is False
    assert payload["rateLimited"] is True
    assert payload["retryAfter"] == 17
    assert payload["error"] == "rate limited, retry after 17 seconds"


def test_bron_non_json_body_is_wrapped(client: TestClient) -> None:
    app.dependency_overrides[get_bron_service] = lambda: _bron(
        lambda request: httpx.Response(200, text="<html>feed</html>")
    )

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "stats"})
    assert resp.json()["data"] == {"raw": "<html>feed</html>", "parsed": False}


def test_bron_upstream_error_status_passes_through(client: TestClient) -> None:
    app.dependency_overrides[get_bron_service] = lambda: _bron(
        lambda request: httpx.Response(503, text="down")
    )

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "links"})
    assert resp.status_code == 503
    assert resp.json() == {"error": "API returned 503", "details": "down", "endpoint": "links"}


def test_bron_timeout_returns_504(client: TestClient) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    app.dependency_overrides[get_bron_service] = lambda: _bron(handler)

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "articles"})
    assert resp.status_code == 504


def test_bron_rejects_unsafe_endpoint(client: TestClient) -> None:
    app.dependency_overrides[get_bron_service] = lambda: _bron(
        lambda request: httpx.Response(200, json={})
    )

    resp = client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "../admin"})
    assert resp.status_code == 400


def test_bron_unknown_endpoint_uses_php_script() -> None:
    service = _bron(lambda request: httpx.Response(200, json={}))
    assert service.build_url("Custom_Feed") == "https://public.imagehosting.space/feed/Custom_Feed.php"


def test_bron_fixed_feed_params_only_on_their_feed(client: TestClient) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    app.dependency_overrides[get_bron_service] = lambda: _bron(handler)

    client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "articles"})
    client.post("/api/v1/bron", json={"domain": "example.com", "endpoint": "backlinks"})

    assert dict(seen[0].url.params) == {
        "feedit": "1",
        "domain": "example.com",
        "apiid": "id",
        "apikey": "key",
        "kkyy": "secret",
    }
    assert seen[1].url.path == "/feed/Backlink.php"
    assert "feedit" not in seen[1].url.params


def test_domain_audit_non_object_body_is_soft_error(client: TestClient) -> None:
    app.dependency_overrides[get_ahrefs_service] = lambda: _ahrefs(
        lambda request: httpx.Response(200, json=[71])
    )

    resp = client.post("/api/v1/domain-audit", json={"domain": "example.com"})
    assert resp.status_code == 200
    assert resp.json() == {"ahrefs": None, "ahrefsError": "Unexpected Ahrefs response format"}


def test_domain_audit_bad_metric_value_is_soft_error(client: TestClient) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/domain-rating"):
            return httpx.Response(200, json={"domain_rating": 50})
        return httpx.Response(200, json={"metrics": {"backlinks": 12.5}})

    app.dependency_overrides[get_ahrefs_service] = lambda: _ahrefs(handler)

    resp = client.post("/api/v1/domain-audit", json={"domain": "example.com"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["ahrefs"] is None
    assert payload["ahrefsError"]
