from storefront import config
from storefront.health import service as health_service


def test_health_root(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}

def test_health_supabase_reports_each_table(client, store, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_URL", "")
    monkeypatch.setattr(health_service, "create_service_client", lambda: store)
    store.fail("orders", "select", message="permission denied")

    data = client.get("/health/supabase").json()
    assert data["connect_ok"] is True
    assert data["dns_ok"] is None
    assert data["tables"]["products"] == {"ok": True, "rows": 1}
    assert data["tables"]["processed_checkout_sessions"] == {"ok": True, "rows": 0}
    assert data["tables"]["orders"]["ok"] is False

def test_health_supabase_without_configuration(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_URL", "")
    monkeypatch.setattr(config, "SUPABASE_SERVICE_KEY", "")
    data = client.get("/health/supabase").json()
    assert data["connect_ok"] is False
    assert data["error"] == "SUPABASE_URL manquant"
    assert data["tables"] == {}

def test_health_rate_limit_disabled_in_tests(client):
    data = client.get("/health/rate-limit").json()
    assert data["enabled"] is False

def test_security_headers(client):
    res = client.get("/health")
    assert res.headers["X-Frame-Options"] == "DENY"
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    csp = res.headers["Content-Security-Policy"]
    assert "https://js.stripe.com" in csp
    assert "https://api.stripe.com" in csp

def test_forwarded_http_is_redirected_to_https(client):
    res = client.get("/health", headers={"x-forwarded-proto": "http"}, follow_redirects=False)
    assert res.status_code == 301
    assert res.headers["location"].startswith("https://")

def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/v1/nope")
    assert res.status_code == 404
    assert "error" in res.json()
