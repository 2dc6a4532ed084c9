import hashlib
import hmac
import json
import os
import time
from types import SimpleNamespace
from typing import Any, Dict, Generator, List

# Avant tout import de l'app: pas de Redis ni de .env requis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
import stripe
from fastapi.testclient import TestClient

from storefront import config
from storefront.app import app as fastapi_app
from storefront.infra.supabase_client import get_public_db, get_service_db, get_service_db_factory

from fakes import FakeSupabase

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def store() -> FakeSupabase:
    """Base en mémoire avec deux produits: p1 (29.99, stock 3) et p2 (10.00, stock 5)."""
    return FakeSupabase(products=[
        {"id": "p1", "name": "Widget", "price": "29.99", "stock_quantity": 3},
        {"id": "p2", "name": "Gadget", "price": "10.00", "stock_quantity": 5},
    ])

@pytest.fixture()
def client(app, store) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_public_db] = lambda: store
    app.dependency_overrides[get_service_db] = lambda: store
    app.dependency_overrides[get_service_db_factory] = lambda: (lambda: store)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

# Secrets Stripe factices et comportement par défaut (registre de sessions actif)
@pytest.fixture(autouse=True)
def _stripe_config(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_DEDUPE", True)
    monkeypatch.setattr(config, "STRIPE_CURRENCY", "aud")
    monkeypatch.setattr(config, "BASE_URL", "")

# Aucun appel réseau vers Stripe: Session.create enregistre ses arguments
@pytest.fixture(autouse=True)
def stripe_sessions(monkeypatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def _fake_create(**kwargs):
        calls.append(kwargs)
        session_id = f"cs_test_{len(calls)}"
        return SimpleNamespace(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")

    monkeypatch.setattr(stripe.checkout.Session, "create", _fake_create)
    return calls

def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """En-tête stripe-signature valide (schéma v1: HMAC-SHA256 de '<t>.<payload>')."""
    ts = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"

@pytest.fixture()
def sign():
    return sign_payload

@pytest.fixture()
def completed_event():
    """Fabrique un événement checkout.session.completed."""
    def _make(session_id="cs_test_1", metadata=None, customer_email="buyer@example.com", **session_fields):
        if metadata is None:
            metadata = {
                "customer_name": "Jane Buyer",
                "shipping_address": json.dumps({"street_address": "1 Main St", "suburb": "Carlton", "state": "VIC", "postcode": "3053"}),
                "items": json.dumps([{"product_id": "p1", "quantity": 2}]),
            }
        session = {"id": session_id, "object": "checkout.session", "customer_email": customer_email, "metadata": metadata}
        session.update(session_fields)
        return {
            "id": f"evt_{session_id}",
            "object": "event",
            "type": "checkout.session.completed",
            "data": {"object": session},
        }
    return _make

@pytest.fixture()
def post_webhook(client):
    """Envoie un événement signé au webhook Stripe."""
    def _post(event: Dict[str, Any], secret: str = WEBHOOK_SECRET, signature: str | None = None):
        payload = json.dumps(event)
        header = signature if signature is not None else sign_payload(payload, secret)
        return client.post(
            "/api/webhooks/stripe",
            content=payload,
            headers={"stripe-signature": header, "content-type": "application/json"},
        )
    return _post

@pytest.fixture()
def checkout_body():
    def _make(**overrides):
        body = {
            "customer_email": "buyer@example.com",
            "customer_name": "Jane Buyer",
            "shipping_address": {"street_address": "1 Main St", "suburb": "Carlton", "state": "VIC", "postcode": "3053"},
            "items": [{"product_id": "p1", "quantity": 2}],
        }
        body.update(overrides)
        return body
    return _make
