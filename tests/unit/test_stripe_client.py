import json

import pytest
import stripe
from fastapi import HTTPException

from storefront import config
from storefront.payments import stripe_client


def test_require_stripe_without_secret_key_is_500(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "")
    with pytest.raises(HTTPException) as exc:
        stripe_client.require_stripe()
    assert exc.value.status_code == 500

def test_require_stripe_sets_api_key():
    assert stripe_client.require_stripe() is stripe
    assert stripe.api_key == "sk_test_dummy"

def test_create_session_passes_checkout_parameters(stripe_sessions):
    session = stripe_client.create_session(
        customer_email="buyer@example.com",
        line_items=[{"price_data": {"currency": "aud"}, "quantity": 1}],
        success_url="https://shop.test/success?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="https://shop.test/cart",
        metadata={"customer_name": "Jane"},
    )
    assert session == {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"}
    kwargs = stripe_sessions[0]
    assert kwargs["payment_method_types"] == ["card"]
    assert kwargs["mode"] == "payment"
    assert kwargs["customer_email"] == "buyer@example.com"
    assert kwargs["metadata"] == {"customer_name": "Jane"}

def test_verify_event_accepts_valid_signature(sign):
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed"})
    event = stripe_client.verify_event(payload.encode("utf-8"), sign(payload))
    assert event["id"] == "evt_1"

def test_verify_event_missing_header_is_400():
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(b"{}", None)
    assert exc.value.status_code == 400

def test_verify_event_without_webhook_secret_is_500(monkeypatch, sign):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(b"{}", sign("{}"))
    assert exc.value.status_code == 500

def test_verify_event_wrong_secret_is_400(sign):
    payload = json.dumps({"id": "evt_1"})
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(payload.encode("utf-8"), sign(payload, secret="whsec_other"))
    assert exc.value.status_code == 400
    assert exc.value.detail == "Webhook signature verification failed"

def test_verify_event_tampered_payload_is_400(sign):
    payload = json.dumps({"id": "evt_1", "amount": 100})
    header = sign(payload)
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(payload.replace("100", "1").encode("utf-8"), header)
    assert exc.value.status_code == 400

def test_verify_event_expired_timestamp_is_400(sign):
    payload = json.dumps({"id": "evt_1"})
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(payload.encode("utf-8"), sign(payload, timestamp=1_000_000))
    assert exc.value.status_code == 400

def test_verify_event_signed_non_json_is_400(sign):
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(b"not json", sign("not json"))
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid payload"

def test_verify_event_signed_non_object_json_is_400(sign):
    with pytest.raises(HTTPException) as exc:
        stripe_client.verify_event(b"[1, 2]", sign("[1, 2]"))
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid payload"

def test_verify_event_returns_event_as_dict(sign, completed_event):
    payload = json.dumps(completed_event())
    event = stripe_client.verify_event(payload.encode("utf-8"), sign(payload))
    session = event["data"]["object"]
    assert type(event) is dict
    assert isinstance(session, dict)
    assert session["metadata"]["customer_name"] == "Jane Buyer"
