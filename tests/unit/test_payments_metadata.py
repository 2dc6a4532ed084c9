import json

import pytest

from storefront.errors import IncompleteSessionError, MetadataError
from storefront.orders.models import OrderLine
from storefront.payments.metadata import (
    MAX_METADATA_VALUE_LENGTH,
    ItemList,
    LegacySingleItem,
    decode_items,
    decode_shipping_address,
    encode_metadata,
    extract_completion,
)

ADDRESS = {"street_address": "1 Main St", "suburb": "Carlton", "state": "VIC", "postcode": "3053"}


def test_encode_metadata_items_variant_uses_compact_json():
    session_items = ItemList(items=[OrderLine(product_id="p1", quantity=2), OrderLine(product_id="p2", quantity=1)])
    metadata = encode_metadata("Jane", ADDRESS, session_items)
    assert metadata["customer_name"] == "Jane"
    assert json.loads(metadata["shipping_address"]) == ADDRESS
    assert metadata["items"] == '[{"product_id":"p1","quantity":2},{"product_id":"p2","quantity":1}]'
    assert "product_id" not in metadata

def test_encode_metadata_legacy_variant_stores_bare_product_id():
    metadata = encode_metadata("Jane", ADDRESS, LegacySingleItem(product_id="p1"))
    assert metadata["product_id"] == "p1"
    assert "items" not in metadata

def test_encode_metadata_rejects_values_over_stripe_limit():
    lines = [OrderLine(product_id=f"product-{i:04d}-aaaaaaaaaaaaaaaa", quantity=1) for i in range(20)]
    with pytest.raises(MetadataError) as exc:
        encode_metadata("Jane", ADDRESS, ItemList(items=lines))
    assert "items" in str(exc.value)
    assert str(MAX_METADATA_VALUE_LENGTH) in str(exc.value)

def test_decode_items_prefers_items_over_legacy_product_id():
    decoded = decode_items({"items": '[{"product_id":"p2","quantity":3}]', "product_id": "p1"})
    assert isinstance(decoded, ItemList)
    assert decoded.lines() == [OrderLine(product_id="p2", quantity=3)]

def test_decode_items_legacy_means_quantity_one():
    decoded = decode_items({"product_id": "p1"})
    assert isinstance(decoded, LegacySingleItem)
    assert decoded.lines() == [OrderLine(product_id="p1", quantity=1)]

def test_decode_items_returns_none_without_items_or_product_id():
    assert decode_items({"customer_name": "Jane"}) is None

@pytest.mark.parametrize("raw", [
    "not json",
    '{"product_id": "p1"}',
    '[{"product_id": "p1"}]',
    '[{"product_id": "p1", "quantity": 0}]',
    '[{"product_id": "", "quantity": 1}]',
])
def test_decode_items_invalid_payload_is_fatal(raw):
    with pytest.raises(MetadataError) as exc:
        decode_items({"items": raw})
    assert str(exc.value) == "Invalid items format in metadata"

def test_decode_shipping_address_variants():
    assert decode_shipping_address(None) == {}
    assert decode_shipping_address("") == {}
    assert decode_shipping_address(json.dumps(ADDRESS)) == ADDRESS
    assert decode_shipping_address("1 Main St, Carlton") == {"address": "1 Main St, Carlton"}
    assert decode_shipping_address('"just a string"') == {"address": '"just a string"'}
    assert decode_shipping_address("[1, 2]") == {"address": "[1, 2]"}

def _session(**overrides):
    session = {
        "id": "cs_test_1",
        "customer_email": "buyer@example.com",
        "metadata": {
            "customer_name": "Jane",
            "shipping_address": json.dumps(ADDRESS),
            "items": '[{"product_id":"p1","quantity":2}]',
        },
    }
    session.update(overrides)
    return session

def test_extract_completion_builds_order_intent():
    completion = extract_completion(_session())
    assert completion.session_id == "cs_test_1"
    assert completion.customer_email == "buyer@example.com"
    assert completion.customer_name == "Jane"
    assert completion.shipping_address == ADDRESS
    assert completion.items == [OrderLine(product_id="p1", quantity=2)]

def test_extract_completion_falls_back_to_customer_details_email():
    completion = extract_completion(_session(customer_email=None, customer_details={"email": "details@example.com"}))
    assert completion.customer_email == "details@example.com"

def test_extract_completion_without_email_is_incomplete():
    with pytest.raises(IncompleteSessionError) as exc:
        extract_completion(_session(customer_email=None))
    assert str(exc.value) == "Missing customer_email"

def test_extract_completion_without_items_is_incomplete():
    with pytest.raises(IncompleteSessionError) as exc:
        extract_completion(_session(metadata={"customer_name": "Jane"}))
    assert str(exc.value) == "Missing items or product_id in metadata"

def test_extract_completion_with_empty_items_is_incomplete():
    with pytest.raises(IncompleteSessionError) as exc:
        extract_completion(_session(metadata={"items": "[]"}))
    assert str(exc.value) == "Empty items array"

def test_extract_completion_order_rows():
    completion = extract_completion(_session())
    row = completion.order_for(completion.items[0]).to_insert()
    assert row == {
        "product_id": "p1",
        "customer_email": "buyer@example.com",
        "customer_name": "Jane",
        "shipping_address": ADDRESS,
        "stripe_payment_id": "cs_test_1",
        "status": "completed",
    }
