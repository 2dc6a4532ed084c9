import pytest
from unittest.mock import MagicMock
from postgrest.exceptions import APIError

from storefront.errors import DataStoreError
from storefront.orders import repository


def test_claim_session_first_delivery(store):
    assert repository.claim_session(store, "cs_test_1") is True
    assert store.rows("processed_checkout_sessions")[0]["session_id"] == "cs_test_1"

def test_claim_session_duplicate_is_false(store):
    repository.claim_session(store, "cs_test_1")
    assert repository.claim_session(store, "cs_test_1") is False

def test_claim_session_other_api_error_is_raised():
    mock_client = MagicMock()
    mock_client.table.return_value.insert.return_value.execute.side_effect = APIError(
        {"code": "42P01", "message": 'relation "processed_checkout_sessions" does not exist', "hint": None, "details": None}
    )
    with pytest.raises(DataStoreError) as exc:
        repository.claim_session(mock_client, "cs_test_1")
    assert exc.value.code == "42P01"

def test_release_session_allows_a_new_claim(store):
    repository.claim_session(store, "cs_test_1")
    repository.release_session(store, "cs_test_1")
    assert repository.claim_session(store, "cs_test_1") is True

def test_insert_order_returns_created_row(store):
    row = repository.insert_order(store, {"product_id": "p1", "customer_email": "a@b.co", "status": "completed"})
    assert row["id"]
    assert store.rows("orders")[0]["product_id"] == "p1"

def test_insert_order_without_returned_row_is_an_error():
    mock_client = MagicMock()
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[])
    with pytest.raises(DataStoreError):
        repository.insert_order(mock_client, {"product_id": "p1"})

def test_fetch_orders_by_session(store):
    repository.insert_order(store, {"product_id": "p1", "stripe_payment_id": "cs_a"})
    repository.insert_order(store, {"product_id": "p2", "stripe_payment_id": "cs_b"})
    orders = repository.fetch_orders_by_session(store, "cs_a")
    assert [o["product_id"] for o in orders] == ["p1"]
    assert repository.fetch_orders_by_session(store, "") == []

def test_delete_order(store):
    row = repository.insert_order(store, {"product_id": "p1"})
    repository.delete_order(store, row["id"])
    assert store.rows("orders") == []
