"""
Accès aux données pour la feature 'orders'.
- orders: insertion / suppression (compensation) / lecture par session Stripe
- processed_checkout_sessions: registre des sessions déjà appliquées (dédoublonnage webhook)
"""
from typing import Any, Dict, List
import logging

from postgrest.exceptions import APIError

from storefront.errors import DataStoreError

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
LEDGER_TABLE = "processed_checkout_sessions"
UNIQUE_VIOLATION = "23505"
# colonnes exposées par la page de confirmation (ni email ni adresse)
PUBLIC_ORDER_COLUMNS = ("id", "product_id", "status", "created_at")

# module storefront.orders.repository
def insert_order(client, row: Dict[str, Any]) -> Dict[str, Any]:
    """Insère une commande et retourne la ligne créée (avec son id)."""
    try:
        res = client.table(ORDERS_TABLE).insert(row).execute()
    except Exception as e:
        logger.exception("orders.repository.insert_order failed product_id=%s", row.get("product_id"))
        raise DataStoreError(
            f"Failed to insert order for product {row.get('product_id')}: {e}",
            code=getattr(e, "code", None),
        ) from e
    rows = res.data or []
    if not rows or not rows[0].get("id"):
        raise DataStoreError(f"Order insert for product {row.get('product_id')} returned no row")
    return rows[0]

def delete_order(client, order_id: str) -> None:
    try:
        client.table(ORDERS_TABLE).delete().eq("id", order_id).execute()
    except Exception as e:
        logger.exception("orders.repository.delete_order failed id=%s", order_id)
        raise DataStoreError(f"Failed to delete order {order_id}: {e}") from e

def fetch_orders_by_session(client, session_id: str, columns: str = "*") -> List[dict]:
    if not session_id:
        return []
    try:
        res = (
            client
            .table(ORDERS_TABLE)
            .select(columns)
            .eq("stripe_payment_id", session_id)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("orders.repository.fetch_orders_by_session failed session_id=%s", session_id)
        raise DataStoreError(f"Failed to fetch orders for session {session_id}: {e}") from e

def claim_session(client, session_id: str) -> bool:
    """
    Réserve la session dans le registre (clé primaire session_id).
    - True: première livraison, l'appelant peut appliquer la commande
    - False: session déjà réservée (violation d'unicité 23505), rejeu à ignorer
    """
    try:
        client.table(LEDGER_TABLE).insert({"session_id": session_id}).execute()
        return True
    except APIError as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            return False
        logger.exception("orders.repository.claim_session failed session_id=%s", session_id)
        raise DataStoreError(f"Failed to record checkout session {session_id}: {e}", code=e.code) from e
    except Exception as e:
        logger.exception("orders.repository.claim_session failed session_id=%s", session_id)
        raise DataStoreError(f"Failed to record checkout session {session_id}: {e}") from e

def release_session(client, session_id: str) -> None:
    """Libère une réservation après un échec, pour qu'une nouvelle livraison puisse réessayer."""
    try:
        client.table(LEDGER_TABLE).delete().eq("session_id", session_id).execute()
    except Exception as e:
        logger.exception("orders.repository.release_session failed session_id=%s", session_id)
        raise DataStoreError(f"Failed to release checkout session {session_id}: {e}") from e
