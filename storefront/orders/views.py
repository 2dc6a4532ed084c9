import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from storefront.errors import DataStoreError
from storefront.infra.supabase_client import get_service_db
from storefront.orders import repository as orders_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])

# module storefront.orders.views
@router.get("")
def orders_for_session(session_id: str, db: Client = Depends(get_service_db)) -> Dict[str, Any]:
    """
    Commandes créées pour une session Stripe (page de confirmation après redirection success_url).
    - Liste vide tant que le webhook n'a pas encore été reçu.
    - Route publique: seuls produit, statut et date sont renvoyés (PUBLIC_ORDER_COLUMNS).
    """
    session_id = (session_id or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id is required")
    try:
        rows = orders_repo.fetch_orders_by_session(
            db, session_id, columns=", ".join(orders_repo.PUBLIC_ORDER_COLUMNS)
        )
    except DataStoreError:
        raise HTTPException(status_code=500, detail="Error fetching orders")
    orders = [{col: row.get(col) for col in orders_repo.PUBLIC_ORDER_COLUMNS} for row in rows]
    return {"session_id": session_id, "orders": orders}
