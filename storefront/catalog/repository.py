"""
Accès aux données du catalogue (table 'products').
Le client Supabase est toujours passé en paramètre; chaque échec est journalisé
puis relevé en DataStoreError pour que l'appelant décide (500 au checkout, étape fatale au webhook).
"""
from typing import Any, Dict, Iterable, List, NoReturn, Optional
import logging

from storefront.errors import DataStoreError

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, description, price, stock_quantity, created_at"

# module storefront.catalog.repository
def describe_error(exc: Exception) -> str:
    """
    Message lisible pour une erreur PostgREST:
    - 42P01: table absente (schéma SQL non appliqué)
    - 42501: accès refusé par une policy RLS
    """
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    if code == "42P01" or 'relation "products" does not exist' in message:
        return 'The "products" table does not exist. Apply sql/schema.sql to the Supabase database.'
    if code == "42501" or "permission denied" in message:
        return "Row Level Security is blocking the query on products."
    if code:
        return f"Database error (code: {code}): {message}"
    return f"Database error: {message}"

def _raise(action: str, exc: Exception) -> NoReturn:
    raise DataStoreError(f"{action}: {describe_error(exc)}", code=getattr(exc, "code", None)) from exc

def list_products(client, limit: Optional[int] = None) -> List[dict]:
    try:
        query = client.table("products").select(PRODUCT_COLUMNS).order("created_at")
        if limit:
            query = query.limit(limit)
        res = query.execute()
        return res.data or []
    except Exception as e:
        logger.exception("catalog.repository.list_products failed")
        _raise("Failed to list products", e)

def fetch_products_by_ids(client, ids: Iterable[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs en une seule requête (in_).
    - Retourne [] si ids vide.
    """
    ids = [str(i) for i in ids]
    if not ids:
        return []
    try:
        res = (
            client
            .table("products")
            .select("id, name, price, stock_quantity")
            .in_("id", ids)
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("catalog.repository.fetch_products_by_ids failed ids=%s", ids)
        _raise("Error fetching products", e)

def get_products_map(client, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Retourne un dict {id: produit} à partir d'une liste d'IDs."""
    return {str(p.get("id")): p for p in fetch_products_by_ids(client, ids)}

def get_product(client, product_id: str, columns: str = PRODUCT_COLUMNS) -> Optional[dict]:
    if not product_id:
        return None
    try:
        res = (
            client
            .table("products")
            .select(columns)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception as e:
        logger.exception("catalog.repository.get_product failed id=%s", product_id)
        _raise(f"Failed to fetch product {product_id}", e)

def update_stock_if_unchanged(client, product_id: str, expected: int, new_quantity: int) -> bool:
    """
    Écrit stock_quantity uniquement si la valeur lue n'a pas bougé (compare-and-set).
    Retourne False si une autre écriture est passée entre-temps (aucune ligne modifiée).
    """
    try:
        res = (
            client
            .table("products")
            .update({"stock_quantity": new_quantity})
            .eq("id", product_id)
            .eq("stock_quantity", expected)
            .execute()
        )
        return bool(res.data)
    except Exception as e:
        logger.exception("catalog.repository.update_stock_if_unchanged failed id=%s", product_id)
        _raise(f"Failed to update stock for product {product_id}", e)
