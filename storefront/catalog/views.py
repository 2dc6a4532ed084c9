import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from storefront.catalog import repository as catalog_repo
from storefront.catalog.models import Product
from storefront.errors import DataStoreError
from storefront.infra.supabase_client import get_public_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/products", tags=["Catalog API"])

# module storefront.catalog.views
@router.get("")
def list_products(db: Client = Depends(get_public_db)) -> Dict[str, List[Dict[str, Any]]]:
    """Catalogue complet (lecture publique, clé anon)."""
    try:
        rows = catalog_repo.list_products(db)
    except DataStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"products": [Product.from_row(r).model_dump(mode="json") for r in rows]}

@router.get("/featured")
def featured_product(db: Client = Depends(get_public_db)) -> Dict[str, Any]:
    """
    Produit mis en avant sur la page d'accueil: le premier du catalogue.
    - {"product": null} si le catalogue est vide (pas une erreur).
    """
    try:
        rows = catalog_repo.list_products(db, limit=1)
    except DataStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not rows:
        return {"product": None}
    product = Product.from_row(rows[0])
    return {"product": product.model_dump(mode="json"), "in_stock": product.in_stock}

@router.get("/{product_id}")
def get_product(product_id: str, db: Client = Depends(get_public_db)) -> Dict[str, Any]:
    try:
        row = catalog_repo.get_product(db, product_id)
    except DataStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not row:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return {"product": Product.from_row(row).model_dump(mode="json")}
