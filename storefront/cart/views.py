import logging
from decimal import Decimal
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from supabase import Client

from storefront import config
from storefront.cart.cart import Cart
from storefront.catalog import repository as catalog_repo
from storefront.errors import DataStoreError
from storefront.infra.supabase_client import get_public_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

# module storefront.cart.views
@router.post("/summary")
async def cart_summary(request: Request, db: Client = Depends(get_public_db)) -> Dict[str, Any]:
    """
    Chiffre un panier tenu par le navigateur à partir du catalogue courant.
    - Entrée JSON: { "items": [ { "product_id": "<id>", "quantity": <int> }, ... ] }
    - Quantités plafonnées au stock disponible; lignes en rupture retirées
    - Les IDs absents du catalogue sont listés dans "missing"
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict) or not isinstance(body.get("items"), list):
        raise HTTPException(status_code=400, detail="Missing required field: items")

    cart = Cart.from_items(body["items"])
    if cart.is_empty():
        return {"lines": [], "item_count": 0, "subtotal": "0.00", "currency": config.STRIPE_CURRENCY, "missing": []}

    try:
        products = catalog_repo.get_products_map(db, cart.quantities().keys())
    except DataStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    missing: List[str] = []
    for product_id, qty in cart.quantities().items():
        product = products.get(product_id)
        if not product:
            missing.append(product_id)
            cart.remove(product_id)
            continue
        cart.update_quantity(product_id, qty, max_quantity=int(product.get("stock_quantity") or 0))

    lines = []
    for product_id, qty in cart.quantities().items():
        product = products[product_id]
        unit_price = Decimal(str(product.get("price") or 0))
        lines.append({
            "product_id": product_id,
            "name": product.get("name") or "",
            "unit_price": f"{unit_price:.2f}",
            "quantity": qty,
            "stock_quantity": int(product.get("stock_quantity") or 0),
            "line_total": f"{unit_price * qty:.2f}",
        })
    if missing:
        logger.info("cart.summary missing products=%s", missing)
    return {
        "lines": lines,
        "item_count": cart.item_count,
        "subtotal": f"{cart.subtotal(products):.2f}",
        "currency": config.STRIPE_CURRENCY,
        "missing": missing,
    }
