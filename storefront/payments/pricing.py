"""
Construction des line_items Stripe à partir du catalogue (pas d'appel réseau).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping

from fastapi import HTTPException

from storefront.orders.models import OrderLine

def to_unit_amount(price: Any) -> int:
    """Prix décimal -> montant en plus petite unité monétaire (centimes), arrondi au plus proche."""
    return int((Decimal(str(price or 0)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

# module storefront.payments.pricing
def build_line_items(
    products_by_id: Mapping[str, Mapping[str, Any]],
    lines: List[OrderLine],
    currency: str,
) -> List[Dict[str, Any]]:
    """
    Une ligne Stripe par produit demandé, après contrôle du stock lu à l'instant.
    - 404 si un produit est absent du catalogue
    - 400 si la quantité demandée dépasse stock_quantity
    Aucune réservation n'est posée: deux checkouts simultanés peuvent passer ce contrôle.
    """
    line_items: List[Dict[str, Any]] = []
    for line in lines:
        product = products_by_id.get(line.product_id)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {line.product_id} not found")

        available = int(product.get("stock_quantity") or 0)
        if available < line.quantity:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Insufficient stock for {product.get('name')}. "
                    f"Available: {available}, Requested: {line.quantity}"
                ),
            )

        line_items.append({
            "price_data": {
                "currency": currency,
                "product_data": {"name": product.get("name") or "Article"},
                "unit_amount": to_unit_amount(product.get("price")),
            },
            "quantity": line.quantity,
        })
    return line_items
