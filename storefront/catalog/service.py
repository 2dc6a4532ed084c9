"""
Mouvements de stock.
- decrement_stock: retrait après paiement confirmé, plancher à 0
- restore_stock: compensation (remet la quantité réellement retirée)
Les deux passent par une écriture conditionnelle et relisent le stock en cas de conflit.
"""
import logging
from typing import Tuple

from storefront.catalog import repository
from storefront.errors import FulfilmentError

logger = logging.getLogger(__name__)

STOCK_WRITE_ATTEMPTS = 3

def _apply(client, product_id: str, delta: int) -> Tuple[int, int]:
    for attempt in range(1, STOCK_WRITE_ATTEMPTS + 1):
        product = repository.get_product(client, product_id, columns="id, stock_quantity")
        if not product:
            raise FulfilmentError(f"Product not found: {product_id}")
        current = int(product.get("stock_quantity") or 0)
        new_quantity = max(0, current + delta)
        if repository.update_stock_if_unchanged(client, product_id, current, new_quantity):
            return current, new_quantity
        logger.warning(
            "catalog.stock conflict product_id=%s expected=%s attempt=%s/%s",
            product_id, current, attempt, STOCK_WRITE_ATTEMPTS,
        )
    raise FulfilmentError(f"Stock for product {product_id} changed concurrently, giving up")

def decrement_stock(client, product_id: str, quantity: int) -> Tuple[int, int]:
    """Retourne (stock avant, stock après)."""
    before, after = _apply(client, product_id, -int(quantity))
    logger.info(
        "Decrementing stock for product: %s (%s -> %s, quantity: %s)",
        product_id, before, after, quantity,
    )
    return before, after

def restore_stock(client, product_id: str, quantity: int) -> Tuple[int, int]:
    before, after = _apply(client, product_id, int(quantity))
    logger.info("Restored stock for product: %s (%s -> %s)", product_id, before, after)
    return before, after
