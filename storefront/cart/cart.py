"""
Logique panier pure (pas de Stripe, pas de DB).
Le panier vit côté client; cette classe reproduit ses règles (quantité plafonnée au stock,
sous-total) pour les réutiliser côté serveur.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from fastapi import HTTPException

# module storefront.cart.cart
def aggregate_quantities(items: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """
    Agrège un panier brut [{product_id, quantity}, ...] en {product_id: total_quantity}.
    - Conserve l'ordre de première apparition.
    - Soulève HTTPException(400) sur une ligne sans product_id ou de quantité non entière / <= 0.
    """
    quantities: Dict[str, int] = {}
    for it in items or []:
        if not isinstance(it, Mapping):
            raise HTTPException(status_code=400, detail="Invalid cart item: expected an object")
        product_id = str(it.get("product_id") or "").strip()
        qty = it.get("quantity")
        if not product_id:
            raise HTTPException(status_code=400, detail="Invalid cart item: missing product_id")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid quantity for product {product_id}: must be a positive integer",
            )
        quantities[product_id] = quantities.get(product_id, 0) + qty
    return quantities


class Cart:
    def __init__(self, quantities: Optional[Mapping[str, int]] = None):
        self._quantities: Dict[str, int] = {}
        for product_id, qty in (quantities or {}).items():
            self.add(product_id, qty)

    @classmethod
    def from_items(cls, items: Iterable[Mapping[str, Any]]) -> "Cart":
        return cls(aggregate_quantities(items))

    def add(self, product_id: str, quantity: int = 1, max_quantity: Optional[int] = None) -> int:
        """Ajoute au panier; retourne la quantité résultante (plafonnée à max_quantity si fourni)."""
        if quantity <= 0:
            return self.quantity_of(product_id)
        return self.update_quantity(product_id, self.quantity_of(product_id) + quantity, max_quantity)

    def update_quantity(self, product_id: str, quantity: int, max_quantity: Optional[int] = None) -> int:
        """
        Fixe la quantité d'un produit.
        - quantity <= 0 retire la ligne
        - max_quantity (stock courant) plafonne; un stock nul retire la ligne
        """
        if max_quantity is not None:
            quantity = min(quantity, max_quantity)
        if quantity <= 0:
            self.remove(product_id)
            return 0
        self._quantities[product_id] = quantity
        return quantity

    def remove(self, product_id: str) -> None:
        self._quantities.pop(product_id, None)

    def clear(self) -> None:
        self._quantities.clear()

    def quantity_of(self, product_id: str) -> int:
        return self._quantities.get(product_id, 0)

    def quantities(self) -> Dict[str, int]:
        return dict(self._quantities)

    @property
    def item_count(self) -> int:
        return sum(self._quantities.values())

    def is_empty(self) -> bool:
        return not self._quantities

    def to_items(self) -> List[Dict[str, Any]]:
        return [{"product_id": pid, "quantity": qty} for pid, qty in self._quantities.items()]

    def subtotal(self, products_by_id: Mapping[str, Mapping[str, Any]]) -> Decimal:
        """Somme prix x quantité; les produits absents du catalogue sont ignorés."""
        total = Decimal("0")
        for product_id, qty in self._quantities.items():
            product = products_by_id.get(product_id)
            if not product:
                continue
            total += Decimal(str(product.get("price") or 0)) * qty
        return total

    def __len__(self) -> int:
        return len(self._quantities)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._quantities
