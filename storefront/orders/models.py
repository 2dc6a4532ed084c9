# module storefront.orders.models
"""Modèles de la réconciliation paiement -> commandes.
- OrderStatus: valeurs autorisées par la contrainte CHECK de la table 'orders'
- OrderLine: une paire (produit, quantité) portée par les métadonnées de session
- CheckoutCompletion: intention de commande reconstruite depuis une session Stripe complétée
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class OrderLine(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class Order(BaseModel):
    id: Optional[str] = None
    product_id: str
    customer_email: str
    customer_name: Optional[str] = None
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    stripe_payment_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[str] = None

    def to_insert(self) -> Dict[str, Any]:
        """Colonnes à insérer (id et created_at sont générés par la base)."""
        return self.model_dump(mode="json", exclude={"id", "created_at"})


class CheckoutCompletion(BaseModel):
    session_id: str
    customer_email: str
    customer_name: Optional[str] = None
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    items: List[OrderLine]

    def order_for(self, line: OrderLine) -> Order:
        return Order(
            product_id=line.product_id,
            customer_email=self.customer_email,
            customer_name=self.customer_name or None,
            shipping_address=self.shipping_address,
            stripe_payment_id=self.session_id,
            status=OrderStatus.COMPLETED,
        )


class FulfilmentResult(BaseModel):
    session_id: str
    orders: List[Dict[str, Any]] = Field(default_factory=list)
    duplicate: bool = False
