from typing import Any, Dict, List

from pydantic import BaseModel, EmailStr, Field

from storefront.orders.models import OrderLine


# module storefront.payments.schemas
class CheckoutRequest(BaseModel):
    """Demande de checkout validée (lignes agrégées, email vérifié)."""
    customer_email: EmailStr
    customer_name: str = Field(min_length=1)
    shipping_address: Dict[str, Any]
    items: List[OrderLine] = Field(min_length=1)
    # Ancien format: un seul product_id, quantité 1
    legacy: bool = False

    @property
    def product_ids(self) -> List[str]:
        return [line.product_id for line in self.items]
