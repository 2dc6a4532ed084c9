# module storefront.catalog.models
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_quantity: int = Field(default=0, ge=0)
    created_at: Optional[str] = None

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        """Ligne Supabase -> Product (id casté en str, stock négatif ramené à 0)."""
        data = dict(row)
        data["id"] = str(data.get("id") or "")
        data["stock_quantity"] = max(0, int(data.get("stock_quantity") or 0))
        return cls(**data)
