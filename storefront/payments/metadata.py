"""
Sérialisation/désérialisation des métadonnées Stripe d'une session Checkout.

Deux formats coexistent dans les sessions:
- ItemList: metadata.items = JSON [{"product_id": "...", "quantity": n}, ...]
- LegacySingleItem: metadata.product_id seul (quantité implicite 1), anciennes sessions
Les deux sont décodés avec validation de schéma (pydantic) puis ramenés à une liste d'OrderLine.
"""
import json
import logging
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from storefront.errors import IncompleteSessionError, MetadataError
from storefront.orders.models import CheckoutCompletion, OrderLine

logger = logging.getLogger(__name__)

# Limite Stripe par valeur de metadata
MAX_METADATA_VALUE_LENGTH = 500


class ItemList(BaseModel):
    kind: Literal["items"] = "items"
    items: List[OrderLine]

    def lines(self) -> List[OrderLine]:
        return list(self.items)


class LegacySingleItem(BaseModel):
    kind: Literal["legacy"] = "legacy"
    product_id: str = Field(min_length=1)

    def lines(self) -> List[OrderLine]:
        return [OrderLine(product_id=self.product_id, quantity=1)]


SessionItems = Annotated[Union[ItemList, LegacySingleItem], Field(discriminator="kind")]

_LINES = TypeAdapter(List[OrderLine])

def _dumps(value: Any) -> str:
    # Format compact, identique à JSON.stringify côté navigateur
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

# module storefront.payments.metadata
def encode_metadata(customer_name: str, shipping_address: Mapping[str, Any], session_items: SessionItems) -> Dict[str, str]:
    """
    Construit metadata pour stripe.checkout.Session.create.
    - Lève MetadataError si une valeur dépasse la limite Stripe (500 caractères).
    """
    metadata = {
        "customer_name": customer_name,
        "shipping_address": _dumps(dict(shipping_address)),
    }
    if isinstance(session_items, LegacySingleItem):
        metadata["product_id"] = session_items.product_id
    else:
        metadata["items"] = _dumps([line.model_dump() for line in session_items.items])

    for key, value in metadata.items():
        if len(value) > MAX_METADATA_VALUE_LENGTH:
            raise MetadataError(
                f"{key} is too long to attach to the payment session "
                f"({len(value)} > {MAX_METADATA_VALUE_LENGTH} characters)"
            )
    return metadata

def decode_items(metadata: Mapping[str, Any]) -> Optional[SessionItems]:
    """
    Extrait les lignes commandées.
    - items présent: JSON validé -> ItemList (MetadataError si illisible: fatal pour l'événement)
    - sinon product_id présent -> LegacySingleItem
    - sinon None (rien à appliquer)
    """
    items_raw = metadata.get("items")
    if items_raw:
        try:
            decoded = json.loads(items_raw)
        except (TypeError, ValueError) as e:
            logger.error("Failed to parse items JSON: %s", e)
            raise MetadataError("Invalid items format in metadata") from e
        try:
            return ItemList(items=_LINES.validate_python(decoded))
        except ValidationError as e:
            logger.error("Invalid items in metadata: %s", e)
            raise MetadataError("Invalid items format in metadata") from e

    legacy_product_id = metadata.get("product_id")
    if legacy_product_id:
        return LegacySingleItem(product_id=str(legacy_product_id))
    return None

def decode_shipping_address(raw: Optional[str]) -> Dict[str, Any]:
    """
    Adresse de livraison: JSON objet attendu.
    - absente -> {}
    - illisible ou non-objet -> {"address": <texte brut>} (on n'abandonne pas la commande pour ça)
    """
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.error("Failed to parse shipping_address JSON: %s", e)
        return {"address": raw}
    if not isinstance(value, dict):
        return {"address": raw}
    return value

def extract_completion(session: Mapping[str, Any]) -> CheckoutCompletion:
    """
    Reconstruit l'intention de commande depuis une session checkout.session.completed.
    - Email: session.customer_email, sinon session.customer_details.email
    - IncompleteSessionError: email manquant, aucune ligne, liste vide (acquitté sans modification)
    - MetadataError: items illisible
    """
    session_id = str(session.get("id") or "")
    metadata = session.get("metadata") or {}
    customer_email = session.get("customer_email") or (session.get("customer_details") or {}).get("email")
    if not customer_email:
        raise IncompleteSessionError("Missing customer_email")

    shipping_address = decode_shipping_address(metadata.get("shipping_address"))

    session_items = decode_items(metadata)
    if session_items is None:
        raise IncompleteSessionError("Missing items or product_id in metadata")
    lines = session_items.lines()
    if not lines:
        raise IncompleteSessionError("Empty items array")

    return CheckoutCompletion(
        session_id=session_id,
        customer_email=customer_email,
        customer_name=metadata.get("customer_name") or None,
        shipping_address=shipping_address,
        items=lines,
    )
