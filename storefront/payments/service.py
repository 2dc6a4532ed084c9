"""
Services 'payments': orchestre le checkout (catalogue -> Stripe) et la réception des webhooks.
"""
import logging
from typing import Any, Dict, Mapping

from fastapi import HTTPException
from pydantic import ValidationError

from storefront import config
from storefront.cart.cart import aggregate_quantities
from storefront.catalog import repository as catalog_repo
from storefront.errors import DataStoreError, IncompleteSessionError, MetadataError, StorefrontError
from storefront.orders import service as orders_service
from storefront.orders.models import OrderLine
from storefront.payments import metadata as payments_metadata
from storefront.payments import pricing
from storefront.payments import stripe_client
from storefront.payments.schemas import CheckoutRequest

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

def _is_blank(value: Any) -> bool:
    return value is None or value is False or value == "" or value == 0

# module storefront.payments.service
def parse_checkout_request(body: Any) -> CheckoutRequest:
    """
    Valide le corps de POST /api/checkout, dans cet ordre (premier échec -> 400):
    1) lignes résolubles: items (liste) sinon product_id (ancien format, quantité 1)
    2) customer_email, customer_name, shipping_address présents
    3) shipping_address est un objet
    4) panier non vide
    5) chaque ligne valide (product_id non vide, quantité entière > 0), email syntaxiquement valide
    Les product_id répétés sont fusionnés (quantités additionnées).
    """
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    items = body.get("items")
    legacy = False
    if isinstance(items, list):
        raw_items = items
    elif body.get("product_id"):
        raw_items = [{"product_id": str(body["product_id"]), "quantity": 1}]
        legacy = True
    else:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: items (array of {product_id, quantity}) or product_id",
        )

    customer_email = body.get("customer_email")
    customer_name = body.get("customer_name")
    shipping_address = body.get("shipping_address")
    # Un objet vide ou une liste vide comptent comme fournis (rejetés ou non par le contrôle suivant)
    if not customer_email or not customer_name or _is_blank(shipping_address):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: customer_email, customer_name, shipping_address",
        )
    if not isinstance(shipping_address, dict):
        raise HTTPException(status_code=400, detail="shipping_address must be an object")

    if not raw_items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    quantities = aggregate_quantities(raw_items)
    try:
        return CheckoutRequest(
            customer_email=customer_email,
            customer_name=str(customer_name),
            shipping_address=shipping_address,
            items=[OrderLine(product_id=pid, quantity=qty) for pid, qty in quantities.items()],
            legacy=legacy,
        )
    except ValidationError as e:
        fields = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
        if "customer_email" in fields:
            raise HTTPException(status_code=400, detail="Invalid customer_email")
        raise HTTPException(status_code=400, detail="Invalid checkout request")

def _session_items(request: CheckoutRequest) -> payments_metadata.SessionItems:
    if request.legacy:
        return payments_metadata.LegacySingleItem(product_id=request.items[0].product_id)
    return payments_metadata.ItemList(items=request.items)

def start_checkout(client, body: Any, origin: str) -> Dict[str, Any]:
    """
    Crée la session Stripe Checkout pour un panier.
    - Validation complète avant tout accès catalogue ou Stripe
    - Lecture unique du catalogue, contrôle du stock à l'instant (pas de réservation)
    - Aucune écriture locale: les commandes sont créées par le webhook
    Retour: {"id", "url"} de la session Stripe.
    """
    request = parse_checkout_request(body)
    try:
        metadata = payments_metadata.encode_metadata(
            request.customer_name, request.shipping_address, _session_items(request)
        )
    except MetadataError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        products = catalog_repo.get_products_map(client, request.product_ids)
    except DataStoreError:
        raise HTTPException(status_code=500, detail="Error fetching products")
    if not products:
        raise HTTPException(status_code=404, detail="No products found")

    line_items = pricing.build_line_items(products, request.items, config.STRIPE_CURRENCY)

    base = config.BASE_URL or origin.rstrip("/")
    session = stripe_client.create_session(
        customer_email=str(request.customer_email),
        line_items=line_items,
        success_url=f"{base}{config.CHECKOUT_SUCCESS_PATH}?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}{config.CHECKOUT_CANCEL_PATH}",
        metadata=metadata,
    )
    logger.info(
        "payments.checkout session=%s items=%s email=%s",
        session.get("id"), len(line_items), request.customer_email,
    )
    return session

def handle_event(client, event: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement Stripe déjà vérifié. Retourne toujours un corps 200:
    - type non géré -> {"received": True}
    - session incomplète ou étape fatale -> {"received": True, "error": "..."} (rien n'est modifié)
    - session déjà traitée -> {"received": True, "duplicate": True}
    """
    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.info("Unhandled event type: %s", event_type)
        return {"received": True}

    session = (event.get("data") or {}).get("object") or {}
    logger.info("Processing checkout.session.completed: %s", session.get("id"))
    try:
        completion = payments_metadata.extract_completion(session)
    except IncompleteSessionError as e:
        logger.error("Checkout session %s ignored: %s", session.get("id"), e)
        return {"received": True, "error": str(e)}
    except MetadataError as e:
        logger.error("Checkout session %s has invalid metadata: %s", session.get("id"), e)
        return {"received": True, "error": str(e)}

    logger.info(
        "Processing %s item(s) for session %s: %s",
        len(completion.items), completion.session_id,
        ", ".join(f"{line.product_id} x{line.quantity}" for line in completion.items),
    )
    try:
        result = orders_service.fulfil_checkout(client, completion, dedupe=config.STRIPE_WEBHOOK_DEDUPE)
    except StorefrontError as e:
        logger.error("Error processing checkout session %s: %s", completion.session_id, e)
        return {"received": True, "error": str(e)}

    if result.duplicate:
        return {"received": True, "duplicate": True}
    return {"received": True}
