import logging
from typing import Callable

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.infra.supabase_client import get_service_db, get_service_db_factory
from storefront.utils.rate_limit import optional_rate_limit

from storefront.payments import stripe_client
from storefront.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Payments API"])

# module storefront.payments.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request, db: Client = Depends(get_service_db)):
    """
    Crée une session Checkout Stripe pour le panier du visiteur.
    - Entrée JSON: { "customer_email", "customer_name", "shipping_address": {...},
                     "items": [ { "product_id": "<id>", "quantity": <int> }, ... ] }
      ou ancien format { ..., "product_id": "<id>" } (quantité 1)
    - Sécurité: rate limit (10 req / 60s)
    - Étapes:
      1) Valider la demande (payments_service.parse_checkout_request)
      2) Charger les produits et contrôler le stock
      3) Construire line_items + metadata puis créer la session Stripe
    - Réponse: {"url": "<page Stripe>"}; erreurs {"error": "..."} en 4xx/5xx
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    try:
        session = await run_in_threadpool(
            payments_service.start_checkout, db, body, str(request.base_url).rstrip("/")
        )
    except HTTPException:
        raise
    except stripe.StripeError as e:
        logger.error("Error creating checkout session: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error")
    except Exception:
        logger.exception("Error creating checkout session")
        raise HTTPException(status_code=500, detail="Internal server error")
    return JSONResponse({"url": session.get("url")})

@router.post("/webhooks/stripe", include_in_schema=False)
async def webhook_stripe(request: Request, db_factory: Callable[[], Client] = Depends(get_service_db_factory)):
    """
    Webhook Stripe: consomme checkout.session.completed pour décrémenter le stock et créer les commandes.
    - Signature: stripe_client.parse_event (stripe-signature + STRIPE_WEBHOOK_SECRET), 400/500 avant traitement
    - Client service-role construit seulement après vérification (500 si Supabase n'est pas configuré)
    - Une fois vérifié, répond toujours 200: Stripe ne doit pas relivrer un événement déjà analysé
    - Réponses: {"received": true} ou {"received": true, "error"/"duplicate": ...}
    """
    event = await stripe_client.parse_event(request)
    try:
        db = db_factory()
    except RuntimeError as e:
        logger.error("supabase service client unavailable: %s", e)
        raise HTTPException(status_code=500, detail="Data store is not configured")

    try:
        result = await run_in_threadpool(payments_service.handle_event, db, event)
    except Exception:
        logger.exception("Error processing webhook %s", event.get("id"))
        result = {"received": True, "error": "Webhook processing failed"}
    return JSONResponse(result)
