"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import logging
from typing import Any, Dict, List, Optional

import stripe
from fastapi import HTTPException, Request

from storefront import config

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - HTTPException(500) si la clé est absente (erreur de configuration serveur).
    """
    if not config.STRIPE_SECRET_KEY:
        logger.error("STRIPE_SECRET_KEY is not configured")
        raise HTTPException(status_code=500, detail="Payment processor is not configured")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def create_session(
    *,
    customer_email: str,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (paiement carte, email pré-rempli).
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    """
    client = require_stripe()
    session = client.checkout.Session.create(
        payment_method_types=["card"],
        customer_email=customer_email,
        line_items=line_items,
        mode="payment",
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=metadata,
    )
    return {"id": session.id, "url": session.url}

def verify_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Vérifie la signature Stripe du body brut (stripe.Webhook.construct_event) puis le décode.
    - 400 si l'en-tête stripe-signature manque ou si la signature est invalide
    - 500 si STRIPE_WEBHOOK_SECRET n'est pas configuré
    Retour: l'événement sous forme de dict.
    """
    if not sig_header:
        logger.error("Missing stripe-signature header")
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    secret = config.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, secret)
    except stripe.SignatureVerificationError as e:
        logger.error("Webhook signature verification failed: %s", e)
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")
    except (ValueError, TypeError, AttributeError) as e:
        # body signé mais illisible (UTF-8/JSON invalide ou racine non objet)
        logger.error("Invalid webhook payload: %s", e)
        raise HTTPException(status_code=400, detail="Invalid payload")

    logger.info("Webhook verified: %s (ID: %s)", event.get("type"), event.get("id"))
    return event.to_dict()

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête stripe-signature
    """
    payload = await request.body()
    return verify_event(payload, request.headers.get("stripe-signature"))
