"""
Cas d'usage 'orders': applique une session Stripe complétée au catalogue.

Pour chaque ligne: décrément du stock (plancher 0) puis insertion d'une commande 'completed'.
Chaque étape réussie enregistre sa compensation; si une étape échoue, les compensations
sont rejouées en ordre inverse (stock restitué, commandes supprimées) avant de relever l'erreur.
Le registre processed_checkout_sessions rend un rejeu du même événement sans effet.
"""
from functools import partial
from typing import Any, Callable, List, Tuple
import logging

from storefront.catalog import service as stock
from storefront.errors import StorefrontError
from storefront.orders import repository
from storefront.orders.models import CheckoutCompletion, FulfilmentResult

logger = logging.getLogger(__name__)

Compensation = Tuple[str, Callable[[], Any]]

def _compensate(session_id: str, compensations: List[Compensation]) -> None:
    for label, undo in reversed(compensations):
        try:
            undo()
            logger.info("Compensated %s for session %s", label, session_id)
        except StorefrontError:
            logger.exception("Compensation failed: %s for session %s", label, session_id)

def fulfil_checkout(client, completion: CheckoutCompletion, dedupe: bool = True) -> FulfilmentResult:
    """
    Applique toutes les lignes de la session ou aucune.
    - dedupe=True: réserve la session dans le registre; un doublon retourne duplicate=True sans rien modifier
    - Lève l'erreur d'origine (StorefrontError le plus souvent) après compensation
    """
    session_id = completion.session_id
    if dedupe and not repository.claim_session(client, session_id):
        logger.info("Checkout session %s already processed, skipping", session_id)
        return FulfilmentResult(session_id=session_id, duplicate=True)

    compensations: List[Compensation] = []
    orders = []
    try:
        for line in completion.items:
            before, after = stock.decrement_stock(client, line.product_id, line.quantity)
            removed = before - after
            if removed:
                compensations.append(
                    (f"stock of {line.product_id}", partial(stock.restore_stock, client, line.product_id, removed))
                )

            logger.info(
                "Inserting order for product: %s, quantity: %s, customer: %s",
                line.product_id, line.quantity, completion.customer_email,
            )
            order = repository.insert_order(client, completion.order_for(line).to_insert())
            compensations.append((f"order {order['id']}", partial(repository.delete_order, client, order["id"])))
            orders.append(order)
            logger.info(
                "Order created successfully: %s for product %s (quantity: %s)",
                order["id"], line.product_id, line.quantity,
            )
    except Exception:
        logger.error(
            "Fulfilment of session %s failed after %s step(s), rolling back",
            session_id, len(compensations),
        )
        _compensate(session_id, compensations)
        if dedupe:
            try:
                repository.release_session(client, session_id)
            except StorefrontError:
                logger.exception("Could not release checkout session %s", session_id)
        raise

    logger.info("Checkout session %s processed successfully for %s item(s)", session_id, len(orders))
    return FulfilmentResult(session_id=session_id, orders=orders)
