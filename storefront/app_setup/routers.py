"""
Registre central des routers.
- API v1: catalogue, panier, commandes
- Paiement: /api/checkout et /api/webhooks/stripe (chemins publics attendus par le front et Stripe)
- Health: health_router
"""
from fastapi import FastAPI
from storefront.catalog import views as catalog_views
from storefront.cart import views as cart_views
from storefront.orders import views as orders_views
from storefront.payments import views as payments_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(catalog_views.router)
    app.include_router(cart_views.router)
    app.include_router(orders_views.router)
    # Paiement
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
