# module storefront.app_setup.factory
from fastapi import FastAPI

from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware, register_force_https_middleware
from .exceptions import register_exception_handlers
from .routes import register_routes
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Application de la boutique: API catalogue/panier/commandes, checkout et webhook Stripe, health.
    L'ordre compte: les middlewares sont posés avant les handlers d'erreur, les routers en dernier.
    """
    app = FastAPI(title="Storefront", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_force_https_middleware(app)
    register_exception_handlers(app)
    register_routes(app)
    register_routers(app)
    return app
