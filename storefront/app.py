# module storefront.app
"""
Instance FastAPI unique de la boutique, construite par la factory.
Importée par storefront.asgi (serveur) et par les tests (TestClient).
"""
from storefront.app_setup.factory import create_app

app = create_app()
