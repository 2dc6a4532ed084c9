# module storefront.asgi
"""
Cible ASGI de déploiement: `uvicorn storefront.asgi:app` (ou gunicorn -k uvicorn.workers.UvicornWorker).
Lancement local: `python -m storefront`.
"""
from storefront.app import app

__all__ = ["app"]
