"""
Fabriques de clients Supabase.

Un client est construit explicitement pour chaque requête puis injecté
(Depends) dans les vues; aucun client global n'est partagé par le process.
- create_public_client: clé anon, lectures publiques (RLS actif)
- create_service_client: clé service-role, écritures serveur (webhook Stripe)
"""
import logging
from typing import Callable, Iterator

from fastapi import HTTPException
from supabase import create_client, Client

from storefront import config

logger = logging.getLogger(__name__)

def _has_placeholder(*values: str) -> bool:
    return any(marker in (v or "") for v in values for marker in config.PLACEHOLDER_MARKERS)

def create_public_client() -> Client:
    if not config.SUPABASE_URL or not config.SUPABASE_ANON:
        raise RuntimeError("SUPABASE_URL et SUPABASE_ANON_KEY sont requis")
    if _has_placeholder(config.SUPABASE_URL, config.SUPABASE_ANON):
        raise RuntimeError("Remplacer les valeurs d'exemple Supabase dans .env")
    return create_client(config.SUPABASE_URL, config.SUPABASE_ANON)

def create_service_client() -> Client:
    if not config.SUPABASE_URL:
        raise RuntimeError("SUPABASE_URL manquant")
    if not config.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour create_service_client()")
    if _has_placeholder(config.SUPABASE_SERVICE_KEY):
        raise RuntimeError("Remplacer la valeur d'exemple de SUPABASE_SERVICE_KEY dans .env")
    return create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_KEY)

def get_public_db() -> Iterator[Client]:
    """Dépendance FastAPI: client anon pour la durée de la requête."""
    try:
        client = create_public_client()
    except RuntimeError as e:
        logger.error("supabase public client unavailable: %s", e)
        raise HTTPException(status_code=500, detail="Data store is not configured")
    yield client

def get_service_db() -> Iterator[Client]:
    """Dépendance FastAPI: client service-role (bypass RLS) pour la durée de la requête."""
    try:
        client = create_service_client()
    except RuntimeError as e:
        logger.error("supabase service client unavailable: %s", e)
        raise HTTPException(status_code=500, detail="Data store is not configured")
    yield client

def get_service_db_factory() -> Callable[[], Client]:
    """
    Dépendance FastAPI: fabrique paresseuse du client service-role.
    Le webhook Stripe ne construit son client qu'après vérification de la signature.
    """
    return create_service_client
