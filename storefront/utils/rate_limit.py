import logging
import os
from typing import Any, Dict
from urllib.parse import urlparse

from fastapi import HTTPException, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

logger = logging.getLogger(__name__)

def _client_key(req: Request) -> str:
    # Par IP et par chemin (pas de session utilisateur dans la boutique)
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{req.url.path}"

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance FastAPI: limite à `times` requêtes par `seconds` et par IP.
    - Sans effet si le lifespan n'a pas pu initialiser FastAPILimiter (app.state.rate_limit_enabled False)
    - 429 propagé tel quel; une panne Redis en cours de route ne bloque pas la requête
    """
    async def _identifier(req: Request) -> str:
        return _client_key(req)

    limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)

    async def _dep(request: Request, response: Response):
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return
        try:
            await limiter(request, response)
        except HTTPException:
            raise
        except Exception as e:
            logger.warning("Rate limiter unavailable, request allowed: %s", e)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if limiter_ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {
            "scheme": p.scheme,
            "host": p.hostname,
            "port": p.port,
        }
    return info
