"""
Gestionnaires d'exceptions utilisés par la factory.
- HTTPException -> {"error": detail} avec le code d'origine (contrat attendu par le front de la boutique)
- Erreurs de validation FastAPI -> 400 {"error": ...}
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_error_as_json(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_as_json(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
        message = first.get("msg") or "Invalid request"
        logger.info("request validation failed on %s: %s", request.url.path, errors)
        return JSONResponse(
            status_code=400,
            content={"error": f"{location}: {message}" if location else message},
        )
