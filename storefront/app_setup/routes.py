"""
Routes simples (hors routers) pour la page d'accueil.
- Sert / depuis public/index.html si présent, sinon un petit JSON de présentation.
- /favicon.ico: pas de contenu (204) pour éviter des 404 dans les logs.
"""
from fastapi import FastAPI
from fastapi.responses import FileResponse, Response
from starlette.status import HTTP_204_NO_CONTENT

from storefront import config

def register_routes(app: FastAPI) -> None:
    @app.get("/", include_in_schema=False)
    def root():
        index_path = config.PUBLIC_DIR / "index.html"
        if index_path.exists():
            return FileResponse(str(index_path))
        return {"name": app.title, "docs": app.docs_url, "health": "/health"}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=HTTP_204_NO_CONTENT)
