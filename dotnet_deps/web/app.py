"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from dotnet_deps import __version__
from dotnet_deps.web.api import router


def create_app() -> FastAPI:
    app = FastAPI(title="dotnet-deps", version=__version__)
    app.include_router(router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app
