"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI

from nuclearpulse.api.routes import router


def create_app() -> FastAPI:
    app = FastAPI(title="Nuclear Pulse", description="Nuclear energy news digest API")
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
