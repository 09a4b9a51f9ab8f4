from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import sessions as session_routes
from api.services.sessions import SessionRegistry
from squatcount.config import CounterConfig


def create_app(config: Optional[CounterConfig] = None) -> FastAPI:
    app = FastAPI(
        title="Squat Counter API",
        description="REST API wrapping squatcount sessions: calibration, classification, and rep counting.",
        version="0.1.0",
    )
    app.state.registry = SessionRegistry(config)
    app.include_router(session_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
