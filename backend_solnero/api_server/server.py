"""
FastAPI server: private SOL transfers, balances, price and stats.

create_app() wires middleware, error handlers and routes around an AppState.
The lifespan creates tables, then runs the maintenance thread (rate-limit and
cache sweeps, pending transaction reconciliation) until shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from backend_solnero import __version__
from backend_solnero.api_server.errors import install_error_handlers
from backend_solnero.api_server.maintenance import start_maintenance, stop_maintenance
from backend_solnero.api_server.middleware import install_middleware
from backend_solnero.api_server.routes import router
from backend_solnero.api_server.state import AppState, build_state
from backend_solnero.config import get_settings
from backend_solnero.config.env import mask_rpc_url
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)

SERVICE_MESSAGE = "Solnero API - Private Solana Transactions"


def create_app(state: AppState | None = None, *, run_maintenance: bool = True) -> FastAPI:
    """Build the ASGI app. Tests pass an AppState with fakes and usually run_maintenance=False."""
    state = state or build_state(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state.db.init_db()
        logger.info(
            "api_started",
            environment=state.settings.environment,
            rpc_url=mask_rpc_url(state.settings.solana_rpc_url),
            version=__version__,
        )
        maintenance = start_maintenance(state) if run_maintenance else None
        try:
            yield
        finally:
            if maintenance is not None:
                stop_maintenance(*maintenance)
            state.price_feed.close()
            state.db.dispose()
            logger.info("api_stopped")

    app = FastAPI(
        title="Solnero API",
        description="Private Solana transactions: wallet transfers, balances, SOL price and stats.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.solnero = state

    install_middleware(app, state.settings)
    install_error_handlers(app)
    app.include_router(router, prefix="/api", tags=["Solnero"])

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": SERVICE_MESSAGE, "version": __version__}

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app
