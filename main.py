"""
Main entrypoint: Solnero API server.

Settings come from the environment and the project .env file (see
backend_solnero.config). The maintenance thread is started by the app
lifespan, so this only needs to run uvicorn.

Env: SOLANA_RPC_URL or SOLANA_NETWORK, DATABASE_URL, FRONTEND_URL, ENVIRONMENT, API_HOST, API_PORT, LOG_LEVEL.

Equivalent: uvicorn backend_solnero.api_server.app:app --host 0.0.0.0 --port 3001
"""

# Configure structured JSON logging before other imports that may log
from backend_solnero.solnero_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings, build the app and serve it in the main thread."""
    from backend_solnero.api_server.server import create_app
    from backend_solnero.config import get_settings
    from backend_solnero.config.env import mask_rpc_url
    import uvicorn

    try:
        settings = get_settings()
    except ValueError as e:
        logger.error("main_config_error", error=str(e))
        raise SystemExit(1) from e

    app = create_app()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        environment=settings.environment,
        rpc_url=mask_rpc_url(settings.solana_rpc_url),
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
