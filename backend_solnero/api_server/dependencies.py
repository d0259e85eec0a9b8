"""FastAPI dependencies: app state lookup and per-endpoint rate limiting."""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from backend_solnero.api_server.state import AppState
from backend_solnero.core.exceptions import RateLimitedError
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)


def get_state(request: Request) -> AppState:
    return request.app.state.solnero


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: str) -> Callable[[Request], None]:
    """Dependency enforcing the configured limit for scope; raises RateLimitedError (429)."""

    def _check(request: Request) -> None:
        state = get_state(request)
        rule = state.settings.rate_limit(scope)
        key = f"rate_limit_{scope}_{client_ip(request)}"
        decision = state.rate_limiter.allow(key, rule.max_requests, rule.window_ms)
        if not decision.allowed:
            logger.warning("rate_limited", scope=scope, client_key=key, retry_after=decision.retry_after)
            raise RateLimitedError(decision.retry_after)

    return _check
