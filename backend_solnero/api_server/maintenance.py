"""
Background maintenance loop, started by the FastAPI lifespan.

Every interval: drop expired rate-limit windows, drop expired cache entries,
and re-check pending transactions on chain. Runs in a daemon thread until
stop_event is set; a failed tick is logged and the loop continues.
"""

from __future__ import annotations

import threading
import time

from backend_solnero.api_server.state import AppState
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0
MAX_PENDING_PER_TICK = 50


def run_maintenance_tick(state: AppState) -> dict[str, int]:
    windows = state.rate_limiter.sweep()
    entries = state.cache.sweep()
    reconciled = state.transactions.reconcile_pending(limit=MAX_PENDING_PER_TICK)
    return {"rate_limit_windows": windows, "cache_entries": entries, "reconciled": reconciled}


def run_maintenance_loop(state: AppState, stop_event: threading.Event) -> None:
    interval = max(1.0, state.settings.maintenance_interval_sec)
    logger.info("maintenance_started", interval_sec=interval)
    tick_count = 0
    while not stop_event.is_set():
        if stop_event.wait(interval):
            break
        tick_count += 1
        tick_start = time.monotonic()
        try:
            removed = run_maintenance_tick(state)
            logger.debug(
                "maintenance_tick_done",
                tick=tick_count,
                duration_ms=round((time.monotonic() - tick_start) * 1000, 1),
                **removed,
            )
        except Exception as e:
            logger.exception("maintenance_tick_failed", tick=tick_count, error=str(e))
    logger.info("maintenance_stopped", ticks=tick_count)


def start_maintenance(state: AppState) -> tuple[threading.Thread, threading.Event]:
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_maintenance_loop,
        args=(state, stop_event),
        name="solnero-maintenance",
        daemon=True,
    )
    thread.start()
    return thread, stop_event


def stop_maintenance(thread: threading.Thread, stop_event: threading.Event) -> None:
    stop_event.set()
    thread.join(timeout=SHUTDOWN_JOIN_TIMEOUT_SEC)
    if thread.is_alive():
        logger.warning("maintenance_shutdown_timeout", timeout_sec=SHUTDOWN_JOIN_TIMEOUT_SEC)
