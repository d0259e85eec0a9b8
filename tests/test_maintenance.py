"""
Pytest tests for the background maintenance loop started by the app lifespan.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from backend_solnero.api_server.maintenance import run_maintenance_loop, run_maintenance_tick
from backend_solnero.api_server.server import create_app
from backend_solnero.api_server.state import build_state
from backend_solnero.solana_gateway.client import ConfirmationResult
from conftest import SECRET_FOR, VALID_WALLET, VALID_WALLET_2, fake_keypair_loader


def _state(settings, db, cache, rate_limiter, gateway, price_feed):
    return build_state(
        settings,
        db=db,
        cache=cache,
        rate_limiter=rate_limiter,
        gateway=gateway,
        price_feed=price_feed,
        keypair_loader=fake_keypair_loader,
    )


def test_tick_sweeps_and_reconciles(settings, db, cache, rate_limiter, gateway, price_feed, clock):
    state = _state(settings, db, cache, rate_limiter, gateway, price_feed)
    gateway.confirmation = ConfirmationResult.UNCONFIRMED
    from backend_solnero.transactions import SendRequest

    outcome = state.transactions.send(SendRequest(VALID_WALLET, SECRET_FOR[VALID_WALLET], VALID_WALLET_2, 0.1))
    rate_limiter.allow("rate_limit_balance_1.1.1.1", 100, 60_000)
    cache.set("stats", {"totalUsers": 1}, 30)
    gateway.statuses[outcome.signature] = ConfirmationResult.CONFIRMED

    clock.advance(120)
    assert run_maintenance_tick(state) == {"rate_limit_windows": 1, "cache_entries": 1, "reconciled": 1}
    assert len(rate_limiter) == 0
    assert len(cache) == 0


def test_loop_survives_failing_tick_and_stops_on_event(settings, db, cache, rate_limiter, gateway, price_feed):
    state = _state(replace(settings, maintenance_interval_sec=1.0), db, cache, rate_limiter, gateway, price_feed)
    calls = threading.Event()
    state.transactions = MagicMock()

    def reconcile(limit):
        calls.set()
        raise RuntimeError("rpc down")

    state.transactions.reconcile_pending.side_effect = reconcile
    stop = threading.Event()
    thread = threading.Thread(target=run_maintenance_loop, args=(state, stop), daemon=True)
    thread.start()
    assert calls.wait(timeout=5)
    stop.set()
    thread.join(timeout=5)
    assert not thread.is_alive()


def test_lifespan_creates_tables_and_stops_maintenance(settings_factory, cache, rate_limiter, gateway, price_feed, tmp_path):
    settings = settings_factory(database_url=f"sqlite:///{tmp_path / 'lifespan.db'}")
    state = build_state(
        settings,
        cache=cache,
        rate_limiter=rate_limiter,
        gateway=gateway,
        price_feed=price_feed,
        keypair_loader=fake_keypair_loader,
    )
    with TestClient(create_app(state)) as client:
        assert "solnero-maintenance" in {t.name for t in threading.enumerate()}
        r = client.post("/api/users", json={"publicKey": VALID_WALLET})
        assert r.status_code == 200
    assert not any(t.name == "solnero-maintenance" for t in threading.enumerate())
