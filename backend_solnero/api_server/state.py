"""
Application state container.

Everything that holds in-memory state or an outbound connection is built here
once per app and reached through request.app.state.solnero, so tests can build
an AppState with fakes and isolated caches.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_solnero.accounts.service import AccountService
from backend_solnero.config import Settings
from backend_solnero.core.cache import TTLStore
from backend_solnero.core.rate_limiter import RateLimiter
from backend_solnero.database import Database
from backend_solnero.pricing.price_feed import PriceFeed
from backend_solnero.solana_gateway.client import SolanaGateway
from backend_solnero.transactions.locks import SenderLocks
from backend_solnero.transactions.service import TransactionService


@dataclass
class AppState:
    settings: Settings
    db: Database
    cache: TTLStore
    rate_limiter: RateLimiter
    gateway: SolanaGateway
    price_feed: PriceFeed
    transactions: TransactionService
    accounts: AccountService


def build_state(
    settings: Settings,
    *,
    db: Database | None = None,
    cache: TTLStore | None = None,
    rate_limiter: RateLimiter | None = None,
    gateway: SolanaGateway | None = None,
    price_feed: PriceFeed | None = None,
    keypair_loader=None,
) -> AppState:
    """Wire services from settings. Any collaborator can be passed in to replace the default."""
    if db is None:
        db = Database(settings.database_url)
    if cache is None:
        cache = TTLStore()
    if rate_limiter is None:
        rate_limiter = RateLimiter()
    if gateway is None:
        gateway = SolanaGateway(
            settings.solana_rpc_url,
            timeout_sec=settings.rpc_timeout_sec,
            confirm_timeout_sec=settings.confirm_timeout_sec,
            confirm_poll_interval_sec=settings.confirm_poll_interval_sec,
        )
    if price_feed is None:
        price_feed = PriceFeed(settings.price_api_url, timeout_sec=settings.price_timeout_sec)

    tx_kwargs = {}
    if keypair_loader is not None:
        tx_kwargs["keypair_loader"] = keypair_loader
    transactions = TransactionService(
        db=db,
        gateway=gateway,
        cache=cache,
        sender_locks=SenderLocks(),
        balance_ttl_sec=settings.balance_cache_ttl_sec,
        **tx_kwargs,
    )
    accounts = AccountService(
        db=db,
        gateway=gateway,
        price_feed=price_feed,
        cache=cache,
        balance_ttl_sec=settings.balance_cache_ttl_sec,
        price_ttl_sec=settings.price_cache_ttl_sec,
        stats_ttl_sec=settings.stats_cache_ttl_sec,
    )
    return AppState(
        settings=settings,
        db=db,
        cache=cache,
        rate_limiter=rate_limiter,
        gateway=gateway,
        price_feed=price_feed,
        transactions=transactions,
        accounts=accounts,
    )
