"""
Read-side queries: user registration, balances, SOL price and aggregate stats.

Each lookup goes cache -> upstream (RPC, price feed or database) -> cache,
and reports whether the value came from the cache.
"""

from __future__ import annotations

from typing import Any

from backend_solnero.core.cache import SOL_PRICE_KEY, STATS_KEY, TTLStore, balance_key
from backend_solnero.core.exceptions import ValidationError
from backend_solnero.database import Database
from backend_solnero.database import repositories as repo
from backend_solnero.pricing.price_feed import PriceFeed, SolPrice
from backend_solnero.solana_gateway.client import SolanaGateway
from backend_solnero.solana_gateway.constants import lamports_to_sol
from backend_solnero.solnero_logging import get_logger
from backend_solnero.utils.wallet_utils import is_valid_address, sanitize_input

logger = get_logger(__name__)


def _address(value: str, field: str = "publicKey") -> str:
    address = sanitize_input(value or "")
    if not address:
        raise ValidationError(f"{field} is required")
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {field}: not a valid Solana address")
    return address


class AccountService:
    def __init__(
        self,
        *,
        db: Database,
        gateway: SolanaGateway,
        price_feed: PriceFeed,
        cache: TTLStore,
        balance_ttl_sec: float = 10.0,
        price_ttl_sec: float = 60.0,
        stats_ttl_sec: float = 30.0,
    ) -> None:
        self._db = db
        self._gateway = gateway
        self._price_feed = price_feed
        self._cache = cache
        self._balance_ttl_sec = balance_ttl_sec
        self._price_ttl_sec = price_ttl_sec
        self._stats_ttl_sec = stats_ttl_sec

    def register_user(self, public_key: str) -> dict[str, Any]:
        address = _address(public_key)
        with self._db.session_scope() as session:
            user = repo.upsert_user(session, address).to_dict()
        return {"success": True, "user": user}

    def get_balance(self, public_key: str) -> dict[str, Any]:
        address = _address(public_key)
        key = balance_key(address)
        lamports = self._cache.get(key)
        cached = lamports is not None
        if not cached:
            lamports = self._gateway.get_balance(address)
            self._cache.set(key, lamports, self._balance_ttl_sec)
        return {
            "success": True,
            "balance": lamports_to_sol(lamports),
            "lamports": lamports,
            "cached": cached,
        }

    def get_sol_price(self) -> dict[str, Any]:
        price: SolPrice | None = self._cache.get(SOL_PRICE_KEY)
        cached = price is not None
        if price is None:
            price = self._price_feed.get_sol_price()
            self._cache.set(SOL_PRICE_KEY, price, self._price_ttl_sec)
        return {"success": True, "price": price.price, "change24h": price.change_24h, "cached": cached}

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, int] | None = self._cache.get(STATS_KEY)
        cached = stats is not None
        if stats is None:
            with self._db.session_scope() as session:
                stats = {
                    "totalUsers": repo.count_users(session),
                    "totalTransactions": repo.count_transactions(session),
                }
            self._cache.set(STATS_KEY, stats, self._stats_ttl_sec)
        return {"success": True, **stats, "cached": cached}
