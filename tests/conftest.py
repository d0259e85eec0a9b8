"""
Pytest fixtures for Solnero tests.

Uses a temporary SQLite DB, a fake Solana gateway (no RPC), a fake keypair
loader (no solders needed) and a price feed on httpx.MockTransport. Cache and
rate limiter share one fake monotonic clock so TTLs and windows are driven by
the test.
"""

from __future__ import annotations

import itertools
import threading

import httpx
import pytest

from backend_solnero.core.exceptions import InvalidSecretKeyError
from backend_solnero.solana_gateway.client import ConfirmationResult
from backend_solnero.solana_gateway.constants import FEE_ESTIMATE_LAMPORTS, LAMPORTS_PER_SOL

# Valid Solana pubkeys (base58, 32 bytes)
VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
VALID_WALLET_3 = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

# Secret keys understood by fake_keypair_loader
SECRET_FOR = {
    VALID_WALLET: "fake-secret-1",
    VALID_WALLET_2: "fake-secret-2",
    VALID_WALLET_3: "fake-secret-3",
}

PRICE_PAYLOAD = {"solana": {"usd": 142.5, "usd_24h_change": -1.25}}


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeKeypair:
    def __init__(self, address: str) -> None:
        self._address = address

    def pubkey(self) -> str:
        return self._address


def fake_keypair_loader(secret_key: str) -> FakeKeypair:
    for address, secret in SECRET_FOR.items():
        if secret == secret_key:
            return FakeKeypair(address)
    raise InvalidSecretKeyError("expected 64 bytes, got 3")


class FakeGateway:
    """
    In-memory stand-in for SolanaGateway.

    send_transfer debits amount + fee from the sender and credits the recipient.
    confirmation is what wait_for_confirmation returns; statuses overrides
    get_signature_status per signature (default UNCONFIRMED).
    """

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.confirmation = ConfirmationResult.CONFIRMED
        self.statuses: dict[str, ConfirmationResult] = {}
        self.send_error: Exception | None = None
        self.balance_calls = 0
        self.sent: list[tuple[str, str, int]] = []
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def get_balance(self, address: str) -> int:
        with self._lock:
            self.balance_calls += 1
            return self.balances.get(address, 0)

    def send_transfer(self, keypair, to_address: str, lamports: int) -> str:
        if self.send_error is not None:
            raise self.send_error
        sender = str(keypair.pubkey())
        with self._lock:
            self.balances[sender] = self.balances.get(sender, 0) - lamports - FEE_ESTIMATE_LAMPORTS
            self.balances[to_address] = self.balances.get(to_address, 0) + lamports
            self.sent.append((sender, to_address, lamports))
            return f"5igFakeSignature{next(self._seq):04d}"

    def wait_for_confirmation(self, signature: str, timeout_sec: float | None = None) -> ConfirmationResult:
        return self.confirmation

    def get_signature_status(self, signature: str) -> ConfirmationResult:
        return self.statuses.get(signature, ConfirmationResult.UNCONFIRMED)


def sol(amount: float) -> int:
    return int(round(amount * LAMPORTS_PER_SOL))


def make_price_feed(handler):
    from backend_solnero.pricing.price_feed import PriceFeed

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PriceFeed("https://prices.test/simple/price?ids=solana", client=client)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    gw = FakeGateway()
    gw.balances[VALID_WALLET] = sol(5)
    return gw


@pytest.fixture
def price_requests():
    """Records every request the mock price endpoint receives."""
    return []


@pytest.fixture
def price_feed(price_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        price_requests.append(request)
        return httpx.Response(200, json=PRICE_PAYLOAD)

    feed = make_price_feed(handler)
    yield feed
    feed.close()


@pytest.fixture
def settings_factory(tmp_path, monkeypatch):
    """Build Settings against a temporary SQLite file, ignoring the caller's environment."""
    for name in ("DATABASE_URL", "ENVIRONMENT", "NODE_ENV", "SOLANA_RPC_URL", "SOLANA_NETWORK", "FRONTEND_URL"):
        monkeypatch.delenv(name, raising=False)

    from backend_solnero.config import Settings

    def _make(**overrides):
        values = {
            "database_url": f"sqlite:///{tmp_path / 'solnero_test.db'}",
            "solana_rpc_url": "http://127.0.0.1:8899",
            "frontend_origins": ("http://localhost:3000",),
            "environment": "production",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(settings_factory):
    return settings_factory()


@pytest.fixture
def db(settings):
    from backend_solnero.database import Database

    database = Database(settings.database_url)
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def cache(clock):
    from backend_solnero.core.cache import TTLStore

    return TTLStore(clock=clock)


@pytest.fixture
def rate_limiter(clock):
    from backend_solnero.core.rate_limiter import RateLimiter

    return RateLimiter(clock=clock)


@pytest.fixture
def tx_service(db, gateway, cache):
    from backend_solnero.transactions import TransactionService

    return TransactionService(db=db, gateway=gateway, cache=cache, keypair_loader=fake_keypair_loader)


@pytest.fixture
def app_factory(settings_factory, db, cache, rate_limiter, gateway, price_feed):
    """create_app over an AppState with fakes; pass Settings overrides (e.g. environment='development')."""
    from backend_solnero.api_server.server import create_app
    from backend_solnero.api_server.state import build_state

    def _make(**overrides):
        state = build_state(
            settings_factory(**overrides),
            db=db,
            cache=cache,
            rate_limiter=rate_limiter,
            gateway=gateway,
            price_feed=price_feed,
            keypair_loader=fake_keypair_loader,
        )
        return create_app(state, run_maintenance=False)

    return _make


@pytest.fixture
def client(app_factory):
    """FastAPI TestClient (production mode). Server errors come back as 500 responses."""
    from fastapi.testclient import TestClient

    return TestClient(app_factory(), raise_server_exceptions=False)


@pytest.fixture
def dev_client(app_factory):
    """TestClient with ENVIRONMENT=development: error bodies carry details."""
    from fastapi.testclient import TestClient

    return TestClient(app_factory(environment="development"), raise_server_exceptions=False)

