"""
SOL/USD price lookup against the CoinGecko simple-price endpoint.

Expected payload: {"solana": {"usd": 142.1, "usd_24h_change": -1.3}}.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from backend_solnero.core.exceptions import UpstreamError
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SolPrice:
    price: float
    change_24h: float


def parse_price_payload(payload: Any) -> SolPrice:
    """Extract price and 24h change. Raises UpstreamError when the payload has no SOL price."""
    data = payload.get("solana") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or data.get("usd") is None:
        raise UpstreamError("Price data not available")
    try:
        price = float(data["usd"])
        change = float(data.get("usd_24h_change") or 0)
    except (TypeError, ValueError) as e:
        raise UpstreamError(f"Price data not available: {e}") from e
    return SolPrice(price=price, change_24h=change)


class PriceFeed:
    """httpx-backed price client. Pass a preconfigured httpx.Client (e.g. with MockTransport) for tests."""

    def __init__(self, url: str, *, timeout_sec: float = 10.0, client: httpx.Client | None = None) -> None:
        self._url = url
        self._client = client or httpx.Client(timeout=timeout_sec, headers={"Accept": "application/json"})

    def get_sol_price(self) -> SolPrice:
        try:
            resp = self._client.get(self._url)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("price_feed_failed", error=str(e), error_type=type(e).__name__)
            raise UpstreamError(f"Failed to fetch SOL price: {e}") from e
        price = parse_price_payload(payload)
        logger.debug("price_feed_fetched", price=price.price, change_24h=price.change_24h)
        return price

    def close(self) -> None:
        self._client.close()
