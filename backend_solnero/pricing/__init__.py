"""Third-party SOL/USD price feed."""

from backend_solnero.pricing.price_feed import PriceFeed, SolPrice, parse_price_payload

__all__ = ["PriceFeed", "SolPrice", "parse_price_payload"]
