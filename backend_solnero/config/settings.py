"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and the project .env file.
- Validate settings and provide defaults for optional ones.
- Expose typed settings (RPC URL, database URL, CORS origins, cache TTLs,
  per-endpoint rate limits) for use across the gateway, services and API server.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from backend_solnero.config.env import (
    env_float,
    env_int,
    env_str,
    get_environment,
    get_solana_rpc_url,
    load_solnero_env,
)

DEFAULT_DATABASE_URL = "sqlite:///solnero.db"
DEFAULT_PRICE_API_URL = (
    "https://api.coingecko.com/api/v3/simple/price"
    "?ids=solana&vs_currencies=usd&include_24hr_change=true"
)


@dataclass(frozen=True)
class RateLimitRule:
    """Fixed-window limit for one endpoint group."""

    max_requests: int
    window_ms: int = 60_000


def _default_rate_limits() -> dict[str, RateLimitRule]:
    return {
        "send": RateLimitRule(env_int("RATE_LIMIT_SEND_PER_MIN", 10)),
        "balance": RateLimitRule(env_int("RATE_LIMIT_BALANCE_PER_MIN", 100)),
        "transactions": RateLimitRule(env_int("RATE_LIMIT_TRANSACTIONS_PER_MIN", 60)),
        "users": RateLimitRule(env_int("RATE_LIMIT_USERS_PER_MIN", 30)),
        "price": RateLimitRule(env_int("RATE_LIMIT_PRICE_PER_MIN", 60)),
        "stats": RateLimitRule(env_int("RATE_LIMIT_STATS_PER_MIN", 60)),
    }


@dataclass(frozen=True)
class Settings:
    """Typed application settings. Build from env with Settings.from_env() or get_settings()."""

    solana_rpc_url: str = field(default_factory=get_solana_rpc_url)
    database_url: str = field(default_factory=lambda: env_str("DATABASE_URL", DEFAULT_DATABASE_URL))
    frontend_origins: tuple[str, ...] = ("*",)
    environment: str = field(default_factory=get_environment)
    api_host: str = field(default_factory=lambda: env_str("API_HOST", "0.0.0.0"))
    api_port: int = field(default_factory=lambda: env_int("API_PORT", 3001))
    log_level: str = field(default_factory=lambda: env_str("LOG_LEVEL", "info").lower())
    price_api_url: str = field(default_factory=lambda: env_str("PRICE_API_URL", DEFAULT_PRICE_API_URL))
    price_timeout_sec: float = field(default_factory=lambda: env_float("PRICE_TIMEOUT_SEC", 10.0))
    rpc_timeout_sec: float = field(default_factory=lambda: env_float("RPC_TIMEOUT_SEC", 30.0))
    confirm_timeout_sec: float = field(default_factory=lambda: env_float("CONFIRM_TIMEOUT_SEC", 30.0))
    confirm_poll_interval_sec: float = 1.0
    maintenance_interval_sec: float = field(default_factory=lambda: env_float("MAINTENANCE_INTERVAL_SEC", 60.0))
    balance_cache_ttl_sec: float = field(default_factory=lambda: env_float("BALANCE_CACHE_TTL_SEC", 10.0))
    price_cache_ttl_sec: float = field(default_factory=lambda: env_float("PRICE_CACHE_TTL_SEC", 60.0))
    stats_cache_ttl_sec: float = field(default_factory=lambda: env_float("STATS_CACHE_TTL_SEC", 30.0))
    rate_limits: dict[str, RateLimitRule] = field(default_factory=_default_rate_limits)

    def __post_init__(self) -> None:
        if self.api_port <= 0:
            raise ValueError("API_PORT must be positive")
        for name in ("balance_cache_ttl_sec", "price_cache_ttl_sec", "stats_cache_ttl_sec"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.maintenance_interval_sec < 1.0:
            object.__setattr__(self, "maintenance_interval_sec", 60.0)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def rate_limit(self, scope: str) -> RateLimitRule:
        try:
            return self.rate_limits[scope]
        except KeyError:
            raise KeyError(f"No rate limit configured for scope {scope!r}") from None

    @classmethod
    def from_env(cls) -> "Settings":
        load_solnero_env()
        origins = tuple(o.strip() for o in env_str("FRONTEND_URL", "*").split(",") if o.strip())
        return cls(frontend_origins=origins or ("*",))


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Return the current application settings (loaded once from env).

    Returns:
        Settings with solana_rpc_url, database_url, frontend_origins,
        environment, cache TTLs, rate limits, etc.
    """
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
