"""
Solnero API Python client example.

Uses the requests library. Mirrors the routes in backend_solnero.api_server.routes.
Run: pip install requests

Usage:
    from docs.python_sdk_example import SolneroClient
    client = SolneroClient("http://localhost:3001")
    balance = client.get_balance("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka")
"""

from __future__ import annotations

from typing import Any

import requests

# Client-side timeouts (seconds); sends wait for on-chain confirmation
QUERY_TIMEOUT_SEC = 10.0
SEND_TIMEOUT_SEC = 60.0


class SolneroClientError(Exception):
    """Raised when the API returns an error response. retry_after is set on 429."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: int | None = None,
        response: requests.Response | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after
        self.response = response


def _error_message(resp: requests.Response) -> str:
    if resp.headers.get("content-type", "").startswith("application/json"):
        body = resp.json()
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
    return resp.text or resp.reason or "request failed"


class SolneroClient:
    """Client for the Solnero API."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout: float = QUERY_TIMEOUT_SEC):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        resp = self._session.request(method, url, params=params, json=json, timeout=timeout or self.timeout)
        if not resp.ok:
            retry_after = None
            if resp.status_code == 429 and resp.headers.get("Retry-After", "").isdigit():
                retry_after = int(resp.headers["Retry-After"])
            raise SolneroClientError(
                f"API error: {_error_message(resp)}",
                status_code=resp.status_code,
                retry_after=retry_after,
                response=resp,
            )
        return resp.json()

    def health(self) -> dict[str, str]:
        """Liveness probe."""
        return self._request("GET", "/health")

    def create_user(self, public_key: str) -> dict[str, Any]:
        """Register a wallet (idempotent)."""
        return self._request("POST", "/api/users", json={"publicKey": public_key})

    def send_transaction(
        self,
        from_public_key: str,
        from_secret_key: str,
        to_public_key: str,
        amount: float,
    ) -> dict[str, Any]:
        """
        Sign and broadcast a transfer of amount SOL.

        The secret key travels to the server in the request body; only use this
        against a server you operate, over HTTPS.
        """
        body = {
            "fromPublicKey": from_public_key,
            "fromSecretKey": from_secret_key,
            "toPublicKey": to_public_key,
            "amount": amount,
        }
        return self._request("POST", "/api/transactions/send", json=body, timeout=SEND_TIMEOUT_SEC)

    def get_balance(self, public_key: str) -> dict[str, Any]:
        return self._request("GET", f"/api/balance/{public_key}", timeout=QUERY_TIMEOUT_SEC)

    def get_transactions(self, public_key: str, page: int = 1, limit: int = 20) -> dict[str, Any]:
        """Transaction history, newest first."""
        return self._request(
            "GET",
            f"/api/transactions/{public_key}",
            params={"page": page, "limit": limit},
            timeout=QUERY_TIMEOUT_SEC,
        )

    def get_transaction_status(self, signature: str) -> dict[str, Any]:
        """Refresh a pending transaction against the chain and return the stored record."""
        return self._request("GET", f"/api/transactions/status/{signature}")

    def get_sol_price(self) -> dict[str, Any]:
        return self._request("GET", "/api/sol-price")

    def get_stats(self) -> dict[str, Any]:
        return self._request("GET", "/api/stats")


# -----------------------------------------------------------------------------
# Example usage
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    client = SolneroClient("http://localhost:3001")

    print("Health:", client.health())

    wallet = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
    try:
        balance = client.get_balance(wallet)
        print("Balance:", balance.get("balance"), "SOL", "(cached)" if balance.get("cached") else "")
    except SolneroClientError as e:
        if e.status_code == 429:
            print("Rate limited, retry in", e.retry_after, "s")
        else:
            raise

    history = client.get_transactions(wallet, limit=5)
    print("Transactions:", history.get("total"))

    print("SOL price:", client.get_sol_price().get("price"))
