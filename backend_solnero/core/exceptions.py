"""
Application-level exceptions.

Every failure a request can end in is one of the kinds below. The API server
maps each kind to an HTTP status and a message policy in one place
(api_server.errors), so handlers raise and never build error responses.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DOMAIN = "domain"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    PERSISTENCE = "persistence"


class AppError(Exception):
    """Base error carrying an HTTP status code and an error kind."""

    kind: ErrorKind = ErrorKind.DOMAIN
    status_code: int = 400

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Malformed address, amount or missing field."""

    kind = ErrorKind.VALIDATION
    status_code = 400


class DomainError(AppError):
    kind = ErrorKind.DOMAIN
    status_code = 400


class SameAddressError(DomainError):
    def __init__(self) -> None:
        super().__init__("Sender and recipient addresses cannot be the same")


class InvalidSecretKeyError(DomainError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid secret key: {reason}")


class KeyMismatchError(DomainError):
    def __init__(self) -> None:
        super().__init__("Secret key does not match public key")


class InsufficientBalanceError(DomainError):
    """Balance below amount + fee estimate. Amounts are lamports; message is in SOL."""

    def __init__(self, available_lamports: int, required_lamports: int) -> None:
        from backend_solnero.solana_gateway.constants import lamports_to_sol

        self.available_lamports = available_lamports
        self.required_lamports = required_lamports
        super().__init__(
            f"Insufficient balance. You have {lamports_to_sol(available_lamports):.4f} SOL "
            f"but need {lamports_to_sol(required_lamports):.4f} SOL (including fees)"
        )


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class RateLimitedError(AppError):
    kind = ErrorKind.RATE_LIMITED
    status_code = 429

    def __init__(self, retry_after: int) -> None:
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after


class UpstreamError(AppError):
    """RPC node or price feed failed. Message carries the transport error."""

    kind = ErrorKind.UPSTREAM
    status_code = 502


class PersistenceError(AppError):
    """Database failure. Message is redacted outside development."""

    kind = ErrorKind.PERSISTENCE
    status_code = 503
