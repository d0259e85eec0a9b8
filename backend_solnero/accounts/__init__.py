"""User registration and cached balance / price / stats lookups."""

from backend_solnero.accounts.service import AccountService

__all__ = ["AccountService"]
