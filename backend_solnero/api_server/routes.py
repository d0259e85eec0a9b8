"""
/api routes: users, transactions, balances, SOL price and stats.

Handlers are sync and run in the thread pool; each one is guarded by the
rate limit of its endpoint group, which is checked before the body is validated.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from backend_solnero.api_server.dependencies import get_state, rate_limit
from backend_solnero.api_server.state import AppState
from backend_solnero.transactions.service import DEFAULT_PAGE_SIZE, SendRequest

router = APIRouter()


class CreateUserBody(BaseModel):
    """POST /api/users body."""

    publicKey: str | None = Field(None, description="Wallet address (base58)")


class SendTransactionBody(BaseModel):
    """POST /api/transactions/send body. Field checks happen in TransactionService for uniform messages."""

    fromPublicKey: str | None = Field(None, description="Sender wallet address (base58)")
    fromSecretKey: str | None = Field(None, description="Sender secret key, base58 of 64 bytes")
    toPublicKey: str | None = Field(None, description="Recipient wallet address (base58)")
    amount: Any = Field(None, description="Amount in SOL")


@router.post("/users", dependencies=[Depends(rate_limit("users"))])
def create_user(body: CreateUserBody, state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Register a wallet; returns the existing user when already registered."""
    return state.accounts.register_user(body.publicKey or "")


@router.post("/transactions/send", dependencies=[Depends(rate_limit("send"))])
def send_transaction(body: SendTransactionBody, state: AppState = Depends(get_state)) -> dict[str, Any]:
    """
    Sign and broadcast a SOL transfer.

    Once broadcast, the response is 200 with the signature even when
    confirmation or persistence failed; those cases carry a warning.
    """
    outcome = state.transactions.send(
        SendRequest(
            from_public_key=body.fromPublicKey,
            from_secret_key=body.fromSecretKey,
            to_public_key=body.toPublicKey,
            amount=body.amount,
        )
    )
    return outcome.to_response()


@router.get("/transactions/status/{signature}", dependencies=[Depends(rate_limit("transactions"))])
def transaction_status(signature: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    return {"success": True, "transaction": state.transactions.refresh_status(signature)}


@router.get("/transactions/{public_key}", dependencies=[Depends(rate_limit("transactions"))])
def list_transactions(
    public_key: str,
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    """Transaction history for a wallet, newest first."""
    return state.transactions.list_for_address(public_key, page=page, limit=limit)


@router.get("/balance/{public_key}", dependencies=[Depends(rate_limit("balance"))])
def get_balance(public_key: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    return state.accounts.get_balance(public_key)


@router.get("/sol-price", dependencies=[Depends(rate_limit("price"))])
def get_sol_price(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return state.accounts.get_sol_price()


@router.get("/stats", dependencies=[Depends(rate_limit("stats"))])
def get_stats(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return state.accounts.get_stats()
