"""
Transaction submission and history.

send() runs one request through a fixed sequence and stops at the first
failure: validate -> resolve user -> decode key -> check balance -> broadcast
-> confirm -> attach proof -> invalidate cache + persist -> respond.

Once broadcast has succeeded nothing can undo it: confirmation and
persistence problems become warnings on a successful outcome, and the
returned signature is the source of truth for reconciliation. Balance check
and broadcast run under a per-sender lock. A broadcast transfer stays reserved
(amount + fee) until its confirmation wait ends, and the balance check
subtracts those reservations, since the confirmed-commitment balance does not
yet show transfers that are still in flight.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from backend_solnero.core.cache import TTLStore, balance_key
from backend_solnero.core.exceptions import (
    AppError,
    InsufficientBalanceError,
    KeyMismatchError,
    NotFoundError,
    SameAddressError,
    ValidationError,
)
from backend_solnero.database import Database, TransactionStatus
from backend_solnero.database import repositories as repo
from backend_solnero.privacy.proof import PLACEHOLDER_PROOF, generate_proof
from backend_solnero.solana_gateway.client import ConfirmationResult, SolanaGateway
from backend_solnero.solana_gateway.constants import FEE_ESTIMATE_LAMPORTS, lamports_to_sol, sol_to_lamports
from backend_solnero.solana_gateway.keys import load_keypair
from backend_solnero.solnero_logging import get_logger
from backend_solnero.transactions.locks import SenderLocks
from backend_solnero.utils.wallet_utils import is_valid_address, obfuscate_transaction, truncate_address

logger = get_logger(__name__)

MAX_AMOUNT_SOL = Decimal("1000000")
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

PERSIST_FAILED_WARNING = "Transaction sent but failed to save to database"
UNCONFIRMED_WARNING = "Transaction sent but confirmation was not observed yet; status is pending"
FAILED_ONCHAIN_WARNING = "Transaction was sent but the network reported it as failed"

_STATUS_FOR_RESULT = {
    ConfirmationResult.CONFIRMED: TransactionStatus.CONFIRMED,
    ConfirmationResult.FAILED: TransactionStatus.FAILED,
    ConfirmationResult.UNCONFIRMED: TransactionStatus.PENDING,
}


@dataclass(frozen=True)
class SendRequest:
    from_public_key: str
    from_secret_key: str
    to_public_key: str
    amount: Any


@dataclass(frozen=True)
class SendOutcome:
    """Result of a broadcast transfer. status is PENDING when it was sent but not seen confirmed."""

    signature: str
    status: TransactionStatus
    transaction: dict[str, Any] | None = None
    warning: str | None = None

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": True}
        if self.transaction is not None:
            body["transaction"] = self.transaction
        body["signature"] = self.signature
        body["status"] = self.status.value
        if self.warning:
            body["warning"] = self.warning
        return body


def parse_amount(value: Any) -> Decimal:
    """JSON number, positive and no larger than MAX_AMOUNT_SOL. Raises ValidationError."""
    if isinstance(value, (bool, str)) or value is None:
        raise ValidationError("amount must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("amount must be a finite number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number") from None
    if not amount.is_finite():
        raise ValidationError("amount must be a finite number")
    if amount <= 0:
        raise ValidationError("amount must be positive")
    if amount > MAX_AMOUNT_SOL:
        raise ValidationError(f"amount must not exceed {MAX_AMOUNT_SOL} SOL")
    return amount


def _require_address(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    address = value.strip()
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {field}: not a valid Solana address")
    return address


def validate_page(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if not (1 <= limit <= MAX_PAGE_SIZE):
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return page, limit


class TransactionService:
    def __init__(
        self,
        *,
        db: Database,
        gateway: SolanaGateway,
        cache: TTLStore,
        sender_locks: SenderLocks | None = None,
        balance_ttl_sec: float = 10.0,
        keypair_loader: Callable[[str], Any] = load_keypair,
        proof_generator: Callable[..., str] = generate_proof,
    ) -> None:
        self._db = db
        self._gateway = gateway
        self._cache = cache
        self._locks = sender_locks if sender_locks is not None else SenderLocks()
        self._balance_ttl_sec = balance_ttl_sec
        self._load_keypair = keypair_loader
        self._generate_proof = proof_generator

    # ------------------------------------------------------------------
    # send
    # ------------------------------------------------------------------

    def send(self, request: SendRequest) -> SendOutcome:
        from_address = _require_address(request.from_public_key, "fromPublicKey")
        to_address = _require_address(request.to_public_key, "toPublicKey")
        if not isinstance(request.from_secret_key, str) or not request.from_secret_key.strip():
            raise ValidationError("fromSecretKey is required")
        amount = parse_amount(request.amount)
        lamports = sol_to_lamports(amount)
        if lamports == 0:
            raise ValidationError("amount must be at least 0.000000001 SOL")
        if from_address == to_address:
            raise SameAddressError()

        logger.info("transaction_send_requested", **obfuscate_transaction(from_address, to_address, float(amount)))

        with self._db.session_scope() as session:
            user_id = repo.upsert_user(session, from_address).id

        keypair = self._load_keypair(request.from_secret_key)
        if str(keypair.pubkey()) != from_address:
            raise KeyMismatchError()

        in_flight = lamports + FEE_ESTIMATE_LAMPORTS
        with self._locks.hold(from_address):
            balance = self._balance_lamports(from_address)
            self._check_balance(balance - self._locks.reserved(from_address), lamports)
            signature = self._gateway.send_transfer(keypair, to_address, lamports)
            self._locks.reserve(from_address, in_flight)
            self._cache.invalidate(balance_key(from_address))

        logger.info("transaction_broadcast", signature=signature, wallet_id=truncate_address(from_address))

        try:
            status = self._confirm(signature)
        finally:
            self._cache.invalidate(balance_key(from_address))
            self._locks.release(from_address, in_flight)
        proof = self._attach_proof(amount, balance, to_address, from_address)

        warning = None
        if status is TransactionStatus.PENDING:
            warning = UNCONFIRMED_WARNING
        elif status is TransactionStatus.FAILED:
            warning = FAILED_ONCHAIN_WARNING

        try:
            with self._db.session_scope() as session:
                record = repo.create_transaction(
                    session,
                    user_id=user_id,
                    amount=amount,
                    from_address=from_address,
                    to_address=to_address,
                    tx_hash=signature,
                    status=status,
                    zk_proof=proof,
                ).to_dict()
        except Exception as e:
            logger.exception("transaction_persist_failed", signature=signature, error=str(e))
            return SendOutcome(signature=signature, status=status, warning=PERSIST_FAILED_WARNING)

        return SendOutcome(signature=signature, status=status, transaction=record, warning=warning)

    def _balance_lamports(self, address: str) -> int:
        key = balance_key(address)
        cached = self._cache.get(key)
        if cached is not None:
            return int(cached)
        balance = self._gateway.get_balance(address)
        self._cache.set(key, balance, self._balance_ttl_sec)
        return balance

    @staticmethod
    def _check_balance(balance_lamports: int, amount_lamports: int) -> None:
        required = amount_lamports + FEE_ESTIMATE_LAMPORTS
        if balance_lamports < required:
            raise InsufficientBalanceError(balance_lamports, required)

    def _confirm(self, signature: str) -> TransactionStatus:
        try:
            result = self._gateway.wait_for_confirmation(signature)
        except Exception as e:
            logger.warning("transaction_confirm_failed", signature=signature, error=str(e))
            return TransactionStatus.PENDING
        if result is not ConfirmationResult.CONFIRMED:
            logger.warning("transaction_not_confirmed", signature=signature, result=result.value)
        return _STATUS_FOR_RESULT[result]

    def _attach_proof(self, amount: Decimal, balance_lamports: int, to_address: str, from_address: str) -> str:
        try:
            return self._generate_proof(amount, lamports_to_sol(balance_lamports), to_address, from_address)
        except Exception as e:
            logger.warning("proof_generation_failed", error=str(e))
            return PLACEHOLDER_PROOF

    # ------------------------------------------------------------------
    # history and status
    # ------------------------------------------------------------------

    def list_for_address(self, public_key: str, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> dict[str, Any]:
        address = _require_address(public_key, "publicKey")
        page, limit = validate_page(page, limit)
        with self._db.session_scope() as session:
            user = repo.get_user_by_public_key(session, address)
            if user is None:
                rows, total = [], 0
            else:
                records, total = repo.list_user_transactions(session, user.id, page=page, limit=limit)
                rows = [r.to_dict() for r in records]
        return {
            "success": True,
            "transactions": rows,
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        }

    def refresh_status(self, signature: str) -> dict[str, Any]:
        """Re-check a pending transaction on chain and store the new status. Non-pending rows are returned as is."""
        signature = (signature or "").strip()
        if not signature:
            raise ValidationError("signature is required")
        with self._db.session_scope() as session:
            tx = repo.get_transaction_by_signature(session, signature)
            if tx is None:
                raise NotFoundError("Transaction not found")
            if tx.status != TransactionStatus.PENDING:
                return tx.to_dict()
        result = self._gateway.get_signature_status(signature)
        new_status = _STATUS_FOR_RESULT[result]
        with self._db.session_scope() as session:
            tx = repo.get_transaction_by_signature(session, signature)
            if tx is None:
                raise NotFoundError("Transaction not found")
            if tx.status == TransactionStatus.PENDING and new_status != TransactionStatus.PENDING:
                repo.update_transaction_status(session, tx, new_status)
            return tx.to_dict()

    def reconcile_pending(self, limit: int = 50) -> int:
        """Refresh the oldest pending transactions; return how many left the pending state."""
        with self._db.session_scope() as session:
            signatures = [tx.tx_hash for tx in repo.list_pending_transactions(session, limit=limit)]
        updated = 0
        for signature in signatures:
            try:
                record = self.refresh_status(signature)
            except AppError as e:
                logger.warning("reconcile_pending_failed", signature=signature, error=e.message)
                continue
            if record["status"] != TransactionStatus.PENDING.value:
                updated += 1
        if signatures:
            logger.info("reconcile_pending_done", checked=len(signatures), updated=updated)
        return updated
