"""
Solana RPC gateway: balances, native SOL transfers and signature status.

Wraps solana-py's sync Client. Every RPC failure surfaces as UpstreamError
with the underlying message, so the API layer never sees SDK exception types.
Broadcast uses preflight simulation and asks the node to retry delivery
MAX_SEND_RETRIES times; the gateway itself does not resend.
"""

from __future__ import annotations

import enum
import time
from typing import Any, Callable

from backend_solnero.core.exceptions import UpstreamError, ValidationError
from backend_solnero.solnero_logging import get_logger
from backend_solnero.utils.wallet_utils import truncate_address

logger = get_logger(__name__)

MAX_SEND_RETRIES = 3
DEFAULT_CONFIRM_TIMEOUT_SEC = 30.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 1.0


class ConfirmationResult(str, enum.Enum):
    CONFIRMED = "confirmed"
    FAILED = "failed"
    UNCONFIRMED = "unconfirmed"
    """Not observed yet: timeout, unknown signature, or status lookup error."""


def _pubkey(address: str) -> Any:
    from solders.pubkey import Pubkey

    try:
        return Pubkey.from_string(address)
    except Exception as e:
        raise ValidationError(f"Invalid public key: {e}") from e


def _status_result(status: Any) -> ConfirmationResult:
    """Map a solders TransactionStatus (or None) to ConfirmationResult."""
    if status is None:
        return ConfirmationResult.UNCONFIRMED
    if getattr(status, "err", None) is not None:
        return ConfirmationResult.FAILED
    level = getattr(status, "confirmation_status", None)
    name = str(level).rsplit(".", 1)[-1].lower() if level is not None else ""
    if name in ("confirmed", "finalized"):
        return ConfirmationResult.CONFIRMED
    return ConfirmationResult.UNCONFIRMED


class SolanaGateway:
    """Thin wrapper over solana.rpc.api.Client with typed results and UpstreamError on failure."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = 30.0,
        confirm_timeout_sec: float = DEFAULT_CONFIRM_TIMEOUT_SEC,
        confirm_poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
        client: Any | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url
        self._timeout_sec = timeout_sec
        self._confirm_timeout_sec = confirm_timeout_sec
        self._confirm_poll_interval_sec = confirm_poll_interval_sec
        self._client = client
        self._sleep = sleep

    def _client_ensure(self) -> Any:
        if self._client is None:
            from solana.rpc.api import Client
            from solana.rpc.commitment import Confirmed

            self._client = Client(self._rpc_url, commitment=Confirmed, timeout=self._timeout_sec)
        return self._client

    def get_balance(self, address: str) -> int:
        """Balance in lamports at 'confirmed' commitment."""
        pubkey = _pubkey(address)
        try:
            resp = self._client_ensure().get_balance(pubkey)
        except Exception as e:
            logger.warning("rpc_get_balance_failed", wallet_id=truncate_address(address), error=str(e))
            raise UpstreamError(f"Failed to check balance: {e}") from e
        return int(resp.value)

    def get_latest_blockhash(self) -> Any:
        try:
            resp = self._client_ensure().get_latest_blockhash()
            blockhash = resp.value.blockhash
        except Exception as e:
            logger.warning("rpc_get_blockhash_failed", error=str(e))
            raise UpstreamError(f"Failed to get blockhash: {e}") from e
        if blockhash is None:
            raise UpstreamError("Failed to get blockhash: empty response")
        return blockhash

    def build_transfer(self, keypair: Any, to_address: str, lamports: int, blockhash: Any) -> Any:
        """Single System Program transfer, fee payer = sender, signed by keypair."""
        from solders.message import Message
        from solders.system_program import TransferParams, transfer
        from solders.transaction import Transaction

        to_pubkey = _pubkey(to_address)
        try:
            ix = transfer(TransferParams(from_pubkey=keypair.pubkey(), to_pubkey=to_pubkey, lamports=lamports))
            message = Message.new_with_blockhash([ix], keypair.pubkey(), blockhash)
            return Transaction([keypair], message, blockhash)
        except Exception as e:
            raise UpstreamError(f"Failed to sign transaction: {e}", status_code=500) from e

    def send_transfer(self, keypair: Any, to_address: str, lamports: int) -> str:
        """Build, sign and broadcast a SOL transfer. Returns the base58 signature."""
        from solana.rpc.commitment import Confirmed
        from solana.rpc.core import RPCException
        from solana.rpc.types import TxOpts

        blockhash = self.get_latest_blockhash()
        tx = self.build_transfer(keypair, to_address, lamports, blockhash)
        opts = TxOpts(skip_preflight=False, preflight_commitment=Confirmed, max_retries=MAX_SEND_RETRIES)
        try:
            resp = self._client_ensure().send_raw_transaction(bytes(tx), opts=opts)
        except RPCException as e:
            logger.warning("rpc_send_rejected", error=str(e))
            raise UpstreamError(f"Failed to send transaction: {e}", status_code=400) from e
        except Exception as e:
            logger.warning("rpc_send_failed", error=str(e))
            raise UpstreamError(f"Failed to send transaction: {e}") from e
        signature = str(resp.value)
        logger.info("rpc_transaction_sent", signature=signature, lamports=lamports)
        return signature

    def get_signature_status(self, signature: str) -> ConfirmationResult:
        """One status lookup. Lookup errors count as UNCONFIRMED."""
        from solders.signature import Signature

        try:
            sig = Signature.from_string(signature)
            resp = self._client_ensure().get_signature_statuses([sig])
            statuses = resp.value or []
        except Exception as e:
            logger.warning("rpc_signature_status_error", signature=signature, error=str(e))
            return ConfirmationResult.UNCONFIRMED
        return _status_result(statuses[0] if statuses else None)

    def wait_for_confirmation(self, signature: str, timeout_sec: float | None = None) -> ConfirmationResult:
        """Poll until confirmed/finalized, an execution error, or timeout."""
        timeout = self._confirm_timeout_sec if timeout_sec is None else timeout_sec
        deadline = time.monotonic() + timeout
        while True:
            result = self.get_signature_status(signature)
            if result is not ConfirmationResult.UNCONFIRMED:
                if result is ConfirmationResult.CONFIRMED:
                    logger.info("rpc_transaction_confirmed", signature=signature)
                else:
                    logger.warning("rpc_transaction_failed_onchain", signature=signature)
                return result
            if time.monotonic() >= deadline:
                logger.warning("rpc_confirm_timeout", signature=signature, timeout_sec=timeout)
                return ConfirmationResult.UNCONFIRMED
            self._sleep(self._confirm_poll_interval_sec)
