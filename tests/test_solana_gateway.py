"""
Pytest tests for the Solana gateway and secret key decoding.

The RPC client is a MagicMock. Tests that build real keys or transactions
need solders / solana-py and are skipped when those are not installed.
"""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import base58
import pytest

from backend_solnero.core.exceptions import InvalidSecretKeyError, UpstreamError, ValidationError
from backend_solnero.solana_gateway import ConfirmationResult, SolanaGateway, lamports_to_sol, sol_to_lamports
from backend_solnero.solana_gateway.client import _status_result
from backend_solnero.solana_gateway.keys import decode_secret_key

VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"


# --- Lamport arithmetic ---


def test_sol_to_lamports_is_exact_and_floors():
    assert sol_to_lamports(Decimal("0.1")) == 100_000_000
    assert sol_to_lamports(0.1) == 100_000_000
    assert sol_to_lamports("1.5") == 1_500_000_000
    assert sol_to_lamports(Decimal("0.0000000019")) == 1
    assert sol_to_lamports(Decimal("0.0000000001")) == 0


def test_lamports_to_sol():
    assert lamports_to_sol(1_500_000_000) == 1.5
    assert lamports_to_sol(5_000) == 0.000005


# --- Secret keys ---


def test_decode_secret_key_length():
    raw = bytes(range(64))
    assert decode_secret_key(base58.b58encode(raw).decode()) == raw
    with pytest.raises(InvalidSecretKeyError, match="expected 64 bytes, got 32"):
        decode_secret_key(base58.b58encode(bytes(32)).decode())


def test_decode_secret_key_rejects_non_base58():
    with pytest.raises(InvalidSecretKeyError, match="^Invalid secret key: "):
        decode_secret_key("0OIl" * 20)


def test_load_keypair_round_trip():
    pytest.importorskip("solders")
    from solders.keypair import Keypair

    from backend_solnero.solana_gateway.keys import encode_secret_key, load_keypair

    kp = Keypair()
    loaded = load_keypair(encode_secret_key(kp))
    assert loaded.pubkey() == kp.pubkey()


# --- Signature status ---


def test_status_result_mapping():
    assert _status_result(None) is ConfirmationResult.UNCONFIRMED
    assert _status_result(SimpleNamespace(err="InstructionError", confirmation_status=None)) is ConfirmationResult.FAILED
    assert (
        _status_result(SimpleNamespace(err=None, confirmation_status="TransactionConfirmationStatus.Finalized"))
        is ConfirmationResult.CONFIRMED
    )
    assert _status_result(SimpleNamespace(err=None, confirmation_status="confirmed")) is ConfirmationResult.CONFIRMED
    assert _status_result(SimpleNamespace(err=None, confirmation_status="processed")) is ConfirmationResult.UNCONFIRMED


def test_wait_for_confirmation_polls_until_confirmed():
    sleeps = []
    gateway = SolanaGateway("http://127.0.0.1:8899", client=MagicMock(), sleep=sleeps.append, confirm_poll_interval_sec=0.5)
    gateway.get_signature_status = MagicMock(
        side_effect=[ConfirmationResult.UNCONFIRMED, ConfirmationResult.UNCONFIRMED, ConfirmationResult.CONFIRMED]
    )
    assert gateway.wait_for_confirmation("sig") is ConfirmationResult.CONFIRMED
    assert sleeps == [0.5, 0.5]


def test_wait_for_confirmation_stops_on_failure_and_timeout():
    gateway = SolanaGateway("http://127.0.0.1:8899", client=MagicMock(), sleep=lambda s: None)
    gateway.get_signature_status = MagicMock(return_value=ConfirmationResult.FAILED)
    assert gateway.wait_for_confirmation("sig") is ConfirmationResult.FAILED

    gateway.get_signature_status = MagicMock(return_value=ConfirmationResult.UNCONFIRMED)
    assert gateway.wait_for_confirmation("sig", timeout_sec=0) is ConfirmationResult.UNCONFIRMED
    assert gateway.get_signature_status.call_count == 1


def test_rpc_url_required():
    with pytest.raises(ValueError):
        SolanaGateway("  ")


# --- RPC calls (need solders) ---


def test_get_balance():
    pytest.importorskip("solders")
    client = MagicMock()
    client.get_balance.return_value = SimpleNamespace(value=2_500_000_000)
    gateway = SolanaGateway("http://127.0.0.1:8899", client=client)
    assert gateway.get_balance(VALID_WALLET) == 2_500_000_000

    client.get_balance.side_effect = ConnectionError("timed out")
    with pytest.raises(UpstreamError, match="Failed to check balance: timed out"):
        gateway.get_balance(VALID_WALLET)


def test_get_balance_invalid_pubkey():
    pytest.importorskip("solders")
    gateway = SolanaGateway("http://127.0.0.1:8899", client=MagicMock())
    with pytest.raises(ValidationError, match="Invalid public key"):
        gateway.get_balance("short")


def test_get_signature_status_lookup_error_is_unconfirmed():
    pytest.importorskip("solders")
    client = MagicMock()
    client.get_signature_statuses.side_effect = ConnectionError("reset")
    gateway = SolanaGateway("http://127.0.0.1:8899", client=client)
    signature = "1" * 64
    assert gateway.get_signature_status(signature) is ConfirmationResult.UNCONFIRMED


def _send_fixture():
    pytest.importorskip("solana")
    pytest.importorskip("solders")
    from solders.hash import Hash
    from solders.keypair import Keypair

    client = MagicMock()
    client.get_latest_blockhash.return_value = SimpleNamespace(value=SimpleNamespace(blockhash=Hash.default()))
    client.send_raw_transaction.return_value = SimpleNamespace(value="5igSentSignature")
    return SolanaGateway("http://127.0.0.1:8899", client=client), client, Keypair()


def test_send_transfer_signs_and_broadcasts_with_preflight():
    gateway, client, keypair = _send_fixture()
    assert gateway.send_transfer(keypair, VALID_WALLET_2, 1_000) == "5igSentSignature"
    args, kwargs = client.send_raw_transaction.call_args
    assert isinstance(args[0], bytes)
    assert kwargs["opts"].skip_preflight is False
    assert kwargs["opts"].max_retries == 3


def test_send_transfer_failures():
    gateway, client, keypair = _send_fixture()
    from solana.rpc.core import RPCException

    client.send_raw_transaction.side_effect = RPCException("Blockhash not found")
    with pytest.raises(UpstreamError, match="Failed to send transaction") as exc_info:
        gateway.send_transfer(keypair, VALID_WALLET_2, 1_000)
    assert exc_info.value.status_code == 400

    client.send_raw_transaction.side_effect = ConnectionError("node down")
    with pytest.raises(UpstreamError) as exc_info:
        gateway.send_transfer(keypair, VALID_WALLET_2, 1_000)
    assert exc_info.value.status_code == 502

    client.get_latest_blockhash.side_effect = ConnectionError("no blockhash")
    with pytest.raises(UpstreamError, match="Failed to get blockhash: no blockhash"):
        gateway.send_transfer(keypair, VALID_WALLET_2, 1_000)
