"""
Placeholder "zero-knowledge" proof token attached to every sent transaction.

NOT a proof system. The token is base64 of a JSON record holding the amount,
the sender balance, truncated addresses, a timestamp and a random nonce.
Anyone can decode it. It gives no confidentiality, no soundness and no
unlinkability. verify_proof() only checks that the record has the expected
fields. Replacing this requires a real confidential-transfer protocol, not a
change to this module.
"""

from __future__ import annotations

import base64
import binascii
import json
import secrets
import time
from decimal import Decimal
from typing import Any

from backend_solnero.utils.wallet_utils import truncate_address

PLACEHOLDER_PROOF = "placeholder-proof"

REQUIRED_FIELDS = ("amount", "timestamp")


class ProofFormatError(ValueError):
    """Token is not base64-encoded JSON object."""


def _number_str(value: int | float | Decimal) -> str:
    d = Decimal(str(value))
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")


def build_proof_record(
    amount: int | float | Decimal,
    sender_balance: int | float | Decimal,
    recipient_public_key: str,
    sender_public_key: str,
    *,
    timestamp_ms: int | None = None,
    nonce: str | None = None,
) -> dict[str, Any]:
    return {
        "amount": _number_str(amount),
        "senderBalance": _number_str(sender_balance),
        "recipient": truncate_address(recipient_public_key),
        "sender": truncate_address(sender_public_key),
        "timestamp": timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
        "nonce": nonce if nonce is not None else secrets.token_hex(5),
    }


def encode_proof(record: dict[str, Any]) -> str:
    raw = json.dumps(record, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_proof(token: str) -> dict[str, Any]:
    try:
        raw = base64.b64decode(token, validate=True)
        record = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        raise ProofFormatError(f"Malformed proof token: {e}") from e
    if not isinstance(record, dict):
        raise ProofFormatError("Proof token does not hold a JSON object")
    return record


def generate_proof(
    amount: int | float | Decimal,
    sender_balance: int | float | Decimal,
    recipient_public_key: str,
    sender_public_key: str,
) -> str:
    """Return an opaque placeholder token for a transfer. See module docstring: no security property."""
    record = build_proof_record(amount, sender_balance, recipient_public_key, sender_public_key)
    return encode_proof(record)


def verify_proof(token: str) -> bool:
    """Format check only: True when the token decodes and has non-empty amount and timestamp."""
    try:
        record = decode_proof(token)
    except ProofFormatError:
        return False
    return all(record.get(name) for name in REQUIRED_FIELDS)
