"""Secret key decoding. Keys arrive base58-encoded (64 bytes: seed + public key) from the wallet client."""

from __future__ import annotations

from typing import Any

import base58

from backend_solnero.core.exceptions import InvalidSecretKeyError
from backend_solnero.solana_gateway.constants import SECRET_KEY_LEN


def decode_secret_key(secret_key: str) -> bytes:
    """base58-decode and length-check a secret key. Raises InvalidSecretKeyError."""
    try:
        raw = base58.b58decode(secret_key.strip())
    except ValueError as e:
        raise InvalidSecretKeyError(str(e)) from e
    if len(raw) != SECRET_KEY_LEN:
        raise InvalidSecretKeyError(f"expected {SECRET_KEY_LEN} bytes, got {len(raw)}")
    return raw


def load_keypair(secret_key: str) -> Any:
    """Return a solders Keypair for a base58 secret key. Raises InvalidSecretKeyError."""
    from solders.keypair import Keypair

    raw = decode_secret_key(secret_key)
    try:
        return Keypair.from_bytes(raw)
    except Exception as e:
        raise InvalidSecretKeyError(str(e)) from e


def encode_secret_key(keypair: Any) -> str:
    """Inverse of load_keypair: base58 of the 64 keypair bytes."""
    return base58.b58encode(bytes(keypair)).decode("ascii")
