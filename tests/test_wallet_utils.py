"""
Pytest tests for wallet_utils: address format check, input sanitising and log masking.
"""

from __future__ import annotations

import base64

from backend_solnero.utils.wallet_utils import (
    is_valid_address,
    mask_address,
    obfuscate_transaction,
    sanitize_input,
    truncate_address,
)

VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"


def test_valid_addresses():
    """Real 44- and 43-char keys and a 32-char base58 string are accepted."""
    assert is_valid_address(VALID_WALLET)
    assert is_valid_address(VALID_WALLET_2)
    assert is_valid_address("11111111111111111111111111111111")
    assert is_valid_address("So11111111111111111111111111111111111111112")


def test_address_length_bounds():
    """Fewer than 32 or more than 44 characters are rejected."""
    assert not is_valid_address("1" * 31)
    assert is_valid_address("1" * 32)
    assert is_valid_address("1" * 44)
    assert not is_valid_address("1" * 45)
    assert not is_valid_address("")


def test_address_rejects_non_base58_characters():
    """0, O, I and l are outside the base58 alphabet; so are spaces and punctuation."""
    for bad in ("0", "O", "I", "l", " ", "-", "+"):
        candidate = VALID_WALLET[:-1] + bad
        assert not is_valid_address(candidate), bad


def test_address_rejects_non_strings():
    assert not is_valid_address(None)
    assert not is_valid_address(12345678901234567890123456789012)
    assert not is_valid_address(VALID_WALLET.encode())


def test_sanitize_input():
    """Angle brackets removed, whitespace trimmed, result capped at 1000 chars."""
    assert sanitize_input("  <script>abc</script>  ") == "scriptabc/script"
    assert sanitize_input(f"\t{VALID_WALLET}\n") == VALID_WALLET
    assert len(sanitize_input("a" * 5000)) == 1000
    assert sanitize_input("<<>>") == ""


def test_truncate_and_mask():
    assert truncate_address(VALID_WALLET) == "9QCfNuQuxct1Xk9y..."
    assert mask_address(VALID_WALLET) == "9QCfNuQu...Urka"


def test_obfuscate_transaction():
    """Masked addresses and base64 of the amount's string form."""
    view = obfuscate_transaction(VALID_WALLET, VALID_WALLET_2, 0.5)
    assert view["obfuscatedFrom"] == "9QCfNuQu...Urka"
    assert view["obfuscatedTo"] == "7F1WzVNQ...J5nZ"
    assert base64.b64decode(view["encryptedAmount"]).decode() == "0.5"
    assert VALID_WALLET not in str(view)
