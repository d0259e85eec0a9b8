"""Wallet address and free-text input helpers."""

from __future__ import annotations

import base64
import re
from typing import Any

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")

MIN_ADDRESS_LEN = 32
MAX_ADDRESS_LEN = 44
MAX_INPUT_LEN = 1000


def is_valid_address(address: Any) -> bool:
    """
    Return True if address looks like a Solana public key: 32-44 base58 characters.

    Format only; the bytes are not checked to be a point on the curve.
    """
    if not isinstance(address, str):
        return False
    if not (MIN_ADDRESS_LEN <= len(address) <= MAX_ADDRESS_LEN):
        return False
    return _BASE58_RE.fullmatch(address) is not None


def sanitize_input(value: str) -> str:
    """Strip '<' and '>', trim whitespace, cap at 1000 characters."""
    return re.sub(r"[<>]", "", value).strip()[:MAX_INPUT_LEN]


def truncate_address(address: str, head: int = 16) -> str:
    return address[:head] + "..."


def mask_address(address: str) -> str:
    """First 8 and last 4 characters, e.g. 9QCfNuQu...Urka."""
    return f"{address[:8]}...{address[-4:]}"


def obfuscate_transaction(from_address: str, to_address: str, amount: float) -> dict[str, str]:
    """
    Log-safe view of a transfer: masked addresses and a base64 amount.

    base64 is an encoding, not encryption; this only keeps raw values out of log lines.
    """
    return {
        "obfuscatedFrom": mask_address(from_address),
        "obfuscatedTo": mask_address(to_address),
        "encryptedAmount": base64.b64encode(str(amount).encode("utf-8")).decode("ascii"),
    }
