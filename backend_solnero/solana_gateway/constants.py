from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

LAMPORTS_PER_SOL = 1_000_000_000
# Flat estimate for a single-signature transfer
FEE_ESTIMATE_LAMPORTS = 5_000
SECRET_KEY_LEN = 64


def sol_to_lamports(amount_sol: Decimal | float | int) -> int:
    """floor(amount * LAMPORTS_PER_SOL), computed in Decimal so 0.1 SOL is exactly 100_000_000."""
    value = Decimal(str(amount_sol)) * LAMPORTS_PER_SOL
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL
