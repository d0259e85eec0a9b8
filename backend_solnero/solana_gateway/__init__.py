"""
Solana blockchain gateway: RPC access, key decoding and lamport arithmetic.

solana-py / solders are imported inside the functions that need them.
"""

from backend_solnero.solana_gateway.client import ConfirmationResult, SolanaGateway
from backend_solnero.solana_gateway.constants import (
    FEE_ESTIMATE_LAMPORTS,
    LAMPORTS_PER_SOL,
    lamports_to_sol,
    sol_to_lamports,
)

__all__ = [
    "ConfirmationResult",
    "FEE_ESTIMATE_LAMPORTS",
    "LAMPORTS_PER_SOL",
    "SolanaGateway",
    "lamports_to_sol",
    "sol_to_lamports",
]
