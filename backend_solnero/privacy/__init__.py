"""
Placeholder privacy token. Provides no cryptographic guarantee; see proof.py.
"""

from backend_solnero.privacy.proof import (
    PLACEHOLDER_PROOF,
    ProofFormatError,
    build_proof_record,
    decode_proof,
    encode_proof,
    generate_proof,
    verify_proof,
)

__all__ = [
    "PLACEHOLDER_PROOF",
    "ProofFormatError",
    "build_proof_record",
    "decode_proof",
    "encode_proof",
    "generate_proof",
    "verify_proof",
]
