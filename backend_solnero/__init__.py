"""
Backend Solnero: HTTP API for Solana keypair wallets.

Registers public keys, reads balances, sends native SOL transfers signed with
a client-supplied secret key, and records transfer history. Modular layout
with clear separation between validation, caching, rate limiting, the
blockchain gateway, persistence, and the API server.
"""

__version__ = "1.0.0"
