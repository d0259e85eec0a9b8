"""
Transaction submission, history and status reconciliation.
"""

from backend_solnero.transactions.locks import SenderLocks
from backend_solnero.transactions.service import SendOutcome, SendRequest, TransactionService

__all__ = ["SendOutcome", "SendRequest", "SenderLocks", "TransactionService"]
