"""
Persistence layer: users and sent transactions (SQLAlchemy).

SQLite by default; any SQLAlchemy URL (e.g. PostgreSQL) via DATABASE_URL.
"""

from backend_solnero.database.database import Database
from backend_solnero.database.models import Base, Transaction, TransactionStatus, User

__all__ = [
    "Base",
    "Database",
    "Transaction",
    "TransactionStatus",
    "User",
]
