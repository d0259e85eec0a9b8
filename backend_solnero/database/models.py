"""
SQLAlchemy models: users and the transfers they sent.

A user row is created the first time a public key is seen and is never
deleted. A transaction row is written once the transfer has been broadcast;
its status is the only field that changes afterwards (pending -> confirmed/failed).
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    public_key = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    transactions = relationship("Transaction", back_populates="user")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "publicKey": self.public_key}


class Transaction(Base):
    """Outgoing SOL transfer. tx_hash is the on-chain signature and the reconciliation key."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(16), nullable=False, default="send")
    amount = Column(Numeric(20, 9), nullable=False)  # SOL
    from_address = Column(String(64), nullable=False, index=True)
    to_address = Column(String(64), nullable=False)
    tx_hash = Column(String(128), unique=True, nullable=False, index=True)
    status = Column(
        Enum(TransactionStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    zk_proof = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    user = relationship("User", back_populates="transactions")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "amount": float(self.amount) if self.amount is not None else None,
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
            "txHash": self.tx_hash,
            "status": self.status.value if isinstance(self.status, TransactionStatus) else self.status,
            "zkProof": self.zk_proof,
            "createdAt": _iso(self.created_at),
        }
