from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend_solnero.database.models import Transaction, TransactionStatus, User
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)


def get_user_by_public_key(session: Session, public_key: str) -> User | None:
    return session.execute(select(User).where(User.public_key == public_key)).scalar_one_or_none()


def upsert_user(session: Session, public_key: str) -> User:
    """
    Return the user for public_key, creating it if absent. Existing rows are left untouched.
    A concurrent insert of the same key is resolved by re-reading the winner's row.
    """
    user = get_user_by_public_key(session, public_key)
    if user is not None:
        return user
    try:
        with session.begin_nested():
            user = User(public_key=public_key)
            session.add(user)
            session.flush()
    except IntegrityError:
        user = get_user_by_public_key(session, public_key)
        if user is None:
            raise
        return user
    logger.info("user_created", user_id=user.id, wallet_id=public_key[:16] + "...")
    return user


def create_transaction(
    session: Session,
    *,
    user_id: int,
    amount: Decimal,
    from_address: str,
    to_address: str,
    tx_hash: str,
    status: TransactionStatus,
    zk_proof: str | None,
    tx_type: str = "send",
) -> Transaction:
    tx = Transaction(
        user_id=user_id,
        type=tx_type,
        amount=amount,
        from_address=from_address,
        to_address=to_address,
        tx_hash=tx_hash,
        status=status,
        zk_proof=zk_proof,
    )
    session.add(tx)
    session.flush()
    return tx


def get_transaction_by_signature(session: Session, signature: str) -> Transaction | None:
    return session.execute(select(Transaction).where(Transaction.tx_hash == signature)).scalar_one_or_none()


def list_user_transactions(
    session: Session,
    user_id: int,
    *,
    page: int,
    limit: int,
) -> tuple[list[Transaction], int]:
    """Page of a user's transactions, newest first, plus the user's total count."""
    total = session.execute(
        select(func.count()).select_from(Transaction).where(Transaction.user_id == user_id)
    ).scalar_one()
    rows = (
        session.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(rows), int(total)


def list_pending_transactions(session: Session, *, limit: int = 50) -> list[Transaction]:
    """Oldest pending transactions first."""
    rows = (
        session.execute(
            select(Transaction)
            .where(Transaction.status == TransactionStatus.PENDING)
            .order_by(Transaction.created_at.asc(), Transaction.id.asc())
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(rows)


def update_transaction_status(session: Session, tx: Transaction, status: TransactionStatus) -> Transaction:
    if tx.status != status:
        logger.info("transaction_status_updated", signature=tx.tx_hash, old=str(tx.status.value), new=status.value)
        tx.status = status
        session.flush()
    return tx


def count_users(session: Session) -> int:
    return int(session.execute(select(func.count()).select_from(User)).scalar_one())


def count_transactions(session: Session) -> int:
    return int(session.execute(select(func.count()).select_from(Transaction)).scalar_one())
