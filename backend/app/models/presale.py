"""
SQLAlchemy models for the presale ledger.

These models track:
- Users keyed by normalized wallet address (balances and metadata)
- The singleton presale row (price, stage, running totals)
- Purchase transactions, append-only and unique on tx hash

USD amounts and prices are integers in AMOUNT_PRECISION units; token amounts
are whole tokens.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class TransactionStatus(str, Enum):
    """Transaction status."""
    CONFIRMED = "confirmed"
    FAILED = "failed"


class User(Base):
    """
    One row per wallet identity, created on first contact.

    Balances are only changed by the purchase ledger; metadata by connect
    events and the first confirmed purchase.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    wallet_address = Column(String(128), unique=True, nullable=False, index=True)
    chain = Column(String(32), nullable=True)
    total_contributed_units = Column(BigInteger, nullable=False, default=0)
    token_balance = Column(BigInteger, nullable=False, default=0)
    paid = Column(Boolean, nullable=False, default=False)
    # "metadata" is reserved on declarative classes
    annotations = Column("metadata", JSON, nullable=False, default=dict)
    first_contribution_at = Column(DateTime(timezone=True), nullable=True)
    last_contribution_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("total_contributed_units >= 0", name="ck_users_contributed_non_negative"),
        CheckConstraint("token_balance >= 0", name="ck_users_balance_non_negative"),
    )


class Presale(Base):
    """
    Singleton sale configuration and running totals.

    Totals are only ever changed with in-database increments.
    """
    __tablename__ = "presale"

    id = Column(Integer, primary_key=True)
    current_stage = Column(Integer, nullable=False, default=1)
    current_price_units = Column(BigInteger, nullable=False)
    total_raised_units = Column(BigInteger, nullable=False, default=0)
    tokens_allocated = Column(BigInteger, nullable=False, default=0)
    total_participants = Column(Integer, nullable=False, default=0)
    hard_cap_units = Column(BigInteger, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("current_price_units > 0", name="ck_presale_price_positive"),
        CheckConstraint("hard_cap_units > 0", name="ck_presale_hard_cap_positive"),
    )


class Transaction(Base):
    """
    Audit record of a purchase. Created once per distinct tx hash.

    The wallet's balances right after the purchase are snapshotted so a
    replayed submission returns the original result.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    tx_hash = Column(String(128), unique=True, nullable=False, index=True)
    wallet_address = Column(String(128), nullable=False, index=True)
    chain = Column(String(32), nullable=False)
    payment_token = Column(String(20), nullable=True)
    amount_units = Column(BigInteger, nullable=False)
    tokens_received = Column(BigInteger, nullable=False)
    price_at_purchase_units = Column(BigInteger, nullable=False)
    token_balance_after = Column(BigInteger, nullable=False)
    total_contributed_after_units = Column(BigInteger, nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.CONFIRMED.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
