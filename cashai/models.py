# cashai/models.py
# Database models for users, linked bank accounts and cached transactions

from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    create_engine, Column, Integer, String, Date, Numeric, ForeignKey,
    DateTime, Text, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship, sessionmaker, declarative_base

from .config import settings

# Database Setup
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utc_now() -> datetime:
    """Naive UTC timestamp, the format every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ===== ENUMS =====

class LoginMethod(str, PyEnum):
    EMAIL = "email"
    GOOGLE = "google"
    APPLE = "apple"

# ===== USERS =====

class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    login_method = Column(String, nullable=False, default=LoginMethod.EMAIL.value)
    created_at = Column(DateTime, default=utc_now, index=True)

    # Relationships
    bank_accounts = relationship("BankAccount", back_populates="user")
    transactions = relationship("Transaction", back_populates="user")

# ===== LINKED BANK ACCOUNTS =====

class BankAccount(Base):
    """A Plaid item linked by a user; the access token is stored encrypted."""
    __tablename__ = "bank_accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    plaid_item_id = Column(String, nullable=False, index=True)
    plaid_access_token = Column(Text, nullable=False)
    account_name = Column(String, nullable=True)
    account_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user = relationship("User", back_populates="bank_accounts")
    transactions = relationship("Transaction", back_populates="account")

# ===== CACHED TRANSACTIONS =====

class Transaction(Base):
    """Transactions ingested from Plaid; immutable once stored."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    plaid_transaction_id = Column(String, nullable=False)
    amount = Column(Numeric(precision=12, scale=2), nullable=False)
    category = Column(String, nullable=True)
    merchant = Column(String, nullable=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=utc_now)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)

    user = relationship("User", back_populates="transactions")
    account = relationship("BankAccount", back_populates="transactions")

    __table_args__ = (
        UniqueConstraint("account_id", "plaid_transaction_id", name="uq_transactions_account_plaid_id"),
        Index("idx_transactions_date_user", "date", "user_id"),
        {"sqlite_autoincrement": True},
    )

# ===== CREATE TABLES =====

def create_tables(bind=None):
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)
