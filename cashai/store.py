# cashai/store.py
# Credential store: data access for users, linked accounts and transactions

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .auth import AccessTokenCipher
from .errors import ConflictError, StorageError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TRANSACTION_LIMIT = 100
ACTIVE_USER_DAYS = 7


class CredentialStore:
    """Pure data access over a SQLAlchemy session.

    Every database fault is rolled back and re-raised as ``StorageError``.
    """

    def __init__(self, db: Session, cipher: AccessTokenCipher):
        self.db = db
        self.cipher = cipher

    def _fail(self, action: str, error: SQLAlchemyError) -> StorageError:
        self.db.rollback()
        logger.error(f"❌ Storage error while trying to {action}: {error}")
        return StorageError(f"Failed to {action}", cause=error)

    # ===== USERS =====

    def create_user(self, email: str, name: Optional[str] = None,
                    login_method: str = models.LoginMethod.EMAIL.value) -> int:
        """Insert a user and return its id; ConflictError if the email is taken."""
        _check_login_method(login_method)

        if self.get_user_by_email(email) is not None:
            raise ConflictError("User with this email already exists", email=email)

        user = models.User(email=email, name=name, login_method=login_method)
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User with this email already exists", email=email) from e
        except SQLAlchemyError as e:
            raise self._fail("create user", e) from e

        logger.info(f"Created user {user.id}")
        return user.id

    def get_user_by_email(self, email: str) -> Optional[models.User]:
        try:
            return self.db.query(models.User).filter(models.User.email == email).first()
        except SQLAlchemyError as e:
            raise self._fail("fetch user", e) from e

    def get_user_by_id(self, user_id: int) -> Optional[models.User]:
        try:
            return self.db.get(models.User, user_id)
        except SQLAlchemyError as e:
            raise self._fail("fetch user", e) from e

    def get_or_create_user(self, email: str, name: Optional[str] = None) -> Tuple[models.User, bool]:
        """Return the user with this email, creating it on first sight."""
        user = self.get_user_by_email(email)
        if user is not None:
            return user, False
        user_id = self.create_user(email, name)
        return self.get_user_by_id(user_id), True

    def update_user_login_method(self, user_id: int, login_method: str) -> int:
        """Set the login method; returns the number of rows changed (0 if no such user)."""
        _check_login_method(login_method)
        try:
            changed = self.db.query(models.User).filter(
                models.User.id == user_id
            ).update({models.User.login_method: login_method}, synchronize_session="fetch")
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("update login method", e) from e
        return changed

    def list_users(self, limit: Optional[int] = None) -> List[models.User]:
        try:
            query = self.db.query(models.User).order_by(
                models.User.created_at.desc(), models.User.id.desc()
            )
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except SQLAlchemyError as e:
            raise self._fail("fetch users", e) from e

    # ===== LINKED ACCOUNTS =====

    def save_linked_account(self, user_id: int, item_id: str, access_token: str,
                            name: Optional[str] = None, account_type: Optional[str] = None) -> int:
        """Persist a linked Plaid item; the access token is encrypted before it is written."""
        account = models.BankAccount(
            user_id=user_id,
            plaid_item_id=item_id,
            plaid_access_token=self.cipher.encrypt(access_token),
            account_name=name,
            account_type=account_type,
        )
        try:
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)
        except SQLAlchemyError as e:
            raise self._fail("save linked account", e) from e

        logger.info(f"Saved linked account {account.id} for user {user_id}")
        return account.id

    def get_linked_account(self, account_id: int, user_id: Optional[int] = None) -> Optional[models.BankAccount]:
        try:
            query = self.db.query(models.BankAccount).filter(models.BankAccount.id == account_id)
            if user_id is not None:
                query = query.filter(models.BankAccount.user_id == user_id)
            return query.first()
        except SQLAlchemyError as e:
            raise self._fail("fetch linked account", e) from e

    def get_access_token(self, account: models.BankAccount) -> str:
        return self.cipher.decrypt(account.plaid_access_token)

    def list_linked_accounts(self, user_id: Optional[int] = None) -> List[models.BankAccount]:
        """Linked accounts, newest first, optionally for a single user."""
        try:
            query = self.db.query(models.BankAccount)
            if user_id is not None:
                query = query.filter(models.BankAccount.user_id == user_id)
            return query.order_by(
                models.BankAccount.created_at.desc(), models.BankAccount.id.desc()
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("fetch linked accounts", e) from e

    # ===== TRANSACTIONS =====

    def save_transaction(self, user_id: int, account_id: int, plaid_transaction_id: str,
                         amount: Any, category: Optional[str], merchant: Optional[str],
                         txn_date: date) -> int:
        txn = models.Transaction(
            user_id=user_id,
            account_id=account_id,
            plaid_transaction_id=plaid_transaction_id,
            amount=Decimal(str(amount)),
            category=category,
            merchant=merchant,
            date=txn_date,
        )
        try:
            self.db.add(txn)
            self.db.commit()
            self.db.refresh(txn)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                "Transaction already stored for this account",
                plaid_transaction_id=plaid_transaction_id,
            ) from e
        except SQLAlchemyError as e:
            raise self._fail("save transaction", e) from e
        return txn.id

    def save_transactions(self, user_id: int, account_id: int,
                          records: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
        """Store a batch in one database transaction.

        Each record carries ``plaid_transaction_id``, ``amount``, ``category``,
        ``merchant`` and ``date``. Records already stored for the account, or
        repeated within the batch, are skipped. Returns ``(added, skipped)``.
        """
        records = list(records)
        try:
            existing = {
                row[0] for row in self.db.query(models.Transaction.plaid_transaction_id).filter(
                    models.Transaction.account_id == account_id
                )
            }
            added = 0
            skipped = 0
            for record in records:
                plaid_id = record["plaid_transaction_id"]
                if plaid_id in existing:
                    skipped += 1
                    continue
                existing.add(plaid_id)
                self.db.add(models.Transaction(
                    user_id=user_id,
                    account_id=account_id,
                    plaid_transaction_id=plaid_id,
                    amount=Decimal(str(record["amount"])),
                    category=record.get("category"),
                    merchant=record.get("merchant"),
                    date=record["date"],
                ))
                added += 1
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("save transactions", e) from e

        logger.info(f"Stored {added} transactions for account {account_id} ({skipped} already present)")
        return added, skipped

    def list_transactions(self, user_id: Optional[int] = None,
                          limit: int = DEFAULT_TRANSACTION_LIMIT) -> List[models.Transaction]:
        """Transactions ordered by date, newest first."""
        try:
            query = self.db.query(models.Transaction)
            if user_id is not None:
                query = query.filter(models.Transaction.user_id == user_id)
            return query.order_by(
                models.Transaction.date.desc(), models.Transaction.id.desc()
            ).limit(limit).all()
        except SQLAlchemyError as e:
            raise self._fail("fetch transactions", e) from e

    # ===== DASHBOARD =====

    def dashboard_stats(self, active_days: int = ACTIVE_USER_DAYS, recent: int = 10) -> Dict[str, Any]:
        """Aggregate counts for the operator dashboard.

        ``activeUsers`` counts users created within the last ``active_days``.
        """
        cutoff = models.utc_now() - timedelta(days=active_days)
        try:
            total_users = self.db.query(func.count(models.User.id)).scalar()
            total_accounts = self.db.query(func.count(models.BankAccount.id)).scalar()
            total_transactions = self.db.query(func.count(models.Transaction.id)).scalar()
            active_users = self.db.query(func.count(models.User.id)).filter(
                models.User.created_at > cutoff
            ).scalar()
        except SQLAlchemyError as e:
            raise self._fail("compute dashboard statistics", e) from e

        return {
            "totalUsers": total_users,
            "totalBankAccounts": total_accounts,
            "totalTransactions": total_transactions,
            "activeUsers": active_users,
            "recentUsers": self.list_users(limit=recent),
        }


def _check_login_method(login_method: str):
    allowed = {m.value for m in models.LoginMethod}
    if login_method not in allowed:
        raise ValidationError(
            f"login_method must be one of: {', '.join(sorted(allowed))}"
        )
