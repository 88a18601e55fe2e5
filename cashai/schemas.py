# cashai/schemas.py
# Data validation schemas (Pydantic) for request bodies and responses

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import LoginMethod

# Request fields are optional so that missing ones produce the
# "<field> is required" errors the mobile client expects.

# --- Request Schemas ---
class LinkTokenRequest(BaseModel):
    client_user_id: Optional[str] = None


class PublicTokenExchange(BaseModel):
    """Body of /api/exchange-public-token."""
    public_token: Optional[str] = None
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    login_method: Optional[LoginMethod] = None
    account_name: Optional[str] = None
    account_type: Optional[str] = None


class AccessTokenRequest(BaseModel):
    """Either a raw Plaid access token or the id of a linked account."""
    access_token: Optional[str] = None
    account_id: Optional[int] = None


class TransactionsRequest(AccessTokenRequest):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    count: Optional[int] = Field(default=None, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class TransactionSyncRequest(BaseModel):
    account_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class VerifyTokenRequest(BaseModel):
    token: Optional[str] = None


# --- Response Schemas ---
class User(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    login_method: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LinkedAccount(BaseModel):
    """A linked account as shown to clients; never includes the access token."""
    id: int
    user_id: int
    plaid_item_id: str
    account_name: Optional[str] = None
    account_type: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Transaction(BaseModel):
    id: int
    user_id: int
    account_id: int
    plaid_transaction_id: str
    amount: Decimal
    category: Optional[str] = None
    merchant: Optional[str] = None
    date: date
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    totalUsers: int
    totalBankAccounts: int
    totalTransactions: int
    activeUsers: int
    recentUsers: List[User] = []
