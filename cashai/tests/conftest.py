# cashai/tests/conftest.py
# Test configuration and fixtures for pytest

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cashai.auth import AccessTokenCipher, SessionTokenManager
from cashai.dependencies import (
    get_db, get_plaid_client, get_sandbox_plaid_client, get_token_cipher, get_token_manager
)
from cashai.errors import UpstreamError
from cashai.main import app
from cashai.models import Base
from cashai.store import CredentialStore

# --- Test Database Setup ---
# One in-memory SQLite database shared by every connection (StaticPool), so the
# TestClient's worker threads see the same tables as the test itself.
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_SECRET = "test-jwt-secret"


class FakePlaidClient:
    """Stands in for PlaidClient; records calls and returns canned data."""

    def __init__(self):
        self.calls = []
        self.fail_with = None
        self.transactions = [
            {
                "transaction_id": f"txn-{i}",
                "amount": 10.5 * i,
                "date": (date.today() - timedelta(days=i)).isoformat(),
                "merchant_name": f"Merchant {i}",
                "name": f"PURCHASE {i}",
                "personal_finance_category": {"primary": "FOOD_AND_DRINK"},
            }
            for i in range(1, 4)
        ]

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.fail_with is not None:
            raise self.fail_with

    def create_link_token(self, client_user_id):
        self._record("create_link_token", client_user_id)
        return {"link_token": f"link-sandbox-{client_user_id}", "expiration": "2030-01-01T00:00:00Z"}

    def exchange_public_token(self, public_token):
        self._record("exchange_public_token", public_token)
        return "access-sandbox-secret", "item-123"

    def get_balances(self, access_token):
        self._record("get_balances", access_token)
        return {"accounts": [{"account_id": "acc-1", "balances": {"current": 110.0}}]}

    def get_transactions(self, access_token, start_date=None, end_date=None, count=None, offset=0):
        self._record("get_transactions", access_token, start_date, end_date, count, offset)
        return {"transactions": self.transactions, "total_transactions": len(self.transactions)}

    def get_all_transactions(self, access_token, start_date=None, end_date=None):
        self._record("get_all_transactions", access_token, start_date, end_date)
        return list(self.transactions)


def upstream_failure(code="INVALID_PUBLIC_TOKEN", message="provided public token is expired"):
    return UpstreamError(message, error_code=code, error_type="INVALID_INPUT", status=400)


# --- Pytest Fixtures ---

@pytest.fixture(scope="function")
def db_session():
    """Fresh schema for each test; dropped afterwards."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cipher():
    return AccessTokenCipher.from_secret(TEST_SECRET)


@pytest.fixture
def token_manager():
    return SessionTokenManager(TEST_SECRET)


@pytest.fixture
def store(db_session, cipher):
    return CredentialStore(db_session, cipher)


@pytest.fixture
def fake_plaid():
    return FakePlaidClient()


@pytest.fixture(scope="function")
def client(db_session, cipher, token_manager, fake_plaid):
    """TestClient wired to the test database, a fixed signing key and the fake Plaid client."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_cipher] = lambda: cipher
    app.dependency_overrides[get_token_manager] = lambda: token_manager
    app.dependency_overrides[get_plaid_client] = lambda: fake_plaid
    app.dependency_overrides[get_sandbox_plaid_client] = lambda: fake_plaid

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def user(store):
    user_id = store.create_user("ada@example.com", "Ada Lovelace")
    return store.get_user_by_id(user_id)


@pytest.fixture
def auth_headers(user, token_manager):
    return {"Authorization": f"Bearer {token_manager.issue(user)}"}
