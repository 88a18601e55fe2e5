# cashai/dependencies.py
# Shared FastAPI dependencies: database, process-wide services and authentication

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from . import models
from .auth import AccessTokenCipher, SessionTokenManager
from .config import get_settings
from .errors import AuthError
from .plaid_client import PlaidClient
from .store import CredentialStore

# Security
security = HTTPBearer(auto_error=False)

# ===== DATABASE DEPENDENCY =====
def get_db():
    """Database session dependency."""
    db = models.SessionLocal()
    try:
        yield db
    finally:
        db.close()

# ===== PROCESS-WIDE SERVICES =====
# Created on first use and kept for the lifetime of the process.

@lru_cache()
def get_token_manager() -> SessionTokenManager:
    settings = get_settings()
    return SessionTokenManager(settings.JWT_SECRET, expire_days=settings.SESSION_TOKEN_EXPIRE_DAYS)


@lru_cache()
def get_token_cipher() -> AccessTokenCipher:
    settings = get_settings()
    if settings.ACCESS_TOKEN_ENCRYPTION_KEY:
        return AccessTokenCipher(settings.ACCESS_TOKEN_ENCRYPTION_KEY)
    return AccessTokenCipher.from_secret(settings.JWT_SECRET)


@lru_cache()
def get_plaid_client() -> PlaidClient:
    return PlaidClient(get_settings())


@lru_cache()
def get_sandbox_plaid_client() -> PlaidClient:
    """Sandbox client for the credential smoke check, whatever PLAID_ENV says."""
    sandbox = get_settings().model_copy(
        update={"PLAID_ENV": "sandbox", "PLAID_PRODUCTS": ["auth"], "PLAID_REDIRECT_URI": ""}
    )
    return PlaidClient(sandbox)


def get_store(
    db: Session = Depends(get_db),
    cipher: AccessTokenCipher = Depends(get_token_cipher),
) -> CredentialStore:
    return CredentialStore(db, cipher)

# ===== AUTHENTICATION DEPENDENCIES =====
async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: SessionTokenManager = Depends(get_token_manager),
    store: CredentialStore = Depends(get_store),
) -> Optional[models.User]:
    """Current user if a valid bearer token was sent, None otherwise."""
    if not credentials:
        return None

    claims = tokens.verify(credentials.credentials)
    if claims is None:
        return None
    return store.get_user_by_id(claims["userId"])


async def get_current_user(
    user: Optional[models.User] = Depends(get_current_user_optional),
) -> models.User:
    """Require an authenticated user."""
    if user is None:
        raise AuthError("Invalid authentication credentials")
    return user
