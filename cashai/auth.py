# cashai/auth.py
# Session tokens for the mobile client and encryption of Plaid access tokens

import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError, jwt

from .errors import StorageError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_DAYS = 7


class SessionTokenManager:
    """Issues and verifies signed, time-limited session tokens.

    The signing key is handed in once at startup and never changes for the
    lifetime of the instance.
    """

    def __init__(self, secret_key: str, expire_days: int = SESSION_TOKEN_EXPIRE_DAYS,
                 algorithm: str = ALGORITHM):
        self.secret_key = secret_key
        self.expire_days = expire_days
        self.algorithm = algorithm

    def issue(self, user: Any) -> str:
        """Create a token embedding the user's id and email."""
        now = datetime.now(timezone.utc)
        payload = {
            "userId": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(days=self.expire_days),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Decode a token; returns None for anything that is not a valid, unexpired token."""
        if not token or not isinstance(token, str):
            return None

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug(f"Session token rejected: {e}")
            return None

        if "userId" not in claims or "email" not in claims:
            return None
        return claims


class AccessTokenCipher:
    """Symmetric encryption for Plaid access tokens stored in the database."""

    def __init__(self, key: str):
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)

    @classmethod
    def from_secret(cls, secret: str) -> "AccessTokenCipher":
        """Derive a Fernet key from an arbitrary secret string."""
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        return cls(base64.urlsafe_b64encode(digest).decode("ascii"))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise StorageError("Stored access token could not be decrypted", cause=e)
