# cashai/routers/users.py
# User listing and session token verification

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .. import models, schemas
from ..auth import SessionTokenManager
from ..dependencies import get_current_user, get_store, get_token_manager
from ..errors import StorageError
from ..store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users")
async def list_users(
    current_user: models.User = Depends(get_current_user),
    store: CredentialStore = Depends(get_store),
):
    try:
        users = store.list_users()
    except StorageError:
        return JSONResponse(status_code=500, content={"error": "Failed to fetch users"})

    return {
        "message": "Database is connected!",
        "data": [schemas.User.model_validate(u).model_dump(mode="json") for u in users],
    }


@router.post("/verify-token")
async def verify_token(
    payload: Optional[schemas.VerifyTokenRequest] = None,
    tokens: SessionTokenManager = Depends(get_token_manager),
):
    """Check a session token and return its claims."""
    if payload is None or not payload.token:
        return JSONResponse(status_code=401, content={"error": "Token is required"})

    claims = tokens.verify(payload.token)
    if claims is None:
        return JSONResponse(status_code=401, content={"error": "Invalid token"})

    return {"valid": True, "user": claims}
