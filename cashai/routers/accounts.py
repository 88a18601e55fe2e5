# cashai/routers/accounts.py
# Linked accounts and cached transactions for the signed-in user

from typing import List

from fastapi import APIRouter, Depends, Query

from .. import models, schemas
from ..dependencies import get_current_user, get_store
from ..store import CredentialStore, DEFAULT_TRANSACTION_LIMIT

router = APIRouter()


@router.get("/accounts", response_model=List[schemas.LinkedAccount])
async def list_accounts(
    current_user: models.User = Depends(get_current_user),
    store: CredentialStore = Depends(get_store),
):
    """Linked accounts of the current user, newest first."""
    return store.list_linked_accounts(user_id=current_user.id)


@router.get("/transactions", response_model=List[schemas.Transaction])
async def list_transactions(
    limit: int = Query(DEFAULT_TRANSACTION_LIMIT, ge=1, le=1000,
                       description="Maximum number of transactions to return"),
    current_user: models.User = Depends(get_current_user),
    store: CredentialStore = Depends(get_store),
):
    """Stored transactions of the current user, newest first."""
    return store.list_transactions(user_id=current_user.id, limit=limit)
