# cashai/routers/plaid.py
# Plaid link, token exchange, balance and transaction endpoints

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .. import models, schemas
from ..auth import SessionTokenManager
from ..dependencies import (
    get_current_user, get_current_user_optional, get_plaid_client, get_sandbox_plaid_client,
    get_store, get_token_manager,
)
from ..errors import AuthError, NotFoundError, StorageError, UpstreamError, ValidationError
from ..plaid_client import PlaidClient, to_transaction_record
from ..store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    content = {"error": message}
    content.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=content)


def resolve_access_token(
    payload: Optional[schemas.AccessTokenRequest],
    current_user: Optional[models.User],
    store: CredentialStore,
) -> str:
    """Pick the Plaid access token from the body or from a linked account the user owns."""
    if payload and payload.access_token:
        return payload.access_token

    if payload is None or payload.account_id is None:
        raise ValidationError("access_token is required")
    if current_user is None:
        raise AuthError("Authentication required to use account_id")

    account = store.get_linked_account(payload.account_id, user_id=current_user.id)
    if account is None:
        raise NotFoundError("Linked account not found")
    return store.get_access_token(account)

# ===== LINK =====

@router.post("/create-link-token")
async def create_link_token(
    payload: Optional[schemas.LinkTokenRequest] = None,
    current_user: Optional[models.User] = Depends(get_current_user_optional),
    plaid: PlaidClient = Depends(get_plaid_client),
):
    """Ask Plaid for a link token scoped to the requesting user."""
    if current_user is not None:
        client_user_id = str(current_user.id)
    elif payload and payload.client_user_id:
        client_user_id = payload.client_user_id
    else:
        client_user_id = uuid.uuid4().hex

    try:
        return await run_in_threadpool(plaid.create_link_token, client_user_id)
    except UpstreamError as e:
        return error_response(500, "Failed to create link token",
                              details=e.message, error_code=e.error_code)


@router.post("/test-sandbox")
async def sandbox_check(plaid: PlaidClient = Depends(get_sandbox_plaid_client)):
    """Create a throwaway sandbox link token to check the Plaid credentials."""
    try:
        result = await run_in_threadpool(plaid.create_link_token, "user-id")
    except UpstreamError as e:
        return error_response(500, "Sandbox test failed", details=e.message)

    return {"success": True, "link_token": result["link_token"], "message": "Sandbox test successful"}


@router.post("/exchange-public-token")
async def exchange_public_token(
    payload: Optional[schemas.PublicTokenExchange] = None,
    current_user: Optional[models.User] = Depends(get_current_user_optional),
    plaid: PlaidClient = Depends(get_plaid_client),
    store: CredentialStore = Depends(get_store),
    tokens: SessionTokenManager = Depends(get_token_manager),
):
    """Exchange a public token and keep the access token server-side.

    The owning user is the session user. Without a session, ``email`` must be
    new: the user is created on first link and receives a session token. An
    email that already belongs to someone needs that user's session. All of
    this is checked before the exchange because public tokens are single-use.
    """
    if payload is None or not payload.public_token:
        return error_response(400, "public_token is required")
    if current_user is None:
        if not payload.email:
            return error_response(400, "email is required when not authenticated")
        if store.get_user_by_email(payload.email) is not None:
            raise AuthError("An account with this email already exists, sign in to link another bank")

    try:
        access_token, item_id = await run_in_threadpool(
            plaid.exchange_public_token, payload.public_token
        )
    except UpstreamError as e:
        return error_response(500, "Failed to exchange public token",
                              details=e.message, error_code=e.error_code)

    login_method = payload.login_method.value if payload.login_method else None
    session_token = None
    try:
        user = current_user
        if user is None:
            user_id = store.create_user(
                payload.email, payload.name, login_method or models.LoginMethod.EMAIL.value
            )
            user = store.get_user_by_id(user_id)
            session_token = tokens.issue(user)
            logger.info(f"New user {user.id} created on first bank link")
        elif login_method:
            store.update_user_login_method(user.id, login_method)

        account_id = store.save_linked_account(
            user.id, item_id, access_token, payload.account_name, payload.account_type
        )
    except StorageError as e:
        return error_response(500, "Failed to save linked account", details=e.message)

    response = {"item_id": item_id, "account_id": account_id, "user_id": user.id}
    if session_token:
        response["token"] = session_token
    return response

# ===== DATA =====

@router.post("/balances")
async def get_balances(
    payload: Optional[schemas.AccessTokenRequest] = None,
    current_user: Optional[models.User] = Depends(get_current_user_optional),
    plaid: PlaidClient = Depends(get_plaid_client),
    store: CredentialStore = Depends(get_store),
):
    access_token = resolve_access_token(payload, current_user, store)
    logger.info("Fetching balances, access token present")

    try:
        return await run_in_threadpool(plaid.get_balances, access_token)
    except UpstreamError as e:
        return error_response(400, e.message, error_code=e.error_code)


@router.post("/transactions")
async def get_transactions(
    payload: Optional[schemas.TransactionsRequest] = None,
    current_user: Optional[models.User] = Depends(get_current_user_optional),
    plaid: PlaidClient = Depends(get_plaid_client),
    store: CredentialStore = Depends(get_store),
):
    """Live fetch of one page of transactions over the trailing window."""
    access_token = resolve_access_token(payload, current_user, store)
    logger.info("Fetching transactions, access token present")

    try:
        return await run_in_threadpool(
            plaid.get_transactions,
            access_token,
            payload.start_date,
            payload.end_date,
            payload.count,
            payload.offset,
        )
    except UpstreamError as e:
        return error_response(400, e.message, error_code=e.error_code)


@router.post("/transactions/sync")
async def sync_transactions(
    payload: Optional[schemas.TransactionSyncRequest] = None,
    current_user: models.User = Depends(get_current_user),
    plaid: PlaidClient = Depends(get_plaid_client),
    store: CredentialStore = Depends(get_store),
):
    """Fetch every page for a linked account and store new transactions."""
    if payload is None or payload.account_id is None:
        return error_response(400, "account_id is required")

    account = store.get_linked_account(payload.account_id, user_id=current_user.id)
    if account is None:
        return error_response(404, "Linked account not found")

    try:
        transactions = await run_in_threadpool(
            plaid.get_all_transactions,
            store.get_access_token(account),
            payload.start_date,
            payload.end_date,
        )
    except UpstreamError as e:
        return error_response(400, e.message, error_code=e.error_code)

    records = [to_transaction_record(txn) for txn in transactions]
    added, skipped = store.save_transactions(current_user.id, account.id, records)
    return {"account_id": account.id, "total": len(records), "added": added, "skipped": skipped}
