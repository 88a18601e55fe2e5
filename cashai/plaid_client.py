# cashai/plaid_client.py
# Thin call-through to the Plaid API using the official SDK

import json
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import plaid
from plaid.api import plaid_api
from plaid.exceptions import ApiException
from plaid.model.accounts_balance_get_request import AccountsBalanceGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions

from .config import Settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

PLAID_HOSTS = {
    "sandbox": plaid.Environment.Sandbox,
    "production": plaid.Environment.Production,
}


def upstream_error_from(exc: ApiException) -> UpstreamError:
    """Translate an SDK exception into an UpstreamError carrying Plaid's error fields."""
    details: Dict[str, Any] = {}
    body = getattr(exc, "body", None)
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str) and body:
        try:
            details = json.loads(body)
        except ValueError:
            details = {}

    message = details.get("error_message") or getattr(exc, "reason", None) or str(exc)
    return UpstreamError(
        message,
        error_code=details.get("error_code"),
        error_type=details.get("error_type"),
        status=getattr(exc, "status", None),
        request_id=details.get("request_id"),
    )


def default_window(lookback_days: int, start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> Tuple[date, date]:
    """Fill in a trailing window ending today when dates are not given."""
    end = end_date or date.today()
    start = start_date or (end - timedelta(days=lookback_days))
    return start, end


def to_transaction_record(txn: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Plaid transaction into the fields the store keeps."""
    category = None
    pfc = txn.get("personal_finance_category")
    if pfc:
        category = pfc.get("primary")
    elif txn.get("category"):
        category = txn["category"][0]

    txn_date = txn.get("date")
    if isinstance(txn_date, str):
        txn_date = datetime.strptime(txn_date, "%Y-%m-%d").date()

    return {
        "plaid_transaction_id": txn["transaction_id"],
        "amount": txn["amount"],
        "category": category,
        "merchant": txn.get("merchant_name") or txn.get("name"),
        "date": txn_date,
    }


class PlaidClient:
    """Request/response wrapper around ``PlaidApi``.

    No retries and no timeout overrides; any non-success response raises
    ``UpstreamError`` and the caller decides what to do with it.
    """

    def __init__(self, settings: Settings, api: Any = None):
        self.settings = settings
        if api is None:
            configuration = plaid.Configuration(
                host=PLAID_HOSTS[settings.PLAID_ENV],
                api_key={
                    "clientId": settings.PLAID_CLIENT_ID,
                    "secret": settings.PLAID_SECRET,
                },
            )
            api = plaid_api.PlaidApi(plaid.ApiClient(configuration))
        self.client: Any = api

        logger.info(f"Initialized Plaid client for {settings.PLAID_ENV} environment")

    def _call(self, operation: str, request: Any) -> Dict[str, Any]:
        try:
            response = getattr(self.client, operation)(request)
        except ApiException as e:
            error = upstream_error_from(e)
            logger.error(
                f"❌ Plaid {operation} failed: {error.message} "
                f"(code={error.error_code}, request_id={error.request_id})"
            )
            raise error from e
        return response.to_dict()

    def create_link_token(self, client_user_id: str) -> Dict[str, Any]:
        """Start a Link session scoped to one user and the configured products."""
        kwargs = {}
        if self.settings.PLAID_REDIRECT_URI:
            kwargs["redirect_uri"] = self.settings.PLAID_REDIRECT_URI

        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=str(client_user_id)),
            client_name=self.settings.PLAID_CLIENT_NAME,
            products=[Products(p) for p in self.settings.PLAID_PRODUCTS],
            country_codes=[CountryCode(c) for c in self.settings.PLAID_COUNTRY_CODES],
            language="en",
            **kwargs,
        )
        logger.info(f"Requesting link token (products={self.settings.PLAID_PRODUCTS})")
        data = self._call("link_token_create", request)
        return {"link_token": data["link_token"], "expiration": data.get("expiration")}

    def exchange_public_token(self, public_token: str) -> Tuple[str, str]:
        """Swap a single-use public token for ``(access_token, item_id)``."""
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        data = self._call("item_public_token_exchange", request)
        logger.info("✅ Public token exchanged, access token present")
        return data["access_token"], data["item_id"]

    def get_balances(self, access_token: str) -> Dict[str, Any]:
        request = AccountsBalanceGetRequest(access_token=access_token)
        return self._call("accounts_balance_get", request)

    def get_transactions(self, access_token: str, start_date: Optional[date] = None,
                         end_date: Optional[date] = None, count: Optional[int] = None,
                         offset: int = 0) -> Dict[str, Any]:
        """Fetch one page of transactions; defaults to the trailing lookback window."""
        start, end = default_window(self.settings.TRANSACTIONS_LOOKBACK_DAYS, start_date, end_date)
        request = TransactionsGetRequest(
            access_token=access_token,
            start_date=start,
            end_date=end,
            options=TransactionsGetRequestOptions(
                count=count or self.settings.TRANSACTIONS_PAGE_SIZE,
                offset=offset,
            ),
        )
        return self._call("transactions_get", request)

    def get_all_transactions(self, access_token: str, start_date: Optional[date] = None,
                             end_date: Optional[date] = None) -> List[Dict[str, Any]]:
        """Fetch every page in the window, following ``total_transactions``."""
        transactions: List[Dict[str, Any]] = []
        offset = 0
        page_size = self.settings.TRANSACTIONS_PAGE_SIZE

        while True:
            page = self.get_transactions(access_token, start_date, end_date,
                                         count=page_size, offset=offset)
            batch = page.get("transactions", [])
            transactions.extend(batch)
            offset += len(batch)
            if not batch or offset >= page.get("total_transactions", 0):
                break

        logger.info(f"Fetched {len(transactions)} transactions from Plaid")
        return transactions
