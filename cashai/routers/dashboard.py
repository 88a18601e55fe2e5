# cashai/routers/dashboard.py
# Operator dashboard and the Plaid OAuth redirect back into the mobile app

import logging
from html import escape
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from .. import schemas
from ..config import Settings, get_settings
from ..dependencies import get_store
from ..errors import StorageError
from ..store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter()

PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>CashAI Dashboard</title>
  <style>
    body {{ font-family: -apple-system, Helvetica, Arial, sans-serif; margin: 2rem; color: #222; }}
    .cards {{ display: flex; gap: 1rem; margin-bottom: 2rem; }}
    .card {{ border: 1px solid #ddd; border-radius: 8px; padding: 1rem 1.5rem; min-width: 150px; }}
    .card .value {{ font-size: 2rem; font-weight: bold; }}
    .error {{ border: 1px solid #e74c3c; background: #fdecea; padding: 1rem; border-radius: 8px; }}
    table {{ border-collapse: collapse; }}
    td, th {{ border-bottom: 1px solid #eee; padding: 0.4rem 1rem; text-align: left; }}
  </style>
</head>
<body>
  <h1>CashAI Dashboard</h1>
  {body}
</body>
</html>"""


def render_card(label: str, value: int) -> str:
    return f'<div class="card"><div class="label">{escape(label)}</div><div class="value">{value}</div></div>'


def render_dashboard(stats: dict) -> str:
    cards = "".join([
        render_card("Total Users", stats["totalUsers"]),
        render_card("Linked Accounts", stats["totalBankAccounts"]),
        render_card("Transactions", stats["totalTransactions"]),
        render_card("Active Users (7 days)", stats["activeUsers"]),
    ])
    rows = "".join(
        "<tr><td>{}</td><td>{}</td><td>{}</td><td>{}</td></tr>".format(
            user.id,
            escape(user.email),
            escape(user.name or ""),
            user.created_at.strftime("%Y-%m-%d %H:%M") if user.created_at else "",
        )
        for user in stats["recentUsers"]
    )
    table = (
        "<h2>Recent Users</h2><table><tr><th>ID</th><th>Email</th><th>Name</th><th>Joined</th></tr>"
        f"{rows}</table>"
    )
    return PAGE.format(body=f'<div class="cards">{cards}</div>{table}')


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(store: CredentialStore = Depends(get_store)):
    try:
        stats = store.dashboard_stats()
    except StorageError as e:
        logger.error(f"Dashboard error: {e.message}")
        body = '<div class="error">Dashboard error: the statistics could not be loaded.</div>'
        return HTMLResponse(PAGE.format(body=body), status_code=500)

    return HTMLResponse(render_dashboard(stats))


@router.get("/api/dashboard", response_model=schemas.DashboardStats)
async def dashboard_stats(store: CredentialStore = Depends(get_store)):
    return store.dashboard_stats()


@router.get("/plaid-oauth-callback")
async def plaid_oauth_callback(
    oauth_state_id: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    """Hand control back to the mobile app through its deep link."""
    if error:
        logger.error(f"❌ OAuth error: {error}")
        params = {"success": "false", "error": error}
    else:
        logger.info("✅ OAuth successful")
        params = {"success": "true"}
    if oauth_state_id:
        params["oauth_state_id"] = oauth_state_id

    return RedirectResponse(
        url=f"{settings.DEEP_LINK_SCHEME}://plaid-oauth?{urlencode(params)}",
        status_code=302,
    )
