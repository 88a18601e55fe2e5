# cashai/routers/__init__.py
# Router package initialization

"""
API Routers for the CashAI backend.

- plaid: link token, public token exchange, balances and live transactions
- accounts: linked accounts and stored transactions of the signed-in user
- users: user listing and session token verification
- dashboard: operator dashboard and the Plaid OAuth redirect
"""
