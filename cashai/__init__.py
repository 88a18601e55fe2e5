"""CashAI backend: Plaid account linking for the CashAI mobile app."""

__version__ = "1.0.0"
