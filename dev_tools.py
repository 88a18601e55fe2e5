#!/usr/bin/env python3
"""
Development tools for the CashAI backend.
Database reset, demo data and dashboard statistics.
"""

import argparse
import random
from datetime import date, timedelta
from decimal import Decimal

from cashai.dependencies import get_token_cipher
from cashai.models import Base, SessionLocal, engine
from cashai.store import CredentialStore

DEMO_EMAIL = "demo@example.com"

SAMPLE_TRANSACTIONS = [
    {"merchant": "Grocery Store", "amount": Decimal("45.67"), "category": "FOOD_AND_DRINK"},
    {"merchant": "Gas Station", "amount": Decimal("52.30"), "category": "TRANSPORTATION"},
    {"merchant": "Coffee Shop", "amount": Decimal("4.50"), "category": "FOOD_AND_DRINK"},
    {"merchant": "Online Store", "amount": Decimal("89.99"), "category": "GENERAL_MERCHANDISE"},
    {"merchant": "Payroll", "amount": Decimal("-2500.00"), "category": "INCOME"},
    {"merchant": "Electric Company", "amount": Decimal("125.45"), "category": "RENT_AND_UTILITIES"},
    {"merchant": "Movie Theater", "amount": Decimal("25.50"), "category": "ENTERTAINMENT"},
    {"merchant": "Pharmacy", "amount": Decimal("18.75"), "category": "MEDICAL"},
]


def reset_database():
    """Drop and recreate all tables."""
    print("⚠️  Resetting database...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("✅ Database reset complete!")


def create_demo_data(transaction_count: int = 50):
    """Create a demo user with one linked sandbox account and sample transactions."""
    db = SessionLocal()
    store = CredentialStore(db, get_token_cipher())
    try:
        user, created = store.get_or_create_user(DEMO_EMAIL, "Demo User")
        if not created:
            print("👤 Demo user already exists")
            return
        user_id = user.id

        account_id = store.save_linked_account(
            user_id, "demo-item", "access-sandbox-demo", "Demo Checking", "depository"
        )

        records = []
        for i in range(transaction_count):
            sample = random.choice(SAMPLE_TRANSACTIONS)
            records.append({
                "plaid_transaction_id": f"demo-txn-{i}",
                "amount": sample["amount"] + Decimal(random.randint(-500, 500)) / 100,
                "category": sample["category"],
                "merchant": sample["merchant"],
                "date": date.today() - timedelta(days=random.randint(0, 30)),
            })
        added, _ = store.save_transactions(user_id, account_id, records)

        print(f"👤 Created demo user: {DEMO_EMAIL}")
        print(f"💰 Created {added} sample transactions")
    finally:
        db.close()


def show_stats():
    """Show dashboard statistics."""
    db = SessionLocal()
    try:
        stats = CredentialStore(db, get_token_cipher()).dashboard_stats()
        print("📊 Database Statistics:")
        print(f"   Users: {stats['totalUsers']}")
        print(f"   Active users (7 days): {stats['activeUsers']}")
        print(f"   Linked accounts: {stats['totalBankAccounts']}")
        print(f"   Transactions: {stats['totalTransactions']}")
    finally:
        db.close()


def main():
    """Main CLI interface."""
    parser = argparse.ArgumentParser(description="CashAI Development Tools")
    parser.add_argument("command", choices=["reset", "demo", "stats"],
                        help="Command to execute")
    parser.add_argument("--transactions", type=int, default=50,
                        help="Number of sample transactions to create")

    args = parser.parse_args()

    if args.command == "reset":
        reset_database()

    elif args.command == "demo":
        reset_database()
        create_demo_data(args.transactions)
        show_stats()
        print("\n🎉 Demo setup complete!")

    elif args.command == "stats":
        show_stats()


if __name__ == "__main__":
    main()
