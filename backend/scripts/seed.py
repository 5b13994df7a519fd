"""Seed script: builds an in-memory store with demo data and prints a summary.

Run: python backend/scripts/seed.py [--expenses N] [--random-seed S]
"""
import argparse
import logging
import os
import random
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from expenseflow.core.seed import seed_demo_data
from expenseflow.db.store import InMemoryStore
from expenseflow.services.analytics import get_analytics
from expenseflow.services.queries import find_users


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--expenses", type=int, default=20)
    parser.add_argument("--random-seed", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    store = InMemoryStore()
    result = seed_demo_data(store, random.Random(args.random_seed), expense_count=args.expenses)
    company_id = result["company_id"]

    print("Users:")
    for user in find_users(store):
        manager = user.manager.full_name if user.manager else "-"
        print(f"  {user.email:<22} {user.role.value:<9} reports to {manager}")

    stats = get_analytics(store, company_id)
    print("Expenses:")
    print(f"  total     {stats.expense_count:>4}  {stats.total_amount:>10}")
    print(f"  approved  {stats.approved_count:>4}  {stats.approved_amount:>10}")
    print(f"  pending   {stats.pending_count:>4}  {stats.pending_amount:>10}")
    print(f"  rejected  {stats.rejected_count:>4}  {stats.rejected_amount:>10}")
    print("Health:", store.health_check())


if __name__ == "__main__":
    main()
