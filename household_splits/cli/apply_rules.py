#!/usr/bin/env python3
"""
Rule application CLI

Applies a household's splitting rules to its transactions. Meant to run
from cron after account sync, or by hand after rules change (--all).
"""
import argparse
import sys

import psycopg2

from household_splits.core.auto_categorizer import AutoCategorizer
from household_splits.core.category_suggester import fill_missing_categories
from household_splits.core.confidence import get_confidence_level
from household_splits.core.exceptions import SplittingError
from household_splits.storage.rule_store import (
    load_rules,
    load_transactions_for_categorization,
    save_categorizations,
)
from household_splits.utils.config import get_settings
from household_splits.utils.db_connection import get_db_connection


def main():
    """Main rule application function"""
    settings = get_settings()

    parser = argparse.ArgumentParser(description='Apply splitting rules to household transactions')
    parser.add_argument('household_id', help='Household ID')
    parser.add_argument('--all', action='store_true',
                        help='Re-apply to already categorized transactions (manual overrides are kept)')
    parser.add_argument('--start-date', help='Only transactions on or after this date (YYYY-MM-DD)')
    parser.add_argument('--end-date', help='Only transactions on or before this date (YYYY-MM-DD)')
    parser.add_argument('--review-threshold', type=int, default=settings.review_threshold,
                        help=f'Confidence below which matches need review (default: {settings.review_threshold})')
    parser.add_argument('--suggest-categories', action='store_true',
                        help='Fill in missing categories from merchant names first')
    parser.add_argument('--dry-run', action='store_true', help='Categorize but do not save')

    args = parser.parse_args()

    print("=" * 80)
    print("🧮 APPLY SPLITTING RULES")
    print("=" * 80)
    print(f"Household: {args.household_id}")
    print(f"Scope: {'all transactions' if args.all else 'new transactions'}")
    print(f"Review threshold: {args.review_threshold}")
    print(f"Dry Run: {args.dry_run}")
    print("=" * 80)

    # Connect to database
    print("\n🔌 Connecting to database...")
    try:
        conn = get_db_connection()
        print("   ✅ Connected")
    except psycopg2.Error as e:
        print(f"   ❌ Connection failed: {e}")
        sys.exit(1)

    try:
        # Load rules
        print("\n📚 Loading rules from database...")
        rules = load_rules(conn, args.household_id)
        print(f"   ✅ Loaded {len(rules)} active rules")

        if not rules:
            print("\n⚠️  Household has no active rules, nothing to apply")
            return

        # Load transactions
        print("\n📄 Loading transactions...")
        transactions = load_transactions_for_categorization(
            conn,
            args.household_id,
            include_categorized=args.all,
            start_date=args.start_date,
            end_date=args.end_date,
        )
        print(f"   ✅ Found {len(transactions)} transactions")

        if not transactions:
            print("\n✅ Nothing to categorize")
            return

        if args.suggest_categories:
            filled = fill_missing_categories(transactions)
            print(f"   🏷️  Suggested categories for {filled} transactions")

        # Categorize
        print(f"\n🧠 Categorizing {len(transactions)} transactions...")
        categorizer = AutoCategorizer(
            rules,
            review_threshold=args.review_threshold,
            batch_size=settings.batch_size,
        )
        batch = categorizer.categorize_batch(transactions)

        categorizer.print_stats()
        categorizer.rule_matcher.print_stats()

        # Show sample
        by_id = {txn.id: txn for txn in transactions}
        print("\n📋 Sample Results (first 10):")
        for i, result in enumerate(batch.results[:10], 1):
            txn = by_id[result.transaction_id]
            status = "✅" if not result.needs_review else "⚠️ "
            merchant = txn.merchant_name or '(no merchant)'
            rule_name = result.rule_name or '(no rule)'
            sharing = 'shared' if result.is_shared_expense else 'personal'
            print(f"{status} {i:2d}. {merchant:<35} → {rule_name} [{sharing}]")
            print(f"       £{abs(txn.amount):>8.2f}  {result.confidence_score:>3}  "
                  f"{get_confidence_level(result.confidence_score)}")

        if len(batch.results) > 10:
            print(f"       ... and {len(batch.results) - 10} more")

        # Save or dry run
        if args.dry_run:
            print("\n🔍 DRY RUN - Not saving results")
        else:
            print("\n💾 Saving results...")
            changed = [by_id[r.transaction_id] for r in batch.results if not r.skipped]
            updated = save_categorizations(conn, changed)
            print(f"   ✅ Updated: {updated}")

        # Review queue summary
        needs_review = [r for r in batch.results if r.needs_review]
        if needs_review:
            print(f"\n⚠️  {len(needs_review)} transactions need review:")
            for result in needs_review[:5]:
                txn = by_id[result.transaction_id]
                print(f"   • {txn.merchant_name or '(no merchant)':<50} £{abs(txn.amount):>8.2f}")
            if len(needs_review) > 5:
                print(f"   ... and {len(needs_review) - 5} more")
        else:
            print("\n✅ All transactions categorized with high confidence!")

        print("\n" + "=" * 80)
        print("✅ Rule application complete!")
        print("=" * 80)

    except (psycopg2.Error, SplittingError) as e:
        print(f"\n❌ Rule application failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
