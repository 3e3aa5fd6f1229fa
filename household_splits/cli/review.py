#!/usr/bin/env python3
"""
Transaction review CLI

Interactive tool for household members to confirm, override or split
transactions the rules could not categorize with confidence.
"""
import argparse
import sys
from typing import Dict, List, Optional

import psycopg2

from household_splits.core.auto_categorizer import apply_manual_override, apply_manual_split
from household_splits.core.confidence import get_confidence_level
from household_splits.core.exceptions import TransactionValidationError
from household_splits.core.models import SplitDetails, SplittingRule, Transaction
from household_splits.core.rule_templates import populate_template_split
from household_splits.storage.rule_store import (
    confirm_transaction,
    get_household_member_ids,
    get_uncategorized_transactions,
    load_rules,
    record_override,
    record_rule_feedback,
)
from household_splits.utils.config import get_settings
from household_splits.utils.db_connection import get_db_connection


def display_transaction(txn: Transaction, rules_by_id: Dict[str, SplittingRule], index: int, total: int):
    """Display transaction details"""
    print("\n" + "=" * 80)
    print(f"Transaction {index}/{total}")
    print("=" * 80)

    print(f"Merchant:    {txn.merchant_name or '(no merchant)'}")
    if txn.description:
        print(f"Description: {txn.description}")
    print(f"Amount:      £{abs(txn.amount):.2f} ({'credit' if txn.amount > 0 else 'debit'})")
    print(f"Date:        {txn.date}")
    print(f"Category:    {txn.category or '(none)'}")

    rule = rules_by_id.get(txn.splitting_rule_id) if txn.splitting_rule_id else None
    if rule:
        print(f"Rule:        {rule.rule_name} ({rule.rule_type}, priority {rule.priority})")
    else:
        print("Rule:        (no rule matched)")

    level = get_confidence_level(txn.confidence_score)
    score = txn.confidence_score if txn.confidence_score is not None else '-'
    print(f"Confidence:  {score} ({level})")
    print(f"Sharing:     {'shared' if txn.is_shared_expense else 'personal'}")


def ask_personal_amount(txn: Transaction) -> Optional[float]:
    """Ask for the personal portion of a split, None to cancel"""
    total = abs(txn.amount)
    while True:
        user_input = input(f"Personal amount (0 - {total:.2f}, blank to cancel): ").strip()
        if not user_input:
            return None
        try:
            return float(user_input)
        except ValueError:
            print("❌ Invalid input. Please enter a number.")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments

    --max-confidence defaults to one below REVIEW_THRESHOLD, so the queue
    holds exactly the matches splits-apply flagged for review.
    """
    max_confidence = get_settings().review_threshold - 1

    parser = argparse.ArgumentParser(description='Review uncertain rule matches for a household')
    parser.add_argument('household_id', help='Household ID')
    parser.add_argument('--user', required=True, help='Your user ID (recorded on overrides)')
    parser.add_argument('--max-confidence', type=int, default=max_confidence,
                        help=f'Review matches at or below this confidence (default: {max_confidence})')
    parser.add_argument('--limit', type=int, default=50, help='Maximum transactions to review')

    return parser.parse_args(argv)


def main():
    """Main review function"""
    args = parse_args()

    print("=" * 80)
    print("📝 TRANSACTION REVIEW")
    print("=" * 80)

    # Connect to database
    try:
        conn = get_db_connection()
        print("✅ Connected to database")
    except psycopg2.Error as e:
        print(f"❌ Database connection failed: {e}")
        sys.exit(1)

    try:
        rules = load_rules(conn, args.household_id, include_inactive=True)
        rules_by_id = {rule.id: rule for rule in rules}
        member_ids = get_household_member_ids(conn, args.household_id)

        print("\n🔍 Finding transactions needing review...")
        transactions: List[Transaction] = get_uncategorized_transactions(
            conn,
            args.household_id,
            max_confidence=args.max_confidence,
            limit=args.limit,
        )

        if not transactions:
            print("\n🎉 No transactions need review!")
            return

        print(f"✅ Found {len(transactions)} transactions needing review")

        reviewed = 0
        skipped = 0

        for i, txn in enumerate(transactions, 1):
            display_transaction(txn, rules_by_id, i, len(transactions))

            print("\n⚙️  Options:")
            print("   1. Accept as is")
            print("   2. Mark as shared")
            print("   3. Mark as personal")
            print("   4. Split between personal and shared")
            print("   5. Skip to next")
            print("   6. Quit")

            action = input("\nChoose action (1-6): ").strip().lower()

            if action in ('6', 'q'):
                break

            if action in ('5', 's'):
                skipped += 1
                continue

            original_rule_id = txn.splitting_rule_id
            original_score = txn.confidence_score
            old_is_shared = txn.is_shared_expense

            if action == '1':
                confirm_transaction(conn, txn.id)
                if original_rule_id:
                    record_rule_feedback(conn, txn.id, original_rule_id, args.household_id,
                                         'accepted', original_score)
                print("   ✅ Accepted")

            elif action in ('2', '3'):
                is_shared = action == '2'
                apply_manual_override(txn, is_shared, args.household_id)
                record_override(conn, txn, old_is_shared, args.user)
                record_rule_feedback(conn, txn.id, original_rule_id, args.household_id,
                                     'overridden', original_score,
                                     {'new_is_shared_expense': is_shared})
                print(f"   ✅ Marked as {'shared' if is_shared else 'personal'}")

            elif action == '4':
                personal = ask_personal_amount(txn)
                if personal is None:
                    skipped += 1
                    continue

                split = SplitDetails(
                    personal_amount=personal,
                    shared_amount=round(abs(txn.amount) - personal, 2),
                    split_percentage=populate_template_split(member_ids),
                )
                try:
                    apply_manual_split(txn, split, args.household_id)
                except TransactionValidationError as e:
                    print(f"   ❌ {e}")
                    skipped += 1
                    continue

                record_override(conn, txn, old_is_shared, args.user,
                                new_split_percentage=split.split_percentage,
                                reason='Manual split')
                record_rule_feedback(conn, txn.id, original_rule_id, args.household_id,
                                     'overridden', original_score, split.to_dict())
                print(f"   ✅ Split: £{split.personal_amount:.2f} personal, £{split.shared_amount:.2f} shared")

            else:
                print("❌ Invalid choice, skipping...")
                skipped += 1
                continue

            reviewed += 1

        # Summary
        print("\n" + "=" * 80)
        print("📊 REVIEW SUMMARY")
        print("=" * 80)
        print(f"✅ Reviewed: {reviewed}")
        print(f"⏭️  Skipped: {skipped}")
        print("=" * 80)

    except psycopg2.Error as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
