#!/usr/bin/env python3
"""
Rule testing CLI

Shows which of a household's transactions a draft rule would match,
before the rule is saved.
"""
import argparse
import sys
from typing import Dict, List

import psycopg2

from household_splits.core.exceptions import RuleConfigurationError
from household_splits.core.models import Transaction
from household_splits.core.rule_matcher import build_draft_rule, rule_matches
from household_splits.core.rule_validation import RULE_TYPES
from household_splits.storage.rule_store import load_transactions_for_categorization
from household_splits.utils.db_connection import get_db_connection


def summarize_matches(draft: Dict, transactions: List[Transaction]) -> Dict:
    """
    Match a draft rule against transactions

    Returns:
        Dict with the matching transactions, count, total absolute amount and date range

    Raises:
        RuleConfigurationError: if the draft criteria are invalid
    """
    rule = build_draft_rule(draft)
    matching = [txn for txn in transactions if rule_matches(rule, txn)]
    dates = sorted(str(txn.date) for txn in matching if txn.date)

    return {
        'matching_transactions': matching,
        'match_count': len(matching),
        'total_amount': round(sum(abs(txn.amount) for txn in matching), 2),
        'date_range': {
            'start': dates[0] if dates else None,
            'end': dates[-1] if dates else None,
        },
    }


def main():
    """Main rule testing function"""
    parser = argparse.ArgumentParser(description='Test a draft splitting rule against stored transactions')
    parser.add_argument('household_id', help='Household ID')
    parser.add_argument('--type', dest='rule_type', choices=RULE_TYPES, default='merchant',
                        help='Rule type (default: merchant)')
    parser.add_argument('--pattern', dest='merchant_pattern', help='Merchant regex (merchant rules)')
    parser.add_argument('--category', dest='category_match', help='Category (category rules)')
    parser.add_argument('--min', dest='min_amount', type=float, help='Minimum absolute amount')
    parser.add_argument('--max', dest='max_amount', type=float, help='Maximum absolute amount')
    parser.add_argument('--limit', type=int, default=20, help='Matches to print (default: 20)')

    args = parser.parse_args()

    draft = {
        'rule_type': args.rule_type,
        'merchant_pattern': args.merchant_pattern,
        'category_match': args.category_match,
        'min_amount': args.min_amount,
        'max_amount': args.max_amount,
    }

    # Validate before touching the database
    try:
        build_draft_rule(draft)
    except RuleConfigurationError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print("=" * 80)
    print("🧪 RULE TEST")
    print("=" * 80)

    try:
        conn = get_db_connection()
    except psycopg2.Error as e:
        print(f"❌ Database connection failed: {e}")
        sys.exit(1)

    try:
        transactions = load_transactions_for_categorization(
            conn, args.household_id, include_categorized=True
        )
        summary = summarize_matches(draft, transactions)
    except psycopg2.Error as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        conn.close()

    print(f"Checked {len(transactions)} transactions")
    print(f"✅ Matches: {summary['match_count']}  (total £{summary['total_amount']:.2f})")
    if summary['match_count']:
        print(f"   From {summary['date_range']['start']} to {summary['date_range']['end']}")

    for txn in summary['matching_transactions'][:args.limit]:
        print(f"   • {str(txn.date):<12} {txn.merchant_name or '(no merchant)':<40} "
              f"£{abs(txn.amount):>8.2f}  {txn.category or ''}")
    if summary['match_count'] > args.limit:
        print(f"   ... and {summary['match_count'] - args.limit} more")


if __name__ == "__main__":
    main()
