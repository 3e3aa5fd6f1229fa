"""
Rule Store

Postgres persistence for splitting rules, rule application results, manual
overrides and rule feedback. Every function takes an open psycopg2
connection (see utils.db_connection); rows are read as dicts.
"""
import logging
from typing import Dict, List, Optional

from psycopg2.extras import Json

from household_splits.core.auto_categorizer import DEFAULT_REVIEW_THRESHOLD
from household_splits.core.models import SplittingRule, Transaction
from household_splits.core.rule_validation import validate_rule

logger = logging.getLogger(__name__)

FEEDBACK_ACTIONS = ('accepted', 'rejected', 'overridden')

RULE_COLUMNS = """
    id, household_id, rule_name, rule_type, priority,
    merchant_pattern, category_match, min_amount, max_amount,
    split_percentage, is_active, created_by, apply_to_existing_transactions
"""

TRANSACTION_COLUMNS = """
    t.id, t.account_id, t.amount, t.merchant_name, t.category, t.description,
    t.date, t.is_shared_expense, t.shared_with_household_id, t.splitting_rule_id,
    t.confidence_score, t.manual_override, t.split_details
"""

# Transactions on accounts attached to the household or owned by its members
HOUSEHOLD_TRANSACTIONS = """
    FROM transactions t
    JOIN financial_accounts fa ON fa.id = t.account_id
    WHERE (
        fa.household_id = %(household_id)s
        OR fa.user_id IN (
            SELECT user_id FROM household_members WHERE household_id = %(household_id)s
        )
    )
"""


def _execute(conn, sql: str, params=None):
    """Run a write statement and commit; roll back and re-raise on failure"""
    cursor = conn.cursor()
    try:
        cursor.execute(sql, params)
        row = cursor.fetchone() if cursor.description else None
        conn.commit()
        return row
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()


def load_rules(conn, household_id: str, include_inactive: bool = False) -> List[SplittingRule]:
    """Load a household's rules, ordered by priority"""
    cursor = conn.cursor()
    query = f"SELECT {RULE_COLUMNS} FROM expense_splitting_rules WHERE household_id = %s"
    if not include_inactive:
        query += " AND is_active = TRUE"
    query += " ORDER BY priority, created_at"

    cursor.execute(query, (household_id,))
    rows = cursor.fetchall()
    cursor.close()

    return [SplittingRule.from_dict(row) for row in rows]


def save_rule(conn, rule: SplittingRule) -> str:
    """
    Insert or update a rule

    The rule is fully validated first (criteria and split percentages).

    Returns:
        The rule id

    Raises:
        RuleConfigurationError: if the rule is not valid
    """
    validate_rule(rule)

    row = _execute(conn, """
        INSERT INTO expense_splitting_rules (
            id, household_id, rule_name, rule_type, priority,
            merchant_pattern, category_match, min_amount, max_amount,
            split_percentage, is_active, created_by, apply_to_existing_transactions
        )
        VALUES (
            %(id)s, %(household_id)s, %(rule_name)s, %(rule_type)s, %(priority)s,
            %(merchant_pattern)s, %(category_match)s, %(min_amount)s, %(max_amount)s,
            %(split_percentage)s, %(is_active)s, %(created_by)s, %(apply_to_existing_transactions)s
        )
        ON CONFLICT (id) DO UPDATE SET
            rule_name = EXCLUDED.rule_name,
            rule_type = EXCLUDED.rule_type,
            priority = EXCLUDED.priority,
            merchant_pattern = EXCLUDED.merchant_pattern,
            category_match = EXCLUDED.category_match,
            min_amount = EXCLUDED.min_amount,
            max_amount = EXCLUDED.max_amount,
            split_percentage = EXCLUDED.split_percentage,
            is_active = EXCLUDED.is_active,
            updated_at = now()
        RETURNING id
    """, {
        'id': rule.id,
        'household_id': rule.household_id,
        'rule_name': rule.rule_name,
        'rule_type': rule.rule_type,
        'priority': rule.priority,
        'merchant_pattern': rule.merchant_pattern,
        'category_match': rule.category_match,
        'min_amount': rule.min_amount,
        'max_amount': rule.max_amount,
        'split_percentage': Json(rule.split_percentage),
        'is_active': rule.is_active,
        'created_by': rule.created_by,
        'apply_to_existing_transactions': rule.apply_to_existing_transactions,
    })

    logger.info("Saved rule %r (%s)", rule.rule_name, rule.id)
    return str(row['id'])


def deactivate_rule(conn, rule_id: str):
    _execute(conn, """
        UPDATE expense_splitting_rules
        SET is_active = FALSE, updated_at = now()
        WHERE id = %s
    """, (rule_id,))


def delete_rule(conn, rule_id: str):
    _execute(conn, "DELETE FROM expense_splitting_rules WHERE id = %s", (rule_id,))


def get_household_member_ids(conn, household_id: str) -> List[str]:
    """Member user ids, oldest member first"""
    cursor = conn.cursor()
    cursor.execute("""
        SELECT user_id FROM household_members
        WHERE household_id = %s
        ORDER BY joined_at
    """, (household_id,))
    rows = cursor.fetchall()
    cursor.close()
    return [str(row['user_id']) for row in rows]


def load_transactions_for_categorization(conn,
                                         household_id: str,
                                         include_categorized: bool = False,
                                         start_date: Optional[str] = None,
                                         end_date: Optional[str] = None) -> List[Transaction]:
    """
    Transactions the rules should (re)apply to

    Manual overrides are never returned. By default only transactions that
    were never categorized (confidence_score IS NULL) are returned.
    """
    query = f"SELECT {TRANSACTION_COLUMNS} {HOUSEHOLD_TRANSACTIONS} AND t.manual_override = FALSE"
    params: Dict = {'household_id': household_id}

    if not include_categorized:
        query += " AND t.confidence_score IS NULL"
    if start_date:
        query += " AND t.date >= %(start_date)s"
        params['start_date'] = start_date
    if end_date:
        query += " AND t.date <= %(end_date)s"
        params['end_date'] = end_date
    query += " ORDER BY t.date DESC"

    cursor = conn.cursor()
    cursor.execute(query, params)
    rows = cursor.fetchall()
    cursor.close()

    return [Transaction.from_dict(row) for row in rows]


def save_categorizations(conn, transactions: List[Transaction]) -> int:
    """
    Write rule application results back to the transactions table

    All updates are committed together.

    Returns:
        Number of transactions updated
    """
    cursor = conn.cursor()
    try:
        for txn in transactions:
            cursor.execute("""
                UPDATE transactions
                SET splitting_rule_id = %(splitting_rule_id)s,
                    category = %(category)s,
                    is_shared_expense = %(is_shared_expense)s,
                    shared_with_household_id = %(shared_with_household_id)s,
                    confidence_score = %(confidence_score)s,
                    manual_override = FALSE
                WHERE id = %(id)s AND manual_override = FALSE
            """, {
                'id': txn.id,
                'splitting_rule_id': txn.splitting_rule_id,
                'category': txn.category,
                'is_shared_expense': txn.is_shared_expense,
                'shared_with_household_id': txn.shared_with_household_id,
                'confidence_score': txn.confidence_score,
            })
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()

    return len(transactions)


def get_uncategorized_transactions(conn,
                                   household_id: str,
                                   min_confidence: int = 0,
                                   max_confidence: int = DEFAULT_REVIEW_THRESHOLD - 1,
                                   limit: int = 50,
                                   offset: int = 0) -> List[Transaction]:
    """
    Transactions needing review, newest first

    That is: never categorized, or categorized with a confidence inside
    [min_confidence, max_confidence], and not overridden by hand.
    """
    query = f"""
        SELECT {TRANSACTION_COLUMNS} {HOUSEHOLD_TRANSACTIONS}
        AND t.manual_override = FALSE
        AND (
            t.confidence_score IS NULL
            OR t.confidence_score BETWEEN %(min_confidence)s AND %(max_confidence)s
        )
        ORDER BY t.date DESC
        LIMIT %(limit)s OFFSET %(offset)s
    """

    cursor = conn.cursor()
    cursor.execute(query, {
        'household_id': household_id,
        'min_confidence': min_confidence,
        'max_confidence': max_confidence,
        'limit': limit,
        'offset': offset,
    })
    rows = cursor.fetchall()
    cursor.close()

    return [Transaction.from_dict(row) for row in rows]


def record_override(conn,
                    txn: Transaction,
                    old_is_shared_expense: bool,
                    override_by: str,
                    new_split_percentage: Optional[Dict] = None,
                    reason: Optional[str] = None):
    """
    Store a manual override: history row plus the updated transaction

    txn must already carry the new values (see apply_manual_override).
    """
    cursor = conn.cursor()
    try:
        cursor.execute("""
            INSERT INTO transaction_overrides (
                transaction_id, original_rule_id, override_by,
                old_is_shared_expense, new_is_shared_expense,
                new_split_percentage, override_reason
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """, (
            txn.id,
            txn.splitting_rule_id,
            override_by,
            old_is_shared_expense,
            txn.is_shared_expense,
            Json(new_split_percentage) if new_split_percentage else None,
            reason,
        ))
        cursor.execute("""
            UPDATE transactions
            SET is_shared_expense = %s,
                shared_with_household_id = %s,
                manual_override = TRUE,
                confidence_score = %s,
                original_rule_id = splitting_rule_id,
                split_details = %s
            WHERE id = %s
        """, (
            txn.is_shared_expense,
            txn.shared_with_household_id,
            txn.confidence_score,
            Json(txn.split_details.to_dict()) if txn.split_details else None,
            txn.id,
        ))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()

    logger.info("Recorded override for transaction %s", txn.id)


def record_rule_feedback(conn,
                         transaction_id: str,
                         rule_id: Optional[str],
                         household_id: str,
                         action: str,
                         original_confidence_score: Optional[int] = None,
                         override_details: Optional[Dict] = None):
    """Record accepted/rejected/overridden feedback on a rule match"""
    if action not in FEEDBACK_ACTIONS:
        raise ValueError(f"Unknown feedback action: {action}")

    _execute(conn, """
        INSERT INTO rule_feedback (
            transaction_id, rule_id, household_id, user_action,
            original_confidence_score, override_details
        )
        VALUES (%s, %s, %s, %s, %s, %s)
    """, (
        transaction_id,
        rule_id,
        household_id,
        action,
        original_confidence_score,
        Json(override_details) if override_details else None,
    ))

    logger.info("Recorded %s feedback for transaction %s", action, transaction_id)


def confirm_transaction(conn, transaction_id: str, confidence_score: int = 100):
    """Mark a rule result as confirmed by a member so rules leave it alone"""
    _execute(conn, """
        UPDATE transactions
        SET manual_override = TRUE,
            confidence_score = %s,
            original_rule_id = splitting_rule_id
        WHERE id = %s
    """, (confidence_score, transaction_id))
