"""
Shared fixtures for the splitting engine tests

No test talks to a real database; storage tests use mocked connections.
"""
from unittest.mock import MagicMock

import pytest

from household_splits.core.models import SplittingRule, Transaction

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"
HOUSEHOLD = "hhhhhhhh-0000-0000-0000-000000000001"


@pytest.fixture
def make_rule():
    """Factory for valid rules; keyword arguments override the defaults"""
    counter = {'n': 0}

    def _make(rule_type='default', **overrides):
        counter['n'] += 1
        fields = {
            'id': f"rule-{counter['n']}",
            'household_id': HOUSEHOLD,
            'rule_name': f"{rule_type} rule {counter['n']}",
            'rule_type': rule_type,
            'priority': 100,
            'split_percentage': {ALICE: 50, BOB: 50},
        }
        fields.update(overrides)
        return SplittingRule(**fields)

    return _make


@pytest.fixture
def make_txn():
    """Factory for transactions"""
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        fields = {
            'id': f"txn-{counter['n']}",
            'account_id': 'acc-1',
            'amount': -10.00,
            'merchant_name': None,
            'category': None,
            'date': '2025-10-01',
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def tesco_txn(make_txn):
    return make_txn(id='txn-tesco', merchant_name='Tesco', amount=-45.20, category='groceries')


@pytest.fixture
def mock_conn():
    """A psycopg2-like connection whose cursor records executed SQL"""
    conn = MagicMock()
    cursor = MagicMock()
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = None
    conn.cursor.return_value = cursor
    return conn
