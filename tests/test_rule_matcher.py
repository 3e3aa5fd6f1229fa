"""
Tests for the rule matcher
"""
import pytest

from household_splits.core.exceptions import RuleConfigurationError, TransactionValidationError
from household_splits.core.rule_matcher import (
    RuleMatcher,
    build_draft_rule,
    find_all_matching_rules,
    find_matching_rule,
    get_rule_match_statistics,
    order_rules,
    rule_matches,
    test_draft_rule as check_draft_rule,
)


class TestMerchantRules:

    def test_exact_pattern_matches(self, make_rule, tesco_txn):
        rule = make_rule('merchant', merchant_pattern='^Tesco$', priority=1)
        assert find_matching_rule(tesco_txn, [rule]) is rule

    def test_pattern_is_case_insensitive(self, make_rule, make_txn):
        rule = make_rule('merchant', merchant_pattern='tesco')
        assert rule_matches(rule, make_txn(merchant_name='TESCO EXTRA'))

    def test_pattern_searches_anywhere_in_name(self, make_rule, make_txn):
        rule = make_rule('merchant', merchant_pattern='Uber')
        assert rule_matches(rule, make_txn(merchant_name='PAYPAL *UBER TRIP'))

    def test_missing_merchant_never_matches(self, make_rule, make_txn):
        rule = make_rule('merchant', merchant_pattern='.*')
        assert not rule_matches(rule, make_txn(merchant_name=None))
        assert not rule_matches(rule, make_txn(merchant_name=''))


class TestCategoryRules:

    def test_exact_category_matches(self, make_rule, tesco_txn):
        rule = make_rule('category', category_match='groceries')
        assert rule_matches(rule, tesco_txn)

    def test_category_is_case_sensitive(self, make_rule, make_txn):
        rule = make_rule('category', category_match='groceries')
        assert not rule_matches(rule, make_txn(category='Groceries'))

    def test_missing_category_never_matches(self, make_rule, make_txn):
        rule = make_rule('category', category_match='groceries')
        assert not rule_matches(rule, make_txn(category=None))


class TestAmountThresholdRules:

    def test_uses_absolute_amount(self, make_rule, make_txn):
        rule = make_rule('amount_threshold', min_amount=100)
        assert rule_matches(rule, make_txn(amount=-250.00))
        assert rule_matches(rule, make_txn(amount=250.00))
        assert not rule_matches(rule, make_txn(amount=-99.99))

    def test_bounds_are_inclusive(self, make_rule, make_txn):
        rule = make_rule('amount_threshold', min_amount=10, max_amount=20)
        assert rule_matches(rule, make_txn(amount=-10.00))
        assert rule_matches(rule, make_txn(amount=-20.00))
        assert not rule_matches(rule, make_txn(amount=-20.01))

    def test_large_debit(self, make_rule, make_txn):
        txn = make_txn(amount=-5000.00)
        assert find_matching_rule(txn, [make_rule('amount_threshold', min_amount=1000)])
        assert find_matching_rule(txn, [make_rule('amount_threshold', min_amount=6000)]) is None

    def test_max_only(self, make_rule, make_txn):
        rule = make_rule('amount_threshold', max_amount=10)
        assert rule_matches(rule, make_txn(amount=-3.50))
        assert not rule_matches(rule, make_txn(amount=-12.00))


class TestRuleSelection:

    def test_lowest_priority_number_wins(self, make_rule, tesco_txn):
        grocery = make_rule('category', category_match='groceries', priority=10)
        tesco = make_rule('merchant', merchant_pattern='^Tesco$', priority=1)
        assert find_matching_rule(tesco_txn, [grocery, tesco]) is tesco

    def test_default_rule_catches_everything_else(self, make_rule, make_txn):
        tesco = make_rule('merchant', merchant_pattern='^Tesco$', priority=1)
        default = make_rule('default', priority=999)
        txn = make_txn(merchant_name='Unknown Shop', amount=-5.00)
        assert find_matching_rule(txn, [tesco, default]) is default

    def test_default_rule_goes_last_whatever_its_priority(self, make_rule, tesco_txn):
        default = make_rule('default', priority=1)
        grocery = make_rule('category', category_match='groceries', priority=500)
        assert find_matching_rule(tesco_txn, [default, grocery]) is grocery

    def test_inactive_rules_are_ignored(self, make_rule, tesco_txn):
        inactive = make_rule('merchant', merchant_pattern='Tesco', priority=1, is_active=False)
        grocery = make_rule('category', category_match='groceries', priority=10)
        assert find_matching_rule(tesco_txn, [inactive, grocery]) is grocery

    def test_equal_priority_keeps_given_order(self, make_rule, tesco_txn):
        first = make_rule('category', category_match='groceries', priority=10)
        second = make_rule('merchant', merchant_pattern='Tesco', priority=10)
        assert find_matching_rule(tesco_txn, [first, second]) is first
        assert find_matching_rule(tesco_txn, [second, first]) is second

    def test_no_match_returns_none(self, make_rule, make_txn):
        rule = make_rule('merchant', merchant_pattern='^Tesco$')
        assert find_matching_rule(make_txn(merchant_name='Aldi'), [rule]) is None
        assert find_matching_rule(make_txn(), []) is None

    def test_find_all_in_evaluation_order(self, make_rule, tesco_txn):
        default = make_rule('default', priority=1)
        grocery = make_rule('category', category_match='groceries', priority=10)
        tesco = make_rule('merchant', merchant_pattern='Tesco', priority=5)
        assert find_all_matching_rules(tesco_txn, [default, grocery, tesco]) == [tesco, grocery, default]

    def test_order_rules_drops_inactive(self, make_rule):
        active = make_rule('default')
        inactive = make_rule('default', is_active=False)
        assert order_rules([inactive, active]) == [active]

    def test_rejects_non_transaction(self, make_rule):
        with pytest.raises(TransactionValidationError):
            find_matching_rule({'merchant_name': 'Tesco'}, [make_rule('default')])

    def test_rejects_non_rule(self, tesco_txn):
        with pytest.raises(RuleConfigurationError):
            find_matching_rule(tesco_txn, [{'rule_type': 'default'}])


class TestMatchStatistics:

    def test_counts_matches_per_rule(self, make_rule, make_txn):
        tesco = make_rule('merchant', merchant_pattern='Tesco', priority=1)
        large = make_rule('amount_threshold', min_amount=100, priority=5)
        transactions = [
            make_txn(merchant_name='Tesco', amount=-20.00),
            make_txn(merchant_name='Tesco Metro', amount=-5.00),
            make_txn(merchant_name='IKEA', amount=-150.00),
            make_txn(merchant_name='Corner Shop', amount=-2.00),
        ]

        stats = get_rule_match_statistics(transactions, [tesco, large])

        assert stats == {
            'total_transactions': 4,
            'matched_transactions': 3,
            'unmatched_transactions': 1,
            'matches_by_rule': {tesco.id: 2, large.id: 1},
        }

    def test_empty_input(self, make_rule):
        stats = get_rule_match_statistics([], [make_rule('default')])
        assert stats['total_transactions'] == 0
        assert stats['matches_by_rule'] == {}


class TestDraftRules:

    def test_draft_merchant_rule(self, tesco_txn):
        assert check_draft_rule({'merchant_pattern': 'tes'}, tesco_txn)
        assert not check_draft_rule({'merchant_pattern': 'aldi'}, tesco_txn)

    def test_draft_needs_no_split(self):
        rule = build_draft_rule({'rule_type': 'category', 'category_match': 'dining'})
        assert rule.split_percentage == {}
        assert rule.priority == 100

    def test_invalid_draft_raises(self):
        with pytest.raises(RuleConfigurationError):
            build_draft_rule({'rule_type': 'merchant', 'merchant_pattern': '(a+)+'})
        with pytest.raises(RuleConfigurationError):
            build_draft_rule({'rule_type': 'amount_threshold'})


class TestRuleMatcher:

    def test_tracks_stats_by_rule_type(self, make_rule, make_txn):
        matcher = RuleMatcher()
        matcher.load_rules([
            make_rule('merchant', merchant_pattern='Tesco', priority=1),
            make_rule('category', category_match='dining', priority=10),
        ])

        matcher.match(make_txn(merchant_name='Tesco'))
        matcher.match(make_txn(merchant_name='Tesco Express'))
        matcher.match(make_txn(merchant_name='Pizza Place', category='dining'))
        matcher.match(make_txn(merchant_name='Nowhere'))

        assert matcher.stats['matches'] == 3
        assert matcher.stats['no_match'] == 1
        assert matcher.stats['by_rule_type'] == {'merchant': 2, 'category': 1}

    def test_load_rules_orders_and_filters(self, make_rule):
        default = make_rule('default', priority=1)
        late = make_rule('category', category_match='x', priority=50)
        early = make_rule('category', category_match='y', priority=5)
        off = make_rule('category', category_match='z', priority=1, is_active=False)

        matcher = RuleMatcher()
        matcher.load_rules([default, late, early, off])

        assert matcher.rules == [early, late, default]

    def test_print_stats(self, make_rule, make_txn, capsys):
        matcher = RuleMatcher()
        matcher.print_stats()
        assert "No transactions processed yet" in capsys.readouterr().out

        matcher.load_rules([make_rule('default')])
        matcher.match(make_txn())
        matcher.print_stats()
        assert "Matched: 1 (100.0%)" in capsys.readouterr().out
