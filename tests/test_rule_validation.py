"""
Tests for splitting rule validation
"""
import pytest

from household_splits.core.exceptions import RuleConfigurationError
from household_splits.core.models import SplittingRule
from household_splits.core.rule_validation import (
    MAX_REGEX_LENGTH,
    collect_split_errors,
    is_safe_pattern,
    validate_rule,
    validate_split_percentage,
)


def build(**fields):
    base = {
        'id': 'r1',
        'household_id': 'h1',
        'rule_name': 'Test rule',
        'rule_type': 'default',
        'priority': 10,
        'split_percentage': {'alice': 50, 'bob': 50},
    }
    base.update(fields)
    return SplittingRule(**base)


class TestRuleCriteria:
    """Criteria are checked when a rule is built"""

    def test_valid_rules_of_every_type(self):
        build(rule_type='merchant', merchant_pattern='^Tesco$')
        build(rule_type='category', category_match='groceries')
        build(rule_type='amount_threshold', min_amount=100)
        build(rule_type='amount_threshold', max_amount=10)
        build(rule_type='default')

    def test_malformed_regex_fails_at_creation(self):
        with pytest.raises(RuleConfigurationError, match="Invalid regex"):
            build(rule_type='merchant', merchant_pattern='(Tesco')

    def test_merchant_rule_requires_pattern(self):
        with pytest.raises(RuleConfigurationError, match="requires merchant_pattern"):
            build(rule_type='merchant')

    def test_category_rule_requires_category(self):
        with pytest.raises(RuleConfigurationError, match="requires category_match"):
            build(rule_type='category')

    def test_amount_rule_requires_a_bound(self):
        with pytest.raises(RuleConfigurationError, match="requires min_amount or max_amount"):
            build(rule_type='amount_threshold')

    def test_amount_bounds_must_be_ordered(self):
        with pytest.raises(RuleConfigurationError, match="max_amount must be greater"):
            build(rule_type='amount_threshold', min_amount=100, max_amount=50)

    def test_negative_bound_rejected(self):
        with pytest.raises(RuleConfigurationError, match="cannot be negative"):
            build(rule_type='amount_threshold', min_amount=-5)

    def test_zero_min_with_max_is_valid(self):
        rule = build(rule_type='amount_threshold', min_amount=0, max_amount=10)
        assert rule.min_amount == 0

    def test_criteria_must_match_rule_type(self):
        with pytest.raises(RuleConfigurationError, match="only takes merchant_pattern"):
            build(rule_type='merchant', merchant_pattern='Tesco', category_match='groceries')
        with pytest.raises(RuleConfigurationError, match="takes no matching criteria"):
            build(rule_type='default', min_amount=5)

    def test_unknown_rule_type(self):
        with pytest.raises(RuleConfigurationError, match="Unknown rule type"):
            build(rule_type='weekday')

    def test_priority_range(self):
        with pytest.raises(RuleConfigurationError, match="priority"):
            build(priority=0)
        with pytest.raises(RuleConfigurationError, match="priority"):
            build(priority=1001)
        with pytest.raises(RuleConfigurationError, match="priority must be an integer"):
            build(priority='1')

    def test_error_lists_every_problem(self):
        with pytest.raises(RuleConfigurationError) as exc_info:
            build(rule_type='amount_threshold', priority=0, category_match='x')
        assert len(exc_info.value.errors) == 3
        assert exc_info.value.rule_name == 'Test rule'

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            build(rule_type='merchant', merchant_pattern='[')


class TestRegexSafety:

    def test_nested_quantifiers_are_unsafe(self):
        assert not is_safe_pattern('(a+)+$')
        assert not is_safe_pattern(r'(\w*)*x')
        assert not is_safe_pattern('(ab{1,3})+')
        assert not is_safe_pattern('((a+))+$')
        assert not is_safe_pattern('((a+)b?)+$')

    def test_ordinary_patterns_are_safe(self):
        assert is_safe_pattern('((ab)c)+')
        assert is_safe_pattern('[(+]+x')
        assert is_safe_pattern(r'\(\d+\)+')
        assert is_safe_pattern('uber(?! eats)')
        assert is_safe_pattern('^Tesco$')
        assert is_safe_pattern('(Tesco|Sainsbury|Asda|Morrisons|Waitrose|Aldi|Lidl|Co-op).*')
        assert is_safe_pattern(r'AMZN\s*MKTP')

    def test_long_pattern_rejected(self):
        pattern = 'a' * (MAX_REGEX_LENGTH + 1)
        assert not is_safe_pattern(pattern)
        with pytest.raises(RuleConfigurationError, match="too long"):
            build(rule_type='merchant', merchant_pattern=pattern)

    def test_unsafe_pattern_rejected_at_creation(self):
        with pytest.raises(RuleConfigurationError, match="Unsafe regex"):
            build(rule_type='merchant', merchant_pattern='(a+)+')

    def test_deeply_nested_pattern_never_reaches_the_matcher(self):
        with pytest.raises(RuleConfigurationError, match="Unsafe regex"):
            build(rule_type='merchant', merchant_pattern='((a+))+$')


class TestSplitPercentage:

    def test_valid_split(self):
        validate_split_percentage({'alice': 60, 'bob': 40})
        validate_split_percentage({'alice': 100})

    def test_must_sum_to_100(self):
        with pytest.raises(RuleConfigurationError, match="sum to 100%, got 90%"):
            validate_split_percentage({'alice': 50, 'bob': 40})

    def test_empty_split_rejected(self):
        with pytest.raises(RuleConfigurationError, match="at least one member"):
            validate_split_percentage({})

    def test_percentages_must_be_whole_numbers_in_range(self):
        assert collect_split_errors({'alice': 50.5, 'bob': 49.5})
        assert collect_split_errors({'alice': 150, 'bob': -50})
        assert collect_split_errors({'alice': True, 'bob': 99})


class TestValidateRule:

    def test_full_rule_passes(self):
        validate_rule(build(rule_type='category', category_match='dining'))

    def test_split_gap_is_closed(self):
        rule = build(split_percentage={'alice': 70, 'bob': 20})
        with pytest.raises(RuleConfigurationError, match="sum to 100%"):
            validate_rule(rule)

    def test_rule_name_required(self):
        with pytest.raises(RuleConfigurationError, match="rule_name is required"):
            validate_rule(build(rule_name='  '))

    def test_draft_rule_without_split_builds_but_does_not_validate(self):
        rule = build(split_percentage={})
        with pytest.raises(RuleConfigurationError):
            validate_rule(rule)
