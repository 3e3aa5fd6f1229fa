"""
Household Expense Splitting Engine

Matches transactions against a household's splitting rules, scores the
match and decides whether the expense is shared.
"""

# Expose main classes for easy imports
from .exceptions import RuleConfigurationError, SplittingError, TransactionValidationError
from .models import RuleType, SplitDetails, SplittingRule, Transaction
from .rule_matcher import RuleMatcher, find_matching_rule, find_all_matching_rules
from .confidence import calculate_confidence_score, get_confidence_level
from .auto_categorizer import AutoCategorizer

__all__ = [
    'RuleConfigurationError',
    'SplittingError',
    'TransactionValidationError',
    'RuleType',
    'SplitDetails',
    'SplittingRule',
    'Transaction',
    'RuleMatcher',
    'find_matching_rule',
    'find_all_matching_rules',
    'calculate_confidence_score',
    'get_confidence_level',
    'AutoCategorizer',
]
