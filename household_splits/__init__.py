"""
Household Splits

Rule-based expense splitting for households: priority-ordered splitting
rules, confidence scoring and a review queue for uncertain matches.
"""

__version__ = "1.0.0"

from .core import (
    AutoCategorizer,
    RuleConfigurationError,
    SplittingRule,
    Transaction,
    calculate_confidence_score,
    find_matching_rule,
    get_confidence_level,
)

__all__ = [
    'AutoCategorizer',
    'RuleConfigurationError',
    'SplittingRule',
    'Transaction',
    'calculate_confidence_score',
    'find_matching_rule',
    'get_confidence_level',
]
