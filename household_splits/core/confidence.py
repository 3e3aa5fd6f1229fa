"""
Confidence scoring for rule-based categorization

Scores reflect how specific the matched rule is:

    merchant, exact name     100
    merchant, pattern         90
    category                  75
    amount threshold          60
    default                   25

Manual overrides and manual splits are always 100.
"""
from typing import Optional

from .exceptions import RuleConfigurationError, TransactionValidationError
from .models import RuleType, SplittingRule, Transaction

EXACT_MERCHANT_SCORE = 100
MERCHANT_PATTERN_SCORE = 90
CATEGORY_SCORE = 75
AMOUNT_THRESHOLD_SCORE = 60
DEFAULT_RULE_SCORE = 25
MANUAL_CONFIDENCE_SCORE = 100

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 50
LOW_CONFIDENCE = 1

REGEX_METACHARACTERS = set('.^$*+?{}[]\\|()')

_TYPE_SCORES = {
    RuleType.CATEGORY: CATEGORY_SCORE,
    RuleType.AMOUNT_THRESHOLD: AMOUNT_THRESHOLD_SCORE,
    RuleType.DEFAULT: DEFAULT_RULE_SCORE,
}


def literal_pattern_text(pattern: str) -> Optional[str]:
    """
    The literal text of a merchant pattern, or None if it uses regex syntax

    Leading ^ and trailing $ anchors are allowed: '^Tesco$' -> 'Tesco'.
    """
    body = pattern
    if body.startswith('^'):
        body = body[1:]
    if body.endswith('$') and not body.endswith('\\$'):
        body = body[:-1]
    if not body or any(char in REGEX_METACHARACTERS for char in body):
        return None
    return body


def is_exact_merchant_match(rule: SplittingRule, transaction: Transaction) -> bool:
    """True if the rule names the transaction's merchant in full, not by pattern"""
    if rule.rule_type != RuleType.MERCHANT or not transaction.merchant_name:
        return False
    literal = literal_pattern_text(rule.merchant_pattern)
    return literal is not None and literal.lower() == transaction.merchant_name.lower()


def calculate_confidence_score(transaction: Transaction, rule: SplittingRule) -> int:
    """
    Confidence (0-100) that applying this rule to the transaction is right

    Args:
        transaction: The categorized transaction
        rule: The rule that matched it

    Returns:
        Integer score, see module docstring for the bands
    """
    if not isinstance(transaction, Transaction):
        raise TransactionValidationError(
            f"Expected a Transaction, got {type(transaction).__name__}"
        )
    if not isinstance(rule, SplittingRule):
        raise RuleConfigurationError([f"Expected a SplittingRule, got {type(rule).__name__}"])

    if rule.rule_type == RuleType.MERCHANT:
        if is_exact_merchant_match(rule, transaction):
            return EXACT_MERCHANT_SCORE
        return MERCHANT_PATTERN_SCORE

    return _TYPE_SCORES[rule.rule_type]


def get_confidence_level(score: Optional[int]) -> str:
    """
    Bucket a confidence score for display: high, medium, low or none

    Raises:
        ValueError: if the score is not an integer in [0, 100]
    """
    if score is None:
        return 'none'
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise ValueError(f"Confidence score must be an integer between 0 and 100, got {score!r}")

    if score >= HIGH_CONFIDENCE:
        return 'high'
    if score >= MEDIUM_CONFIDENCE:
        return 'medium'
    if score >= LOW_CONFIDENCE:
        return 'low'
    return 'none'
