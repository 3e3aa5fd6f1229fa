"""
Splitting Rule Validation

Checks a splitting rule before it is stored or handed to the matcher:
- Criteria consistent with the rule type (one criterion per rule)
- Merchant patterns compile and are safe to run (length cap, no nested quantifiers)
- Amount bounds are sane
- Split percentages cover at least one member and sum to exactly 100
"""
import re
from typing import Dict, List, Optional

from .exceptions import RuleConfigurationError

RULE_TYPES = ('merchant', 'category', 'amount_threshold', 'default')

MIN_PRIORITY = 1
MAX_PRIORITY = 1000
DEFAULT_PRIORITY = 100

# ReDoS protection
MAX_REGEX_LENGTH = 200

REPEAT_QUANTIFIER = re.compile(r'[*+]|\{\d+(?:,\d*)?\}')


def _skip_character_class(pattern: str, start: int) -> int:
    """Index just past the [...] class opening at start"""
    i = start + 1
    if i < len(pattern) and pattern[i] == '^':
        i += 1
    if i < len(pattern) and pattern[i] == ']':
        i += 1
    while i < len(pattern) and pattern[i] != ']':
        i += 2 if pattern[i] == '\\' else 1
    return i + 1


def has_nested_quantifier(pattern: str) -> bool:
    """
    True if a repeated group contains a repeat at any depth

    Catches (a+)+, (\\w*)* and ((a+)b?)+. Escapes and character
    classes are skipped.
    """
    # One flag per open group: has a repeat been seen inside it
    stack = [False]
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == '\\':
            i += 2
            continue
        if char == '[':
            i = _skip_character_class(pattern, i)
            continue
        if char == '(':
            stack.append(False)
        elif char == ')' and len(stack) > 1:
            inner = stack.pop()
            repeated = REPEAT_QUANTIFIER.match(pattern, i + 1) is not None
            if inner and repeated:
                return True
            stack[-1] = stack[-1] or inner or repeated
        elif REPEAT_QUANTIFIER.match(pattern, i):
            stack[-1] = True
        i += 1
    return False


def is_safe_pattern(pattern: str) -> bool:
    """True if the pattern is short enough and has no nested quantifiers"""
    if len(pattern) > MAX_REGEX_LENGTH:
        return False
    return not has_nested_quantifier(pattern)


def compile_merchant_pattern(pattern: str) -> re.Pattern:
    """
    Compile a merchant pattern for matching

    Merchant patterns are matched case-insensitively anywhere in the merchant name.

    Raises:
        RuleConfigurationError: if the pattern does not compile
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise RuleConfigurationError([f"Invalid regex pattern in merchant_pattern: {e}"])


def _check_amount(value, field: str, errors: List[str]) -> bool:
    if value is None:
        return True
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.append(f"{field} must be a number")
        return False
    if value < 0:
        errors.append(f"{field} cannot be negative")
        return False
    return True


def collect_criteria_errors(rule_type: str,
                            priority,
                            merchant_pattern: Optional[str] = None,
                            category_match: Optional[str] = None,
                            min_amount: Optional[float] = None,
                            max_amount: Optional[float] = None) -> List[str]:
    """
    Collect every structural problem with a rule's matching criteria

    Returns:
        List of error messages (empty when the criteria are valid)
    """
    errors = []

    if rule_type not in RULE_TYPES:
        errors.append(f"Unknown rule type: {rule_type}")
        return errors

    if isinstance(priority, bool) or not isinstance(priority, int):
        errors.append("priority must be an integer")
    elif not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        errors.append(f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}")

    has_pattern = merchant_pattern is not None
    has_category = category_match is not None
    has_amount = min_amount is not None or max_amount is not None

    if rule_type == 'merchant':
        if not merchant_pattern:
            errors.append("Merchant rule requires merchant_pattern")
        elif not isinstance(merchant_pattern, str):
            errors.append("merchant_pattern must be a string")
        else:
            if len(merchant_pattern) > MAX_REGEX_LENGTH:
                errors.append(
                    f"Regex pattern too long: {len(merchant_pattern)} chars (max {MAX_REGEX_LENGTH})"
                )
            elif not is_safe_pattern(merchant_pattern):
                errors.append("Unsafe regex pattern detected (nested quantifiers)")
            try:
                re.compile(merchant_pattern)
            except re.error as e:
                errors.append(f"Invalid regex pattern in merchant_pattern: {e}")
        if has_category or has_amount:
            errors.append("Merchant rule only takes merchant_pattern")

    elif rule_type == 'category':
        if not category_match:
            errors.append("Category rule requires category_match")
        elif not isinstance(category_match, str):
            errors.append("category_match must be a string")
        if has_pattern or has_amount:
            errors.append("Category rule only takes category_match")

    elif rule_type == 'amount_threshold':
        if not has_amount:
            errors.append("Amount threshold rule requires min_amount or max_amount")
        min_ok = _check_amount(min_amount, 'min_amount', errors)
        max_ok = _check_amount(max_amount, 'max_amount', errors)
        if min_ok and max_ok and min_amount is not None and max_amount is not None:
            if max_amount <= min_amount:
                errors.append("max_amount must be greater than min_amount")
        if has_pattern or has_category:
            errors.append("Amount threshold rule only takes min_amount/max_amount")

    else:
        if has_pattern or has_category or has_amount:
            errors.append("Default rule takes no matching criteria")

    return errors


def validate_rule_criteria(rule_type: str, priority, rule_name: Optional[str] = None, **criteria):
    """
    Raise if a rule's criteria could not be matched safely

    Raises:
        RuleConfigurationError: listing every problem found
    """
    errors = collect_criteria_errors(rule_type, priority, **criteria)
    if errors:
        raise RuleConfigurationError(errors, rule_name)


def collect_split_errors(split_percentage: Dict[str, int]) -> List[str]:
    """Collect every problem with a split_percentage map"""
    if not isinstance(split_percentage, dict) or not split_percentage:
        return ["split_percentage is required and must have at least one member"]

    errors = []
    for user_id, value in split_percentage.items():
        if not isinstance(user_id, str) or not user_id:
            errors.append(f"Invalid member id in split_percentage: {user_id!r}")
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"Percentage for {user_id} must be a whole number")
        elif not 0 <= value <= 100:
            errors.append(f"Percentage for {user_id} must be between 0 and 100")

    if errors:
        return errors

    total = sum(split_percentage.values())
    if total != 100:
        errors.append(f"split_percentage must sum to 100%, got {total}%")
    if not any(value > 0 for value in split_percentage.values()):
        errors.append("At least one household member must have a percentage greater than 0")
    return errors


def validate_split_percentage(split_percentage: Dict[str, int], rule_name: Optional[str] = None):
    """
    Raise unless split_percentage is a complete split

    Raises:
        RuleConfigurationError
    """
    errors = collect_split_errors(split_percentage)
    if errors:
        raise RuleConfigurationError(errors, rule_name)


def validate_rule(rule) -> None:
    """
    Full validation of a rule before it is saved

    Criteria were already checked when the rule was built; this adds the
    rule name and split checks.

    Raises:
        RuleConfigurationError
    """
    errors = []
    if not rule.rule_name or not rule.rule_name.strip():
        errors.append("rule_name is required")
    elif len(rule.rule_name) > 100:
        errors.append("rule_name must be at most 100 characters")

    errors.extend(collect_criteria_errors(
        rule.rule_type,
        rule.priority,
        merchant_pattern=rule.merchant_pattern,
        category_match=rule.category_match,
        min_amount=rule.min_amount,
        max_amount=rule.max_amount,
    ))
    errors.extend(collect_split_errors(rule.split_percentage))

    if errors:
        raise RuleConfigurationError(errors, rule.rule_name)
