"""
Data structures for the expense-splitting engine
"""
import re
from dataclasses import dataclass, field, asdict
import datetime
from decimal import Decimal
from typing import Dict, Optional, Union

from .exceptions import TransactionValidationError
from .rule_validation import (
    DEFAULT_PRIORITY,
    compile_merchant_pattern,
    validate_rule_criteria,
)


class RuleType:
    """Rule types, in the order they are documented"""
    MERCHANT = 'merchant'
    CATEGORY = 'category'
    AMOUNT_THRESHOLD = 'amount_threshold'
    DEFAULT = 'default'


def _to_float(value):
    """Convert database numerics (Decimal) to float, leave None alone"""
    if isinstance(value, Decimal):
        return float(value)
    return value


@dataclass
class SplittingRule:
    """
    Household splitting rule

    A rule is validated when it is built: an unknown rule type, missing
    criteria or a bad merchant pattern raise RuleConfigurationError here,
    so the matcher never sees a rule it cannot evaluate.
    """
    id: str
    household_id: str
    rule_name: str
    rule_type: str
    priority: int = DEFAULT_PRIORITY  # 1 = highest

    # Matching criteria (only the one for rule_type is set)
    merchant_pattern: Optional[str] = None
    category_match: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    # user_id -> percentage
    split_percentage: Dict[str, int] = field(default_factory=dict)

    is_active: bool = True
    created_by: Optional[str] = None
    apply_to_existing_transactions: bool = False

    _pattern: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        validate_rule_criteria(
            self.rule_type,
            self.priority,
            rule_name=self.rule_name,
            merchant_pattern=self.merchant_pattern,
            category_match=self.category_match,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
        )
        if self.rule_type == RuleType.MERCHANT:
            self._pattern = compile_merchant_pattern(self.merchant_pattern)

    @property
    def pattern(self) -> Optional[re.Pattern]:
        """Compiled merchant pattern (merchant rules only)"""
        return self._pattern

    @property
    def is_default(self) -> bool:
        return self.rule_type == RuleType.DEFAULT

    @classmethod
    def from_dict(cls, data: Dict) -> 'SplittingRule':
        """Build a rule from a database row or API payload"""
        return cls(
            id=str(data['id']),
            household_id=str(data['household_id']),
            rule_name=data['rule_name'],
            rule_type=data['rule_type'],
            priority=data.get('priority', DEFAULT_PRIORITY),
            merchant_pattern=data.get('merchant_pattern'),
            category_match=data.get('category_match'),
            min_amount=_to_float(data.get('min_amount')),
            max_amount=_to_float(data.get('max_amount')),
            split_percentage=dict(data.get('split_percentage') or {}),
            is_active=data.get('is_active', True),
            created_by=data.get('created_by'),
            apply_to_existing_transactions=data.get('apply_to_existing_transactions', False),
        )

    def to_dict(self) -> Dict:
        data = asdict(self)
        data.pop('_pattern', None)
        return data


@dataclass
class SplitDetails:
    """Manual split of one transaction into personal and shared portions"""
    personal_amount: float
    shared_amount: float
    split_percentage: Dict[str, float]

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class Transaction:
    """Transaction as seen by the splitting engine"""
    id: str
    account_id: str
    amount: float
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    date: Optional[Union[str, datetime.date]] = None
    description: Optional[str] = None

    # Filled by rule application or manual edits
    is_shared_expense: bool = False
    manual_override: bool = False
    confidence_score: Optional[int] = None
    splitting_rule_id: Optional[str] = None
    shared_with_household_id: Optional[str] = None
    split_details: Optional[SplitDetails] = None

    def __post_init__(self):
        errors = []
        if not self.id:
            errors.append("id is required")
        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            errors.append(f"amount must be a number, got {type(self.amount).__name__}")
        if self.merchant_name is not None and not isinstance(self.merchant_name, str):
            errors.append("merchant_name must be a string")
        if self.category is not None and not isinstance(self.category, str):
            errors.append("category must be a string")
        if self.confidence_score is not None:
            if isinstance(self.confidence_score, bool) or not isinstance(self.confidence_score, int) \
                    or not 0 <= self.confidence_score <= 100:
                errors.append("confidence_score must be an integer between 0 and 100")
        if errors:
            raise TransactionValidationError(
                f"Invalid transaction {self.id or '<no id>'}: " + "; ".join(errors)
            )

    @classmethod
    def from_dict(cls, data: Dict) -> 'Transaction':
        """Build a transaction from a database row"""
        split = data.get('split_details')
        if isinstance(split, dict):
            split = SplitDetails(
                personal_amount=float(split['personal_amount']),
                shared_amount=float(split['shared_amount']),
                split_percentage=dict(split.get('split_percentage') or {}),
            )

        return cls(
            id=str(data['id']),
            account_id=str(data['account_id']),
            amount=_to_float(data['amount']),
            merchant_name=data.get('merchant_name'),
            category=data.get('category'),
            date=data.get('date'),
            description=data.get('description'),
            is_shared_expense=bool(data.get('is_shared_expense', False)),
            manual_override=bool(data.get('manual_override', False)),
            confidence_score=data.get('confidence_score'),
            splitting_rule_id=(str(data['splitting_rule_id'])
                               if data.get('splitting_rule_id') else None),
            shared_with_household_id=(str(data['shared_with_household_id'])
                                      if data.get('shared_with_household_id') else None),
            split_details=split,
        )
