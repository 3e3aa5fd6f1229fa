"""
Errors raised by the splitting engine
"""
from typing import List, Optional


class SplittingError(ValueError):
    """Base class for expense-splitting errors"""


class RuleConfigurationError(SplittingError):
    """A splitting rule is incomplete or would break the matcher"""

    def __init__(self, errors: List[str], rule_name: Optional[str] = None):
        self.errors = list(errors)
        self.rule_name = rule_name
        prefix = f"Invalid rule '{rule_name}': " if rule_name else "Invalid rule: "
        super().__init__(prefix + "; ".join(self.errors))


class TransactionValidationError(SplittingError):
    """A transaction (or a manual split of one) has an invalid shape"""
