"""
Auto-Categorizer

Applies a household's splitting rules to transactions:
1. Rule matching (highest priority rule wins)
2. Confidence scoring of the match
3. Review flag for unmatched or low-confidence transactions

Transactions a household member has overridden by hand are left alone.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .confidence import MANUAL_CONFIDENCE_SCORE, calculate_confidence_score
from .exceptions import TransactionValidationError
from .models import SplitDetails, SplittingRule, Transaction
from .rule_matcher import RuleMatcher

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_THRESHOLD = 70
DEFAULT_BATCH_SIZE = 50


@dataclass
class RuleApplicationResult:
    """Outcome of applying rules to one transaction"""
    transaction_id: str
    rule_applied: bool
    confidence_score: int
    is_shared_expense: bool
    needs_review: bool
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    shared_with_household_id: Optional[str] = None
    split_percentage: Optional[Dict[str, int]] = None
    skipped: bool = False  # manual override, left untouched


@dataclass
class BatchCategorizationResult:
    total: int = 0
    categorized: int = 0
    uncategorized: int = 0
    skipped: int = 0
    results: List[RuleApplicationResult] = field(default_factory=list)


def is_shared_split(split_percentage: Dict[str, int]) -> bool:
    """A split is shared when more than one member pays part of it"""
    return sum(1 for value in (split_percentage or {}).values() if value > 0) > 1


class AutoCategorizer:
    """
    Categorizes transactions using a household's splitting rules
    """

    def __init__(self,
                 rules: List[SplittingRule],
                 review_threshold: int = DEFAULT_REVIEW_THRESHOLD,
                 batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Args:
            rules: The household's splitting rules (inactive ones are ignored)
            review_threshold: Confidence below which a categorized transaction needs review
            batch_size: Chunk size used by categorize_batch
        """
        if not 0 <= review_threshold <= 100:
            raise ValueError(f"review_threshold must be between 0 and 100, got {review_threshold}")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.review_threshold = review_threshold
        self.batch_size = batch_size

        self.rule_matcher = RuleMatcher()
        self.rule_matcher.load_rules(rules)

        self.stats = {
            'total': 0,
            'rule_match': 0,
            'needs_review': 0,
            'high_confidence': 0,
            'skipped': 0,
        }

    def categorize_transaction(self, txn: Transaction) -> RuleApplicationResult:
        """
        Categorize a single transaction

        The transaction is updated in place with the rule, confidence and
        sharing decision.

        Returns:
            RuleApplicationResult describing what was applied
        """
        self.stats['total'] += 1

        if txn.manual_override:
            self.stats['skipped'] += 1
            return RuleApplicationResult(
                transaction_id=txn.id,
                rule_applied=False,
                confidence_score=txn.confidence_score or MANUAL_CONFIDENCE_SCORE,
                is_shared_expense=txn.is_shared_expense,
                needs_review=False,
                rule_id=txn.splitting_rule_id,
                shared_with_household_id=txn.shared_with_household_id,
                skipped=True,
            )

        rule = self.rule_matcher.match(txn)

        if rule is None:
            # Nothing backs an earlier sharing decision any more
            txn.splitting_rule_id = None
            txn.confidence_score = 0
            txn.is_shared_expense = False
            txn.shared_with_household_id = None
            self.stats['needs_review'] += 1
            return RuleApplicationResult(
                transaction_id=txn.id,
                rule_applied=False,
                confidence_score=0,
                is_shared_expense=False,
                needs_review=True,
            )

        score = calculate_confidence_score(txn, rule)
        shared = is_shared_split(rule.split_percentage)
        household_id = rule.household_id if shared else None

        txn.splitting_rule_id = rule.id
        txn.confidence_score = score
        txn.is_shared_expense = shared
        txn.shared_with_household_id = household_id
        txn.manual_override = False

        needs_review = score < self.review_threshold
        self.stats['rule_match'] += 1
        if needs_review:
            self.stats['needs_review'] += 1
        else:
            self.stats['high_confidence'] += 1

        logger.info(
            "Transaction %s matched rule %r (confidence: %d)", txn.id, rule.rule_name, score
        )

        return RuleApplicationResult(
            transaction_id=txn.id,
            rule_applied=True,
            confidence_score=score,
            is_shared_expense=shared,
            needs_review=needs_review,
            rule_id=rule.id,
            rule_name=rule.rule_name,
            shared_with_household_id=household_id,
            split_percentage=dict(rule.split_percentage),
        )

    def categorize_batch(self, transactions: List[Transaction]) -> BatchCategorizationResult:
        """
        Categorize many transactions, batch_size at a time

        Args:
            transactions: Transactions to categorize

        Returns:
            BatchCategorizationResult with per-transaction results
        """
        batch = BatchCategorizationResult()

        for start in range(0, len(transactions), self.batch_size):
            for txn in transactions[start:start + self.batch_size]:
                result = self.categorize_transaction(txn)
                batch.results.append(result)
                if result.skipped:
                    batch.skipped += 1
                elif result.rule_applied:
                    batch.categorized += 1
                else:
                    batch.uncategorized += 1

        batch.total = len(batch.results)
        logger.info(
            "Processed %d transactions: %d categorized, %d need review, %d skipped",
            batch.total, batch.categorized, batch.uncategorized, batch.skipped,
        )
        return batch

    def print_stats(self):
        """Print categorization statistics"""
        if self.stats['total'] == 0:
            print("No transactions categorized yet")
            return

        total = self.stats['total']

        print("\n" + "=" * 80)
        print("📊 CATEGORIZATION STATISTICS")
        print("=" * 80)
        print(f"Total transactions: {total}")
        print("\n✅ Categorization Results:")
        print(f"  • Rule match: {self.stats['rule_match']} ({self.stats['rule_match']/total*100:.1f}%)")
        print(f"  • Manual overrides kept: {self.stats['skipped']}")

        print("\n📋 Review Status:")
        print(f"  • High confidence (≥{self.review_threshold}): {self.stats['high_confidence']} ({self.stats['high_confidence']/total*100:.1f}%)")
        print(f"  • Needs review: {self.stats['needs_review']} ({self.stats['needs_review']/total*100:.1f}%)")

        print("=" * 80)


def validate_split_transaction(txn: Transaction, split: SplitDetails):
    """
    Check a manual split against its transaction

    Raises:
        TransactionValidationError: if the amounts or percentages don't add up
    """
    if split.personal_amount < 0 or split.shared_amount < 0:
        raise TransactionValidationError("Split amounts must be non-negative")

    total_amount = abs(txn.amount)
    split_total = split.personal_amount + split.shared_amount

    # Allow 1 cent rounding difference
    if abs(split_total - total_amount) > 0.01:
        raise TransactionValidationError(
            f"Split amounts ({split_total:.2f}) must equal transaction total ({total_amount:.2f})"
        )

    percentage_total = sum(split.split_percentage.values())
    if abs(percentage_total - 100) > 0.01:
        raise TransactionValidationError(
            f"Split percentages must sum to 100%, got {percentage_total}%"
        )


def apply_manual_split(txn: Transaction, split: SplitDetails, household_id: Optional[str]) -> Transaction:
    """Record a validated manual split on the transaction"""
    validate_split_transaction(txn, split)

    txn.split_details = split
    txn.is_shared_expense = True
    txn.manual_override = True
    txn.confidence_score = MANUAL_CONFIDENCE_SCORE
    txn.shared_with_household_id = household_id
    return txn


def apply_manual_override(txn: Transaction, is_shared_expense: bool, household_id: Optional[str]) -> Transaction:
    """Record a member's manual shared/personal decision on the transaction"""
    txn.is_shared_expense = is_shared_expense
    txn.manual_override = True
    txn.confidence_score = MANUAL_CONFIDENCE_SCORE
    txn.shared_with_household_id = household_id if is_shared_expense else None
    return txn
