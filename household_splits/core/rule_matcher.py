"""
Rule Matcher Engine

Matches transactions against household splitting rules:
- Merchant rules (regex on the merchant name, case-insensitive)
- Category rules (exact, case-sensitive category equality)
- Amount threshold rules (absolute amount within [min, max])
- Default rules (catch-all, always evaluated after every other rule)
- Priority-based rule selection (1 = highest)
"""
import logging
from typing import Dict, Iterable, List, Optional

from .exceptions import RuleConfigurationError, TransactionValidationError
from .models import RuleType, SplittingRule, Transaction

logger = logging.getLogger(__name__)


def _check_inputs(transaction, rules):
    if not isinstance(transaction, Transaction):
        raise TransactionValidationError(
            f"Expected a Transaction, got {type(transaction).__name__}"
        )
    for rule in rules:
        if not isinstance(rule, SplittingRule):
            raise RuleConfigurationError(
                [f"Expected SplittingRule objects, got {type(rule).__name__}"]
            )


def order_rules(rules: Iterable[SplittingRule]) -> List[SplittingRule]:
    """
    Active rules in evaluation order

    Lower priority number first; default rules always go last. The sort is
    stable, so rules with equal priority keep the caller's order.
    """
    active = [rule for rule in rules if rule.is_active]
    return sorted(active, key=lambda rule: (rule.is_default, rule.priority))


def _match_merchant(rule: SplittingRule, transaction: Transaction) -> bool:
    if not transaction.merchant_name:
        return False
    return rule.pattern.search(transaction.merchant_name) is not None


def _match_category(rule: SplittingRule, transaction: Transaction) -> bool:
    if transaction.category is None:
        return False
    return rule.category_match == transaction.category


def _match_amount_threshold(rule: SplittingRule, transaction: Transaction) -> bool:
    amount = abs(transaction.amount)

    if rule.min_amount is not None and amount < rule.min_amount:
        return False
    if rule.max_amount is not None and amount > rule.max_amount:
        return False
    return True


_MATCHERS = {
    RuleType.MERCHANT: _match_merchant,
    RuleType.CATEGORY: _match_category,
    RuleType.AMOUNT_THRESHOLD: _match_amount_threshold,
    RuleType.DEFAULT: lambda rule, transaction: True,
}


def rule_matches(rule: SplittingRule, transaction: Transaction) -> bool:
    """
    Check if a single rule matches a transaction

    Activity and priority are not considered here.
    """
    return _MATCHERS[rule.rule_type](rule, transaction)


def find_matching_rule(transaction: Transaction,
                       rules: Iterable[SplittingRule]) -> Optional[SplittingRule]:
    """
    Find the highest-priority active rule that matches a transaction

    Args:
        transaction: Transaction to match
        rules: Candidate rules, in any order

    Returns:
        The matching rule, or None if no rule matches
    """
    rules = list(rules)
    _check_inputs(transaction, rules)

    for rule in order_rules(rules):
        if rule_matches(rule, transaction):
            logger.debug(
                "Transaction %s matched rule %r (priority %s)",
                transaction.id, rule.rule_name, rule.priority,
            )
            return rule

    logger.debug("Transaction %s did not match any rules", transaction.id)
    return None


def find_all_matching_rules(transaction: Transaction,
                            rules: Iterable[SplittingRule]) -> List[SplittingRule]:
    """Every active rule matching the transaction, in evaluation order"""
    rules = list(rules)
    _check_inputs(transaction, rules)
    return [rule for rule in order_rules(rules) if rule_matches(rule, transaction)]


def build_draft_rule(draft: Dict) -> SplittingRule:
    """
    Build a throwaway rule from partial criteria (for the rule testing tool)

    Raises:
        RuleConfigurationError: if the criteria are incomplete or unsafe
    """
    return SplittingRule(
        id='draft',
        household_id='draft',
        rule_name=draft.get('rule_name') or 'draft',
        rule_type=draft.get('rule_type') or RuleType.MERCHANT,
        priority=draft.get('priority') or 100,
        merchant_pattern=draft.get('merchant_pattern'),
        category_match=draft.get('category_match'),
        min_amount=draft.get('min_amount'),
        max_amount=draft.get('max_amount'),
    )


def test_draft_rule(draft: Dict, transaction: Transaction) -> bool:
    """Check whether an unsaved rule would match a transaction"""
    return rule_matches(build_draft_rule(draft), transaction)


# Not a pytest test
test_draft_rule.__test__ = False


def get_rule_match_statistics(transactions: Iterable[Transaction],
                              rules: Iterable[SplittingRule]) -> Dict:
    """
    Match statistics for a set of transactions

    Returns:
        Dict with total/matched/unmatched counts and matches per rule id
    """
    rules = list(rules)
    matched = 0
    total = 0
    matches_by_rule: Dict[str, int] = {}

    for transaction in transactions:
        total += 1
        rule = find_matching_rule(transaction, rules)
        if rule:
            matched += 1
            matches_by_rule[rule.id] = matches_by_rule.get(rule.id, 0) + 1

    return {
        'total_transactions': total,
        'matched_transactions': matched,
        'unmatched_transactions': total - matched,
        'matches_by_rule': matches_by_rule,
    }


class RuleMatcher:
    """
    Matches transactions against a household's loaded rules
    """

    def __init__(self):
        self.rules: List[SplittingRule] = []
        self.stats = {
            'matches': 0,
            'no_match': 0,
            'by_rule_type': {},
        }

    def load_rules(self, rules: Iterable[SplittingRule]):
        """
        Load rules (from the database or a list)

        Inactive rules are dropped and the rest kept in evaluation order.
        """
        self.rules = order_rules(rules)
        logger.info("Loaded %d active rules", len(self.rules))

    def match(self, transaction: Transaction) -> Optional[SplittingRule]:
        """Find the rule for a transaction and record the outcome"""
        rule = find_matching_rule(transaction, self.rules)
        if rule:
            self.stats['matches'] += 1
            self.stats['by_rule_type'][rule.rule_type] = \
                self.stats['by_rule_type'].get(rule.rule_type, 0) + 1
        else:
            self.stats['no_match'] += 1
        return rule

    def print_stats(self):
        """Print matching statistics"""
        total = self.stats['matches'] + self.stats['no_match']
        if total == 0:
            print("No transactions processed yet")
            return

        print("\n" + "=" * 80)
        print("📊 RULE MATCHER STATISTICS")
        print("=" * 80)
        print(f"Total transactions: {total}")
        print(f"  ✅ Matched: {self.stats['matches']} ({self.stats['matches']/total*100:.1f}%)")
        print(f"  ❌ No match: {self.stats['no_match']} ({self.stats['no_match']/total*100:.1f}%)")

        if self.stats['by_rule_type']:
            print("\nMatches by rule type:")
            for rule_type, count in sorted(self.stats['by_rule_type'].items(),
                                           key=lambda x: x[1], reverse=True):
                print(f"  • {rule_type}: {count}")
        print("=" * 80)
