"""
Rule Templates

Predefined splitting rules for common household scenarios. Templates leave
split_percentage empty; it is filled in for the household's members when a
rule is created from the template.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import RuleType


@dataclass
class RuleTemplate:
    id: str
    name: str
    description: str
    rule_type: str
    default_config: Dict
    example_transactions: List[str] = field(default_factory=list)

    @property
    def keeps_private(self) -> bool:
        return 'private' in self.id


RULE_TEMPLATES: List[RuleTemplate] = [
    RuleTemplate(
        id='groceries-5050',
        name='Split Groceries 50/50',
        description='Share all grocery expenses equally between two people',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Groceries 50/50',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'groceries',
            'priority': 10,
        },
        example_transactions=['Tesco', "Sainsbury's", 'Waitrose', 'Asda', 'Morrisons'],
    ),
    RuleTemplate(
        id='utilities-custom',
        name='Split Utilities by Custom Ratio',
        description='Share utility bills with custom percentages per person',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Utilities Split',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'utilities',
            'priority': 15,
        },
        example_transactions=['Thames Water', 'British Gas', 'EDF Energy', 'Council Tax'],
    ),
    RuleTemplate(
        id='large-purchases',
        name='Share Large Purchases (>£100)',
        description='Automatically share any transaction over £100',
        rule_type=RuleType.AMOUNT_THRESHOLD,
        default_config={
            'rule_name': 'Large Purchases',
            'rule_type': RuleType.AMOUNT_THRESHOLD,
            'min_amount': 100.00,
            'priority': 5,
        },
        example_transactions=['John Lewis £250', 'Currys £180', 'IKEA £150'],
    ),
    RuleTemplate(
        id='supermarket-merchant',
        name='Share All Supermarket Purchases',
        description='Match all major UK supermarkets automatically',
        rule_type=RuleType.MERCHANT,
        default_config={
            'rule_name': 'Supermarkets',
            'rule_type': RuleType.MERCHANT,
            'merchant_pattern': '(Tesco|Sainsbury|Asda|Morrisons|Waitrose|Aldi|Lidl|Co-op).*',
            'priority': 20,
        },
        example_transactions=['Tesco Extra', "Sainsbury's Local", 'Aldi'],
    ),
    RuleTemplate(
        id='restaurants-dining',
        name='Split Restaurant & Dining',
        description='Share all restaurant and dining expenses',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Restaurants & Dining',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'dining',
            'priority': 25,
        },
        example_transactions=["Nando's", 'Pizza Express', 'Starbucks', 'Deliveroo'],
    ),
    RuleTemplate(
        id='transport-shared',
        name='Share Transport Costs',
        description='Split all transport and travel expenses',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Transport',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'transport',
            'priority': 30,
        },
        example_transactions=['Uber', 'TfL', 'Trainline', 'Shell Petrol'],
    ),
    RuleTemplate(
        id='entertainment-shared',
        name='Share Entertainment Costs',
        description='Split streaming services, cinema, and entertainment',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Entertainment',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'entertainment',
            'priority': 35,
        },
        example_transactions=['Netflix', 'Spotify', 'Odeon Cinema', 'Amazon Prime'],
    ),
    RuleTemplate(
        id='household-supplies',
        name='Share Household Supplies',
        description='Split cleaning products, toiletries, and household items',
        rule_type=RuleType.CATEGORY,
        default_config={
            'rule_name': 'Household Supplies',
            'rule_type': RuleType.CATEGORY,
            'category_match': 'household',
            'priority': 40,
        },
        example_transactions=['Boots', 'Superdrug', 'Wilko', 'B&M'],
    ),
    RuleTemplate(
        id='small-purchases-private',
        name='Keep Small Purchases Private (<£10)',
        description="Don't share transactions under £10 to avoid micro-splitting",
        rule_type=RuleType.AMOUNT_THRESHOLD,
        default_config={
            'rule_name': 'Small Purchases Private',
            'rule_type': RuleType.AMOUNT_THRESHOLD,
            'min_amount': 0,
            'max_amount': 10.00,
            'priority': 50,
        },
        example_transactions=['Coffee £3.50', 'Snack £5', 'Magazine £4.99'],
    ),
    RuleTemplate(
        id='default-share-all',
        name='Share Everything (Default Rule)',
        description="Share all transactions that don't match other rules",
        rule_type=RuleType.DEFAULT,
        default_config={
            'rule_name': 'Default - Share All',
            'rule_type': RuleType.DEFAULT,
            'priority': 999,
        },
        example_transactions=['Any transaction not covered by other rules'],
    ),
    RuleTemplate(
        id='default-keep-private',
        name='Keep Everything Private (Default Rule)',
        description='Keep all transactions private unless matched by other rules',
        rule_type=RuleType.DEFAULT,
        default_config={
            'rule_name': 'Default - Keep Private',
            'rule_type': RuleType.DEFAULT,
            'priority': 999,
        },
        example_transactions=['Any transaction not covered by other rules'],
    ),
]


def get_template_by_id(template_id: str) -> Optional[RuleTemplate]:
    for template in RULE_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def get_templates_by_type(rule_type: str) -> List[RuleTemplate]:
    return [template for template in RULE_TEMPLATES if template.rule_type == rule_type]


def populate_template_split(member_ids: List[str]) -> Dict[str, int]:
    """
    Equal split across household members

    Two members get 50/50; otherwise the rounding remainder goes to the
    first member so the total is exactly 100.
    """
    if not member_ids:
        return {}

    base = 100 // len(member_ids)
    remainder = 100 - base * len(member_ids)

    split = {}
    for index, member_id in enumerate(member_ids):
        split[member_id] = base + (remainder if index == 0 else 0)
    return split


def populate_template_private(current_user_id: str) -> Dict[str, int]:
    return {current_user_id: 100}


def create_rule_from_template(template: RuleTemplate,
                              member_ids: List[str],
                              current_user_id: str,
                              customizations: Optional[Dict] = None) -> Dict:
    """
    Build rule fields from a template

    Returns:
        Dict of rule fields, ready for SplittingRule.from_dict once an id and
        household_id are added
    """
    rule = dict(template.default_config)

    if template.keeps_private:
        rule['split_percentage'] = populate_template_private(current_user_id)
    else:
        rule['split_percentage'] = populate_template_split(member_ids)

    if customizations:
        rule.update(customizations)

    return rule
