"""
Category Suggester

Fallback categorization from the merchant name and description, for
transactions the bank feed delivered without a category (manual entries,
missing provider categories). Category splitting rules match on the result.
"""
import re
from typing import Dict, List, Optional

CATEGORIES = [
    'groceries', 'utilities', 'entertainment', 'transport', 'dining',
    'shopping', 'healthcare', 'housing', 'income', 'transfer', 'other',
]

CATEGORY_PATTERNS: Dict[str, List[str]] = {
    'groceries': [
        r'tesco', r'sainsbury', r'asda', r'aldi', r'lidl', r'waitrose',
        r'morrisons', r'coop|co-op', r'marks & spencer|m&s', r'iceland',
        r'whole foods', r'trader joe',
    ],
    'utilities': [
        r'british gas', r'thames water', r'edf energy', r'scottish power',
        r'ovo energy', r'octopus energy', r'bulb energy',
        r'\b(?:water|electric\w*|gas|energy)\b', r'council tax',
    ],
    'entertainment': [
        r'netflix', r'spotify', r'amazon prime', r'cinema|odeon|vue',
        r'apple music', r'disney\+|disney plus', r'hbo|hulu',
        r'theatre|theater', r'concert|gig', r'museum|gallery',
    ],
    'transport': [
        r'uber(?! eats)', r'\btfl\b|transport for london', r'trainline',
        r'shell|\bbp\b|esso|texaco', r'petrol|fuel', r'parking', r'taxi|\bcab\b',
        r'\bbus\b|coach', r'train|rail', r'oyster',
    ],
    'dining': [
        r'restaurant', r'cafe|coffee', r'pizza', r'deliveroo', r'uber eats',
        r'just eat', r'mcdonald|burger king|kfc', r'starbucks|costa|nero',
        r'nando|wagamama|prezzo', r'\bpub\b|\bbar\b',
    ],
    'healthcare': [
        r'boots pharmacy', r'pharmacy', r'hospital', r'doctor|\bgp\b',
        r'dental|dentist', r'optician', r'medical|health', r'\bnhs\b',
    ],
    'shopping': [
        r'amazon(?! prime)', r'ebay', r'argos', r'john lewis',
        r'\bnext\b|zara|h&m', r'boots(?! pharmacy)', r'superdrug',
        r'clothing|fashion',
    ],
    'housing': [
        r'rent|landlord', r'mortgage', r'estate agent|letting',
        r'home insurance', r'furniture|ikea', r'diy|b&q|homebase',
    ],
    'income': [
        r'salary|wage', r'payroll', r'transfer from|payment from', r'refund',
        r'dividend', r'interest',
    ],
    'transfer': [
        r'transfer to', r'transfer', r'payment to', r'atm withdrawal', r'cash',
    ],
}

# Most specific categories first
PRIORITY_ORDER = [
    'healthcare', 'utilities', 'housing', 'groceries', 'transport',
    'entertainment', 'dining', 'shopping', 'transfer',
]

# Positive amounts above this are treated as income even without keywords
INCOME_AMOUNT_THRESHOLD = 500

_COMPILED = {
    category: [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
    for category, patterns in CATEGORY_PATTERNS.items()
}


def _matches(category: str, text: str) -> bool:
    return any(pattern.search(text) for pattern in _COMPILED[category])


def suggest_category(merchant_name: Optional[str],
                     amount: float,
                     description: Optional[str] = None) -> str:
    """
    Suggest a category for a transaction

    Args:
        merchant_name: Merchant name from the bank feed (may be empty)
        amount: Signed amount (positive = money in)
        description: Optional free-text description

    Returns:
        One of CATEGORIES ('other' when nothing matches)
    """
    text = f"{merchant_name or ''} {description or ''}".strip()

    if amount > 0:
        if _matches('income', text):
            return 'income'
        if amount > INCOME_AMOUNT_THRESHOLD:
            return 'income'

    for category in PRIORITY_ORDER:
        if _matches(category, text):
            return category

    return 'other'


def fill_missing_categories(transactions) -> int:
    """
    Set a suggested category on transactions that have none

    Returns:
        Number of transactions updated
    """
    updated = 0
    for txn in transactions:
        if not txn.category:
            txn.category = suggest_category(txn.merchant_name, txn.amount, txn.description)
            updated += 1
    return updated
