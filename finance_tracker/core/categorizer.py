# finance_tracker/core/categorizer.py
from typing import Dict, List

FALLBACK_CATEGORY = "Miscellaneous"

# Insertion order is match priority.
DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "Income": ["salary", "payroll"],
    "Food & Dining": ["restaurant", "cafe", "food"],
    "Transportation": ["uber", "taxi", "transport"],
    "Shopping": ["amazon", "walmart", "target"],
    "Subscriptions": ["netflix", "spotify", "subscription"],
}


def categorize(description, categories_map=None, fallback=FALLBACK_CATEGORY):
    """Return the first category whose keyword occurs in *description*."""
    text = (description or "").lower()
    for cat, keywords in (categories_map or DEFAULT_CATEGORIES).items():
        for kw in keywords or []:
            if kw and kw.lower() in text:
                return cat
    return fallback
