"""
Category names the linker is allowed to match.

A transaction is only linked to a Category page when its title is one of
these names. The built-in list matches the Category database of the budget
template; CATEGORY_NAMES or CATEGORY_NAMES_FILE replace it.
"""

import logging
from typing import Iterable, Iterator, List, Tuple

from notion_linker.config import CATEGORY_NAMES, CATEGORY_NAMES_FILE
from notion_linker.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_NAMES = [
    # Income
    'Salary',
    'Bonus',
    'Freelance',
    'Investments',
    'Interest',
    'Gifts Received',
    'Refunds',
    'Other Income',
    # Housing
    'Rent',
    'Mortgage',
    'Utilities',
    'Internet',
    'Phone',
    'Home Maintenance',
    # Food
    'Groceries',
    'Restaurants',
    'Coffee',
    'Takeout',
    # Transport
    'Fuel',
    'Public Transport',
    'Taxi',
    'Car Maintenance',
    'Parking',
    # Personal
    'Clothing',
    'Health',
    'Pharmacy',
    'Fitness',
    'Personal Care',
    'Education',
    'Books',
    # Leisure
    'Entertainment',
    'Subscriptions',
    'Travel',
    'Hobbies',
    'Gifts',
    'Charity',
    # Money
    'Insurance',
    'Taxes',
    'Bank Fees',
    'Savings',
    'Debt Repayment',
    'Other Expenses',
]


class CategoryRegistry:
    """Ordered, de-duplicated set of known category names (exact match)."""

    def __init__(self, names: Iterable[str]):
        ordered = []
        seen = set()
        for name in names:
            if name and name not in seen:
                seen.add(name)
                ordered.append(name)
        self._names: Tuple[str, ...] = tuple(ordered)
        self._lookup = frozenset(ordered)

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __contains__(self, name: object) -> bool:
        return name in self._lookup

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"CategoryRegistry({len(self._names)} names)"


def _read_names_file(path: str) -> List[str]:
    """One name per line; blank lines and lines starting with # are ignored."""
    names = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            name = line.strip()
            if name and not name.startswith('#'):
                names.append(name)
    return names


def load_category_registry(
    names_file: str = CATEGORY_NAMES_FILE,
    names: str = CATEGORY_NAMES
) -> CategoryRegistry:
    """
    Build the registry from configuration.

    Priority order:
    1. names_file (CATEGORY_NAMES_FILE)
    2. names, comma separated (CATEGORY_NAMES)
    3. DEFAULT_CATEGORY_NAMES

    Raises:
        ConfigurationError: If names_file cannot be read
    """
    if names_file:
        try:
            file_names = _read_names_file(names_file)
        except OSError as e:
            raise ConfigurationError(f"Cannot read CATEGORY_NAMES_FILE {names_file}: {e}") from e
        registry = CategoryRegistry(file_names)
        logger.info(f"Loaded {len(registry)} category names from {names_file}")
    elif names:
        registry = CategoryRegistry(n.strip() for n in names.split(','))
        logger.info(f"Loaded {len(registry)} category names from CATEGORY_NAMES")
    else:
        registry = CategoryRegistry(DEFAULT_CATEGORY_NAMES)
        logger.info(f"Using {len(registry)} built-in category names")
    return registry
