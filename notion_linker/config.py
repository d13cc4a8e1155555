"""
Configuration for the Notion relation linker.

All values come from environment variables. The four connection settings are
required and checked by validate_config() before anything talks to Notion.
"""

import os
from typing import Dict, Mapping, Optional

from notion_linker.errors import ConfigurationError


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# ============================================================================
# NOTION CONNECTION (required)
# ============================================================================

# Integration token and database IDs. Variable names match the workspace
# template's setup instructions.
ENV_NOTION_TOKEN = 'NOTION_TOKEN'
ENV_TRANSACTIONS_DATABASE = 'DATABASE_1'
ENV_MONTH_DATABASE = 'DATABASE_2'
ENV_CATEGORY_DATABASE = 'DATABASE_3'

REQUIRED_SETTINGS = [
    ENV_NOTION_TOKEN,
    ENV_TRANSACTIONS_DATABASE,
    ENV_MONTH_DATABASE,
    ENV_CATEGORY_DATABASE,
]

# ============================================================================
# NOTION API
# ============================================================================

NOTION_BASE_URL = os.environ.get('NOTION_BASE_URL', 'https://api.notion.com/v1')
NOTION_API_VERSION = os.environ.get('NOTION_API_VERSION', '2022-06-28')

# Seconds before an HTTP request to Notion is abandoned
REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', '30'))

# Results per query page (Notion caps this at 100)
PAGE_SIZE = min(int(os.environ.get('PAGE_SIZE', '100')), 100)

# ============================================================================
# PROPERTY NAMES
# ============================================================================

# Relation on Transactions -> Month
MONTH_PROPERTY = os.environ.get('MONTH_PROPERTY', 'Month')
# Formula present on both Transactions and Month, used as the join key
MONTH_TEXT_PROPERTY = os.environ.get('MONTH_TEXT_PROPERTY', 'Month Text')
# Relation on Transactions -> Category
CATEGORY_PROPERTY = os.environ.get('CATEGORY_PROPERTY', 'Category')
# Title property on Transactions and Category
NAME_PROPERTY = os.environ.get('NAME_PROPERTY', 'Name')

# ============================================================================
# SCHEDULING & RETRIES
# ============================================================================

# Total attempts per pass before giving up for the tick
MAX_RETRIES = int(os.environ.get('MAX_RETRIES', '10'))

# Fixed wait between attempts (seconds)
RETRY_DELAY = float(os.environ.get('RETRY_DELAY', '5'))

# Seconds between tick starts
TICK_INTERVAL = float(os.environ.get('TICK_INTERVAL', '5'))

# Categorizer+Linker rounds per tick
TICK_ITERATIONS = int(os.environ.get('TICK_ITERATIONS', '1'))

# Re-read a transaction before writing its Category (Month is always re-checked)
CATEGORY_RECHECK = _env_bool('CATEGORY_RECHECK', False)

# ============================================================================
# CATEGORY NAMES
# ============================================================================

# Comma separated list, overrides the built-in names
CATEGORY_NAMES = os.environ.get('CATEGORY_NAMES', '')

# File with one category name per line, takes precedence over CATEGORY_NAMES
CATEGORY_NAMES_FILE = os.environ.get('CATEGORY_NAMES_FILE', '')

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
LOG_FILE = os.environ.get('LOG_FILE', '')


def validate_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Validate required configuration.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Dict with keys: token, transactions_database_id, month_database_id,
        category_database_id

    Raises:
        ConfigurationError: If any required value is missing or blank
    """
    if environ is None:
        environ = os.environ

    values = {name: (environ.get(name) or '').strip() for name in REQUIRED_SETTINGS}
    missing = [name for name in REQUIRED_SETTINGS if not values[name]]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}\n"
            "Set the Notion integration token and the Transactions, Month and "
            "Category database IDs before starting the linker."
        )

    return {
        'token': values[ENV_NOTION_TOKEN],
        'transactions_database_id': values[ENV_TRANSACTIONS_DATABASE],
        'month_database_id': values[ENV_MONTH_DATABASE],
        'category_database_id': values[ENV_CATEGORY_DATABASE],
    }
