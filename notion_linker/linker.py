"""
Month linking.

Finds transactions whose Month relation is empty and links each one to the
Month page whose Month Text formula equals the transaction's own Month Text.
A Month relation that is already set is never overwritten.
"""

import logging
from typing import Any, Dict

from notion_linker.config import MONTH_PROPERTY, MONTH_TEXT_PROPERTY
from notion_linker.filters import (
    relation_is_empty,
    formula_string_equals,
    relation_value,
    get_relation_ids,
    get_formula_string,
)
from notion_linker.notion_api import NotionClient

logger = logging.getLogger(__name__)


class MonthLinker:
    """Links Transactions pages to Month pages by Month Text."""

    def __init__(
        self,
        client: NotionClient,
        transactions_database_id: str,
        month_database_id: str,
        month_property: str = MONTH_PROPERTY,
        month_text_property: str = MONTH_TEXT_PROPERTY,
        dry_run: bool = False
    ):
        self.client = client
        self.transactions_database_id = transactions_database_id
        self.month_database_id = month_database_id
        self.month_property = month_property
        self.month_text_property = month_text_property
        self.dry_run = dry_run

    def link_months(self, attempt: int = 1) -> Dict[str, Any]:
        """
        Run one pass over every transaction with an empty Month relation.

        Any Notion error aborts the rest of the pass and propagates, so the
        caller can re-run the whole pass.

        Args:
            attempt: 1-based attempt number, for logging

        Returns:
            Stats dict with keys: found, linked, no_match, no_month_text,
            already_linked
        """
        logger.info(f'Watching "Transactions" Database... (attempt {attempt})')

        stats = {
            'found': 0,
            'linked': 0,
            'no_match': 0,
            'no_month_text': 0,
            'already_linked': 0,
        }

        transactions = self.client.query_database(
            self.transactions_database_id,
            filter=relation_is_empty(self.month_property),
        )
        stats['found'] = len(transactions)
        logger.info(f'Found {len(transactions)} items in "Transactions" Database')

        for transaction in transactions:
            transaction_id = transaction['id']
            month_text = get_formula_string(transaction, self.month_text_property)

            if not month_text:
                logger.info(f'No {self.month_text_property} value for "Transactions" item {transaction_id}, skipping')
                stats['no_month_text'] += 1
                continue

            logger.info(f'Checking for matching month in "Month" Database for "Transactions" item {transaction_id}...')

            months = self.client.query_database(
                self.month_database_id,
                filter=formula_string_equals(self.month_text_property, month_text),
            )

            if not months:
                logger.info(f'No matching month found in "Month" Database for "Transactions" item {transaction_id}')
                stats['no_match'] += 1
                continue

            # First result in Notion's default ordering wins
            month_id = months[0]['id']
            if self._link_if_empty(transaction_id, month_id):
                stats['linked'] += 1
            else:
                stats['already_linked'] += 1

        logger.info(
            f"Done linking months: {stats['linked']} linked, {stats['no_match']} without match, "
            f"{stats['already_linked']} linked elsewhere meanwhile"
        )
        return stats

    def _link_if_empty(self, transaction_id: str, month_id: str) -> bool:
        """
        Write the Month relation unless it was filled since the query ran.

        Returns:
            True if the relation was written (or would be, in dry run)
        """
        page = self.client.retrieve_page(transaction_id)
        if get_relation_ids(page, self.month_property):
            logger.info(f'Month already set for "Transactions" item {transaction_id}, leaving it')
            return False

        if self.dry_run:
            logger.info(f'[dry run] Would link "Transactions" item {transaction_id} with "Month" item {month_id}')
            return True

        self.client.update_page(
            transaction_id,
            {self.month_property: relation_value(month_id)},
        )
        logger.info(f'Linked "Transactions" item {transaction_id} with "Month" item {month_id}')
        return True
