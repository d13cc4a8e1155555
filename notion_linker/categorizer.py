"""
Category linking.

Finds transactions whose Category relation is empty and, when the
transaction's title is a known category name, links it to the Category page
with the same title.
"""

import logging
from typing import Any, Dict

from notion_linker.categories import CategoryRegistry
from notion_linker.config import CATEGORY_PROPERTY, NAME_PROPERTY
from notion_linker.filters import (
    relation_is_empty,
    title_equals,
    relation_value,
    get_relation_ids,
    get_title_text,
)
from notion_linker.notion_api import NotionClient

logger = logging.getLogger(__name__)


class CategoryLinker:
    """
    Links Transactions pages to Category pages by exact title match.

    Unlike MonthLinker, the Category relation is written without re-reading
    the transaction first unless recheck_before_write is set. A Category set
    by someone else between the query and the write is overwritten.
    """

    def __init__(
        self,
        client: NotionClient,
        transactions_database_id: str,
        category_database_id: str,
        registry: CategoryRegistry,
        category_property: str = CATEGORY_PROPERTY,
        name_property: str = NAME_PROPERTY,
        recheck_before_write: bool = False,
        dry_run: bool = False
    ):
        self.client = client
        self.transactions_database_id = transactions_database_id
        self.category_database_id = category_database_id
        self.registry = registry
        self.category_property = category_property
        self.name_property = name_property
        self.recheck_before_write = recheck_before_write
        self.dry_run = dry_run

    def link_categories(self, attempt: int = 1) -> Dict[str, Any]:
        """
        Run one pass over every transaction with an empty Category relation.

        Args:
            attempt: 1-based attempt number, for logging

        Returns:
            Stats dict with keys: found, linked, unknown_name, no_match,
            already_linked
        """
        logger.info(f'Linking categories from "Category" to "Transactions"... (attempt {attempt})')

        stats = {
            'found': 0,
            'linked': 0,
            'unknown_name': 0,
            'no_match': 0,
            'already_linked': 0,
        }

        transactions = self.client.query_database(
            self.transactions_database_id,
            filter=relation_is_empty(self.category_property),
        )
        stats['found'] = len(transactions)
        logger.info(f'Found {len(transactions)} uncategorized items in "Transactions" Database')

        for transaction in transactions:
            transaction_id = transaction['id']
            name = get_title_text(transaction, self.name_property)

            if name not in self.registry:
                logger.info(f"Didn't find a category with the same name for item {transaction_id}")
                stats['unknown_name'] += 1
                continue

            categories = self.client.query_database(
                self.category_database_id,
                filter=title_equals(self.name_property, name),
            )

            if not categories:
                logger.info(f'No "{name}" page in "Category" Database for item {transaction_id}')
                stats['no_match'] += 1
                continue

            category_id = categories[0]['id']

            if self.recheck_before_write:
                page = self.client.retrieve_page(transaction_id)
                if get_relation_ids(page, self.category_property):
                    logger.info(f'Category already set for item {transaction_id}, leaving it')
                    stats['already_linked'] += 1
                    continue

            if self.dry_run:
                logger.info(f'[dry run] Would link item {transaction_id} with category {category_id}')
            else:
                self.client.update_page(
                    transaction_id,
                    {self.category_property: relation_value(category_id)},
                )
                logger.info(f'Linked item {transaction_id} with category {category_id} ("{name}")')
            stats['linked'] += 1

        logger.info(
            f"Done linking categories: {stats['linked']} linked, "
            f"{stats['unknown_name']} unknown names, {stats['no_match']} without match"
        )
        return stats
