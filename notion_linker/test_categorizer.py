"""Tests for category linking."""

import pytest

from notion_linker.categorizer import CategoryLinker
from notion_linker.conftest import (
    TRANSACTIONS_DB,
    CATEGORY_DB,
    make_transaction,
    make_category,
)
from notion_linker.errors import RemoteOperationError


@pytest.fixture
def categorizer(notion, registry):
    return CategoryLinker(notion, TRANSACTIONS_DB, CATEGORY_DB, registry)


def test_links_known_name_to_category(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t2', name='Groceries'))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))
    notion.add(CATEGORY_DB, make_category('c2', 'Rent'))

    stats = categorizer.link_categories()

    assert notion.relation_ids('t2', 'Category') == ['c1']
    assert stats['linked'] == 1
    title_filter = [q['filter'] for q in notion.queries if q['database_id'] == CATEGORY_DB][0]
    assert title_filter == {'property': 'Name', 'title': {'equals': 'Groceries'}}


def test_unknown_name_is_never_linked(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Lottery'))
    # A matching page exists, but the name is not a known category
    notion.add(CATEGORY_DB, make_category('c9', 'Lottery'))

    stats = categorizer.link_categories()
    categorizer.link_categories()

    assert notion.relation_ids('t1', 'Category') == []
    assert stats['unknown_name'] == 1
    assert [q['database_id'] for q in notion.queries] == [TRANSACTIONS_DB, TRANSACTIONS_DB]


def test_name_match_is_case_sensitive(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='groceries'))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))

    categorizer.link_categories()

    assert notion.relation_ids('t1', 'Category') == []


def test_known_name_without_category_page_stays_empty(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Rent'))

    stats = categorizer.link_categories()

    assert stats['no_match'] == 1
    assert notion.relation_ids('t1', 'Category') == []
    assert notion.updates == []


def test_empty_title_is_skipped(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name=''))

    stats = categorizer.link_categories()

    assert stats['unknown_name'] == 1


def test_already_categorized_transactions_are_not_queried(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Groceries', category=['c-old']))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))

    stats = categorizer.link_categories()

    assert stats['found'] == 0
    assert notion.relation_ids('t1', 'Category') == ['c-old']


def test_writes_without_recheck_by_default(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Groceries'))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))

    categorizer.link_categories()

    assert notion.retrieves == []


def test_recheck_keeps_concurrent_category(notion, registry):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Groceries'))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))
    notion.before_retrieve = lambda page_id: notion.set_relation(page_id, 'Category', 'c-manual')

    categorizer = CategoryLinker(notion, TRANSACTIONS_DB, CATEGORY_DB, registry, recheck_before_write=True)
    stats = categorizer.link_categories()

    assert notion.relation_ids('t1', 'Category') == ['c-manual']
    assert stats['already_linked'] == 1
    assert notion.updates == []


def test_dry_run_does_not_write(notion, registry):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Groceries'))
    notion.add(CATEGORY_DB, make_category('c1', 'Groceries'))

    CategoryLinker(notion, TRANSACTIONS_DB, CATEGORY_DB, registry, dry_run=True).link_categories()

    assert notion.updates == []


def test_remote_error_propagates(notion, categorizer):
    notion.add(TRANSACTIONS_DB, make_transaction('t1', name='Groceries'))
    notion.fail_on_query = lambda database_id, f: True

    with pytest.raises(RemoteOperationError):
        categorizer.link_categories()
