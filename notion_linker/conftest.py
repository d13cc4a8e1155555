"""
Shared fixtures: an in-memory Notion workspace that understands the three
filter shapes the linker sends, usable directly or behind httpx.MockTransport.
"""

import copy
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from notion_linker.categories import CategoryRegistry
from notion_linker.errors import RemoteOperationError
from notion_linker.notion_api import NotionClient

TRANSACTIONS_DB = 'db-transactions'
MONTH_DB = 'db-month'
CATEGORY_DB = 'db-category'


def make_transaction(page_id: str, name: str = '', month_text: Optional[str] = None,
                     month: Optional[List[str]] = None, category: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        'object': 'page',
        'id': page_id,
        'properties': {
            'Name': {'type': 'title', 'title': [{'plain_text': name}] if name else []},
            'Month Text': {'type': 'formula', 'formula': {'type': 'string', 'string': month_text}},
            'Month': {'type': 'relation', 'relation': [{'id': i} for i in (month or [])]},
            'Category': {'type': 'relation', 'relation': [{'id': i} for i in (category or [])]},
        },
    }


def make_month(page_id: str, month_text: str) -> Dict[str, Any]:
    return {
        'object': 'page',
        'id': page_id,
        'properties': {
            'Name': {'type': 'title', 'title': [{'plain_text': month_text}]},
            'Month Text': {'type': 'formula', 'formula': {'type': 'string', 'string': month_text}},
        },
    }


def make_category(page_id: str, name: str) -> Dict[str, Any]:
    return {
        'object': 'page',
        'id': page_id,
        'properties': {
            'Name': {'type': 'title', 'title': [{'plain_text': name}]},
        },
    }


def _matches(page: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
    if not filter:
        return True
    prop = page['properties'].get(filter['property'], {})
    if 'relation' in filter:
        return not prop.get('relation')
    if 'formula' in filter:
        return prop.get('formula', {}).get('string') == filter['formula']['string']['equals']
    if 'title' in filter:
        text = ''.join(t['plain_text'] for t in prop.get('title', []))
        return text == filter['title']['equals']
    raise AssertionError(f"Unsupported filter: {filter}")


class FakeNotion:
    """In-memory stand-in for the NotionClient page and query operations."""

    def __init__(self):
        self.databases: Dict[str, List[Dict[str, Any]]] = {
            TRANSACTIONS_DB: [],
            MONTH_DB: [],
            CATEGORY_DB: [],
        }
        self.queries: List[Dict[str, Any]] = []
        self.updates: List[Dict[str, Any]] = []
        self.retrieves: List[str] = []
        # Hooks for simulating failures or concurrent writers
        self.before_retrieve: Optional[Callable[[str], None]] = None
        self.fail_on_query: Optional[Callable[[str, Dict[str, Any]], bool]] = None

    def add(self, database_id: str, page: Dict[str, Any]) -> Dict[str, Any]:
        self.databases[database_id].append(page)
        return page

    def page(self, page_id: str) -> Dict[str, Any]:
        for pages in self.databases.values():
            for page in pages:
                if page['id'] == page_id:
                    return page
        raise RemoteOperationError(f"page {page_id} not found", status_code=404, code='object_not_found')

    def set_relation(self, page_id: str, property_name: str, *target_ids: str):
        self.page(page_id)['properties'][property_name]['relation'] = [{'id': i} for i in target_ids]

    def relation_ids(self, page_id: str, property_name: str) -> List[str]:
        return [r['id'] for r in self.page(page_id)['properties'][property_name]['relation']]

    # NotionClient interface

    def query_database(self, database_id: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self.queries.append({'database_id': database_id, 'filter': copy.deepcopy(filter)})
        if self.fail_on_query and self.fail_on_query(database_id, filter):
            raise RemoteOperationError("rate limited", status_code=429, code='rate_limited')
        return [copy.deepcopy(p) for p in self.databases[database_id] if _matches(p, filter)]

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        self.retrieves.append(page_id)
        if self.before_retrieve:
            self.before_retrieve(page_id)
        return copy.deepcopy(self.page(page_id))

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        self.updates.append({'page_id': page_id, 'properties': copy.deepcopy(properties)})
        page = self.page(page_id)
        for name, value in properties.items():
            page['properties'][name] = copy.deepcopy(value)
        return copy.deepcopy(page)

    # httpx.MockTransport handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip('/').split('/')
        # parts: ['v1', 'pages', id] or ['v1', 'databases', id, 'query']
        try:
            if parts[1] == 'pages' and request.method == 'GET':
                return httpx.Response(200, json=self.retrieve_page(parts[2]))
            if parts[1] == 'pages' and request.method == 'PATCH':
                body = json.loads(request.content)
                return httpx.Response(200, json=self.update_page(parts[2], body['properties']))
            if parts[1] == 'databases' and len(parts) == 4 and request.method == 'POST':
                body = json.loads(request.content)
                results = self.query_database(parts[2], body.get('filter'))
                return httpx.Response(200, json={
                    'object': 'list', 'results': results, 'has_more': False, 'next_cursor': None,
                })
            if parts[1] == 'databases' and request.method == 'GET':
                if parts[2] not in self.databases:
                    raise RemoteOperationError("not found", status_code=404, code='object_not_found')
                return httpx.Response(200, json={
                    'object': 'database', 'id': parts[2], 'title': [{'plain_text': parts[2]}],
                })
        except RemoteOperationError as e:
            return httpx.Response(e.status_code or 500, json={
                'object': 'error', 'status': e.status_code, 'code': e.code, 'message': str(e),
            })
        return httpx.Response(400, json={'object': 'error', 'code': 'invalid_request_url', 'message': 'bad url'})


@pytest.fixture
def notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def http_client(notion: FakeNotion):
    client = NotionClient('secret-token', transport=httpx.MockTransport(notion.handle))
    yield client
    client.close()


@pytest.fixture
def registry() -> CategoryRegistry:
    return CategoryRegistry(['Groceries', 'Rent', 'Salary'])
