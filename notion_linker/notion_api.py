"""
Notion API client for the relation linker.

Covers the handful of endpoints the linker needs: retrieve a page, query a
database (all result pages), update page properties, retrieve a database.
Every failure is raised as RemoteOperationError.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from notion_linker.config import (
    NOTION_BASE_URL,
    NOTION_API_VERSION,
    REQUEST_TIMEOUT,
    PAGE_SIZE,
)
from notion_linker.errors import RemoteOperationError

logger = logging.getLogger(__name__)


class NotionClient:
    """Client for all Notion API operations."""

    def __init__(
        self,
        token: str,
        base_url: str = NOTION_BASE_URL,
        api_version: str = NOTION_API_VERSION,
        timeout: float = REQUEST_TIMEOUT,
        page_size: int = PAGE_SIZE,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Args:
            token: Notion integration token
            base_url: API root, without trailing slash
            api_version: Value for the Notion-Version header
            timeout: Request timeout in seconds
            page_size: Results requested per query page
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self._token = token
        self._base_url = base_url.rstrip('/')
        self._api_version = api_version
        self._timeout = timeout
        self._page_size = page_size
        self._transport = transport
        self._http = None

    def _get_http(self) -> httpx.Client:
        """Get the HTTP client (lazy initialization)."""
        if self._http is None:
            self._http = httpx.Client(
                base_url=self._base_url,
                headers={
                    'Authorization': f'Bearer {self._token}',
                    'Notion-Version': self._api_version,
                    'Content-Type': 'application/json',
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    def close(self):
        if self._http is not None:
            self._http.close()
            self._http = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body."""
        try:
            response = self._get_http().request(method, path, json=json)
        except httpx.HTTPError as e:
            raise RemoteOperationError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            code = None
            message = response.text
            try:
                body = response.json()
                if isinstance(body, dict):
                    code = body.get('code')
                    message = body.get('message', message)
            except ValueError:
                pass
            raise RemoteOperationError(
                f"{method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code,
                code=code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteOperationError(
                f"{method} {path} returned invalid JSON",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise RemoteOperationError(
                f"{method} {path} returned {type(body).__name__}, expected a JSON object",
                status_code=response.status_code,
            )
        return body

    # ========================================================================
    # PAGES
    # ========================================================================

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """Read a page's current property values."""
        return self._request('GET', f'/pages/{page_id}')

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update the given properties of a page. Properties not named are left
        untouched.
        """
        return self._request('PATCH', f'/pages/{page_id}', json={'properties': properties})

    # ========================================================================
    # DATABASES
    # ========================================================================

    def query_database(self, database_id: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Query a database, following pagination until every match is read.

        Args:
            database_id: Database to query
            filter: Notion filter object

        Returns:
            List of page dicts in the order Notion returns them
        """
        results = []
        body = {'page_size': self._page_size}
        if filter is not None:
            body['filter'] = filter

        while True:
            response = self._request('POST', f'/databases/{database_id}/query', json=body)
            page_results = response.get('results')
            if not isinstance(page_results, list):
                raise RemoteOperationError(f"Query of database {database_id} returned no results list")
            results.extend(page_results)

            next_cursor = response.get('next_cursor')
            if not response.get('has_more') or not next_cursor:
                break
            body = dict(body, start_cursor=next_cursor)

        return results

    def retrieve_database(self, database_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/databases/{database_id}')

    def validate_database_access(self, database_id: str, label: str) -> bool:
        """
        Validate that a database is shared with the integration.

        Args:
            database_id: The database ID
            label: Human-readable name for error messages

        Returns:
            True if accessible

        Raises:
            RemoteOperationError: With a hint on how to fix access problems
        """
        try:
            result = self.retrieve_database(database_id)
        except RemoteOperationError as e:
            if e.status_code == 404:
                hint = "Database not found. Check the ID and share the database with the integration."
            elif e.status_code in (401, 403):
                hint = "Permission denied. Check the integration token and its capabilities."
            else:
                hint = f"Error: {e}"
            raise RemoteOperationError(
                f"Cannot access {label} database (ID: {database_id}). {hint}",
                status_code=e.status_code,
                code=e.code,
            ) from e

        title = ''.join(t.get('plain_text', '') for t in result.get('title', [])) or 'Untitled'
        logger.info(f"Validated access to {label} database: {title}")
        return True
