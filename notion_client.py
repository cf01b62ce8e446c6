"""Notion REST API client with authentication, retry logic, and error handling."""

import json
import logging
import threading
import time
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger('notion_obsidian_migrator.client')

DEFAULT_BASE_URL = "https://api.notion.com/v1"
DEFAULT_API_VERSION = "2022-06-28"


class NotionClient:
    """Notion REST API client with bearer authentication, retry logic, and rate limiting."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_factor: float = 2.0,
        rate_limit: float = 0.0
    ):
        """
        Initialize Notion client with authentication and retry configuration.

        Args:
            api_key: Notion integration token
            base_url: API base URL
            api_version: Value of the Notion-Version header
            timeout: HTTP request timeout in seconds
            max_retries: Maximum retry attempts for transient errors
            retry_backoff_factor: Exponential backoff factor
            rate_limit: Minimum seconds between requests (0.0 = no rate limiting)
        """
        if not api_key:
            raise ValueError("Notion client requires an api_key")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit = rate_limit
        self.last_request_time = 0.0
        self._rate_lock = threading.Lock()

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Notion-Version': api_version,
            'Content-Type': 'application/json',
        })

        # POST is retried too: database queries are read-only
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=retry_backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured with timeout={timeout}s, max_retries={max_retries}, "
                     f"backoff_factor={retry_backoff_factor}, rate_limit={rate_limit}s")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'NotionClient':
        """
        Initialize Notion client from configuration dictionary.

        Args:
            config: Configuration dictionary with notion and advanced settings

        Returns:
            NotionClient instance
        """
        notion_config = config.get('notion', {})
        advanced_config = config.get('advanced', {})

        return cls(
            api_key=notion_config.get('api_key'),
            base_url=notion_config.get('base_url', DEFAULT_BASE_URL),
            api_version=notion_config.get('api_version', DEFAULT_API_VERSION),
            timeout=advanced_config.get('request_timeout', 30),
            max_retries=advanced_config.get('max_retries', 3),
            retry_backoff_factor=advanced_config.get('retry_backoff_factor', 2.0),
            rate_limit=advanced_config.get('rate_limit', 0.0)
        )

    def _enforce_rate_limit(self) -> None:
        """Enforce rate limiting if configured."""
        if self.rate_limit <= 0:
            return

        with self._rate_lock:
            time_since_last = time.time() - self.last_request_time
            if time_since_last < self.rate_limit:
                sleep_time = self.rate_limit - time_since_last
                logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f}s")
                time.sleep(sleep_time)
            self.last_request_time = time.time()

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """
        Make HTTP request to the Notion API and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path (e.g., "/databases/{id}/query")
            **kwargs: Additional arguments for requests

        Returns:
            Decoded JSON response

        Raises:
            requests.exceptions.HTTPError: For HTTP errors
            requests.exceptions.Timeout: For timeout errors
            requests.exceptions.RequestException: For other request errors
        """
        self._enforce_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start_time = time.time()
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            elapsed = time.time() - start_time
            logger.debug(f"API Response: {response.status_code} {url} ({elapsed:.3f}s)")
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout}s: {method} {url}")
            raise

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"HTTP Error {status_code}: {method} {url}")

            if e.response is not None:
                try:
                    error_data = e.response.json()
                    logger.error(f"Error details: {json.dumps(error_data, indent=2)}")
                except ValueError:
                    logger.error(f"Error response: {e.response.text[:500]}")

            raise

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {method} {url} - {str(e)}")
            raise

    def query_database(
        self,
        database_id: str,
        start_cursor: Optional[str] = None,
        page_size: int = 100
    ) -> Dict[str, Any]:
        """
        Fetch one page of a database query.

        Args:
            database_id: Notion database ID
            start_cursor: Opaque cursor from the previous page (None for the first)
            page_size: Number of results per page (max 100)

        Returns:
            Raw response with 'results', 'next_cursor' and 'has_more'
        """
        body: Dict[str, Any] = {'page_size': page_size}
        if start_cursor:
            body['start_cursor'] = start_cursor

        return self._make_request('POST', f'/databases/{database_id}/query', json=body)

    def get_database_title(self, database_id: str) -> Optional[str]:
        """
        Fetch the plain-text title of a database.

        Returns:
            Database title, or None if the lookup fails
        """
        try:
            data = self._make_request('GET', f'/databases/{database_id}')
            return ''.join(part.get('plain_text', '') for part in data.get('title', [])) or None
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not fetch database title for {database_id}: {e}")
            return None

    def get_page(self, page_id: str) -> Dict[str, Any]:
        """
        Fetch a page object (properties only, no content).

        Raises:
            requests.exceptions.HTTPError: For 404 or other HTTP errors
        """
        return self._make_request('GET', f'/pages/{page_id}')

    def get_block_children(self, block_id: str, page_size: int = 100) -> List[Dict[str, Any]]:
        """
        Get all child blocks of a block or page, following pagination.

        Args:
            block_id: Parent block or page ID
            page_size: Number of children per request

        Returns:
            List of raw block dictionaries in document order
        """
        children: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            params: Dict[str, Any] = {'page_size': page_size}
            if cursor:
                params['start_cursor'] = cursor

            data = self._make_request('GET', f'/blocks/{block_id}/children', params=params)
            children.extend(data.get('results', []))

            if not data.get('has_more'):
                break
            cursor = data.get('next_cursor')
            if not cursor:
                logger.warning(f"Block {block_id} reported more children without a cursor")
                break

        logger.debug(f"Fetched {len(children)} child blocks for {block_id}")
        return children

    def download_file(self, url: str) -> bytes:
        """
        Download a binary file.

        Notion-hosted files are pre-signed URLs, so the request goes out
        without the API authorization header.

        Raises:
            requests.exceptions.RequestException: For network or HTTP errors
        """
        logger.debug(f"Downloading file: {url}")
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content


__all__ = ['NotionClient', 'DEFAULT_BASE_URL', 'DEFAULT_API_VERSION']
