"""API fetcher implementation for retrieving Notion documents via REST API."""

import logging
from typing import Any, Dict, List, Optional

from models import Block, Document
from notion_client import NotionClient
from .base_fetcher import BaseFetcher, DocumentPage
from .notion_parser import parse_block, parse_document

logger = logging.getLogger('notion_obsidian_migrator.fetcher.api')


class ApiFetcher(BaseFetcher):
    """Fetches Notion database pages, page headers and block children via REST API."""

    def __init__(self, config: Dict[str, Any], logger=None, client: Optional[NotionClient] = None):
        """
        Initialize API fetcher with configuration.

        Args:
            config: Configuration dictionary with notion and advanced settings
            logger: Logger instance (optional)
            client: Pre-built NotionClient (optional, built from config otherwise)
        """
        super().__init__(config, logger)

        advanced_config = config.get('advanced', {})
        self.page_size = int(advanced_config.get('page_size', 100))
        self.client = client or NotionClient.from_config(config)

        self.logger.info(f"Initialized ApiFetcher for {self.client.base_url}")

    def list_documents(self, collection_id: str, cursor: Optional[str] = None) -> DocumentPage:
        data = self.client.query_database(collection_id, start_cursor=cursor, page_size=self.page_size)
        documents = [parse_document(raw) for raw in data.get('results', [])]
        return DocumentPage(
            documents=documents,
            next_cursor=data.get('next_cursor'),
            has_more=bool(data.get('has_more')),
        )

    def get_document_header(self, document_id: str) -> Document:
        return parse_document(self.client.get_page(document_id))

    def get_child_blocks(self, block_id: str) -> List[Block]:
        self.logger.debug(f"Fetching children for block {block_id}")
        raw_blocks = self.client.get_block_children(block_id, page_size=self.page_size)
        return [parse_block(raw) for raw in raw_blocks]

    def get_collection_name(self, collection_id: str) -> Optional[str]:
        return self.client.get_database_title(collection_id)

    def download_file(self, url: str) -> bytes:
        """Download an attachment's binary content."""
        return self.client.download_file(url)
