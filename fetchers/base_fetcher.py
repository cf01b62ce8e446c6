"""Abstract document service interface and cursor pagination."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models import Block, Document


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


@dataclass
class DocumentPage:
    """One page of a collection listing."""

    documents: List[Document] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


class BaseFetcher(ABC):
    """Abstract base class for remote document services."""

    def __init__(self, config: Dict[str, Any], logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.fetcher')

    @abstractmethod
    def list_documents(self, collection_id: str, cursor: Optional[str] = None) -> DocumentPage:
        """
        Fetch one page of documents of a collection.

        Args:
            collection_id: Collection (database) identifier
            cursor: Opaque cursor returned by the previous page, None for the first

        Returns:
            DocumentPage with documents, next cursor and has_more flag
        """
        pass

    @abstractmethod
    def get_document_header(self, document_id: str) -> Document:
        """
        Fetch a document's properties only.

        Args:
            document_id: Document (page) identifier

        Returns:
            Document without blocks
        """
        pass

    @abstractmethod
    def get_child_blocks(self, block_id: str) -> List[Block]:
        """
        Fetch the ordered child blocks of a block or document.

        Args:
            block_id: Block or document identifier

        Returns:
            Ordered list of blocks (their own children are not loaded)
        """
        pass

    def get_collection_name(self, collection_id: str) -> Optional[str]:
        """Return the collection's display name if the service knows it."""
        return None

    def fetch_all(self, collection_id: str) -> List[Document]:
        """
        Fetch every document of a collection, following cursors until exhausted.

        All pages are accumulated before returning. The first error
        propagates and discards the pages already fetched.

        Args:
            collection_id: Collection (database) identifier

        Returns:
            All documents in service order
        """
        documents: List[Document] = []
        cursor: Optional[str] = None
        page_count = 0

        while True:
            page = self.list_documents(collection_id, cursor)
            page_count += 1
            documents.extend(page.documents)
            self.logger.debug(
                f"Fetched page {page_count} of collection {collection_id}: "
                f"{len(page.documents)} documents ({len(documents)} so far)"
            )

            if not page.has_more:
                break
            if not page.next_cursor:
                raise FetcherError(
                    f"Collection {collection_id} reported more results without a cursor"
                )
            cursor = page.next_cursor

        self.logger.info(f"Fetched {len(documents)} total documents from collection {collection_id}")
        return documents
