"""Fetchers package for retrieving Notion documents and block trees."""

from .base_fetcher import BaseFetcher, DocumentPage, FetcherError
from .api_fetcher import ApiFetcher
from .notion_parser import parse_block, parse_document, parse_property, parse_rich_text


class FetcherFactory:
    """Factory for creating fetcher instances based on configuration."""

    @staticmethod
    def create_fetcher(config: dict, logger=None) -> BaseFetcher:
        """Create the fetcher for the configured Notion workspace.

        Args:
            config: Configuration dictionary
            logger: Logger instance

        Returns:
            BaseFetcher instance
        """
        return ApiFetcher(config, logger)


__all__ = [
    'BaseFetcher',
    'DocumentPage',
    'FetcherError',
    'ApiFetcher',
    'FetcherFactory',
    'parse_block',
    'parse_document',
    'parse_property',
    'parse_rich_text',
]
