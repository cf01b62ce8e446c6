"""Converters package for turning Notion documents into Obsidian Markdown notes."""

import logging

from models import ConversionContext, RelationStyle
from .block_renderer import BlockRenderer, RenderResult
from .document_converter import ConvertedDocument, DocumentConverter
from .property_serializer import PropertySerializer, SerializedHeader
from .relation_resolver import ConversionError, RelationResolutionError, RelationResolver

logger = logging.getLogger('notion_obsidian_migrator.converters')


def build_converter(fetcher, config=None, attachment_manager=None, title_deduplicator=None, logger=None):
    """
    Wire a DocumentConverter from the `export` section of a configuration.

    Args:
        fetcher: Document service (fetch headers and child blocks)
        config: Configuration dictionary (defaults are used when omitted)
        attachment_manager: Materializer for files properties and media blocks
        title_deduplicator: Unique-name allocator for child pages
        logger: Optional logger instance

    Returns:
        DocumentConverter
    """
    if logger is None:
        logger = logging.getLogger('notion_obsidian_migrator.converters')

    export_config = (config or {}).get('export', {})
    resolver = RelationResolver(
        fetcher,
        style=RelationStyle(export_config.get('relation_style', 'inline')),
        semantic_links=export_config.get('semantic_links', False),
    )
    serializer = PropertySerializer(
        resolver,
        attachment_manager=attachment_manager,
        normalize_date_keys=export_config.get('normalize_date_keys', False),
    )

    destination = export_config.get('destination_directory', '').strip('/')
    subpages = export_config.get('subpages_directory', 'subpages').strip('/')
    return DocumentConverter(
        fetcher,
        serializer,
        attachment_manager=attachment_manager,
        title_deduplicator=title_deduplicator,
        include_content=export_config.get('include_content', True),
        subpages_directory=f"{destination}/{subpages}" if destination else subpages,
        logger=logger,
    )


def convert_document(document, fetcher, config=None, logger=None):
    """
    Convenience function to convert one document without writing anything.

    Example:
        >>> from converters import convert_document
        >>> converted = convert_document(document, fetcher)
        >>> print(converted.content)
    """
    converter = build_converter(fetcher, config=config, logger=logger)
    export_config = (config or {}).get('export', {})
    context = ConversionContext(
        document_id=document.id,
        property_filter=export_config.get('properties') or {},
    )
    return converter.convert(document, context)


__all__ = [
    'build_converter',
    'convert_document',
    'BlockRenderer',
    'RenderResult',
    'ConvertedDocument',
    'DocumentConverter',
    'PropertySerializer',
    'SerializedHeader',
    'RelationResolver',
    'ConversionError',
    'RelationResolutionError',
]
