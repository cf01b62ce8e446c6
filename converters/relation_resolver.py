"""Resolve relation properties to the display names of the documents they point at."""

import logging
import threading
from typing import Dict, List, Optional

from models import Property, RelationStyle
from .rich_text import double_quote

logger = logging.getLogger('notion_obsidian_migrator.converters.relations')


class ConversionError(Exception):
    """Base exception for document conversion errors."""
    pass


class RelationResolutionError(ConversionError):
    """Raised when a related document's title cannot be fetched."""
    pass


class RelationResolver:
    """
    Looks up the title of every document referenced by a relation property.

    Lookups run one at a time in relation order. Resolved titles are cached
    for the lifetime of the resolver; failures are not cached and abort the
    whole relation.
    """

    def __init__(
        self,
        fetcher,
        style: RelationStyle = RelationStyle.INLINE,
        semantic_links: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            fetcher: Document service providing get_document_header()
            style: Inline bracketed list or one entry per line
            semantic_links: Also produce `key:: [[name]]` lines
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.style = style
        self.semantic_links = semantic_links
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.converters.relations')
        self._title_cache: Dict[str, str] = {}
        self._cache_lock = threading.Lock()

    def resolve(self, prop: Property) -> List[str]:
        """
        Resolve a relation property to display names, in source order.

        Raises:
            RelationResolutionError: If any referenced document cannot be fetched
        """
        names = []
        for document_id in prop.value or []:
            names.append(self._lookup_title(prop.name, document_id))
        self.logger.debug(f"Resolved relation '{prop.name}' to {len(names)} name(s)")
        return names

    def _lookup_title(self, property_name: str, document_id: str) -> str:
        with self._cache_lock:
            cached = self._title_cache.get(document_id)
        if cached is not None:
            return cached

        try:
            header = self.fetcher.get_document_header(document_id)
        except Exception as e:
            raise RelationResolutionError(
                f"Could not resolve relation '{property_name}' target {document_id}: {e}"
            ) from e

        title = header.title or document_id
        with self._cache_lock:
            self._title_cache[document_id] = title
        return title

    def render_header_lines(self, key: str, names: List[str]) -> List[str]:
        """
        Render resolved names as header lines in the configured style.

        Args:
            key: Already-quoted header key
            names: Resolved display names
        """
        if not names:
            return [f"{key}: []"]

        links = [double_quote(f"[[{name}]]") for name in names]
        if self.style == RelationStyle.LIST:
            return [f"{key}:"] + [f"  - {link}" for link in links]
        return [f"{key}: [{', '.join(links)}]"]

    def render_semantic_line(self, name: str, names: List[str]) -> Optional[str]:
        """Render a `key:: [[a]], [[b]]` line, or None when disabled or empty."""
        if not self.semantic_links or not names:
            return None
        return f"{name}:: " + ', '.join(f"[[{title}]]" for title in names)


__all__ = ['ConversionError', 'RelationResolutionError', 'RelationResolver']
