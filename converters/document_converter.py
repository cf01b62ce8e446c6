"""Per-document conversion pipeline: header, body and child pages."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from models import Block, ConversionContext, Document, PendingWrite
from .block_renderer import BlockRenderer
from .property_serializer import PropertySerializer
from .rich_text import sanitize_title

logger = logging.getLogger('notion_obsidian_migrator.converters.document')

LINK_UNSAFE_CHARS = str.maketrans('', '', '|[]')


@dataclass
class ConvertedDocument:
    """A fully rendered note that has not been written yet."""

    document_id: str
    title: str
    content: str
    pending_writes: List[PendingWrite] = field(default_factory=list)


class DocumentConverter:
    """
    Runs the whole conversion for one document.

    The header comes from the PropertySerializer and the body from the
    BlockRenderer. Child pages found in the body are converted with this
    same pipeline and come back as pending writes under the subpages
    directory, ahead of the parent in write order.
    """

    def __init__(
        self,
        fetcher,
        property_serializer: PropertySerializer,
        attachment_manager=None,
        title_deduplicator=None,
        include_content: bool = True,
        subpages_directory: str = 'subpages',
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            fetcher: Document service (get_document_header, get_child_blocks)
            property_serializer: Header serializer
            attachment_manager: Materializer for hosted media (optional)
            title_deduplicator: Assigns unique on-disk names to child pages
            include_content: Render body blocks at all
            subpages_directory: Vault-relative directory for child pages
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.property_serializer = property_serializer
        self.title_deduplicator = title_deduplicator
        self.include_content = include_content
        self.subpages_directory = subpages_directory.strip('/')
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.converters.document')

        self.block_renderer = BlockRenderer(
            fetcher,
            attachment_manager=attachment_manager,
            child_page_handler=self.convert_child_page,
            logger=logging.getLogger('notion_obsidian_migrator.converters.blocks'),
        )

    def convert(self, document: Document, context: ConversionContext) -> ConvertedDocument:
        """
        Convert a document into note text.

        Args:
            document: Document to convert
            context: Conversion context owned by this document

        Returns:
            ConvertedDocument

        Raises:
            RelationResolutionError: If a relation target cannot be resolved
            requests.RequestException: If fetching body blocks fails
        """
        title = sanitize_title(document.title)
        if not context.document_title:
            context.document_title = title

        self.logger.debug(f"Converting document '{title}' ({document.id})")
        header = self.property_serializer.build_header(document, context.property_filter, context)

        parts = [header.text]
        if header.semantic_lines:
            parts.append('\n'.join(header.semantic_lines) + '\n\n')

        pending_writes: List[PendingWrite] = []
        if self.include_content:
            blocks = document.blocks
            if blocks is None:
                blocks = self.fetcher.get_child_blocks(document.id)
            body = self.block_renderer.render(blocks, context)
            parts.append(body.text)
            pending_writes = body.pending_writes

        return ConvertedDocument(
            document_id=document.id,
            title=title,
            content=''.join(parts),
            pending_writes=pending_writes,
        )

    def convert_child_page(self, block: Block, context: ConversionContext) -> Tuple[str, List[PendingWrite]]:
        """
        Convert a child_page block into its own note.

        A failed child is logged and still linked from the parent.

        Returns:
            Tuple of (link text, pending writes with the child's note last)
        """
        fallback_title = block.title or block.id
        child_context = context.for_child_page(block.id, sanitize_title(fallback_title))

        try:
            child = self.fetcher.get_document_header(block.id)
            if not child.title and block.title:
                child_context.document_title = sanitize_title(block.title)
            converted = self.convert(child, child_context)
        except Exception as e:
            self.logger.error(f"Failed to convert child page '{fallback_title}' ({block.id}): {e}")
            return wiki_link(sanitize_title(fallback_title), fallback_title), []

        if child.title:
            display_title = child.title
        else:
            display_title = fallback_title
            converted.title = sanitize_title(fallback_title)

        if self.title_deduplicator is not None:
            stem = self.title_deduplicator.reserve(self.subpages_directory, converted.title, block.id)
        else:
            stem = converted.title

        relative_path = f"{self.subpages_directory}/{stem}.md" if self.subpages_directory else f"{stem}.md"
        self.logger.debug(f"Child page '{display_title}' queued for {relative_path}")

        pending = list(converted.pending_writes)
        pending.append(PendingWrite(
            relative_path=relative_path,
            content=converted.content,
            title=stem,
            document_id=block.id,
        ))
        return wiki_link(stem, display_title), pending


def wiki_link(target: str, label: Optional[str] = None) -> str:
    """Build `[[target]]`, or `[[target|label]]` when the label differs."""
    label = (label or '').translate(LINK_UNSAFE_CHARS).strip()
    if not label or label == target:
        return f"[[{target}]]"
    return f"[[{target}|{label}]]"


__all__ = ['ConvertedDocument', 'DocumentConverter', 'wiki_link']
