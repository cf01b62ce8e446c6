"""Block tree walker: renders a document's content blocks as Markdown."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from models import Block, BlockKind, ConversionContext, PendingWrite
from .rich_text import format_runs, plain_text

logger = logging.getLogger('notion_obsidian_migrator.converters.blocks')

CALLOUT_MARKER = '> [!NOTE]+'
QUOTE_PREFIX = '>'
HEADING_LEVELS = {
    BlockKind.HEADING_1: 1,
    BlockKind.HEADING_2: 2,
    BlockKind.HEADING_3: 3,
}
PLAIN_CODE_LANGUAGES = {'plain text', 'plain_text', 'text'}

ChildPageHandler = Callable[[Block, ConversionContext], Tuple[str, List[PendingWrite]]]


@dataclass
class RenderResult:
    """Rendered body text plus the child notes discovered while walking."""

    text: str
    pending_writes: List[PendingWrite] = field(default_factory=list)


class BlockRenderer:
    """
    Renders a block sequence depth-first, left to right.

    Every block kind has one rendering rule. Blocks that declare children
    have them fetched on demand and rendered one level down; a toggle's
    rendered children are block-quoted beneath its callout line. Child
    pages are not written here: the child-page handler converts them and
    hands back the pending writes, which travel up in the RenderResult.
    """

    def __init__(
        self,
        fetcher,
        attachment_manager=None,
        child_page_handler: Optional[ChildPageHandler] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            fetcher: Document service providing get_child_blocks()
            attachment_manager: Materializer for hosted media (optional)
            child_page_handler: Callable converting a child_page block into
                (link text, pending writes)
            logger: Logger instance
        """
        self.fetcher = fetcher
        self.attachment_manager = attachment_manager
        self.child_page_handler = child_page_handler
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.converters.blocks')

        self._renderers: Dict[BlockKind, Callable[[Block, ConversionContext, Optional[int], List[PendingWrite]], str]] = {
            BlockKind.PARAGRAPH: self._render_paragraph,
            BlockKind.HEADING_1: self._render_heading,
            BlockKind.HEADING_2: self._render_heading,
            BlockKind.HEADING_3: self._render_heading,
            BlockKind.BULLETED_LIST_ITEM: self._render_list_item,
            BlockKind.NUMBERED_LIST_ITEM: self._render_list_item,
            BlockKind.TO_DO: self._render_to_do,
            BlockKind.IMAGE: self._render_image,
            BlockKind.FILE: self._render_file,
            BlockKind.AUDIO: self._render_audio,
            BlockKind.VIDEO: self._render_video,
            BlockKind.CODE: self._render_code,
            BlockKind.TABLE: self._render_table,
            BlockKind.TABLE_ROW: self._render_table_row,
            BlockKind.TOGGLE: self._render_toggle,
            BlockKind.BOOKMARK: self._render_bookmark,
            BlockKind.LINK_PREVIEW: self._render_link_preview,
            BlockKind.CHILD_PAGE: self._render_child_page,
        }

        missing = set(BlockKind) - set(self._renderers) - {BlockKind.UNSUPPORTED}
        if missing:
            raise ValueError(f"No render rule for block kinds: {sorted(k.value for k in missing)}")

    def render(self, blocks: List[Block], context: ConversionContext) -> RenderResult:
        """
        Render a block sequence at the context's current nesting level.

        Args:
            blocks: Blocks in document order
            context: Conversion context owned by the document being converted

        Returns:
            RenderResult with the Markdown text and pending child writes

        Raises:
            requests.RequestException: If fetching a block's children fails
        """
        parts: List[str] = []
        pending_writes: List[PendingWrite] = []

        for block in blocks:
            number = context.next_list_number(block.kind)

            renderer = self._renderers.get(block.kind)
            if renderer is None:
                self.logger.warning(
                    f"Unsupported block type '{block.raw_type}' ({block.id}) "
                    f"in document {context.document_id} - skipped"
                )
            else:
                parts.append(renderer(block, context, number, pending_writes))

            # Table rows and child pages are consumed by their own rules
            if block.has_children and block.kind not in (BlockKind.TABLE, BlockKind.CHILD_PAGE):
                children = self._render_children(block, context)
                pending_writes.extend(children.pending_writes)
                if block.kind == BlockKind.TOGGLE:
                    parts.append(quote_lines(children.text) or '\n')
                else:
                    parts.append(children.text)

        return RenderResult(text=''.join(parts), pending_writes=pending_writes)

    def _render_children(self, block: Block, context: ConversionContext) -> RenderResult:
        self.logger.debug(f"Fetching children for block {block.id}")
        child_blocks = self.fetcher.get_child_blocks(block.id)
        with context.nested_level():
            return self.render(child_blocks, context)

    def _render_paragraph(self, block: Block, context, number, pending) -> str:
        text = format_runs(block.rich_text)
        if not text:
            return ''
        return f"{text}\n\n"

    def _render_heading(self, block: Block, context, number, pending) -> str:
        text = format_runs(block.rich_text)
        if not text:
            return ''
        return f"{'#' * HEADING_LEVELS[block.kind]} {text}\n\n"

    def _render_list_item(self, block: Block, context, number, pending) -> str:
        prefix = '-' if number is None else f"{number}."
        return f"{prefix} {format_runs(block.rich_text)}\n"

    def _render_to_do(self, block: Block, context, number, pending) -> str:
        checkbox = '[x]' if block.checked else '[ ]'
        return f"- {checkbox} {format_runs(block.rich_text)}\n"

    def _render_code(self, block: Block, context, number, pending) -> str:
        language = block.language or ''
        if language.lower() in PLAIN_CODE_LANGUAGES:
            language = ''
        return f"```{language}\n{plain_text(block.rich_text)}\n```\n\n"

    def _render_table(self, block: Block, context, number, pending) -> str:
        if not block.has_children:
            return ''
        rows = [
            child for child in self.fetcher.get_child_blocks(block.id)
            if child.kind == BlockKind.TABLE_ROW
        ]
        if not rows:
            return ''

        width = max(max(len(row.cells) for row in rows), 1)
        if block.has_column_header:
            header, body = table_line(rows[0].cells), rows[1:]
        else:
            # Markdown tables always need a header row
            header, body = '| ' + ' | '.join([''] * width) + ' |', rows
        lines = [header, '| ' + ' | '.join(['---'] * width) + ' |']
        lines.extend(table_line(row.cells) for row in body)
        return '\n'.join(lines) + '\n\n'

    def _render_table_row(self, block: Block, context, number, pending) -> str:
        return table_line(block.cells) + '\n'

    def _render_toggle(self, block: Block, context, number, pending) -> str:
        marker = f"{CALLOUT_MARKER} {plain_text(block.rich_text).strip()}".rstrip()
        return f"{marker}\n" if block.has_children else f"{marker}\n\n"

    def _render_bookmark(self, block: Block, context, number, pending) -> str:
        if not block.url:
            return ''
        label = plain_text(block.caption) or block.url
        return f"[{label}]({block.url})\n\n"

    def _render_link_preview(self, block: Block, context, number, pending) -> str:
        if not block.url:
            return ''
        return f"[Link Preview]({block.url})\n\n"

    def _render_image(self, block: Block, context, number, pending) -> str:
        if block.file is None:
            return ''
        if not block.file.hosted:
            return f"![{plain_text(block.caption)}]({block.file.url})\n\n"
        return self._embed(block, context)

    def _render_file(self, block: Block, context, number, pending) -> str:
        if block.file is None:
            return ''
        if not block.file.hosted:
            return f"[[{block.file.url}]]\n\n"
        return self._embed(block, context)

    def _render_audio(self, block: Block, context, number, pending) -> str:
        if block.file is None:
            return ''
        if not block.file.hosted:
            return f"[{block.file.url}]({block.file.url})\n\n"
        return self._embed(block, context)

    def _render_video(self, block: Block, context, number, pending) -> str:
        if block.file is None:
            return ''
        if not block.file.hosted:
            return f"Video: [{block.file.url}]({block.file.url})\n\n"
        return self._embed(block, context)

    def _embed(self, block: Block, context: ConversionContext) -> str:
        """Materialize a hosted file and return its embed line ('' on failure)."""
        if self.attachment_manager is None:
            self.logger.warning(f"No attachment manager - {block.raw_type} block {block.id} skipped")
            return ''
        reference = self.attachment_manager.materialize(block.file.url, context=context)
        if not reference:
            return ''
        return f"{reference}\n\n"

    def _render_child_page(self, block: Block, context, number, pending: List[PendingWrite]) -> str:
        if self.child_page_handler is None:
            return f"[[{block.title or block.id}]]\n\n"
        link, child_writes = self.child_page_handler(block, context)
        pending.extend(child_writes)
        return f"{link}\n\n"


def quote_lines(text: str) -> str:
    """Prefix every line of text with a block-quote marker."""
    if not text:
        return ''
    quoted = [f"{QUOTE_PREFIX} {line}" if line else QUOTE_PREFIX for line in text.splitlines()]
    return '\n'.join(quoted) + '\n\n'


def table_line(cells) -> str:
    """Render one table row as a pipe-delimited line."""
    texts = [format_runs(cell).replace('|', '\\|').replace('\n', ' ') for cell in cells]
    return '| ' + ' | '.join(texts) + ' |'


__all__ = ['BlockRenderer', 'RenderResult', 'quote_lines', 'table_line']
