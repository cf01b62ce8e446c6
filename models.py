"""Data models for Notion to Obsidian migration pipeline."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger('notion_obsidian_migrator')


class PropertyKind(Enum):
    """Property kinds understood by the header serializer."""
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    RICH_TEXT = "rich_text"
    CHECKBOX = "checkbox"
    DATE = "date"
    NUMBER = "number"
    STATUS = "status"
    URL = "url"
    RELATION = "relation"
    ROLLUP = "rollup"
    FORMULA = "formula"
    FILES = "files"
    CREATED_TIME = "created_time"
    TITLE = "title"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_type(cls, type_name: Optional[str]) -> 'PropertyKind':
        """Map a raw Notion property type to a kind, UNSUPPORTED if unknown."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.UNSUPPORTED


class BlockKind(Enum):
    """Block kinds understood by the block renderer."""
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    IMAGE = "image"
    FILE = "file"
    AUDIO = "audio"
    VIDEO = "video"
    CODE = "code"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TOGGLE = "toggle"
    BOOKMARK = "bookmark"
    LINK_PREVIEW = "link_preview"
    CHILD_PAGE = "child_page"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_type(cls, type_name: Optional[str]) -> 'BlockKind':
        """Map a raw Notion block type to a kind, UNSUPPORTED if unknown."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.UNSUPPORTED


class TitlePolicy(Enum):
    """How on-disk note titles are made unique."""
    APPEND_ID = "append_id"
    DEDUPLICATE = "deduplicate"


class RelationStyle(Enum):
    """How relation properties are laid out in the header."""
    INLINE = "inline"
    LIST = "list"


@dataclass
class RichTextRun:
    """One run of rich text with the annotations the renderer honours."""

    text: str
    bold: bool = False
    italic: bool = False
    href: Optional[str] = None
    mention_type: Optional[str] = None  # e.g. 'date', 'page', 'user'


@dataclass
class FileReference:
    """A file hosted by Notion ('file') or linked from elsewhere ('external')."""

    url: str
    name: Optional[str] = None
    hosted: bool = True


@dataclass
class FormulaValue:
    """Result of a formula property; `type` is number, string, boolean or date."""

    type: Optional[str]
    value: Any = None


@dataclass
class RollupValue:
    """Result of a rollup property.

    Only rollups of type 'array' carry entries; each entry is a nested
    Property (only formula entries are rendered).
    """

    type: Optional[str]
    entries: List['Property'] = field(default_factory=list)


@dataclass
class Property:
    """A typed, named field of a Document.

    `value` depends on `kind`:
        SELECT, STATUS, URL, DATE, CREATED_TIME -> Optional[str]
        MULTI_SELECT -> List[str]
        RICH_TEXT, TITLE -> List[RichTextRun]
        CHECKBOX -> bool
        NUMBER -> Optional[int | float]
        RELATION -> List[str] (foreign document ids, in source order)
        FILES -> List[FileReference]
        FORMULA -> FormulaValue
        ROLLUP -> RollupValue
        UNSUPPORTED -> raw payload
    """

    name: str
    kind: PropertyKind
    value: Any = None
    raw_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.raw_type is None:
            self.raw_type = self.kind.value


@dataclass
class Block:
    """A node of a Document's content tree.

    Kind-specific fields are left at their defaults when they do not apply.
    Children are never embedded; they are fetched on demand by id.
    """

    id: str
    kind: BlockKind
    raw_type: Optional[str] = None
    rich_text: List[RichTextRun] = field(default_factory=list)
    has_children: bool = False
    checked: bool = False
    language: Optional[str] = None
    url: Optional[str] = None
    caption: List[RichTextRun] = field(default_factory=list)
    file: Optional[FileReference] = None
    title: Optional[str] = None
    cells: List[List[RichTextRun]] = field(default_factory=list)
    has_column_header: bool = False

    def __post_init__(self) -> None:
        if self.raw_type is None:
            self.raw_type = self.kind.value

    @property
    def plain_text(self) -> str:
        """Concatenated text of all runs, annotations ignored."""
        return ''.join(run.text for run in self.rich_text)


@dataclass
class Document:
    """One remote document: ordered properties plus a lazily fetched block tree."""

    id: str
    properties: Dict[str, Property] = field(default_factory=dict)
    url: Optional[str] = None
    blocks: Optional[List[Block]] = None

    def title_property(self) -> Optional[Property]:
        """Return the single title-kind property, if any."""
        for prop in self.properties.values():
            if prop.kind == PropertyKind.TITLE:
                return prop
        return None

    @property
    def title(self) -> str:
        """Plain display name from the title property ('' when missing)."""
        prop = self.title_property()
        if prop is None or not prop.value:
            return ''
        return ''.join(run.text for run in prop.value)

    def __eq__(self, other: Any) -> bool:
        """Compare documents by ID."""
        if not isinstance(other, Document):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash document by ID."""
        return hash(self.id)


@dataclass
class AttachmentReference:
    """An attachment on its way from a remote URL to a local file."""

    source_url: str
    extension: str
    destination_path: str


@dataclass
class PendingWrite:
    """A child note produced mid-walk whose write is left to the caller."""

    relative_path: str
    content: str
    title: str
    document_id: str


@dataclass
class WriteOutcome:
    """Result of persisting one note."""

    document_id: str
    title: str
    relative_path: str
    child_paths: List[str] = field(default_factory=list)


@dataclass
class ConversionContext:
    """Mutable state owned by one document conversion.

    Carries the numbered-list counter, the previous block kind, the
    attachment sequence counter, the property filter and the batch-wide
    cancellation event. Child pages get a fresh context that shares only
    `cancel_event`.
    """

    document_id: str
    document_title: str = ''
    property_filter: Dict[str, bool] = field(default_factory=dict)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    number_counter: int = 1
    previous_block_kind: Optional[BlockKind] = None
    attachment_counter: int = 0

    def next_list_number(self, kind: BlockKind) -> Optional[int]:
        """Advance list numbering for a block and return its ordinal.

        Returns None for anything but a numbered list item. The counter
        resets to 1 as soon as a non-numbered block follows a numbered one.
        """
        if (self.previous_block_kind == BlockKind.NUMBERED_LIST_ITEM
                and kind != BlockKind.NUMBERED_LIST_ITEM):
            self.number_counter = 1
        self.previous_block_kind = kind
        if kind != BlockKind.NUMBERED_LIST_ITEM:
            return None
        number = self.number_counter
        self.number_counter += 1
        return number

    def next_attachment_number(self) -> int:
        self.attachment_counter += 1
        return self.attachment_counter

    @contextmanager
    def nested_level(self) -> Iterator['ConversionContext']:
        """Give a child block sequence its own list numbering.

        The parent level's counter and previous kind are restored on exit.
        """
        saved = (self.number_counter, self.previous_block_kind)
        self.number_counter = 1
        self.previous_block_kind = None
        try:
            yield self
        finally:
            self.number_counter, self.previous_block_kind = saved

    def for_child_page(self, document_id: str, title: str) -> 'ConversionContext':
        """Fresh context for a child page sharing the cancellation event."""
        return ConversionContext(
            document_id=document_id,
            document_title=title,
            property_filter=self.property_filter,
            cancel_event=self.cancel_event,
        )


@dataclass
class MigrationStatus:
    """Tracks migration progress and status for reporting."""

    document_id: str
    document_title: str
    status: str  # "pending", "exported", "failed", "cancelled"
    error_message: Optional[str] = None
    relative_path: Optional[str] = None
    timestamp: Optional[str] = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize status to dictionary."""
        return {
            'document_id': self.document_id,
            'document_title': self.document_title,
            'status': self.status,
            'error_message': self.error_message,
            'relative_path': self.relative_path,
            'timestamp': self.timestamp,
        }


__all__ = [
    'PropertyKind',
    'BlockKind',
    'TitlePolicy',
    'RelationStyle',
    'RichTextRun',
    'FileReference',
    'FormulaValue',
    'RollupValue',
    'Property',
    'Block',
    'Document',
    'AttachmentReference',
    'PendingWrite',
    'WriteOutcome',
    'ConversionContext',
    'MigrationStatus',
]
