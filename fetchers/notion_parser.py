"""Translate raw Notion API objects into migration models."""

import logging
from typing import Any, Dict, List, Optional

from models import (
    Block,
    BlockKind,
    Document,
    FileReference,
    FormulaValue,
    Property,
    PropertyKind,
    RichTextRun,
    RollupValue,
)

logger = logging.getLogger('notion_obsidian_migrator.fetcher.parser')


def parse_rich_text(items: Optional[List[Dict[str, Any]]]) -> List[RichTextRun]:
    """Convert a Notion rich_text array into runs."""
    runs = []
    for item in items or []:
        annotations = item.get('annotations') or {}
        mention_type = None
        if item.get('type') == 'mention':
            mention_type = (item.get('mention') or {}).get('type')
        runs.append(RichTextRun(
            text=item.get('plain_text', ''),
            bold=bool(annotations.get('bold')),
            italic=bool(annotations.get('italic')),
            href=item.get('href'),
            mention_type=mention_type,
        ))
    return runs


def parse_file(payload: Optional[Dict[str, Any]]) -> Optional[FileReference]:
    """Convert a Notion file object ('file' or 'external') into a reference."""
    if not payload:
        return None
    name = payload.get('name')
    file_type = payload.get('type') or ('external' if 'external' in payload else 'file')
    if file_type == 'external':
        url = (payload.get('external') or {}).get('url')
        return FileReference(url=url, name=name, hosted=False) if url else None
    url = (payload.get('file') or {}).get('url')
    return FileReference(url=url, name=name, hosted=True) if url else None


def _parse_date(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if not payload:
        return None
    return payload.get('start')


def _parse_formula(payload: Dict[str, Any]) -> FormulaValue:
    formula_type = payload.get('type')
    value = payload.get(formula_type) if formula_type else None
    if formula_type == 'date':
        value = _parse_date(value)
    return FormulaValue(type=formula_type, value=value)


def _parse_rollup(name: str, payload: Dict[str, Any]) -> RollupValue:
    rollup_type = payload.get('type')
    if rollup_type != 'array':
        return RollupValue(type=rollup_type)
    entries = [parse_property(name, entry) for entry in payload.get('array') or []]
    return RollupValue(type=rollup_type, entries=entries)


def parse_property(name: str, raw: Dict[str, Any]) -> Property:
    """Convert one raw property value into a typed Property."""
    raw_type = raw.get('type')
    kind = PropertyKind.from_type(raw_type)
    payload = raw.get(raw_type) if raw_type else None

    if kind in (PropertyKind.SELECT, PropertyKind.STATUS):
        value = payload.get('name') if payload else None
    elif kind == PropertyKind.MULTI_SELECT:
        value = [option.get('name', '') for option in payload or []]
    elif kind in (PropertyKind.RICH_TEXT, PropertyKind.TITLE):
        value = parse_rich_text(payload)
    elif kind == PropertyKind.CHECKBOX:
        value = bool(payload)
    elif kind == PropertyKind.DATE:
        value = _parse_date(payload)
    elif kind in (PropertyKind.NUMBER, PropertyKind.URL, PropertyKind.CREATED_TIME):
        value = payload
    elif kind == PropertyKind.RELATION:
        value = [ref.get('id') for ref in payload or [] if ref.get('id')]
    elif kind == PropertyKind.FILES:
        value = [ref for ref in (parse_file(item) for item in payload or []) if ref]
    elif kind == PropertyKind.FORMULA:
        value = _parse_formula(payload or {})
    elif kind == PropertyKind.ROLLUP:
        value = _parse_rollup(name, payload or {})
    else:
        value = payload

    return Property(name=name, kind=kind, value=value, raw_type=raw_type)


def parse_document(raw: Dict[str, Any]) -> Document:
    """Convert a raw page object into a Document (blocks not loaded)."""
    properties = {}
    for name, raw_property in (raw.get('properties') or {}).items():
        properties[name] = parse_property(name, raw_property)
    return Document(id=raw['id'], properties=properties, url=raw.get('url'))


def parse_block(raw: Dict[str, Any]) -> Block:
    """Convert a raw block object into a Block."""
    raw_type = raw.get('type')
    kind = BlockKind.from_type(raw_type)
    payload = raw.get(raw_type) or {}

    block = Block(
        id=raw['id'],
        kind=kind,
        raw_type=raw_type,
        has_children=bool(raw.get('has_children')),
    )

    if kind == BlockKind.UNSUPPORTED:
        return block

    block.rich_text = parse_rich_text(payload.get('rich_text'))
    block.caption = parse_rich_text(payload.get('caption'))

    if kind == BlockKind.TO_DO:
        block.checked = bool(payload.get('checked'))
    elif kind == BlockKind.CODE:
        block.language = payload.get('language')
    elif kind in (BlockKind.BOOKMARK, BlockKind.LINK_PREVIEW):
        block.url = payload.get('url')
    elif kind in (BlockKind.IMAGE, BlockKind.FILE, BlockKind.AUDIO, BlockKind.VIDEO):
        block.file = parse_file(payload)
    elif kind == BlockKind.CHILD_PAGE:
        block.title = payload.get('title', '')
    elif kind == BlockKind.TABLE:
        block.has_column_header = bool(payload.get('has_column_header'))
    elif kind == BlockKind.TABLE_ROW:
        block.cells = [parse_rich_text(cell) for cell in payload.get('cells') or []]

    return block


__all__ = ['parse_rich_text', 'parse_file', 'parse_property', 'parse_document', 'parse_block']
