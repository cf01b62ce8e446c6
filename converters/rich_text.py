"""Rich text formatting, title sanitizing and header quoting helpers."""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

import yaml
from dateutil import parser as date_parser

from models import RichTextRun

logger = logging.getLogger('notion_obsidian_migrator.converters.rich_text')

UNQUOTED_KEY_PATTERN = re.compile(r'[^A-Za-z0-9_ ]')
UNQUOTED_VALUE_PATTERN = re.compile(r'[^\w\s]')
TITLE_STRIP_PATTERN = re.compile(r'[^a-zA-Z0-9\-_ ]')
MAX_TITLE_LENGTH = 200

# Every character YAML treats as a line break, plus tab
DOUBLE_QUOTE_ESCAPES = {
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '\x85': '\\N',
    '\u2028': '\\L',
    '\u2029': '\\P',
}


def plain_text(runs: List[RichTextRun]) -> str:
    """Concatenate run texts without any markup."""
    return ''.join(run.text for run in runs)


def format_runs(runs: List[RichTextRun], annotate: bool = True) -> str:
    """
    Render rich text runs as Markdown.

    Bold and italic annotations become `**`/`*` markers, hyperlinks become
    `[text](href)` and date mentions become `[[D.M.YYYY]]` links.

    Args:
        runs: Rich text runs
        annotate: Apply bold/italic markers

    Returns:
        Markdown text
    """
    parts = []
    for run in runs:
        if run.mention_type == 'date':
            parts.append(f"[[{format_date_mention(run.text)}]]")
            continue

        text = run.text
        if annotate and text.strip():
            # Markers must hug the text; surrounding spaces stay outside
            core = text.strip()
            leading = text[:len(text) - len(text.lstrip())]
            trailing = text[len(text.rstrip()):]
            if run.bold:
                core = f"**{core}**"
            if run.italic:
                core = f"*{core}*"
            text = f"{leading}{core}{trailing}"
        if run.href and run.mention_type is None:
            text = f"[{text}]({run.href})"
        parts.append(text)
    return ''.join(parts)


def format_date_mention(text: str) -> str:
    """Format a date mention as D.M.YYYY, keeping the text if it is not a date."""
    try:
        parsed = date_parser.parse(text.lstrip('@'), fuzzy=True)
    except (ValueError, OverflowError):
        logger.debug(f"Date mention is not a parseable date: {text!r}")
        return text
    return f"{parsed.day}.{parsed.month}.{parsed.year}"


def to_utc_iso(value: str) -> str:
    """
    Normalize a date or datetime string to UTC ISO-8601 with milliseconds.

    Date-only and naive values are taken as UTC.

    Raises:
        ValueError: If the value cannot be parsed
    """
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime('%Y-%m-%dT%H:%M:%S.') + f"{parsed.microsecond // 1000:03d}Z"


def sanitize_title(title: Optional[str]) -> str:
    """
    Reduce a title to a filesystem-safe note name.

    Characters outside [A-Za-z0-9-_ ] are removed, spaces become
    underscores and the result is truncated to 200 characters.
    """
    sanitized = TITLE_STRIP_PATTERN.sub('', title or '').replace(' ', '_')
    sanitized = sanitized[:MAX_TITLE_LENGTH]
    return sanitized or 'untitled'


def double_quote(text: str) -> str:
    """Render text as a YAML double-quoted scalar."""
    escaped = text.replace('\\', '\\\\').replace('"', '\\"')
    for char, escape in DOUBLE_QUOTE_ESCAPES.items():
        escaped = escaped.replace(char, escape)
    return f'"{escaped}"'


def quote_key(key: str) -> str:
    """
    Quote a header key when it needs it.

    Keys containing characters outside [A-Za-z0-9_ ] are quoted, as are
    keys YAML would read as something other than this string (2024, true,
    No, padded text).
    """
    if UNQUOTED_KEY_PATTERN.search(key) or key != key.strip():
        return double_quote(key)
    if yaml.safe_load(key) != key:
        return double_quote(key)
    return key


def quote_value(value: str) -> str:
    """
    Quote a textual header value when it needs it.

    Values containing any non-word, non-space character are quoted, as are
    values YAML would otherwise read as something other than this string
    (numbers, booleans, null, padded text).
    """
    if value == '':
        return '""'
    if UNQUOTED_VALUE_PATTERN.search(value) or value != value.strip():
        return double_quote(value)
    if yaml.safe_load(value) != value:
        return double_quote(value)
    return value


__all__ = [
    'plain_text',
    'format_runs',
    'format_date_mention',
    'to_utc_iso',
    'sanitize_title',
    'quote_key',
    'quote_value',
    'double_quote',
]
