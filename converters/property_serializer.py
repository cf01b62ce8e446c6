"""Serialize a document's typed properties into a frontmatter header."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from models import ConversionContext, Document, FormulaValue, Property, PropertyKind
from .relation_resolver import RelationResolver
from .rich_text import plain_text, quote_key, quote_value, sanitize_title, to_utc_iso

logger = logging.getLogger('notion_obsidian_migrator.converters.properties')

HEADER_MARKER = '---'
ALIAS_KEY = 'Alias'
DATE_KINDS = (PropertyKind.DATE, PropertyKind.CREATED_TIME)


@dataclass
class SerializedHeader:
    """Frontmatter text plus the semantic-link lines destined for the body."""

    text: str
    semantic_lines: List[str] = field(default_factory=list)


class PropertySerializer:
    """
    Turns a Document's properties into `key: value` header lines.

    Properties are emitted in their defined order, one rule per kind.
    Properties switched off in the property filter are skipped; kinds
    without a rule are logged and produce no line.
    """

    def __init__(
        self,
        relation_resolver: RelationResolver,
        attachment_manager=None,
        normalize_date_keys: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            relation_resolver: Resolver for relation properties
            attachment_manager: Materializer for files properties (optional)
            normalize_date_keys: snake_case the keys of date-typed properties
            logger: Logger instance
        """
        self.relation_resolver = relation_resolver
        self.attachment_manager = attachment_manager
        self.normalize_date_keys = normalize_date_keys
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.converters.properties')

        self._renderers: Dict[PropertyKind, Callable[[str, Property, Optional[ConversionContext]], List[str]]] = {
            PropertyKind.SELECT: self._render_select,
            PropertyKind.MULTI_SELECT: self._render_multi_select,
            PropertyKind.RICH_TEXT: self._render_rich_text,
            PropertyKind.CHECKBOX: self._render_checkbox,
            PropertyKind.DATE: self._render_date,
            PropertyKind.CREATED_TIME: self._render_date,
            PropertyKind.NUMBER: self._render_number,
            PropertyKind.STATUS: self._render_optional_text,
            PropertyKind.URL: self._render_optional_text,
            PropertyKind.FILES: self._render_files,
            PropertyKind.FORMULA: self._render_formula,
            PropertyKind.ROLLUP: self._render_rollup,
            PropertyKind.TITLE: self._render_title,
        }

        missing = set(PropertyKind) - set(self._renderers) - {PropertyKind.UNSUPPORTED, PropertyKind.RELATION}
        if missing:
            raise ValueError(f"No header rule for property kinds: {sorted(k.value for k in missing)}")

    def serialize_header(
        self,
        document: Document,
        property_filter: Optional[Dict[str, bool]] = None,
        context: Optional[ConversionContext] = None
    ) -> str:
        """Return the delimited header block for a document."""
        return self.build_header(document, property_filter, context).text

    def build_header(
        self,
        document: Document,
        property_filter: Optional[Dict[str, bool]] = None,
        context: Optional[ConversionContext] = None
    ) -> SerializedHeader:
        """
        Build the header block and collect semantic-link lines.

        Args:
            document: Document whose properties are serialized
            property_filter: Mapping of property name to enabled flag;
                only names mapped to False are skipped
            context: Conversion context (needed for files attachments)

        Returns:
            SerializedHeader

        Raises:
            RelationResolutionError: If a relation target cannot be fetched
        """
        property_filter = property_filter or {}
        lines = [HEADER_MARKER]
        semantic_lines = []

        for name, prop in document.properties.items():
            if property_filter.get(name) is False:
                self.logger.debug(f"Property '{name}' disabled - skipping")
                continue

            if prop.kind == PropertyKind.RELATION:
                names = self.relation_resolver.resolve(prop)
                lines.extend(self.relation_resolver.render_header_lines(quote_key(name), names))
                semantic_line = self.relation_resolver.render_semantic_line(name, names)
                if semantic_line:
                    semantic_lines.append(semantic_line)
                continue

            renderer = self._renderers.get(prop.kind)
            if renderer is None:
                self.logger.info(
                    f"Unsupported property type '{prop.raw_type}' for '{name}' "
                    f"in document {document.id} - omitted"
                )
                continue

            lines.extend(renderer(self._header_key(name, prop.kind), prop, context))

        lines.append(HEADER_MARKER)
        return SerializedHeader(text='\n'.join(lines) + '\n', semantic_lines=semantic_lines)

    def _header_key(self, name: str, kind: PropertyKind) -> str:
        if self.normalize_date_keys and kind in DATE_KINDS:
            name = re.sub(r'\W+', '_', name.strip()).strip('_').lower() or name
        return quote_key(name)

    def _render_select(self, key: str, prop: Property, context) -> List[str]:
        if not prop.value:
            return []
        return [f"{key}: {quote_value(prop.value)}"]

    def _render_multi_select(self, key: str, prop: Property, context) -> List[str]:
        if not prop.value:
            return []
        return [f"{key}: {quote_value(' '.join(prop.value))}"]

    def _render_rich_text(self, key: str, prop: Property, context) -> List[str]:
        # splitlines() knows every YAML line break (\r, \x85, \u2028, ...)
        text = ' '.join(plain_text(prop.value or []).splitlines()).strip()
        if not text:
            return [f"{key}: null"]
        return [f"{key}: |-", f"  {text}"]

    def _render_checkbox(self, key: str, prop: Property, context) -> List[str]:
        return [f"{key}: {'true' if prop.value else 'false'}"]

    def _render_date(self, key: str, prop: Property, context) -> List[str]:
        if not prop.value:
            return [f"{key}: "]
        try:
            return [f"{key}: {quote_value(to_utc_iso(prop.value))}"]
        except (ValueError, OverflowError) as e:
            self.logger.warning(f"Unparseable date '{prop.value}' for '{prop.name}': {e}")
            return [f"{key}: "]

    def _render_number(self, key: str, prop: Property, context) -> List[str]:
        if prop.value is None:
            return []
        return [f"{key}: {format_number(prop.value)}"]

    def _render_optional_text(self, key: str, prop: Property, context) -> List[str]:
        if not prop.value:
            return [f"{key}: "]
        return [f"{key}: {quote_value(prop.value)}"]

    def _render_files(self, key: str, prop: Property, context) -> List[str]:
        references = []
        if self.attachment_manager is None:
            self.logger.warning(f"No attachment manager - files property '{prop.name}' left empty")
        else:
            for file_ref in prop.value or []:
                reference = self.attachment_manager.materialize(file_ref.url, context=context)
                if reference:
                    references.append(reference)

        if not references:
            return [f"{key}: []"]
        return [f"{key}:"] + [f"  - {quote_value(reference)}" for reference in references]

    def _render_formula(self, key: str, prop: Property, context) -> List[str]:
        handled, text = self._formula_scalar(prop.value)
        if not handled:
            self.logger.info(
                f"Unsupported formula type '{getattr(prop.value, 'type', None)}' for '{prop.name}' - omitted"
            )
            return []
        return [f"{key}: {text}"]

    def _render_rollup(self, key: str, prop: Property, context) -> List[str]:
        rollup = prop.value
        if rollup is None or rollup.type != 'array':
            return [f"{key}: null"]

        values = []
        for entry in rollup.entries:
            if entry.kind != PropertyKind.FORMULA:
                self.logger.debug(f"Rollup '{prop.name}' entry of type '{entry.raw_type}' skipped")
                continue
            handled, text = self._formula_scalar(entry.value)
            if handled:
                values.append(text)
            else:
                self.logger.info(f"Unsupported formula type in rollup '{prop.name}' - entry omitted")

        if not values:
            return [f"{key}: []"]
        return [f"{key}:"] + [f"  - {text}" for text in values]

    def _render_title(self, key: str, prop: Property, context) -> List[str]:
        alias = sanitize_title(plain_text(prop.value or []))
        return [f"{ALIAS_KEY}: {quote_value(alias)}"]

    def _formula_scalar(self, formula: Optional[FormulaValue]) -> Tuple[bool, str]:
        """Render a formula result; (False, '') when its type has no rule."""
        if formula is None:
            return False, ''
        if formula.type == 'number':
            return True, '' if formula.value is None else format_number(formula.value)
        if formula.type == 'string':
            return True, '' if formula.value is None else quote_value(formula.value)
        if formula.type == 'boolean':
            return True, 'true' if formula.value else 'false'
        if formula.type == 'date':
            if not formula.value:
                return True, ''
            try:
                return True, quote_value(to_utc_iso(formula.value))
            except (ValueError, OverflowError):
                self.logger.warning(f"Unparseable formula date '{formula.value}'")
                return True, ''
        return False, ''


def format_number(value: Any) -> str:
    """Render a number so YAML reads it back as the same number."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        text = repr(value)
        mantissa, _, exponent = text.partition('e')
        if exponent and '.' not in mantissa:
            text = f"{mantissa}.0e{exponent}"
        return text
    return str(value)


__all__ = ['PropertySerializer', 'SerializedHeader', 'HEADER_MARKER', 'format_number']
