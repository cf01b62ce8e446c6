"""Tests for relation resolution."""

import unittest

import requests

from converters.relation_resolver import ConversionError, RelationResolutionError, RelationResolver
from models import Document, Property, PropertyKind, RelationStyle
from fakes import FakeDocumentService, make_document


class TestRelationResolver(unittest.TestCase):
    def setUp(self):
        self.service = FakeDocumentService(headers={
            'a': make_document('a', 'Alpha'),
            'b': make_document('b', 'Beta'),
            'untitled': Document(id='untitled'),
        })

    def test_names_follow_relation_order(self):
        """Test names follow relation order."""
        resolver = RelationResolver(self.service)
        prop = Property('Related', PropertyKind.RELATION, ['b', 'a'])
        self.assertEqual(resolver.resolve(prop), ['Beta', 'Alpha'])

    def test_titles_are_cached(self):
        """Test titles are cached."""
        resolver = RelationResolver(self.service)
        resolver.resolve(Property('One', PropertyKind.RELATION, ['a']))
        resolver.resolve(Property('Two', PropertyKind.RELATION, ['a', 'b']))
        self.assertEqual(self.service.header_requests, ['a', 'b'])

    def test_document_without_title_falls_back_to_id(self):
        """Test document without title falls back to id."""
        resolver = RelationResolver(self.service)
        self.assertEqual(resolver.resolve(Property('R', PropertyKind.RELATION, ['untitled'])), ['untitled'])

    def test_failed_lookup_raises_with_cause(self):
        """Test failed lookup raises with cause."""
        resolver = RelationResolver(self.service)
        with self.assertRaises(RelationResolutionError) as caught:
            resolver.resolve(Property('Related', PropertyKind.RELATION, ['a', 'gone', 'b']))
        self.assertIsInstance(caught.exception, ConversionError)
        self.assertIsInstance(caught.exception.__cause__, requests.HTTPError)
        # Lookups stop at the first failure
        self.assertEqual(self.service.header_requests, ['a', 'gone'])

    def test_inline_rendering(self):
        """Test inline rendering."""
        resolver = RelationResolver(self.service)
        self.assertEqual(
            resolver.render_header_lines('Related', ['Alpha', 'Beta']),
            ['Related: ["[[Alpha]]", "[[Beta]]"]'],
        )

    def test_list_rendering(self):
        """Test list rendering."""
        resolver = RelationResolver(self.service, style=RelationStyle.LIST)
        self.assertEqual(
            resolver.render_header_lines('Related', ['Alpha']),
            ['Related:', '  - "[[Alpha]]"'],
        )

    def test_empty_relation_renders_empty_list(self):
        """Test empty relation renders empty list."""
        resolver = RelationResolver(self.service, style=RelationStyle.LIST)
        self.assertEqual(resolver.render_header_lines('Related', []), ['Related: []'])

    def test_semantic_line_only_when_enabled(self):
        """Test semantic line only when enabled."""
        self.assertIsNone(RelationResolver(self.service).render_semantic_line('Related', ['Alpha']))
        resolver = RelationResolver(self.service, semantic_links=True)
        self.assertEqual(resolver.render_semantic_line('Related', ['Alpha', 'Beta']), 'Related:: [[Alpha]], [[Beta]]')
        self.assertIsNone(resolver.render_semantic_line('Related', []))


if __name__ == '__main__':
    unittest.main()
