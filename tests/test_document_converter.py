"""Tests for the per-document conversion pipeline."""

import shutil
import tempfile
import unittest

from converters import build_converter, convert_document
from converters.document_converter import DocumentConverter, wiki_link
from converters.property_serializer import PropertySerializer
from converters.relation_resolver import RelationResolutionError, RelationResolver
from exporters import LocalVault, TitleDeduplicator
from models import Block, BlockKind, ConversionContext, Property, PropertyKind, TitlePolicy
from fakes import FakeDocumentService, make_document, text_block


class TestDocumentConverter(unittest.TestCase):
    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.root)
        self.vault = LocalVault(self.root)
        self.service = FakeDocumentService()

    def converter(self, semantic_links=False, include_content=True):
        resolver = RelationResolver(self.service, semantic_links=semantic_links)
        return DocumentConverter(
            self.service,
            PropertySerializer(resolver),
            title_deduplicator=TitleDeduplicator(self.vault, TitlePolicy.DEDUPLICATE),
            include_content=include_content,
            subpages_directory='Notion/subpages',
        )

    def test_header_then_body(self):
        """Test header then body."""
        document = make_document(
            'doc-1', 'My Note',
            Property('Status', PropertyKind.SELECT, 'Done'),
            blocks=[text_block('p', BlockKind.PARAGRAPH, 'Hello')],
        )
        context = ConversionContext(document_id='doc-1')
        converted = self.converter().convert(document, context)

        self.assertEqual(converted.title, 'My_Note')
        self.assertEqual(converted.content, '---\nStatus: Done\nAlias: My_Note\n---\nHello\n\n')
        self.assertEqual(converted.pending_writes, [])
        self.assertEqual(context.document_title, 'My_Note')

    def test_body_is_fetched_when_not_preloaded(self):
        """Test body is fetched when not preloaded."""
        self.service.children['doc-1'] = [text_block('p', BlockKind.PARAGRAPH, 'Fetched')]
        document = make_document('doc-1', 'Note')
        converted = self.converter().convert(document, ConversionContext(document_id='doc-1'))
        self.assertTrue(converted.content.endswith('---\nFetched\n\n'))
        self.assertEqual(self.service.child_requests, ['doc-1'])

    def test_header_only_when_content_disabled(self):
        """Test header only when content disabled."""
        document = make_document('doc-1', 'Note')
        converted = self.converter(include_content=False).convert(document, ConversionContext(document_id='doc-1'))
        self.assertEqual(converted.content, '---\nAlias: Note\n---\n')
        self.assertEqual(self.service.child_requests, [])

    def test_semantic_lines_open_the_body(self):
        """Test semantic lines open the body."""
        self.service.headers['rel-1'] = make_document('rel-1', 'Project X')
        document = make_document(
            'doc-1', 'Note',
            Property('Project', PropertyKind.RELATION, ['rel-1']),
            blocks=[text_block('p', BlockKind.PARAGRAPH, 'Body')],
        )
        converted = self.converter(semantic_links=True).convert(document, ConversionContext(document_id='doc-1'))
        self.assertEqual(
            converted.content,
            '---\nProject: ["[[Project X]]"]\nAlias: Note\n---\nProject:: [[Project X]]\n\nBody\n\n',
        )

    def test_relation_failure_propagates(self):
        """Test relation failure propagates."""
        document = make_document('doc-1', 'Note', Property('Project', PropertyKind.RELATION, ['missing']))
        with self.assertRaises(RelationResolutionError):
            self.converter().convert(document, ConversionContext(document_id='doc-1'))

    def test_child_page_becomes_pending_note(self):
        """Test child page becomes pending note."""
        self.service.headers['child-1'] = make_document('child-1', 'Sub Page')
        self.service.children['child-1'] = [text_block('c', BlockKind.PARAGRAPH, 'Inside')]
        document = make_document('doc-1', 'Parent', blocks=[
            Block(id='child-1', kind=BlockKind.CHILD_PAGE, title='Sub Page', has_children=True),
        ])

        converted = self.converter().convert(document, ConversionContext(document_id='doc-1'))

        self.assertEqual(converted.content, '---\nAlias: Parent\n---\n[[Sub_Page|Sub Page]]\n\n')
        self.assertEqual(len(converted.pending_writes), 1)
        pending = converted.pending_writes[0]
        self.assertEqual(pending.relative_path, 'Notion/subpages/Sub_Page.md')
        self.assertEqual(pending.content, '---\nAlias: Sub_Page\n---\nInside\n\n')
        self.assertEqual(pending.document_id, 'child-1')

    def test_grandchild_is_written_before_child(self):
        """Test grandchild is written before child."""
        self.service.headers['child'] = make_document('child', 'Child')
        self.service.headers['grand'] = make_document('grand', 'Grand')
        self.service.children['child'] = [Block(id='grand', kind=BlockKind.CHILD_PAGE, title='Grand')]
        document = make_document('doc-1', 'Parent', blocks=[
            Block(id='child', kind=BlockKind.CHILD_PAGE, title='Child'),
        ])

        converted = self.converter().convert(document, ConversionContext(document_id='doc-1'))

        self.assertEqual(
            [pending.relative_path for pending in converted.pending_writes],
            ['Notion/subpages/Grand.md', 'Notion/subpages/Child.md'],
        )
        self.assertIn('[[Grand]]', converted.pending_writes[1].content)

    def test_child_page_gets_its_own_attachment_sequence(self):
        """Test child page gets its own attachment sequence."""
        context = ConversionContext(document_id='doc-1', attachment_counter=4)
        child_context = context.for_child_page('child-1', 'Sub')
        self.assertEqual(child_context.next_attachment_number(), 1)
        self.assertIs(child_context.cancel_event, context.cancel_event)

    def test_failed_child_page_is_still_linked(self):
        """Test failed child page is still linked."""
        document = make_document('doc-1', 'Parent', blocks=[
            Block(id='gone', kind=BlockKind.CHILD_PAGE, title='Gone Page'),
            text_block('p', BlockKind.PARAGRAPH, 'After'),
        ])
        with self.assertLogs('notion_obsidian_migrator.converters.document', level='ERROR') as logs:
            converted = self.converter().convert(document, ConversionContext(document_id='doc-1'))

        self.assertEqual(converted.content, '---\nAlias: Parent\n---\n[[Gone_Page|Gone Page]]\n\nAfter\n\n')
        self.assertEqual(converted.pending_writes, [])
        self.assertTrue(any('Gone Page' in line for line in logs.output))

    def test_colliding_child_titles_are_deduplicated(self):
        """Test colliding child titles are deduplicated."""
        self.service.headers['c1'] = make_document('c1', 'Notes')
        self.service.headers['c2'] = make_document('c2', 'Notes')
        document = make_document('doc-1', 'Parent', blocks=[
            Block(id='c1', kind=BlockKind.CHILD_PAGE, title='Notes'),
            Block(id='c2', kind=BlockKind.CHILD_PAGE, title='Notes'),
        ])
        converted = self.converter().convert(document, ConversionContext(document_id='doc-1'))
        self.assertEqual(
            [pending.relative_path for pending in converted.pending_writes],
            ['Notion/subpages/Notes.md', 'Notion/subpages/Notes_1.md'],
        )
        self.assertIn('[[Notes]]\n\n[[Notes_1|Notes]]', converted.content)


class TestBuildConverter(unittest.TestCase):
    def test_subpages_live_under_destination(self):
        """Test subpages live under destination."""
        config = {'export': {'destination_directory': 'Notion/', 'subpages_directory': '/sub'}}
        converter = build_converter(FakeDocumentService(), config)
        self.assertEqual(converter.subpages_directory, 'Notion/sub')

    def test_export_options_reach_the_converter(self):
        """Test export options reach the converter."""
        config = {'export': {'include_content': False, 'relation_style': 'list', 'semantic_links': True}}
        converter = build_converter(FakeDocumentService(), config)
        self.assertFalse(converter.include_content)
        resolver = converter.property_serializer.relation_resolver
        self.assertEqual(resolver.style.value, 'list')
        self.assertTrue(resolver.semantic_links)

    def test_convert_document_applies_property_filter(self):
        """Test convert document applies property filter."""
        document = make_document(
            'doc-1', 'Note',
            Property('Secret', PropertyKind.SELECT, 'x'),
            blocks=[],
        )
        config = {'export': {'properties': {'Secret': False}}}
        converted = convert_document(document, FakeDocumentService(), config)
        self.assertEqual(converted.content, '---\nAlias: Note\n---\n')


class TestWikiLink(unittest.TestCase):
    def test_plain_link_when_label_matches(self):
        """Test plain link when label matches."""
        self.assertEqual(wiki_link('Note', 'Note'), '[[Note]]')
        self.assertEqual(wiki_link('Note'), '[[Note]]')

    def test_alias_link_strips_link_syntax_from_label(self):
        """Test alias link strips link syntax from label."""
        self.assertEqual(wiki_link('A_B', 'A|B [x]'), '[[A_B|AB x]]')


if __name__ == '__main__':
    unittest.main()
